from __future__ import annotations

import re

from ..cardinality import parse_cardinality
from ..relationships import derive_relationships
from ..types import DatabaseSchema

# ============================================================================
# Mermaid ER writer
#
# Relationship lines are written parent-first, labelled with the FK column
# name so the parser re-attaches them to the same column. Views have no
# erDiagram representation and are left out.
# ============================================================================

# Symbol -> crow's-foot token at the parent (left) end
PARENT_END_TOKENS = {"1": "||", "0..1": "|o", "1..N": "}|", "0..N": "}o", "N": "}o"}
# Symbol -> crow's-foot token at the child (right) end
CHILD_END_TOKENS = {"1": "||", "0..1": "o|", "1..N": "|{", "0..N": "o{", "N": "o{"}


def schema_to_mermaid(schema: DatabaseSchema) -> str:
    lines = ["erDiagram"]
    views = {t.name for t in schema.tables if t.is_view}

    for table in schema.tables:
        if table.is_view:
            continue
        lines.append(f"    {_entity_id(table.name)} {{")
        for col in table.columns:
            keys = [
                marker
                for marker, flag in (
                    ("PK", col.is_primary_key),
                    ("FK", col.is_foreign_key),
                    ("UK", col.is_unique),
                )
                if flag
            ]
            line = f"        {_attribute_type(col.type)} {col.name}"
            if keys:
                line += " " + ", ".join(keys)
            lines.append(line)
        lines.append("    }")

    for rel in derive_relationships(schema):
        if rel.from_table in views or rel.to_table in views:
            continue
        card = parse_cardinality(rel.cardinality)
        tokens = (
            PARENT_END_TOKENS.get(card.left, "}o")
            + "--"
            + CHILD_END_TOKENS.get(card.right, "o{")
        )
        lines.append(
            f"    {_entity_id(rel.to_table)} {tokens} {_entity_id(rel.from_table)}"
            f' : "{rel.fk_column}"'
        )

    return "\n".join(lines) + "\n"


def _entity_id(name: str) -> str:
    return re.sub(r"[^\w-]", "_", name)


def _attribute_type(type_: str) -> str:
    # Attribute types are a single whitespace-free token
    compact = re.sub(r"\s*,\s*", ",", type_.strip())
    return re.sub(r"\s+", "_", compact) or "string"
