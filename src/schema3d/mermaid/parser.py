from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ..cardinality import is_many
from ..normalizer import normalize
from ..types import (
    DEFAULT_SCHEMA_NAME,
    DatabaseSchema,
    RawColumn,
    RawReference,
    RawTable,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Mermaid ER parser
#
# Parses Mermaid erDiagram syntax into raw tables, then hands them to the
# normalizer.
#
# Supported syntax:
#   CUSTOMER ||--o{ ORDER : places
#   CUSTOMER {
#     string name PK
#     int age
#     string email UK "user email"
#   }
#
# Crow's-foot tokens, decoded into cardinality notation symbols:
#   ||        exactly one   -> 1
#   |o  o|    zero or one   -> 0..1
#   }|  |{    one or more   -> 1..N
#   }o  o{    zero or more  -> 0..N
#   anything else           -> N (unresolved participation)
#
# Line style:
#   --  identifying (solid line)
#   ..  non-identifying (dashed line)
#   any other dash/dot connector (`||-o{`) -> N:N
# ============================================================================

HEADER_RE = re.compile(r"^erdiagram\b", re.IGNORECASE)
ENTITY_BLOCK_RE = re.compile(r"^([A-Za-z_][\w-]*)(?:\s*\[[^\]]*\])?\s*\{\s*$")
ATTRIBUTE_RE = re.compile(r"^(\S+)\s+(\S+)(?:\s+(.+))?$")
RELATIONSHIP_RE = re.compile(
    r"^([A-Za-z_][\w-]*)\s+(\S*[-.]\S*)\s+([A-Za-z_][\w-]*)\s*(?::\s*(.*))?$"
)
TOKEN_RE = re.compile(r"^(\S*?)(--|\.\.)(\S*)$")

KEY_MARKERS = ("PK", "FK", "UK")


@dataclass(slots=True)
class ErLine:
    """A relationship line, sides already decoded into notation symbols."""

    entity1: str
    entity2: str
    # Symbol at entity1's end
    left: str
    # Symbol at entity2's end
    right: str
    label: str
    identifying: bool


def parse_mermaid_schema(
    text: str, name: str = DEFAULT_SCHEMA_NAME
) -> DatabaseSchema | None:
    """Parse a Mermaid ER diagram; None when no entity is found."""
    lines = preprocess_lines(text)

    header = next((i for i, line in enumerate(lines) if HEADER_RE.match(line)), None)
    if header is None:
        logger.debug("No erDiagram header found")
        return None

    entity_map, er_lines = parse_er_lines(lines[header + 1:])
    if not entity_map:
        logger.debug("erDiagram contains no entities")
        return None

    for er_line in er_lines:
        _apply_relationship(entity_map, er_line)
    _infer_dangling_foreign_keys(entity_map)

    return normalize(list(entity_map.values()), "mermaid", name)


def preprocess_lines(text: str) -> list[str]:
    """Trim lines and drop blanks and %% comments."""
    return [
        line.strip()
        for line in text.split("\n")
        if line.strip() and not line.strip().startswith("%%")
    ]


def parse_er_lines(lines: list[str]) -> tuple[dict[str, RawTable], list[ErLine]]:
    """Collect entities and relationship lines from the diagram body."""
    entity_map: dict[str, RawTable] = {}
    er_lines: list[ErLine] = []
    current: RawTable | None = None

    for line in lines:
        # --- Inside entity body ---
        if current is not None:
            if line == "}":
                current = None
                continue
            col = _parse_attribute(line)
            if col is not None:
                current.columns.append(col)
            else:
                logger.warning("Ignoring malformed attribute in %s: %r", current.name, line)
            continue

        # --- Entity block start: `ENTITY_NAME {` ---
        block = ENTITY_BLOCK_RE.match(line)
        if block:
            current = _ensure_entity(entity_map, block.group(1))
            continue

        # --- Relationship: `ENTITY1 <card>--<card> ENTITY2 : label` ---
        er_line = parse_relationship_line(line)
        if er_line is not None:
            _ensure_entity(entity_map, er_line.entity1)
            _ensure_entity(entity_map, er_line.entity2)
            er_lines.append(er_line)
            continue

        logger.warning("Ignoring unrecognised erDiagram line: %r", line)

    if current is not None:
        logger.warning("Entity block %s is not closed", current.name)

    return entity_map, er_lines


def _ensure_entity(entity_map: dict[str, RawTable], entity_id: str) -> RawTable:
    """Ensure an entity exists in the map."""
    entity = entity_map.get(entity_id)
    if entity is None:
        entity = RawTable(name=entity_id)
        entity_map[entity_id] = entity
    return entity


def _parse_attribute(line: str) -> RawColumn | None:
    """Parse an attribute line inside an entity block.

    Format: type name [PK|FK|UK [, ...]] ["comment"]
    """
    match = ATTRIBUTE_RE.match(line)
    if not match:
        return None

    rest = re.sub(r'"[^"]*"', "", match.group(3) or "")
    keys = {part.upper() for part in re.split(r"[,\s]+", rest) if part}
    keys &= set(KEY_MARKERS)

    return RawColumn(
        name=match.group(2),
        type=match.group(1),
        is_primary_key="PK" in keys,
        is_foreign_key="FK" in keys,
        is_unique="UK" in keys,
    )


def parse_relationship_line(line: str) -> ErLine | None:
    match = RELATIONSHIP_RE.match(line)
    if not match:
        return None

    connector = match.group(2)
    label = (match.group(4) or "").strip().strip('"')
    token = TOKEN_RE.match(connector)
    if not token:
        logger.warning("Malformed relationship connector %r; treating as N:N", connector)
        return ErLine(
            entity1=match.group(1),
            entity2=match.group(3),
            left="N",
            right="N",
            label=label,
            identifying="." not in connector,
        )

    return ErLine(
        entity1=match.group(1),
        entity2=match.group(3),
        left=decode_token(token.group(1)),
        right=decode_token(token.group(3)),
        label=label,
        identifying=token.group(2) == "--",
    )


def decode_token(s: str) -> str:
    """Decode one crow's-foot token into a notation symbol."""
    # Sorting makes both spellings equal: |o / o| -> "o|", }| -> "|}", |{ -> "{|"
    sorted_s = "".join(sorted(s))
    if sorted_s == "||":
        return "1"
    if sorted_s == "o|":
        return "0..1"
    if sorted_s in ("|}", "{|"):
        return "1..N"
    if sorted_s in ("o}", "o{"):
        return "0..N"
    logger.warning("Unknown cardinality token %r; treating as N", s)
    return "N"


# ============================================================================
# Foreign keys from relationship lines
# ============================================================================


def _apply_relationship(entity_map: dict[str, RawTable], er_line: ErLine) -> None:
    e1 = entity_map[er_line.entity1]
    e2 = entity_map[er_line.entity2]

    # The "many" end holds the foreign key
    if is_many(er_line.left) and not is_many(er_line.right):
        child, parent, child_end, parent_end = e1, e2, er_line.left, er_line.right
    elif (
        not is_many(er_line.left)
        and not is_many(er_line.right)
        and _find_fk_column(e1, e2, er_line.label) is not None
        and _find_fk_column(e2, e1, er_line.label) is None
    ):
        child, parent, child_end, parent_end = e1, e2, er_line.left, er_line.right
    else:
        child, parent, child_end, parent_end = e2, e1, er_line.right, er_line.left

    pk = parent.primary_key
    if not pk:
        logger.warning(
            "Skipping relationship %s -- %s: %s has no primary key",
            er_line.entity1,
            er_line.entity2,
            parent.name,
        )
        return
    pk_col = pk[0]

    fk_col = _find_fk_column(child, parent, er_line.label)
    if fk_col is None:
        fk_col = RawColumn(
            name=f"{parent.name.lower()}_id",
            type=pk_col.type,
            is_unique=not is_many(child_end),
        )
        child.columns.append(fk_col)
        logger.debug("Synthesized %s.%s for %s", child.name, fk_col.name, er_line.label)

    fk_col.is_foreign_key = True
    fk_col.references = RawReference(
        table=parent.name,
        column=pk_col.name,
        cardinality=f"{parent_end}:{child_end}",
    )
    if parent_end == "1":
        fk_col.is_nullable = False
    elif parent_end == "0..1":
        fk_col.is_nullable = True


def _find_fk_column(
    child: RawTable, parent: RawTable, label: str = ""
) -> RawColumn | None:
    ref = parent.name.lower()
    candidates = (f"{ref}_id", f"{ref}id")

    # A label naming one of the child's FK columns picks that column
    for col in child.columns:
        if col.is_foreign_key and label and col.name.lower() == label.lower():
            return col
    for col in child.columns:
        name = col.name.lower()
        if col.is_foreign_key and (name in candidates or ref in name):
            return col
    for col in child.columns:
        if col.name.lower() in candidates:
            return col
    return None


def _infer_dangling_foreign_keys(entity_map: dict[str, RawTable]) -> None:
    """Resolve FK-marked columns no relationship line covered, by name."""
    by_name = {name.lower(): table for name, table in entity_map.items()}

    for table in entity_map.values():
        for col in table.columns:
            if not col.is_foreign_key or col.references is not None:
                continue
            base = re.sub(r"_?id$", "", col.name, flags=re.IGNORECASE).lower()
            target = by_name.get(base)
            if target is None or base == col.name.lower() or not target.primary_key:
                continue
            col.references = RawReference(
                table=target.name, column=target.primary_key[0].name
            )
