from __future__ import annotations

from .cardinality import calculate_cardinality
from .types import DatabaseSchema, Relationship

# ============================================================================
# Relationship derivation
#
# The schema stores no edge list: edges are recomputed from column
# references every time, so they cannot drift from column state.
# ============================================================================


def derive_relationships(schema: DatabaseSchema) -> tuple[Relationship, ...]:
    """One relationship per foreign-key column, in declaration order."""
    relationships: list[Relationship] = []
    for table in schema.tables:
        for col in table.columns:
            ref = col.references
            if not col.is_foreign_key or ref is None:
                continue
            cardinality = ref.cardinality
            if not cardinality:
                target = schema.table(ref.table)
                pk_col = target.column(ref.column) if target else None
                cardinality = calculate_cardinality(pk_col, col)
            relationships.append(
                Relationship(
                    from_table=table.name,
                    fk_column=col.name,
                    to_table=ref.table,
                    pk_column=ref.column,
                    cardinality=cardinality,
                )
            )
    return tuple(relationships)


def derive_view_lineage(schema: DatabaseSchema) -> tuple[tuple[str, str], ...]:
    """Distinct (view, base table) pairs from view-column lineage."""
    pairs: list[tuple[str, str]] = []
    for table in schema.tables:
        if not table.is_view:
            continue
        for col in table.columns:
            if col.source_table is None:
                continue
            pair = (table.name, col.source_table)
            if pair not in pairs:
                pairs.append(pair)
    return tuple(pairs)
