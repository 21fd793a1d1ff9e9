from __future__ import annotations

from .types import Column, DatabaseSchema

# ============================================================================
# Structural schema equality
#
# Compares table names, column names and column structure case-insensitively
# with set semantics. Positions, colours and categories are not compared.
# ============================================================================


def are_schemas_equal(a: DatabaseSchema | None, b: DatabaseSchema | None) -> bool:
    if a is None or b is None:
        return a is b

    tables_a = {t.name.lower(): t for t in a.tables}
    tables_b = {t.name.lower(): t for t in b.tables}
    if tables_a.keys() != tables_b.keys():
        return False

    for key, table_a in tables_a.items():
        columns_a = {c.name.lower(): _signature(c) for c in table_a.columns}
        columns_b = {c.name.lower(): _signature(c) for c in tables_b[key].columns}
        if columns_a != columns_b:
            return False
    return True


def _signature(col: Column) -> tuple:
    ref = None
    if col.references is not None:
        ref = (col.references.table.lower(), col.references.column.lower())
    return (
        " ".join(col.type.split()).upper(),
        col.is_primary_key,
        col.is_foreign_key,
        col.is_unique,
        ref,
    )
