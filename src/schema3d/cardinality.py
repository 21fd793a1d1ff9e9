from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .types import ColumnFacts, ParsedCardinality

# ============================================================================
# Cardinality engine
#
# Notation is "<left>:<right>" where left is the referenced (parent/PK) end
# and right is the referencing (child/FK) end. Each side is one of
# 1, N, 0..1, 1..N, 0..N.
#
#   FK unique     NOT NULL  -> right 1
#   FK unique     nullable  -> right 0..1   (unknown counts as nullable)
#   FK not unique NOT NULL  -> right 1..N
#   FK not unique nullable  -> right 0..N
#   FK not unique unknown   -> right N
#
#   left is 1 only when the parent column is a key and the FK is NOT NULL,
#   otherwise 0..1.
# ============================================================================

# Column, ColumnFacts, or a mapping of fact names
FactsLike = Any

_FACT_NAMES = ("is_primary_key", "is_unique", "is_nullable")
_CAMEL_NAMES = {
    "is_primary_key": "isPrimaryKey",
    "is_unique": "isUnique",
    "is_nullable": "isNullable",
}


def column_facts(source: FactsLike | None) -> ColumnFacts | None:
    """Coerce a Column, ColumnFacts or mapping into ColumnFacts.

    Mappings may use snake_case or camelCase keys; missing keys stay unknown.
    """
    if source is None or isinstance(source, ColumnFacts):
        return source
    values: dict[str, bool | None] = {}
    for name in _FACT_NAMES:
        if isinstance(source, Mapping):
            value = source.get(name, source.get(_CAMEL_NAMES[name]))
        else:
            value = getattr(source, name, None)
        values[name] = None if value is None else bool(value)
    return ColumnFacts(**values)


def calculate_cardinality(pk_column: FactsLike | None, fk_column: FactsLike) -> str:
    """Derive the cardinality notation for one foreign-key column."""
    pk = column_facts(pk_column)
    fk = column_facts(fk_column) or ColumnFacts()

    fk_not_null = fk.is_nullable is False
    if fk.is_unique:
        right = "1" if fk_not_null else "0..1"
    elif fk.is_nullable is None:
        right = "N"
    else:
        right = "1..N" if fk_not_null else "0..N"

    pk_is_key = pk is not None and bool(pk.is_primary_key or pk.is_unique)
    left = "1" if pk_is_key and fk_not_null else "0..1"

    return f"{left}:{right}"


def parse_cardinality(notation: str) -> ParsedCardinality:
    """Split a notation into its sides; a side is many iff it contains N."""
    left, _, right = notation.partition(":")
    return ParsedCardinality(
        left=left,
        right=right,
        left_is_many="N" in left,
        right_is_many="N" in right,
    )


def is_many(symbol: str) -> bool:
    return "N" in symbol
