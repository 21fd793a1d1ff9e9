from __future__ import annotations

from .parser import (
    parse_sql_schema,
    parse_statement,
    sniff_dialect,
    split_statements,
    statement_spans,
)
from .writer import quote_identifier, schema_to_sql

__all__ = [
    "parse_sql_schema",
    "parse_statement",
    "quote_identifier",
    "schema_to_sql",
    "sniff_dialect",
    "split_statements",
    "statement_spans",
]
