from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import get_args

from .mermaid import parse_mermaid_schema, schema_to_mermaid
from .sql import parse_sql_schema, schema_to_sql
from .types import DEFAULT_SCHEMA_NAME, DatabaseSchema, SchemaFormat

logger = logging.getLogger(__name__)

SCHEMA_FORMATS: tuple[str, ...] = get_args(SchemaFormat)

MERMAID_HEADER_RE = re.compile(r"^\s*erdiagram\b", re.IGNORECASE | re.MULTILINE)
SQL_STATEMENT_RE = re.compile(
    r"\b(?:CREATE\s+(?:OR\s+REPLACE\s+)?(?:TEMP(?:ORARY)?\s+)?(?:MATERIALIZED\s+)?"
    r"(?:TABLE|VIEW)|ALTER\s+TABLE)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class ParserResult:
    schema: DatabaseSchema | None
    is_valid: bool


def detect_format(text: str) -> SchemaFormat | None:
    """Guess the format from content: an erDiagram header or SQL DDL keywords."""
    if MERMAID_HEADER_RE.search(text):
        return "mermaid"
    if SQL_STATEMENT_RE.search(text):
        return "sql"
    return None


def parse_schema(
    text: str,
    format_hint: SchemaFormat | None = None,
    name: str = DEFAULT_SCHEMA_NAME,
) -> DatabaseSchema | None:
    """Parse SQL DDL or a Mermaid ER diagram into a schema.

    Returns None when the text yields no table. ``format_hint`` skips
    detection; an unknown hint raises ValueError.
    """
    if format_hint is not None and format_hint not in SCHEMA_FORMATS:
        raise ValueError(
            f"Unknown schema format {format_hint!r}; expected one of "
            f"{', '.join(SCHEMA_FORMATS)}"
        )

    fmt = format_hint or detect_format(text)
    logger.debug("Parsing schema as %s", fmt or "undetected format")
    if fmt == "mermaid":
        return parse_mermaid_schema(text, name)
    if fmt == "sql":
        return parse_sql_schema(text, name)

    # Nothing recognisable: try both, SQL first
    return parse_sql_schema(text, name) or parse_mermaid_schema(text, name)


def validate_and_parse(
    text: str, format_hint: SchemaFormat | None = None
) -> ParserResult:
    schema = parse_schema(text, format_hint)
    return ParserResult(schema=schema, is_valid=schema is not None and bool(schema.tables))


def schema_to_format(schema: DatabaseSchema, format: SchemaFormat | None = None) -> str:
    """Serialise a schema, by default in the format it was parsed from."""
    fmt = format or schema.format
    if fmt == "sql":
        return schema_to_sql(schema)
    if fmt == "mermaid":
        return schema_to_mermaid(schema)
    raise ValueError(f"Unknown schema format {fmt!r}")
