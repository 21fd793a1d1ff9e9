from __future__ import annotations

import re

from ..types import Column, DatabaseSchema, Table

# ============================================================================
# SQL DDL writer
#
# Emits one CREATE TABLE per table and one CREATE VIEW per view, in schema
# order. Types are written as parsed, so identifiers are quoted in the
# source dialect's style and dialect sniffing reads the output back in that
# same dialect:
#
#   tsql      [name]     always quoted
#   mysql     `name`     always quoted
#   other     "name"     only when not a plain identifier
# ============================================================================

PLAIN_IDENTIFIER_RE = re.compile(r"^[A-Za-z_]\w*$")

# dialect -> (open quote, close quote)
ALWAYS_QUOTED = {"tsql": ("[", "]"), "mysql": ("`", "`")}


def schema_to_sql(schema: DatabaseSchema, dialect: str | None = None) -> str:
    """Serialise a schema as DDL, by default in the dialect it was read in."""
    dialect = dialect or schema.dialect
    statements = [
        _create_view(table, dialect) if table.is_view else _create_table(table, dialect)
        for table in schema.tables
    ]
    return "\n\n".join(statements) + ("\n" if statements else "")


def quote_identifier(name: str, dialect: str | None = None) -> str:
    if dialect in ALWAYS_QUOTED:
        start, end = ALWAYS_QUOTED[dialect]
        return start + name.replace(end, end * 2) + end
    if PLAIN_IDENTIFIER_RE.match(name):
        return name
    return '"' + name.replace('"', '""') + '"'


def _create_table(table: Table, dialect: str | None) -> str:
    pk = table.primary_key
    inline_pk = len(pk) == 1

    lines = [_column_definition(col, inline_pk, dialect) for col in table.columns]
    if len(pk) > 1:
        keys = ", ".join(quote_identifier(col.name, dialect) for col in pk)
        lines.append(f"PRIMARY KEY ({keys})")

    body = ",\n".join(f"    {line}" for line in lines)
    return f"CREATE TABLE {quote_identifier(table.name, dialect)} (\n{body}\n);"


def _column_definition(col: Column, inline_pk: bool, dialect: str | None) -> str:
    parts = [quote_identifier(col.name, dialect), col.type or "TEXT"]
    if col.is_primary_key and inline_pk:
        parts.append("PRIMARY KEY")
    elif not col.is_nullable and not col.is_primary_key:
        parts.append("NOT NULL")
    if col.is_unique:
        parts.append("UNIQUE")
    if col.references is not None:
        parts.append(
            f"REFERENCES {quote_identifier(col.references.table, dialect)}"
            f"({quote_identifier(col.references.column, dialect)})"
        )
    return " ".join(parts)


def _create_view(view: Table, dialect: str | None) -> str:
    projections: list[str] = []
    sources: list[str] = []
    for col in view.columns:
        name = quote_identifier(col.name, dialect)
        if col.source_table and col.source_column:
            source = quote_identifier(col.source_table, dialect)
            column = quote_identifier(col.source_column, dialect)
            projections.append(f"{source}.{column} AS {name}")
            if source not in sources:
                sources.append(source)
        else:
            projections.append(f"CAST(NULL AS {col.type or 'TEXT'}) AS {name}")

    select = "SELECT\n" + ",\n".join(f"    {p}" for p in projections)
    if sources:
        select += "\nFROM " + ", ".join(sources)
    return f"CREATE VIEW {quote_identifier(view.name, dialect)} AS\n{select};"
