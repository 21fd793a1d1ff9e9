from __future__ import annotations

import logging
from dataclasses import replace

from .theme import VIEW_CATEGORY, build_category_colors, color_for, guess_category
from .types import (
    DEFAULT_SCHEMA_NAME,
    Column,
    DatabaseSchema,
    RawColumn,
    RawTable,
    Reference,
    SchemaFormat,
    Table,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Schema normalizer
#
# Turns raw parser output into the canonical DatabaseSchema:
#   1. Table and column name conflicts (case-insensitive): last wins, in the
#      slot of the first declaration
#   2. Foreign-key targets resolved against declared tables/columns;
#      unresolvable references are dropped with a warning
#   3. View lineage resolved to canonical table/column names
#   4. Categories classified by name, colours assigned per category
# ============================================================================


def normalize(
    raw_tables: list[RawTable],
    format: SchemaFormat,
    name: str = DEFAULT_SCHEMA_NAME,
    dialect: str | None = None,
) -> DatabaseSchema:
    # Copies, so references resolve against the surviving column spellings
    tables = [
        replace(t, columns=_dedupe_columns(t)) for t in _dedupe_tables(raw_tables)
    ]
    lookup = {t.name.lower(): t for t in tables}

    categories = [_category_of(t) for t in tables]
    colors = build_category_colors(categories)

    result: list[Table] = []
    for raw, category in zip(tables, categories):
        columns = tuple(_normalize_column(raw, col, lookup) for col in raw.columns)
        result.append(
            Table(
                name=raw.name,
                columns=columns,
                color=color_for(colors, category),
                category=category,
                is_view=raw.is_view,
            )
        )

    return DatabaseSchema(
        format=format, name=name, tables=tuple(result), dialect=dialect
    )


def recolor_schema(schema: DatabaseSchema) -> DatabaseSchema:
    """Recompute category colours after categories changed."""
    colors = build_category_colors(t.category for t in schema.tables)
    return replace(
        schema,
        tables=tuple(
            replace(t, color=color_for(colors, t.category)) for t in schema.tables
        ),
    )


def with_table_category(
    schema: DatabaseSchema, table_name: str, category: str
) -> DatabaseSchema:
    """Return a new schema with one table moved to another category."""
    key = table_name.lower()
    tables = tuple(
        replace(t, category=category) if t.name.lower() == key else t
        for t in schema.tables
    )
    return recolor_schema(replace(schema, tables=tables))


# ============================================================================
# Helpers
# ============================================================================


def _category_of(table: RawTable) -> str:
    if table.category:
        return table.category
    if table.is_view:
        return VIEW_CATEGORY
    return guess_category(table.name)


def _dedupe_tables(raw_tables: list[RawTable]) -> list[RawTable]:
    slots: dict[str, int] = {}
    tables: list[RawTable] = []
    for table in raw_tables:
        key = table.name.lower()
        if key in slots:
            logger.warning(
                "Table %r redeclared as %r; keeping the later definition",
                tables[slots[key]].name,
                table.name,
            )
            tables[slots[key]] = table
            continue
        slots[key] = len(tables)
        tables.append(table)
    return tables


def _dedupe_columns(table: RawTable) -> list[RawColumn]:
    slots: dict[str, int] = {}
    columns: list[RawColumn] = []
    for col in table.columns:
        key = col.name.lower()
        if key in slots:
            logger.warning(
                "Column %s.%s declared twice; keeping the later definition",
                table.name,
                col.name,
            )
            columns[slots[key]] = col
            continue
        slots[key] = len(columns)
        columns.append(col)
    return columns


def _normalize_column(
    table: RawTable, col: RawColumn, lookup: dict[str, RawTable]
) -> Column:
    references = _resolve_reference(table, col, lookup)
    if col.is_foreign_key and references is None and col.references is None:
        logger.warning(
            "Column %s.%s is marked as a foreign key but references nothing; "
            "clearing the flag",
            table.name,
            col.name,
        )

    source_table, source_column = _resolve_lineage(table, col, lookup)

    return Column(
        name=col.name,
        type=col.type,
        is_primary_key=col.is_primary_key,
        is_foreign_key=references is not None,
        is_unique=col.is_unique,
        # Primary-key columns are implicitly NOT NULL
        is_nullable=col.is_nullable and not col.is_primary_key,
        references=references,
        source_table=source_table,
        source_column=source_column,
    )


def _resolve_reference(
    table: RawTable, col: RawColumn, lookup: dict[str, RawTable]
) -> Reference | None:
    ref = col.references
    if ref is None:
        return None

    target = lookup.get(ref.table.lower())
    if target is None:
        logger.warning(
            "Dropping reference %s.%s -> %s: no such table",
            table.name,
            col.name,
            ref.table,
        )
        return None

    if ref.column is None:
        pk = target.primary_key
        if len(pk) != 1:
            logger.warning(
                "Dropping reference %s.%s -> %s: target has no single-column "
                "primary key",
                table.name,
                col.name,
                target.name,
            )
            return None
        target_col = pk[0]
    else:
        target_col = target.column(ref.column)
        if target_col is None:
            logger.warning(
                "Dropping reference %s.%s -> %s.%s: no such column",
                table.name,
                col.name,
                target.name,
                ref.column,
            )
            return None

    return Reference(
        table=target.name, column=target_col.name, cardinality=ref.cardinality
    )


def _resolve_lineage(
    table: RawTable, col: RawColumn, lookup: dict[str, RawTable]
) -> tuple[str | None, str | None]:
    if not table.is_view or not col.source_table:
        return None, None
    source = lookup.get(col.source_table.lower())
    if source is None or source is table:
        logger.debug(
            "View column %s.%s: unknown source table %r",
            table.name,
            col.name,
            col.source_table,
        )
        return None, None
    source_col = source.column(col.source_column or col.name)
    if source_col is None:
        logger.debug(
            "View column %s.%s: %s has no column %r",
            table.name,
            col.name,
            source.name,
            col.source_column,
        )
        return None, None
    return source.name, source_col.name
