from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

# ============================================================================
# Canonical schema model
#
# Produced by the normalizer and consumed by the layout engine, the
# comparator and the external rendering layer. Values are frozen: every
# transformation returns a new schema.
# ============================================================================

SchemaFormat = Literal["sql", "mermaid"]
LayoutType = Literal["force", "hierarchical", "circular"]
ViewMode = Literal["2D", "3D"]

Position = tuple[float, float, float]

ORIGIN: Position = (0.0, 0.0, 0.0)
DEFAULT_CATEGORY = "General"
DEFAULT_SCHEMA_NAME = "Custom Database"


@dataclass(frozen=True, slots=True)
class Reference:
    """Foreign-key target of a column."""

    table: str
    column: str
    # "parent:child" notation carried from source syntax (Mermaid lines)
    cardinality: str | None = None


@dataclass(frozen=True, slots=True)
class Column:
    name: str
    # Type string as declared (sqlglot-rendered for SQL input)
    type: str
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_unique: bool = False
    # Absence of an explicit NOT NULL means nullable
    is_nullable: bool = True
    references: Reference | None = None
    # Lineage, only set on view columns
    source_table: str | None = None
    source_column: str | None = None


@dataclass(frozen=True, slots=True)
class Table:
    name: str
    columns: tuple[Column, ...] = ()
    position: Position = ORIGIN
    color: str = ""
    category: str = DEFAULT_CATEGORY
    is_view: bool = False

    def column(self, name: str) -> Column | None:
        """Case-insensitive column lookup."""
        key = name.lower()
        for col in self.columns:
            if col.name.lower() == key:
                return col
        return None

    @property
    def primary_key(self) -> tuple[Column, ...]:
        return tuple(col for col in self.columns if col.is_primary_key)


@dataclass(frozen=True, slots=True)
class DatabaseSchema:
    format: SchemaFormat
    name: str = DEFAULT_SCHEMA_NAME
    tables: tuple[Table, ...] = ()
    # sqlglot dialect the DDL was read in; None for Mermaid input
    dialect: str | None = None

    def table(self, name: str) -> Table | None:
        """Case-insensitive table lookup."""
        key = name.lower()
        for table in self.tables:
            if table.name.lower() == key:
                return table
        return None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict in the shape the rendering layer consumes."""
        data: dict[str, Any] = {
            "format": self.format,
            "name": self.name,
            "tables": [_table_to_dict(t) for t in self.tables],
        }
        if self.dialect is not None:
            data["dialect"] = self.dialect
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DatabaseSchema:
        return cls(
            format=data.get("format", "sql"),
            name=data.get("name", DEFAULT_SCHEMA_NAME),
            tables=tuple(_table_from_dict(t) for t in data.get("tables", [])),
            dialect=data.get("dialect"),
        )


# ============================================================================
# Derived values -- never stored on the schema
# ============================================================================


@dataclass(frozen=True, slots=True)
class Relationship:
    """A foreign-key edge, recomputed from column state on demand."""

    from_table: str
    fk_column: str
    to_table: str
    pk_column: str
    cardinality: str


@dataclass(frozen=True, slots=True)
class ParsedCardinality:
    left: str
    right: str
    left_is_many: bool
    right_is_many: bool


@dataclass(frozen=True, slots=True)
class ColumnFacts:
    """Column-level facts fed to the cardinality engine.

    None means the fact is unknown.
    """

    is_primary_key: bool | None = None
    is_unique: bool | None = None
    is_nullable: bool | None = None


# ============================================================================
# Raw parser output -- mutable, unresolved names
# ============================================================================


@dataclass(slots=True)
class RawReference:
    table: str
    # None targets the referenced table's primary key
    column: str | None = None
    cardinality: str | None = None


@dataclass(slots=True)
class RawColumn:
    name: str
    type: str
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_unique: bool = False
    is_nullable: bool = True
    references: RawReference | None = None
    source_table: str | None = None
    source_column: str | None = None


@dataclass(slots=True)
class RawTable:
    name: str
    columns: list[RawColumn] = field(default_factory=list)
    is_view: bool = False
    # Explicit category; None lets the normalizer classify by name
    category: str | None = None

    def column(self, name: str) -> RawColumn | None:
        key = name.lower()
        for col in self.columns:
            if col.name.lower() == key:
                return col
        return None

    @property
    def primary_key(self) -> list[RawColumn]:
        return [col for col in self.columns if col.is_primary_key]


# ============================================================================
# dict conversion
# ============================================================================


def _table_to_dict(table: Table) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": table.name,
        "columns": [_column_to_dict(c) for c in table.columns],
        "position": list(table.position),
        "color": table.color,
        "category": table.category,
    }
    if table.is_view:
        data["isView"] = True
    return data


def _column_to_dict(col: Column) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": col.name,
        "type": col.type,
        "isPrimaryKey": col.is_primary_key,
        "isForeignKey": col.is_foreign_key,
        "isUnique": col.is_unique,
        "isNullable": col.is_nullable,
    }
    if col.references is not None:
        ref: dict[str, Any] = {
            "table": col.references.table,
            "column": col.references.column,
        }
        if col.references.cardinality:
            ref["cardinality"] = col.references.cardinality
        data["references"] = ref
    if col.source_table is not None:
        data["sourceTable"] = col.source_table
    if col.source_column is not None:
        data["sourceColumn"] = col.source_column
    return data


def _table_from_dict(data: dict[str, Any]) -> Table:
    x, y, z = (data.get("position") or ORIGIN)[:3]
    return Table(
        name=data["name"],
        columns=tuple(_column_from_dict(c) for c in data.get("columns", [])),
        position=(float(x), float(y), float(z)),
        color=data.get("color", ""),
        category=data.get("category", DEFAULT_CATEGORY),
        is_view=bool(data.get("isView", False)),
    )


def _column_from_dict(data: dict[str, Any]) -> Column:
    ref_data = data.get("references")
    references = None
    if ref_data:
        references = Reference(
            table=ref_data["table"],
            column=ref_data["column"],
            cardinality=ref_data.get("cardinality"),
        )
    return Column(
        name=data["name"],
        type=data.get("type", ""),
        is_primary_key=bool(data.get("isPrimaryKey", False)),
        is_foreign_key=bool(data.get("isForeignKey", False)),
        is_unique=bool(data.get("isUnique", False)),
        is_nullable=bool(data.get("isNullable", True)),
        references=references,
        source_table=data.get("sourceTable"),
        source_column=data.get("sourceColumn"),
    )
