"""schema3d: parse database schemas and lay out their tables in 2D/3D space."""

from __future__ import annotations

from .types import (
    Column,
    ColumnFacts,
    DatabaseSchema,
    ParsedCardinality,
    Reference,
    Relationship,
    Table,
)
from .cardinality import calculate_cardinality, parse_cardinality
from .comparator import are_schemas_equal
from .formats import (
    ParserResult,
    detect_format,
    parse_schema,
    schema_to_format,
    validate_and_parse,
)
from .normalizer import normalize, recolor_schema, with_table_category
from .relationships import derive_relationships, derive_view_lineage
from .layout import LayoutOptions, apply_layout_to_schema, apply_layout_to_subset
from .blocks import ValidationBlock, identify_valid_blocks
from .cache import SchemaCache
from .mermaid import parse_mermaid_schema, schema_to_mermaid
from .sql import parse_sql_schema, schema_to_sql

__all__ = [
    "parse_schema",
    "parse_sql_schema",
    "parse_mermaid_schema",
    "detect_format",
    "validate_and_parse",
    "identify_valid_blocks",
    "schema_to_format",
    "schema_to_sql",
    "schema_to_mermaid",
    "normalize",
    "recolor_schema",
    "with_table_category",
    "derive_relationships",
    "derive_view_lineage",
    "calculate_cardinality",
    "parse_cardinality",
    "apply_layout_to_schema",
    "apply_layout_to_subset",
    "are_schemas_equal",
    "SchemaCache",
    "LayoutOptions",
    "ParserResult",
    "ValidationBlock",
    "Column",
    "ColumnFacts",
    "DatabaseSchema",
    "ParsedCardinality",
    "Reference",
    "Relationship",
    "Table",
]
