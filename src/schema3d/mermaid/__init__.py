from __future__ import annotations

from .parser import (
    ErLine,
    decode_token,
    parse_mermaid_schema,
    parse_relationship_line,
    preprocess_lines,
)
from .writer import schema_to_mermaid

__all__ = [
    "ErLine",
    "decode_token",
    "parse_mermaid_schema",
    "parse_relationship_line",
    "preprocess_lines",
    "schema_to_mermaid",
]
