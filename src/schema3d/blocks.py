from __future__ import annotations

from dataclasses import dataclass

from .mermaid.parser import ATTRIBUTE_RE, ENTITY_BLOCK_RE, HEADER_RE, parse_relationship_line
from .sql.parser import is_schema_statement, parse_statement, sniff_dialect, statement_spans
from .types import SchemaFormat

# ============================================================================
# Editor validation blocks
#
# Splits schema text into contiguous ranges that cover it entirely, marking
# the ranges that hold a recognised statement or diagram element as valid.
# Used for live highlighting; does not build a schema.
# ============================================================================


@dataclass(frozen=True, slots=True)
class ValidationBlock:
    start: int
    end: int
    is_valid: bool


def identify_valid_blocks(
    text: str, format: SchemaFormat | None = None
) -> list[ValidationBlock]:
    """Validation blocks for `text`; without a format the better fit wins."""
    if format == "sql":
        return _cover(text, sql_valid_ranges(text))
    if format == "mermaid":
        return _cover(text, mermaid_valid_ranges(text))
    if format is not None:
        raise ValueError(f"Unknown schema format {format!r}")

    sql_blocks = _cover(text, sql_valid_ranges(text))
    mermaid_blocks = _cover(text, mermaid_valid_ranges(text))
    sql_valid = sum(1 for b in sql_blocks if b.is_valid)
    mermaid_valid = sum(1 for b in mermaid_blocks if b.is_valid)
    return mermaid_blocks if mermaid_valid > sql_valid else sql_blocks


def sql_valid_ranges(text: str) -> list[tuple[int, int]]:
    dialect = sniff_dialect(text)
    ranges: list[tuple[int, int]] = []
    for start, end in statement_spans(text, dialect):
        if not is_schema_statement(parse_statement(text[start:end], dialect)):
            continue
        # Include the terminating semicolon
        stop = end
        while stop < len(text) and text[stop] in " \t\r\n":
            stop += 1
        ranges.append((start, stop + 1 if stop < len(text) and text[stop] == ";" else end))
    return ranges


def mermaid_valid_ranges(text: str) -> list[tuple[int, int]]:
    ranges: list[tuple[int, int]] = []
    block_start: int | None = None
    pos = 0

    for line in text.split("\n"):
        line_start = pos
        pos += len(line) + 1
        stripped = line.strip()
        if not stripped:
            continue
        start = line_start + line.index(stripped)
        end = start + len(stripped)

        if block_start is not None:
            if stripped == "}":
                ranges.append((block_start, end))
                block_start = None
            elif ATTRIBUTE_RE.match(stripped) or stripped.startswith("%%"):
                ranges.append((start, end))
            continue

        if (
            HEADER_RE.match(stripped)
            or stripped.startswith("%%")
            or parse_relationship_line(stripped) is not None
        ):
            ranges.append((start, end))
        elif ENTITY_BLOCK_RE.match(stripped):
            block_start = start
            ranges.append((start, end))

    return ranges


def _cover(text: str, ranges: list[tuple[int, int]]) -> list[ValidationBlock]:
    """Merge valid ranges and fill the gaps with invalid blocks."""
    merged: list[list[int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])

    blocks: list[ValidationBlock] = []
    cursor = 0
    for start, end in merged:
        if cursor < start:
            blocks.append(ValidationBlock(cursor, start, False))
        blocks.append(ValidationBlock(start, end, True))
        cursor = end
    if cursor < len(text):
        blocks.append(ValidationBlock(cursor, len(text), False))
    return blocks
