from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .formats import SCHEMA_FORMATS, parse_schema, schema_to_format
from .layout import LAYOUT_TYPES, VIEW_MODES, apply_layout_to_schema
from .relationships import derive_relationships
from .types import DEFAULT_SCHEMA_NAME

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schema3d",
        description="Parse SQL DDL or Mermaid ER diagrams and lay out their tables",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parse_parser = subparsers.add_parser("parse", help="Print the laid-out schema as JSON")
    _add_input_arguments(parse_parser)
    parse_parser.add_argument(
        "--layout",
        choices=LAYOUT_TYPES,
        default="force",
        help="Layout algorithm (default: force)",
    )
    parse_parser.add_argument(
        "--view",
        choices=VIEW_MODES,
        default="3D",
        help="View mode (default: 3D)",
    )

    convert_parser = subparsers.add_parser("convert", help="Re-serialise a schema")
    _add_input_arguments(convert_parser)
    convert_parser.add_argument(
        "--to",
        choices=SCHEMA_FORMATS,
        required=True,
        help="Output format",
    )

    rel_parser = subparsers.add_parser("relationships", help="List foreign-key relationships")
    _add_input_arguments(rel_parser)

    return parser


def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("file", type=Path, help="Schema file, or - for stdin")
    parser.add_argument(
        "--format",
        choices=SCHEMA_FORMATS,
        default=None,
        help="Input format (default: detect from content)",
    )


def main(argv: list[str] | None = None) -> int:
    """Run the schema3d CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    try:
        text = sys.stdin.read() if str(args.file) == "-" else args.file.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Cannot read %s: %s", args.file, e)
        return 1

    schema = parse_schema(text, args.format, name=_schema_name(args.file))
    if schema is None:
        logger.error("No tables found in %s", args.file)
        return 1

    if args.command == "parse":
        schema = apply_layout_to_schema(schema, args.layout, args.view)
        print(json.dumps(schema.to_dict(), indent=2))
    elif args.command == "convert":
        print(schema_to_format(schema, args.to), end="")
    elif args.command == "relationships":
        for rel in derive_relationships(schema):
            print(f"{rel.from_table}.{rel.fk_column} -> {rel.to_table}.{rel.pk_column} ({rel.cardinality})")
    return 0


def _schema_name(path: Path) -> str:
    if str(path) == "-":
        return DEFAULT_SCHEMA_NAME
    return path.stem.replace("_", " ").replace("-", " ").title()


if __name__ == "__main__":
    sys.exit(main())
