from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import get_args

from ..types import DatabaseSchema, LayoutType, Position, Table, ViewMode
from .circular import circular_positions
from .force import force_directed_positions
from .geometry import finalize_positions
from .graph import build_schema_graph
from .hierarchical import hierarchical_positions
from .options import LayoutOptions, merge_options

logger = logging.getLogger(__name__)

LAYOUT_TYPES: tuple[str, ...] = get_args(LayoutType)
VIEW_MODES: tuple[str, ...] = get_args(ViewMode)


def apply_layout_to_schema(
    schema: DatabaseSchema,
    layout: LayoutType,
    view_mode: ViewMode = "2D",
    options: LayoutOptions | None = None,
) -> DatabaseSchema:
    """Return a copy of the schema with every table positioned.

    Raises ValueError for an unknown layout or view mode.
    """
    _check_arguments(layout, view_mode)
    if not schema.tables:
        return schema

    positions = compute_positions(schema.tables, layout, view_mode, options)
    return replace(
        schema,
        tables=tuple(
            replace(table, position=pos) for table, pos in zip(schema.tables, positions)
        ),
    )


def apply_layout_to_subset(
    schema: DatabaseSchema,
    visible: Iterable[str],
    layout: LayoutType,
    view_mode: ViewMode = "2D",
    options: LayoutOptions | None = None,
) -> DatabaseSchema:
    """Lay out only the named tables; the rest keep their current positions."""
    _check_arguments(layout, view_mode)
    names = {name.lower() for name in visible}
    indices = [i for i, t in enumerate(schema.tables) if t.name.lower() in names]
    if not indices:
        return schema

    subset = [schema.tables[i] for i in indices]
    positions = dict(zip(indices, compute_positions(subset, layout, view_mode, options)))
    return replace(
        schema,
        tables=tuple(
            replace(table, position=positions[i]) if i in positions else table
            for i, table in enumerate(schema.tables)
        ),
    )


def compute_positions(
    tables: tuple[Table, ...] | list[Table],
    layout: LayoutType,
    view_mode: ViewMode,
    options: LayoutOptions | None = None,
) -> list[Position]:
    opts = merge_options(options, view_mode)
    graph = build_schema_graph(tables)

    if layout == "force":
        raw = force_directed_positions(tables, graph, view_mode, opts)
    elif layout == "hierarchical":
        raw = hierarchical_positions(tables, graph, view_mode, opts)
    else:
        raw = circular_positions(tables, view_mode, opts)

    logger.debug(
        "%s layout (%s): %d tables, %d edges, %d components",
        layout,
        view_mode,
        len(tables),
        len(graph.edges),
        len(graph.graph.C),
    )
    return finalize_positions(raw, view_mode)


def _check_arguments(layout: str, view_mode: str) -> None:
    if layout not in LAYOUT_TYPES:
        raise ValueError(
            f"Unknown layout {layout!r}; expected one of {', '.join(LAYOUT_TYPES)}"
        )
    if view_mode not in VIEW_MODES:
        raise ValueError(
            f"Unknown view mode {view_mode!r}; expected one of {', '.join(VIEW_MODES)}"
        )
