from __future__ import annotations

import math
from typing import Any

from ..types import Position, Table, ViewMode
from .graph import SchemaGraph

# ============================================================================
# Hierarchical layout
#
# Layer 0 holds tables that reference no other table; every other table sits
# one layer below the deepest table it references. Layers are stacked along
# z. Within a layer, tables are spread along x (2D) or over an x/y grid (3D).
# ============================================================================


def hierarchical_positions(
    tables: tuple[Table, ...] | list[Table],
    graph: SchemaGraph,
    view_mode: ViewMode,
    opts: dict[str, Any],
) -> list[Position]:
    layers = assign_layers(graph, len(tables))

    members: dict[int, list[int]] = {}
    for i in range(len(tables)):
        members.setdefault(layers[i], []).append(i)

    positions: list[Position] = [(0.0, 0.0, 0.0)] * len(tables)
    for layer, indices in members.items():
        z = layer * opts["layer_spacing"]
        count = len(indices)
        if view_mode == "3D":
            cols = math.ceil(math.sqrt(count))
            rows = math.ceil(count / cols)
            for slot, i in enumerate(indices):
                row, col = divmod(slot, cols)
                x = (col - (cols - 1) / 2) * opts["node_spacing"]
                y = (row - (rows - 1) / 2) * opts["node_spacing"]
                positions[i] = (x, y, z)
        else:
            for slot, i in enumerate(indices):
                x = (slot - (count - 1) / 2) * opts["node_spacing"]
                positions[i] = (x, 0.0, z)
    return positions


def assign_layers(graph: SchemaGraph, n: int) -> list[int]:
    """Layer per table index: 1 + the deepest referenced table's layer.

    Tables are visited in declaration order and parents in edge order; an
    edge back to a table still being visited closes a cycle and is ignored.
    """
    layers: dict[int, int] = {}
    on_path: set[int] = set()
    max_layer = max(n - 1, 0)

    for root in range(n):
        if root in layers:
            continue
        stack = [(root, iter(graph.parents(root)))]
        on_path.add(root)
        while stack:
            node, pending = stack[-1]
            nxt = next((p for p in pending if p not in layers and p not in on_path), None)
            if nxt is not None:
                on_path.add(nxt)
                stack.append((nxt, iter(graph.parents(nxt))))
                continue

            stack.pop()
            on_path.discard(node)
            done = [layers[p] for p in graph.parents(node) if p in layers]
            layers[node] = min(1 + max(done), max_layer) if done else 0

    return [layers[i] for i in range(n)]
