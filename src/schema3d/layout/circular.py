from __future__ import annotations

import math
from typing import Any

from ..types import Position, Table, ViewMode

# ============================================================================
# Circular layout
#
# Tables in declaration order, evenly spaced around a circle on the x/z plane
# whose radius grows with the table count. In 3D each table also rises by a
# fixed helical step.
# ============================================================================


def circular_positions(
    tables: tuple[Table, ...] | list[Table],
    view_mode: ViewMode,
    opts: dict[str, Any],
) -> list[Position]:
    n = len(tables)
    if n == 1:
        return [(0.0, 0.0, 0.0)]

    radius = max(opts["min_radius"], n * opts["radius_per_table"])
    helix = opts["helix_step"] if view_mode == "3D" else 0.0

    positions: list[Position] = []
    for i in range(n):
        angle = i / n * math.pi * 2
        positions.append(
            (math.cos(angle) * radius, (i - (n - 1) / 2) * helix, math.sin(angle) * radius)
        )
    return positions
