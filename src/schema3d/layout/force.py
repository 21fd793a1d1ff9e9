from __future__ import annotations

import logging
import math
from typing import Any

from ..types import Position, Table, ViewMode
from .graph import SchemaGraph

logger = logging.getLogger(__name__)

# ============================================================================
# Force-directed layout
#
# Tables repel each other as point masses (heavier with more columns) and
# foreign keys pull their two tables together like springs. The simulation
# starts from a fixed placement and iterates a bounded number of steps:
#   2D: evenly spaced circle on the x/z plane
#   3D: golden-angle spiral on a sphere
# ============================================================================

GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))
# Keeps coincident points from dividing by zero
SOFTENING = 0.01
CENTER_FORCE_CAP = 20.0


def force_directed_positions(
    tables: tuple[Table, ...] | list[Table],
    graph: SchemaGraph,
    view_mode: ViewMode,
    opts: dict[str, Any],
) -> list[Position]:
    n = len(tables)
    radius = max(opts["initial_radius"], math.sqrt(n) * 2)
    pos = [list(p) for p in initial_positions(n, view_mode, radius)]
    mass = [1 + len(t.columns) * 0.1 for t in tables]
    pairs = graph.pairs

    iteration = 0
    for iteration in range(1, opts["iterations"] + 1):
        force = [[0.0, 0.0, 0.0] for _ in range(n)]

        # Repulsion between every pair
        for i in range(n):
            for j in range(n):
                if i == j:
                    continue
                dx, dy, dz, dist = _delta(pos[i], pos[j])
                push = opts["repulsion"] / (dist * dist)
                force[i][0] -= dx / dist * push
                force[i][1] -= dy / dist * push
                force[i][2] -= dz / dist * push

        # Weak pull towards the centre of mass
        if opts["center_force"] > 0:
            center = [sum(p[k] for p in pos) / n for k in range(3)]
            for i in range(n):
                dx, dy, dz, dist = _delta(pos[i], center)
                pull = opts["center_force"] * min(dist, CENTER_FORCE_CAP)
                force[i][0] += dx / dist * pull
                force[i][1] += dy / dist * pull
                force[i][2] += dz / dist * pull

        # Springs along foreign keys
        for child, parent in pairs:
            dx, dy, dz, dist = _delta(pos[child], pos[parent])
            stretch = (dist - opts["spring_length"]) * opts["spring_strength"]
            fx, fy, fz = dx / dist * stretch, dy / dist * stretch, dz / dist * stretch
            force[child][0] += fx / mass[child]
            force[child][1] += fy / mass[child]
            force[child][2] += fz / mass[child]
            force[parent][0] -= fx / mass[parent]
            force[parent][1] -= fy / mass[parent]
            force[parent][2] -= fz / mass[parent]

        movement = 0.0
        for i in range(n):
            step = [f * opts["damping"] for f in force[i]]
            length = math.sqrt(sum(s * s for s in step))
            if length > opts["max_step"]:
                step = [s * opts["max_step"] / length for s in step]
                length = opts["max_step"]
            if view_mode == "2D":
                step[1] = 0.0
            for k in range(3):
                pos[i][k] += step[k]
            movement = max(movement, length)

        if movement < opts["convergence_threshold"]:
            break

    logger.debug("Force layout of %d tables stopped after %d iterations", n, iteration)
    return [(p[0], p[1], p[2]) for p in pos]


def initial_positions(n: int, view_mode: ViewMode, radius: float) -> list[Position]:
    if n == 1:
        return [(0.0, 0.0, 0.0)]

    positions: list[Position] = []
    for i in range(n):
        if view_mode == "3D":
            theta = GOLDEN_ANGLE * i
            y = 1 - (i / (n - 1)) * 2
            ring = math.sqrt(max(0.0, 1 - y * y))
            positions.append(
                (math.cos(theta) * ring * radius, y * radius, math.sin(theta) * ring * radius)
            )
        else:
            angle = i / n * math.pi * 2
            positions.append((math.cos(angle) * radius, 0.0, math.sin(angle) * radius))
    return positions


def _delta(a: list[float], b: list[float]) -> tuple[float, float, float, float]:
    dx, dy, dz = b[0] - a[0], b[1] - a[1], b[2] - a[2]
    return dx, dy, dz, math.sqrt(dx * dx + dy * dy + dz * dz) + SOFTENING
