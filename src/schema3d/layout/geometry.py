from __future__ import annotations

import math

from ..types import ORIGIN, Position, ViewMode

# ============================================================================
# Shared position utilities
# ============================================================================

# Positions closer than this are considered the same spot
COLLISION_EPSILON = 1e-6
NUDGE_DISTANCE = 1.0


def center_of_mass(positions: list[Position]) -> Position:
    if not positions:
        return ORIGIN
    n = len(positions)
    return (
        sum(p[0] for p in positions) / n,
        sum(p[1] for p in positions) / n,
        sum(p[2] for p in positions) / n,
    )


def recenter(positions: list[Position]) -> list[Position]:
    """Translate positions so their centre of mass sits at the origin."""
    cx, cy, cz = center_of_mass(positions)
    return [(x - cx, y - cy, z - cz) for x, y, z in positions]


def finalize_positions(positions: list[Position], view_mode: ViewMode) -> list[Position]:
    """Sanitize, flatten, de-duplicate and re-centre algorithm output."""
    result = [_finite(p) for p in positions]
    if view_mode == "2D":
        result = [(x, 0.0, z) for x, _, z in result]
    result = separate_duplicates(result, view_mode)
    result = recenter(result)
    if view_mode == "2D":
        # Exactly zero, not -0.0 or rounding residue
        result = [(x, 0.0, z) for x, _, z in result]
    return result


def separate_duplicates(positions: list[Position], view_mode: ViewMode) -> list[Position]:
    """Nudge later tables off positions already taken by earlier ones.

    The nudge direction depends only on the table index, so the result is
    deterministic. In 2D the nudge stays in the x/z plane.
    """
    result: list[Position] = []
    for i, pos in enumerate(positions):
        step = 0
        candidate = pos
        while any(_coincide(candidate, taken) for taken in result):
            step += 1
            angle = (i + step) * math.pi * (3 - math.sqrt(5))
            dx = math.cos(angle) * NUDGE_DISTANCE * step
            dz = math.sin(angle) * NUDGE_DISTANCE * step
            dy = 0.0 if view_mode == "2D" else NUDGE_DISTANCE * 0.5 * (step % 2)
            candidate = (pos[0] + dx, pos[1] + dy, pos[2] + dz)
        result.append(candidate)
    return result


def distance(a: Position, b: Position) -> float:
    return math.sqrt((a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2)


def _coincide(a: Position, b: Position) -> bool:
    return distance(a, b) < COLLISION_EPSILON


def _finite(pos: Position) -> Position:
    return tuple(v if math.isfinite(v) else 0.0 for v in pos)  # type: ignore[return-value]
