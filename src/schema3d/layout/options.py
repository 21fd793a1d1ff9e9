from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from ..types import ViewMode

# ============================================================================
# Layout tunables
#
# LayoutOptions fields left as None fall back to LAYOUT_DEFAULTS for the
# requested view mode.
# ============================================================================

LAYOUT_DEFAULTS: dict[str, dict[str, Any]] = {
    "2D": {
        "iterations": 150,
        "convergence_threshold": 1e-3,
        "max_step": 2.0,
        "spring_length": 3.0,
        "spring_strength": 0.08,
        "repulsion": 12.0,
        "damping": 0.85,
        "center_force": 0.0,
        "initial_radius": 8.0,
        "layer_spacing": 12.0,
        "node_spacing": 5.0,
        "min_radius": 6.0,
        "radius_per_table": 0.8,
        "helix_step": 0.0,
    },
    "3D": {
        "iterations": 150,
        "convergence_threshold": 1e-3,
        "max_step": 2.0,
        "spring_length": 4.0,
        "spring_strength": 0.08,
        "repulsion": 15.0,
        "damping": 0.85,
        "center_force": 0.01,
        "initial_radius": 8.0,
        "layer_spacing": 12.0,
        "node_spacing": 6.0,
        "min_radius": 6.0,
        "radius_per_table": 0.8,
        "helix_step": 1.5,
    },
}


@dataclass(slots=True)
class LayoutOptions:
    # Force-directed
    iterations: int | None = None
    convergence_threshold: float | None = None
    max_step: float | None = None
    spring_length: float | None = None
    spring_strength: float | None = None
    repulsion: float | None = None
    damping: float | None = None
    center_force: float | None = None
    initial_radius: float | None = None
    # Hierarchical
    layer_spacing: float | None = None
    node_spacing: float | None = None
    # Circular
    min_radius: float | None = None
    radius_per_table: float | None = None
    helix_step: float | None = None


def merge_options(options: LayoutOptions | None, view_mode: ViewMode) -> dict[str, Any]:
    opts = dict(LAYOUT_DEFAULTS[view_mode])
    if options:
        for f in fields(options):
            value = getattr(options, f.name)
            if value is not None:
                opts[f.name] = value
    return opts
