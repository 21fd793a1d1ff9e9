from __future__ import annotations

from .engine import (
    LAYOUT_TYPES,
    VIEW_MODES,
    apply_layout_to_schema,
    apply_layout_to_subset,
    compute_positions,
)
from .geometry import center_of_mass, recenter
from .hierarchical import assign_layers
from .options import LAYOUT_DEFAULTS, LayoutOptions

__all__ = [
    "LAYOUT_DEFAULTS",
    "LAYOUT_TYPES",
    "LayoutOptions",
    "VIEW_MODES",
    "apply_layout_to_schema",
    "apply_layout_to_subset",
    "assign_layers",
    "center_of_mass",
    "compute_positions",
    "recenter",
]
