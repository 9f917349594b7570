"""Layout constants and the LayoutConfig bundle.

All sizes are in pixels. The module-level constants are the defaults used
by ``LayoutConfig``; callers tune a layout by passing their own config to
``SankeyTimeline`` or ``SankeyTimeline.calculate_layout``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from sankey_timeline.errors import ConfigError

# ─── Defaults ─────────────────────────────────────────────────────────────────

DEFAULT_RANGE: tuple[float, float] = (0.0, 1000.0)

MAX_NODE_HEIGHT: float = 50.0  # height of a node row slot
MIN_NODE_HEIGHT: float = 4.0  # floor for dynamically sized nodes
ROW_PADDING: float = 20.0  # vertical gap between adjacent rows

BASE_LINK_WIDTH: float = 1.0  # width used when no link carries flow
MAX_LINK_WIDTH: float = 25.0  # width of the link carrying the largest flow

CURVE_WIDTH: float = 25.0  # horizontal control-point offset for link curves
CURVE_HEIGHT: float = 20.0  # vertical bulge of self-loop curves

CIRCULAR_BASE_RADIUS: float = 10.0  # arc radius of the first circular link
CIRCULAR_LINK_GAP: float = 2.0  # radius growth per link id
CIRCULAR_CLEARANCE: float = 15.0  # distance kept between arcs and nodes

INTERSECTION_TOLERANCE: float = 0.5  # bezier subdivision stops below this size
SHIFT_PADDING: float = 2.0  # extra room left after moving a node off a link

_NON_NEGATIVE_FIELDS = (
    "max_node_height",
    "min_node_height",
    "row_padding",
    "base_link_width",
    "max_link_width",
    "curve_width",
    "curve_height",
    "circular_base_radius",
    "circular_link_gap",
    "circular_clearance",
    "shift_padding",
)


@dataclass
class LayoutConfig:
    """Tunable parameters for the layout solver and path builder."""

    max_node_height: float = MAX_NODE_HEIGHT
    min_node_height: float = MIN_NODE_HEIGHT
    row_padding: float = ROW_PADDING
    dynamic_node_height: bool = False

    base_link_width: float = BASE_LINK_WIDTH
    max_link_width: float = MAX_LINK_WIDTH

    curve_width: float = CURVE_WIDTH
    curve_height: float = CURVE_HEIGHT

    circular_base_radius: float = CIRCULAR_BASE_RADIUS
    circular_link_gap: float = CIRCULAR_LINK_GAP
    circular_clearance: float = CIRCULAR_CLEARANCE

    intersection_tolerance: float = INTERSECTION_TOLERANCE
    shift_padding: float = SHIFT_PADDING
    overlap_passes: int = 1

    # Drawing height; None leaves y positions unscaled.
    height: float | None = None

    @property
    def row_height(self) -> float:
        """Distance between the tops of two consecutive rows."""
        return self.max_node_height + self.row_padding

    def validate(self) -> LayoutConfig:
        """Check every field and return self; raise ConfigError otherwise."""
        for name in _NON_NEGATIVE_FIELDS:
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ConfigError(f"{name} must be a finite non-negative number, got {value!r}")
        if self.min_node_height > self.max_node_height:
            raise ConfigError("min_node_height must not exceed max_node_height")
        if not math.isfinite(self.intersection_tolerance) or self.intersection_tolerance <= 0:
            raise ConfigError("intersection_tolerance must be positive")
        if self.overlap_passes < 0:
            raise ConfigError("overlap_passes must not be negative")
        if self.height is not None and (not math.isfinite(self.height) or self.height <= 0):
            raise ConfigError(f"height must be positive when set, got {self.height!r}")
        return self
