"""Layout engine for Sankey diagrams drawn along a time axis."""

from sankey_timeline.config import LayoutConfig
from sankey_timeline.errors import ConfigError, InvalidFlowError, SankeyTimelineError, UnknownReferenceError
from sankey_timeline.graph import (
    CircularLinkType,
    TimelineGraph,
    TimelineLink,
    TimelineNode,
    TimeSpec,
    has_distribution,
    key_times,
)
from sankey_timeline.layout import LinearScale, LinkLayout, NodeLayout, TimelineLayout
from sankey_timeline.paths import ArcSegment, BezierPath, CircularPath, LineSegment
from sankey_timeline.timeline import SankeyTimeline

__all__ = [
    "ArcSegment",
    "BezierPath",
    "CircularLinkType",
    "CircularPath",
    "ConfigError",
    "InvalidFlowError",
    "LayoutConfig",
    "LineSegment",
    "LinearScale",
    "LinkLayout",
    "NodeLayout",
    "SankeyTimeline",
    "SankeyTimelineError",
    "TimeSpec",
    "TimelineGraph",
    "TimelineLayout",
    "TimelineLink",
    "TimelineNode",
    "UnknownReferenceError",
    "has_distribution",
    "key_times",
]
