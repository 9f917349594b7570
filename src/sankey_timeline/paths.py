"""Path builder: turns resolved node positions into link geometry.

Three shapes are produced:
  - ordinary links: one cubic bezier from the source's right edge to the
    target's left edge (an S-curve),
  - self-loops: one short cubic bezier leaving and re-entering the node's
    right edge, bulging towards the link's arc side,
  - circular links: straight segments joined by quarter arcs that leave the
    source, climb (top) or drop (bottom) past the other nodes, run
    horizontally and come back into the target.

Every descriptor can render itself as an SVG path ``d`` string.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from sankey_timeline.config import LayoutConfig
from sankey_timeline.geometry import CubicBezier, Point
from sankey_timeline.graph import CircularLinkType


def _fmt(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _pt(p: Point) -> str:
    return f"{_fmt(p.x)},{_fmt(p.y)}"


# ─── Path Descriptors ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BezierPath:
    """A single cubic bezier."""

    curve: CubicBezier

    @property
    def start(self) -> Point:
        return self.curve.p0

    @property
    def end(self) -> Point:
        return self.curve.p3

    def to_svg(self) -> str:
        c = self.curve
        return f"M{_pt(c.p0)}C{_pt(c.p1)} {_pt(c.p2)} {_pt(c.p3)}"


@dataclass(frozen=True)
class LineSegment:
    start: Point
    end: Point

    def to_svg(self) -> str:
        return f"L{_pt(self.end)}"


@dataclass(frozen=True)
class ArcSegment:
    """A quarter circle of ``radius`` from ``start`` to ``end``.

    ``sweep`` follows the SVG arc flag: 1 is clockwise on screen (y down),
    0 counter-clockwise.
    """

    start: Point
    end: Point
    radius: float
    sweep: int

    def to_svg(self) -> str:
        r = _fmt(self.radius)
        return f"A{r} {r} 0 0 {self.sweep} {_pt(self.end)}"


Segment = Union[LineSegment, ArcSegment]


@dataclass(frozen=True)
class CircularPath:
    """An ordered run of line and arc segments."""

    segments: tuple[Segment, ...]

    @property
    def start(self) -> Point:
        return self.segments[0].start

    @property
    def end(self) -> Point:
        return self.segments[-1].end

    def to_svg(self) -> str:
        return f"M{_pt(self.start)}" + "".join(seg.to_svg() for seg in self.segments)


PathDescriptor = Union[BezierPath, CircularPath]


# ─── Stacking ─────────────────────────────────────────────────────────────────


def stack_anchors(bottom: float, links: Iterable[tuple[int, float, bool]]) -> dict[int, float]:
    """Vertical centre of each link where it meets a node.

    ``links`` holds ``(link_id, width, is_circular)`` in insertion order.
    Stacking starts at the node's bottom edge and climbs; a circular link
    pulls the running offset back down by its width instead.
    """
    anchors: dict[int, float] = {}
    offset = 0.0
    for link_id, width, is_circular in links:
        anchors[link_id] = bottom - offset - width / 2
        offset += -width if is_circular else width
    return anchors


# ─── Builders ─────────────────────────────────────────────────────────────────


def link_curve(source: Point, target: Point, curve_width: float) -> BezierPath:
    """S-curve between two anchors with horizontal tangents at both ends."""
    return BezierPath(
        CubicBezier(
            source,
            source.offset(dx=curve_width),
            target.offset(dx=-curve_width),
            target,
        )
    )


def self_loop_curve(
    source: Point,
    target_y: float,
    side: CircularLinkType | None,
    curve_width: float,
    curve_height: float,
) -> BezierPath:
    """Loop that leaves the node's right edge at ``source`` and returns to ``target_y``."""
    bulge = curve_height if side is CircularLinkType.BOTTOM else -curve_height
    target = Point(source.x, target_y)
    return BezierPath(
        CubicBezier(
            source,
            Point(source.x + curve_width, source.y + bulge),
            Point(target.x + curve_width, target.y + bulge),
            target,
        )
    )


def circular_radius(link_id: int, config: LayoutConfig) -> float:
    """Arc radius; later links get wider arcs so they nest around earlier ones."""
    return config.circular_base_radius + link_id * config.circular_link_gap


def circular_path(
    source: Point,
    target: Point,
    side: CircularLinkType,
    channel_y: float,
    radius: float,
    curve_width: float,
) -> CircularPath:
    """Route a cycle-closing link around the diagram.

    ``channel_y`` is the height of the horizontal run. It is pushed further
    out when needed so the vertical legs never have negative length. The
    run heads west when the target's leg lies left of the source's and east
    otherwise; the two arcs at either end of the run bend accordingly.
    """
    r = radius
    if side is CircularLinkType.TOP:
        channel_y = min(channel_y, min(source.y, target.y) - 2 * r)
        sign = -1.0
        sweep = 0
    else:
        channel_y = max(channel_y, max(source.y, target.y) + 2 * r)
        sign = 1.0
        sweep = 1

    source_turn = Point(source.x + curve_width, source.y)
    source_leg = source_turn.x + r
    target_turn = Point(target.x - curve_width, target.y)
    target_leg = target_turn.x - r

    heading = 1.0 if target_leg > source_leg else -1.0
    # An eastward run turns the other way at the top of each leg.
    run_sweep = sweep if heading < 0 else 1 - sweep

    points = [
        source,
        source_turn,
        Point(source_leg, source.y + sign * r),
        Point(source_leg, channel_y - sign * r),
        Point(source_leg + heading * r, channel_y),
        Point(target_leg - heading * r, channel_y),
        Point(target_leg, channel_y - sign * r),
        Point(target_leg, target.y + sign * r),
        target_turn,
        target,
    ]
    segments: list[Segment] = []
    for i in range(len(points) - 1):
        start, end = points[i], points[i + 1]
        if i in (1, 7):
            segments.append(ArcSegment(start, end, r, sweep))
        elif i in (3, 5):
            segments.append(ArcSegment(start, end, r, run_sweep))
        else:
            segments.append(LineSegment(start, end))
    return CircularPath(tuple(segments))
