"""Layout module — positions a time-indexed flow graph.

Passes:
  1. Intrinsic placement  (x from time, height from size)
  2. Row assignment       (greedy lowest free row, creation order)
  3. Link routing         (link widths, stacked anchors, path geometry)
  4. Node/link overlap    (push nodes off link curves, then redo 2 and 3)

followed by normalisation of y so the topmost node sits at 0, optional
scaling into the drawing height, and a final routing pass against the
settled positions.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from functools import cached_property

from sankey_timeline.config import LayoutConfig
from sankey_timeline.geometry import Point, bezier_intersections, rectangle_edges
from sankey_timeline.graph import CircularLinkType, TimelineLink, TimelineNode, node_size
from sankey_timeline.paths import (
    BezierPath,
    PathDescriptor,
    circular_path,
    circular_radius,
    link_curve,
    self_loop_curve,
    stack_anchors,
)

logger = logging.getLogger(__name__)

# ─── Time Scale ───────────────────────────────────────────────────────────────


class LinearScale:
    """Maps a time domain linearly onto a pixel range.

    A degenerate domain (``d0 == d1``) maps every value to the range start;
    a degenerate range inverts every pixel to the domain start.
    """

    def __init__(self, domain: tuple[float, float], range: tuple[float, float]) -> None:
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range[0]), float(range[1]))

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return r0
        return r0 + (r1 - r0) * (value - d0) / (d1 - d0)

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if r1 == r0:
            return d0
        return d0 + (d1 - d0) * (pixel - r0) / (r1 - r0)


def time_bounds(nodes: Sequence[TimelineNode]) -> tuple[float, float]:
    """Smallest and largest key time over all nodes; ``(0, 0)`` when empty."""
    if not nodes:
        return (0.0, 0.0)
    return (min(n.start_time for n in nodes), max(n.end_time for n in nodes))


def link_width(flow: float, max_flow: float, config: LayoutConfig) -> float:
    """Stroke width proportional to ``flow / max_flow``, never NaN or infinite."""
    if max_flow <= 0:
        return config.base_link_width
    return flow / max_flow * config.max_link_width


# ─── Result Types ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NodeLayout:
    """A positioned node."""

    id: int
    label: str
    x: float
    x1: float
    y: float
    width: float
    height: float
    row: int
    size: float
    part_of_circuit: bool
    circular_link_type: CircularLinkType | None

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2


@dataclass(frozen=True)
class LinkLayout:
    """A routed link.

    ``y0``/``y1`` are the centres of the stroke where it leaves the source
    and enters the target.
    """

    id: int
    source: int
    target: int
    flow: float
    is_circular: bool
    circular_link_type: CircularLinkType | None
    width: float
    y0: float
    y1: float
    path: PathDescriptor

    @property
    def svg_path(self) -> str:
        return self.path.to_svg()


@dataclass(frozen=True)
class TimelineLayout:
    """Immutable result of one layout pass.

    ``shifts`` holds the vertical offset the node/link overlap pass applied
    to each node on top of its stored adjustment.
    """

    nodes: tuple[NodeLayout, ...]
    links: tuple[LinkLayout, ...]
    min_time: float
    max_time: float
    max_flow: float
    max_size: float
    range: tuple[float, float]
    shifts: Mapping[int, float] = field(default_factory=dict, compare=False)

    def node(self, node_id: int) -> NodeLayout:
        return self._nodes_by_id[node_id]

    def link(self, link_id: int) -> LinkLayout:
        return self._links_by_id[link_id]

    def source(self, link: LinkLayout) -> NodeLayout:
        return self.node(link.source)

    def target(self, link: LinkLayout) -> NodeLayout:
        return self.node(link.target)

    @cached_property
    def _nodes_by_id(self) -> dict[int, NodeLayout]:
        return {n.id: n for n in self.nodes}

    @cached_property
    def _links_by_id(self) -> dict[int, LinkLayout]:
        return {link.id: link for link in self.links}


# ─── Working State ────────────────────────────────────────────────────────────


@dataclass
class NodePlacement:
    """Mutable per-node state while the passes run.

    ``offset`` is added to the row's base y: the node's stored adjustment
    plus whatever the overlap pass has shifted it by.
    """

    id: int
    x: float
    x1: float
    width: float
    height: float
    incoming: list[int]
    outgoing: list[int]
    row: int = 0
    offset: float = 0.0
    y: float = 0.0

    def overlaps_in_time(self, other: NodePlacement) -> bool:
        """Inclusive overlap of the ``[x, x1]`` pixel intervals."""
        return self.x <= other.x1 and other.x <= self.x1


@dataclass
class LinkRoute:
    """Mutable per-link routing result."""

    id: int
    source: int
    target: int
    width: float
    y0: float
    y1: float
    path: PathDescriptor


# ─── Pass 1: Intrinsic Placement ──────────────────────────────────────────────


def place_nodes(
    nodes: Sequence[TimelineNode],
    sizes: Mapping[int, float],
    scale: LinearScale,
    config: LayoutConfig,
) -> list[NodePlacement]:
    """Map each node's key times onto x and size it; rows start at 0."""
    max_size = max(sizes.values(), default=0)
    placements: list[NodePlacement] = []
    for node in nodes:
        start, end = node.key_times
        x = scale(start)
        width = max(0.0, scale(end) - x)
        height = config.max_node_height
        if config.dynamic_node_height and max_size > 0:
            height = max(config.min_node_height, config.max_node_height * sizes[node.id] / max_size)
        placements.append(
            NodePlacement(
                id=node.id,
                x=x,
                x1=x + width,
                width=width,
                height=height,
                incoming=list(node.incoming_links),
                outgoing=list(node.outgoing_links),
                offset=node.adjustment,
            )
        )
    return placements


# ─── Pass 2: Row Assignment ───────────────────────────────────────────────────


def _span_is_free(lo: float, hi: float, occupied: list[tuple[float, float]]) -> bool:
    """True if ``[lo, hi)`` meets none of the ``occupied`` spans (sorted by lower bound)."""
    for occ_lo, occ_hi in occupied:
        if occ_lo >= hi:
            break
        if lo < occ_hi:
            return False
    return True


def assign_rows(placements: Sequence[NodePlacement], config: LayoutConfig) -> float:
    """Give every node the lowest row free of earlier time-overlapping nodes.

    Nodes are processed in creation order. A row is rejected when an earlier
    overlapping node already holds it or when the node's vertical span at
    that row would intrude into the span of an earlier overlapping node.
    Returns the smallest y assigned.
    """
    row_height = config.row_height
    min_y = 0.0
    placed: list[NodePlacement] = []
    for i, node in enumerate(placements):
        neighbours = [other for other in placed if node.overlaps_in_time(other)]
        used_rows = {other.row for other in neighbours}
        occupied = sorted((other.y, other.y + other.height) for other in neighbours)

        row = 0
        while True:
            y = row * row_height + node.offset
            if row not in used_rows and _span_is_free(y, y + node.height, occupied):
                break
            row += 1

        node.row = row
        node.y = y
        min_y = y if i == 0 else min(min_y, y)
        placed.append(node)
    return min_y


# ─── Pass 3: Link Routing ─────────────────────────────────────────────────────


def route_links(
    placements: Sequence[NodePlacement],
    links: Sequence[TimelineLink],
    max_flow: float,
    config: LayoutConfig,
) -> list[LinkRoute]:
    """Compute width, anchors and path of every link from current positions."""
    by_node = {p.id: p for p in placements}
    by_link = {link.id: link for link in links}
    widths = {link.id: link_width(link.flow, max_flow, config) for link in links}

    source_ys: dict[int, float] = {}
    target_ys: dict[int, float] = {}
    for p in placements:
        bottom = p.y + p.height
        source_ys.update(stack_anchors(bottom, ((i, widths[i], by_link[i].is_circular) for i in p.outgoing)))
        target_ys.update(stack_anchors(bottom, ((i, widths[i], by_link[i].is_circular) for i in p.incoming)))

    top_y = min((p.y for p in placements), default=0.0)

    routes: list[LinkRoute] = []
    for link in links:
        source = by_node[link.source]
        target = by_node[link.target]
        y0 = source_ys[link.id]
        y1 = target_ys[link.id]
        start = Point(source.x1, y0)

        path: PathDescriptor
        if link.is_self_loop:
            path = self_loop_curve(start, y1, link.circular_link_type, config.curve_width, config.curve_height)
        elif link.is_circular:
            side = link.circular_link_type or CircularLinkType.BOTTOM
            radius = circular_radius(link.id, config)
            spread = config.circular_clearance + link.id * config.circular_link_gap
            if side is CircularLinkType.TOP:
                channel_y = top_y - spread
            else:
                channel_y = max(source.y + source.height, target.y + target.height) + spread
            path = circular_path(start, Point(target.x, y1), side, channel_y, radius, config.curve_width)
        else:
            path = link_curve(start, Point(target.x, y1), config.curve_width)

        routes.append(
            LinkRoute(
                id=link.id,
                source=link.source,
                target=link.target,
                width=widths[link.id],
                y0=y0,
                y1=y1,
                path=path,
            )
        )
    return routes


# ─── Pass 4: Node/Link Overlap ────────────────────────────────────────────────


def node_link_shifts(
    placements: Sequence[NodePlacement],
    routes: Sequence[LinkRoute],
    config: LayoutConfig,
) -> dict[int, float]:
    """Vertical shift for each node that some unrelated link curve crosses.

    Each bezier link is widened into two curves at ± half its stroke width
    and intersected with the four edges of the node's rectangle. A hit
    above the node's midpoint asks for the node to move down until its top
    clears the hit; a hit at or below the midpoint asks it to move up until
    its bottom clears. The node moves by the difference of the largest
    downward and upward requests. Circular arc paths are not tested.
    """
    shifts: dict[int, float] = {}
    for p in placements:
        edges = rectangle_edges(p.x, p.y, p.width, p.height)
        mid_y = p.y + p.height / 2
        shift_down = 0.0
        shift_up = 0.0
        for route in routes:
            if p.id in (route.source, route.target) or not isinstance(route.path, BezierPath):
                continue
            half = route.width / 2
            for stroke in (route.path.curve.translate(dy=-half), route.path.curve.translate(dy=half)):
                for edge in edges:
                    for hit in bezier_intersections(stroke, edge, config.intersection_tolerance):
                        if hit.y < mid_y:
                            shift_down = max(shift_down, hit.y - p.y + config.shift_padding)
                        else:
                            shift_up = max(shift_up, p.y + p.height - hit.y + config.shift_padding)
        shifts[p.id] = shift_down - shift_up
        if shifts[p.id]:
            logger.debug("node %d crossed by links, shifting by %.2f", p.id, shifts[p.id])
    return shifts


# ─── Normalisation ────────────────────────────────────────────────────────────


def normalize(placements: Sequence[NodePlacement], config: LayoutConfig) -> None:
    """Move the topmost node to y=0 and fit everything into ``config.height``.

    Fitting scales node offsets and heights by the same factor, so nodes
    that were vertically disjoint stay disjoint.
    """
    if not placements:
        return
    min_y = min(p.y for p in placements)
    for p in placements:
        p.y -= min_y

    if config.height is None:
        return
    extent = max(p.y + p.height for p in placements)
    if extent > config.height:
        factor = config.height / extent
        for p in placements:
            p.y *= factor
            p.height *= factor
    for p in placements:
        if p.y + p.height > config.height:
            p.y = max(0.0, config.height - p.height)


# ─── Full Layout Pipeline ─────────────────────────────────────────────────────


def full_layout(
    nodes: Sequence[TimelineNode],
    links: Sequence[TimelineLink],
    pixel_range: tuple[float, float],
    config: LayoutConfig,
) -> TimelineLayout:
    """Run every pass and return the resolved layout."""
    links_by_id = {link.id: link for link in links}
    sizes = {node.id: node_size(node, links_by_id) for node in nodes}
    min_time, max_time = time_bounds(nodes)
    max_flow = max((link.flow for link in links), default=0)
    max_size = max(sizes.values(), default=0)

    if max_time == min_time:
        logger.debug("degenerate time scale at %s, all nodes start at range start", min_time)
    if max_flow == 0 and links:
        logger.debug("no link carries flow, using base link width")

    scale = LinearScale((min_time, max_time), pixel_range)
    placements = place_nodes(nodes, sizes, scale, config)
    assign_rows(placements, config)
    routes = route_links(placements, links, max_flow, config)

    applied: dict[int, float] = {p.id: 0.0 for p in placements}
    for pass_index in range(config.overlap_passes):
        shifts = node_link_shifts(placements, routes, config)
        if not any(shifts.values()):
            break
        logger.debug("overlap pass %d moved %d nodes", pass_index, sum(1 for s in shifts.values() if s))
        for p in placements:
            p.offset += shifts[p.id]
            applied[p.id] += shifts[p.id]
        assign_rows(placements, config)
        routes = route_links(placements, links, max_flow, config)

    normalize(placements, config)
    routes = route_links(placements, links, max_flow, config)

    node_layouts = tuple(
        NodeLayout(
            id=node.id,
            label=node.label,
            x=p.x,
            x1=p.x1,
            y=p.y,
            width=p.width,
            height=p.height,
            row=p.row,
            size=sizes[node.id],
            part_of_circuit=node.part_of_circuit,
            circular_link_type=node.circular_link_type,
        )
        for node, p in zip(nodes, placements)
    )
    link_layouts = tuple(
        LinkLayout(
            id=link.id,
            source=link.source,
            target=link.target,
            flow=link.flow,
            is_circular=link.is_circular,
            circular_link_type=link.circular_link_type,
            width=route.width,
            y0=route.y0,
            y1=route.y1,
            path=route.path,
        )
        for link, route in zip(links, routes)
    )
    logger.debug("laid out %d nodes and %d links", len(node_layouts), len(link_layouts))
    return TimelineLayout(
        nodes=node_layouts,
        links=link_layouts,
        min_time=min_time,
        max_time=max_time,
        max_flow=max_flow,
        max_size=max_size,
        range=(float(pixel_range[0]), float(pixel_range[1])),
        shifts=applied,
    )
