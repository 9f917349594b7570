"""SankeyTimeline: the container that owns nodes and links.

Typical use::

    timeline = SankeyTimeline()
    timeline.set_range((20, 980))
    a = timeline.create_node("a", 0, 5)
    b = timeline.create_node("b", mean_time=8, std_deviation=2)
    timeline.create_link(a, "b", 3)
    layout = timeline.get_graph()

Nodes and links are created once and never removed. Ids are allocated in
creation order. Layouts are computed on demand and cached until the next
mutation.
"""

from __future__ import annotations

import logging
import math
from typing import Union

from sankey_timeline.config import DEFAULT_RANGE, LayoutConfig
from sankey_timeline.cycles import CycleClassifier
from sankey_timeline.errors import InvalidFlowError, UnknownReferenceError
from sankey_timeline.graph import TimelineGraph, TimelineLink, TimelineNode, TimeSpec, node_size
from sankey_timeline.layout import LinearScale, TimelineLayout, full_layout, time_bounds

logger = logging.getLogger(__name__)

NodeRef = Union[TimelineNode, int, str]


class SankeyTimeline:
    """A time-indexed flow graph and its layout."""

    def __init__(self, config: LayoutConfig | None = None, range: tuple[float, float] = DEFAULT_RANGE) -> None:
        self.config = (config or LayoutConfig()).validate()
        self._nodes: dict[int, TimelineNode] = {}
        self._links: dict[int, TimelineLink] = {}
        self._next_node_id = 0
        self._next_link_id = 0
        self._range: tuple[float, float] = (float(range[0]), float(range[1]))
        self._classifier = CycleClassifier()
        self._layout: TimelineLayout | None = None

    # ─── Construction ─────────────────────────────────────────────────────────

    def create_node(
        self,
        label: str,
        start_time: float | str | None = None,
        end_time: float | str | None = None,
        *,
        mean_time: float | str | None = None,
        std_deviation: float | str | None = None,
        times: TimeSpec | None = None,
    ) -> TimelineNode:
        """Add a node covering ``[start_time, end_time]`` or ``mean_time ± std_deviation``.

        A ready-made ``TimeSpec`` may be passed as ``times`` instead.
        Malformed times never raise; see ``graph.key_times``.
        """
        if times is None:
            times = TimeSpec(
                start_time=start_time,
                end_time=end_time,
                mean_time=mean_time,
                std_deviation=std_deviation,
            )
        node = TimelineNode(id=self._next_node_id, label=label, times=times)
        self._nodes[node.id] = node
        self._next_node_id += 1
        self._layout = None
        logger.debug("created node %d %r at %s", node.id, label, node.key_times)
        return node

    def create_link(self, source: NodeRef, target: NodeRef, flow: float) -> TimelineLink:
        """Add a link and classify it as circular or not.

        ``source`` and ``target`` may be nodes, node ids or node labels. Both
        are resolved and ``flow`` is checked before anything is mutated.
        """
        source_node = self.resolve_node(source)
        target_node = self.resolve_node(target)
        flow = _check_flow(flow)

        link = TimelineLink(id=self._next_link_id, source=source_node.id, target=target_node.id, flow=flow)
        self._links[link.id] = link
        self._next_link_id += 1
        source_node.outgoing_links.append(link.id)
        target_node.incoming_links.append(link.id)
        self._classifier.classify(link, source_node, target_node, self._links.values())
        self._layout = None
        logger.debug("created link %d %d → %d flow=%s circular=%s", link.id, link.source, link.target, flow, link.is_circular)
        return link

    def set_range(self, pixel_range: tuple[float, float]) -> None:
        """Set the horizontal pixel range the time axis is mapped onto."""
        start, end = pixel_range
        self._range = (float(start), float(end))
        self._layout = None

    @property
    def range(self) -> tuple[float, float]:
        return self._range

    # ─── Lookup ───────────────────────────────────────────────────────────────

    def get_node(self, node_id: int) -> TimelineNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownReferenceError("node", node_id) from None

    def find_node(self, label: str) -> TimelineNode:
        """First node (in creation order) carrying ``label``."""
        for node in self._nodes.values():
            if node.label == label:
                return node
        raise UnknownReferenceError("node", label)

    def resolve_node(self, ref: NodeRef) -> TimelineNode:
        """Resolve a node, node id or label to a node owned by this timeline."""
        if isinstance(ref, TimelineNode):
            if self._nodes.get(ref.id) is not ref:
                raise UnknownReferenceError("node", ref.id)
            return ref
        if isinstance(ref, str):
            return self.find_node(ref)
        if isinstance(ref, int) and not isinstance(ref, bool):
            return self.get_node(ref)
        raise UnknownReferenceError("node", ref)

    def get_link(self, link_id: int) -> TimelineLink:
        try:
            return self._links[link_id]
        except KeyError:
            raise UnknownReferenceError("link", link_id) from None

    @property
    def nodes(self) -> list[TimelineNode]:
        return list(self._nodes.values())

    @property
    def links(self) -> list[TimelineLink]:
        return list(self._links.values())

    @property
    def graph(self) -> TimelineGraph:
        """The model in creation order."""
        return TimelineGraph(nodes=self.nodes, links=self.links)

    # ─── Aggregates ───────────────────────────────────────────────────────────

    def node_size(self, node: NodeRef) -> float:
        return node_size(self.resolve_node(node), self._links)

    @property
    def min_time(self) -> float:
        return time_bounds(self.nodes)[0]

    @property
    def max_time(self) -> float:
        return time_bounds(self.nodes)[1]

    @property
    def max_flow(self) -> float:
        return max((link.flow for link in self._links.values()), default=0)

    @property
    def max_size(self) -> float:
        return max((node_size(node, self._links) for node in self._nodes.values()), default=0)

    def time_scale(self) -> LinearScale:
        """The scale nodes are placed with, for drawing a matching time axis."""
        return LinearScale((self.min_time, self.max_time), self._range)

    # ─── Layout ───────────────────────────────────────────────────────────────

    def calculate_layout(self, config: LayoutConfig | None = None) -> TimelineLayout:
        """Run every layout pass over the current graph.

        A ``config`` given here applies to this call only and is not cached.
        """
        if config is not None:
            return full_layout(self.nodes, self.links, self._range, config.validate())
        self._layout = full_layout(self.nodes, self.links, self._range, self.config)
        return self._layout

    def get_graph(self) -> TimelineLayout:
        """The current layout, recomputed only if the graph changed since."""
        if self._layout is None:
            return self.calculate_layout()
        return self._layout

    @property
    def is_stale(self) -> bool:
        return self._layout is None

    def adjust(self) -> TimelineLayout:
        """Fold the overlap pass's node shifts into each node's stored adjustment.

        Offsets accumulate across calls, so a graph built step by step keeps
        the positions earlier steps settled on. Returns the new layout.
        """
        layout = self.get_graph()
        moved = 0
        for node in self._nodes.values():
            shift = layout.shifts.get(node.id, 0.0)
            if shift:
                node.adjustment += shift
                moved += 1
        logger.debug("adjust moved %d nodes", moved)
        self._layout = None
        return self.get_graph()

    def clear_adjustments(self) -> None:
        """Reset every node's accumulated adjustment to zero."""
        for node in self._nodes.values():
            node.adjustment = 0.0
        self._layout = None


def _check_flow(flow: float) -> float:
    try:
        value = float(flow)
    except (TypeError, ValueError):
        raise InvalidFlowError(f"flow must be a number, got {flow!r}") from None
    if math.isnan(value) or value < 0 or math.isinf(value):
        raise InvalidFlowError(f"flow must be finite and non-negative, got {flow!r}")
    return value
