"""Cycle classifier: decides which links are circular and where they route.

A link is circular when it is a self-loop or when it closes an elementary
circuit of the link adjacency. Circuits are enumerated with networkx's
``simple_cycles`` (Johnson's algorithm family) and each one is rotated to
start at its smallest node id, which is the order Johnson's algorithm
reports circuits in. The closing edge of a circuit is therefore the edge
that returns to its smallest node.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

import networkx as nx

from sankey_timeline.graph import CircularLinkType, TimelineLink, TimelineNode

logger = logging.getLogger(__name__)

# ─── Circuit Enumeration ──────────────────────────────────────────────────────


def build_adjacency(links: Iterable[TimelineLink]) -> nx.DiGraph:
    """Directed adjacency of the links, one edge per (source, target) pair.

    Parallel links collapse into a single edge. Nodes are added in the
    order their ids first appear so enumeration is deterministic.
    """
    graph: nx.DiGraph = nx.DiGraph()
    for link in links:
        graph.add_node(link.source)
        graph.add_node(link.target)
        graph.add_edge(link.source, link.target)
    return graph


def canonical_circuit(cycle: list[int]) -> list[int]:
    """Rotate a cycle so it starts at its smallest node id."""
    if not cycle:
        return cycle
    pivot = cycle.index(min(cycle))
    return cycle[pivot:] + cycle[:pivot]


def find_circuits(graph: nx.DiGraph) -> Iterator[list[int]]:
    """Yield every elementary circuit of ``graph`` in canonical rotation.

    A circuit ``[v0, v1, ..., vk]`` stands for the closed walk
    ``v0 → v1 → ... → vk → v0``; a self-loop is the one-element circuit ``[v]``.
    """
    for cycle in nx.simple_cycles(graph):
        yield canonical_circuit(list(cycle))


def closing_edge(circuit: list[int]) -> tuple[int, int]:
    """The last step of a canonical circuit: back to its first node."""
    return (circuit[-1], circuit[0])


def closes_circuit(link: TimelineLink, links: Iterable[TimelineLink]) -> bool:
    """True if ``link`` is a self-loop or the closing edge of some circuit."""
    if link.is_self_loop:
        return True
    edge = (link.source, link.target)
    return any(closing_edge(circuit) == edge for circuit in find_circuits(build_adjacency(links)))


# ─── Arc Side Assignment ──────────────────────────────────────────────────────


class CycleClassifier:
    """Classifies links as they are inserted and balances their arc sides.

    The classifier keeps running counts of circular links whose side was
    picked by balancing. A new circular link inherits the side already used
    at its source node, else at its target node; only when neither endpoint
    has a side does it take the less crowded side (bottom on a tie) and
    bump that side's count. Inherited sides are not counted.
    """

    def __init__(self) -> None:
        self.top_count = 0
        self.bottom_count = 0

    @staticmethod
    def inherited_side(source: TimelineNode, target: TimelineNode) -> CircularLinkType | None:
        if source.circular_link_type is not None:
            return source.circular_link_type
        return target.circular_link_type

    def balanced_side(self) -> CircularLinkType:
        if self.top_count < self.bottom_count:
            return CircularLinkType.TOP
        return CircularLinkType.BOTTOM

    def choose_side(self, source: TimelineNode, target: TimelineNode) -> CircularLinkType:
        return self.inherited_side(source, target) or self.balanced_side()

    def classify(
        self,
        link: TimelineLink,
        source: TimelineNode,
        target: TimelineNode,
        links: Iterable[TimelineLink],
    ) -> bool:
        """Set ``is_circular`` and ``circular_link_type`` on a freshly inserted link.

        ``links`` must already contain ``link``. Returns ``link.is_circular``.
        """
        link.is_circular = closes_circuit(link, links)
        if not link.is_circular:
            return False

        side = self.inherited_side(source, target)
        if side is None:
            side = self.balanced_side()
            if side is CircularLinkType.TOP:
                self.top_count += 1
            else:
                self.bottom_count += 1
        link.circular_link_type = side

        for node in (source, target):
            node.part_of_circuit = True
            node.circular_link_type = side

        logger.debug(
            "link %d (%d → %d) is circular, routed %s (top=%d, bottom=%d)",
            link.id,
            link.source,
            link.target,
            side.value,
            self.top_count,
            self.bottom_count,
        )
        return True
