"""Tests for cycles.py: circuit enumeration, circular classification and arc sides."""

from __future__ import annotations

from conftest import build_scenario

from sankey_timeline import CircularLinkType, SankeyTimeline, TimelineLink, TimelineNode, TimeSpec
from sankey_timeline.cycles import (
    CycleClassifier,
    build_adjacency,
    canonical_circuit,
    closes_circuit,
    closing_edge,
    find_circuits,
)

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_links(*edges: tuple[int, int]) -> list[TimelineLink]:
    """Bare links for the given (source, target) pairs, ids in order."""
    return [TimelineLink(id=i, source=s, target=t, flow=1) for i, (s, t) in enumerate(edges)]


def timeline_with_nodes(count: int) -> SankeyTimeline:
    t = SankeyTimeline()
    for i in range(count):
        t.create_node(f"n{i}", i, i + 1)
    return t


# ─── Circuit Enumeration ──────────────────────────────────────────────────────


class TestCircuits:
    def test_adjacency_deduplicates_parallel_links(self):
        """Two links with the same endpoints give one edge."""
        graph = build_adjacency(make_links((0, 1), (0, 1), (1, 2)))
        assert graph.number_of_edges() == 2

    def test_canonical_rotation(self):
        """A circuit is rotated to start at its smallest id."""
        assert canonical_circuit([3, 1, 2]) == [1, 2, 3]
        assert canonical_circuit([0, 4]) == [0, 4]
        assert canonical_circuit([]) == []

    def test_closing_edge_returns_to_start(self):
        assert closing_edge([0, 1, 2, 4]) == (4, 0)
        assert closing_edge([5]) == (5, 5)

    def test_find_circuits_triangle(self):
        circuits = list(find_circuits(build_adjacency(make_links((0, 1), (1, 2), (2, 0)))))
        assert circuits == [[0, 1, 2]]

    def test_find_circuits_self_loop(self):
        circuits = list(find_circuits(build_adjacency(make_links((3, 3)))))
        assert circuits == [[3]]

    def test_find_circuits_acyclic(self):
        assert list(find_circuits(build_adjacency(make_links((0, 1), (1, 2), (0, 2))))) == []

    def test_closes_circuit_only_for_edge_into_smallest(self):
        """In 0→1→2→0 only the edge back into 0 closes the circuit."""
        links = make_links((0, 1), (1, 2), (2, 0))
        assert not closes_circuit(links[0], links)
        assert not closes_circuit(links[1], links)
        assert closes_circuit(links[2], links)


# ─── Classification on Insertion ──────────────────────────────────────────────


class TestClassification:
    def test_scenario_flags(self, scenario):
        """Only f (v4 → v0) closes a circuit."""
        circular = {name for name, link in scenario.links.items() if link.is_circular}
        assert circular == {"f"}

    def test_scenario_part_of_circuit(self, scenario):
        """Endpoints of circular links are flagged; other nodes are not."""
        flagged = {label for label, node in scenario.nodes.items() if node.part_of_circuit}
        assert flagged == {"v0", "v4"}

    def test_self_loop_is_circular(self):
        t = timeline_with_nodes(1)
        link = t.create_link(0, 0, 2)
        assert link.is_circular
        assert link.is_self_loop

    def test_two_cycle(self):
        """a → b is ordinary; b → a closes the 2-cycle."""
        t = timeline_with_nodes(2)
        forward = t.create_link(0, 1, 1)
        back = t.create_link(1, 0, 1)
        assert not forward.is_circular
        assert back.is_circular

    def test_parallel_closing_links_both_circular(self):
        t = timeline_with_nodes(2)
        t.create_link(0, 1, 1)
        first = t.create_link(1, 0, 1)
        second = t.create_link(1, 0, 1)
        assert first.is_circular and second.is_circular

    def test_flag_fixed_at_insertion(self):
        """A link never becomes circular later, even when a cycle forms through it."""
        t = timeline_with_nodes(3)
        into_smallest = t.create_link(2, 0, 1)
        t.create_link(0, 1, 1)
        last = t.create_link(1, 2, 1)
        # The cycle 0→1→2→0 now exists, but its closing edge 2→0 was
        # classified before the cycle did.
        assert not into_smallest.is_circular
        assert not last.is_circular

    def test_deterministic(self):
        """Identical construction sequences classify identically."""
        first = build_scenario()
        second = build_scenario()
        assert [link.is_circular for link in first.timeline.links] == [
            link.is_circular for link in second.timeline.links
        ]
        assert [link.circular_link_type for link in first.timeline.links] == [
            link.circular_link_type for link in second.timeline.links
        ]


# ─── Arc Sides ────────────────────────────────────────────────────────────────


class TestArcSides:
    def test_non_circular_has_no_side(self, scenario):
        assert scenario.links["a"].circular_link_type is None

    def test_first_circular_goes_bottom(self, scenario):
        """With no circular links yet the counts tie and bottom is chosen."""
        assert scenario.links["f"].circular_link_type is CircularLinkType.BOTTOM
        assert scenario.nodes["v0"].circular_link_type is CircularLinkType.BOTTOM

    def test_sides_balance(self):
        """Unrelated circular links alternate bottom, top, bottom."""
        t = timeline_with_nodes(3)
        sides = [t.create_link(i, i, 1).circular_link_type for i in range(3)]
        assert sides == [CircularLinkType.BOTTOM, CircularLinkType.TOP, CircularLinkType.BOTTOM]

    def test_inherits_source_side(self):
        """A circular link leaving a node with a side takes that side."""
        t = timeline_with_nodes(3)
        t.create_link(0, 0, 1)  # bottom
        t.create_link(1, 1, 1)  # top
        assert not t.create_link(1, 0, 1).is_circular
        assert not t.create_link(0, 1, 1).is_circular
        # Balancing alone would pick bottom here.
        closing = t.create_link(1, 0, 1)
        assert closing.is_circular
        assert closing.circular_link_type is CircularLinkType.TOP

    def test_inherits_target_side_when_source_has_none(self):
        t = timeline_with_nodes(4)
        t.create_link(0, 0, 1)  # bottom on node 0
        t.create_link(2, 2, 1)  # top on node 2
        t.create_link(3, 3, 1)  # bottom on node 3
        # Balancing alone would pick top here.
        t.create_link(0, 1, 1)
        closing = t.create_link(1, 0, 1)
        assert closing.circular_link_type is CircularLinkType.BOTTOM

    def test_inherited_side_is_not_counted(self):
        """Only balanced choices bump the running counts."""
        t = timeline_with_nodes(1)
        t.create_link(0, 0, 1)
        second = t.create_link(0, 0, 1)
        assert second.circular_link_type is CircularLinkType.BOTTOM
        classifier = t._classifier
        assert (classifier.top_count, classifier.bottom_count) == (0, 1)

    def test_balancing_ignores_inherited_links(self):
        """Inherited links do not tip the balance for later unrelated links."""
        t = timeline_with_nodes(3)
        t.create_link(0, 0, 1)  # bottom, counted
        t.create_link(0, 0, 1)  # bottom, inherited
        t.create_link(1, 1, 1)  # top, counted
        # Counts are tied at one each, so bottom wins.
        assert t.create_link(2, 2, 1).circular_link_type is CircularLinkType.BOTTOM

    def test_choose_side_prefers_source_over_target(self):
        """Conflicting endpoint sides resolve to the source's side."""
        classifier = CycleClassifier()
        source = TimelineNode(id=0, label="s", times=TimeSpec(0, 1), circular_link_type=CircularLinkType.TOP)
        target = TimelineNode(id=1, label="t", times=TimeSpec(1, 2), circular_link_type=CircularLinkType.BOTTOM)
        assert classifier.choose_side(source, target) is CircularLinkType.TOP
        assert classifier.choose_side(target, source) is CircularLinkType.BOTTOM
