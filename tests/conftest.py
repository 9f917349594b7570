"""Shared fixtures: the six-node timeline used across the test modules."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from sankey_timeline import SankeyTimeline, TimelineLink, TimelineNode


@dataclass
class Scenario:
    timeline: SankeyTimeline
    nodes: dict[str, TimelineNode]
    links: dict[str, TimelineLink]


def build_scenario() -> Scenario:
    """v0[0,5] v1[0,10] v2[2,3] v3[4,11] v4[10,20] v5[1,3] with links a–g."""
    timeline = SankeyTimeline()
    nodes = {
        "v0": timeline.create_node("v0", 0, 5),
        "v1": timeline.create_node("v1", 0, 10),
        "v2": timeline.create_node("v2", 2, 3),
        "v3": timeline.create_node("v3", 4, 11),
        "v4": timeline.create_node("v4", 10, 20),
        "v5": timeline.create_node("v5", 1, 3),
    }
    links = {
        "a": timeline.create_link(nodes["v0"], nodes["v1"], 1),
        "b": timeline.create_link(nodes["v1"], nodes["v2"], 10),
        "c": timeline.create_link(nodes["v1"], nodes["v3"], 30),
        "d": timeline.create_link(nodes["v2"], nodes["v4"], 4),
        "e": timeline.create_link(nodes["v3"], nodes["v2"], 1),
        "f": timeline.create_link(nodes["v4"], nodes["v0"], 12),
        "g": timeline.create_link(nodes["v4"], nodes["v5"], 3),
    }
    return Scenario(timeline=timeline, nodes=nodes, links=links)


@pytest.fixture
def scenario() -> Scenario:
    return build_scenario()
