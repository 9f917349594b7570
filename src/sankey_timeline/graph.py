"""Graph model entities: time specifications, nodes, links.

Nodes and links never hold references to each other. A link stores the
integer ids of its endpoints and a node stores the ids of the links that
touch it; both are resolved through the owning ``SankeyTimeline``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property

logger = logging.getLogger(__name__)

# ─── Time Specification ───────────────────────────────────────────────────────


def _coerce_time(value: object) -> float:
    """Parse a time value, returning NaN for anything that is not a number."""
    if value is None or isinstance(value, bool):
        return math.nan
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return math.nan


@dataclass(frozen=True)
class TimeSpec:
    """Where a node sits in time.

    Either ``start_time``/``end_time`` or ``mean_time``/``std_deviation`` is
    supplied. When both of the distribution fields are numbers they win.
    Values may be numbers or numeric strings.
    """

    start_time: float | str | None = None
    end_time: float | str | None = None
    mean_time: float | str | None = None
    std_deviation: float | str | None = None


def has_distribution(times: TimeSpec) -> bool:
    """True if the spec describes a ``mean ± std`` distribution."""
    return not math.isnan(_coerce_time(times.mean_time)) and not math.isnan(_coerce_time(times.std_deviation))


def key_times(times: TimeSpec) -> tuple[float, float]:
    """Effective ``(start, end)`` of a time spec, always ordered and finite.

    Malformed input degrades instead of raising:
      - a NaN bound takes the value of the other bound (both NaN → 0),
      - an inverted interval collapses onto its start,
      - a negative standard deviation collapses onto the mean.

    Negative times are ordinary positions on the axis and are kept as
    given; only NaN, unparsable or infinite values are degraded.
    """
    if has_distribution(times):
        mean = _coerce_time(times.mean_time)
        std = _coerce_time(times.std_deviation)
        if not math.isfinite(mean):
            logger.warning("non-finite mean time %r, using 0", times.mean_time)
            mean = 0.0
        if not math.isfinite(std) or std < 0:
            logger.warning("invalid standard deviation %r, collapsing onto mean", times.std_deviation)
            std = 0.0
        return (mean - std, mean + std)

    start = _coerce_time(times.start_time)
    end = _coerce_time(times.end_time)
    start_ok = math.isfinite(start)
    end_ok = math.isfinite(end)
    if not start_ok or not end_ok:
        logger.warning("unusable time range (%r, %r), degrading to zero width", times.start_time, times.end_time)
        if start_ok:
            end = start
        elif end_ok:
            start = end
        else:
            start = end = 0.0
    if end < start:
        logger.warning("end time %r before start time %r, collapsing onto start", times.end_time, times.start_time)
        end = start
    return (start, end)


# ─── Entities ─────────────────────────────────────────────────────────────────


class CircularLinkType(str, Enum):
    """Side of the diagram a circular link is routed around."""

    TOP = "top"
    BOTTOM = "bottom"


@dataclass
class TimelineNode:
    """A node covering an interval of time.

    Attributes:
        id: Stable id assigned by the container in creation order.
        label: Display label; not required to be unique.
        times: The time spec the node was created with.
        incoming_links: Ids of links ending here, in insertion order.
        outgoing_links: Ids of links starting here, in insertion order.
        adjustment: Vertical offset accumulated by ``SankeyTimeline.adjust``.
        part_of_circuit: Set once the node is an endpoint of a circular link.
        circular_link_type: Side of the latest circular link touching the node.
    """

    id: int
    label: str
    times: TimeSpec
    incoming_links: list[int] = field(default_factory=list)
    outgoing_links: list[int] = field(default_factory=list)
    adjustment: float = 0.0
    part_of_circuit: bool = False
    circular_link_type: CircularLinkType | None = None

    @cached_property
    def key_times(self) -> tuple[float, float]:
        return key_times(self.times)

    @property
    def start_time(self) -> float:
        return self.key_times[0]

    @property
    def end_time(self) -> float:
        return self.key_times[1]

    @property
    def link_ids(self) -> list[int]:
        """Incoming link ids followed by outgoing link ids."""
        return self.incoming_links + self.outgoing_links


@dataclass
class TimelineLink:
    """A weighted directed flow between two nodes.

    ``is_circular`` and ``circular_link_type`` are decided once, when the
    link is inserted, and never revisited.
    """

    id: int
    source: int
    target: int
    flow: float
    is_circular: bool = False
    circular_link_type: CircularLinkType | None = None

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


@dataclass
class TimelineGraph:
    """Snapshot of the model in creation order."""

    nodes: list[TimelineNode]
    links: list[TimelineLink]


def node_size(node: TimelineNode, links: Mapping[int, TimelineLink]) -> float:
    """``max(Σ incoming flow, Σ outgoing flow)``; 0 for a node without links."""
    incoming = sum(links[link_id].flow for link_id in node.incoming_links)
    outgoing = sum(links[link_id].flow for link_id in node.outgoing_links)
    return max(incoming, outgoing)
