"""Exceptions raised by the sankey_timeline package."""

from __future__ import annotations


class SankeyTimelineError(Exception):
    """Base class for every error raised by this package."""


class UnknownReferenceError(SankeyTimelineError, LookupError):
    """A node or link reference did not resolve to an existing entity."""

    def __init__(self, kind: str, ref: object) -> None:
        super().__init__(f"unknown {kind} reference: {ref!r}")
        self.kind = kind
        self.ref = ref


class InvalidFlowError(SankeyTimelineError, ValueError):
    """A link flow was negative or not a number."""


class ConfigError(SankeyTimelineError, ValueError):
    """A LayoutConfig field holds a value the solver cannot use."""
