"""Tests for geometry.py: cubic bezier evaluation, splitting and intersection."""

from __future__ import annotations

import pytest

from sankey_timeline.geometry import (
    BoundingBox,
    CubicBezier,
    Point,
    bezier_intersections,
    rectangle_edges,
)

# ─── Helpers ──────────────────────────────────────────────────────────────────


def line(x0: float, y0: float, x1: float, y1: float) -> CubicBezier:
    return CubicBezier.line(Point(x0, y0), Point(x1, y1))


def s_curve() -> CubicBezier:
    return CubicBezier(Point(0, 0), Point(50, 0), Point(50, 100), Point(100, 100))


# ─── CubicBezier ──────────────────────────────────────────────────────────────


class TestCubicBezier:
    def test_endpoints(self):
        curve = s_curve()
        assert curve.point_at(0) == Point(0, 0)
        assert curve.point_at(1) == Point(100, 100)

    def test_midpoint_of_symmetric_curve(self):
        assert s_curve().point_at(0.5) == Point(50, 50)

    def test_split_halves_meet_on_curve(self):
        """Both halves share the point at t=0.5 and keep the outer endpoints."""
        curve = s_curve()
        left, right = curve.split()
        assert left.p0 == curve.p0
        assert right.p3 == curve.p3
        assert left.p3 == right.p0 == curve.point_at(0.5)

    def test_line_is_straight(self):
        seg = line(0, 0, 30, 60)
        p = seg.point_at(0.25)
        assert p.y == pytest.approx(2 * p.x)

    def test_bbox(self):
        assert s_curve().bbox() == BoundingBox(0, 0, 100, 100)

    def test_translate(self):
        moved = s_curve().translate(dy=5)
        assert moved.p0 == Point(0, 5)
        assert moved.p3 == Point(100, 105)


# ─── BoundingBox ──────────────────────────────────────────────────────────────


class TestBoundingBox:
    def test_touching_boxes_intersect(self):
        assert BoundingBox(0, 0, 10, 10).intersects(BoundingBox(10, 0, 20, 10))

    def test_degenerate_boxes_intersect(self):
        """A horizontal and a vertical segment through the same point meet."""
        assert BoundingBox(0, 5, 10, 5).intersects(BoundingBox(5, 0, 5, 10))

    def test_disjoint(self):
        assert not BoundingBox(0, 0, 1, 1).intersects(BoundingBox(2, 2, 3, 3))


# ─── Intersections ────────────────────────────────────────────────────────────


class TestIntersections:
    def test_crossing_lines(self):
        """A horizontal and a vertical segment meet once at (5, 0)."""
        hits = bezier_intersections(line(0, 0, 10, 0), line(5, -5, 5, 5), tolerance=0.5)
        assert hits
        assert all(h.distance(Point(5, 0)) <= 1.0 for h in hits)

    def test_disjoint_curves(self):
        assert bezier_intersections(line(0, 0, 10, 0), line(0, 5, 10, 5)) == []

    def test_curve_against_rectangle(self):
        """The S-curve enters the left edge and leaves the right edge of a box."""
        hits = []
        for edge in rectangle_edges(40, 20, 20, 60):
            hits.extend(bezier_intersections(s_curve(), edge))
        assert len(hits) >= 2
        assert all(40 - 1 <= h.x <= 60 + 1 for h in hits)
        assert any(abs(h.x - 40) < 1 for h in hits)
        assert any(abs(h.x - 60) < 1 for h in hits)

    def test_missing_rectangle(self):
        hits = []
        for edge in rectangle_edges(80, 0, 10, 10):
            hits.extend(bezier_intersections(s_curve(), edge))
        assert hits == []


class TestRectangleEdges:
    def test_order_top_right_bottom_left(self):
        top, right, bottom, left = rectangle_edges(0, 0, 10, 4)
        assert (top.p0, top.p3) == (Point(0, 0), Point(10, 0))
        assert (right.p0, right.p3) == (Point(10, 0), Point(10, 4))
        assert (bottom.p0, bottom.p3) == (Point(10, 4), Point(0, 4))
        assert (left.p0, left.p3) == (Point(0, 4), Point(0, 0))
