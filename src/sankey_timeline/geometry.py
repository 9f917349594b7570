"""Cubic bezier geometry used by the path builder and the overlap pass.

Intersections are found by recursive subdivision: two curves whose
bounding boxes are disjoint cannot meet; otherwise the larger curve is
split at t=0.5 and both halves are tested again until the boxes shrink
below a tolerance.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

MAX_SUBDIVISION_DEPTH = 32


@dataclass(frozen=True)
class Point:
    """A 2D point in pixel coordinates."""

    x: float
    y: float

    def offset(self, dx: float = 0.0, dy: float = 0.0) -> Point:
        return Point(self.x + dx, self.y + dy)

    def distance(self, other: Point) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


def _lerp(a: Point, b: Point, t: float) -> Point:
    return Point(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def intersects(self, other: BoundingBox) -> bool:
        """Inclusive overlap test, so degenerate (zero-area) boxes still meet."""
        return (
            self.min_x <= other.max_x
            and other.min_x <= self.max_x
            and self.min_y <= other.max_y
            and other.min_y <= self.max_y
        )


@dataclass(frozen=True)
class CubicBezier:
    """A cubic bezier curve ``p0 → p3`` with control points ``p1``, ``p2``."""

    p0: Point
    p1: Point
    p2: Point
    p3: Point

    @classmethod
    def line(cls, start: Point, end: Point) -> CubicBezier:
        """A straight segment expressed as a degenerate cubic."""
        return cls(start, _lerp(start, end, 1 / 3), _lerp(start, end, 2 / 3), end)

    @property
    def points(self) -> tuple[Point, Point, Point, Point]:
        return (self.p0, self.p1, self.p2, self.p3)

    def point_at(self, t: float) -> Point:
        u = 1.0 - t
        a = u * u * u
        b = 3 * u * u * t
        c = 3 * u * t * t
        d = t * t * t
        return Point(
            a * self.p0.x + b * self.p1.x + c * self.p2.x + d * self.p3.x,
            a * self.p0.y + b * self.p1.y + c * self.p2.y + d * self.p3.y,
        )

    def split(self, t: float = 0.5) -> tuple[CubicBezier, CubicBezier]:
        """De Casteljau split into the ``[0, t]`` and ``[t, 1]`` halves."""
        p01 = _lerp(self.p0, self.p1, t)
        p12 = _lerp(self.p1, self.p2, t)
        p23 = _lerp(self.p2, self.p3, t)
        p012 = _lerp(p01, p12, t)
        p123 = _lerp(p12, p23, t)
        mid = _lerp(p012, p123, t)
        return CubicBezier(self.p0, p01, p012, mid), CubicBezier(mid, p123, p23, self.p3)

    def bbox(self) -> BoundingBox:
        """Bounding box of the control polygon, which contains the curve."""
        xs = [p.x for p in self.points]
        ys = [p.y for p in self.points]
        return BoundingBox(min(xs), min(ys), max(xs), max(ys))

    def translate(self, dx: float = 0.0, dy: float = 0.0) -> CubicBezier:
        return CubicBezier(*(p.offset(dx, dy) for p in self.points))


def bezier_intersections(
    a: CubicBezier,
    b: CubicBezier,
    tolerance: float = 0.5,
) -> list[Point]:
    """Approximate intersection points of two cubic curves.

    Points falling into the same ``tolerance``-sized grid cell are reported
    once. Curves that run along each other yield a row of points spaced
    roughly ``tolerance`` apart.
    """
    found: list[Point] = []
    _subdivide(a, b, tolerance, 0, found)

    seen: set[tuple[int, int]] = set()
    unique: list[Point] = []
    for p in found:
        cell = (round(p.x / tolerance), round(p.y / tolerance))
        if cell not in seen:
            seen.add(cell)
            unique.append(p)
    return unique


def _subdivide(a: CubicBezier, b: CubicBezier, tolerance: float, depth: int, out: list[Point]) -> None:
    box_a = a.bbox()
    box_b = b.bbox()
    if not box_a.intersects(box_b):
        return

    size_a = max(box_a.width, box_a.height)
    size_b = max(box_b.width, box_b.height)
    if (size_a <= tolerance and size_b <= tolerance) or depth >= MAX_SUBDIVISION_DEPTH:
        out.append(_lerp(a.point_at(0.5), b.point_at(0.5), 0.5))
        return

    if size_a >= size_b:
        for half in a.split():
            _subdivide(half, b, tolerance, depth + 1, out)
    else:
        for half in b.split():
            _subdivide(a, half, tolerance, depth + 1, out)


def rectangle_edges(x: float, y: float, width: float, height: float) -> list[CubicBezier]:
    """The four edges of a rectangle as degenerate curves: top, right, bottom, left."""
    top_left = Point(x, y)
    top_right = Point(x + width, y)
    bottom_right = Point(x + width, y + height)
    bottom_left = Point(x, y + height)
    return [
        CubicBezier.line(top_left, top_right),
        CubicBezier.line(top_right, bottom_right),
        CubicBezier.line(bottom_right, bottom_left),
        CubicBezier.line(bottom_left, top_left),
    ]
