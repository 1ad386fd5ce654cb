"""Leaf-node geometry helpers. No engine imports."""

from __future__ import annotations

import enum
import math
from typing import Iterable, Sequence, TypeVar

import numpy as np
from numpy.typing import NDArray
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon

from isoscene.models.diagram import Point, Rect

P = TypeVar("P", bound=Point)

_EPS = 1e-10


class Direction(str, enum.Enum):
    NORTH = "N"
    SOUTH = "S"
    EAST = "E"
    WEST = "W"


# Walk order of find_concave_hull output in screen space (y grows downward)
_HULL_ORDER = [Direction.WEST, Direction.NORTH, Direction.EAST, Direction.SOUTH]


def round_half_up(value: float) -> float:
    """Round to the nearest integer, halves toward +inf (browser coordinate rounding)."""
    return float(math.floor(value + 0.5))


def to_array(points: Sequence[Point]) -> NDArray[np.float64]:
    """Stack points into an (N, 2) array."""
    if not points:
        return np.zeros((0, 2), dtype=np.float64)
    return np.array([[p.x, p.y] for p in points], dtype=np.float64)


def moved(point: P, x: float, y: float) -> P:
    """Copy of ``point`` (keeping name and type) at new coordinates."""
    return point.model_copy(update={"x": float(x), "y": float(y)})


def distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def find_center_point(points: Sequence[P]) -> P:
    """Mean of the rounded coordinates, rounded. Keeps the first point's name."""
    if not points:
        raise ValueError("Cannot find the center of an empty point set")
    arr = np.floor(to_array(points) + 0.5)
    cx, cy = arr.mean(axis=0)
    return moved(points[0], round_half_up(cx), round_half_up(cy))


def remove_duplicate_points(points: Iterable[P]) -> list[P]:
    seen: set[tuple[float, float]] = set()
    unique: list[P] = []
    for p in points:
        key = (p.x, p.y)
        if key not in seen:
            seen.add(key)
            unique.append(p)
    return unique


def _cross(o: Point, a: Point, b: Point) -> float:
    return (a.x - o.x) * (b.y - o.y) - (a.y - o.y) * (b.x - o.x)


def find_concave_hull(points: Sequence[P]) -> list[P]:
    """Boundary walk of a point set, keeping collinear boundary points.

    Coordinates are rounded. The walk starts at the left-most point (top-most
    on ties) and runs W -> N -> E -> S on screen. Collinear points on an edge
    are kept in walk order since grid construction reads anchor rows off the
    hull edges; scipy's ConvexHull would drop them.
    """
    rounded = remove_duplicate_points(moved(p, round_half_up(p.x), round_half_up(p.y)) for p in points)
    if len(rounded) < 3:
        return rounded

    ordered = sorted(rounded, key=lambda p: (p.x, p.y))
    if all(abs(_cross(ordered[0], ordered[-1], p)) < _EPS for p in ordered):
        return ordered

    def chain(seq: Iterable[P]) -> list[P]:
        out: list[P] = []
        for p in seq:
            while len(out) >= 2 and _cross(out[-2], out[-1], p) < 0:
                out.pop()
            out.append(p)
        return out

    lower = chain(ordered)
    upper = chain(reversed(ordered))
    return remove_duplicate_points(lower[:-1] + upper[:-1])


def _is_clockwise(d1: Direction, d2: Direction) -> bool:
    i1 = _HULL_ORDER.index(d1)
    i2 = _HULL_ORDER.index(d2)
    if i2 < i1:
        i2 += 4
    return 0 < i2 - i1 <= 2


_PRIMARY = {
    Direction.NORTH: lambda p: round_half_up(p.y),  # min y
    Direction.SOUTH: lambda p: round_half_up(-p.y),  # max y
    Direction.EAST: lambda p: round_half_up(-p.x),  # max x
    Direction.WEST: lambda p: round_half_up(p.x),  # min x
}

_SECONDARY = {
    Direction.NORTH: lambda p: round_half_up(p.x),
    Direction.SOUTH: lambda p: round_half_up(p.x),
    Direction.EAST: lambda p: round_half_up(p.y),
    Direction.WEST: lambda p: round_half_up(p.y),
}


def _extreme_index(hull: Sequence[Point], direction: Direction, other: Direction) -> int:
    primary = _PRIMARY[direction]
    secondary = _SECONDARY[other]
    best = 0
    for idx, p in enumerate(hull):
        cur, low = primary(p), primary(hull[best])
        if cur < low or (cur == low and secondary(p) < secondary(hull[best])):
            best = idx
    return best


def get_hull_segment(hull: Sequence[P], direction1: Direction, direction2: Direction) -> list[P]:
    """Hull points from the ``direction1`` extreme to the ``direction2`` extreme, inclusive."""
    if len(hull) < 3:
        return list(hull)
    path = list(hull) if _is_clockwise(direction1, direction2) else list(reversed(hull))
    start = _extreme_index(path, direction1, direction2)
    end = _extreme_index(path, direction2, direction1)
    if start <= end:
        return path[start:end + 1]
    return path[start:] + path[:end + 1]


def create_grid_points(
    points: Sequence[P],
    direction1: Direction = Direction.NORTH,
    direction2: Direction = Direction.WEST,
) -> list[P]:
    """Peel hull rows off a tiled anchor set, naming cells ``{name}-a1``, ``{name}-b2``...

    Each pass takes the hull edge between the two directions as one row. A
    single point is returned unchanged. Rows stop after ``z``.
    """
    if len(points) <= 1:
        return list(points)

    remaining = [moved(p, round_half_up(p.x), round_half_up(p.y)) for p in points]
    grid: list[P] = []
    row = "a"
    while remaining:
        segment = get_hull_segment(find_concave_hull(remaining), direction1, direction2)
        if not segment:
            break
        for idx, p in enumerate(segment):
            grid.append(p.model_copy(update={"name": f"{p.name}-{row}{idx + 1}"}))
        used = {(p.x, p.y) for p in segment}
        remaining = [p for p in remaining if (p.x, p.y) not in used]
        row = chr(ord(row) + 1)
        if row > "z":
            break
    return grid


def calculate_centroid(polygon: Sequence[Point]) -> Point:
    """Area centroid of a polygon; mean of the vertices when degenerate."""
    if not polygon:
        return Point()
    if len(polygon) >= 3:
        poly = Polygon([(p.x, p.y) for p in polygon])
        if poly.area > _EPS:
            c = poly.centroid
            return Point(x=c.x, y=c.y)
    cx, cy = to_array(polygon).mean(axis=0)
    return Point(x=float(cx), y=float(cy))


def calculate_bounding_box(points: Sequence[Point]) -> Rect:
    if not points:
        return Rect()
    arr = to_array(points)
    xmin, ymin = arr.min(axis=0)
    xmax, ymax = arr.max(axis=0)
    return Rect(x=float(xmin), y=float(ymin), width=float(xmax - xmin), height=float(ymax - ymin))


def is_point_in_hull(point: Point, hull: Sequence[Point]) -> bool:
    if len(hull) < 3:
        return False
    return Polygon([(p.x, p.y) for p in hull]).contains(ShapelyPoint(point.x, point.y))


def offset_path(points: Sequence[Point], center: Point, placement_distance: float) -> list[Point]:
    """Push every point radially away from ``center`` by ``placement_distance``."""
    out: list[Point] = []
    for p in points:
        dx, dy = p.x - center.x, p.y - center.y
        dist = math.hypot(dx, dy)
        if dist < _EPS:
            out.append(Point(x=p.x, y=p.y))
            continue
        out.append(Point(x=p.x + placement_distance * dx / dist, y=p.y + placement_distance * dy / dist))
    return out


# ---------------------------------------------------------------------------
# Hull smoothing
# ---------------------------------------------------------------------------


def interpolate_points(start: Point, end: Point, spacing: float) -> list[Point]:
    """Evenly spaced points strictly between ``start`` and ``end``, 3 decimals."""
    total = distance(start, end)
    if total <= spacing:
        return []
    n = math.ceil(total / spacing)
    return [
        Point(
            x=round(start.x + (end.x - start.x) * i / n, 3),
            y=round(start.y + (end.y - start.y) * i / n, 3),
        )
        for i in range(1, n)
    ]


def vertex_angle(p1: Point, p2: Point, p3: Point) -> float:
    """Interior angle at ``p2`` in degrees; 180 for degenerate edges."""
    v1 = np.array([p1.x - p2.x, p1.y - p2.y])
    v2 = np.array([p3.x - p2.x, p3.y - p2.y])
    m1, m2 = np.linalg.norm(v1), np.linalg.norm(v2)
    if m1 < _EPS or m2 < _EPS:
        return 180.0
    cos_theta = float(np.clip(np.dot(v1, v2) / (m1 * m2), -1.0, 1.0))
    return math.degrees(math.acos(cos_theta))


def _unit(v: NDArray[np.float64]) -> NDArray[np.float64]:
    mag = float(np.linalg.norm(v))
    return np.zeros(2) if mag < _EPS else v / mag


def _blunt_corner(p1: Point, p2: Point, p3: Point, threshold: float) -> Point:
    if abs(_cross(p1, p2, p3)) < _EPS:
        return p2
    angle = vertex_angle(p1, p2, p3)
    if angle >= threshold:
        return p2

    v1 = _unit(np.array([p1.x - p2.x, p1.y - p2.y]))
    v2 = _unit(np.array([p3.x - p2.x, p3.y - p2.y]))
    bisector = _unit(v1 + v2)
    if not bisector.any():
        return p2

    d1, d2 = distance(p1, p2), distance(p2, p3)
    move = (d1 + d2) / 2 * math.tan(math.radians((threshold - angle) / 2))
    move = min(move, min(d1, d2) / 2)
    x, y = p2.x + bisector[0] * move, p2.y + bisector[1] * move
    if not (math.isfinite(x) and math.isfinite(y)):
        return p2
    return Point(x=x, y=y)


def create_smooth_hull(
    points: Sequence[Point],
    max_distance: float = 100.0,
    threshold_angle: float = 120.0,
) -> list[Point]:
    """Densified hull with corners sharper than ``threshold_angle`` (degrees) blunted."""
    if len(points) < 3:
        return list(points)

    hull = [Point(x=p.x, y=p.y) for p in find_concave_hull(points)]

    dense = [hull[0]]
    for i, current in enumerate(hull):
        nxt = hull[(i + 1) % len(hull)]
        dense.extend(interpolate_points(current, nxt, max_distance))
        if i < len(hull) - 1:
            dense.append(nxt)

    n = len(dense)
    smoothed = [_blunt_corner(dense[i - 1], dense[i], dense[(i + 1) % n], threshold_angle) for i in range(n)]

    result = [smoothed[0]]
    for current, nxt in zip(smoothed, smoothed[1:]):
        result.extend(interpolate_points(current, nxt, max_distance))
        result.append(nxt)
    return result
