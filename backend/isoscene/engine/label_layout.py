"""Label layout — place metadata labels around the composed diagram without overlap.

Usage:
    manager = create_layout_manager("hull-based", root_bounds, center, bounds_map, HullLayoutConfig())
    placements = manager.calculate_layout(component_positions(bounds_map, components))

Strategies register by name via the ``layout_strategy`` decorator. Both are
greedy: labels are placed one at a time and never revisited.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np
from scipy.spatial.distance import cdist

from isoscene.engine.config import HullLayoutConfig, RectangularLayoutConfig
from isoscene.models.diagram import ComponentBounds, ComponentPosition, LabelPlacement, Point, Rect
from isoscene.utils.geometry import create_smooth_hull, offset_path, to_array

logger = logging.getLogger(__name__)


@dataclass
class LayoutBounds:
    left: float
    right: float
    top: float
    bottom: float


class BaseLayoutManager(ABC):
    """Common frame: diagram center and the padded rectangle around the root bounds."""

    def __init__(self, root_bounds: Rect, svg_center: Point, padding: float) -> None:
        self.svg_center = svg_center
        self.layout_bounds = LayoutBounds(
            left=svg_center.x - root_bounds.width / 2 - padding,
            right=svg_center.x + root_bounds.width / 2 + padding,
            top=svg_center.y - root_bounds.height / 2 - padding,
            bottom=svg_center.y + root_bounds.height / 2 + padding,
        )

    def calculate_angle(self, point: Point) -> float:
        """Angle of ``point`` around the diagram center, radians in (-pi, pi]."""
        return math.atan2(point.y - self.svg_center.y, point.x - self.svg_center.x)

    @abstractmethod
    def get_points(self) -> list[Point]:
        """Candidate placement path, for display."""

    @abstractmethod
    def calculate_layout(self, components: Sequence[ComponentPosition]) -> dict[str, LabelPlacement]:
        ...


_STRATEGIES: dict[str, Callable[..., BaseLayoutManager]] = {}


def layout_strategy(name: str):
    """Decorator to register a layout manager class under ``name``."""

    def decorator(cls):
        if name in _STRATEGIES:
            raise ValueError(f"Duplicate layout strategy: {name}")
        _STRATEGIES[name] = cls
        return cls

    return decorator


def available_strategies() -> list[str]:
    return sorted(_STRATEGIES)


@layout_strategy("rectangular")
class RectangularLayoutManager(BaseLayoutManager):
    """Project each label outward onto the padded bounding rectangle."""

    def __init__(
        self,
        root_bounds: Rect,
        svg_center: Point,
        component_bounds: dict[str, ComponentBounds] | None = None,
        config: RectangularLayoutConfig | None = None,
    ) -> None:
        self.config = config or RectangularLayoutConfig()
        super().__init__(root_bounds, svg_center, self.config.padding)

    @staticmethod
    def side_from_angle(angle: float) -> str:
        degrees = (math.degrees(angle) + 360) % 360
        if degrees >= 315 or degrees < 45:
            return "right"
        if degrees < 135:
            return "bottom"
        if degrees < 225:
            return "left"
        return "top"

    def project_to_rectangle(self, angle: float) -> Point:
        side = self.side_from_angle(angle)
        cos, sin = math.cos(angle), math.sin(angle)
        b, c = self.layout_bounds, self.svg_center
        if side in ("right", "left"):
            x = b.right if side == "right" else b.left
            return Point(x=x, y=c.y + (x - c.x) * sin / cos)
        y = b.bottom if side == "bottom" else b.top
        return Point(x=c.x + (y - c.y) * cos / sin, y=y)

    def adjust_for_overlap(self, placed: Sequence[Point], point: Point, spacing: float) -> Point:
        """Push ``point`` outward while it crowds a placed label; bounded, best effort."""
        x, y = point.x, point.y
        for _ in range(self.config.max_attempts):
            moved = False
            for other in placed:
                dist = math.hypot(x - other.x, y - other.y)
                if dist < spacing:
                    moved = True
                    angle = math.atan2(y - self.svg_center.y, x - self.svg_center.x)
                    step = (spacing - dist) * self.config.spacing_adjust_factor
                    x += math.cos(angle) * step
                    y += math.sin(angle) * step
            if not moved:
                break
        return Point(x=x, y=y)

    def get_points(self) -> list[Point]:
        return []

    def calculate_layout(self, components: Sequence[ComponentPosition]) -> dict[str, LabelPlacement]:
        placements: dict[str, LabelPlacement] = {}
        placed: list[Point] = []
        for comp in sorted(components, key=lambda c: c.angle):
            position = self.adjust_for_overlap(placed, self.project_to_rectangle(comp.angle), self.config.min_spacing)
            alignment = "left" if position.x > self.svg_center.x else "right"
            placements[comp.component_id] = LabelPlacement(
                component_id=comp.component_id, position=position, alignment=alignment
            )
            placed.append(position)
        return placements


@layout_strategy("hull-based")
class HullBasedLayoutManager(BaseLayoutManager):
    """Place labels on vertices of the offset, smoothed silhouette of all components."""

    def __init__(
        self,
        root_bounds: Rect,
        svg_center: Point,
        component_bounds: dict[str, ComponentBounds] | None = None,
        config: HullLayoutConfig | None = None,
    ) -> None:
        self.config = config or HullLayoutConfig()
        super().__init__(root_bounds, svg_center, self.config.padding)
        self.component_bounds = component_bounds or {}
        self.vertices: list[Point] = []

    def bounding_points(self) -> list[Point]:
        points: list[Point] = []
        for cid, cb in self.component_bounds.items():
            if cid == "root":
                continue
            r = cb.bounds
            points.extend(
                [
                    Point(x=r.x, y=r.y),
                    Point(x=r.x + r.width, y=r.y),
                    Point(x=r.x + r.width, y=r.y + r.height),
                    Point(x=r.x, y=r.y + r.height),
                ]
            )
        return points

    def get_points(self) -> list[Point]:
        smoothed = create_smooth_hull(
            self.bounding_points(),
            max_distance=self.config.step_size,
            threshold_angle=self.config.smoothing_angle_degrees,
        )
        return offset_path(smoothed, self.svg_center, self.config.placement_distance)

    def find_optimal_vertex(self, component: ComponentPosition, occupied: list[int]) -> int | None:
        """Index of the nearest free vertex that keeps clear of occupied ones.

        Falls back to the farthest candidate tried when none is clear.
        """
        bound = self.component_bounds.get(component.component_id)
        if bound is None:
            return 0 if self.vertices else None

        free = [i for i in range(len(self.vertices)) if i not in occupied]
        if not free:
            return None

        verts = to_array(self.vertices)
        dists = cdist(verts[free], np.array([[bound.center.x, bound.center.y]]), "sqeuclidean")[:, 0]
        candidates = [free[k] for k in np.argsort(dists, kind="stable")]

        taken = verts[occupied] if occupied else np.zeros((0, 2))
        for idx in candidates:
            if taken.size == 0:
                return idx
            dx = np.abs(taken[:, 0] - verts[idx, 0])
            dy = np.abs(taken[:, 1] - verts[idx, 1])
            if not np.any((dy < self.config.min_y_spacing) & (dx < self.config.min_spacing)):
                return idx
        return candidates[-1]

    def calculate_layout(self, components: Sequence[ComponentPosition]) -> dict[str, LabelPlacement]:
        self.vertices = self.get_points()
        placements: dict[str, LabelPlacement] = {}
        occupied: list[int] = []

        for comp in components:
            idx = self.find_optimal_vertex(comp, occupied)
            if idx is None:
                logger.warning("No free placement vertex left for %s", comp.component_id)
                break
            occupied.append(idx)
            vertex = self.vertices[idx]
            bound = self.component_bounds.get(comp.component_id)
            alignment = "left" if bound is None or vertex.x <= bound.center.x else "right"
            placements[comp.component_id] = LabelPlacement(
                component_id=comp.component_id, position=Point(x=vertex.x, y=vertex.y), alignment=alignment
            )
        return placements


def create_layout_manager(
    kind: str,
    root_bounds: Rect,
    svg_center: Point,
    component_bounds: dict[str, ComponentBounds] | None = None,
    config: RectangularLayoutConfig | HullLayoutConfig | None = None,
) -> BaseLayoutManager:
    cls = _STRATEGIES.get(kind)
    if cls is None:
        raise ValueError(f"Unknown layout type: {kind}")
    return cls(root_bounds, svg_center, component_bounds, config)


def component_positions(
    component_bounds: dict[str, ComponentBounds],
    component_ids: Sequence[str],
) -> list[ComponentPosition]:
    """Label owners with their angle around the diagram's root center, in input order."""
    root = component_bounds.get("root")
    if root is None:
        return []
    positions: list[ComponentPosition] = []
    for cid in component_ids:
        cb = component_bounds.get(cid)
        if cb is None:
            continue
        angle = math.atan2(cb.center.y - root.center.y, cb.center.x - root.center.x)
        positions.append(ComponentPosition(component_id=cid, angle=angle, center=cb.center))
    return positions
