"""Tests for metadata label placement strategies."""

import math

import pytest

from isoscene.engine.config import HullLayoutConfig, RectangularLayoutConfig
from isoscene.engine.label_layout import (
    HullBasedLayoutManager,
    RectangularLayoutManager,
    available_strategies,
    component_positions,
    create_layout_manager,
    layout_strategy,
)
from isoscene.models.diagram import ComponentBounds, ComponentPosition, Point, Rect


def _bounds(x, y, w, h):
    return ComponentBounds(bounds=Rect(x=x, y=y, width=w, height=h), center=Point(x=x + w / 2, y=y + h / 2))


@pytest.fixture
def side_by_side():
    """Two adjacent 100x100 components and the root box around both."""
    return {
        "root": _bounds(0, 0, 200, 100),
        "a": _bounds(0, 0, 100, 100),
        "b": _bounds(100, 0, 100, 100),
    }


def _rectangular():
    return RectangularLayoutManager(Rect(width=200, height=100), Point(x=500, y=500))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def test_strategies_registered():
    assert available_strategies() == ["hull-based", "rectangular"]


def test_create_layout_manager(side_by_side):
    root = side_by_side["root"]
    manager = create_layout_manager("hull-based", root.bounds, root.center, side_by_side)
    assert isinstance(manager, HullBasedLayoutManager)
    assert isinstance(create_layout_manager("rectangular", root.bounds, root.center), RectangularLayoutManager)


def test_unknown_layout_kind():
    with pytest.raises(ValueError):
        create_layout_manager("radial", Rect(), Point())


def test_duplicate_strategy_rejected():
    with pytest.raises(ValueError):
        layout_strategy("rectangular")(RectangularLayoutManager)


# ---------------------------------------------------------------------------
# Common frame
# ---------------------------------------------------------------------------


def test_layout_bounds_and_angle():
    manager = _rectangular()
    b = manager.layout_bounds
    assert (b.left, b.right, b.top, b.bottom) == (250, 750, 300, 700)
    assert manager.calculate_angle(Point(x=600, y=500)) == 0
    assert manager.calculate_angle(Point(x=500, y=600)) == pytest.approx(math.pi / 2)


def test_component_positions(side_by_side):
    positions = component_positions(side_by_side, ["a", "b", "missing"])
    assert [p.component_id for p in positions] == ["a", "b"]
    assert positions[0].angle == pytest.approx(math.pi)
    assert positions[1].angle == 0
    assert component_positions({"a": side_by_side["a"]}, ["a"]) == []


# ---------------------------------------------------------------------------
# Rectangular
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "angle, side",
    [(0, "right"), (math.pi / 2, "bottom"), (math.pi, "left"), (-math.pi / 2, "top"), (math.radians(44), "right")],
)
def test_side_from_angle(angle, side):
    assert RectangularLayoutManager.side_from_angle(angle) == side


def test_project_to_rectangle():
    manager = _rectangular()
    right = manager.project_to_rectangle(0)
    assert (right.x, right.y) == (750, 500)
    bottom = manager.project_to_rectangle(math.pi / 2)
    assert bottom.x == pytest.approx(500)
    assert bottom.y == 700


def test_rectangular_layout_pushes_crowded_labels_apart():
    manager = _rectangular()
    components = [
        ComponentPosition(component_id="a", angle=0, center=Point(x=600, y=500)),
        ComponentPosition(component_id="b", angle=0, center=Point(x=610, y=500)),
    ]
    placements = manager.calculate_layout(components)
    a, b = placements["a"].position, placements["b"].position
    assert (a.x, a.y) == (750, 500)
    assert math.hypot(b.x - a.x, b.y - a.y) >= manager.config.min_spacing
    assert placements["a"].alignment == "left"
    assert manager.get_points() == []


def test_rectangular_layout_gives_up_after_max_attempts():
    manager = RectangularLayoutManager(
        Rect(width=200, height=100),
        Point(x=500, y=500),
        config=RectangularLayoutConfig(min_spacing=1000, spacing_adjust_factor=0.01, max_attempts=2),
    )
    components = [
        ComponentPosition(component_id="a", angle=0, center=Point(x=600, y=500)),
        ComponentPosition(component_id="b", angle=0, center=Point(x=600, y=500)),
    ]
    placements = manager.calculate_layout(components)
    # still placed, best effort
    assert set(placements) == {"a", "b"}


def test_rectangular_alignment_left_of_center():
    manager = _rectangular()
    placements = manager.calculate_layout([ComponentPosition(component_id="a", angle=math.pi, center=Point())])
    assert placements["a"].alignment == "right"


# ---------------------------------------------------------------------------
# Hull-based
# ---------------------------------------------------------------------------


def test_hull_layout_keeps_labels_apart(side_by_side):
    root = side_by_side["root"]
    config = HullLayoutConfig()
    manager = HullBasedLayoutManager(root.bounds, root.center, side_by_side, config)
    placements = manager.calculate_layout(component_positions(side_by_side, ["a", "b"]))

    assert set(placements) == {"a", "b"}
    vertices = {(v.x, v.y) for v in manager.vertices}
    a, b = placements["a"].position, placements["b"].position
    assert (a.x, a.y) in vertices
    assert (b.x, b.y) in vertices
    assert (a.x, a.y) != (b.x, b.y)
    assert abs(a.y - b.y) >= config.min_y_spacing or abs(a.x - b.x) >= config.min_spacing


def test_hull_path_surrounds_components(side_by_side):
    root = side_by_side["root"]
    manager = HullBasedLayoutManager(root.bounds, root.center, side_by_side)
    points = manager.get_points()
    assert points
    # offset outward, so nothing lies strictly inside the component area
    assert not any(0 < p.x < 200 and 0 < p.y < 100 for p in points)


def test_hull_alignment_follows_vertex_side(side_by_side):
    root = side_by_side["root"]
    manager = HullBasedLayoutManager(root.bounds, root.center, side_by_side)
    placements = manager.calculate_layout(component_positions(side_by_side, ["a"]))
    p = placements["a"]
    expected = "left" if p.position.x <= side_by_side["a"].center.x else "right"
    assert p.alignment == expected


def test_hull_component_without_bounds_takes_first_vertex(side_by_side):
    root = side_by_side["root"]
    manager = HullBasedLayoutManager(root.bounds, root.center, side_by_side)
    placements = manager.calculate_layout([ComponentPosition(component_id="ghost", angle=0, center=Point())])
    first = manager.vertices[0]
    assert (placements["ghost"].position.x, placements["ghost"].position.y) == (first.x, first.y)
    assert placements["ghost"].alignment == "left"


def test_hull_layout_with_no_components():
    manager = HullBasedLayoutManager(Rect(), Point(), {})
    assert manager.calculate_layout([ComponentPosition(component_id="a", angle=0, center=Point())]) == {}
