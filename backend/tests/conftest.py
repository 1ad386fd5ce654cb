"""Shared test fixtures."""

from __future__ import annotations

import pytest

from isoscene.engine.component_library import ComponentLibrary
from isoscene.engine.shape_library import ShapeLibrary
from isoscene.models.diagram import CanvasSize, DiagramComponent, Shape


# Isometric block: a diamond top face with the six standard anchors.
# top (0,-20), bottom (0,20), front-left (-20,10), front-right (20,10),
# back-left (-20,-10), back-right (20,-10)
CUBE_SVG = '''<svg xmlns="http://www.w3.org/2000/svg">
  <polygon points="0,-20 40,0 0,20 -40,0" fill="#cfd8dc"/>
  <circle id="attach-top" cx="0" cy="-20" r="2"/>
  <circle id="attach-bottom" cx="0" cy="20" r="2"/>
  <circle id="attach-front-left" cx="-20" cy="10" r="2"/>
  <circle id="attach-front-right" cx="20" cy="10" r="2"/>
  <circle id="attach-back-left" cx="-20" cy="-10" r="2"/>
  <circle id="attach-back-right" cx="20" cy="-10" r="2"/>
</svg>'''

# Wide platform with a 2x2 grid of top anchors and a parent anchor
PLATFORM_SVG = '''<svg xmlns="http://www.w3.org/2000/svg">
  <rect x="-60" y="-30" width="120" height="60" fill="#b0bec5"/>
  <circle id="attach-top" cx="0" cy="-30" r="2"/>
  <circle id="attach-top-1" cx="-20" cy="-20" r="2"/>
  <circle id="attach-top-2" cx="20" cy="-20" r="2"/>
  <circle id="attach-top-3" cx="-20" cy="0" r="2"/>
  <circle id="attach-top-4" cx="20" cy="0" r="2"/>
  <circle id="attach-bottom" cx="0" cy="30" r="2"/>
  <circle id="attach-front-left" cx="-30" cy="15" r="2"/>
  <circle id="attach-front-right" cx="30" cy="15" r="2"/>
  <circle id="attach-back-left" cx="-30" cy="-15" r="2"/>
  <circle id="attach-back-right" cx="30" cy="-15" r="2"/>
  <circle id="parent-attach-top" cx="0" cy="-30" r="2"/>
</svg>'''

# 2D decoration: anchor at its own origin
LABEL_SVG = '''<svg xmlns="http://www.w3.org/2000/svg">
  <rect x="-5" y="-5" width="10" height="10" fill="#ff7043"/>
  <circle id="attach-center" cx="0" cy="0" r="1"/>
</svg>'''


def make_shapes() -> list[Shape]:
    return [
        Shape(name="cube", type="3D", svg_content=CUBE_SVG),
        Shape(name="platform", type="3D", svg_content=PLATFORM_SVG),
        Shape(name="label", type="2D", attach_to="top", svg_content=LABEL_SVG),
    ]


def abc_scene() -> list[DiagramComponent]:
    """A at the root, B front-left of A, C on top of B."""
    return [
        DiagramComponent(id="shape-a", shape="cube"),
        DiagramComponent(id="shape-b", shape="cube", position="front-left", relative_to_id="shape-a"),
        DiagramComponent(id="shape-c", shape="cube", position="top", relative_to_id="shape-b"),
    ]


@pytest.fixture
def shape_library() -> ShapeLibrary:
    return ShapeLibrary(make_shapes())


@pytest.fixture
def component_library(tmp_path) -> ComponentLibrary:
    return ComponentLibrary(tmp_path / "component_library.json")


@pytest.fixture
def canvas() -> CanvasSize:
    return CanvasSize(width=1000, height=1000)


@pytest.fixture
def scene() -> list[DiagramComponent]:
    return abc_scene()
