"""Tests for shape template markup handling."""

import xml.etree.ElementTree as ET

import pytest

from isoscene.models.diagram import AttachmentPoint
from isoscene.svg.markup import (
    extract_attachment_points,
    extract_parent_attachment_points,
    fmt_number,
    inject_anchor_circles,
    parse_markup,
    parse_translation,
    set_translation,
    strip_anchor_circles,
    strip_group_ids,
    template_group,
    to_string,
    toggle_attachment_points,
    wrap_svg,
)
from tests.conftest import CUBE_SVG, PLATFORM_SVG


def test_fmt_number():
    assert fmt_number(500.0) == "500"
    assert fmt_number(2.5) == "2.5"
    assert fmt_number(-0.0) == "0"


def test_template_group_strips_namespace():
    group = template_group(CUBE_SVG, "shape-x")
    assert group.tag == "g"
    assert group.get("id") == "shape-x"
    assert group.find("polygon") is not None
    assert "ns0:" not in to_string(group)


def test_parse_markup_rejects_malformed():
    with pytest.raises(ET.ParseError):
        parse_markup("<svg><g></svg>")


def test_extract_attachment_points():
    points = extract_attachment_points(CUBE_SVG)
    by_name = {p.name: (p.x, p.y) for p in points}
    assert by_name == {
        "attach-top": (0, -20),
        "attach-bottom": (0, 20),
        "attach-front-left": (-20, 10),
        "attach-front-right": (20, 10),
        "attach-back-left": (-20, -10),
        "attach-back-right": (20, -10),
    }


def test_extract_parent_attachment_points_renamed():
    parents = extract_parent_attachment_points(PLATFORM_SVG)
    assert [(p.name, p.x, p.y) for p in parents] == [("attach-top", 0, -30)]
    # parent anchors are not regular anchors
    assert all(not p.name.startswith("parent-") for p in extract_attachment_points(PLATFORM_SVG))


def test_translation_round_trip():
    group = template_group(CUBE_SVG, "g")
    set_translation(group, 460, 520.5)
    assert group.get("transform") == "translate(460, 520.5)"
    assert parse_translation(group.get("transform")) == (460, 520.5)
    assert parse_translation(None) == (0, 0)
    assert parse_translation("translate(7)") == (7, 0)


def test_toggle_attachment_points():
    group = template_group(PLATFORM_SVG, "g")
    toggle_attachment_points(group, False)
    styles = {c.get("style") for c in group.iter("circle")}
    assert styles == {"display: none;"}
    toggle_attachment_points(group, True)
    assert {c.get("style") for c in group.iter("circle")} == {"display: block;"}


def test_strip_and_inject_anchors():
    group = template_group(PLATFORM_SVG, "shape-1")
    assert strip_anchor_circles(group) == 11
    assert extract_attachment_points(group) == []

    inject_anchor_circles(group, [AttachmentPoint(name="attach-top", x=1, y=2)])
    assert [(p.name, p.x, p.y) for p in extract_attachment_points(group)] == [("attach-top", 1, 2)]

    strip_group_ids(group)
    assert group.get("id") is None


def test_wrap_svg_view_box():
    markup = wrap_svg("<g/>", (0, 0, 10, 20))
    root = parse_markup(markup)
    assert root.tag == "svg"
    assert root.get("viewBox") == "0 0 10 20"
    assert root.get("preserveAspectRatio") == "xMidYMid meet"
