"""Bounding boxes of composed markup, honoring ``translate`` transforms."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET

from svgpathtools import parse_path

from isoscene.svg.markup import (
    ANCHOR_PREFIX,
    PARENT_ANCHOR_PREFIX,
    parse_markup,
    parse_translation,
)

logger = logging.getLogger(__name__)

BBox = tuple[float, float, float, float]  # (xmin, ymin, xmax, ymax)

_NUM_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def _f(el: ET.Element, attr: str) -> float:
    try:
        return float(el.get(attr, "0") or 0)
    except ValueError:
        return 0.0


def _union(a: BBox | None, b: BBox | None) -> BBox | None:
    if a is None:
        return b
    if b is None:
        return a
    return (min(a[0], b[0]), min(a[1], b[1]), max(a[2], b[2]), max(a[3], b[3]))


def _is_anchor(el: ET.Element) -> bool:
    cid = el.get("id", "")
    return cid.startswith(ANCHOR_PREFIX) or cid.startswith(PARENT_ANCHOR_PREFIX)


def element_bbox(el: ET.Element) -> BBox | None:
    """Local bounding box of a single drawing element, or None."""
    tag = el.tag
    if tag == "path":
        d = el.get("d")
        if not d:
            return None
        try:
            path = parse_path(d)
        except Exception as e:
            logger.warning("Failed to parse path: %s", e)
            return None
        if len(path) == 0:
            return None
        xmin, xmax, ymin, ymax = path.bbox()
        return (xmin, ymin, xmax, ymax)
    if tag == "circle":
        cx, cy, r = _f(el, "cx"), _f(el, "cy"), _f(el, "r")
        return (cx - r, cy - r, cx + r, cy + r)
    if tag == "ellipse":
        cx, cy, rx, ry = _f(el, "cx"), _f(el, "cy"), _f(el, "rx"), _f(el, "ry")
        return (cx - rx, cy - ry, cx + rx, cy + ry)
    if tag == "rect":
        x, y = _f(el, "x"), _f(el, "y")
        return (x, y, x + _f(el, "width"), y + _f(el, "height"))
    if tag == "line":
        x1, y1, x2, y2 = _f(el, "x1"), _f(el, "y1"), _f(el, "x2"), _f(el, "y2")
        return (min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))
    if tag in ("polygon", "polyline"):
        nums = [float(n) for n in _NUM_RE.findall(el.get("points", ""))]
        if len(nums) < 2:
            return None
        xs, ys = nums[0::2], nums[1::2]
        return (min(xs), min(ys), max(xs), max(ys))
    return None


def tree_bbox(el: ET.Element, skip_anchors: bool = True, offset: tuple[float, float] = (0.0, 0.0)) -> BBox | None:
    """Union of all drawing-element boxes under ``el`` in the outer coordinate space."""
    dx, dy = parse_translation(el.get("transform"))
    ox, oy = offset[0] + dx, offset[1] + dy

    if skip_anchors and _is_anchor(el):
        return None
    box = element_bbox(el)
    if box is not None:
        box = (box[0] + ox, box[1] + oy, box[2] + ox, box[3] + oy)
    for child in el:
        box = _union(box, tree_bbox(child, skip_anchors, (ox, oy)))
    return box


def markup_bbox(markup: str, skip_anchors: bool = True) -> BBox | None:
    """Bounding box of a fragment (several sibling groups) or a full document."""
    root = parse_markup(f"<svg>{markup}</svg>" if not markup.lstrip().startswith("<svg") else markup)
    return tree_bbox(root, skip_anchors)


def padded_view_box(box: BBox, padding: float = 10.0) -> tuple[float, float, float, float]:
    """``(x, y, width, height)`` of ``box`` grown by ``padding`` on every side."""
    xmin, ymin, xmax, ymax = box
    return (xmin - padding, ymin - padding, xmax - xmin + 2 * padding, ymax - ymin + 2 * padding)
