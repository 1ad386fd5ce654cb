"""Shape template markup: parse into groups, read and rewrite anchor circles.

Anchors are ``<circle id="attach-...">`` markers baked into a shape's SVG;
``<circle id="parent-attach-...">`` markers declare the anchors a shape
exposes when it acts as a parent. The SVG default namespace is stripped on
parse so fragments serialize as plain ``<g>`` markup.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Iterable

from isoscene.models.diagram import AttachmentPoint

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

ANCHOR_PREFIX = "attach-"
PARENT_ANCHOR_PREFIX = "parent-attach-"

ET.register_namespace("xlink", XLINK_NS)

_TRANSLATE_RE = re.compile(r"translate\(\s*([-+\d.eE]+)(?:[\s,]+([-+\d.eE]+))?\s*\)")


def fmt_number(value: float) -> str:
    """Compact numeric attribute value: ``500`` rather than ``500.0``."""
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def _strip_ns(el: ET.Element) -> None:
    for node in el.iter():
        if isinstance(node.tag, str) and node.tag.startswith(f"{{{SVG_NS}}}"):
            node.tag = node.tag[len(SVG_NS) + 2:]


def parse_markup(markup: str) -> ET.Element:
    """Parse SVG markup; raises ``ET.ParseError`` on malformed input."""
    root = ET.fromstring(markup)
    _strip_ns(root)
    return root


def template_group(svg_content: str, group_id: str) -> ET.Element:
    """A ``<g id=group_id>`` holding the children of a template's root ``<svg>``."""
    root = parse_markup(svg_content)
    group = ET.Element("g", {"id": group_id})
    if root.tag == "svg":
        group.extend(list(root))
    else:
        group.append(root)
    return group


def to_string(el: ET.Element) -> str:
    return ET.tostring(el, encoding="unicode")


def _as_element(source: ET.Element | str) -> ET.Element:
    return parse_markup(source) if isinstance(source, str) else source


def _circles(el: ET.Element, prefix: str) -> Iterable[ET.Element]:
    for circle in el.iter("circle"):
        if circle.get("id", "").startswith(prefix):
            yield circle


def _point(circle: ET.Element, name: str) -> AttachmentPoint:
    return AttachmentPoint(
        name=name,
        x=float(circle.get("cx", "0") or 0),
        y=float(circle.get("cy", "0") or 0),
    )


def extract_attachment_points(source: ET.Element | str) -> list[AttachmentPoint]:
    """Every ``attach-*`` circle as a named point, in document order."""
    el = _as_element(source)
    return [_point(c, c.get("id", "")) for c in _circles(el, ANCHOR_PREFIX)]


def extract_parent_attachment_points(source: ET.Element | str) -> list[AttachmentPoint]:
    """Every ``parent-attach-*`` circle, renamed without the ``parent-`` prefix."""
    el = _as_element(source)
    return [_point(c, c.get("id", "")[len("parent-"):]) for c in _circles(el, PARENT_ANCHOR_PREFIX)]


def set_translation(el: ET.Element, x: float, y: float) -> None:
    el.set("transform", f"translate({fmt_number(x)}, {fmt_number(y)})")


def parse_translation(transform: str | None) -> tuple[float, float]:
    """Offset of the first ``translate(...)`` in a transform attribute."""
    if not transform:
        return (0.0, 0.0)
    m = _TRANSLATE_RE.search(transform)
    if not m:
        return (0.0, 0.0)
    return (float(m.group(1)), float(m.group(2) or 0.0))


def toggle_attachment_points(el: ET.Element, visible: bool) -> None:
    display = "display: block;" if visible else "display: none;"
    for prefix in (ANCHOR_PREFIX, PARENT_ANCHOR_PREFIX):
        for circle in _circles(el, prefix):
            circle.set("style", display)


def strip_anchor_circles(el: ET.Element) -> int:
    """Remove every anchor and parent-anchor circle. Returns the count removed."""
    removed = 0
    for parent in list(el.iter()):
        for child in list(parent):
            cid = child.get("id", "")
            if child.tag == "circle" and (cid.startswith(ANCHOR_PREFIX) or cid.startswith(PARENT_ANCHOR_PREFIX)):
                parent.remove(child)
                removed += 1
    return removed


def strip_group_ids(el: ET.Element, prefix: str = "shape-") -> None:
    for group in el.iter("g"):
        if group.get("id", "").startswith(prefix):
            del group.attrib["id"]


def inject_anchor_circles(el: ET.Element, points: Iterable[AttachmentPoint], radius: float = 3, fill: str = "red") -> None:
    for p in points:
        ET.SubElement(
            el,
            "circle",
            {"id": p.name, "cx": fmt_number(p.x), "cy": fmt_number(p.y), "r": fmt_number(radius), "fill": fill},
        )


def wrap_svg(content: str, view_box: tuple[float, float, float, float] | None = None) -> str:
    """Wrap fragment markup in a standalone ``<svg>`` document."""
    attrs = f'xmlns="{SVG_NS}"'
    if view_box is not None:
        attrs += ' viewBox="{}"'.format(" ".join(fmt_number(v) for v in view_box))
        attrs += ' width="100%" height="100%" preserveAspectRatio="xMidYMid meet"'
    return f"<svg {attrs}>{content}</svg>"
