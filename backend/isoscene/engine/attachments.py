"""Attachment-point lookup, normalization and subtree aggregation.

Raw anchors come from shape markup (``isoscene.svg.markup``). This module
turns them into the coarse names offered to users, decodes click-to-attach
lookups, and aggregates the anchors of a whole subgraph into the reduced
set a saved component exposes.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Sequence

import numpy as np

from isoscene.models.diagram import AttachmentPoint, ClosestAttachment, DiagramComponent, Point
from isoscene.utils.geometry import (
    Direction,
    create_grid_points,
    find_center_point,
    find_concave_hull,
    get_hull_segment,
    to_array,
)

logger = logging.getLogger(__name__)

NO_ATTACHMENT = "none"

STANDARD_ANCHORS = frozenset(
    {
        "attach-top",
        "attach-bottom",
        "attach-front-left",
        "attach-front-right",
        "attach-back-left",
        "attach-back-right",
    }
)

# Hull edge holding each diagonal face's anchors
DIAGONAL_SEGMENTS: dict[str, tuple[Direction, Direction]] = {
    "attach-front-left": (Direction.WEST, Direction.SOUTH),
    "attach-front-right": (Direction.EAST, Direction.SOUTH),
    "attach-back-left": (Direction.NORTH, Direction.WEST),
    "attach-back-right": (Direction.NORTH, Direction.EAST),
}

_UNATTACHABLE_RE = re.compile(r"^attach-(bottom|back)")

PointMap = dict[str, AttachmentPoint]
PointListMap = dict[str, list[AttachmentPoint]]


def get_attachment_point(component: DiagramComponent, name: str) -> AttachmentPoint | None:
    for p in component.attachment_points:
        if p.name == name:
            return p
    return None


def get_matching_attachment_points(component: DiagramComponent, pattern: str) -> list[AttachmentPoint]:
    rx = re.compile(pattern)
    return [p for p in component.attachment_points if rx.search(p.name)]


def update_available_attachment_points(component: DiagramComponent) -> list[str]:
    """Coarse anchor names a user may attach to, headed by ``"none"``."""
    names: list[str] = []
    for p in component.attachment_points:
        if not p.name.startswith("attach-"):
            continue
        parts = p.name.split("-")
        name = f"{parts[1]}-{parts[2]}" if len(parts) > 2 else parts[1]
        if name not in names:
            names.append(name)
    return [NO_ATTACHMENT, *names]


def get_available_attachment_points(components: Sequence[DiagramComponent], selected_id: str | None) -> list[str]:
    selected = next((c for c in components if c.id == selected_id), None) if selected_id else None
    if selected is None:
        return []
    return update_available_attachment_points(selected)


def decode_attachment_name(name: str) -> ClosestAttachment:
    """``attach-front-left-2`` -> position ``front-left``, attachment ``front-left-2``."""
    head, *parts = name.split("-")
    if head != "attach" or not parts:
        return ClosestAttachment()
    if len(parts) >= 2 and parts[0] == "front" and parts[1] in ("left", "right"):
        position, rest = f"{parts[0]}-{parts[1]}", parts[2:]
    else:
        position, rest = parts[0], parts[1:]
    attachment = f"{position}-{'-'.join(rest)}" if rest else NO_ATTACHMENT
    return ClosestAttachment(position=position, attachment_point=attachment)


def find_closest_attachment_point(point: Point, component: DiagramComponent) -> ClosestAttachment:
    """Nearest user-attachable anchor to a click in the component's local space."""
    candidates = [p for p in component.attachment_points if not _UNATTACHABLE_RE.match(p.name)]
    if not candidates:
        return ClosestAttachment()
    dists = np.hypot(*(to_array(candidates) - np.array([point.x, point.y])).T)
    closest = candidates[int(np.argmin(dists))]
    return decode_attachment_name(closest.name)


# ---------------------------------------------------------------------------
# Canvas-space anchors
# ---------------------------------------------------------------------------


def _globalize(component: DiagramComponent, points: Sequence[AttachmentPoint]) -> PointMap:
    origin = component.absolute_position
    if origin is None:
        return {}
    return {p.name: p.model_copy(update={"x": p.x + origin.x, "y": p.y + origin.y}) for p in points}


def get_global_attachment_points(component: DiagramComponent) -> PointMap:
    """Anchors of a compiled component in canvas coordinates, keyed by name."""
    return _globalize(component, component.attachment_points)


def get_global_parent_attachment_points(component: DiagramComponent) -> PointMap:
    return _globalize(component, component.parent_attachment_points)


def extract_global_attachment_points(components: Sequence[DiagramComponent]) -> dict[str, list[AttachmentPoint]]:
    """Canvas-space anchors per component id; components never compiled are skipped."""
    result: dict[str, list[AttachmentPoint]] = {}
    for c in components:
        if c.absolute_position is None:
            logger.warning("Component %s has no absolute position", c.id)
            continue
        if c.attachment_points:
            result[c.id] = [
                p.model_copy(update={"x": p.x + c.absolute_position.x, "y": p.y + c.absolute_position.y})
                for p in c.attachment_points
            ]
    return result


def find_closest_global_attachment_point(
    components: Sequence[DiagramComponent],
    point: Point,
    predicate: Callable[[str], bool] | None = None,
) -> tuple[str, AttachmentPoint, float] | None:
    """``(component id, canvas-space anchor, distance)`` nearest to ``point``."""
    best: tuple[str, AttachmentPoint, float] | None = None
    for component_id, anchors in extract_global_attachment_points(components).items():
        for anchor in anchors:
            if predicate is not None and not predicate(anchor.name):
                continue
            dist = float(np.hypot(point.x - anchor.x, point.y - anchor.y))
            if best is None or dist < best[2]:
                best = (component_id, anchor, dist)
    return best


def find_top_most_components(components: Sequence[DiagramComponent], side: str = "top") -> list[DiagramComponent]:
    """Components with nothing placed at ``side`` of them."""
    return [
        c for c in components
        if not any(o.relative_to_id == c.id and o.position == side for o in components)
    ]


def find_bottom_most_components(components: Sequence[DiagramComponent], side: str = "top") -> list[DiagramComponent]:
    """Roots and components not themselves placed at ``side`` of a parent."""
    return [c for c in components if c.relative_to_id is None or c.position != side]


def get_extreme_attachment_points(
    components: Sequence[DiagramComponent],
) -> tuple[list[AttachmentPoint], list[AttachmentPoint]]:
    """Canvas-space ``attach-top*`` of the top layer and ``attach-bottom*`` of the bottom layer."""
    top = [
        p for c in find_top_most_components(components)
        for name, p in get_global_attachment_points(c).items() if name.startswith("attach-top")
    ]
    bottom = [
        p for c in find_bottom_most_components(components)
        for name, p in get_global_attachment_points(c).items() if name.startswith("attach-bottom")
    ]
    return top, bottom


# ---------------------------------------------------------------------------
# Subgraph aggregation
# ---------------------------------------------------------------------------


def _append_all(source: PointMap, target: PointListMap) -> None:
    for name, p in source.items():
        target.setdefault(name, []).append(p)


def _collect(components: Sequence[DiagramComponent], key: str) -> tuple[list[AttachmentPoint], list[AttachmentPoint]]:
    points: list[AttachmentPoint] = []
    parent_points: list[AttachmentPoint] = []
    for c in components:
        own = get_global_attachment_points(c)
        parent = get_global_parent_attachment_points(c)
        if key in own:
            points.append(own[key])
        if key in parent:
            parent_points.append(parent[key])
    return points, parent_points


def _side_anchors(
    side: str,
    opposite: str,
    bottom_layer: list[DiagramComponent],
    all_points: PointListMap,
    parent_points: PointListMap,
) -> None:
    direction = f"front-{side}"

    back_key = f"attach-back-{opposite}"
    points, parents = _collect(find_bottom_most_components(bottom_layer, direction), back_key)
    if points:
        all_points[back_key] = points
    if parents:
        parent_points[back_key] = parents

    front_key = f"attach-front-{side}"
    points, parents = _collect(find_top_most_components(bottom_layer, direction), front_key)
    if points:
        all_points[front_key] = points
    if parents:
        parent_points[front_key] = parents


def _non_standard_anchors(components: Sequence[DiagramComponent], result: PointMap) -> None:
    groups: PointListMap = {}
    for c in components:
        for name, p in get_global_attachment_points(c).items():
            if not name.startswith("attach-top-") and name not in STANDARD_ANCHORS:
                groups.setdefault(name, []).append(p)
    for points in groups.values():
        for gp in create_grid_points(points, Direction.NORTH, Direction.WEST):
            result[gp.name] = gp


def _top_anchors(components: Sequence[DiagramComponent], all_points: PointListMap, result: PointMap) -> None:
    top_layer = find_top_most_components(components)
    top_points = [
        p.model_copy(update={"name": "attach-top"})
        for c in top_layer
        for name, p in get_global_attachment_points(c).items()
        if name.startswith("attach-top-")
    ]
    if not top_points:
        top_points = [
            p for c in top_layer
            for name, p in get_global_attachment_points(c).items()
            if name == "attach-top"
        ]
    if not top_points:
        return
    all_points["attach-top"] = top_points
    for gp in create_grid_points(top_points, Direction.NORTH, Direction.WEST):
        result[gp.name] = gp


def normalize_attachment_points(all_points: PointListMap, result: PointMap) -> PointMap:
    """Reduce each collected anchor class to one representative point."""
    for name, points in all_points.items():
        if name in DIAGONAL_SEGMENTS and points:
            d1, d2 = DIAGONAL_SEGMENTS[name]
            segment = get_hull_segment(find_concave_hull(points), d1, d2)
            if segment:
                result[name] = find_center_point(segment)
    for name in ("attach-bottom", "attach-top"):
        if all_points.get(name):
            result[name] = find_center_point(all_points[name])
    return result


def aggregate_attachment_points(components: Sequence[DiagramComponent]) -> list[AttachmentPoint]:
    """External anchors of a compiled subgraph, as exposed by a saved component.

    Bottom-layer anchors are collected per name, the outermost layers decide
    the side faces, non-standard and top anchors become grid cells, then each
    class is reduced to one point. Classes with no raw points are absent.
    """
    if not components or not components[0].attachment_points:
        return []

    result: PointMap = {}
    parent_points: PointListMap = {}
    all_points: PointListMap = {}

    bottom_layer = find_bottom_most_components(components)
    for c in bottom_layer:
        _append_all(get_global_parent_attachment_points(c), parent_points)
        _append_all(get_global_attachment_points(c), all_points)

    for side, opposite in (("left", "right"), ("right", "left")):
        _side_anchors(side, opposite, bottom_layer, all_points, parent_points)

    _non_standard_anchors(components, result)
    _top_anchors(components, all_points, result)
    normalize_attachment_points(all_points, result)

    for name, points in parent_points.items():
        result[name] = find_center_point(points).model_copy(update={"name": name})

    logger.debug("Aggregated %d anchors from %d components", len(result), len(components))
    return list(result.values())
