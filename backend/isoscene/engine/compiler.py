"""Diagram compiler: scene graph + shape library -> one composed SVG fragment."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

from isoscene.engine.attachments import get_attachment_point
from isoscene.engine.scene_graph import (
    calculate_absolute_position,
    reorder_components,
    standardize_component_ids,
)
from isoscene.models.diagram import AttachmentPoint, CanvasSize, ComponentBounds, DiagramComponent, Point, Rect
from isoscene.svg.bounds import markup_bbox, tree_bbox
from isoscene.svg.markup import (
    extract_attachment_points,
    extract_parent_attachment_points,
    set_translation,
    template_group,
    to_string,
    toggle_attachment_points,
)

if TYPE_CHECKING:
    from isoscene.engine.component_library import ComponentLibrary
    from isoscene.engine.shape_library import ShapeLibrary

logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    content: str = ""
    processed_components: list[DiagramComponent] = field(default_factory=list)


@dataclass
class _Rendered:
    group: ET.Element
    attachment_points: list[AttachmentPoint]
    parent_attachment_points: list[AttachmentPoint]


def _render_template(
    component: DiagramComponent,
    canvas_size: CanvasSize,
    shape_library: "ShapeLibrary",
    component_library: "ComponentLibrary | None",
) -> _Rendered | None:
    """Template group and fresh anchors for one component, or None if unavailable."""
    if component.source == "component":
        saved = component_library.get_component(component.shape) if component_library is not None else None
        if saved is None:
            logger.error("Component %s not found in library", component.shape)
            return None
        svg_content = saved.svg_content or component_library.render_component(saved.id, canvas_size, shape_library)
        if not svg_content:
            logger.warning("Component %s rendered empty", component.shape)
            return None
        try:
            group = template_group(svg_content, component.id)
        except ET.ParseError as e:
            logger.warning("Failed to parse component %s: %s", component.shape, e)
            return None
        return _Rendered(group, list(saved.attachment_points), [])

    shape = shape_library.get_shape(component.shape)
    if shape is None:
        logger.warning("Shape %s not found in library", component.shape)
        return None
    try:
        group = template_group(shape.svg_content, component.id)
    except ET.ParseError as e:
        logger.warning("Failed to parse shape %s: %s", component.shape, e)
        return None
    return _Rendered(group, extract_attachment_points(group), extract_parent_attachment_points(group))


def _attach_decorations(component: DiagramComponent, group: ET.Element, shape_library: "ShapeLibrary") -> None:
    for decoration in component.attached_2d_shapes:
        shape = shape_library.get_shape(decoration.name)
        if shape is None:
            logger.warning("Shape %s not found in library", decoration.name)
            continue
        try:
            deco_group = template_group(shape.svg_content, f"{decoration.attached_to}-{decoration.name}")
        except ET.ParseError as e:
            logger.warning("Failed to parse shape %s: %s", decoration.name, e)
            continue

        deco_anchors = extract_attachment_points(deco_group)
        host_anchor = get_attachment_point(component, f"attach-{decoration.attached_to}")
        if not deco_anchors or host_anchor is None:
            logger.warning(
                "Attachment points not found for 2D shape %s or 3D shape %s", decoration.name, component.shape
            )
            continue
        set_translation(deco_group, host_anchor.x - deco_anchors[0].x, host_anchor.y - deco_anchors[0].y)
        group.append(deco_group)


def compile_diagram(
    components: Sequence[DiagramComponent],
    canvas_size: CanvasSize,
    shape_library: "ShapeLibrary",
    show_attachment_points: bool = False,
    component_library: "ComponentLibrary | None" = None,
) -> CompileResult:
    """Resolve every component's position and concatenate the positioned markup.

    Components are processed parent-first, so a reference is always resolved
    before its dependents. A component whose template is missing is kept
    unchanged in ``processed_components`` and contributes no markup.
    """
    ordered = reorder_components(standardize_component_ids(components))
    result = CompileResult()
    processed: dict[str, DiagramComponent] = {}
    memo: dict[str, Point] = {}
    parts: list[str] = []

    for component in ordered:
        rendered = _render_template(component, canvas_size, shape_library, component_library)
        if rendered is None:
            result.processed_components.append(component)
            processed[component.id] = component
            continue

        component = component.model_copy(
            update={
                "attachment_points": rendered.attachment_points,
                "parent_attachment_points": rendered.parent_attachment_points,
            }
        )
        reference = processed.get(component.relative_to_id) if component.relative_to_id else None
        position = calculate_absolute_position(component, reference, canvas_size, ordered, memo)
        memo[component.id] = position
        component = component.model_copy(update={"absolute_position": position})

        set_translation(rendered.group, position.x, position.y)
        _attach_decorations(component, rendered.group, shape_library)
        toggle_attachment_points(rendered.group, show_attachment_points)

        parts.append(to_string(rendered.group))
        result.processed_components.append(component)
        processed[component.id] = component

    result.content = "".join(parts)
    logger.info("Compiled %d of %d components", len(parts), len(ordered))
    return result


def compute_component_bounds(
    processed_components: Sequence[DiagramComponent],
    shape_library: "ShapeLibrary",
    content: str | None = None,
    component_library: "ComponentLibrary | None" = None,
) -> dict[str, ComponentBounds]:
    """Canvas-space bounds per compiled component, plus ``root`` for the whole diagram.

    Library component instances are measured from their stored render, so
    they need ``component_library``; without it they are skipped.
    """
    bounds: dict[str, ComponentBounds] = {}
    for c in processed_components:
        svg_content = _template_content(c, shape_library, component_library)
        if not svg_content or c.absolute_position is None:
            continue
        try:
            box = tree_bbox(template_group(svg_content, c.id))
        except ET.ParseError:
            box = None
        if box is None:
            continue
        ox, oy = c.absolute_position.x, c.absolute_position.y
        bounds[c.id] = _bounds(box[0] + ox, box[1] + oy, box[2] + ox, box[3] + oy)

    root_box = markup_bbox(content) if content else None
    if root_box is not None:
        bounds["root"] = _bounds(*root_box)
    elif bounds:
        boxes = [b.bounds for b in bounds.values()]
        bounds["root"] = _bounds(
            min(b.x for b in boxes),
            min(b.y for b in boxes),
            max(b.x + b.width for b in boxes),
            max(b.y + b.height for b in boxes),
        )
    return bounds


def _template_content(
    component: DiagramComponent,
    shape_library: "ShapeLibrary",
    component_library: "ComponentLibrary | None",
) -> str | None:
    if component.source == "component":
        saved = component_library.get_component(component.shape) if component_library is not None else None
        return saved.svg_content if saved is not None else None
    shape = shape_library.get_shape(component.shape)
    return shape.svg_content if shape is not None else None


def _bounds(xmin: float, ymin: float, xmax: float, ymax: float) -> ComponentBounds:
    return ComponentBounds(
        bounds=Rect(x=xmin, y=ymin, width=xmax - xmin, height=ymax - ymin),
        center=Point(x=(xmin + xmax) / 2, y=(ymin + ymax) / 2),
    )
