"""POST /api/diagram/* — compile, anchor queries, structural edits, validation, loading."""

from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import APIRouter, Depends, HTTPException

from isoscene.config import Settings
from isoscene.dependencies import get_canvas_size, get_component_library, get_settings, get_shape_library
from isoscene.engine import scene_graph
from isoscene.engine.attachments import find_closest_attachment_point, get_available_attachment_points
from isoscene.engine.compiler import compile_diagram, compute_component_bounds
from isoscene.engine.component_library import ComponentLibrary
from isoscene.engine.serialization import DiagramLoadError, deserialize_diagram_components, validation_errors
from isoscene.engine.shape_library import ShapeLibrary
from isoscene.models.diagram import CanvasSize, DiagramComponent
from isoscene.models.requests import (
    AttachmentPointsRequest,
    ClosestAttachmentRequest,
    CompileRequest,
    EditRequest,
    LoadDiagramRequest,
    ValidateRequest,
)
from isoscene.models.responses import (
    AttachmentPointsResponse,
    ClosestAttachmentResponse,
    CompileResponse,
    EditResponse,
    LoadDiagramResponse,
    ValidateResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/diagram")


@router.post("/compile", response_model=CompileResponse)
async def compile_endpoint(
    req: CompileRequest,
    config: Settings = Depends(get_settings),
    shapes: ShapeLibrary = Depends(get_shape_library),
    components: ComponentLibrary = Depends(get_component_library),
    canvas: CanvasSize = Depends(get_canvas_size),
) -> CompileResponse:
    library = ShapeLibrary([*shapes.get_all_shapes(), *req.shapes]) if req.shapes else shapes
    show = config.show_attachment_points if req.show_attachment_points is None else req.show_attachment_points
    result = compile_diagram(req.components, req.canvas_size or canvas, library, show, components)
    return CompileResponse(
        svg=result.content,
        components=result.processed_components,
        bounds=compute_component_bounds(result.processed_components, library, result.content, components),
    )


@router.post("/attachment-points", response_model=AttachmentPointsResponse)
async def attachment_points(
    req: AttachmentPointsRequest,
    shapes: ShapeLibrary = Depends(get_shape_library),
    components: ComponentLibrary = Depends(get_component_library),
    canvas: CanvasSize = Depends(get_canvas_size),
) -> AttachmentPointsResponse:
    processed = compile_diagram(req.components, canvas, shapes, False, components).processed_components
    return AttachmentPointsResponse(available=get_available_attachment_points(processed, req.selected_id))


@router.post("/closest-attachment", response_model=ClosestAttachmentResponse)
async def closest_attachment(
    req: ClosestAttachmentRequest,
    shapes: ShapeLibrary = Depends(get_shape_library),
    components: ComponentLibrary = Depends(get_component_library),
    canvas: CanvasSize = Depends(get_canvas_size),
) -> ClosestAttachmentResponse:
    processed = compile_diagram(req.components, canvas, shapes, False, components).processed_components
    target = scene_graph.find_component(processed, req.component_id)
    if target is None:
        # Compiled ids carry the shape- prefix
        target = scene_graph.find_component(processed, f"shape-{req.component_id}")
    if target is None:
        raise HTTPException(status_code=404, detail=f"Component {req.component_id} not found")
    return ClosestAttachmentResponse(attachment=find_closest_attachment_point(req.point, target))


@router.post("/validate", response_model=ValidateResponse)
async def validate(req: ValidateRequest) -> ValidateResponse:
    errors = validation_errors(req.data)
    return ValidateResponse(valid=not errors, errors=errors)


@router.post("/load", response_model=LoadDiagramResponse)
async def load(req: LoadDiagramRequest) -> LoadDiagramResponse:
    try:
        components = deserialize_diagram_components(req.data)
    except DiagramLoadError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return LoadDiagramResponse(components=components)


# ---------------------------------------------------------------------------
# Structural edits
# ---------------------------------------------------------------------------


def _require(req: EditRequest, field: str) -> Any:
    value = getattr(req, field)
    if value is None:
        raise HTTPException(status_code=400, detail=f"{req.action} requires {field}")
    return value


EditResult = tuple[list[DiagramComponent], DiagramComponent | None, list[DiagramComponent]]
EditHandler = Callable[[EditRequest, ShapeLibrary, ComponentLibrary], EditResult]


def _add_3d_shape(req: EditRequest, shapes: ShapeLibrary, library: ComponentLibrary) -> EditResult:
    updated, new = scene_graph.add_3d_shape(
        req.components, shapes, _require(req, "shape_name"), req.position, req.attachment_point, req.selected_id
    )
    return updated, new, []


def _add_component(req: EditRequest, shapes: ShapeLibrary, library: ComponentLibrary) -> EditResult:
    updated, new = scene_graph.add_component_to_scene(
        req.components, library, _require(req, "component_id"), req.position, req.attachment_point, req.selected_id
    )
    return updated, new, []


def _add_2d_shape(req: EditRequest, shapes: ShapeLibrary, library: ComponentLibrary) -> EditResult:
    updated = scene_graph.add_2d_shape(
        req.components,
        req.selected_id,
        _require(req, "shape_name"),
        _require(req, "attach_to"),
        req.position,
        req.attachment_point,
    )
    return updated, None, []


def _remove_3d_shape(req: EditRequest, shapes: ShapeLibrary, library: ComponentLibrary) -> EditResult:
    return scene_graph.remove_3d_shape(req.components, _require(req, "selected_id")), None, []


def _remove_2d_shape(req: EditRequest, shapes: ShapeLibrary, library: ComponentLibrary) -> EditResult:
    updated = scene_graph.remove_2d_shape(req.components, _require(req, "selected_id"), _require(req, "index"))
    return updated, None, []


def _cut(req: EditRequest, shapes: ShapeLibrary, library: ComponentLibrary) -> EditResult:
    return scene_graph.cut_3d_shape(req.components, _require(req, "selected_id")), None, []


def _cancel_cut(req: EditRequest, shapes: ShapeLibrary, library: ComponentLibrary) -> EditResult:
    return scene_graph.cancel_cut(req.components, req.selected_id), None, []


def _copy(req: EditRequest, shapes: ShapeLibrary, library: ComponentLibrary) -> EditResult:
    return list(req.components), None, scene_graph.copy_3d_shape(req.components, req.selected_id)


def _paste_copied(req: EditRequest, shapes: ShapeLibrary, library: ComponentLibrary) -> EditResult:
    updated, head = scene_graph.paste_copied_3d_shapes(
        req.components, req.copied, _require(req, "target_id"), req.position, req.attachment_point
    )
    return updated, head, []


def _paste_cut(req: EditRequest, shapes: ShapeLibrary, library: ComponentLibrary) -> EditResult:
    updated, head = scene_graph.paste_cut_3d_shapes(
        req.components, _require(req, "target_id"), req.position, req.attachment_point
    )
    return updated, head, []


_EDIT_HANDLERS: dict[str, EditHandler] = {
    "add_3d_shape": _add_3d_shape,
    "add_component": _add_component,
    "add_2d_shape": _add_2d_shape,
    "remove_3d_shape": _remove_3d_shape,
    "remove_2d_shape": _remove_2d_shape,
    "cut": _cut,
    "cancel_cut": _cancel_cut,
    "copy": _copy,
    "paste_copied": _paste_copied,
    "paste_cut": _paste_cut,
}


@router.post("/edit", response_model=EditResponse)
async def edit(
    req: EditRequest,
    shapes: ShapeLibrary = Depends(get_shape_library),
    library: ComponentLibrary = Depends(get_component_library),
) -> EditResponse:
    updated, new, clipboard = _EDIT_HANDLERS[req.action](req, shapes, library)
    changed = updated != list(req.components)
    logger.info("Edit %s: %s", req.action, "applied" if changed or clipboard else "no change")
    return EditResponse(
        components=updated,
        changed=changed,
        new_id=new.id if new is not None else None,
        clipboard=clipboard,
    )
