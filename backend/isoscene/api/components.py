"""/api/components — the saved component library with import/export, plus the shape library listing."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from isoscene.dependencies import get_canvas_size, get_component_library, get_shape_library
from isoscene.engine.component_library import ComponentLibrary, ComponentNotFoundError
from isoscene.engine.serialization import DiagramLoadError
from isoscene.engine.shape_library import ShapeLibrary
from isoscene.models.diagram import CanvasSize, Component, Shape
from isoscene.models.requests import CreateComponentRequest
from isoscene.models.responses import RenderResponse

router = APIRouter()


@router.get("/shapes", response_model=list[Shape])
async def list_shapes(shapes: ShapeLibrary = Depends(get_shape_library)) -> list[Shape]:
    return shapes.get_all_shapes()


@router.post("/shapes", response_model=Shape, status_code=201)
async def add_shape(shape: Shape, shapes: ShapeLibrary = Depends(get_shape_library)) -> Shape:
    try:
        shapes.add_shape(shape)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return shape


@router.get("/components", response_model=list[Component])
async def list_components(library: ComponentLibrary = Depends(get_component_library)) -> list[Component]:
    return library.get_all_components()


@router.post("/components", response_model=Component, status_code=201)
async def create_component(
    req: CreateComponentRequest,
    library: ComponentLibrary = Depends(get_component_library),
    shapes: ShapeLibrary = Depends(get_shape_library),
    canvas: CanvasSize = Depends(get_canvas_size),
) -> Component:
    if not req.components:
        raise HTTPException(status_code=400, detail="A component needs at least one shape")
    component = library.create_component(req.name, req.description, req.components, canvas, shapes, req.overwrite)
    if component is None:
        raise HTTPException(status_code=409, detail=f"Component {req.name} already exists")
    return component


@router.get("/components/{component_id}/render", response_model=RenderResponse)
async def render_component(
    component_id: str,
    library: ComponentLibrary = Depends(get_component_library),
    shapes: ShapeLibrary = Depends(get_shape_library),
    canvas: CanvasSize = Depends(get_canvas_size),
) -> RenderResponse:
    try:
        svg = library.render_component(component_id, canvas, shapes)
    except ComponentNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"Component {component_id} not found") from e
    return RenderResponse(svg=svg)


@router.delete("/components/{component_id}", status_code=204)
async def delete_component(
    component_id: str,
    library: ComponentLibrary = Depends(get_component_library),
) -> None:
    try:
        library.delete_component(component_id)
    except ComponentNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"Component {component_id} not found") from e


@router.delete("/components", status_code=204)
async def clear_components(library: ComponentLibrary = Depends(get_component_library)) -> None:
    library.clear_library()


@router.get("/components/export")
async def export_components(library: ComponentLibrary = Depends(get_component_library)) -> list[dict[str, Any]]:
    return library.serialize_component_lib()


@router.post("/components/import", response_model=list[Component])
async def import_components(
    data: Any = Body(...),
    library: ComponentLibrary = Depends(get_component_library),
) -> list[Component]:
    try:
        return library.deserialize_component_lib(data)
    except DiagramLoadError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
