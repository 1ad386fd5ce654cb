"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from isoscene.dependencies import get_component_library, get_shape_library
from isoscene.engine.component_library import ComponentLibrary
from isoscene.engine.shape_library import ShapeLibrary
from isoscene.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    shapes: ShapeLibrary = Depends(get_shape_library),
    library: ComponentLibrary = Depends(get_component_library),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version="0.1.0",
        shapes_loaded=len(shapes),
        components_saved=len(library),
    )
