"""POST /api/labels/* — place metadata labels and size layer labels."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from isoscene.dependencies import (
    get_canvas_size,
    get_component_library,
    get_layer_label_config,
    get_shape_library,
    get_text_metrics,
)
from isoscene.engine.compiler import compile_diagram, compute_component_bounds
from isoscene.engine.component_library import ComponentLibrary
from isoscene.engine.config import LayerLabelConfig
from isoscene.engine.label_layout import component_positions, create_layout_manager
from isoscene.engine.shape_library import ShapeLibrary
from isoscene.models.diagram import CanvasSize
from isoscene.models.requests import LabelLayoutRequest, LabelMeasureRequest
from isoscene.models.responses import LabelLayoutResponse, LabelMeasureResponse
from isoscene.utils.text_metrics import TextMetrics, measure_label

router = APIRouter(prefix="/labels")


@router.post("/layout", response_model=LabelLayoutResponse)
async def layout(
    req: LabelLayoutRequest,
    shapes: ShapeLibrary = Depends(get_shape_library),
    components: ComponentLibrary = Depends(get_component_library),
    canvas: CanvasSize = Depends(get_canvas_size),
) -> LabelLayoutResponse:
    result = compile_diagram(req.components, req.canvas_size or canvas, shapes, False, components)
    bounds = compute_component_bounds(result.processed_components, shapes, result.content, components)
    root = bounds.get("root")
    if root is None:
        return LabelLayoutResponse()

    try:
        manager = create_layout_manager(req.kind, root.bounds, root.center, bounds)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    if req.label_ids is not None:
        prefixed = {f"shape-{i}" if not i.startswith("shape-") else i for i in req.label_ids}
        label_ids = [c.id for c in result.processed_components if c.id in prefixed]
    else:
        label_ids = [c.id for c in result.processed_components if c.metadata]
        if not label_ids:
            label_ids = [c.id for c in result.processed_components]

    placements = manager.calculate_layout(component_positions(bounds, label_ids))
    return LabelLayoutResponse(placements=placements, path=manager.get_points())


@router.post("/measure", response_model=LabelMeasureResponse)
async def measure(
    req: LabelMeasureRequest,
    label_config: LayerLabelConfig = Depends(get_layer_label_config),
    metrics: TextMetrics = Depends(get_text_metrics),
) -> LabelMeasureResponse:
    box = measure_label(
        req.text,
        req.width or label_config.width,
        metrics,
        font_size=label_config.font_size,
        line_spacing=label_config.line_spacing,
    )
    return LabelMeasureResponse(
        lines=box.lines,
        width=box.width,
        height=box.height,
        font_size=label_config.font_size,
        line_spacing=label_config.line_spacing,
    )
