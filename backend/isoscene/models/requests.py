"""API request models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from isoscene.models.diagram import CanvasSize, DiagramComponent, Point, Shape


class CompileRequest(BaseModel):
    components: list[DiagramComponent] = Field(..., description="Scene graph, parent-first")
    shapes: list[Shape] = Field(
        default_factory=list,
        description="Extra shape templates for this request; shadow library shapes of the same name",
    )
    canvas_size: CanvasSize | None = Field(default=None, description="Defaults to the configured canvas")
    show_attachment_points: bool | None = Field(default=None, description="Defaults to the configured flag")


class AttachmentPointsRequest(BaseModel):
    components: list[DiagramComponent]
    selected_id: str | None = Field(default=None, description="Component whose anchors to list")


class ClosestAttachmentRequest(BaseModel):
    components: list[DiagramComponent]
    component_id: str = Field(..., description="Component that was clicked")
    point: Point = Field(..., description="Click position in the component's local coordinates")


EditAction = Literal[
    "add_3d_shape",
    "add_component",
    "add_2d_shape",
    "remove_3d_shape",
    "remove_2d_shape",
    "cut",
    "cancel_cut",
    "copy",
    "paste_copied",
    "paste_cut",
]


class EditRequest(BaseModel):
    action: EditAction
    components: list[DiagramComponent] = Field(default_factory=list)
    selected_id: str | None = None
    shape_name: str | None = Field(default=None, description="Library shape for add_3d_shape / add_2d_shape")
    component_id: str | None = Field(default=None, description="Library component for add_component")
    position: str = "center"
    attachment_point: str | None = None
    attach_to: str | None = Field(default=None, description="Host anchor suffix for add_2d_shape")
    index: int | None = Field(default=None, description="Decoration index for remove_2d_shape")
    target_id: str | None = Field(default=None, description="Paste target")
    copied: list[DiagramComponent] = Field(default_factory=list, description="Clipboard for paste_copied")


class ValidateRequest(BaseModel):
    data: Any = Field(..., description="Parsed diagram JSON to check")


class LabelLayoutRequest(BaseModel):
    components: list[DiagramComponent]
    kind: str = Field(default="hull-based", description="Layout strategy name")
    label_ids: list[str] | None = Field(
        default=None,
        description="Components that get a label; defaults to those carrying metadata, else all",
    )
    canvas_size: CanvasSize | None = None


class CreateComponentRequest(BaseModel):
    name: str
    description: str = ""
    components: list[DiagramComponent]
    overwrite: bool = False


class LabelMeasureRequest(BaseModel):
    text: str
    width: float | None = Field(default=None, description="Wrap width; defaults to the layer label width")


class LoadDiagramRequest(BaseModel):
    data: Any = Field(..., description="Persisted diagram JSON (an array of components)")
