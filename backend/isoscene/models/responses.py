"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from isoscene.models.diagram import ClosestAttachment, ComponentBounds, DiagramComponent, LabelPlacement, Point


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    shapes_loaded: int = 0
    components_saved: int = 0


class CompileResponse(BaseModel):
    svg: str
    components: list[DiagramComponent] = Field(default_factory=list)
    bounds: dict[str, ComponentBounds] = Field(default_factory=dict)


class AttachmentPointsResponse(BaseModel):
    available: list[str] = Field(default_factory=list)


class ClosestAttachmentResponse(BaseModel):
    attachment: ClosestAttachment


class EditResponse(BaseModel):
    components: list[DiagramComponent] = Field(default_factory=list)
    changed: bool = False
    new_id: str | None = None
    clipboard: list[DiagramComponent] = Field(default_factory=list)


class ValidateResponse(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


class LabelLayoutResponse(BaseModel):
    placements: dict[str, LabelPlacement] = Field(default_factory=dict)
    path: list[Point] = Field(default_factory=list)


class RenderResponse(BaseModel):
    svg: str


class LabelMeasureResponse(BaseModel):
    lines: list[str] = Field(default_factory=list)
    width: float = 0.0
    height: float = 0.0
    font_size: float
    line_spacing: float


class LoadDiagramResponse(BaseModel):
    components: list[DiagramComponent] = Field(default_factory=list)
