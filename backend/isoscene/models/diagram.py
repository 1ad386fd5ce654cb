"""Core scene data model: shapes, diagram components, reusable components.

Attribute names are snake_case; the persisted/wire JSON uses the camelCase
aliases, so dump with ``by_alias=True`` when writing files or responses.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Point(BaseModel):
    model_config = {"populate_by_name": True}

    x: float = 0.0
    y: float = 0.0


class AttachmentPoint(Point):
    """A named anchor coordinate, e.g. ``attach-top`` or ``attach-front-left-2``."""

    name: str


class Attached2DShape(BaseModel):
    model_config = {"populate_by_name": True}

    name: str  # 2D shape name in the shape library
    attached_to: str = Field(..., alias="attachedTo")  # anchor suffix on the 3D host, e.g. "top"


class DiagramComponent(BaseModel):
    """A node in the scene graph, positioned relative to its parent's anchor."""

    model_config = {"populate_by_name": True}

    id: str
    shape: str  # shape name, or library component id when source == "component"
    position: str = "center"  # how this node attaches to its parent
    relative_to_id: str | None = Field(default=None, alias="relativeToId")
    attached_2d_shapes: list[Attached2DShape] = Field(default_factory=list, alias="attached2DShapes")
    # Computed on every compile, never persisted
    attachment_points: list[AttachmentPoint] = Field(default_factory=list, alias="attachmentPoints")
    parent_attachment_points: list[AttachmentPoint] = Field(default_factory=list, alias="parentAttachmentPoints")
    absolute_position: Point | None = Field(default=None, alias="absolutePosition")
    cut: bool = False  # staged for cut/paste
    source: Literal["shape", "component"] = "shape"
    type: str | None = None
    metadata: dict[str, Any] | None = None


class Shape(BaseModel):
    """Immutable shape library template."""

    model_config = {"populate_by_name": True}

    name: str
    type: Literal["2D", "3D"] = "3D"
    attach_to: str | None = Field(default=None, alias="attachTo")
    svg_content: str = Field(..., alias="svgContent")
    svg_file: str | None = Field(default=None, alias="svgFile")


class Component(BaseModel):
    """A saved, reusable scene subgraph rendered as one opaque shape."""

    model_config = {"populate_by_name": True}

    id: str
    name: str
    description: str = ""
    diagram_components: list[DiagramComponent] = Field(default_factory=list, alias="diagramComponents")
    attachment_points: list[AttachmentPoint] = Field(default_factory=list, alias="attachmentPoints")
    svg_content: str | None = Field(default=None, alias="svgContent")
    created: datetime = Field(default_factory=_now)
    last_modified: datetime = Field(default_factory=_now, alias="lastModified")


class CanvasSize(BaseModel):
    width: float = 1000.0
    height: float = 1000.0

    @property
    def center(self) -> Point:
        return Point(x=self.width / 2, y=self.height / 2)


class Rect(BaseModel):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class ComponentBounds(BaseModel):
    bounds: Rect
    center: Point


class ComponentPosition(BaseModel):
    """A label owner: component id, its angle around the diagram center, its center."""

    model_config = {"populate_by_name": True}

    component_id: str = Field(..., alias="componentId")
    angle: float
    center: Point


class LabelPlacement(BaseModel):
    model_config = {"populate_by_name": True}

    component_id: str = Field(..., alias="componentId")
    position: Point
    alignment: Literal["left", "right"]


class ClosestAttachment(BaseModel):
    """Decoded result of a click-to-attach lookup."""

    model_config = {"populate_by_name": True}

    position: str = "top"
    attachment_point: str = Field(default="none", alias="attachmentPoint")
