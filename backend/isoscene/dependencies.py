"""FastAPI dependency injection."""

from __future__ import annotations

from fastapi import Request

from isoscene.config import Settings
from isoscene.engine.component_library import ComponentLibrary
from isoscene.engine.config import LayerLabelConfig
from isoscene.engine.shape_library import ShapeLibrary
from isoscene.models.diagram import CanvasSize
from isoscene.utils.text_metrics import TextMetrics


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_shape_library(request: Request) -> ShapeLibrary:
    return request.app.state.shape_library


def get_component_library(request: Request) -> ComponentLibrary:
    return request.app.state.component_library


def get_canvas_size(request: Request) -> CanvasSize:
    config: Settings = request.app.state.settings
    return CanvasSize(width=config.canvas_width, height=config.canvas_height)


def get_layer_label_config(request: Request) -> LayerLabelConfig:
    return request.app.state.layer_label_config


def get_text_metrics(request: Request) -> TextMetrics:
    return request.app.state.text_metrics
