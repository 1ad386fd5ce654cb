"""FastAPI app factory."""

from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from isoscene.config import Settings, settings
from isoscene.engine.component_library import ComponentLibrary
from isoscene.engine.config import LayerLabelConfig
from isoscene.engine.shape_library import ShapeLibrary
from isoscene.models.diagram import CanvasSize
from isoscene.utils.text_metrics import PillowTextMetrics

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.isoscene_log_level.upper(), logging.DEBUG),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or settings
    app = FastAPI(
        title="isoscene",
        description="Isometric diagram composition and attachment-point geometry engine",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One store of each kind per app instance
    app.state.settings = config
    app.state.shape_library = _load_shape_library(config)
    app.state.component_library = _load_component_library(config, app.state.shape_library)
    app.state.layer_label_config = LayerLabelConfig()
    app.state.text_metrics = PillowTextMetrics(
        font_size=app.state.layer_label_config.font_size,
        font_path=config.label_font_path or None,
    )

    from isoscene.api.router import api_router

    app.include_router(api_router)

    return app


def _load_shape_library(config: Settings) -> ShapeLibrary:
    library = ShapeLibrary()
    if config.shape_library_path:
        library.load_file(Path(config.shape_library_path))
    return library


def _load_component_library(config: Settings, shapes: ShapeLibrary) -> ComponentLibrary:
    library = ComponentLibrary(Path(config.component_library_path) if config.component_library_path else None)
    # Stored renders go stale when the shape templates change
    if len(library) and len(shapes):
        library.render_all_components(shapes, CanvasSize(width=config.canvas_width, height=config.canvas_height))
    return library


app = create_app()
