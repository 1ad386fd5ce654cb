"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from isoscene.engine.config import DEFAULT_CANVAS_SIZE


class Settings(BaseSettings):
    isoscene_env: str = "development"
    isoscene_log_level: str = "debug"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Canvas
    canvas_width: float = DEFAULT_CANVAS_SIZE.width
    canvas_height: float = DEFAULT_CANVAS_SIZE.height
    show_attachment_points: bool = False

    # Layer labels
    label_font_path: str = ""  # TrueType font; Pillow's bundled font when empty

    # Stores
    shape_library_path: str = ""  # JSON array of shapes loaded at startup
    component_library_path: str = "data/component_library.json"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
