"""In-memory shape library: the read-only templates scene components reference by name."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator

from pydantic import ValidationError

from isoscene.models.diagram import Shape

logger = logging.getLogger(__name__)


class ShapeLibrary:
    """Named shape templates. Constructed and passed explicitly, one per session."""

    def __init__(self, shapes: Iterable[Shape] | None = None) -> None:
        self._shapes: dict[str, Shape] = {}
        if shapes:
            self.load(shapes)

    def load(self, shapes: Iterable[Shape]) -> None:
        """Replace the library contents."""
        self._shapes = {s.name: s for s in shapes}
        logger.info("Loaded %d shapes", len(self._shapes))

    def load_file(self, path: Path) -> None:
        """Replace the contents from a JSON array of shapes.

        ``svgFile`` entries without inline content are read relative to the
        JSON file. An unreadable library file logs and leaves the library empty.
        """
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to load shape library from %s: %s", path, e)
            self.clear()
            return

        shapes: list[Shape] = []
        for item in raw if isinstance(raw, list) else []:
            if not isinstance(item, dict):
                continue
            if not item.get("svgContent") and item.get("svgFile"):
                try:
                    item = {**item, "svgContent": (path.parent / item["svgFile"]).read_text(encoding="utf-8")}
                except OSError as e:
                    logger.warning("Failed to read shape file %s: %s", item["svgFile"], e)
                    continue
            try:
                shapes.append(Shape.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping invalid shape %s: %s", item.get("name"), e)
        self.load(shapes)

    def add_shape(self, shape: Shape) -> None:
        if shape.name in self._shapes:
            raise ValueError(f"Shape {shape.name} already exists")
        self._shapes[shape.name] = shape

    def update_shape(self, shape: Shape) -> None:
        if shape.name not in self._shapes:
            raise KeyError(shape.name)
        self._shapes[shape.name] = shape

    def remove_shape(self, name: str) -> None:
        self._shapes.pop(name, None)

    def get_shape(self, name: str) -> Shape | None:
        return self._shapes.get(name)

    def has_shape(self, name: str) -> bool:
        return name in self._shapes

    def get_all_shapes(self) -> list[Shape]:
        return list(self._shapes.values())

    def get_shapes_by_type(self, shape_type: str) -> list[Shape]:
        return [s for s in self._shapes.values() if s.type == shape_type]

    def clear(self) -> None:
        self._shapes = {}

    def __contains__(self, name: object) -> bool:
        return name in self._shapes

    def __iter__(self) -> Iterator[Shape]:
        return iter(self._shapes.values())

    def __len__(self) -> int:
        return len(self._shapes)
