"""Component library — named, reusable scene subgraphs persisted as JSON.

A component owns a private deep copy of the subgraph it was created from.
It is rendered as one opaque shape: internal anchors and group ids are
stripped and only the aggregated external anchors are re-injected.

The store is constructed explicitly and handed to whoever owns session
state. Every mutation writes the full snapshot; a failed write is logged.
"""

from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from pydantic import ValidationError

from isoscene.engine.attachments import aggregate_attachment_points
from isoscene.engine.compiler import compile_diagram
from isoscene.engine.config import DEFAULT_CANVAS_SIZE
from isoscene.engine.scene_graph import new_component_id
from isoscene.engine.serialization import DiagramLoadError, serialize_diagram_components, validation_errors
from isoscene.engine.shape_library import ShapeLibrary
from isoscene.models.diagram import CanvasSize, Component, DiagramComponent
from isoscene.svg.bounds import markup_bbox, padded_view_box
from isoscene.svg.markup import (
    SVG_NS,
    inject_anchor_circles,
    parse_markup,
    strip_anchor_circles,
    strip_group_ids,
    to_string,
    wrap_svg,
)

logger = logging.getLogger(__name__)


class ComponentNotFoundError(KeyError):
    """Raised when a component id is not in the library."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def validate_component_library(data: Any) -> list[str]:
    """Structural problems in an imported library document; empty when valid."""
    if not isinstance(data, list):
        return ["component library must be a JSON array"]
    errors: list[str] = []
    for i, item in enumerate(data):
        where = f"component[{i}]"
        if not isinstance(item, dict):
            errors.append(f"{where} must be an object")
            continue
        for key in ("id", "name", "description"):
            if not isinstance(item.get(key), str):
                errors.append(f"{where}.{key} must be a string")
        errors.extend(f"{where}.{e}" for e in validation_errors(item.get("diagramComponents")))
    return errors


class ComponentLibrary:
    """JSON-file backed store of saved components, keyed by id (= name)."""

    def __init__(self, storage_path: Path | None = None) -> None:
        self.storage_path = storage_path
        self.last_modified = _now()
        self._components: dict[str, Component] = {}
        self._load()

    # -- persistence --

    def _load(self) -> None:
        if self.storage_path is None or not self.storage_path.exists():
            return
        try:
            raw = json.loads(self.storage_path.read_text(encoding="utf-8"))
            self._components = {
                key: Component.model_validate(value) for key, value in raw.get("components", {}).items()
            }
        except (OSError, json.JSONDecodeError, ValidationError, AttributeError) as e:
            logger.warning("Failed to load component library from %s: %s", self.storage_path, e)
            self._components = {}
            return
        logger.info("Loaded %d components from %s", len(self._components), self.storage_path)

    def _save(self) -> None:
        self.last_modified = _now()
        if self.storage_path is None:
            return
        snapshot = {
            "components": {k: c.model_dump(mode="json", by_alias=True) for k, c in self._components.items()},
            "lastModified": self.last_modified.isoformat(),
        }
        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            self.storage_path.write_text(json.dumps(snapshot, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save component library to %s: %s", self.storage_path, e)

    # -- queries --

    def has_component(self, name: str) -> bool:
        return any(c.name == name for c in self._components.values())

    def get_component(self, component_id: str) -> Component | None:
        return self._components.get(component_id)

    def get_all_components(self) -> list[Component]:
        return list(self._components.values())

    def __len__(self) -> int:
        return len(self._components)

    # -- mutations --

    def create_component(
        self,
        name: str,
        description: str,
        components: Sequence[DiagramComponent],
        canvas_size: CanvasSize,
        shape_library: ShapeLibrary,
        overwrite: bool = False,
    ) -> Component | None:
        """Save a deep copy of ``components`` under ``name`` with its aggregated anchors.

        Returns None when the name is taken and ``overwrite`` is off.
        """
        if self.has_component(name) and not overwrite:
            logger.warning("Component %s already exists", name)
            return None
        if not components:
            logger.error("Cannot create component %s from an empty selection", name)
            return None

        copied = [c.model_copy(deep=True) for c in components]
        copied[0] = copied[0].model_copy(update={"relative_to_id": None})
        compiled = compile_diagram(copied, canvas_size, shape_library, False, self)

        now = _now()
        component = Component(
            id=name,
            name=name,
            description=description,
            diagram_components=compiled.processed_components,
            attachment_points=aggregate_attachment_points(compiled.processed_components),
            created=now,
            last_modified=now,
        )
        self._components[name] = component
        self._save()
        logger.info("Created component %s (%d shapes)", name, len(copied))
        return component

    def update_component(self, component_id: str, **updates: Any) -> Component:
        """Apply field updates (snake_case names); ``id`` and ``created`` are fixed."""
        current = self._components.get(component_id)
        if current is None:
            raise ComponentNotFoundError(component_id)
        updates.pop("id", None)
        updates.pop("created", None)
        updated = current.model_copy(update={**updates, "last_modified": _now()})
        self._components[component_id] = updated
        self._save()
        return updated

    def delete_component(self, component_id: str) -> None:
        if component_id not in self._components:
            raise ComponentNotFoundError(component_id)
        del self._components[component_id]
        self._save()
        logger.info("Deleted component %s", component_id)

    def clear_library(self) -> None:
        self._components = {}
        self._save()
        logger.info("Cleared component library")

    # -- rendering --

    def render_component(
        self,
        component_id: str,
        canvas_size: CanvasSize,
        shape_library: ShapeLibrary,
        fetched: Component | None = None,
    ) -> str:
        """Standalone SVG of a component with only its aggregated anchors.

        The result is stored back on library components. Returns ``""`` when
        nothing renders.
        """
        stored = self._components.get(component_id)
        component = stored or fetched
        if component is None:
            raise ComponentNotFoundError(component_id)

        render = compile_diagram(component.diagram_components, canvas_size, shape_library, False, self).content
        if not render:
            return ""

        box = markup_bbox(render)
        view_box = padded_view_box(box) if box is not None else None
        svg = parse_markup(wrap_svg(render, view_box))
        strip_anchor_circles(svg)
        strip_group_ids(svg)
        inject_anchor_circles(svg, component.attachment_points)
        svg.set("xmlns", SVG_NS)
        svg_content = to_string(svg)

        if stored is not None:
            self.update_component(component_id, svg_content=svg_content)
        return svg_content

    def render_all_components(
        self, shape_library: ShapeLibrary, canvas_size: CanvasSize = DEFAULT_CANVAS_SIZE
    ) -> None:
        """Refresh the stored render of every component against the current shapes."""
        for component in self.get_all_components():
            self.render_component(component.id, canvas_size, shape_library)
        logger.info("Rendered %d components", len(self._components))

    # -- import / export --

    def serialize_component_lib(self) -> list[dict[str, Any]]:
        return [
            {
                "id": c.id,
                "name": c.name,
                "description": c.description,
                "attachmentPoints": [p.model_dump() for p in c.attachment_points],
                "created": c.created.isoformat(),
                "lastModified": c.last_modified.isoformat(),
                "diagramComponents": serialize_diagram_components(c.diagram_components, True),
            }
            for c in self.get_all_components()
        ]

    def deserialize_component_lib(self, data: Any) -> list[Component]:
        """Import components (keyed by name), replacing same-named entries."""
        errors = validate_component_library(data)
        if errors:
            raise DiagramLoadError("Invalid component library structure: " + "; ".join(errors[:5]))
        try:
            imported = [Component.model_validate(item) for item in data]
        except ValidationError as e:
            raise DiagramLoadError(f"Invalid component library structure: {e}") from e
        for component in imported:
            self._components[component.name] = component
        self._save()
        logger.info("Imported %d components", len(imported))
        return imported

    def create_diagram_component_from_component(
        self,
        component_id: str,
        position: str = "center",
        relative_to_id: str | None = None,
    ) -> DiagramComponent | None:
        """A scene node instantiating a saved component."""
        component = self.get_component(component_id)
        if component is None:
            return None
        return DiagramComponent(
            id=new_component_id(),
            shape=component_id,
            source="component",
            position=position,
            relative_to_id=relative_to_id,
            attachment_points=[p.model_copy() for p in component.attachment_points],
        )
