"""Persisted diagram format: a JSON array of the durable component fields.

Geometry is never stored. Loading validates the whole document first and
fails without a partial result.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from pydantic import ValidationError

from isoscene.models.diagram import DiagramComponent

logger = logging.getLogger(__name__)

_DURABLE_FIELDS = {"id", "shape", "position", "relative_to_id", "attached_2d_shapes"}
_OPTIONAL_FIELDS = {"source", "type", "metadata"}
_COMPUTED_FIELDS = {"attachmentPoints", "parentAttachmentPoints", "absolutePosition", "cut"}

# camelCase dict of the durable fields, as written to disk
SerializedDiagramComponent = dict[str, Any]


class DiagramLoadError(ValueError):
    """Raised when persisted diagram data is structurally invalid."""


def serialize_component(
    component: DiagramComponent, include_attachment_points: bool = False
) -> SerializedDiagramComponent:
    data = component.model_dump(by_alias=True, include=_DURABLE_FIELDS)
    optional = component.model_dump(by_alias=True, include=_OPTIONAL_FIELDS, exclude_none=True)
    if optional.get("source") == "shape":
        optional.pop("source")
    data.update(optional)
    if include_attachment_points:
        data["attachmentPoints"] = [p.model_dump() for p in component.attachment_points]
    return data


def serialize_diagram_components(
    components: Sequence[DiagramComponent],
    include_attachment_points: bool = False,
) -> list[SerializedDiagramComponent]:
    return [serialize_component(c, include_attachment_points) for c in components]


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def validation_errors(data: Any) -> list[str]:
    """Every structural problem in a loaded document; empty when valid."""
    if not isinstance(data, list):
        return ["diagram must be a JSON array"]

    errors: list[str] = []
    for i, item in enumerate(data):
        where = f"component[{i}]"
        if not isinstance(item, dict):
            errors.append(f"{where} must be an object")
            continue
        for key in ("id", "shape", "position"):
            if not _is_non_empty_str(item.get(key)):
                errors.append(f"{where}.{key} must be a non-empty string")
        ref = item.get("relativeToId")
        if ref is not None and not isinstance(ref, str):
            errors.append(f"{where}.relativeToId must be a string or null")
        shapes = item.get("attached2DShapes")
        if not isinstance(shapes, list):
            errors.append(f"{where}.attached2DShapes must be an array")
        else:
            for j, s in enumerate(shapes):
                if not isinstance(s, dict) or not isinstance(s.get("name"), str) or not isinstance(s.get("attachedTo"), str):
                    errors.append(f"{where}.attached2DShapes[{j}] needs string name and attachedTo")
        if "type" in item and item["type"] is not None and not isinstance(item["type"], str):
            errors.append(f"{where}.type must be a string")
        if "metadata" in item and item["metadata"] is not None and not isinstance(item["metadata"], dict):
            errors.append(f"{where}.metadata must be an object")
    return errors


def validate_loaded_file(data: Any) -> bool:
    return not validation_errors(data)


def deserialize_diagram_components(data: Any) -> list[DiagramComponent]:
    """Rebuild components from persisted data; computed and transient fields start fresh."""
    errors = validation_errors(data)
    if errors:
        raise DiagramLoadError("Invalid diagram components structure: " + "; ".join(errors[:5]))

    components: list[DiagramComponent] = []
    for item in data:
        durable = {k: v for k, v in item.items() if k not in _COMPUTED_FIELDS}
        try:
            components.append(DiagramComponent.model_validate(durable))
        except ValidationError as e:
            raise DiagramLoadError(f"Invalid component {item.get('id')!r}: {e}") from e
    logger.info("Loaded %d diagram components", len(components))
    return components


def dump_diagram(components: Sequence[DiagramComponent], indent: int | None = 2) -> str:
    return json.dumps(serialize_diagram_components(components), indent=indent, ensure_ascii=False)


def load_diagram(text: str) -> list[DiagramComponent]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DiagramLoadError(f"Diagram is not valid JSON: {e}") from e
    return deserialize_diagram_components(data)
