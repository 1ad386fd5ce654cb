"""Scene graph of diagram components: position resolution and structural edits.

The scene is a flat list in which every parent precedes all of its
transitive dependents. Edit operations never mutate their input; they return
a new list built from copied records. Rejected edits log and hand back the
input list unchanged.
"""

from __future__ import annotations

import functools
import logging
import re
import uuid
from typing import TYPE_CHECKING, Sequence

from isoscene.engine.attachments import NO_ATTACHMENT, get_attachment_point
from isoscene.models.diagram import Attached2DShape, CanvasSize, DiagramComponent, Point

if TYPE_CHECKING:
    from isoscene.engine.component_library import ComponentLibrary
    from isoscene.engine.shape_library import ShapeLibrary

logger = logging.getLogger(__name__)

Components = list[DiagramComponent]


def new_component_id() -> str:
    return f"shape-{uuid.uuid4()}"


def find_component(components: Sequence[DiagramComponent], component_id: str | None) -> DiagramComponent | None:
    if component_id is None:
        return None
    return next((c for c in components if c.id == component_id), None)


def is_first_component(components: Sequence[DiagramComponent], component_id: str) -> bool:
    return bool(components) and components[0].id == component_id


def get_first_cut_component(components: Sequence[DiagramComponent]) -> DiagramComponent | None:
    return next((c for c in components if c.cut), None)


def find_dependent_shapes(components: Sequence[DiagramComponent], component_id: str) -> tuple[set[str], int]:
    """Ids of a component and all its transitive dependents, plus their highest list index.

    An unknown id yields ``({component_id}, -1)``.
    """
    index = {c.id: i for i, c in enumerate(components)}
    children: dict[str, list[str]] = {}
    for c in components:
        if c.relative_to_id is not None:
            children.setdefault(c.relative_to_id, []).append(c.id)

    dependent_ids: set[str] = set()
    max_index = -1
    stack = [component_id]
    while stack:
        cid = stack.pop()
        if cid in dependent_ids:
            continue
        dependent_ids.add(cid)
        max_index = max(max_index, index.get(cid, -1))
        stack.extend(children.get(cid, []))
    return dependent_ids, max_index


def _normalize_attachment(attachment_point: str | None) -> str | None:
    return None if attachment_point == NO_ATTACHMENT else attachment_point


def _insert_after(components: Sequence[DiagramComponent], index: int, new: Sequence[DiagramComponent]) -> Components:
    return [*components[: index + 1], *new, *components[index + 1:]]


# ---------------------------------------------------------------------------
# Position resolution
# ---------------------------------------------------------------------------


def complementary_anchor(position: str) -> str:
    """Anchor on the child that meets the parent's ``attach-{position}``.

    ``top`` children sit on their bottom; front children present their
    diagonally opposite back face; everything else presents a front face.
    """
    position_type, _, rest = position.partition("-")
    side = rest.split("-")[0] if rest else None
    if position_type == "top":
        return "attach-bottom"
    if position_type == "front":
        return "attach-back-right" if side == "left" else "attach-back-left"
    return "attach-front-right" if side == "left" else "attach-front-left"


def calculate_absolute_position(
    component: DiagramComponent,
    reference: DiagramComponent | None,
    canvas_size: CanvasSize,
    components: Sequence[DiagramComponent],
    memo: dict[str, Point] | None = None,
) -> Point:
    """Canvas position of ``component`` so its complementary anchor meets the parent's.

    ``memo`` maps component id to resolved position and is filled as
    references are resolved; pass the same dict across one compile pass.
    """
    if memo is None:
        memo = {}
    if reference is None:
        return canvas_size.center

    if reference.id not in memo:
        ref_of_ref = find_component(components, reference.relative_to_id)
        memo[reference.id] = calculate_absolute_position(reference, ref_of_ref, canvas_size, components, memo)
    ref_pos = memo[reference.id]

    parent_anchor = get_attachment_point(reference, f"attach-{component.position}")
    child_anchor = get_attachment_point(component, complementary_anchor(component.position))
    if parent_anchor is None or child_anchor is None:
        logger.warning("Attachment points not found for %s or %s", component.id, reference.id)
        return Point(x=ref_pos.x, y=ref_pos.y)

    return Point(
        x=ref_pos.x + parent_anchor.x - child_anchor.x,
        y=ref_pos.y + parent_anchor.y - child_anchor.y,
    )


# ---------------------------------------------------------------------------
# Add / remove
# ---------------------------------------------------------------------------


def _attach_new(
    components: Sequence[DiagramComponent],
    new: DiagramComponent,
    selected_id: str | None,
) -> tuple[Components, DiagramComponent | None]:
    if not components:
        root = new.model_copy(update={"relative_to_id": None})
        return [root], root

    if selected_id is None:
        logger.error("Select a 3D shape before adding a new one")
        return list(components), None
    if find_component(components, selected_id) is None:
        logger.error("Selected component %s not found", selected_id)
        return list(components), None

    new = new.model_copy(update={"relative_to_id": selected_id})
    _, max_index = find_dependent_shapes(components, selected_id)
    return _insert_after(components, max_index, [new]), new


def add_3d_shape(
    components: Sequence[DiagramComponent],
    shape_library: "ShapeLibrary",
    shape_name: str,
    position: str,
    attachment_point: str | None,
    selected_id: str | None,
) -> tuple[Components, DiagramComponent | None]:
    """Add a library shape after the last dependent of the selected component."""
    if components and selected_id is None:
        logger.error("Select a 3D shape before adding a new one")
        return list(components), None
    if not shape_library.has_shape(shape_name):
        logger.error("Shape %s not found in library", shape_name)
        return list(components), None

    new = DiagramComponent(
        id=new_component_id(),
        shape=shape_name,
        source="shape",
        position=_normalize_attachment(attachment_point) or position,
    )
    return _attach_new(components, new, selected_id)


def add_component_to_scene(
    components: Sequence[DiagramComponent],
    component_library: "ComponentLibrary",
    component_id: str,
    position: str,
    attachment_point: str | None,
    selected_id: str | None,
) -> tuple[Components, DiagramComponent | None]:
    """Instantiate a saved library component as a single opaque scene node."""
    new = component_library.create_diagram_component_from_component(
        component_id, position=_normalize_attachment(attachment_point) or position
    )
    if new is None:
        logger.error("Component %s not found in library", component_id)
        return list(components), None
    return _attach_new(components, new, selected_id)


def add_2d_shape(
    components: Sequence[DiagramComponent],
    selected_id: str | None,
    shape_name: str,
    attach_to: str,
    position: str | None = None,
    attachment_point: str | None = None,
) -> Components:
    """Append a decoration to the selected component's anchor ``attach_to``.

    When the click-derived ``position`` names the same face, the more
    specific ``attachment_point`` wins.
    """
    if selected_id is None:
        logger.error("Select a 3D shape to attach this 2D shape to")
        return list(components)
    if find_component(components, selected_id) is None:
        logger.error("Selected shape %s not found", selected_id)
        return list(components)

    use_specific = bool(position and attachment_point and position == attach_to and attachment_point != NO_ATTACHMENT)
    decoration = Attached2DShape(name=shape_name, attached_to=attachment_point if use_specific else attach_to)
    return [
        c.model_copy(update={"attached_2d_shapes": [*c.attached_2d_shapes, decoration]}) if c.id == selected_id else c
        for c in components
    ]


def remove_3d_shape(components: Sequence[DiagramComponent], component_id: str) -> Components:
    dependent_ids, _ = find_dependent_shapes(components, component_id)
    return [c for c in components if c.id not in dependent_ids]


def remove_2d_shape(components: Sequence[DiagramComponent], parent_id: str, index: int) -> Components:
    return [
        c.model_copy(update={"attached_2d_shapes": [s for i, s in enumerate(c.attached_2d_shapes) if i != index]})
        if c.id == parent_id else c
        for c in components
    ]


# ---------------------------------------------------------------------------
# Clipboard: cut / copy / paste
# ---------------------------------------------------------------------------


def _set_cut(components: Sequence[DiagramComponent], ids: set[str], cut: bool) -> Components:
    return [c.model_copy(update={"cut": cut}) if c.id in ids else c for c in components]


def cancel_cut(components: Sequence[DiagramComponent], component_id: str | None = None) -> Components:
    """Clear the cut flag on a subtree, by default the one holding the first cut component."""
    if component_id is None:
        first = get_first_cut_component(components)
        if first is None:
            return list(components)
        component_id = first.id
    dependent_ids, _ = find_dependent_shapes(components, component_id)
    return _set_cut(components, dependent_ids, False)


def cut_3d_shape(components: Sequence[DiagramComponent], component_id: str) -> Components:
    """Stage a subtree for moving. The root can never be cut."""
    if is_first_component(components, component_id):
        logger.error("The root shape cannot be cut")
        return list(components)
    staged = cancel_cut(components)
    dependent_ids, _ = find_dependent_shapes(staged, component_id)
    return _set_cut(staged, dependent_ids, True)


def deep_clone_with_dependents(component: DiagramComponent, components: Sequence[DiagramComponent]) -> Components:
    """Pre-order clone of a subtree with fresh ids; internal references are remapped."""
    id_map: dict[str, str] = {}
    clones: Components = []

    def clone(comp: DiagramComponent) -> None:
        new_id = new_component_id()
        id_map[comp.id] = new_id
        parent = comp.relative_to_id
        clones.append(
            comp.model_copy(
                update={
                    "id": new_id,
                    "relative_to_id": id_map.get(parent, parent) if parent else None,
                    "cut": False,
                },
                deep=True,
            )
        )
        for child in components:
            if child.relative_to_id == comp.id:
                clone(child)

    clone(component)
    return clones


def copy_3d_shape(components: Sequence[DiagramComponent], component_id: str | None = None) -> Components:
    """Clone a subtree for pasting; defaults to the staged cut subtree."""
    if component_id is None:
        first = get_first_cut_component(components)
        if first is None:
            logger.error("No component selected or staged to copy")
            return []
        component_id = first.id
    target = find_component(components, component_id)
    if target is None:
        logger.error("Component with id %s not found", component_id)
        return []
    return deep_clone_with_dependents(target, components)


def paste_copied_3d_shapes(
    components: Sequence[DiagramComponent],
    copied: Sequence[DiagramComponent],
    target_id: str,
    position: str,
    attachment_point: str | None,
) -> tuple[Components, DiagramComponent | None]:
    """Re-parent a copied subtree onto ``target_id``, after the target's last dependent.

    A subtree whose head id already lives in the scene is cloned again so a
    second paste never duplicates ids.
    """
    if not copied:
        logger.error("Nothing to paste")
        return list(components), None
    if find_component(components, target_id) is None:
        logger.error("Paste target %s not found", target_id)
        return list(components), None

    to_paste = list(copied)
    if find_component(components, to_paste[0].id) is not None:
        to_paste = copy_3d_shape(to_paste, to_paste[0].id)

    head = to_paste[0].model_copy(
        update={"relative_to_id": target_id, "position": _normalize_attachment(attachment_point) or position}
    )
    pasted = [head, *to_paste[1:]]
    _, max_index = find_dependent_shapes(components, target_id)
    return _insert_after(components, max_index, pasted), head


def paste_cut_3d_shapes(
    components: Sequence[DiagramComponent],
    target_id: str,
    position: str,
    attachment_point: str | None,
    component_id: str | None = None,
) -> tuple[Components, DiagramComponent | None]:
    """Move the staged cut subtree onto ``target_id``."""
    if component_id is None:
        first = get_first_cut_component(components)
        if first is None:
            logger.error("No cut shapes to paste")
            return list(components), None
        component_id = first.id

    dependent_ids, _ = find_dependent_shapes(components, component_id)
    if target_id in dependent_ids:
        logger.error("Cannot paste %s onto its own subtree", component_id)
        return list(components), None

    moving = [c.model_copy(update={"cut": False}) for c in components if c.id in dependent_ids]
    staying = [c for c in components if c.id not in dependent_ids]
    updated, head = paste_copied_3d_shapes(staying, moving, target_id, position, attachment_point)
    if head is None:
        return list(components), None
    return updated, head


# ---------------------------------------------------------------------------
# Normalization before compile
# ---------------------------------------------------------------------------


def standardize_component_ids(components: Sequence[DiagramComponent]) -> Components:
    """Prefix legacy ids with ``shape-`` and rewrite references to match."""
    id_map = {c.id: f"shape-{c.id}" for c in components if not c.id.startswith("shape-")}
    if not id_map:
        return list(components)
    return [
        c.model_copy(
            update={
                "id": id_map.get(c.id, c.id),
                "relative_to_id": id_map.get(c.relative_to_id, c.relative_to_id) if c.relative_to_id else None,
            }
        )
        for c in components
    ]


_POSITION_RE = re.compile(r"^(top|front-left|front-right)(?:-(.+))?$")
_PREFIX_ORDER = {"top": 0, "front-left": 1, "front-right": 2}
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def _parse_position(position: str) -> tuple[str, str | None]:
    m = _POSITION_RE.match(position)
    if not m:
        return position, None
    return m.group(1), m.group(2)


def compare_positions(pos1: str, pos2: str) -> int:
    """Sibling paint order: top, front-left, front-right, then everything else."""
    prefix1, suffix1 = _parse_position(pos1)
    prefix2, suffix2 = _parse_position(pos2)
    if prefix1 != prefix2:
        return _PREFIX_ORDER.get(prefix1, 999) - _PREFIX_ORDER.get(prefix2, 999)
    if suffix1 and suffix2:
        n1, n2 = _LEADING_INT_RE.match(suffix1), _LEADING_INT_RE.match(suffix2)
        if n1 and n2:
            return int(n1.group(1)) - int(n2.group(1))
        return (suffix1 > suffix2) - (suffix1 < suffix2)
    if suffix1:
        return 1
    if suffix2:
        return -1
    return 0


def reorder_components(components: Sequence[DiagramComponent]) -> Components:
    """Depth-first order from the roots with siblings in paint order.

    Components whose parent is missing are unreachable and are dropped.
    """
    groups: dict[str | None, Components] = {None: []}
    for c in components:
        groups.setdefault(c.relative_to_id, []).append(c)
    key = functools.cmp_to_key(compare_positions)
    for parent_id, group in groups.items():
        groups[parent_id] = sorted(group, key=lambda c: key(c.position))

    ordered: Components = []
    visited: set[str] = set()

    def visit(parent_id: str | None) -> None:
        for c in groups.get(parent_id, []):
            if c.id in visited:
                continue
            visited.add(c.id)
            ordered.append(c)
            visit(c.id)

    visit(None)
    if len(ordered) < len(components):
        orphans = [c.id for c in components if c.id not in visited]
        logger.warning("Dropping components with missing parents: %s", orphans)
    return ordered
