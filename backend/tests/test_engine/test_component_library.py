"""Tests for the saved component library and the shape library."""

import json

import pytest

from isoscene.engine.compiler import compile_diagram, compute_component_bounds
from isoscene.engine.component_library import ComponentLibrary, ComponentNotFoundError
from isoscene.engine.scene_graph import add_component_to_scene
from isoscene.engine.serialization import DiagramLoadError
from isoscene.engine.shape_library import ShapeLibrary
from isoscene.models.diagram import Shape
from tests.conftest import CUBE_SVG


# ---------------------------------------------------------------------------
# Shape library
# ---------------------------------------------------------------------------


def test_shape_library_queries(shape_library):
    assert len(shape_library) == 3
    assert "cube" in shape_library
    assert shape_library.get_shape("nope") is None
    assert [s.name for s in shape_library.get_shapes_by_type("2D")] == ["label"]


def test_shape_library_add_and_update(shape_library):
    with pytest.raises(ValueError):
        shape_library.add_shape(Shape(name="cube", svg_content=CUBE_SVG))
    with pytest.raises(KeyError):
        shape_library.update_shape(Shape(name="ghost", svg_content=CUBE_SVG))
    shape_library.remove_shape("cube")
    assert not shape_library.has_shape("cube")


def test_shape_library_load_file(tmp_path):
    (tmp_path / "cube.svg").write_text(CUBE_SVG, encoding="utf-8")
    (tmp_path / "shapes.json").write_text(
        json.dumps([{"name": "cube", "type": "3D", "svgFile": "cube.svg"}, {"name": "broken"}]),
        encoding="utf-8",
    )
    library = ShapeLibrary()
    library.load_file(tmp_path / "shapes.json")
    assert [s.name for s in library] == ["cube"]
    assert library.get_shape("cube").svg_content == CUBE_SVG


def test_shape_library_missing_file_is_empty(tmp_path):
    library = ShapeLibrary()
    library.load_file(tmp_path / "missing.json")
    assert len(library) == 0


# ---------------------------------------------------------------------------
# Component library
# ---------------------------------------------------------------------------


def test_create_component_persists(component_library, scene, shape_library, canvas, tmp_path):
    component = component_library.create_component("tower", "A stack", scene, canvas, shape_library)
    assert component is not None
    assert component.id == "tower"
    assert len(component.diagram_components) == 3
    assert {p.name for p in component.attachment_points} >= {"attach-top", "attach-bottom"}

    reloaded = ComponentLibrary(tmp_path / "component_library.json")
    assert reloaded.get_component("tower") == component


def test_create_component_copies_input(component_library, scene, shape_library, canvas):
    component = component_library.create_component("tower", "", scene[1:], canvas, shape_library)
    assert component.diagram_components[0].relative_to_id is None
    assert scene[1].relative_to_id == "shape-a"


def test_create_component_duplicate_name(component_library, scene, shape_library, canvas):
    component_library.create_component("tower", "", scene, canvas, shape_library)
    assert component_library.create_component("tower", "", scene, canvas, shape_library) is None
    replaced = component_library.create_component("tower", "v2", scene[:1], canvas, shape_library, overwrite=True)
    assert replaced.description == "v2"
    assert len(component_library) == 1


def test_create_component_from_empty_selection(component_library, shape_library, canvas):
    assert component_library.create_component("empty", "", [], canvas, shape_library) is None


def test_update_and_delete(component_library, scene, shape_library, canvas):
    component_library.create_component("tower", "", scene, canvas, shape_library)
    updated = component_library.update_component("tower", description="tall", id="other")
    assert updated.id == "tower"
    assert updated.description == "tall"

    component_library.delete_component("tower")
    assert component_library.get_component("tower") is None
    with pytest.raises(ComponentNotFoundError):
        component_library.delete_component("tower")
    with pytest.raises(ComponentNotFoundError):
        component_library.update_component("tower", description="x")


def test_clear_library(component_library, scene, shape_library, canvas, tmp_path):
    component_library.create_component("tower", "", scene, canvas, shape_library)
    component_library.clear_library()
    assert len(component_library) == 0
    assert len(ComponentLibrary(tmp_path / "component_library.json")) == 0


def test_render_component(component_library, scene, shape_library, canvas):
    component = component_library.create_component("tower", "", scene, canvas, shape_library)
    svg = component_library.render_component("tower", canvas, shape_library)

    assert svg.startswith("<svg")
    assert 'xmlns="http://www.w3.org/2000/svg"' in svg
    assert "viewBox=" in svg
    assert "shape-" not in svg
    injected = svg.count("<circle")
    assert injected == len(component.attachment_points)
    assert component_library.get_component("tower").svg_content == svg


def test_render_unknown_component(component_library, shape_library, canvas):
    with pytest.raises(ComponentNotFoundError):
        component_library.render_component("ghost", canvas, shape_library)


def test_corrupted_store_starts_empty(tmp_path):
    path = tmp_path / "lib.json"
    path.write_text("{not json", encoding="utf-8")
    assert len(ComponentLibrary(path)) == 0


def test_export_and_import(component_library, scene, shape_library, canvas, tmp_path):
    component_library.create_component("tower", "A stack", scene, canvas, shape_library)
    exported = component_library.serialize_component_lib()
    assert exported[0]["diagramComponents"][0]["attachmentPoints"]

    other = ComponentLibrary(tmp_path / "other.json")
    imported = other.deserialize_component_lib(json.loads(json.dumps(exported)))
    assert [c.name for c in imported] == ["tower"]
    assert other.get_component("tower").attachment_points == component_library.get_component("tower").attachment_points


def test_import_rejects_bad_structure(component_library):
    with pytest.raises(DiagramLoadError):
        component_library.deserialize_component_lib({"tower": {}})
    with pytest.raises(DiagramLoadError):
        component_library.deserialize_component_lib([{"id": "x", "name": "x", "description": "", "diagramComponents": [{}]}])


def test_component_instance_in_scene(component_library, scene, shape_library, canvas):
    component_library.create_component("tower", "", scene, canvas, shape_library)
    components, node = add_component_to_scene([], component_library, "tower", "center", None, None)
    assert node.source == "component"
    assert node.shape == "tower"

    result = compile_diagram(components, canvas, shape_library, False, component_library)
    assert f'<g id="{node.id}"' in result.content
    assert result.processed_components[0].attachment_points


def test_component_instance_has_bounds(component_library, scene, shape_library, canvas):
    component_library.create_component("tower", "", scene, canvas, shape_library)
    components, node = add_component_to_scene([], component_library, "tower", "center", None, None)
    result = compile_diagram(components, canvas, shape_library, False, component_library)

    bounds = compute_component_bounds(result.processed_components, shape_library, result.content, component_library)
    assert node.id in bounds
    assert bounds[node.id].bounds.width > 0
    assert node.id not in compute_component_bounds(result.processed_components, shape_library, result.content)


def test_render_all_components(component_library, scene, shape_library, canvas):
    component_library.create_component("tower", "", scene, canvas, shape_library)
    component_library.create_component("base", "", scene[:1], canvas, shape_library)
    assert all(c.svg_content is None for c in component_library.get_all_components())

    component_library.render_all_components(shape_library)
    assert all(c.svg_content.startswith("<svg") for c in component_library.get_all_components())


def test_add_unknown_component_is_rejected(component_library, scene):
    updated, node = add_component_to_scene(scene, component_library, "ghost", "top", None, "shape-a")
    assert node is None
    assert updated == scene
