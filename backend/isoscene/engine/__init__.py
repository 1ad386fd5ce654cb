"""isoscene diagram engine: scene graph, compiler, label layout and stores."""

from isoscene.engine.compiler import CompileResult, compile_diagram, compute_component_bounds
from isoscene.engine.component_library import ComponentLibrary, ComponentNotFoundError
from isoscene.engine.label_layout import create_layout_manager, layout_strategy
from isoscene.engine.serialization import DiagramLoadError, dump_diagram, load_diagram
from isoscene.engine.shape_library import ShapeLibrary

__all__ = [
    "CompileResult",
    "compile_diagram",
    "compute_component_bounds",
    "ComponentLibrary",
    "ComponentNotFoundError",
    "create_layout_manager",
    "layout_strategy",
    "DiagramLoadError",
    "dump_diagram",
    "load_diagram",
    "ShapeLibrary",
]
