"""Engine defaults for canvas, label layout and label typography."""

from __future__ import annotations

import math
from dataclasses import dataclass

from isoscene.models.diagram import CanvasSize

DEFAULT_CANVAS_SIZE = CanvasSize(width=1000, height=1000)


@dataclass
class RectangularLayoutConfig:
    """Labels projected onto a rectangle around the diagram."""

    padding: float = 150.0  # gap between diagram bounds and the label rectangle
    min_spacing: float = 80.0  # min distance between placed labels
    spacing_adjust_factor: float = 1.2
    max_attempts: int = 10  # overlap relaxation passes, best effort after that


@dataclass
class HullLayoutConfig:
    """Labels placed on vertices of the diagram's offset, smoothed silhouette."""

    padding: float = 100.0
    min_spacing: float = 200.0  # min horizontal gap between occupied vertices
    min_y_spacing: float = 17.0  # min vertical gap between occupied vertices
    smoothing_angle: float = 2 * math.pi / 3  # radians; sharper corners get blunted
    step_size: float = 20.0  # distance between candidate label positions
    placement_distance: float = 100.0  # outward offset of the placement path

    @property
    def smoothing_angle_degrees(self) -> float:
        return math.degrees(self.smoothing_angle)


@dataclass
class LayerLabelConfig:
    """Typography for layer labels drawn on isometric faces."""

    width: float = 200.0
    line_spacing: float = 1.2
    font_family: str = "sans-serif"
    font_size: float = 60.0
    font_weight: str = "bold"
