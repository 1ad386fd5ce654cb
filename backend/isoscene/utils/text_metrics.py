"""Text measurement for label wrapping.

Layout code only needs the advance width of a string, so measurement sits
behind the ``TextMetrics`` protocol. ``FixedWidthTextMetrics`` is the
deterministic provider used by tests; ``PillowTextMetrics`` measures with a
real font through Pillow.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Protocol

from PIL import ImageFont

logger = logging.getLogger(__name__)


class TextMetrics(Protocol):
    def measure(self, text: str) -> float:
        """Advance width of ``text`` in canvas units."""
        ...


@dataclass
class FixedWidthTextMetrics:
    """Every character is ``char_width`` wide."""

    char_width: float = 10.0

    def measure(self, text: str) -> float:
        return len(text) * self.char_width


class PillowTextMetrics:
    """Measures with a TrueType font, or Pillow's bundled default font."""

    def __init__(self, font_size: float = 60.0, font_path: str | None = None) -> None:
        self.font_size = font_size
        if font_path:
            self._font = ImageFont.truetype(font_path, size=int(font_size))
        else:
            self._font = ImageFont.load_default(size=font_size)

    def measure(self, text: str) -> float:
        return float(self._font.getlength(text))


@dataclass
class LabelBox:
    lines: list[str] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0


def hyphenate_word(word: str, max_width: float, metrics: TextMetrics) -> list[str]:
    """Break a word wider than ``max_width`` into hyphenated chunks."""
    lines: list[str] = []
    remaining = word
    while len(remaining) > 1 and metrics.measure(remaining) > max_width:
        ratio = max_width / metrics.measure(remaining)
        cut = min(math.floor(ratio * len(remaining)), len(remaining) - 2)
        cut = max(cut, 1)
        head = remaining[:cut] + "-"
        if metrics.measure(head) > max_width and cut > 1:
            cut -= 1
            head = remaining[:cut] + "-"
        lines.append(head)
        remaining = remaining[cut:]
    if remaining:
        lines.append(remaining)
    return lines


def split_text_into_lines(text: str, max_width: float, metrics: TextMetrics) -> list[str]:
    """Word-wrap ``text`` to ``max_width``; explicit newlines are kept as breaks."""
    result: list[str] = []
    for manual_line in text.split("\n"):
        current = ""
        for word in manual_line.split(" "):
            candidate = f"{current} {word}" if current else word
            if metrics.measure(candidate) <= max_width:
                current = candidate
                continue
            if current:
                result.append(current)
            if metrics.measure(word) > max_width:
                result.extend(hyphenate_word(word, max_width, metrics))
                current = ""
            else:
                current = word
        if current:
            result.append(current)
    return result


def measure_label(
    text: str,
    max_width: float,
    metrics: TextMetrics,
    font_size: float,
    line_spacing: float = 1.2,
) -> LabelBox:
    """Wrapped lines plus the block's widest line and total height."""
    lines = split_text_into_lines(text, max_width, metrics)
    width = max((metrics.measure(line) for line in lines), default=0.0)
    height = len(lines) * font_size * line_spacing
    logger.debug("Measured label %r: %d lines, %.1fx%.1f", text[:20], len(lines), width, height)
    return LabelBox(lines=lines, width=width, height=height)
