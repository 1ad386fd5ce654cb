"""Tests for label text wrapping and measurement."""

from isoscene.utils.text_metrics import (
    FixedWidthTextMetrics,
    PillowTextMetrics,
    hyphenate_word,
    measure_label,
    split_text_into_lines,
)

METRICS = FixedWidthTextMetrics(char_width=10)


def test_fixed_width_measure():
    assert METRICS.measure("abcd") == 40
    assert METRICS.measure("") == 0


def test_split_wraps_on_words():
    assert split_text_into_lines("hello world", 60, METRICS) == ["hello", "world"]
    assert split_text_into_lines("hi there", 100, METRICS) == ["hi there"]


def test_split_keeps_manual_newlines():
    assert split_text_into_lines("a\nb", 100, METRICS) == ["a", "b"]


def test_hyphenate_long_word():
    chunks = hyphenate_word("abcdefghij", 50, METRICS)
    assert chunks == ["abcd-", "efgh-", "ij"]
    assert all(METRICS.measure(c) <= 50 for c in chunks)


def test_split_hyphenates_words_wider_than_line():
    lines = split_text_into_lines("go abcdefghij", 50, METRICS)
    assert lines[0] == "go"
    assert "".join(line.rstrip("-") for line in lines[1:]) == "abcdefghij"


def test_measure_label_box():
    box = measure_label("hello world", 60, METRICS, font_size=60, line_spacing=1.2)
    assert box.lines == ["hello", "world"]
    assert box.width == 50
    assert box.height == 2 * 60 * 1.2


def test_pillow_metrics_grow_with_text():
    metrics = PillowTextMetrics(font_size=20)
    assert metrics.measure("abc") > 0
    assert metrics.measure("abcabc") > metrics.measure("abc")
