"""
ASCII horizontal bar chart with automatic layout

Draws one bar per item inside a box, scaled between the observed min and
max, with a vertical marker at the average.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from ragas_panel.domain.constants import REPORT_WIDTH

NO_DATA = "(no data)"


@dataclass(frozen=True)
class Item:
    label: str
    value: float


@dataclass(frozen=True)
class Summary:
    min: float
    max: float
    avg: float
    min_label: str
    max_label: str


@dataclass(frozen=True)
class BarChart:
    text: str
    summary: Summary


def _fmt(value: float) -> str:
    return f"{value:.2f}"


def _ellipsize(text: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width <= 1:
        return text[:width]
    return text[:width - 1] + "…"


def _value_to_x(value: float, low: float, high: float, x0: int, width: int) -> int:
    if high <= low:
        return x0
    norm = min(1.0, max(0.0, (value - low) / (high - low)))
    return x0 + int(round(norm * (width - 1)))


class _Canvas:
    """Fixed-size character grid"""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self._cells = [[" "] * width for _ in range(height)]

    def put(self, x: int, y: int, char: str) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            self._cells[y][x] = char

    def text(self, x: int, y: int, text: str, max_len: int | None = None) -> None:
        if max_len is not None:
            text = text[:max(0, max_len)]
        for i, char in enumerate(text):
            self.put(x + i, y, char)

    def hline(self, x0: int, x1: int, y: int, char: str) -> None:
        for x in range(x0, x1 + 1):
            self.put(x, y, char)

    def vline(self, x: int, y0: int, y1: int, char: str = "│") -> None:
        for y in range(y0, y1 + 1):
            self.put(x, y, char)

    def box(self) -> None:
        right, bottom = self.width - 1, self.height - 1
        self.hline(1, right - 1, 0, "─")
        self.hline(1, right - 1, bottom, "─")
        self.vline(0, 1, bottom - 1)
        self.vline(right, 1, bottom - 1)
        self.put(0, 0, "┌")
        self.put(right, 0, "┐")
        self.put(0, bottom, "└")
        self.put(right, bottom, "┘")

    def render(self) -> str:
        return "\n".join("".join(row).rstrip() for row in self._cells)


def render_bars(items: Sequence[Item], width: int = REPORT_WIDTH, height: int = 0) -> BarChart:
    """
    Render items as horizontal bars

    Args:
        items: Labelled values, drawn top to bottom in the given order
        width: Total chart width in characters
        height: Total height (0 = just enough for the items)

    Returns:
        BarChart with the text and min/max/avg summary
    """
    if not items:
        return BarChart(NO_DATA, Summary(math.nan, math.nan, math.nan, "", ""))

    min_item = min(items, key=lambda i: i.value)
    max_item = max(items, key=lambda i: i.value)
    avg = sum(i.value for i in items) / len(items)

    low, high = min_item.value, max_item.value
    if high == low:
        eps = max(1e-9, abs(high) * 1e-6)
        low, high = low - eps, high + eps

    top_pad, bottom_pad, right_pad = 1, 1, 2
    rows = len(items)
    auto_height = top_pad + rows + bottom_pad
    height = max(height if height > 0 else max(5, auto_height), auto_height)

    longest = max(len(i.label) for i in items)
    labels_cap = max(6, width // 2 - 2)
    labels_w = min(max(6, longest), labels_cap)

    labels_x = 1
    bars_x0 = labels_x + labels_w + 1
    bars_x1 = width - 1 - right_pad
    bars_w = max(1, bars_x1 - bars_x0 + 1)

    canvas = _Canvas(width, height)
    canvas.box()
    canvas.vline(labels_x + labels_w, top_pad, height - 2)
    canvas.vline(_value_to_x(avg, low, high, bars_x0, bars_w), top_pad, height - 2, "┊")

    min_label, max_label = _fmt(low), _fmt(high)
    canvas.text(bars_x0, 0, min_label, width - bars_x0)
    max_pos = max(bars_x0, bars_x1 - len(max_label) + 1)
    canvas.text(max_pos, 0, max_label, width - max_pos)

    for index, item in enumerate(items):
        y = top_pad + index
        canvas.text(labels_x, y, _ellipsize(item.label, labels_w), labels_w)
        x_val = _value_to_x(item.value, low, high, bars_x0, bars_w)
        canvas.hline(bars_x0, max(bars_x0, x_val), y, "█")
        value_text = _fmt(item.value)
        value_x = min(bars_x1 - len(value_text) + 1, max(bars_x0, x_val + 1))
        canvas.text(value_x, y, value_text, bars_x1 - value_x + 1)

    summary = Summary(min_item.value, max_item.value, avg, min_item.label, max_item.label)
    return BarChart(canvas.render(), summary)
