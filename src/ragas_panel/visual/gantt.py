"""
ASCII Gantt chart of model execution timelines
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from ragas_panel.domain.constants import REPORT_WIDTH
from ragas_panel.domain.entities import ModelExecutionResult
from ragas_panel.domain.value_objects import ModelResult

SUCCESS_CHAR = "█"
FAILURE_CHAR = "▓"
TITLE = "Execution Timeline:"


@dataclass(frozen=True)
class GanttRow:
    """One bar: ``offset`` from the earliest start, then ``duration``"""
    label: str
    duration: timedelta
    success: bool
    offset: timedelta = timedelta(0)


def rows_from_execution_results(results: Iterable[ModelExecutionResult]) -> list[GanttRow]:
    """Rows positioned by each model's actual start time"""
    results = list(results)
    if not results:
        return []
    first_start: datetime = min(r.context.started_at for r in results)
    return [
        GanttRow(r.model_id, r.duration, r.is_success, r.context.started_at - first_start)
        for r in results
    ]


def rows_from_model_results(results: Iterable[ModelResult]) -> list[GanttRow]:
    """Rows for step results (all starting together)"""
    return [GanttRow(r.model_id, r.duration, r.is_success) for r in results]


def _ms(delta: timedelta) -> int:
    return int(delta.total_seconds() * 1000)


def render_gantt(rows: Sequence[GanttRow], width: int = REPORT_WIDTH) -> str:
    """
    Render a timeline, one row per model sorted by label

    Returns an empty string when there are no rows.
    """
    if not rows:
        return ""
    rows = sorted(rows, key=lambda r: r.label)

    total_ms = max(_ms(r.offset + r.duration) for r in rows)
    # Instant executions still get a drawable scale
    total_ms = max(total_ms, 1)
    name_width = max(len(r.label) for r in rows)

    lines: list[str] = [""]
    title_padding = max(0, name_width + 1 - len(TITLE))
    lines.append(f"{TITLE}{' ' * title_padding}│0s{' ' * (width - 4)}{total_ms / 1000:.1f}s│")
    lines.append(f"{' ' * (name_width + 1)}┌{'─' * width}┐")

    for row in rows:
        start_pos = (_ms(row.offset) * width) // total_ms
        bar_length = max(1, (_ms(row.duration) * width) // total_ms)
        bar_char = SUCCESS_CHAR if row.success else FAILURE_CHAR
        bar = bar_char * max(0, min(bar_length, width - start_pos))
        remaining = max(0, width - start_pos - bar_length)
        line = (
            f"{row.label:<{name_width}} │"
            f"{' ' * start_pos}{bar}{' ' * remaining}"
            f"│ {_ms(row.duration) / 1000:.1f}s"
        )
        if not row.success:
            line += " ✗"
        lines.append(line)

    lines.append(f"{' ' * (name_width + 1)}└{'─' * width}┘")
    return "\n".join(lines) + "\n"
