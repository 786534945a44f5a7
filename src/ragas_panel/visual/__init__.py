"""
Visualization renderers

Pure ASCII renderers over completed results: score bars and execution timelines.
"""

from ragas_panel.visual.bars import BarChart, Item, Summary, render_bars
from ragas_panel.visual.gantt import (
    GanttRow,
    render_gantt,
    rows_from_execution_results,
    rows_from_model_results,
)

__all__ = [
    # bars
    "BarChart",
    "Item",
    "Summary",
    "render_bars",
    # gantt
    "GanttRow",
    "render_gantt",
    "rows_from_execution_results",
    "rows_from_model_results",
]
