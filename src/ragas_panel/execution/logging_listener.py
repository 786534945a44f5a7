"""
Logging execution listener

Logs each batch: the request before dispatch, then a summary line, the
score distribution, the execution timeline and the failed models.
"""

from __future__ import annotations

import logging
import sys

from ragas_panel.domain.constants import REPORT_WIDTH
from ragas_panel.domain.entities import AggregatedExecutionResult, BatchExecutionContext
from ragas_panel.domain.errors import StructuredOutputError
from ragas_panel.execution.listeners import ModelExecutionListener
from ragas_panel.visual.bars import Item, render_bars
from ragas_panel.visual.gantt import render_gantt, rows_from_execution_results

logger = logging.getLogger(__name__)

SEPARATOR = "═" * REPORT_WIDTH

_SHORT_REASON_LIMIT = 50


def simplify_error(error: BaseException | None) -> str:
    """First line of an error message, with parse errors named plainly"""
    if error is None:
        return "Unknown error"
    message = str(error)
    if isinstance(error, StructuredOutputError):
        if message.startswith("Empty response"):
            return "Empty response from model"
        return "JSON parsing error"
    if not message:
        return type(error).__name__
    return message.split("\n", 1)[0]


def short_reason(error: BaseException | None) -> str:
    """A few words describing why a model failed"""
    if error is None:
        return "unknown"
    message = str(error)
    lowered = message.lower()
    if isinstance(error, StructuredOutputError):
        return "empty response" if "empty response" in lowered else "parse error"
    if "empty response" in lowered:
        return "empty response"
    if isinstance(error, TimeoutError) or "timeout" in lowered or "timed out" in lowered:
        return "timeout"
    if "rate limit" in lowered or "429" in message:
        return "rate limited"
    if "401" in message or "403" in message or "unauthorized" in lowered or "api key" in lowered:
        return "auth error"
    if "500" in message or "502" in message or "503" in message or "server error" in lowered:
        return "server error"
    first_line = simplify_error(error)
    if len(first_line) > _SHORT_REASON_LIMIT:
        return first_line[:_SHORT_REASON_LIMIT - 3] + "..."
    return first_line


class LoggingExecutionListener(ModelExecutionListener):
    """Stateless; runs before every other listener"""

    order = -sys.maxsize - 1

    def before_all_executions(self, context: BatchExecutionContext) -> None:
        prompt = context.prompt if context.prompt and context.prompt.strip() else "(empty)"
        logger.info(
            "\n%s\n[%s] Executing on %d models\n%s\n\nLLM Request:\n%s\n\n%s",
            SEPARATOR, context.metric_name, len(context.model_ids), SEPARATOR, prompt, SEPARATOR,
        )

    def after_aggregation(self, result: AggregatedExecutionResult) -> None:
        logger.info("%s", self.format_report(result))

    @staticmethod
    def format_report(result: AggregatedExecutionResult) -> str:
        successful = sorted(result.successful_results(), key=lambda r: r.model_id)
        items = [Item(r.model_id, r.score) for r in successful]
        chart = render_bars(items)
        stats = result.score_statistics()

        summary = (
            f"[{result.metric_name}] ✓ Aggregated Score: {result.aggregated_score:.2f} "
            f"({result.aggregation_strategy}) | Success: {len(successful)}/{len(result.results)} models "
            f"| Duration: {result.total_duration.total_seconds():.1f}s"
        )
        if stats is not None:
            summary += f" | Range: {stats.min:.2f} - {stats.max:.2f}"

        lines = ["", SEPARATOR, summary, ""]
        if items:
            s = chart.summary
            lines.append(
                f"Score Distribution (min={s.min:.2f} [{s.min_label}], max={s.max:.2f} [{s.max_label}])"
            )
            lines.append(chart.text)
        lines.append(render_gantt(rows_from_execution_results(result.results)))

        failed = result.failed_results()
        if failed:
            lines.append(f"Failed Models ({len(failed)}/{len(result.results)}):")
            for r in failed:
                lines.append(
                    f"  • {r.model_id} - {simplify_error(r.error)} ({r.duration.total_seconds():.1f}s)"
                )
        lines.append(SEPARATOR)
        return "\n".join(lines)
