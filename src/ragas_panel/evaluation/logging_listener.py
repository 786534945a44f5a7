"""
Logging metric listener

Logs one metric evaluation as boxed reports: the models taking part,
one line per step, exclusions as they happen, and a final report with
the steps, timelines and per-model scores.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ragas_panel.domain.constants import REPORT_WIDTH
from ragas_panel.domain.entities import (
    MetricEvaluationContext,
    MetricEvaluationResult,
    ModelExclusionEvent,
    StepResults,
)
from ragas_panel.domain.value_objects import StepType
from ragas_panel.evaluation.listeners import MetricExecutionListener
from ragas_panel.execution.logging_listener import short_reason
from ragas_panel.visual.bars import Item, render_bars
from ragas_panel.visual.gantt import render_gantt, rows_from_model_results

logger = logging.getLogger(__name__)

BOX_WIDTH = REPORT_WIDTH
_PROMPT_PREVIEW_LINES = 12


@dataclass(frozen=True)
class LoggingOptions:
    """What the final report includes"""
    show_prompts: bool = False
    show_timelines: bool = True
    show_scores: bool = True


def _section(title: str) -> str:
    head = f"╠═══ {title} "
    return head + "═" * max(0, BOX_WIDTH - len(head) - 1) + "╣"


def _ms(result) -> int:
    return int(result.total_duration.total_seconds() * 1000)


class LoggingMetricExecutionListener(MetricExecutionListener):
    """
    Stateful: remembers the metric name and models of the evaluation it
    belongs to, so every evaluation gets its own instance.
    """

    order = -1000

    def __init__(self, options: LoggingOptions | None = None):
        self.options = options or LoggingOptions()
        self.metric_name = ""
        self.model_ids: tuple[str, ...] = ()

    @classmethod
    def minimal(cls) -> LoggingMetricExecutionListener:
        """Step lines and the result score only"""
        return cls(LoggingOptions(show_prompts=False, show_timelines=False, show_scores=False))

    @classmethod
    def verbose(cls) -> LoggingMetricExecutionListener:
        """Everything, including prompts"""
        return cls(LoggingOptions(show_prompts=True, show_timelines=True, show_scores=True))

    def for_evaluation(self) -> LoggingMetricExecutionListener:
        return LoggingMetricExecutionListener(self.options)

    # ------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------

    def before_metric_evaluation(self, context: MetricEvaluationContext) -> None:
        self.metric_name = context.metric_name
        self.model_ids = context.model_ids
        logger.info("%s", self.format_header(context))

    def after_step(self, results: StepResults) -> None:
        position = f"{results.step_index + 1}/{results.total_steps}"
        if results.failure_count == 0:
            logger.info(
                "[%s] Step %s [%s]: %d models OK in %dms",
                self.metric_name, position, results.step_name, results.success_count, _ms(results),
            )
        else:
            failed = ", ".join(
                f"{r.model_id} ({short_reason(r.error)})" for r in results.failed_results()
            )
            logger.warning(
                "[%s] Step %s [%s]: %d OK, %d FAILED in %dms - %s",
                self.metric_name, position, results.step_name,
                results.success_count, results.failure_count, _ms(results), failed,
            )

    def on_model_excluded(self, event: ModelExclusionEvent) -> None:
        logger.warning(
            "[%s] Model %s excluded at step '%s' (#%d): %s",
            self.metric_name, event.model_id, event.failed_step_name,
            event.failed_step_index + 1, short_reason(event.cause),
        )

    def after_metric_evaluation(self, result: MetricEvaluationResult) -> None:
        logger.info("%s", self.format_result(result))

    # ------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------

    @staticmethod
    def format_header(context: MetricEvaluationContext) -> str:
        lines = ["", "╔" + "═" * (BOX_WIDTH - 2) + "╗"]
        title = f"║ {context.metric_name} | Steps: {context.total_steps} | Models: {len(context.model_ids)}"
        if context.embedding_model_ids:
            title += f" | Embedding: {len(context.embedding_model_ids)}"
        lines.append(title)
        lines.append(_section("Models"))
        lines.extend(f"║   {m}" for m in sorted(context.model_ids))
        if context.embedding_model_ids and set(context.embedding_model_ids) != set(context.model_ids):
            lines.append(_section("Embedding Models"))
            lines.extend(f"║   {m}" for m in sorted(context.embedding_model_ids))
        lines.append("╚" + "═" * (BOX_WIDTH - 2) + "╝")
        return "\n".join(lines)

    def format_result(self, result: MetricEvaluationResult) -> str:
        lines = ["", "╔" + "═" * (BOX_WIDTH - 2) + "╗"]
        lines.append(
            f"║ RESULT: {result.metric_name} = {result.aggregated_score:.4f} "
            f"({result.aggregation_strategy}, {int(result.total_duration.total_seconds() * 1000)}ms)"
        )

        lines.append(_section("Steps"))
        for step in result.steps:
            line = (
                f"║ [{step.step_index + 1}/{step.total_steps}] {step.step_name} "
                f"[{step.step_type.value}] - {step.success_count} OK"
            )
            if step.failure_count:
                line += f", {step.failure_count} FAILED"
            lines.append(line + f" ({_ms(step)}ms)")
            if self.options.show_prompts and step.request:
                lines.extend(self._prompt_preview(step.request))

        if self.options.show_timelines:
            for step in result.steps:
                if step.step_type is StepType.COMPUTE or not step.results:
                    continue
                label = "Embedding Timeline" if step.step_type is StepType.EMBEDDING else "LLM Timeline"
                lines.append(_section(f"{label}: {step.step_name}"))
                lines.extend(f"║ {row}" for row in render_gantt(rows_from_model_results(step.results)).splitlines() if row)

        if self.options.show_scores and result.model_scores:
            lines.append(_section("Scores"))
            items = [Item(m, s) for m, s in sorted(result.model_scores.items())]
            chart = render_bars(items, width=BOX_WIDTH - 2)
            lines.extend(f"║ {row}" for row in chart.text.splitlines())
            s = chart.summary
            lines.append(
                f"║ min={s.min:.4f} ({s.min_label[:20]}) | max={s.max:.4f} ({s.max_label[:20]}) | avg={s.avg:.4f}"
            )

        if result.exclusions:
            lines.append(_section("Excluded Models"))
            for event in result.exclusions:
                lines.append(
                    f"║   ✗ {event.model_id} at {event.failed_step_name} "
                    f"(step {event.failed_step_index + 1}): {short_reason(event.cause)}"
                )

        lines.append("╚" + "═" * (BOX_WIDTH - 2) + "╝")
        return "\n".join(lines)

    @staticmethod
    def _prompt_preview(prompt: str) -> list[str]:
        prompt_lines = prompt.splitlines()
        lines = ["║   ┌─ Prompt " + "─" * (BOX_WIDTH - 16)]
        lines.extend(f"║   │ {line}" for line in prompt_lines[:_PROMPT_PREVIEW_LINES])
        if len(prompt_lines) > _PROMPT_PREVIEW_LINES:
            lines.append(f"║   │ ... ({len(prompt_lines) - _PROMPT_PREVIEW_LINES} more lines)")
        lines.append("║   └" + "─" * (BOX_WIDTH - 6))
        return lines
