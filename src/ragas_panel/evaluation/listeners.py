"""
Metric execution listeners

Hooks for one metric evaluation and the per-evaluation notifier that
dispatches them.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ragas_panel.domain.entities import (
    MetricEvaluationContext,
    MetricEvaluationResult,
    ModelExclusionEvent,
    StepResults,
)
from ragas_panel.execution.listeners import listener_order, notify_each

logger = logging.getLogger(__name__)


class MetricExecutionListener:
    """
    Evaluation-level lifecycle hooks

    One evaluation may run while another evaluation of the same metric is
    in flight. A listener that keeps state must return a fresh instance
    from ``for_evaluation``; stateless listeners return ``self``.
    """

    order: int = 0

    def for_evaluation(self) -> MetricExecutionListener:
        return self

    def before_metric_evaluation(self, context: MetricEvaluationContext) -> None:
        pass

    def before_step(self, step_name: str, step_index: int, total_steps: int) -> None:
        pass

    def after_step(self, results: StepResults) -> None:
        pass

    def on_model_excluded(self, event: ModelExclusionEvent) -> None:
        pass

    def after_metric_evaluation(self, result: MetricEvaluationResult) -> None:
        pass


def scope_listeners(
    listeners: Sequence[MetricExecutionListener],
    metric_name: str,
) -> list[MetricExecutionListener]:
    """Ask every listener for its evaluation-scoped instance, sorted by order"""
    scoped: list[MetricExecutionListener] = []
    for listener in listeners:
        try:
            scoped.append(listener.for_evaluation())
        except Exception as e:
            logger.warning(
                "Listener %s failed in for_evaluation for %s: %s",
                type(listener).__name__, metric_name, e,
            )
    return sorted(scoped, key=listener_order)


class EvaluationNotifier:
    """
    Notifies the listeners of one evaluation

    Owns the exclusion events recorded during the evaluation. A listener
    that raises is logged and skipped.
    """

    def __init__(self, metric_name: str, listeners: Sequence[MetricExecutionListener]):
        self.metric_name = metric_name
        self.listeners = tuple(listeners)
        self.exclusions: list[ModelExclusionEvent] = []

    def before_metric_evaluation(self, context: MetricEvaluationContext) -> None:
        notify_each(self.listeners, "before_metric_evaluation", self.metric_name,
                    lambda l: l.before_metric_evaluation(context))

    def before_step(self, step_name: str, step_index: int, total_steps: int) -> None:
        notify_each(self.listeners, "before_step", self.metric_name,
                    lambda l: l.before_step(step_name, step_index, total_steps))

    def after_step(self, results: StepResults) -> None:
        notify_each(self.listeners, "after_step", self.metric_name, lambda l: l.after_step(results))

    def on_model_excluded(self, event: ModelExclusionEvent) -> None:
        self.exclusions.append(event)
        notify_each(self.listeners, "on_model_excluded", self.metric_name,
                    lambda l: l.on_model_excluded(event))

    def after_metric_evaluation(self, result: MetricEvaluationResult) -> None:
        notify_each(self.listeners, "after_metric_evaluation", self.metric_name,
                    lambda l: l.after_metric_evaluation(result))
