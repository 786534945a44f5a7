"""
Multi-model metric base

Holds the long-lived listener registration of a metric and runs one
evaluation as an ordered sequence of steps over a shrinking cohort.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from datetime import timedelta
from typing import Any, Callable

from ragas_panel.domain.entities import (
    MetricEvaluationContext,
    MetricEvaluationResult,
    ModelExclusionEvent,
    Sample,
    StepResults,
)
from ragas_panel.domain.errors import (
    AllModelsFailedError,
    NoModelsConfiguredError,
    NoScoresToAggregateError,
)
from ragas_panel.domain.value_objects import Failure
from ragas_panel.evaluation.listeners import (
    EvaluationNotifier,
    MetricExecutionListener,
    scope_listeners,
)
from ragas_panel.evaluation.steps import Cohort, Step, run_step
from ragas_panel.execution.executor import MultiModelExecutor
from ragas_panel.execution.listeners import ListenerRegistry
from ragas_panel.scoring.aggregators import Aggregator, AggregatorLike, as_aggregator

logger = logging.getLogger(__name__)


class MultiModelMetric(ABC):
    """
    Base class for metrics scored by a panel of models

    Listeners can be registered and removed while evaluations run. Every
    evaluation works on its own snapshot of evaluation-scoped listeners.
    """

    name: str = "MultiModelMetric"

    def __init__(
        self,
        executor: MultiModelExecutor,
        *,
        aggregator: AggregatorLike | None = None,
        listeners: Iterable[MetricExecutionListener] = (),
    ):
        self.executor = executor
        self.aggregator: Aggregator = (
            as_aggregator(aggregator) if aggregator is not None else executor.default_aggregator
        )
        self._listeners: ListenerRegistry[MetricExecutionListener] = ListenerRegistry(listeners)

    # ------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------

    def add_listener(self, listener: MetricExecutionListener) -> None:
        self._listeners.add(listener)

    def add_listeners(self, listeners: Iterable[MetricExecutionListener]) -> None:
        self._listeners.add_all(listeners)

    def with_listeners(self, listeners: Iterable[MetricExecutionListener]) -> MultiModelMetric:
        """Register listeners and return the metric (for chaining)"""
        self.add_listeners(listeners)
        return self

    def remove_listener(self, listener: MetricExecutionListener) -> bool:
        return self._listeners.remove(listener)

    @property
    def listeners(self) -> tuple[MetricExecutionListener, ...]:
        return self._listeners.snapshot()

    def create_evaluation_notifier(self) -> EvaluationNotifier:
        return EvaluationNotifier(self.name, scope_listeners(self._listeners.snapshot(), self.name))

    # ------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------

    @abstractmethod
    def evaluate(self, sample: Sample, model_ids: Sequence[str] | None = None) -> MetricEvaluationResult:
        """Evaluate one sample and return the full result"""

    def single_turn_score(self, sample: Sample, model_ids: Sequence[str] | None = None) -> float:
        """Evaluate one sample and return only the aggregated score"""
        return self.evaluate(sample, model_ids).aggregated_score

    def resolve_model_ids(self, model_ids: Sequence[str] | None) -> list[str]:
        """Explicit model IDs, or every chat model of the executor"""
        return list(model_ids) if model_ids else self.executor.model_ids

    def aggregate(self, model_scores: Mapping[str, float], aggregator: AggregatorLike | None = None) -> float:
        """
        Aggregate per-model scores

        Raises:
            NoScoresToAggregateError: When ``model_scores`` is empty
        """
        if not model_scores:
            raise NoScoresToAggregateError(self.name)
        strategy = as_aggregator(aggregator) if aggregator is not None else self.aggregator
        return strategy.aggregate(list(model_scores.values()))

    def run_steps(
        self,
        sample: Sample | None,
        steps: Sequence[Step],
        model_ids: Sequence[str],
        *,
        initial_state: Any = None,
        score: Callable[[Any], float] = float,
        aggregator: AggregatorLike | None = None,
        embedding_model_ids: Sequence[str] = (),
        metadata: Mapping[str, Any] | None = None,
    ) -> MetricEvaluationResult:
        """
        Run ``steps`` in order over ``model_ids`` and aggregate the survivors

        A model that fails a step is excluded from every later step and from
        the aggregation.

        Args:
            sample: Sample being scored (for reporting)
            steps: Ordered steps
            model_ids: Initial cohort
            initial_state: Working state every model starts from
            score: Extracts the score from a surviving model's final state
            aggregator: Strategy over surviving scores (default: the metric's)
            embedding_model_ids: Embedding models involved (for reporting)
            metadata: Extra data passed to listeners

        Returns:
            MetricEvaluationResult

        Raises:
            NoModelsConfiguredError: When ``model_ids`` is empty
            AllModelsFailedError: When every model has been excluded
            NoConsensusError: When a consensus aggregator rejects the scores
        """
        cohort = Cohort.of(model_ids, initial_state)
        initial_ids = tuple(cohort.model_ids)
        if cohort.is_empty:
            raise NoModelsConfiguredError(self.name)

        strategy = as_aggregator(aggregator) if aggregator is not None else self.aggregator
        notifier = self.create_evaluation_notifier()
        started = time.perf_counter()
        total = len(steps)

        notifier.before_metric_evaluation(MetricEvaluationContext(
            metric_name=self.name,
            sample=sample,
            model_ids=initial_ids,
            total_steps=total,
            embedding_model_ids=tuple(embedding_model_ids),
            metadata=metadata or {},
        ))

        step_results: list[StepResults] = []
        for index, step in enumerate(steps):
            notifier.before_step(step.name, index, total)
            outcome = run_step(step, cohort, index, total, max_workers=self.executor.max_workers)
            step_results.append(outcome.results)
            notifier.after_step(outcome.results)
            for event in outcome.exclusions:
                logger.info(
                    "[%s] Model %s excluded at step %s (%d/%d)",
                    self.name, event.model_id, event.failed_step_name, index + 1, total,
                )
                notifier.on_model_excluded(event)
            cohort = outcome.cohort
            if cohort.is_empty:
                raise AllModelsFailedError(self.name, step_name=step.name, results=outcome.results.results)

        model_scores = self._score_survivors(cohort, score, steps, notifier)
        result = MetricEvaluationResult(
            metric_name=self.name,
            aggregated_score=self.aggregate(model_scores, strategy),
            aggregation_strategy=strategy.name,
            model_scores=model_scores,
            total_duration=timedelta(seconds=time.perf_counter() - started),
            sample=sample,
            model_ids=initial_ids,
            embedding_model_ids=tuple(embedding_model_ids),
            steps=tuple(step_results),
            exclusions=tuple(notifier.exclusions),
            metadata=metadata or {},
        )
        notifier.after_metric_evaluation(result)
        return result

    def _score_survivors(
        self,
        cohort: Cohort,
        score: Callable[[Any], float],
        steps: Sequence[Step],
        notifier: EvaluationNotifier,
    ) -> dict[str, float]:
        """
        Extract each surviving model's score from its final state

        A model whose state cannot be scored is excluded at the last step.
        """
        step_name = steps[-1].name if steps else "Score"
        step_index = max(len(steps) - 1, 0)
        model_scores: dict[str, float] = {}
        failures: list[Failure] = []
        for model_id, state in cohort.items():
            try:
                model_scores[model_id] = float(score(state))
            except Exception as e:
                logger.warning("[%s] Model %s could not be scored: %s", self.name, model_id, e)
                failures.append(Failure(model_id, e))
                notifier.on_model_excluded(ModelExclusionEvent(model_id, step_name, step_index, e))
        if not model_scores:
            raise AllModelsFailedError(self.name, step_name=step_name, results=failures)
        return model_scores
