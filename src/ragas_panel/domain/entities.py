"""
Domain Entities

Defines the data structures that flow through one multi-model dispatch
and one multi-step metric evaluation.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any

from ragas_panel.domain.value_objects import (
    Failure,
    ModelResult,
    ScoreStatistics,
    StepType,
    Success,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _frozen_mapping(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


@dataclass
class Sample:
    """A single evaluation sample"""
    user_input: str
    response: str = ""
    retrieved_contexts: list[str] = field(default_factory=list)
    reference: str | None = None
    sample_id: str | None = None


# ============================================================
# Batch dispatch
# ============================================================

@dataclass(frozen=True)
class BatchExecutionContext:
    """Metadata for one multi-model dispatch"""
    metric_name: str
    prompt: str
    model_ids: tuple[str, ...]
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "model_ids", tuple(self.model_ids))
        object.__setattr__(self, "metadata", _frozen_mapping(self.metadata))


@dataclass(frozen=True)
class ModelExecutionContext:
    """Metadata for one single-model invocation within a batch"""
    model_id: str
    metric_name: str
    prompt: str
    execution_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=_utcnow)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metadata", _frozen_mapping(self.metadata))

    def with_metadata(self, key: str, value: Any) -> ModelExecutionContext:
        """Return a copy with one more metadata entry"""
        return replace(self, metadata={**self.metadata, key: value})


@dataclass(frozen=True)
class ModelExecutionResult:
    """
    Outcome of one model invocation within a batch

    The outcome holds the parsed response (Success) or the error (Failure).
    A result counts as successful only when a score was extracted.
    """
    context: ModelExecutionContext
    outcome: ModelResult
    score: float | None = None
    completed_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def success(
        cls,
        context: ModelExecutionContext,
        score: float,
        raw_response: Any,
        duration: timedelta | None = None,
    ) -> ModelExecutionResult:
        completed_at = _utcnow()
        if duration is None:
            duration = completed_at - context.started_at
        outcome = Success(context.model_id, raw_response, duration, context.prompt)
        return cls(context=context, outcome=outcome, score=score, completed_at=completed_at)

    @classmethod
    def failure(
        cls,
        context: ModelExecutionContext,
        error: BaseException,
        duration: timedelta | None = None,
    ) -> ModelExecutionResult:
        completed_at = _utcnow()
        if duration is None:
            duration = completed_at - context.started_at
        outcome = Failure(context.model_id, error, duration, context.prompt)
        return cls(context=context, outcome=outcome, completed_at=completed_at)

    @property
    def model_id(self) -> str:
        return self.context.model_id

    @property
    def is_success(self) -> bool:
        return isinstance(self.outcome, Success) and self.score is not None

    @property
    def error(self) -> BaseException | None:
        return self.outcome.error if isinstance(self.outcome, Failure) else None

    @property
    def raw_response(self) -> Any:
        return self.outcome.value if isinstance(self.outcome, Success) else None

    @property
    def duration(self) -> timedelta:
        return self.outcome.duration


@dataclass(frozen=True)
class AggregatedExecutionResult:
    """Final product of one batch dispatch"""
    metric_name: str
    aggregated_score: float
    aggregation_strategy: str
    results: tuple[ModelExecutionResult, ...]
    completed_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        object.__setattr__(self, "results", tuple(self.results))

    def successful_results(self) -> list[ModelExecutionResult]:
        return [r for r in self.results if r.is_success]

    def failed_results(self) -> list[ModelExecutionResult]:
        return [r for r in self.results if not r.is_success]

    @property
    def success_rate(self) -> float:
        """Successful / total (0.0 when there are no results)"""
        if not self.results:
            return 0.0
        return len(self.successful_results()) / len(self.results)

    @property
    def total_duration(self) -> timedelta:
        """Wall time of the batch: the slowest model, not the sum"""
        return max((r.duration for r in self.results), default=timedelta(0))

    def score_statistics(self) -> ScoreStatistics | None:
        return ScoreStatistics.of([r.score for r in self.successful_results()])

    def model_scores(self) -> dict[str, float]:
        return {r.model_id: r.score for r in self.successful_results()}


# ============================================================
# Multi-step evaluation
# ============================================================

@dataclass(frozen=True)
class ModelExclusionEvent:
    """A model dropped from a multi-step evaluation after failing a step"""
    model_id: str
    failed_step_name: str
    failed_step_index: int
    cause: BaseException


@dataclass(frozen=True)
class StepResults:
    """Per-model results of one harness step"""
    step_name: str
    step_index: int
    total_steps: int
    step_type: StepType
    results: tuple[ModelResult, ...]
    request: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "results", tuple(self.results))

    def successful_results(self) -> list[Success]:
        return [r for r in self.results if isinstance(r, Success)]

    def failed_results(self) -> list[Failure]:
        return [r for r in self.results if isinstance(r, Failure)]

    @property
    def success_count(self) -> int:
        return len(self.successful_results())

    @property
    def failure_count(self) -> int:
        return len(self.failed_results())

    @property
    def success_rate(self) -> float:
        if not self.results:
            return 0.0
        return self.success_count / len(self.results)

    @property
    def total_duration(self) -> timedelta:
        return max((r.duration for r in self.results), default=timedelta(0))

    def results_by_model_id(self) -> dict[str, ModelResult]:
        return {r.model_id: r for r in self.results}

    @property
    def is_embedding_step(self) -> bool:
        return self.step_type is StepType.EMBEDDING

    @property
    def embedding_duration(self) -> timedelta:
        """Duration of the embedding work (zero for non-embedding steps)"""
        if not self.is_embedding_step:
            return timedelta(0)
        return self.total_duration

    @property
    def embedding_success_count(self) -> int:
        return self.success_count if self.is_embedding_step else 0

    @property
    def embedding_failure_count(self) -> int:
        return self.failure_count if self.is_embedding_step else 0


@dataclass(frozen=True)
class MetricEvaluationContext:
    """Metadata describing one metric evaluation before it starts"""
    metric_name: str
    sample: Sample | None
    model_ids: tuple[str, ...]
    total_steps: int
    embedding_model_ids: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "model_ids", tuple(self.model_ids))
        object.__setattr__(self, "embedding_model_ids", tuple(self.embedding_model_ids))
        object.__setattr__(self, "metadata", _frozen_mapping(self.metadata))


@dataclass(frozen=True)
class MetricEvaluationResult:
    """Final result of one metric evaluation, with full diagnostics"""
    metric_name: str
    aggregated_score: float
    aggregation_strategy: str
    model_scores: Mapping[str, float]
    total_duration: timedelta
    sample: Sample | None = None
    model_ids: tuple[str, ...] = ()
    embedding_model_ids: tuple[str, ...] = ()
    steps: tuple[StepResults, ...] = ()
    exclusions: tuple[ModelExclusionEvent, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "model_scores", _frozen_mapping(self.model_scores))
        object.__setattr__(self, "model_ids", tuple(self.model_ids))
        object.__setattr__(self, "embedding_model_ids", tuple(self.embedding_model_ids))
        object.__setattr__(self, "steps", tuple(self.steps))
        object.__setattr__(self, "exclusions", tuple(self.exclusions))
        object.__setattr__(self, "metadata", _frozen_mapping(self.metadata))

    @property
    def excluded_models(self) -> list[str]:
        return [e.model_id for e in self.exclusions]

    def score_statistics(self) -> ScoreStatistics | None:
        """Statistics over the surviving models' scores"""
        return ScoreStatistics.of(list(self.model_scores.values()))


def step_request_of(results: Sequence[ModelResult]) -> str | None:
    """First request recorded among results (steps share one template)"""
    return next((r.request for r in results if r.request is not None), None)
