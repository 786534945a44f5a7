"""
Domain Errors

Exceptions raised when an evaluation outcome cannot be produced.
Per-model failures are captured as results and never raised from the core;
the errors below are the ones a caller has to handle.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class RagasPanelError(Exception):
    """Base class for all engine errors"""
    pass


class NoModelsConfiguredError(RagasPanelError, ValueError):
    """Raised before dispatch when the model list is empty"""

    def __init__(self, metric_name: str) -> None:
        self.metric_name = metric_name
        super().__init__(f"No models configured for metric: {metric_name}")


class AllModelsFailedError(RagasPanelError):
    """
    Raised when no model produced a usable result

    Carries the per-model results so callers can report what went wrong.
    """

    def __init__(
        self,
        metric_name: str,
        step_name: str | None = None,
        results: Sequence[Any] = (),
    ) -> None:
        self.metric_name = metric_name
        self.step_name = step_name
        self.results = tuple(results)
        if step_name:
            message = f"All models failed at step {step_name} for metric: {metric_name}"
        else:
            message = f"All models failed for metric: {metric_name}"
        super().__init__(message)


class NoConsensusError(RagasPanelError):
    """Raised by the consensus aggregator when scores spread beyond the tolerance"""

    def __init__(self, min_score: float, max_score: float, tolerance: float) -> None:
        self.min_score = min_score
        self.max_score = max_score
        self.tolerance = tolerance
        super().__init__(
            f"No consensus: scores range from {min_score} to {max_score} (tolerance: {tolerance})"
        )


class NoScoresToAggregateError(RagasPanelError):
    """Raised when a metric tries to aggregate an empty score map"""

    def __init__(self, metric_name: str) -> None:
        self.metric_name = metric_name
        super().__init__(f"No successful model scores to aggregate for metric: {metric_name}")


class StructuredOutputError(RagasPanelError):
    """Raised when a model response cannot be parsed into the expected shape"""
    pass


class UnknownModelError(RagasPanelError, KeyError):
    """Raised when a model ID is not registered in a model store"""

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(f"Unknown model: {model_id}")

    def __str__(self) -> str:
        return self.args[0]


class RateLimitExceededError(RagasPanelError):
    """Raised when a provider's rate limit rejects or times out a request"""

    def __init__(self, model_id: str, provider: str) -> None:
        self.model_id = model_id
        self.provider = provider
        super().__init__(f"Rate limit exceeded for model {model_id} (provider: {provider})")
