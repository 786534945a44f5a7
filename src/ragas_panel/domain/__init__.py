"""
Domain Layer

Defines constants, entities, value objects and errors that form the core of the engine.
Has no dependencies on external libraries.
"""

from ragas_panel.domain.constants import (
    DEFAULT_AGGREGATOR,
    DEFAULT_CONSENSUS_TOLERANCE,
    DEFAULT_EMBEDDING_MODELS,
    DEFAULT_MODELS,
)
from ragas_panel.domain.entities import (
    AggregatedExecutionResult,
    BatchExecutionContext,
    MetricEvaluationContext,
    MetricEvaluationResult,
    ModelExclusionEvent,
    ModelExecutionContext,
    ModelExecutionResult,
    Sample,
    StepResults,
)
from ragas_panel.domain.errors import (
    AllModelsFailedError,
    NoConsensusError,
    NoModelsConfiguredError,
    NoScoresToAggregateError,
    RagasPanelError,
    RateLimitExceededError,
    StructuredOutputError,
    UnknownModelError,
)
from ragas_panel.domain.value_objects import (
    Failure,
    ModelResponse,
    ModelResult,
    ScoreStatistics,
    StepType,
    Success,
)

__all__ = [
    # constants
    "DEFAULT_AGGREGATOR",
    "DEFAULT_CONSENSUS_TOLERANCE",
    "DEFAULT_EMBEDDING_MODELS",
    "DEFAULT_MODELS",
    # entities
    "AggregatedExecutionResult",
    "BatchExecutionContext",
    "MetricEvaluationContext",
    "MetricEvaluationResult",
    "ModelExclusionEvent",
    "ModelExecutionContext",
    "ModelExecutionResult",
    "Sample",
    "StepResults",
    # errors
    "AllModelsFailedError",
    "NoConsensusError",
    "NoModelsConfiguredError",
    "NoScoresToAggregateError",
    "RagasPanelError",
    "RateLimitExceededError",
    "StructuredOutputError",
    "UnknownModelError",
    # value objects
    "Failure",
    "ModelResponse",
    "ModelResult",
    "ScoreStatistics",
    "StepType",
    "Success",
]
