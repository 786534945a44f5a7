"""
Domain Value Objects

Defines immutable data structures representing values such as model responses,
single-model outcomes, and score statistics.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Generic, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


@dataclass
class ModelResponse:
    """Raw model response"""
    output: str
    latency_ms: int
    model_name: str
    input_tokens: int = 0
    output_tokens: int = 0


class StepType(Enum):
    """Kind of work a harness step performs"""
    LLM = "LLM"
    EMBEDDING = "EMBEDDING"
    COMPUTE = "COMPUTE"


@dataclass(frozen=True)
class Success(Generic[T]):
    """A model invocation that produced a value"""
    model_id: str
    value: T
    duration: timedelta = timedelta(0)
    request: str | None = None

    @property
    def is_success(self) -> bool:
        return True

    def map(self, fn: Callable[[T], U]) -> Success[U]:
        """Transform the value, keeping model ID, duration and request"""
        return Success(self.model_id, fn(self.value), self.duration, self.request)

    def value_or_raise(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """A model invocation that raised"""
    model_id: str
    error: BaseException
    duration: timedelta = timedelta(0)
    request: str | None = None

    @property
    def is_success(self) -> bool:
        return False

    def map(self, fn: Callable[[Any], Any]) -> Failure:
        return self

    def value_or_raise(self) -> Any:
        raise RuntimeError(f"Model {self.model_id} failed") from self.error


# Outcome of one model call for one step
ModelResult = Union[Success[Any], Failure]


@dataclass(frozen=True)
class ScoreStatistics:
    """Statistics over successful scores"""
    count: int
    total: float
    min: float
    max: float
    average: float

    @classmethod
    def of(cls, scores: list[float]) -> ScoreStatistics | None:
        """Compute statistics, or None when there are no scores"""
        if not scores:
            return None
        total = sum(scores)
        return cls(
            count=len(scores),
            total=total,
            min=min(scores),
            max=max(scores),
            average=total / len(scores),
        )
