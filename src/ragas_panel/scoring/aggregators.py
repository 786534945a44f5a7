"""
Score aggregation strategies

Reduces the scores of the successful models to a single score.
Built-in strategies are a closed enum; CONSENSUS is parameterized by a
tolerance; any plain function ``list[float] -> float`` can be used as a
custom strategy.
"""

from __future__ import annotations

import re
import statistics
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol, Union

from ragas_panel.domain.constants import DEFAULT_CONSENSUS_TOLERANCE, MAJORITY_VOTE_THRESHOLD
from ragas_panel.domain.errors import NoConsensusError

AggregatorFn = Callable[[Sequence[float]], float]


class Aggregator(Protocol):
    """Anything with a stable name and an ``aggregate`` method"""

    @property
    def name(self) -> str: ...

    def aggregate(self, scores: Sequence[float]) -> float: ...


def _require_scores(scores: Sequence[float]) -> list[float]:
    values = list(scores)
    if not values:
        raise ValueError("Cannot aggregate an empty score list")
    return values


def _average(scores: list[float]) -> float:
    return sum(scores) / len(scores)


def _majority_vote(scores: list[float]) -> float:
    """1.0 when strictly more than half of the votes are true, else 0.0 (ties lose)"""
    true_votes = sum(1 for s in scores if s >= MAJORITY_VOTE_THRESHOLD)
    return 1.0 if true_votes > len(scores) / 2 else 0.0


class ScoreAggregator(Enum):
    """Built-in aggregation strategies"""
    AVERAGE = "AVERAGE"
    MEDIAN = "MEDIAN"
    MIN = "MIN"
    MAX = "MAX"
    MAJORITY_VOTING = "MAJORITY_VOTING"

    def aggregate(self, scores: Sequence[float]) -> float:
        return _BUILTIN_AGGREGATORS[self](_require_scores(scores))

    @staticmethod
    def consensus(tolerance: float = DEFAULT_CONSENSUS_TOLERANCE) -> Consensus:
        return Consensus(tolerance)


_BUILTIN_AGGREGATORS: dict[ScoreAggregator, Callable[[list[float]], float]] = {
    ScoreAggregator.AVERAGE: _average,
    ScoreAggregator.MEDIAN: statistics.median,
    ScoreAggregator.MIN: min,
    ScoreAggregator.MAX: max,
    ScoreAggregator.MAJORITY_VOTING: _majority_vote,
}


@dataclass(frozen=True)
class Consensus:
    """
    Average, but only when all scores agree

    Agreement means ``max - min <= tolerance`` (absolute, inclusive).
    Otherwise NoConsensusError is raised with the observed range.
    """
    tolerance: float = DEFAULT_CONSENSUS_TOLERANCE

    def __post_init__(self):
        if self.tolerance < 0:
            raise ValueError("tolerance must be non-negative")

    @property
    def name(self) -> str:
        return f"CONSENSUS(tolerance={self.tolerance})"

    def aggregate(self, scores: Sequence[float]) -> float:
        values = _require_scores(scores)
        low, high = min(values), max(values)
        if high - low > self.tolerance:
            raise NoConsensusError(low, high, self.tolerance)
        return _average(values)


@dataclass(frozen=True)
class FunctionAggregator:
    """Custom strategy backed by a plain function"""
    name: str
    fn: AggregatorFn

    def aggregate(self, scores: Sequence[float]) -> float:
        return float(self.fn(_require_scores(scores)))


AggregatorLike = Union[ScoreAggregator, Consensus, FunctionAggregator, Aggregator, AggregatorFn]


def custom_aggregator(name: str, fn: AggregatorFn) -> FunctionAggregator:
    """Wrap a function as a named aggregator"""
    return FunctionAggregator(name, fn)


def as_aggregator(value: AggregatorLike) -> Aggregator:
    """
    Normalize an aggregator argument

    Args:
        value: A built-in, a strategy object, or a plain function

    Returns:
        An object with ``name`` and ``aggregate``
    """
    if hasattr(value, "aggregate") and hasattr(value, "name"):
        return value
    if callable(value):
        return FunctionAggregator(getattr(value, "__name__", "CUSTOM"), value)
    raise TypeError(f"Not an aggregator: {value!r}")


_CONSENSUS_RE = re.compile(r"^CONSENSUS(?:\(\s*(?:tolerance\s*=\s*)?([0-9.]+)\s*\))?$", re.IGNORECASE)


def resolve_aggregator(name: str, consensus_tolerance: float = DEFAULT_CONSENSUS_TOLERANCE) -> Aggregator:
    """
    Look up an aggregator by its report name

    Accepts AVERAGE, MEDIAN, MIN, MAX, MAJORITY_VOTING, CONSENSUS and
    CONSENSUS(tolerance=0.2) (case-insensitive).

    Raises:
        ValueError: When the name is unknown
    """
    key = name.strip().upper()
    m = _CONSENSUS_RE.match(key)
    if m:
        tolerance = float(m.group(1)) if m.group(1) else consensus_tolerance
        return Consensus(tolerance)
    try:
        return ScoreAggregator[key]
    except KeyError:
        valid = ", ".join([a.value for a in ScoreAggregator] + ["CONSENSUS"])
        raise ValueError(f"Unknown aggregator '{name}'. Valid values: {valid}") from None
