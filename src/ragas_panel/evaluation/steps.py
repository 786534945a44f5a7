"""
Step harness

A multi-step metric is an ordered list of steps run over a cohort: the
models still participating, each with its own working state. Running a
step fans out over the cohort and returns a narrowed cohort plus one
exclusion event per model that failed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import timedelta
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable

from ragas_panel.domain.entities import ModelExclusionEvent, StepResults, step_request_of
from ragas_panel.domain.value_objects import Failure, ModelResult, StepType, Success

if TYPE_CHECKING:
    from ragas_panel.execution.executor import MultiModelExecutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Step:
    """
    One step of a metric

    ``run(model_id, state)`` returns the model's next state or raises.
    ``request(state)`` renders the text sent to the model, for reporting;
    COMPUTE steps send nothing.
    """
    name: str
    step_type: StepType
    run: Callable[[str, Any], Any]
    request: Callable[[Any], str | None] | None = None


@dataclass(frozen=True)
class Cohort:
    """Immutable model ID -> working state mapping, in model order"""
    states: Mapping[str, Any]

    def __post_init__(self):
        object.__setattr__(self, "states", MappingProxyType(dict(self.states)))

    @classmethod
    def of(cls, model_ids: Iterable[str], initial_state: Any = None) -> Cohort:
        return cls({model_id: initial_state for model_id in model_ids})

    @property
    def model_ids(self) -> list[str]:
        return list(self.states)

    @property
    def is_empty(self) -> bool:
        return not self.states

    def items(self):
        return self.states.items()

    def narrow(self, survivors: Mapping[str, Any]) -> Cohort:
        """Keep only surviving models (in the original order) with their new states"""
        return Cohort({m: survivors[m] for m in self.states if m in survivors})

    def __len__(self) -> int:
        return len(self.states)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self.states

    def __iter__(self) -> Iterator[str]:
        return iter(self.states)


@dataclass(frozen=True)
class StepOutcome:
    """Everything one step produced"""
    cohort: Cohort
    exclusions: tuple[ModelExclusionEvent, ...]
    results: StepResults


def _invoke(step: Step, model_id: str, state: Any) -> ModelResult:
    request = None
    start = time.perf_counter()
    try:
        if step.request is not None and step.step_type is not StepType.COMPUTE:
            request = step.request(state)
        value = step.run(model_id, state)
    except Exception as e:
        logger.warning("Model %s failed at step %s: %s", model_id, step.name, e)
        return Failure(model_id, e, timedelta(seconds=time.perf_counter() - start), request)
    return Success(model_id, value, timedelta(seconds=time.perf_counter() - start), request)


def run_step(
    step: Step,
    cohort: Cohort,
    index: int,
    total: int,
    *,
    max_workers: int | None = None,
) -> StepOutcome:
    """
    Run one step over every model in the cohort, concurrently

    Args:
        step: The step to run
        cohort: Models still participating and their states
        index: Zero-based step index
        total: Number of steps in the evaluation
        max_workers: Thread pool size (None = one per model)

    Returns:
        StepOutcome with the narrowed cohort, new exclusions and step results
    """
    if cohort.is_empty:
        results: tuple[ModelResult, ...] = ()
    else:
        with ThreadPoolExecutor(max_workers=max_workers or len(cohort)) as pool:
            futures = [pool.submit(_invoke, step, m, s) for m, s in cohort.items()]
            results = tuple(f.result() for f in futures)

    survivors = {r.model_id: r.value for r in results if isinstance(r, Success)}
    exclusions = tuple(
        ModelExclusionEvent(r.model_id, step.name, index, r.error)
        for r in results if isinstance(r, Failure)
    )
    step_results = StepResults(
        step_name=step.name,
        step_index=index,
        total_steps=total,
        step_type=step.step_type,
        results=results,
        request=None if step.step_type is StepType.COMPUTE else step_request_of(results),
    )
    return StepOutcome(cohort.narrow(survivors), exclusions, step_results)


# ============================================================
# Step builders
# ============================================================

def _keep_response(state: Any, response: Any) -> Any:
    return response


def llm_step(
    name: str,
    executor: MultiModelExecutor,
    prompt: Callable[[Any], str],
    response_type: type[Any],
    merge: Callable[[Any, Any], Any] = _keep_response,
) -> Step:
    """
    A step that asks each model a question built from its own state

    Args:
        name: Step name
        executor: Executor used to call the model
        prompt: Renders the prompt from the model's state
        response_type: Expected response type
        merge: Combines the old state and the response into the next state
    """
    def run(model_id: str, state: Any) -> Any:
        return merge(state, executor.call_model(model_id, prompt(state), response_type))

    return Step(name, StepType.LLM, run, prompt)


def embedding_step(
    name: str,
    executor: MultiModelExecutor,
    texts: Callable[[Any], Sequence[str]],
    merge: Callable[[Any, Any], Any] = _keep_response,
) -> Step:
    """A step that embeds texts with each model of an embedding cohort"""
    def run(model_id: str, state: Any) -> Any:
        return merge(state, executor.embed_texts(model_id, texts(state)))

    return Step(name, StepType.EMBEDDING, run, lambda state: ", ".join(texts(state)))


def compute_step(name: str, fn: Callable[[Any], Any]) -> Step:
    """A local step that derives the next state (usually the score) from the current one"""
    return Step(name, StepType.COMPUTE, lambda model_id, state: fn(state))
