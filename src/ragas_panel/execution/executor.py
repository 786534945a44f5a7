"""
Multi-model executor

Dispatches one prompt to every target model in parallel, waits for all of
them to settle, and aggregates the scores of the successful ones.
A failing model becomes a failed result; only a batch with no successes
(or an aggregator that rejects the scores) raises.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Protocol, TypeVar

from ragas_panel.domain.entities import (
    AggregatedExecutionResult,
    BatchExecutionContext,
    ModelExecutionContext,
    ModelExecutionResult,
)
from ragas_panel.domain.errors import AllModelsFailedError, NoModelsConfiguredError
from ragas_panel.domain.value_objects import Failure, ModelResult, Success
from ragas_panel.execution.listeners import ListenerRegistry, ModelExecutionListener, notify_each
from ragas_panel.execution.rate_limit import RateLimiterRegistry
from ragas_panel.scoring.aggregators import AggregatorLike, ScoreAggregator, as_aggregator

logger = logging.getLogger(__name__)

T = TypeVar("T")
V = TypeVar("V")


class ChatModels(Protocol):
    """Typed-response capability, per model ID"""

    @property
    def model_ids(self) -> list[str]: ...

    def call(self, model_id: str, prompt: str, response_type: type[Any]) -> Any: ...


class EmbeddingModels(Protocol):
    """Embedding capability, per model ID"""

    @property
    def model_ids(self) -> list[str]: ...

    def embed(self, model_id: str, text: str) -> list[float]: ...


@dataclass(frozen=True)
class ExecutionRequest:
    """One prompt to score on a panel of models"""
    metric_name: str
    prompt: str
    response_type: type[Any]
    score_extractor: Callable[[Any], float]
    model_ids: Sequence[str]
    metadata: Mapping[str, Any] = field(default_factory=dict)


def _elapsed(start: float) -> timedelta:
    return timedelta(seconds=time.perf_counter() - start)


class MultiModelExecutor:
    """
    Parallel fan-out over a panel of models

    Each call gets its own thread pool, so steps of a multi-step metric may
    fan out again from inside a worker without starving each other.
    """

    def __init__(
        self,
        chat_models: ChatModels,
        embedding_models: EmbeddingModels | None = None,
        *,
        default_aggregator: AggregatorLike = ScoreAggregator.AVERAGE,
        max_workers: int | None = None,
        rate_limiter: RateLimiterRegistry | None = None,
        listeners: Iterable[ModelExecutionListener] = (),
    ):
        """
        Args:
            chat_models: Store resolving chat model IDs
            embedding_models: Store resolving embedding model IDs (optional)
            default_aggregator: Aggregator used when ``execute`` gets none
            max_workers: Thread pool size per call (None = one per model)
            rate_limiter: Per-provider rate limiter acquired before each call
            listeners: Initial batch-level listeners
        """
        self.chat_models = chat_models
        self.embedding_models = embedding_models
        self.default_aggregator = as_aggregator(default_aggregator)
        self.max_workers = max_workers or None
        self.rate_limiter = rate_limiter
        self._listeners: ListenerRegistry[ModelExecutionListener] = ListenerRegistry(listeners)

    # ------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------

    def add_listener(self, listener: ModelExecutionListener) -> None:
        self._listeners.add(listener)

    def add_listeners(self, listeners: Iterable[ModelExecutionListener]) -> None:
        self._listeners.add_all(listeners)

    def remove_listener(self, listener: ModelExecutionListener) -> bool:
        return self._listeners.remove(listener)

    @property
    def listeners(self) -> tuple[ModelExecutionListener, ...]:
        return self._listeners.snapshot()

    @property
    def model_ids(self) -> list[str]:
        return list(self.chat_models.model_ids)

    @property
    def embedding_model_ids(self) -> list[str]:
        if self.embedding_models is None:
            return []
        return list(self.embedding_models.model_ids)

    # ------------------------------------------------------------
    # Batch dispatch
    # ------------------------------------------------------------

    def execute(
        self,
        request: ExecutionRequest,
        aggregator: AggregatorLike | None = None,
    ) -> AggregatedExecutionResult:
        """
        Score one prompt on every requested model and aggregate

        Args:
            request: Prompt, response type, score extractor and model IDs
            aggregator: Strategy over successful scores (default: executor default)

        Returns:
            AggregatedExecutionResult with one entry per model, in request order

        Raises:
            NoModelsConfiguredError: When ``request.model_ids`` is empty
            AllModelsFailedError: When no model produced a score
            NoConsensusError: When a consensus aggregator rejects the scores
        """
        strategy = as_aggregator(aggregator) if aggregator is not None else self.default_aggregator
        model_ids = list(request.model_ids)
        if not model_ids:
            raise NoModelsConfiguredError(request.metric_name)

        listeners = self._listeners.snapshot()
        metric_name = request.metric_name
        batch = BatchExecutionContext(metric_name, request.prompt, tuple(model_ids), request.metadata)
        notify_each(listeners, "before_all_executions", metric_name, lambda l: l.before_all_executions(batch))

        results = self._fan_out(model_ids, lambda model_id: self._execute_on_model(request, model_id, listeners))

        scores = [r.score for r in results if r.is_success]
        if not scores:
            raise AllModelsFailedError(metric_name, results=results)

        aggregated = AggregatedExecutionResult(
            metric_name=metric_name,
            aggregated_score=strategy.aggregate(scores),
            aggregation_strategy=strategy.name,
            results=tuple(results),
        )
        notify_each(listeners, "after_aggregation", metric_name, lambda l: l.after_aggregation(aggregated))
        return aggregated

    def _execute_on_model(
        self,
        request: ExecutionRequest,
        model_id: str,
        listeners: Sequence[ModelExecutionListener],
    ) -> ModelExecutionResult:
        context = ModelExecutionContext(
            model_id=model_id,
            metric_name=request.metric_name,
            prompt=request.prompt,
            metadata=request.metadata,
        )
        notify_each(listeners, "before_execution", request.metric_name, lambda l: l.before_execution(context))

        start = time.perf_counter()
        try:
            response = self.call_model(model_id, request.prompt, request.response_type)
            score = float(request.score_extractor(response))
            result = ModelExecutionResult.success(context, score, response, duration=_elapsed(start))
        except Exception as e:
            logger.warning("Model %s failed: %s", model_id, e)
            result = ModelExecutionResult.failure(context, e, duration=_elapsed(start))

        notify_each(listeners, "after_execution", request.metric_name, lambda l: l.after_execution(result))
        return result

    # ------------------------------------------------------------
    # Raw invocation (raises on failure)
    # ------------------------------------------------------------

    def call_model(self, model_id: str, prompt: str, response_type: type[T]) -> T:
        """Invoke one chat model and return the parsed response"""
        if self.rate_limiter is not None:
            self.rate_limiter.acquire(model_id)
        return self.chat_models.call(model_id, prompt, response_type)

    def embed_text(self, model_id: str, text: str) -> list[float]:
        """Embed one text with one embedding model"""
        if self.embedding_models is None:
            raise RuntimeError("No embedding models configured")
        if self.rate_limiter is not None:
            self.rate_limiter.acquire(model_id)
        return self.embedding_models.embed(model_id, text)

    def embed_texts(self, model_id: str, texts: Sequence[str]) -> list[list[float]]:
        return [self.embed_text(model_id, text) for text in texts]

    # ------------------------------------------------------------
    # Captured invocation (returns ModelResult)
    # ------------------------------------------------------------

    def execute_llm_on_model(self, model_id: str, prompt: str, response_type: type[T]) -> ModelResult:
        return self._capture(model_id, prompt, lambda: self.call_model(model_id, prompt, response_type))

    def execute_llm(self, model_ids: Sequence[str], prompt: str, response_type: type[T]) -> list[ModelResult]:
        """Invoke every model in parallel; results are in ``model_ids`` order"""
        return self._fan_out(
            list(model_ids),
            lambda model_id: self.execute_llm_on_model(model_id, prompt, response_type),
        )

    def execute_embedding_on_model(self, model_id: str, text: str) -> ModelResult:
        return self._capture(model_id, text, lambda: self.embed_text(model_id, text))

    def execute_embeddings_on_model(self, model_id: str, texts: Sequence[str]) -> ModelResult:
        return self._capture(model_id, ", ".join(texts), lambda: self.embed_texts(model_id, texts))

    def execute_embedding(self, text: str, model_ids: Sequence[str] | None = None) -> list[ModelResult]:
        ids = list(model_ids) if model_ids is not None else self.embedding_model_ids
        return self._fan_out(ids, lambda model_id: self.execute_embedding_on_model(model_id, text))

    def execute_embeddings(self, texts: Sequence[str], model_ids: Sequence[str] | None = None) -> list[ModelResult]:
        ids = list(model_ids) if model_ids is not None else self.embedding_model_ids
        return self._fan_out(ids, lambda model_id: self.execute_embeddings_on_model(model_id, texts))

    def _capture(self, model_id: str, request: str, fn: Callable[[], Any]) -> ModelResult:
        start = time.perf_counter()
        try:
            value = fn()
        except Exception as e:
            logger.warning("Model %s failed: %s", model_id, e)
            return Failure(model_id, e, _elapsed(start), request)
        return Success(model_id, value, _elapsed(start), request)

    def _fan_out(self, model_ids: list[str], fn: Callable[[str], V]) -> list[V]:
        """Run ``fn`` for every model concurrently and wait for all of them"""
        if not model_ids:
            return []
        workers = self.max_workers or len(model_ids)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(fn, model_id) for model_id in model_ids]
            return [future.result() for future in futures]
