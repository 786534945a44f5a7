"""
Execution listeners

Observer hooks for one multi-model dispatch, the copy-on-write registry
they are kept in, and fault-isolated dispatch.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from typing import Any, Callable, Generic, TypeVar

from ragas_panel.domain.entities import (
    AggregatedExecutionResult,
    BatchExecutionContext,
    ModelExecutionContext,
    ModelExecutionResult,
)

logger = logging.getLogger(__name__)

L = TypeVar("L")


class ModelExecutionListener:
    """
    Batch-level lifecycle hooks

    Subclasses override the hooks they need. Lower ``order`` runs first.
    ``before_execution`` and ``after_execution`` are called from worker
    threads, concurrently for different models.
    """

    order: int = 0

    def before_all_executions(self, context: BatchExecutionContext) -> None:
        pass

    def before_execution(self, context: ModelExecutionContext) -> None:
        pass

    def after_execution(self, result: ModelExecutionResult) -> None:
        pass

    def after_aggregation(self, result: AggregatedExecutionResult) -> None:
        pass


def listener_order(listener: Any) -> int:
    return getattr(listener, "order", 0)


class ListenerRegistry(Generic[L]):
    """
    Copy-on-write listener list

    Mutations swap in a new sorted tuple under a lock; readers take the
    current tuple without locking, so dispatch never blocks registration.
    """

    def __init__(self, listeners: Iterable[L] = ()):
        self._lock = threading.Lock()
        self._listeners: tuple[L, ...] = tuple(sorted(listeners, key=listener_order))

    def add(self, listener: L) -> None:
        self.add_all([listener])

    def add_all(self, listeners: Iterable[L]) -> None:
        with self._lock:
            self._listeners = tuple(sorted((*self._listeners, *listeners), key=listener_order))

    def remove(self, listener: L) -> bool:
        """Remove a listener; returns False when it was not registered"""
        with self._lock:
            if not any(l is listener for l in self._listeners):
                return False
            self._listeners = tuple(l for l in self._listeners if l is not listener)
            return True

    def snapshot(self) -> tuple[L, ...]:
        return self._listeners

    def __iter__(self) -> Iterator[L]:
        return iter(self._listeners)

    def __len__(self) -> int:
        return len(self._listeners)


def notify_each(
    listeners: Iterable[L],
    phase: str,
    metric_name: str,
    callback: Callable[[L], Any],
) -> None:
    """
    Invoke ``callback`` on every listener

    A listener that raises is logged and skipped; the remaining listeners
    are still notified and the exception never reaches the caller.
    """
    for listener in listeners:
        try:
            callback(listener)
        except Exception as e:
            logger.warning(
                "Listener %s failed in %s for %s: %s",
                type(listener).__name__, phase, metric_name, e,
            )
            logger.debug("Listener failure traceback", exc_info=True)
