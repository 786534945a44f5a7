"""
Execution sub-package

Parallel multi-model dispatch, batch-level listeners and rate limiting.
"""

from ragas_panel.execution.executor import (
    ChatModels,
    EmbeddingModels,
    ExecutionRequest,
    MultiModelExecutor,
)
from ragas_panel.execution.listeners import (
    ListenerRegistry,
    ModelExecutionListener,
    notify_each,
)
from ragas_panel.execution.logging_listener import (
    LoggingExecutionListener,
    short_reason,
    simplify_error,
)
from ragas_panel.execution.rate_limit import (
    RateLimiterRegistry,
    RateLimitSettings,
    RateLimitStrategy,
    TokenBucket,
)

__all__ = [
    # executor
    "ChatModels",
    "EmbeddingModels",
    "ExecutionRequest",
    "MultiModelExecutor",
    # listeners
    "ListenerRegistry",
    "ModelExecutionListener",
    "notify_each",
    "LoggingExecutionListener",
    "short_reason",
    "simplify_error",
    # rate limiting
    "RateLimiterRegistry",
    "RateLimitSettings",
    "RateLimitStrategy",
    "TokenBucket",
]
