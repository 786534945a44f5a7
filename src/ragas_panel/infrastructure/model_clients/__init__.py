"""
Model client package

Provides a unified interface to each LLM provider and the stores
the executor resolves model IDs through.
"""

from ragas_panel.infrastructure.model_clients.base import EmbeddingClient, ModelClient
from ragas_panel.infrastructure.model_clients.factory import (
    create_client,
    create_embedding_client,
    provider_for_model,
)
from ragas_panel.infrastructure.model_clients.store import ChatModelStore, EmbeddingModelStore
from ragas_panel.domain.value_objects import ModelResponse

__all__ = [
    "ChatModelStore",
    "EmbeddingClient",
    "EmbeddingModelStore",
    "ModelClient",
    "ModelResponse",
    "create_client",
    "create_embedding_client",
    "provider_for_model",
]
