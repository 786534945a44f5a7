"""
Model client factory

Creates the appropriate client instance based on the model name.
"""

from __future__ import annotations

from ragas_panel.domain.constants import PROVIDER_CLAUDE, PROVIDER_LMSTUDIO, PROVIDER_VERTEX_AI
from ragas_panel.harness_config import HarnessConfig, load_config
from ragas_panel.infrastructure.model_clients.base import EmbeddingClient, ModelClient
from ragas_panel.infrastructure.model_clients.vertex_ai import VertexAIClient
from ragas_panel.infrastructure.model_clients.claude import ClaudeClient
from ragas_panel.infrastructure.model_clients.lmstudio import LMStudioClient


def provider_for_model(model_name: str) -> str:
    """Provider key of a model name (lmstudio/..., claude..., otherwise Vertex AI)"""
    if model_name.startswith("lmstudio/"):
        return PROVIDER_LMSTUDIO
    if model_name.startswith("claude"):
        return PROVIDER_CLAUDE
    return PROVIDER_VERTEX_AI


def create_client(model_name: str, config: HarnessConfig | None = None) -> ModelClient:
    """
    Create the appropriate chat client based on the model name

    Args:
        model_name: Model name
        config: HarnessConfig (loads from env if not provided)

    Returns:
        ModelClient: The appropriate client instance
    """
    if config is None:
        config = load_config()

    timeout = config.isolation.timeout_seconds
    retries = config.isolation.max_retries
    retry_delay = config.isolation.retry_delay_seconds

    provider = provider_for_model(model_name)
    if provider == PROVIDER_LMSTUDIO:
        return LMStudioClient(
            model_name,
            base_url=config.lmstudio.base_url,
            api_key=config.lmstudio.api_key,
            timeout_seconds=timeout,
            max_retries=retries,
            retry_delay_seconds=retry_delay,
        )
    elif provider == PROVIDER_CLAUDE:
        return ClaudeClient(model_name, timeout_seconds=timeout, max_retries=retries, retry_delay_seconds=retry_delay)
    else:
        return VertexAIClient(model_name, timeout_seconds=timeout, max_retries=retries, retry_delay_seconds=retry_delay)


def create_embedding_client(model_name: str, config: HarnessConfig | None = None) -> EmbeddingClient:
    """
    Create the appropriate embedding client based on the model name

    Raises:
        ValueError: For providers without an embedding API (Claude)
    """
    if provider_for_model(model_name) == PROVIDER_CLAUDE:
        raise ValueError(f"Provider '{PROVIDER_CLAUDE}' has no embedding API: {model_name}")
    client = create_client(model_name, config)
    assert isinstance(client, EmbeddingClient)
    return client
