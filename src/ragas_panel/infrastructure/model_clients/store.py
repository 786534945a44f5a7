"""
Model stores

Map model IDs to clients. The executor only talks to models through a
store: ``call`` returns a typed response, ``embed`` returns a vector.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ragas_panel.domain.errors import UnknownModelError
from ragas_panel.harness_config import HarnessConfig
from ragas_panel.infrastructure.model_clients.base import EmbeddingClient, ModelClient
from ragas_panel.infrastructure.model_clients.factory import create_client, create_embedding_client
from ragas_panel.scoring.structured_output import format_instructions, parse_structured


class ChatModelStore:
    """Chat (judge) models by ID, in registration order"""

    def __init__(self, clients: Mapping[str, ModelClient]):
        self._clients = dict(clients)

    @classmethod
    def from_names(cls, model_names: Iterable[str], config: HarnessConfig | None = None) -> ChatModelStore:
        return cls({name: create_client(name, config) for name in model_names})

    @property
    def model_ids(self) -> list[str]:
        return list(self._clients)

    def get(self, model_id: str) -> ModelClient:
        try:
            return self._clients[model_id]
        except KeyError:
            raise UnknownModelError(model_id) from None

    def call(self, model_id: str, prompt: str, response_type: type[Any]) -> Any:
        """
        Invoke a model and parse its output

        Args:
            model_id: Registered model ID
            prompt: Prompt text (format instructions are appended)
            response_type: pydantic model class, or ``str`` for raw text

        Returns:
            The parsed response

        Raises:
            UnknownModelError: When the model is not registered
            StructuredOutputError: When the output does not match the type
            Exception: Whatever the provider client raises
        """
        client = self.get(model_id)
        response = client.generate(prompt + format_instructions(response_type))
        return parse_structured(response.output, response_type)


class EmbeddingModelStore:
    """Embedding models by ID, in registration order"""

    def __init__(self, clients: Mapping[str, EmbeddingClient] | None = None):
        self._clients = dict(clients or {})

    @classmethod
    def from_names(cls, model_names: Iterable[str], config: HarnessConfig | None = None) -> EmbeddingModelStore:
        return cls({name: create_embedding_client(name, config) for name in model_names})

    @property
    def model_ids(self) -> list[str]:
        return list(self._clients)

    def get(self, model_id: str) -> EmbeddingClient:
        try:
            return self._clients[model_id]
        except KeyError:
            raise UnknownModelError(model_id) from None

    def embed(self, model_id: str, text: str) -> list[float]:
        return self.get(model_id).embed(text)
