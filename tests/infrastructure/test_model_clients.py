"""
モデルクライアントのテスト

RetryMixin._with_retry() のリトライ動作、create_client() /
create_embedding_client() のファクトリ分岐、モデルストアをテストする。
"""

import pytest
from unittest.mock import patch, MagicMock
from pydantic import BaseModel

from ragas_panel.domain.errors import StructuredOutputError, UnknownModelError
from ragas_panel.domain.value_objects import ModelResponse
from ragas_panel.harness_config import HarnessConfig, IsolationConfig
from ragas_panel.infrastructure.model_clients.base import EmbeddingClient, ModelClient, RetryMixin
from ragas_panel.infrastructure.model_clients.claude import ClaudeClient
from ragas_panel.infrastructure.model_clients.factory import (
    create_client,
    create_embedding_client,
    provider_for_model,
)
from ragas_panel.infrastructure.model_clients.lmstudio import LMStudioClient
from ragas_panel.infrastructure.model_clients.store import ChatModelStore, EmbeddingModelStore
from ragas_panel.infrastructure.model_clients.vertex_ai import VertexAIClient


class TestRetryMixin:
    """RetryMixin._with_retry() のテスト"""

    def _make_mixin(self, max_retries=3, retry_delay_seconds=1.0):
        mixin = RetryMixin()
        mixin.max_retries = max_retries
        mixin.retry_delay_seconds = retry_delay_seconds
        return mixin

    @patch("ragas_panel.infrastructure.model_clients.base.time.sleep")
    def test_success_on_first_attempt(self, mock_sleep):
        """初回で成功する場合、リトライなしで値を返す"""
        mixin = self._make_mixin()
        fn = MagicMock(return_value="ok")

        result = mixin._with_retry(fn)

        assert result == "ok"
        fn.assert_called_once()
        mock_sleep.assert_not_called()

    @patch("ragas_panel.infrastructure.model_clients.base.time.sleep")
    def test_success_after_two_failures(self, mock_sleep):
        """2回失敗後、3回目で成功する場合"""
        mixin = self._make_mixin(max_retries=3)
        fn = MagicMock(side_effect=[ValueError("1"), ValueError("2"), "ok"])

        result = mixin._with_retry(fn)

        assert result == "ok"
        assert fn.call_count == 3
        # 指数バックオフ: sleep(1), sleep(2)
        assert mock_sleep.call_count == 2
        mock_sleep.assert_any_call(1)
        mock_sleep.assert_any_call(2)

    @patch("ragas_panel.infrastructure.model_clients.base.time.sleep")
    def test_retry_delay_scales_backoff(self, mock_sleep):
        """retry_delay_seconds がバックオフの基準になる"""
        mixin = self._make_mixin(max_retries=3, retry_delay_seconds=0.5)
        fn = MagicMock(side_effect=[ValueError("1"), ValueError("2"), "ok"])

        mixin._with_retry(fn)

        assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5, 1.0]

    @patch("ragas_panel.infrastructure.model_clients.base.time.sleep")
    def test_raises_after_all_retries_exhausted(self, mock_sleep):
        """全リトライ失敗時、最後の例外をraiseする"""
        mixin = self._make_mixin(max_retries=3)
        fn = MagicMock(
            side_effect=[ValueError("1"), ValueError("2"), ValueError("final")]
        )

        with pytest.raises(ValueError, match="final"):
            mixin._with_retry(fn)

        assert fn.call_count == 3

    def test_max_retries_zero_raises_value_error(self):
        """max_retries=0 の場合、ValueError を即座にraiseする"""
        mixin = self._make_mixin(max_retries=0)
        fn = MagicMock(return_value="ok")

        with pytest.raises(ValueError, match="max_retries must be at least 1"):
            mixin._with_retry(fn)

        fn.assert_not_called()

    @patch("ragas_panel.infrastructure.model_clients.base.time.sleep")
    def test_retryable_exceptions_filter(self, mock_sleep):
        """retryable_exceptions に含まれない例外は即座にraiseされる"""
        mixin = self._make_mixin(max_retries=3)
        fn = MagicMock(side_effect=TypeError("not retryable"))

        with pytest.raises(TypeError, match="not retryable"):
            mixin._with_retry(fn, retryable_exceptions=(ValueError,))

        fn.assert_called_once()
        mock_sleep.assert_not_called()


class TestProviderForModel:
    """provider_for_model() のテスト"""

    def test_providers(self):
        assert provider_for_model("lmstudio/qwen2.5-7b") == "lmstudio"
        assert provider_for_model("claude-haiku-4-5-20251001") == "claude"
        assert provider_for_model("gemini-2.5-flash") == "vertex_ai"
        assert provider_for_model("text-embedding-005") == "vertex_ai"


class TestCreateClient:
    """create_client() ファクトリのテスト"""

    @patch("ragas_panel.infrastructure.model_clients.vertex_ai.genai.Client")
    @patch.dict("os.environ", {"GCP_PROJECT_ID": "test-project"})
    def test_gemini_model_returns_vertex_ai_client(self, mock_genai_client):
        """geminiモデル名の場合、VertexAIClientを返す"""
        client = create_client("gemini-2.5-flash", HarnessConfig())
        assert isinstance(client, VertexAIClient)

    @patch.dict("os.environ", {"ANTHROPIC_API_KEY": "test-key"})
    def test_claude_model_returns_claude_client(self):
        """claudeモデル名の場合、ClaudeClientを返す"""
        config = HarnessConfig(isolation=IsolationConfig(max_retries=5, retry_delay_seconds=0.25))
        client = create_client("claude-sonnet-4-5-20250514", config)
        assert isinstance(client, ClaudeClient)
        assert client.max_retries == 5
        assert client.retry_delay_seconds == 0.25

    def test_lmstudio_model_returns_lmstudio_client(self):
        """lmstudio/プレフィックスの場合、LMStudioClientを返す"""
        client = create_client("lmstudio/qwen2.5-7b", HarnessConfig())
        assert isinstance(client, LMStudioClient)
        assert client.api_model_name == "qwen2.5-7b"

    @patch.dict("os.environ", {}, clear=True)
    def test_claude_without_api_key(self):
        """ANTHROPIC_API_KEY 未設定時は ValueError"""
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY is not set"):
            create_client("claude-haiku-4-5-20251001", HarnessConfig())


class TestCreateEmbeddingClient:
    """create_embedding_client() のテスト"""

    def test_claude_has_no_embeddings(self):
        with pytest.raises(ValueError, match="no embedding API"):
            create_embedding_client("claude-haiku-4-5-20251001", HarnessConfig())

    def test_lmstudio_embedding_client(self):
        client = create_embedding_client("lmstudio/nomic-embed-text", HarnessConfig())
        assert isinstance(client, EmbeddingClient)

    def test_lmstudio_embed_calls_openai(self):
        client = LMStudioClient("lmstudio/nomic-embed-text")
        client.client = MagicMock()
        client.client.embeddings.create.return_value = MagicMock(data=[MagicMock(embedding=[0.1, 0.2])])

        assert client.embed("hello") == [0.1, 0.2]
        client.client.embeddings.create.assert_called_once_with(model="nomic-embed-text", input="hello")


# ============================================================
# Model stores
# ============================================================

class Verdict(BaseModel):
    verdict: bool


class FakeModelClient(ModelClient):
    def __init__(self, output):
        self.model_name = "fake"
        self.output = output
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        return ModelResponse(output=self.output, latency_ms=1, model_name=self.model_name)


class FakeEmbeddingClient(EmbeddingClient):
    model_name = "fake-embed"

    def embed(self, text):
        return [float(len(text))]


class TestChatModelStore:
    """ChatModelStore のテスト"""

    def test_call_parses_response(self):
        client = FakeModelClient('{"verdict": true}')
        store = ChatModelStore({"judge": client})

        assert store.call("judge", "Is it good?", Verdict) == Verdict(verdict=True)
        assert client.prompts[0].startswith("Is it good?")
        assert "JSON Schema" in client.prompts[0]

    def test_call_str_passes_prompt_through(self):
        client = FakeModelClient("raw text")
        store = ChatModelStore({"judge": client})

        assert store.call("judge", "prompt", str) == "raw text"
        assert client.prompts == ["prompt"]

    def test_call_invalid_output(self):
        store = ChatModelStore({"judge": FakeModelClient("not json")})
        with pytest.raises(StructuredOutputError):
            store.call("judge", "prompt", Verdict)

    def test_unknown_model(self):
        with pytest.raises(UnknownModelError, match="Unknown model: missing"):
            ChatModelStore({}).get("missing")

    def test_model_ids_in_registration_order(self):
        store = ChatModelStore({"b": FakeModelClient(""), "a": FakeModelClient("")})
        assert store.model_ids == ["b", "a"]


class TestEmbeddingModelStore:
    """EmbeddingModelStore のテスト"""

    def test_embed(self):
        store = EmbeddingModelStore({"e1": FakeEmbeddingClient()})
        assert store.model_ids == ["e1"]
        assert store.embed("e1", "abc") == [3.0]

    def test_empty_by_default(self):
        assert EmbeddingModelStore().model_ids == []

    def test_unknown_model(self):
        with pytest.raises(UnknownModelError):
            EmbeddingModelStore().embed("missing", "text")
