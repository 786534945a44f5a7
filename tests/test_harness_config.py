"""
harness_config.pyのテスト
"""

import pytest

from ragas_panel.harness_config import (
    ExecutorConfig,
    ModelsConfig,
    IsolationConfig,
    RateLimitConfig,
    HarnessConfig,
    load_config,
)

_ENV_KEYS = [
    "PANEL_MAX_WORKERS", "PANEL_DEFAULT_AGGREGATOR", "PANEL_CONSENSUS_TOLERANCE",
    "PANEL_MODELS", "PANEL_EMBEDDING_MODELS",
    "HARNESS_TIMEOUT_SECONDS", "HARNESS_MAX_RETRIES", "HARNESS_RETRY_DELAY_SECONDS",
    "RATE_LIMIT_STRATEGY", "RATE_LIMIT_TIMEOUT_SECONDS", "RATE_LIMIT_RPS",
    "LMSTUDIO_BASE_URL", "LMSTUDIO_API_KEY",
]


@pytest.fixture
def clean_env(monkeypatch):
    """設定関連の環境変数をクリア"""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestExecutorConfig:
    """ExecutorConfig dataclassのテスト"""

    def test_defaults(self):
        config = ExecutorConfig()
        assert config.max_workers == 0
        assert config.default_aggregator == "AVERAGE"
        assert config.consensus_tolerance == 0.1


class TestModelsConfig:
    """ModelsConfig dataclassのテスト"""

    def test_defaults_are_copies(self):
        first, second = ModelsConfig(), ModelsConfig()
        first.chat_models.append("extra")
        assert "extra" not in second.chat_models
        assert second.embedding_models == ["text-embedding-005"]


class TestIsolationConfig:
    """IsolationConfig dataclassのテスト"""

    def test_defaults(self):
        config = IsolationConfig()
        assert config.timeout_seconds == 120
        assert config.max_retries == 3
        assert config.retry_delay_seconds == 1.0


class TestRateLimitConfig:
    """RateLimitConfig dataclassのテスト"""

    def test_defaults(self):
        config = RateLimitConfig()
        assert config.strategy == "wait"
        assert config.timeout_seconds == 0.0
        assert config.requests_per_second == {}


class TestHarnessConfig:
    """HarnessConfig dataclassのテスト"""

    def test_to_dict(self):
        d = HarnessConfig().to_dict()
        assert set(d["harness_config"]) == {"executor", "models", "isolation", "rate_limit", "lmstudio"}
        assert d["harness_config"]["executor"]["default_aggregator"] == "AVERAGE"

    def test_from_dict_with_key(self):
        data = {
            "harness_config": {
                "executor": {"default_aggregator": "MEDIAN"},
                "rate_limit": {"requests_per_second": {"claude": 2.0}},
            }
        }
        config = HarnessConfig.from_dict(data)
        assert config.executor.default_aggregator == "MEDIAN"
        assert config.rate_limit.requests_per_second == {"claude": 2.0}
        # デフォルト値は維持される
        assert config.executor.consensus_tolerance == 0.1

    def test_from_dict_without_key(self):
        config = HarnessConfig.from_dict({"isolation": {"timeout_seconds": 30}})
        assert config.isolation.timeout_seconds == 30

    def test_roundtrip(self):
        original = HarnessConfig(executor=ExecutorConfig(max_workers=4, default_aggregator="MIN"))
        restored = HarnessConfig.from_dict(original.to_dict())
        assert restored == original


class TestLoadConfig:
    """load_config関数のテスト（環境変数ベース）"""

    def test_defaults_without_env(self, clean_env):
        """環境変数未設定時はデフォルト値を返す"""
        config = load_config()
        assert config == HarnessConfig()

    def test_custom_env_values(self, clean_env):
        """環境変数から値を読み込む"""
        clean_env.setenv("PANEL_MAX_WORKERS", "8")
        clean_env.setenv("PANEL_DEFAULT_AGGREGATOR", "CONSENSUS")
        clean_env.setenv("PANEL_CONSENSUS_TOLERANCE", "0.2")
        clean_env.setenv("PANEL_MODELS", "gemini-2.5-flash, claude-haiku-4-5-20251001")
        clean_env.setenv("PANEL_EMBEDDING_MODELS", "lmstudio/nomic-embed-text")
        clean_env.setenv("HARNESS_TIMEOUT_SECONDS", "60")
        clean_env.setenv("HARNESS_MAX_RETRIES", "5")
        clean_env.setenv("HARNESS_RETRY_DELAY_SECONDS", "2.0")
        clean_env.setenv("RATE_LIMIT_STRATEGY", "reject")
        clean_env.setenv("RATE_LIMIT_TIMEOUT_SECONDS", "1.5")
        clean_env.setenv("RATE_LIMIT_RPS", "claude=5,vertex_ai=2.5")
        clean_env.setenv("LMSTUDIO_BASE_URL", "http://custom:5678/v1")

        config = load_config()
        assert config.executor.max_workers == 8
        assert config.executor.default_aggregator == "CONSENSUS"
        assert config.executor.consensus_tolerance == 0.2
        assert config.models.chat_models == ["gemini-2.5-flash", "claude-haiku-4-5-20251001"]
        assert config.models.embedding_models == ["lmstudio/nomic-embed-text"]
        assert config.isolation.timeout_seconds == 60
        assert config.isolation.max_retries == 5
        assert config.isolation.retry_delay_seconds == 2.0
        assert config.rate_limit.strategy == "reject"
        assert config.rate_limit.timeout_seconds == 1.5
        assert config.rate_limit.requests_per_second == {"claude": 5.0, "vertex_ai": 2.5}
        assert config.lmstudio.base_url == "http://custom:5678/v1"

    def test_invalid_int_env_raises_error(self, clean_env):
        """不正なint型の環境変数でValueErrorが発生"""
        clean_env.setenv("PANEL_MAX_WORKERS", "abc")
        with pytest.raises(ValueError, match="PANEL_MAX_WORKERS"):
            load_config()

    def test_invalid_float_env_raises_error(self, clean_env):
        """不正なfloat型の環境変数でValueErrorが発生"""
        clean_env.setenv("PANEL_CONSENSUS_TOLERANCE", "not-a-number")
        with pytest.raises(ValueError, match="PANEL_CONSENSUS_TOLERANCE"):
            load_config()

    def test_invalid_mapping_env_raises_error(self, clean_env):
        """不正なマッピング形式でValueErrorが発生"""
        clean_env.setenv("RATE_LIMIT_RPS", "claude:5")
        with pytest.raises(ValueError, match="RATE_LIMIT_RPS"):
            load_config()
