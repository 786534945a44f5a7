"""
Evaluation Harness Configuration

Manages loading from environment variables and default values.
"""

import os
from dataclasses import dataclass, field, asdict

from ragas_panel.domain.constants import (
    DEFAULT_AGGREGATOR,
    DEFAULT_CONSENSUS_TOLERANCE,
    DEFAULT_EMBEDDING_MODELS,
    DEFAULT_MODELS,
)


def _env_int(key: str, default: int) -> int:
    """Convert an environment variable to int"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to an integer.")


def _env_float(key: str, default: float) -> float:
    """Convert an environment variable to float"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to a number.")


def _env_str(key: str, default: str) -> str:
    """Get an environment variable as a string"""
    return os.environ.get(key, default)


def _env_str_list(key: str, default: list[str]) -> list[str]:
    """Convert an environment variable to a comma-separated list of strings"""
    val = os.environ.get(key)
    if val is None:
        return list(default)
    return [x.strip() for x in val.split(",") if x.strip()]


def _env_mapping(key: str, default: dict[str, float]) -> dict[str, float]:
    """Convert an environment variable of the form 'a=1,b=2.5' to a dict"""
    val = os.environ.get(key)
    if val is None:
        return dict(default)
    result: dict[str, float] = {}
    for item in val.split(","):
        if not item.strip():
            continue
        name, sep, number = item.partition("=")
        try:
            if not sep:
                raise ValueError
            result[name.strip()] = float(number)
        except ValueError:
            raise ValueError(f"The value '{val}' of environment variable '{key}' must look like 'name=number,...'.")
    return result


@dataclass
class ExecutorConfig:
    """Parallel execution and aggregation configuration"""
    max_workers: int = 0  # 0 = one worker per model
    default_aggregator: str = DEFAULT_AGGREGATOR
    consensus_tolerance: float = DEFAULT_CONSENSUS_TOLERANCE


@dataclass
class ModelsConfig:
    """Judge panel configuration"""
    chat_models: list[str] = field(default_factory=lambda: list(DEFAULT_MODELS))
    embedding_models: list[str] = field(default_factory=lambda: list(DEFAULT_EMBEDDING_MODELS))


@dataclass
class IsolationConfig:
    """Per-call isolation configuration (enforced by the provider clients)"""
    timeout_seconds: int = 120
    max_retries: int = 3
    retry_delay_seconds: float = 1.0


@dataclass
class RateLimitConfig:
    """Per-provider rate limiting configuration"""
    strategy: str = "wait"  # wait / reject
    timeout_seconds: float = 0.0  # 0 = wait without limit
    requests_per_second: dict[str, float] = field(default_factory=dict)


@dataclass
class LMStudioConfig:
    """LMStudio (OpenAI-compatible local LLM) configuration"""
    base_url: str = "http://localhost:1234/v1"
    api_key: str = "lm-studio"


@dataclass
class HarnessConfig:
    """Overall evaluation harness configuration"""
    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    models: ModelsConfig = field(default_factory=ModelsConfig)
    isolation: IsolationConfig = field(default_factory=IsolationConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    lmstudio: LMStudioConfig = field(default_factory=LMStudioConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {"harness_config": asdict(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "HarnessConfig":
        """Create from dictionary (handles presence/absence of harness_config key)"""
        config_data = data.get("harness_config", data)
        return cls(
            executor=ExecutorConfig(**config_data.get("executor", {})),
            models=ModelsConfig(**config_data.get("models", {})),
            isolation=IsolationConfig(**config_data.get("isolation", {})),
            rate_limit=RateLimitConfig(**config_data.get("rate_limit", {})),
            lmstudio=LMStudioConfig(**config_data.get("lmstudio", {})),
        )


def load_config() -> HarnessConfig:
    """
    Load configuration from environment variables

    Uses default values when environment variables are not set.

    Returns:
        HarnessConfig

    Raises:
        ValueError: When a variable cannot be converted
    """
    executor = ExecutorConfig(
        max_workers=_env_int("PANEL_MAX_WORKERS", 0),
        default_aggregator=_env_str("PANEL_DEFAULT_AGGREGATOR", DEFAULT_AGGREGATOR),
        consensus_tolerance=_env_float("PANEL_CONSENSUS_TOLERANCE", DEFAULT_CONSENSUS_TOLERANCE),
    )
    models = ModelsConfig(
        chat_models=_env_str_list("PANEL_MODELS", DEFAULT_MODELS),
        embedding_models=_env_str_list("PANEL_EMBEDDING_MODELS", DEFAULT_EMBEDDING_MODELS),
    )
    isolation = IsolationConfig(
        timeout_seconds=_env_int("HARNESS_TIMEOUT_SECONDS", 120),
        max_retries=_env_int("HARNESS_MAX_RETRIES", 3),
        retry_delay_seconds=_env_float("HARNESS_RETRY_DELAY_SECONDS", 1.0),
    )
    rate_limit = RateLimitConfig(
        strategy=_env_str("RATE_LIMIT_STRATEGY", "wait"),
        timeout_seconds=_env_float("RATE_LIMIT_TIMEOUT_SECONDS", 0.0),
        requests_per_second=_env_mapping("RATE_LIMIT_RPS", {}),
    )
    lmstudio = LMStudioConfig(
        base_url=_env_str("LMSTUDIO_BASE_URL", "http://localhost:1234/v1"),
        api_key=_env_str("LMSTUDIO_API_KEY", "lm-studio"),
    )
    return HarnessConfig(
        executor=executor,
        models=models,
        isolation=isolation,
        rate_limit=rate_limit,
        lmstudio=lmstudio,
    )
