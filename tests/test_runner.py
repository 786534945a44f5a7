"""
runner.pyのテスト

ネットワークを使わず、フェイクのモデルストアでCLI全体を実行する。
"""

import json
from unittest.mock import patch

import pandas as pd
import pytest

from ragas_panel.domain.value_objects import ModelResponse
from ragas_panel.execution.executor import MultiModelExecutor
from ragas_panel.infrastructure.model_clients.base import ModelClient
from ragas_panel.infrastructure.model_clients.store import ChatModelStore
from ragas_panel.metrics import AspectCriticMetric, FaithfulnessMetric
from ragas_panel.runner import build_metrics, main, parse_args
from ragas_panel.scoring.aggregators import ScoreAggregator


class JudgeClient(ModelClient):
    model_name = "judge"

    def __init__(self, verdict):
        self.verdict = verdict

    def generate(self, prompt):
        return ModelResponse(
            output=json.dumps({"criteria": "c", "verdict": self.verdict, "reasoning": "r"}),
            latency_ms=1,
            model_name=self.model_name,
        )


def _executor():
    return MultiModelExecutor(ChatModelStore({"a": JudgeClient(True), "b": JudgeClient(False), "c": JudgeClient(True)}))


class TestParseArgs:
    """parse_args のテスト"""

    def test_defaults(self):
        args = parse_args(["--samples", "s.json"])
        assert args.metrics == "faithfulness"
        assert args.models is None
        assert args.output_dir == "results"


class TestBuildMetrics:
    """build_metrics のテスト"""

    def test_builds_requested_metrics(self):
        metrics = build_metrics(["faithfulness", "aspect_critic"], _executor(), "Is it safe?", None, 0.1)
        assert isinstance(metrics[0], FaithfulnessMetric)
        assert isinstance(metrics[1], AspectCriticMetric)
        assert metrics[1].aggregator is ScoreAggregator.MAJORITY_VOTING

    def test_aggregator_override(self):
        (metric,) = build_metrics(["aspect_critic"], _executor(), "x", "MEDIAN", 0.1)
        assert metric.aggregator is ScoreAggregator.MEDIAN

    def test_unknown_metric(self):
        with pytest.raises(ValueError, match="Unknown metric 'bleu'"):
            build_metrics(["bleu"], _executor(), "x", None, 0.1)


class TestMain:
    """main のテスト（エンドツーエンド）"""

    def test_end_to_end(self, tmp_path, capsys):
        samples_path = tmp_path / "samples.json"
        samples_path.write_text(json.dumps([
            {"sample_id": "s1", "user_input": "q1", "response": "a1"},
            {"sample_id": "s2", "user_input": "q2", "response": "a2"},
        ]), encoding="utf-8")
        output_dir = tmp_path / "results"

        with patch("ragas_panel.runner.build_executor", return_value=_executor()):
            main([
                "--samples", str(samples_path),
                "--metrics", "aspect_critic",
                "--output-dir", str(output_dir),
                "--log-level", "WARNING",
            ])

        scores_files = list(output_dir.glob("scores_*.csv"))
        assert len(scores_files) == 1
        df = pd.read_csv(scores_files[0])
        assert df["score"].tolist() == [1.0, 1.0]
        assert set(df["metric_name"]) == {"AspectCritic"}
        assert list(output_dir.glob("summary_*.csv"))
        assert "=== Metrics Summary ===" in capsys.readouterr().out

    def test_unknown_metric_exits(self, tmp_path):
        samples_path = tmp_path / "samples.json"
        samples_path.write_text(json.dumps([{"user_input": "q"}]), encoding="utf-8")

        with patch("ragas_panel.runner.build_executor", return_value=_executor()):
            with pytest.raises(SystemExit):
                main(["--samples", str(samples_path), "--metrics", "bleu", "--output-dir", str(tmp_path)])
