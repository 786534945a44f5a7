"""Tests for the sample evaluation use case"""

import json
import math
from datetime import timedelta

import pandas as pd
import pytest

from ragas_panel.domain.entities import MetricEvaluationResult, ModelExclusionEvent, Sample
from ragas_panel.domain.errors import NoConsensusError
from ragas_panel.use_cases.evaluation import (
    evaluate_sample,
    model_scores_frame,
    records_to_dataframe,
    run_all_evaluations,
    summarize_results,
)


class FakeAggregator:
    name = "AVERAGE"


class FakeMetric:
    """Scores a sample by looking its ID up; an exception entry is raised"""

    aggregator = FakeAggregator()

    def __init__(self, name, outcomes):
        self.name = name
        self.outcomes = outcomes

    def evaluate(self, sample):
        outcome = self.outcomes[sample.sample_id]
        if isinstance(outcome, BaseException):
            raise outcome
        return MetricEvaluationResult(
            metric_name=self.name,
            aggregated_score=outcome,
            aggregation_strategy="AVERAGE",
            model_scores={"m1": outcome, "m2": outcome},
            total_duration=timedelta(milliseconds=250),
            sample=sample,
            exclusions=[ModelExclusionEvent("m3", "Step", 0, ValueError("x"))],
        )


SAMPLES = [Sample("q1", sample_id="s1"), Sample("q2", sample_id="s2"), Sample("q3", sample_id="s3")]


class TestEvaluateSample:
    """evaluate_sample: one metric on one sample"""

    def test_success(self):
        record = evaluate_sample(FakeMetric("Faithfulness", {"s1": 0.8}), SAMPLES[0], "run1")

        assert record.available is True
        assert record.score == 0.8
        assert record.run_id == "run1"
        assert json.loads(record.model_scores) == {"m1": 0.8, "m2": 0.8}
        assert record.excluded_models == "m3"
        assert record.duration_ms == 250
        assert record.error is None

    def test_failure_marks_score_unavailable(self):
        metric = FakeMetric("Faithfulness", {"s1": NoConsensusError(0.1, 0.9, 0.1)})
        record = evaluate_sample(metric, SAMPLES[0], "run1")

        assert record.available is False
        assert record.score is None
        assert record.error.startswith("NoConsensusError: No consensus")


class TestRunAllEvaluations:
    """run_all_evaluations: samples x metrics"""

    def test_one_failure_does_not_stop_the_run(self):
        faithfulness = FakeMetric("Faithfulness", {"s1": 0.5, "s2": ValueError("bad sample"), "s3": 1.0})
        critic = FakeMetric("AspectCritic", {"s1": 1.0, "s2": 0.0, "s3": 1.0})

        records = run_all_evaluations(SAMPLES, [faithfulness, critic], run_id="run1", max_concurrent_samples=3)

        assert [(r.sample_id, r.metric_name) for r in records] == [
            ("s1", "Faithfulness"), ("s1", "AspectCritic"),
            ("s2", "Faithfulness"), ("s2", "AspectCritic"),
            ("s3", "Faithfulness"), ("s3", "AspectCritic"),
        ]
        assert [r.available for r in records] == [True, True, False, True, True, True]

    def test_empty_inputs(self):
        assert run_all_evaluations([], [FakeMetric("M", {})]) == []
        assert run_all_evaluations(SAMPLES, []) == []

    def test_default_run_id(self):
        records = run_all_evaluations(SAMPLES[:1], [FakeMetric("M", {"s1": 1.0})])
        assert len(records[0].run_id) == len("20260101_120000")


class TestDataFrames:
    """DataFrame conversion and summaries"""

    def _records(self):
        faithfulness = FakeMetric("Faithfulness", {"s1": 0.5, "s2": ValueError("bad"), "s3": 1.0})
        return run_all_evaluations(SAMPLES, [faithfulness], run_id="run1")

    def test_records_to_dataframe(self):
        df = records_to_dataframe(self._records())
        assert len(df) == 3
        assert math.isnan(df.loc[1, "score"])
        assert df.loc[1, "error"] == "ValueError: bad"

    def test_summarize_results(self):
        summary = summarize_results(self._records())
        row = summary.iloc[0]

        assert row["metric_name"] == "Faithfulness"
        assert row["samples"] == 3
        assert row["available"] == 2
        assert row["availability"] == pytest.approx(2 / 3)
        assert row["mean_score"] == pytest.approx(0.75)
        assert row["min_score"] == 0.5
        assert row["max_score"] == 1.0

    def test_summarize_empty(self):
        summary = summarize_results([])
        assert summary.empty
        assert "availability" in summary.columns

    def test_model_scores_frame(self):
        df = model_scores_frame(records_to_dataframe(self._records()))
        assert len(df) == 4
        assert set(df["model_name"]) == {"m1", "m2"}
        assert df[df["sample_id"] == "s3"]["score"].tolist() == [1.0, 1.0]

    def test_model_scores_frame_tolerates_missing_values(self):
        df = pd.DataFrame([{"sample_id": "s1", "metric_name": "M", "model_scores": float("nan")}])
        assert model_scores_frame(df).empty
