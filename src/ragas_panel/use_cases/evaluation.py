"""
Sample evaluation use case

Drives many samples through many metrics. A metric that cannot score a
sample (all models failed, no consensus, bad input) marks that one score
unavailable; every other sample and metric still runs.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass
from datetime import datetime

import pandas as pd

from ragas_panel.domain.entities import Sample
from ragas_panel.evaluation.metric import MultiModelMetric

logger = logging.getLogger(__name__)


@dataclass
class EvaluationRecord:
    """Score of one metric on one sample"""
    run_id: str
    sample_id: str
    metric_name: str
    score: float | None
    aggregation_strategy: str
    model_scores: str  # JSON object model -> score
    excluded_models: str  # comma-separated
    duration_ms: int
    timestamp: str
    error: str | None = None

    @property
    def available(self) -> bool:
        return self.score is not None


def evaluate_sample(metric: MultiModelMetric, sample: Sample, run_id: str) -> EvaluationRecord:
    """
    Evaluate one sample with one metric, capturing outcome failures

    Returns:
        EvaluationRecord (score None and error set when unavailable)
    """
    timestamp = datetime.now().isoformat()
    try:
        result = metric.evaluate(sample)
    except Exception as e:
        logger.warning("[%s] Sample %s unavailable: %s", metric.name, sample.sample_id, e)
        logger.debug("Evaluation failure traceback", exc_info=True)
        return EvaluationRecord(
            run_id=run_id,
            sample_id=str(sample.sample_id),
            metric_name=metric.name,
            score=None,
            aggregation_strategy=metric.aggregator.name,
            model_scores="{}",
            excluded_models="",
            duration_ms=0,
            timestamp=timestamp,
            error=f"{type(e).__name__}: {e}",
        )

    return EvaluationRecord(
        run_id=run_id,
        sample_id=str(sample.sample_id),
        metric_name=metric.name,
        score=result.aggregated_score,
        aggregation_strategy=result.aggregation_strategy,
        model_scores=json.dumps(dict(result.model_scores), sort_keys=True),
        excluded_models=",".join(result.excluded_models),
        duration_ms=int(result.total_duration.total_seconds() * 1000),
        timestamp=timestamp,
    )


def run_all_evaluations(
    samples: Sequence[Sample],
    metrics: Sequence[MultiModelMetric],
    run_id: str | None = None,
    max_concurrent_samples: int = 4,
) -> list[EvaluationRecord]:
    """
    Evaluate every sample with every metric (samples run in parallel).

    Args:
        samples: Samples to score
        metrics: Metrics to apply to each sample
        run_id: Run ID (defaults to the current timestamp)
        max_concurrent_samples: Number of samples evaluated at once

    Returns:
        list[EvaluationRecord]: Sample order, then metric order
    """
    run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S")
    if not samples or not metrics:
        return []

    total = len(samples) * len(metrics)
    progress = {"current": 0}
    lock = threading.Lock()

    def _evaluate_all_metrics(sample: Sample) -> list[EvaluationRecord]:
        records = []
        for metric in metrics:
            record = evaluate_sample(metric, sample, run_id)
            records.append(record)
            with lock:
                progress["current"] += 1
                shown = f"{record.score:.3f}" if record.available else "N/A"
                logger.info(
                    "[%d/%d] sample %s | %s | %s",
                    progress["current"], total, sample.sample_id, metric.name, shown,
                )
        return records

    by_index: dict[int, list[EvaluationRecord]] = {}
    with ThreadPoolExecutor(max_workers=max(1, min(max_concurrent_samples, len(samples)))) as executor:
        futures = {executor.submit(_evaluate_all_metrics, sample): i for i, sample in enumerate(samples)}
        for future in as_completed(futures):
            by_index[futures[future]] = future.result()

    return [record for i in sorted(by_index) for record in by_index[i]]


def records_to_dataframe(records: Sequence[EvaluationRecord]) -> pd.DataFrame:
    """Raw records as a DataFrame (unavailable scores are NaN)"""
    df = pd.DataFrame([asdict(r) for r in records])
    if not df.empty:
        df["score"] = pd.to_numeric(df["score"], errors="coerce")
    return df


def summarize_results(records: Sequence[EvaluationRecord]) -> pd.DataFrame:
    """
    Per-metric summary.

    Returns:
        pd.DataFrame with metric_name, samples, available, availability,
        mean_score, min_score, max_score
    """
    df = records_to_dataframe(records)
    columns = ["metric_name", "samples", "available", "availability", "mean_score", "min_score", "max_score"]
    if df.empty:
        return pd.DataFrame(columns=columns)

    summary = df.groupby("metric_name", sort=False).agg(
        samples=("sample_id", "count"),
        available=("score", "count"),
        mean_score=("score", "mean"),
        min_score=("score", "min"),
        max_score=("score", "max"),
    ).reset_index()
    summary["availability"] = summary["available"] / summary["samples"]
    return summary[columns]


def model_scores_frame(scores_df: pd.DataFrame) -> pd.DataFrame:
    """
    Long-form per-model scores from a scores DataFrame

    Expands the JSON ``model_scores`` column into one row per
    (sample_id, metric_name, model_name).
    """
    rows = []
    for _, row in scores_df.iterrows():
        raw = row.get("model_scores")
        if not isinstance(raw, str) or not raw:
            continue
        for model_name, score in json.loads(raw).items():
            rows.append({
                "sample_id": str(row["sample_id"]),
                "metric_name": row["metric_name"],
                "model_name": model_name,
                "score": float(score),
            })
    return pd.DataFrame(rows, columns=["sample_id", "metric_name", "model_name", "score"])
