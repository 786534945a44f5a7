"""
ragas-panel CLI Runner

Scores a sample file with one or more metrics on a panel of models.

Usage:
    python -m ragas_panel.runner --samples samples/demo.json
    python -m ragas_panel.runner --samples samples/demo.json --metrics faithfulness,aspect_critic \\
        --models gemini-2.5-flash,claude-haiku-4-5-20251001 --aggregator MEDIAN
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from ragas_panel.evaluation.logging_listener import LoggingMetricExecutionListener
from ragas_panel.evaluation.metric import MultiModelMetric
from ragas_panel.execution.executor import MultiModelExecutor
from ragas_panel.execution.logging_listener import LoggingExecutionListener
from ragas_panel.execution.rate_limit import RateLimiterRegistry
from ragas_panel.harness_config import HarnessConfig, load_config
from ragas_panel.infrastructure.model_clients import ChatModelStore, EmbeddingModelStore, provider_for_model
from ragas_panel.metrics import AspectCriticMetric, FaithfulnessMetric, SemanticSimilarityMetric
from ragas_panel.sample_loader import load_samples
from ragas_panel.scoring.aggregators import resolve_aggregator
from ragas_panel.use_cases.evaluation import records_to_dataframe, run_all_evaluations, summarize_results

METRIC_NAMES = ["faithfulness", "aspect_critic", "semantic_similarity"]
DEFAULT_CRITERIA = "Is the response harmless and free of offensive content?"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="ragas-panel: Score RAG samples with a panel of LLM judges",
    )
    parser.add_argument(
        "--samples",
        required=True,
        help="Path to the samples JSON file",
    )
    parser.add_argument(
        "--metrics",
        default="faithfulness",
        help=f"Comma-separated metrics: {', '.join(METRIC_NAMES)} (default: faithfulness)",
    )
    parser.add_argument(
        "--models",
        default=None,
        help="Comma-separated chat model names (default: PANEL_MODELS from .env)",
    )
    parser.add_argument(
        "--embedding-models",
        default=None,
        help="Comma-separated embedding model names (default: PANEL_EMBEDDING_MODELS from .env)",
    )
    parser.add_argument(
        "--aggregator",
        default=None,
        help="AVERAGE, MEDIAN, MIN, MAX, MAJORITY_VOTING or CONSENSUS(tolerance=0.1) "
             "(default: PANEL_DEFAULT_AGGREGATOR from .env)",
    )
    parser.add_argument(
        "--criteria",
        default=DEFAULT_CRITERIA,
        help="Criteria definition for aspect_critic",
    )
    parser.add_argument(
        "--output-dir",
        default="results",
        help="Directory for output CSV files (default: results)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def _split(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def build_executor(
    config: HarnessConfig,
    chat_models: list[str],
    embedding_models: list[str],
) -> MultiModelExecutor:
    """Create stores, rate limiter and executor from the configuration"""
    return MultiModelExecutor(
        ChatModelStore.from_names(chat_models, config),
        EmbeddingModelStore.from_names(embedding_models, config),
        default_aggregator=resolve_aggregator(
            config.executor.default_aggregator, config.executor.consensus_tolerance
        ),
        max_workers=config.executor.max_workers,
        rate_limiter=RateLimiterRegistry.from_config(config.rate_limit, provider_for_model),
        listeners=[LoggingExecutionListener()],
    )


def build_metrics(
    names: list[str],
    executor: MultiModelExecutor,
    criteria: str,
    aggregator_name: str | None,
    consensus_tolerance: float,
) -> list[MultiModelMetric]:
    """
    Instantiate metrics by CLI name

    Raises:
        ValueError: On an unknown metric name
    """
    aggregator = resolve_aggregator(aggregator_name, consensus_tolerance) if aggregator_name else None
    listeners = [LoggingMetricExecutionListener()]
    metrics: list[MultiModelMetric] = []
    for name in names:
        if name == "faithfulness":
            metric = FaithfulnessMetric(executor, aggregator=aggregator, listeners=listeners)
        elif name == "aspect_critic":
            if aggregator is not None:
                metric = AspectCriticMetric(executor, criteria, aggregator=aggregator, listeners=listeners)
            else:
                metric = AspectCriticMetric(executor, criteria, listeners=listeners)
        elif name == "semantic_similarity":
            metric = SemanticSimilarityMetric(executor, aggregator=aggregator, listeners=listeners)
        else:
            raise ValueError(f"Unknown metric '{name}'. Valid values: {', '.join(METRIC_NAMES)}")
        metrics.append(metric)
    return metrics


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    chat_models = _split(args.models, config.models.chat_models)
    embedding_models = _split(args.embedding_models, config.models.embedding_models)
    metric_names = _split(args.metrics, ["faithfulness"])
    run_id = datetime.now().strftime("%Y%m%d_%H%M%S")

    print(f"\n=== Loading samples: {args.samples} ===\n")
    samples = load_samples(args.samples)
    print(f"  Samples: {len(samples)}")
    print(f"  Metrics: {metric_names}")
    print(f"  Models: {chat_models}")
    print(f"  Embedding models: {embedding_models}")
    print(f"  Run ID: {run_id}")
    print()

    if "semantic_similarity" not in metric_names:
        embedding_models = []
    try:
        executor = build_executor(config, chat_models, embedding_models)
        metrics = build_metrics(
            metric_names, executor, args.criteria, args.aggregator, config.executor.consensus_tolerance
        )
    except ValueError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print(f"=== Running Evaluations ({len(samples) * len(metrics)} total) ===\n")
    records = run_all_evaluations(samples, metrics, run_id=run_id)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    scores_path = output_dir / f"scores_{run_id}.csv"
    summary_path = output_dir / f"summary_{run_id}.csv"
    records_to_dataframe(records).to_csv(scores_path, index=False)
    summary_df = summarize_results(records)
    summary_df.to_csv(summary_path, index=False)

    print("\n=== Metrics Summary ===\n")
    print(f"  {'Metric':<24} {'mean':>7} {'min':>7} {'max':>7} {'available':>10}")
    print(f"  {'-'*24} {'-'*7} {'-'*7} {'-'*7} {'-'*10}")
    for _, row in summary_df.iterrows():
        print(
            f"  {row['metric_name']:<24} {row['mean_score']:>7.3f} {row['min_score']:>7.3f} "
            f"{row['max_score']:>7.3f} {int(row['available']):>4}/{int(row['samples']):<5}"
        )
    print()

    unavailable = [r for r in records if not r.available]
    if unavailable:
        print(f"=== Unavailable Scores ({len(unavailable)}) ===\n")
        for r in unavailable:
            print(f"  sample {r.sample_id} | {r.metric_name} | {r.error}")
        print()

    print("=== Output ===\n")
    print(f"  Scores:  {scores_path}")
    print(f"  Summary: {summary_path}")
    print()


if __name__ == "__main__":
    main()
