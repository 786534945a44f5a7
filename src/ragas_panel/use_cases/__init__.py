"""
Use Cases Layer

Provides the use cases called from the runner.
"""

from ragas_panel.use_cases.evaluation import (
    EvaluationRecord,
    evaluate_sample,
    model_scores_frame,
    records_to_dataframe,
    run_all_evaluations,
    summarize_results,
)

__all__ = [
    # evaluation
    "EvaluationRecord",
    "evaluate_sample",
    "model_scores_frame",
    "records_to_dataframe",
    "run_all_evaluations",
    "summarize_results",
]
