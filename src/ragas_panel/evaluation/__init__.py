"""
Evaluation sub-package

Step-oriented multi-model evaluation: cohorts, steps with an exclusion
cascade, metric-level listeners and the metric base class.
"""

from ragas_panel.evaluation.listeners import (
    EvaluationNotifier,
    MetricExecutionListener,
    scope_listeners,
)
from ragas_panel.evaluation.logging_listener import LoggingMetricExecutionListener, LoggingOptions
from ragas_panel.evaluation.metric import MultiModelMetric
from ragas_panel.evaluation.steps import (
    Cohort,
    Step,
    StepOutcome,
    compute_step,
    embedding_step,
    llm_step,
    run_step,
)
from ragas_panel.domain.value_objects import StepType

__all__ = [
    # listeners
    "EvaluationNotifier",
    "MetricExecutionListener",
    "scope_listeners",
    "LoggingMetricExecutionListener",
    "LoggingOptions",
    # metric
    "MultiModelMetric",
    # steps
    "Cohort",
    "Step",
    "StepOutcome",
    "StepType",
    "compute_step",
    "embedding_step",
    "llm_step",
    "run_step",
]
