"""
Scoring sub-package

Provides score aggregation strategies and structured output parsing.
"""

from ragas_panel.scoring.aggregators import (
    Aggregator,
    AggregatorFn,
    Consensus,
    FunctionAggregator,
    ScoreAggregator,
    as_aggregator,
    custom_aggregator,
    resolve_aggregator,
)
from ragas_panel.scoring.structured_output import (
    extract_json_text,
    format_instructions,
    parse_structured,
)

__all__ = [
    # aggregation
    "Aggregator",
    "AggregatorFn",
    "Consensus",
    "FunctionAggregator",
    "ScoreAggregator",
    "as_aggregator",
    "custom_aggregator",
    "resolve_aggregator",
    # structured output
    "extract_json_text",
    "format_instructions",
    "parse_structured",
]
