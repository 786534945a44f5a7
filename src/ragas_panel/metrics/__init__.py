"""
Metrics sub-package

Reference metrics built on the executor and the step harness.
"""

from ragas_panel.metrics.aspect_critic import AspectCriticMetric, AspectCriticResponse
from ragas_panel.metrics.faithfulness import (
    FaithfulnessMetric,
    StatementsResponse,
    StatementVerdict,
    VerdictsResponse,
    faithfulness_score,
)
from ragas_panel.metrics.semantic_similarity import SemanticSimilarityMetric, cosine_similarity

__all__ = [
    "AspectCriticMetric",
    "AspectCriticResponse",
    "FaithfulnessMetric",
    "StatementsResponse",
    "StatementVerdict",
    "VerdictsResponse",
    "faithfulness_score",
    "SemanticSimilarityMetric",
    "cosine_similarity",
]
