"""
Semantic similarity metric

Cosine similarity between the embeddings of the response and the
reference, computed by every embedding model and aggregated.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from ragas_panel.domain.entities import MetricEvaluationResult, Sample
from ragas_panel.evaluation.listeners import MetricExecutionListener
from ragas_panel.evaluation.metric import MultiModelMetric
from ragas_panel.evaluation.steps import compute_step, embedding_step
from ragas_panel.execution.executor import MultiModelExecutor
from ragas_panel.scoring.aggregators import AggregatorLike


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors

    Raises:
        ValueError: When the dimensions differ or a vector is all zeros
    """
    if len(a) != len(b):
        raise ValueError(f"Embedding dimensions differ: {len(a)} != {len(b)}")
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(x * x for x in b))
    if norm_a == 0 or norm_b == 0:
        raise ValueError("Cannot compute cosine similarity of a zero vector")
    return sum(x * y for x, y in zip(a, b)) / (norm_a * norm_b)


class SemanticSimilarityMetric(MultiModelMetric):
    """Embedding similarity of response and reference; optional pass/fail threshold"""

    name = "SemanticSimilarity"

    def __init__(
        self,
        executor: MultiModelExecutor,
        *,
        threshold: float | None = None,
        aggregator: AggregatorLike | None = None,
        listeners: Iterable[MetricExecutionListener] = (),
    ):
        super().__init__(executor, aggregator=aggregator, listeners=listeners)
        self.threshold = threshold

    def _score(self, vectors: list[list[float]]) -> float:
        if len(vectors) < 2:
            raise ValueError("Insufficient embeddings returned")
        similarity = cosine_similarity(vectors[0], vectors[1])
        if self.threshold is None:
            return similarity
        return 1.0 if similarity >= self.threshold else 0.0

    def evaluate(self, sample: Sample, model_ids: Sequence[str] | None = None) -> MetricEvaluationResult:
        """
        Evaluate with the given embedding models (default: all of the executor's)

        Raises:
            ValueError: When the sample has no reference
        """
        if sample.reference is None:
            raise ValueError("SemanticSimilarity requires a reference")
        texts = [sample.response, sample.reference]
        ids = list(model_ids) if model_ids else self.executor.embedding_model_ids
        steps = [
            embedding_step("ComputeEmbeddings", self.executor, lambda _: texts),
            compute_step("ComputeCosineSimilarity", self._score),
        ]
        return self.run_steps(
            sample,
            steps,
            ids,
            embedding_model_ids=ids,
            metadata={"threshold": self.threshold},
        )
