"""
Faithfulness metric

Measures how many claims of a response can be inferred from the
retrieved contexts, in three steps:

1. GenerateStatements (LLM): break the response into standalone statements
2. EvaluateFaithfulness (LLM): each model judges its own statements against the context
3. ComputeScore (COMPUTE): faithful statements / all statements
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from ragas_panel.domain.entities import MetricEvaluationResult, Sample
from ragas_panel.evaluation.listeners import MetricExecutionListener
from ragas_panel.evaluation.metric import MultiModelMetric
from ragas_panel.evaluation.steps import compute_step, llm_step
from ragas_panel.execution.executor import MultiModelExecutor
from ragas_panel.scoring.aggregators import AggregatorLike

logger = logging.getLogger(__name__)

STATEMENT_GENERATOR_TEMPLATE = """\
Given a question and an answer, analyze the complexity of each sentence in the answer.
Break down each sentence into one or more fully understandable statements.
Ensure that no pronouns are used in any statement.

Question: {question}
Answer: {answer}

Respond with a JSON object containing a 'statements' array with the list of extracted statements."""

NLI_STATEMENT_TEMPLATE = """\
Your task is to judge the faithfulness of a series of statements based on a given context.
For each statement you must return verdict as 1 if the statement can be directly inferred based on the context
or 0 if the statement cannot be directly inferred based on the context.

Context:
{context}

Statements to evaluate:
{statements}

Respond with a JSON object containing a 'verdicts' array where each item has 'statement', 'reason', and 'verdict' fields."""


class StatementsResponse(BaseModel):
    statements: list[str] = Field(default_factory=list, description="Standalone statements extracted from the answer")


class StatementVerdict(BaseModel):
    statement: str = Field(description="The original statement")
    reason: str = Field(default="", description="Why the statement is or is not supported")
    verdict: int = Field(description="1 if the statement can be inferred from the context, else 0")


class VerdictsResponse(BaseModel):
    verdicts: list[StatementVerdict] = Field(default_factory=list)


def format_statements(statements: Sequence[str]) -> str:
    return "\n".join(f"{i}. {s}" for i, s in enumerate(statements, start=1))


def faithfulness_score(verdicts: Sequence[StatementVerdict]) -> float:
    """Share of statements judged faithful (0.0 when there are no verdicts)"""
    if not verdicts:
        logger.warning("No verdicts returned from faithfulness evaluation")
        return 0.0
    return sum(1 for v in verdicts if v.verdict == 1) / len(verdicts)


class FaithfulnessMetric(MultiModelMetric):
    """Claim-level faithfulness of a response to its retrieved contexts"""

    name = "Faithfulness"

    def __init__(
        self,
        executor: MultiModelExecutor,
        *,
        statement_template: str = STATEMENT_GENERATOR_TEMPLATE,
        nli_template: str = NLI_STATEMENT_TEMPLATE,
        aggregator: AggregatorLike | None = None,
        listeners: Iterable[MetricExecutionListener] = (),
    ):
        super().__init__(executor, aggregator=aggregator, listeners=listeners)
        self.statement_template = statement_template
        self.nli_template = nli_template

    def evaluate(self, sample: Sample, model_ids: Sequence[str] | None = None) -> MetricEvaluationResult:
        context = "\n".join(sample.retrieved_contexts)
        steps = [
            llm_step(
                "GenerateStatements",
                self.executor,
                lambda _: self.statement_template.format(question=sample.user_input, answer=sample.response),
                StatementsResponse,
                merge=lambda _, response: response.statements,
            ),
            llm_step(
                "EvaluateFaithfulness",
                self.executor,
                lambda statements: self.nli_template.format(
                    context=context, statements=format_statements(statements)
                ),
                VerdictsResponse,
                merge=lambda _, response: response.verdicts,
            ),
            compute_step("ComputeScore", faithfulness_score),
        ]
        return self.run_steps(sample, steps, self.resolve_model_ids(model_ids))
