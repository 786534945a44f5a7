"""
AspectCritic metric

Binary judgment of a response against free-text criteria. Every panel
model judges the same prompt in one batch; verdicts are combined by
majority voting unless another aggregator is configured.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from datetime import timedelta

from pydantic import BaseModel, Field

from ragas_panel.domain.entities import (
    MetricEvaluationContext,
    MetricEvaluationResult,
    ModelExclusionEvent,
    ModelExecutionResult,
    Sample,
    StepResults,
)
from ragas_panel.domain.errors import AllModelsFailedError, NoModelsConfiguredError
from ragas_panel.domain.value_objects import StepType
from ragas_panel.evaluation.listeners import EvaluationNotifier, MetricExecutionListener
from ragas_panel.evaluation.metric import MultiModelMetric
from ragas_panel.execution.executor import ExecutionRequest, MultiModelExecutor
from ragas_panel.scoring.aggregators import AggregatorLike, ScoreAggregator

STEP_NAME = "Evaluate"

DEFAULT_PROMPT_TEMPLATE = """\
Given a user input and an AI response, evaluate whether the response meets the specified criteria.

Criteria: {definition}

User Input: {user_input}

AI Response: {response}

Instructions:
1. Carefully analyze the AI response against the given criteria
2. Consider the context provided by the user input
3. Apply a strictness level of {strictness} (1=lenient, 5=very strict)
4. Provide your evaluation with the criteria, verdict (true/false), and detailed reasoning"""


class AspectCriticResponse(BaseModel):
    """A single judge's verdict"""

    criteria: str = Field(default="", description="The evaluation criteria that was applied")
    verdict: bool = Field(description="true if the response meets the criteria, false otherwise")
    reasoning: str = Field(default="", description="Explanation of the verdict")

    @property
    def score(self) -> float:
        return 1.0 if self.verdict else 0.0


class AspectCriticMetric(MultiModelMetric):
    """Criteria-based pass/fail metric"""

    name = "AspectCritic"

    def __init__(
        self,
        executor: MultiModelExecutor,
        definition: str,
        *,
        strictness: int = 3,
        prompt_template: str = DEFAULT_PROMPT_TEMPLATE,
        aggregator: AggregatorLike = ScoreAggregator.MAJORITY_VOTING,
        listeners: Iterable[MetricExecutionListener] = (),
    ):
        if not 1 <= strictness <= 5:
            raise ValueError("strictness must be between 1 and 5")
        super().__init__(executor, aggregator=aggregator, listeners=listeners)
        self.definition = definition
        self.strictness = strictness
        self.prompt_template = prompt_template

    def render_prompt(self, sample: Sample) -> str:
        return self.prompt_template.format(
            definition=self.definition,
            strictness=self.strictness,
            user_input=sample.user_input,
            response=sample.response,
        )

    def evaluate(self, sample: Sample, model_ids: Sequence[str] | None = None) -> MetricEvaluationResult:
        """
        Judge one sample with every model in a single batch

        Raises:
            NoModelsConfiguredError: When there are no models
            AllModelsFailedError: When no model returned a verdict
        """
        ids = self.resolve_model_ids(model_ids)
        if not ids:
            raise NoModelsConfiguredError(self.name)
        prompt = self.render_prompt(sample)
        metadata = {"definition": self.definition, "strictness": self.strictness}
        notifier = self.create_evaluation_notifier()
        started = time.perf_counter()

        notifier.before_metric_evaluation(MetricEvaluationContext(
            metric_name=self.name,
            sample=sample,
            model_ids=tuple(ids),
            total_steps=1,
            metadata=metadata,
        ))
        notifier.before_step(STEP_NAME, 0, 1)

        request = ExecutionRequest(
            metric_name=self.name,
            prompt=prompt,
            response_type=AspectCriticResponse,
            score_extractor=lambda response: response.score,
            model_ids=ids,
            metadata=metadata,
        )
        try:
            batch = self.executor.execute(request, self.aggregator)
        except AllModelsFailedError as e:
            self._report_step(notifier, prompt, e.results)
            raise

        step = self._report_step(notifier, prompt, batch.results)
        result = MetricEvaluationResult(
            metric_name=self.name,
            aggregated_score=batch.aggregated_score,
            aggregation_strategy=batch.aggregation_strategy,
            model_scores=batch.model_scores(),
            total_duration=timedelta(seconds=time.perf_counter() - started),
            sample=sample,
            model_ids=tuple(ids),
            steps=(step,),
            exclusions=tuple(notifier.exclusions),
            metadata=metadata,
        )
        notifier.after_metric_evaluation(result)
        return result

    @staticmethod
    def _report_step(
        notifier: EvaluationNotifier,
        prompt: str,
        results: Sequence[ModelExecutionResult],
    ) -> StepResults:
        step = StepResults(
            step_name=STEP_NAME,
            step_index=0,
            total_steps=1,
            step_type=StepType.LLM,
            results=tuple(r.outcome for r in results),
            request=prompt,
        )
        notifier.after_step(step)
        for r in results:
            if not r.is_success:
                notifier.on_model_excluded(ModelExclusionEvent(r.model_id, STEP_NAME, 0, r.error))
        return step
