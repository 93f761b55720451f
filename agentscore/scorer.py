"""Scoring of single traces and whole runs."""

from __future__ import annotations

import logging
import uuid
from dataclasses import fields
from typing import Iterable, Sequence

from agentscore.clusters import classify_failure_cluster
from agentscore.config import ScorerConfig
from agentscore.deterministic import run_deterministic_checks
from agentscore.judge import heuristic_task_completion, run_llm_judge
from agentscore.models import (
    AgentFile,
    DimensionScores,
    FailureCluster,
    FailureClusterSummary,
    Scenario,
    Scorecard,
    ScoringError,
    Trace,
    TraceStatus,
)

logger = logging.getLogger(__name__)

PASS_THRESHOLD = 0.85
_MAX_SAMPLE_SCENARIOS = 3


class TraceScorer:
    """Scores traces and runs with a fixed configuration."""

    def __init__(self, config: ScorerConfig | None = None) -> None:
        self.config = config if config is not None else ScorerConfig()

    async def score_trace(self, trace: Trace, scenario: Scenario, agent: AgentFile) -> None:
        """Score ``trace`` in place."""
        await score_trace(trace, scenario, agent, self.config)

    async def score_run(
        self,
        traces: list[Trace],
        scenarios: Iterable[Scenario],
        agent: AgentFile,
        run_id: uuid.UUID,
    ) -> Scorecard:
        """Score every trace of a run and return its scorecard."""
        return await score_run(traces, scenarios, agent, run_id, self.config)


async def score_trace(
    trace: Trace, scenario: Scenario, agent: AgentFile, config: ScorerConfig
) -> None:
    """Score ``trace`` and update its scores, cluster and status in place."""
    if trace.status == TraceStatus.ERROR:
        trace.aggregate_score = 0.0
        return

    det = run_deterministic_checks(trace, scenario, agent)

    if config.judge_api_key:
        try:
            judged = await run_llm_judge(trace, scenario, agent, config)
        except ScoringError as exc:
            logger.warning("LLM judge failed, using heuristic fallback: %s", exc)
            task_completion = heuristic_task_completion(trace, scenario)
            instruction_adherence = det.instruction_adherence
        else:
            task_completion = judged.task_completion
            instruction_adherence = judged.instruction_adherence
    else:
        task_completion = heuristic_task_completion(trace, scenario)
        instruction_adherence = det.instruction_adherence

    scores = DimensionScores(
        task_completion=task_completion.value,
        tool_selection=det.tool_selection.value,
        argument_correctness=det.argument_correctness.value,
        schema_compliance=det.schema_compliance.value,
        instruction_adherence=instruction_adherence.value,
        path_efficiency=det.path_efficiency.value,
    )
    aggregate = scores.weighted_aggregate(config.weights)

    min_confidence = min(
        task_completion.confidence,
        det.tool_selection.confidence,
        det.argument_correctness.confidence,
        det.schema_compliance.confidence,
        instruction_adherence.confidence,
        det.path_efficiency.confidence,
    )
    review_needed = min_confidence < config.review_confidence_threshold

    failure_cluster = classify_failure_cluster(trace, scores, det.failure_reasons)

    if aggregate >= PASS_THRESHOLD:
        status = TraceStatus.PASS
    elif review_needed:
        status = TraceStatus.REVIEW_NEEDED
    else:
        status = TraceStatus.FAIL

    trace.scores = scores
    trace.aggregate_score = aggregate
    trace.failure_cluster = failure_cluster
    trace.status = status
    trace.review_needed = review_needed
    if det.failure_reasons:
        trace.failure_reason = "; ".join(det.failure_reasons)


async def score_run(
    traces: list[Trace],
    scenarios: Iterable[Scenario],
    agent: AgentFile,
    run_id: uuid.UUID,
    config: ScorerConfig,
) -> Scorecard:
    """Score every trace whose scenario is known and build the run's scorecard."""
    scenario_map = {scenario.id: scenario for scenario in scenarios}

    for trace in traces:
        scenario = scenario_map.get(trace.scenario_id)
        if scenario is None:
            continue
        try:
            await score_trace(trace, scenario, agent, config)
        except ScoringError as exc:
            logger.error("Failed to score trace %s: %s", trace.id, exc)

    total = len(traces)
    passed = sum(t.status == TraceStatus.PASS for t in traces)
    failed = sum(t.status == TraceStatus.FAIL for t in traces)
    errors = sum(t.status == TraceStatus.ERROR for t in traces)
    review = sum(t.review_needed for t in traces)

    avg_scores = average_dimension_scores(traces)

    return Scorecard(
        run_id=run_id,
        agent_id=traces[0].run_id if traces else uuid.UUID(int=0),
        agent_name=agent.name,
        agent_version=agent.version,
        aggregate_score=avg_scores.weighted_aggregate(config.weights),
        pass_rate=passed / total if total else 0.0,
        total_scenarios=total,
        passed=passed,
        failed=failed,
        errors=errors,
        review_needed=review,
        dimension_scores=avg_scores,
        failure_clusters=build_failure_cluster_summary(traces),
        duration_seconds=sum(t.latency_ms for t in traces) // 1000,
        total_input_tokens=sum(t.input_tokens for t in traces),
        total_output_tokens=sum(t.output_tokens for t in traces),
    )


def average_dimension_scores(traces: Sequence[Trace]) -> DimensionScores:
    """Mean of every dimension over the traces that have scores."""
    scorable = [t.scores for t in traces if t.scores is not None]
    if not scorable:
        return DimensionScores()
    count = len(scorable)
    return DimensionScores(
        **{
            f.name: sum(getattr(s, f.name) for s in scorable) / count
            for f in fields(DimensionScores)
        }
    )


def build_failure_cluster_summary(
    traces: Sequence[Trace],
) -> list[FailureClusterSummary]:
    """Group failed and errored traces by failure cluster."""
    failed = [
        t for t in traces if t.status in (TraceStatus.FAIL, TraceStatus.ERROR)
    ]
    groups: dict[FailureCluster, tuple[int, list[uuid.UUID]]] = {}
    for trace in failed:
        count, samples = groups.get(trace.failure_cluster, (0, []))
        if len(samples) < _MAX_SAMPLE_SCENARIOS:
            samples.append(trace.scenario_id)
        groups[trace.failure_cluster] = (count + 1, samples)

    total_failed = len(failed)
    return [
        FailureClusterSummary(
            cluster=cluster,
            count=count,
            percentage=count / total_failed if total_failed else 0.0,
            sample_scenarios=samples,
        )
        for cluster, (count, samples) in groups.items()
    ]