"""Classification of failed traces into failure clusters."""

from __future__ import annotations

from typing import Iterable

from agentscore.models import (
    DimensionScores,
    FailureCluster,
    LlmCallStep,
    ToolCallStep,
    Trace,
    TraceStatus,
)


def classify_failure_cluster(
    trace: Trace, scores: DimensionScores, failure_reasons: Iterable[str]
) -> FailureCluster:
    """Return the cluster that best explains why ``trace`` failed."""
    if trace.status == TraceStatus.PASS:
        return FailureCluster.NO_FAILURE
    if trace.status == TraceStatus.ERROR:
        return FailureCluster.UNKNOWN

    failure_text = " ".join(failure_reasons).lower()

    if scores.schema_compliance < 0.3:
        return FailureCluster.SCHEMA_VIOLATION
    if scores.tool_selection < 0.3:
        return FailureCluster.WRONG_TOOL
    if scores.argument_correctness < 0.3:
        return FailureCluster.HALLUCINATED_ARGUMENT
    if detect_loop(trace):
        return FailureCluster.LOOPING
    if scores.path_efficiency < 0.1:
        return FailureCluster.PREMATURE_STOP
    if scores.instruction_adherence < 0.3:
        return FailureCluster.CONSTRAINT_BREACH

    if "wrong_tool" in failure_text or "missing required tools" in failure_text:
        return FailureCluster.WRONG_TOOL
    if "argument" in failure_text or "hallucinated" in failure_text:
        return FailureCluster.HALLUCINATED_ARGUMENT
    if "schema" in failure_text:
        return FailureCluster.SCHEMA_VIOLATION
    if "constraint" in failure_text or "instruction adherence" in failure_text:
        return FailureCluster.CONSTRAINT_BREACH

    return FailureCluster.UNKNOWN


def detect_loop(trace: Trace) -> bool:
    """True when the trace shows many LLM calls with almost no tool calls."""
    llm_count = sum(isinstance(step, LlmCallStep) for step in trace.steps)
    tool_count = sum(isinstance(step, ToolCallStep) for step in trace.steps)
    return llm_count > 5 and tool_count <= 1