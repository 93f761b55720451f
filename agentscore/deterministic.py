"""Deterministic assertions run against a trace without any model calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from jsonschema import exceptions as schema_exceptions
from jsonschema import validators

from agentscore.models import (
    AgentFile,
    DimensionScore,
    FinalOutputStep,
    LlmCallStep,
    Scenario,
    ScoringMethod,
    ToolCallStep,
    Trace,
)

logger = logging.getLogger(__name__)


def _score(value: float, confidence: float, rationale: str) -> DimensionScore:
    return DimensionScore(
        value=value,
        confidence=confidence,
        method=ScoringMethod.DETERMINISTIC,
        rationale=rationale,
    )


def _tool_calls(trace: Trace) -> list[ToolCallStep]:
    return [step for step in trace.steps if isinstance(step, ToolCallStep)]


def _required_tool_names(scenario: Scenario) -> list[str]:
    return [tc.tool_name for tc in scenario.expected.tool_calls if tc.required]


@dataclass
class DeterministicResult:
    """Scores from every deterministic assertion for one trace."""

    tool_selection: DimensionScore = field(default_factory=DimensionScore)
    argument_correctness: DimensionScore = field(default_factory=DimensionScore)
    schema_compliance: DimensionScore = field(default_factory=DimensionScore)
    instruction_adherence: DimensionScore = field(default_factory=DimensionScore)
    path_efficiency: DimensionScore = field(default_factory=DimensionScore)
    failure_reasons: list[str] = field(default_factory=list)


def run_deterministic_checks(
    trace: Trace, scenario: Scenario, agent: AgentFile
) -> DeterministicResult:
    """Run all deterministic assertions on ``trace``."""
    result = DeterministicResult()

    checks = [
        ("tool_selection", "Tool selection", check_tool_selection(trace, scenario)),
        (
            "argument_correctness",
            "Argument correctness",
            check_argument_correctness(trace, scenario),
        ),
        (
            "schema_compliance",
            "Schema compliance",
            check_schema_compliance(trace, scenario, agent),
        ),
        (
            "instruction_adherence",
            "Instruction adherence",
            check_constraint_keywords(trace, agent),
        ),
    ]
    for attr, label, score in checks:
        setattr(result, attr, score)
        if score.value < 1.0:
            result.failure_reasons.append(
                f"{label} failed (score={score.value:.2f})"
            )

    result.path_efficiency = check_path_efficiency(trace, scenario)
    return result


def check_tool_selection(trace: Trace, scenario: Scenario) -> DimensionScore:
    """Score the share of required tools that the agent actually called."""
    required = _required_tool_names(scenario)
    if not required:
        return _score(1.0, 1.0, "No required tools specified")

    called = {tc.tool_name for tc in _tool_calls(trace)}
    missing = [name for name in required if name not in called]
    score = (len(required) - len(missing)) / len(required)

    if score < 1.0:
        rationale = f"Missing required tools: {', '.join(missing)}"
    else:
        rationale = "All required tools called"
    return _score(score, 1.0, rationale)


def check_argument_correctness(trace: Trace, scenario: Scenario) -> DimensionScore:
    """Score tool call arguments against the scenario's argument schemas."""
    calls = _tool_calls(trace)
    if not calls:
        if _required_tool_names(scenario):
            return _score(0.0, 1.0, "Required tools were not called")
        return _score(1.0, 1.0, "No tools called and none required")

    total = 0
    passed = 0
    failures: list[str] = []
    for call in calls:
        expected = next(
            (e for e in scenario.expected.tool_calls if e.tool_name == call.tool_name),
            None,
        )
        if expected is None:
            continue
        total += 1
        if expected.argument_schema is None or validate_against_schema(
            call.arguments, expected.argument_schema
        ):
            passed += 1
        else:
            failures.append(
                f"Tool '{call.tool_name}' argument schema validation failed"
            )

    score = 1.0 if total == 0 else passed / total
    rationale = "; ".join(failures) if failures else "All tool arguments valid"
    return _score(score, 1.0, rationale)


def validate_against_schema(value: Any, schema: Any) -> bool:
    """True if ``value`` satisfies ``schema``; an invalid schema counts as a pass."""
    try:
        validator_cls = validators.validator_for(schema)
        validator_cls.check_schema(schema)
        return validator_cls(schema).is_valid(value)
    except schema_exceptions.SchemaError as exc:
        logger.warning("Invalid JSON schema in scenario: %s", exc)
        return True


def check_schema_compliance(
    trace: Trace, scenario: Scenario, agent: AgentFile
) -> DimensionScore:
    """Check the final output against the scenario's or the agent's output schema."""
    schema = scenario.expected.output_schema
    if schema is None:
        schema = agent.output_schema
    if schema is None:
        return _score(1.0, 0.5, "No output schema defined — skipping compliance check")

    if trace.final_output is None:
        return _score(0.0, 1.0, "No final output captured")

    if validate_against_schema(trace.final_output, schema):
        return _score(1.0, 1.0, "Output matches schema")
    return _score(0.0, 1.0, "Output does not match schema")


def check_constraint_keywords(trace: Trace, agent: AgentFile) -> DimensionScore:
    """Flag "never ..." constraints whose key words appear in the agent's output."""
    if not agent.constraints:
        return _score(1.0, 0.5, "No constraints defined")

    text = collect_assistant_text(trace)
    if not text:
        return _score(1.0, 0.5, "No assistant text to check")
    text = text.lower()

    violations: list[str] = []
    for constraint in agent.constraints:
        lowered = constraint.lower()
        if not lowered.startswith("never "):
            continue
        forbidden = lowered[len("never "):].split()[:3]
        if any(len(word.encode("utf-8")) > 4 and word in text for word in forbidden):
            violations.append(f"Potential constraint breach: '{constraint}'")

    if violations:
        return _score(0.0, 0.9, "; ".join(violations))
    return _score(1.0, 0.7, "No obvious constraint violations detected")


def check_path_efficiency(trace: Trace, scenario: Scenario) -> DimensionScore:
    """Compare the number of tool calls made with the minimum expected."""
    expected_min = len(_required_tool_names(scenario))
    actual = len(_tool_calls(trace))

    if expected_min == 0:
        llm_calls = sum(isinstance(step, LlmCallStep) for step in trace.steps)
        score = 1.0 if llm_calls <= 3 else 0.5
        return DimensionScore(
            value=score,
            confidence=0.8,
            method=ScoringMethod.DETERMINISTIC,
            rationale=f"{llm_calls} LLM calls for a no-tool scenario",
        )

    if actual == 0:
        score = 0.0
    elif actual <= expected_min:
        score = 1.0
    else:
        score = min(expected_min / actual, 1.0)

    return DimensionScore(
        value=score,
        confidence=0.9,
        method=ScoringMethod.DETERMINISTIC,
        rationale=f"Expected ~{expected_min} tool calls, actual {actual} calls",
    )


def collect_assistant_text(trace: Trace) -> str:
    """Join the ``response`` strings of every final output step."""
    texts = [
        step.output["response"]
        for step in trace.steps
        if isinstance(step, FinalOutputStep)
        and isinstance(step.output, dict)
        and isinstance(step.output.get("response"), str)
    ]
    return " ".join(texts)