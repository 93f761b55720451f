"""Semantic scoring through an LLM judge, with heuristic fallbacks."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from agentscore.config import ScorerConfig
from agentscore.models import (
    AgentFile,
    DimensionScore,
    JudgeHttpError,
    JudgeResponseError,
    LlmCallStep,
    Scenario,
    ScoringMethod,
    ToolCallStep,
    Trace,
)

logger = logging.getLogger(__name__)

_JUDGE_TIMEOUT_SECONDS = 120.0


@dataclass
class JudgeResult:
    """Scores for the dimensions the judge is responsible for."""

    task_completion: DimensionScore
    instruction_adherence: DimensionScore


def _number(value: Any, default: float) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    else:
        number = default
    return min(max(number, 0.0), 1.0)


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _message_content(body: Any) -> str | None:
    """Return ``choices[0].message.content`` of a chat completion, if a string."""
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


def build_judge_prompt(trace: Trace, scenario: Scenario) -> str:
    """Build the evaluation prompt sent to the judge model."""
    if trace.final_output is None:
        final_output = "<no output>"
    else:
        final_output = json.dumps(trace.final_output, indent=2, ensure_ascii=False)

    tool_summary = ", ".join(
        f"{step.tool_name}"
        f"({json.dumps(step.arguments, separators=(',', ':'), ensure_ascii=False)})"
        for step in trace.steps
        if isinstance(step, ToolCallStep)
    )

    return (
        "You are an objective evaluator for an AI agent. Score the agent's "
        "performance on these two dimensions from 0.0 to 1.0:\n\n"
        f"Task: {scenario.input.user_message}\n"
        f"Pass Criteria: {scenario.expected.pass_criteria}\n"
        f"Agent Tool Calls: [{tool_summary}]\n"
        f"Agent Final Output: {final_output}\n\n"
        "Respond with JSON only:\n"
        '{"task_completion": <0.0-1.0>, "task_confidence": <0.0-1.0>, '
        '"task_rationale": "...",\n'
        ' "instruction_adherence": <0.0-1.0>, "adherence_confidence": <0.0-1.0>, '
        '"adherence_rationale": "..."}'
    )


async def run_llm_judge(
    trace: Trace, scenario: Scenario, agent: AgentFile, config: ScorerConfig
) -> JudgeResult:
    """Score task completion and instruction adherence with the judge model.

    When the judge model equals the agent's own model, heuristics are used
    instead to avoid circular bias.
    """
    if config.judge_model == agent.model.model_id:
        logger.warning(
            "Judge model %s same as agent model %s — circular bias detected, "
            "using heuristic",
            config.judge_model,
            agent.model.model_id,
        )
        return JudgeResult(
            task_completion=heuristic_task_completion(trace, scenario),
            instruction_adherence=heuristic_instruction_adherence(trace, agent),
        )

    body = {
        "model": config.judge_model,
        "messages": [{"role": "user", "content": build_judge_prompt(trace, scenario)}],
        "temperature": 0.0,
        "max_tokens": 300,
        "response_format": {"type": "json_object"},
    }

    try:
        async with httpx.AsyncClient(timeout=_JUDGE_TIMEOUT_SECONDS) as client:
            response = await client.post(
                f"{config.judge_base_url}/chat/completions",
                headers={"Authorization": f"Bearer {config.judge_api_key}"},
                json=body,
            )
    except httpx.HTTPError as exc:
        raise JudgeHttpError(str(exc)) from exc

    if not response.is_success:
        raise JudgeHttpError(
            f"HTTP {response.status_code}: {response.text}",
            status=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise JudgeResponseError(str(exc)) from exc

    content = _message_content(payload) or "{}"
    try:
        parsed = json.loads(content)
    except ValueError:
        parsed = {}
    if not isinstance(parsed, dict):
        parsed = {}

    return JudgeResult(
        task_completion=DimensionScore(
            value=_number(parsed.get("task_completion"), 0.5),
            confidence=_number(parsed.get("task_confidence"), 0.7),
            method=ScoringMethod.LLM_JUDGE,
            rationale=_text(parsed.get("task_rationale")),
        ),
        instruction_adherence=DimensionScore(
            value=_number(parsed.get("instruction_adherence"), 0.5),
            confidence=_number(parsed.get("adherence_confidence"), 0.7),
            method=ScoringMethod.LLM_JUDGE,
            rationale=_text(parsed.get("adherence_rationale")),
        ),
    )


def heuristic_task_completion(trace: Trace, scenario: Scenario) -> DimensionScore:
    """Estimate task completion from the presence of output and required tools."""
    has_output = trace.final_output is not None
    required = [tc.tool_name for tc in scenario.expected.tool_calls if tc.required]
    called = {step.tool_name for step in trace.steps if isinstance(step, ToolCallStep)}
    called_required = all(name in called for name in required)

    value = {
        (True, True): 0.8,
        (True, False): 0.5,
        (False, True): 0.4,
        (False, False): 0.2,
    }[(has_output, called_required)]

    return DimensionScore(
        value=value,
        confidence=0.4,
        method=ScoringMethod.HEURISTIC,
        rationale=(
            f"Heuristic: has_output={str(has_output).lower()}, "
            f"called_required={str(called_required).lower()}"
        ),
    )


def heuristic_instruction_adherence(trace: Trace, agent: AgentFile) -> DimensionScore:
    """Rough instruction adherence estimate used when no judge may be asked."""
    if not agent.constraints:
        return DimensionScore(
            value=1.0,
            confidence=0.5,
            method=ScoringMethod.HEURISTIC,
            rationale="No constraints defined",
        )

    texts = [
        content
        for step in trace.steps
        if isinstance(step, LlmCallStep)
        and (content := _message_content(step.response)) is not None
    ]
    all_text = " ".join(texts)

    return DimensionScore(
        value=0.5 if not all_text else 0.7,
        confidence=0.3,
        method=ScoringMethod.HEURISTIC,
        rationale="Heuristic instruction adherence check",
    )