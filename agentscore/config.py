"""Configuration for the trace scorer."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from agentscore.models import EvalWeights

DEFAULT_JUDGE_MODEL = "gpt-4o"
DEFAULT_JUDGE_BASE_URL = "http://localhost:8080/v1"


def _env_api_key() -> str:
    return os.environ.get("OPENAI_API_KEY", "")


def _env_base_url() -> str:
    return os.environ.get("OPENAI_BASE_URL", DEFAULT_JUDGE_BASE_URL)


@dataclass
class ScorerConfig:
    """Settings for scoring traces.

    ``judge_model`` must differ from the agent's model; otherwise the judge
    falls back to heuristics. ``judge_base_url`` points at an
    OpenAI-compatible chat completions endpoint.
    """

    judge_model: str = DEFAULT_JUDGE_MODEL
    judge_base_url: str = field(default_factory=_env_base_url)
    judge_api_key: str = field(default_factory=_env_api_key)
    review_confidence_threshold: float = 0.5
    weights: EvalWeights = field(default_factory=EvalWeights)