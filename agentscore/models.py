"""Domain types for traces, scenarios, agents and scoring results."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Optional, Union


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TraceStatus(str, Enum):
    """Outcome of a single agent run against a scenario."""

    def _generate_next_value_(name, start, count, last_values):  # noqa: N805
        return name.lower()

    PASS = auto()
    FAIL = auto()
    ERROR = auto()
    REVIEW_NEEDED = auto()


class FailureCluster(str, Enum):
    """Category of the primary reason a trace failed."""

    NO_FAILURE = "no_failure"
    WRONG_TOOL = "wrong_tool"
    HALLUCINATED_ARGUMENT = "hallucinated_argument"
    SCHEMA_VIOLATION = "schema_violation"
    LOOPING = "looping"
    PREMATURE_STOP = "premature_stop"
    CONSTRAINT_BREACH = "constraint_breach"
    UNKNOWN = "unknown"


class ScoringMethod(str, Enum):
    """How a dimension score was produced."""

    DETERMINISTIC = "deterministic"
    LLM_JUDGE = "llm_judge"
    HEURISTIC = "heuristic"


@dataclass
class DimensionScore:
    """A score for one dimension with its confidence and explanation."""

    value: float = 0.0
    confidence: float = 0.0
    method: ScoringMethod = ScoringMethod.DETERMINISTIC
    rationale: Optional[str] = None


@dataclass
class EvalWeights:
    """Relative weights of the scoring dimensions."""

    task_completion: float = 0.30
    tool_selection: float = 0.20
    argument_correctness: float = 0.15
    schema_compliance: float = 0.15
    instruction_adherence: float = 0.10
    path_efficiency: float = 0.10


@dataclass
class DimensionScores:
    """Plain values of every scoring dimension for a trace."""

    task_completion: float = 0.0
    tool_selection: float = 0.0
    argument_correctness: float = 0.0
    schema_compliance: float = 0.0
    instruction_adherence: float = 0.0
    path_efficiency: float = 0.0

    def weighted_aggregate(self, weights: EvalWeights) -> float:
        """Weighted mean of the dimensions; 0.0 when all weights are zero."""
        pairs = [
            (getattr(self, f.name), getattr(weights, f.name)) for f in fields(self)
        ]
        total_weight = sum(w for _, w in pairs)
        if total_weight <= 0.0:
            return 0.0
        return sum(v * w for v, w in pairs) / total_weight


@dataclass
class ToolCallStep:
    """The agent invoked a tool."""

    index: int
    tool_name: str
    call_id: str = ""
    arguments: Any = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)


@dataclass
class LlmCallStep:
    """A request the agent sent to its model, with the reply."""

    index: int
    request: Any = field(default_factory=dict)
    response: Any = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)


@dataclass
class FinalOutputStep:
    """The agent produced its final output."""

    index: int
    output: Any = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)


TraceStep = Union[ToolCallStep, LlmCallStep, FinalOutputStep]


@dataclass
class Trace:
    """Record of one agent run against one scenario, plus its scoring."""

    status: TraceStatus
    steps: list = field(default_factory=list)
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    run_id: uuid.UUID = field(default_factory=uuid.uuid4)
    scenario_id: uuid.UUID = field(default_factory=uuid.uuid4)
    final_output: Any = None
    scores: Optional[DimensionScores] = None
    aggregate_score: Optional[float] = None
    failure_cluster: FailureCluster = FailureCluster.UNKNOWN
    failure_reason: Optional[str] = None
    review_needed: bool = False
    llm_calls: int = 0
    tool_invocations: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0
    retry_count: int = 0
    seed: int = 0
    created_at: datetime = field(default_factory=_now)


@dataclass
class ExpectedToolCall:
    """A tool the scenario expects the agent to call."""

    tool_name: str
    required: bool = True
    argument_schema: Any = None


@dataclass
class ScenarioInput:
    """What the agent is given for a scenario."""

    user_message: str
    conversation_history: list = field(default_factory=list)
    context: Any = None


@dataclass
class ScenarioExpected:
    """What a scenario expects the agent to do."""

    tool_calls: list = field(default_factory=list)
    output_schema: Any = None
    pass_criteria: str = ""
    min_turns: Optional[int] = None
    max_turns: Optional[int] = None


@dataclass
class Scenario:
    """A single evaluation case for an agent."""

    input: ScenarioInput
    expected: ScenarioExpected
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    agent_id: uuid.UUID = field(default_factory=uuid.uuid4)
    difficulty: str = "easy"
    domain: Optional[str] = None
    source: str = "schema_derived"
    tags: list = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)


@dataclass
class ModelConfig:
    """The model an agent runs on."""

    model_id: str
    provider: str = "openai"
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None


@dataclass
class AgentFile:
    """Declarative description of an agent under evaluation."""

    name: str
    version: str
    model: ModelConfig
    system_prompt: str = ""
    tools: list = field(default_factory=list)
    output_schema: Any = None
    constraints: list = field(default_factory=list)
    eval_hints: Any = None
    metadata: Any = None
    schema_version: str = "1"


@dataclass
class FailureClusterSummary:
    """How many failed traces fell into one cluster."""

    cluster: FailureCluster
    count: int
    percentage: float
    sample_scenarios: list = field(default_factory=list)


@dataclass
class Scorecard:
    """Aggregated results of a scored run."""

    run_id: uuid.UUID
    agent_id: uuid.UUID
    agent_name: str
    agent_version: str
    aggregate_score: float
    pass_rate: float
    total_scenarios: int
    passed: int
    failed: int
    errors: int
    review_needed: int
    dimension_scores: DimensionScores
    failure_clusters: list
    duration_seconds: int
    total_input_tokens: int
    total_output_tokens: int


class ScoringError(Exception):
    """Base class for scoring failures."""


class JudgeHttpError(ScoringError):
    """The judge endpoint could not be reached or answered with an error status."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class JudgeResponseError(ScoringError):
    """The judge endpoint answered with a body that could not be parsed."""