# agentscore

Scores the execution traces of AI agents against the scenarios they were run on.
Each trace is checked on six dimensions, given a weighted aggregate score, marked
pass, fail or review-needed, and assigned a failure cluster. A batch of traces can
then be summarised in a `Scorecard`.

## Installation

```
pip install agentscore
```

## Modules

- `agentscore.models` – the data types: `Trace` and its steps (`ToolCallStep`,
  `LlmCallStep`, `FinalOutputStep`), `Scenario`, `AgentFile`, `DimensionScore`,
  `DimensionScores`, `EvalWeights`, `Scorecard`, the `TraceStatus`,
  `FailureCluster` and `ScoringMethod` enums, and the exceptions `ScoringError`,
  `JudgeHttpError` and `JudgeResponseError`.
- `agentscore.config` – `ScorerConfig`.
- `agentscore.deterministic` – checks that need no model call.
- `agentscore.judge` – scoring by an LLM judge, with heuristic fallbacks.
- `agentscore.clusters` – failure cluster classification.
- `agentscore.scorer` – `score_trace`, `score_run` and the `TraceScorer` wrapper.

## What gets scored

| Dimension               | How it is scored                                          |
|-------------------------|-----------------------------------------------------------|
| task completion         | LLM judge, or a heuristic when no judge is used           |
| tool selection          | share of required tools found among the calls made        |
| argument correctness    | tool arguments validated against JSON Schemas             |
| schema compliance       | final output validated against the output schema          |
| instruction adherence   | LLM judge, or a keyword check of "never ..." constraints  |
| path efficiency         | actual tool calls compared with the required minimum      |

The aggregate is the weighted mean of the six values, using `ScorerConfig.weights`
(an `EvalWeights`; by default 0.30, 0.20, 0.15, 0.15, 0.10, 0.10 in the order above).

A trace passes when its aggregate reaches 0.85. If it falls short and any dimension
was scored with a confidence below `review_confidence_threshold` (0.5 by default), it
is marked `REVIEW_NEEDED`; otherwise it fails. A trace that already has the status
`ERROR` is not scored: it only gets an aggregate of 0.0.

The failure cluster is chosen from the trace's status at the time it is scored and
from its dimension scores and failure reasons: `NO_FAILURE`, `SCHEMA_VIOLATION`,
`WRONG_TOOL`, `HALLUCINATED_ARGUMENT`, `LOOPING`, `PREMATURE_STOP`,
`CONSTRAINT_BREACH` or `UNKNOWN`.

A JSON Schema that is itself invalid is logged and treated as passed.

## Usage

```python
from agentscore.config import ScorerConfig
from agentscore.scorer import TraceScorer

config = ScorerConfig(judge_model="gpt-4o-mini", judge_api_key="placeholder")
scorer = TraceScorer(config)

async def main(traces, scenarios, agent, run_id):
    scorecard = await scorer.score_run(traces, scenarios, agent, run_id)
    print(scorecard.pass_rate, scorecard.aggregate_score)
    for summary in scorecard.failure_clusters:
        print(summary.cluster, summary.count, summary.percentage)
```

`score_trace` and `score_run` update the traces they are given in place, setting
`scores`, `aggregate_score`, `status`, `failure_cluster`, `review_needed` and, when
any check failed, `failure_reason`. `score_run` skips traces whose `scenario_id`
matches none of the given scenarios, but still counts them in the scorecard.

### The LLM judge

If `judge_api_key` is non-empty, task completion and instruction adherence are scored
by an OpenAI-compatible chat completions endpoint at `judge_base_url`. The judge
model must differ from the agent's own model; when the two are the same, the
heuristic scorers are used instead, so a model never grades its own output. If a
judge call fails with a `ScoringError`, scoring falls back to the heuristics and
carries on.

By default `judge_api_key` is read from the `OPENAI_API_KEY` environment variable and
`judge_base_url` from `OPENAI_BASE_URL`, falling back to `http://localhost:8080/v1`.
The judge model defaults to `gpt-4o`.

`build_judge_prompt(trace, scenario)` returns the prompt that is sent to the judge.

### Individual checks

```python
from agentscore.deterministic import run_deterministic_checks
from agentscore.clusters import classify_failure_cluster

result = run_deterministic_checks(trace, scenario, agent)
print(result.tool_selection.value, result.failure_reasons)
```

`average_dimension_scores` and `build_failure_cluster_summary` in `agentscore.scorer`
can also be called on any list of traces.

## What it does not do

agentscore only scores traces it is handed. It does not run agents or produce traces,
generate scenarios, store results, or offer a command-line tool or a server.

## Running the tests

```
pip install agentscore[test]
pytest
```