import pytest

from agentscore.deterministic import (
    DeterministicResult,
    check_argument_correctness,
    check_constraint_keywords,
    check_path_efficiency,
    check_schema_compliance,
    check_tool_selection,
    collect_assistant_text,
    run_deterministic_checks,
    validate_against_schema,
)
from agentscore.models import (
    AgentFile,
    ExpectedToolCall,
    FailureCluster,
    FinalOutputStep,
    LlmCallStep,
    ModelConfig,
    Scenario,
    ScenarioExpected,
    ScenarioInput,
    ScoringMethod,
    ToolCallStep,
    Trace,
    TraceStatus,
)

ARG_SCHEMA = {
    "type": "object",
    "properties": {"id": {"type": "string"}},
    "required": ["id"],
}
OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {"response": {"type": "string"}},
    "required": ["response"],
}
RESPONSE = {"response": "Order status is 'shipped'."}


def make_scenario(tool_name, required, output_schema=OUTPUT_SCHEMA):
    return Scenario(
        input=ScenarioInput(user_message="test"),
        expected=ScenarioExpected(
            tool_calls=[
                ExpectedToolCall(
                    tool_name=tool_name, required=required, argument_schema=ARG_SCHEMA
                )
            ],
            output_schema=output_schema,
            pass_criteria="Agent should call the tool",
            min_turns=1,
            max_turns=5,
        ),
    )


def make_no_tool_scenario():
    return Scenario(
        input=ScenarioInput(user_message="test"),
        expected=ScenarioExpected(tool_calls=[], output_schema=None),
    )


def make_trace_with_tool_call(tool_name, args, response=RESPONSE):
    return Trace(
        status=TraceStatus.PASS,
        steps=[
            ToolCallStep(index=0, tool_name=tool_name, call_id="call_1", arguments=args),
            FinalOutputStep(index=1, output=response),
        ],
        final_output=response,
        failure_cluster=FailureCluster.NO_FAILURE,
        llm_calls=1,
        tool_invocations=1,
        input_tokens=50,
        output_tokens=20,
        latency_ms=500,
    )


def make_simple_agent(constraints=None, output_schema=OUTPUT_SCHEMA):
    return AgentFile(
        name="test",
        version="1.0.0",
        model=ModelConfig(model_id="gpt-4o"),
        system_prompt="You are helpful.",
        output_schema=output_schema,
        constraints=["Never share passwords."] if constraints is None else constraints,
    )


# Cases carried over from the source.


def test_tool_selection_passes_when_required_tool_called():
    scenario = make_scenario("get_order", True)
    trace = make_trace_with_tool_call("get_order", {"id": "ORD-123"})
    assert check_tool_selection(trace, scenario).value == 1.0


def test_tool_selection_fails_when_required_tool_missing():
    scenario = make_scenario("get_order", True)
    trace = make_trace_with_tool_call("wrong_tool", {})
    score = check_tool_selection(trace, scenario)
    assert score.value == 0.0
    assert score.rationale == "Missing required tools: get_order"


def test_schema_compliance_passes_for_valid_output():
    scenario = make_scenario("get_order", False)
    trace = make_trace_with_tool_call("get_order", {"id": "ORD-123"})
    assert check_schema_compliance(trace, scenario, make_simple_agent()).value == 1.0


def test_schema_compliance_fails_for_missing_required_field():
    scenario = make_scenario("get_order", False)
    trace = make_trace_with_tool_call("get_order", {"id": "ORD-123"})
    trace.final_output = {"action_taken": "resolved"}
    score = check_schema_compliance(trace, scenario, make_simple_agent())
    assert score.value == 0.0
    assert score.rationale == "Output does not match schema"


def test_constraint_check_passes_when_no_violations():
    trace = make_trace_with_tool_call("get_order", {})
    score = check_constraint_keywords(trace, make_simple_agent())
    assert score.value == 1.0
    assert score.confidence == 0.7


def test_argument_correctness_passes_for_valid_args():
    scenario = make_scenario("get_order", True)
    trace = make_trace_with_tool_call("get_order", {"id": "ORD-123"})
    assert check_argument_correctness(trace, scenario).value == 1.0


# Further cases.


def test_tool_selection_trivial_without_required_tools():
    scenario = make_scenario("get_order", False)
    trace = make_trace_with_tool_call("other", {})
    score = check_tool_selection(trace, scenario)
    assert score.value == 1.0
    assert score.rationale == "No required tools specified"
    assert score.method == ScoringMethod.DETERMINISTIC


def test_argument_correctness_fails_for_invalid_args():
    scenario = make_scenario("get_order", True)
    trace = make_trace_with_tool_call("get_order", {})
    score = check_argument_correctness(trace, scenario)
    assert score.value == 0.0
    assert score.rationale == "Tool 'get_order' argument schema validation failed"


def test_argument_correctness_no_calls_with_required_tool():
    scenario = make_scenario("get_order", True)
    trace = Trace(status=TraceStatus.FAIL, steps=[])
    score = check_argument_correctness(trace, scenario)
    assert score.value == 0.0
    assert score.rationale == "Required tools were not called"


def test_argument_correctness_no_calls_and_none_required():
    scenario = make_scenario("get_order", False)
    trace = Trace(status=TraceStatus.FAIL, steps=[])
    assert check_argument_correctness(trace, scenario).value == 1.0


def test_argument_correctness_ignores_unexpected_tools():
    scenario = make_scenario("get_order", True)
    trace = make_trace_with_tool_call("unknown_tool", {})
    score = check_argument_correctness(trace, scenario)
    assert score.value == 1.0
    assert score.rationale == "All tool arguments valid"


def test_argument_correctness_partial():
    scenario = make_scenario("get_order", True)
    trace = Trace(
        status=TraceStatus.FAIL,
        steps=[
            ToolCallStep(index=0, tool_name="get_order", arguments={"id": "A"}),
            ToolCallStep(index=1, tool_name="get_order", arguments={"id": 5}),
        ],
    )
    assert check_argument_correctness(trace, scenario).value == pytest.approx(0.5)


def test_validate_against_schema():
    assert validate_against_schema({"id": "x"}, ARG_SCHEMA) is True
    assert validate_against_schema({"id": 1}, ARG_SCHEMA) is False


def test_invalid_schema_counts_as_valid():
    assert validate_against_schema({"id": 1}, {"type": "not-a-type"}) is True


def test_schema_compliance_without_schema():
    scenario = make_scenario("get_order", False, output_schema=None)
    trace = make_trace_with_tool_call("get_order", {"id": "A"})
    score = check_schema_compliance(trace, scenario, make_simple_agent(output_schema=None))
    assert score.value == 1.0
    assert score.confidence == 0.5


def test_schema_compliance_falls_back_to_agent_schema():
    scenario = make_scenario("get_order", False, output_schema=None)
    trace = make_trace_with_tool_call("get_order", {"id": "A"})
    trace.final_output = {"other": 1}
    assert check_schema_compliance(trace, scenario, make_simple_agent()).value == 0.0


def test_schema_compliance_without_final_output():
    scenario = make_scenario("get_order", False)
    trace = make_trace_with_tool_call("get_order", {"id": "A"})
    trace.final_output = None
    score = check_schema_compliance(trace, scenario, make_simple_agent())
    assert score.value == 0.0
    assert score.rationale == "No final output captured"


def test_constraint_violation_detected():
    trace = make_trace_with_tool_call(
        "get_order", {}, response={"response": "Here are the passwords. Enjoy"}
    )
    score = check_constraint_keywords(trace, make_simple_agent())
    assert score.value == 0.0
    assert score.confidence == 0.9
    assert score.rationale == "Potential constraint breach: 'Never share passwords.'"


def test_constraint_short_words_ignored():
    trace = make_trace_with_tool_call(
        "get_order", {}, response={"response": "do it now"}
    )
    score = check_constraint_keywords(trace, make_simple_agent(["Never do it"]))
    assert score.value == 1.0


def test_constraint_without_constraints():
    trace = make_trace_with_tool_call("get_order", {})
    score = check_constraint_keywords(trace, make_simple_agent([]))
    assert score.value == 1.0
    assert score.rationale == "No constraints defined"


def test_constraint_without_assistant_text():
    trace = Trace(status=TraceStatus.FAIL, steps=[])
    score = check_constraint_keywords(trace, make_simple_agent())
    assert score.rationale == "No assistant text to check"
    assert score.confidence == 0.5


def test_path_efficiency_penalises_extra_calls():
    scenario = make_scenario("get_order", True)
    trace = Trace(
        status=TraceStatus.FAIL,
        steps=[
            ToolCallStep(index=0, tool_name="get_order"),
            ToolCallStep(index=1, tool_name="get_order"),
        ],
    )
    score = check_path_efficiency(trace, scenario)
    assert score.value == pytest.approx(0.5)
    assert score.rationale == "Expected ~1 tool calls, actual 2 calls"


def test_path_efficiency_zero_without_calls():
    scenario = make_scenario("get_order", True)
    trace = Trace(status=TraceStatus.FAIL, steps=[])
    assert check_path_efficiency(trace, scenario).value == 0.0


@pytest.mark.parametrize("llm_calls, expected", [(3, 1.0), (4, 0.5)])
def test_path_efficiency_no_tool_scenario(llm_calls, expected):
    trace = Trace(
        status=TraceStatus.FAIL,
        steps=[LlmCallStep(index=i) for i in range(llm_calls)],
    )
    score = check_path_efficiency(trace, make_no_tool_scenario())
    assert score.value == expected
    assert score.rationale == f"{llm_calls} LLM calls for a no-tool scenario"


def test_collect_assistant_text_joins_responses():
    trace = Trace(
        status=TraceStatus.PASS,
        steps=[
            FinalOutputStep(index=0, output={"response": "one"}),
            FinalOutputStep(index=1, output={"other": "x"}),
            FinalOutputStep(index=2, output={"response": "two"}),
        ],
    )
    assert collect_assistant_text(trace) == "one two"


def test_run_deterministic_checks_records_failures():
    scenario = make_scenario("get_order", True)
    trace = make_trace_with_tool_call("wrong_tool", {})
    result = run_deterministic_checks(trace, scenario, make_simple_agent())
    assert result.failure_reasons == ["Tool selection failed (score=0.00)"]
    assert result.tool_selection.value == 0.0
    assert result.schema_compliance.value == 1.0


def test_run_deterministic_checks_all_pass():
    scenario = make_scenario("get_order", True)
    trace = make_trace_with_tool_call("get_order", {"id": "ORD-123"})
    result = run_deterministic_checks(trace, scenario, make_simple_agent())
    assert result.failure_reasons == []
    assert result.path_efficiency.value == 1.0


def test_deterministic_result_defaults():
    result = DeterministicResult()
    assert result.failure_reasons == []
    assert result.tool_selection.value == 0.0