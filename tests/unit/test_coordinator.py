"""Scenario tests for the subgoal coordinator graph."""

import pytest

from browsercrew.errors import BrowserTimeoutError, UnknownToolError
from browsercrew.graph import SubgoalCoordinator
from browsercrew.graph.nodes.analyze import NO_PROPOSAL_ERROR, NO_PROPOSAL_TOOL_NAME
from browsercrew.types import NeedsReplan, Subgoal, SubgoalSucceeded, ToolCall

SUBGOAL = Subgoal(description="Log in", success_criteria="The dashboard is shown")
CLICK = ToolCall(name="act", args={"instruction": "click the Log in button"})
BAD_GOTO = ToolCall(name="goto", args={"url": "ftp://example.com"})

QA_PASS = {"is_success": True, "reasoning": "Dashboard heading is visible"}
QA_FAIL = {"is_success": False, "reasoning": "Still on the login page"}
REFLECTION = {"cause_analysis": "The button was not found", "alternative_approaches": ["Press Enter instead"]}


@pytest.fixture
def coordinator(memory, driver, llm, registry, executor):
    return SubgoalCoordinator(memory=memory, driver=driver, llm=llm, registry=registry, executor=executor)


@pytest.mark.asyncio
async def test_single_loop_success(coordinator, llm, memory, driver):
    driver.page_changes["click the Log in button"] = ("https://example.com/home", "Dashboard")
    llm.propose([CLICK]).script("QAVerdictModel", QA_PASS)

    outcome = await coordinator.run(SUBGOAL)

    assert isinstance(outcome, SubgoalSucceeded)
    assert outcome.loops == 1
    assert memory.completed_subgoals == ["Log in"]
    assert memory.history_length() == 1
    assert memory.history[0].succeeded
    assert llm.count("ReflectionModel") == 0


@pytest.mark.asyncio
async def test_repeated_timeouts_end_stuck(coordinator, llm, memory, driver):
    driver.act_errors = [BrowserTimeoutError("element not visible")] * 3
    llm.repeat_tool_calls = [CLICK]
    llm.always("ReflectionModel", REFLECTION)

    outcome = await coordinator.run(SUBGOAL)

    assert isinstance(outcome, NeedsReplan)
    assert outcome.reason.startswith("stuck:")
    assert outcome.error_type == "ElementNotFoundError"
    assert outcome.failed_tool_call.name == "act"
    assert outcome.failure_context.repeated_failure.count == 3
    assert memory.history_length() == 3
    assert all(not record.succeeded for record in memory.history)
    assert llm.count("ReflectionModel") == 2
    assert llm.count("QAVerdictModel") == 0


@pytest.mark.asyncio
async def test_qa_rejections_need_replan_without_reflection(coordinator, llm, memory):
    llm.repeat_tool_calls = [CLICK]
    llm.always("QAVerdictModel", QA_FAIL)

    outcome = await coordinator.run(SUBGOAL)

    assert isinstance(outcome, NeedsReplan)
    assert outcome.reason.startswith("QA rejected the subgoal 3 times")
    assert llm.count("QAVerdictModel") == 3
    assert llm.count("ReflectionModel") == 0
    assert memory.history_length() == 3
    assert memory.working_memory.count("QA rejected the last attempt: Still on the login page") == 3


@pytest.mark.asyncio
async def test_reflection_budget(memory, driver, llm, registry, executor):
    coordinator = SubgoalCoordinator(
        memory=memory, driver=driver, llm=llm, registry=registry, executor=executor, max_reflections=1
    )
    llm.propose([BAD_GOTO], [ToolCall(name="goto", args={"url": "mailto:someone@example.com"})])
    llm.always("ReflectionModel", REFLECTION)

    outcome = await coordinator.run(SUBGOAL)

    assert isinstance(outcome, NeedsReplan)
    assert outcome.reason.startswith("reflection budget exhausted")
    assert outcome.error_type == "InvalidToolArgumentError"
    assert llm.count("ReflectionModel") == 1


@pytest.mark.asyncio
async def test_success_resets_reflection_budget(memory, driver, llm, registry, executor):
    coordinator = SubgoalCoordinator(
        memory=memory, driver=driver, llm=llm, registry=registry, executor=executor, max_reflections=1
    )
    llm.propose([BAD_GOTO], [CLICK], [BAD_GOTO], [CLICK])
    llm.always("ReflectionModel", REFLECTION)
    llm.script("QAVerdictModel", QA_FAIL, QA_PASS)

    outcome = await coordinator.run(SUBGOAL)

    assert isinstance(outcome, SubgoalSucceeded)
    assert outcome.loops == 4
    assert llm.count("ReflectionModel") == 2


@pytest.mark.asyncio
async def test_rejected_plan_needs_replan(memory, driver, llm, registry, executor):
    async def reject(calls):
        return None

    coordinator = SubgoalCoordinator(
        memory=memory, driver=driver, llm=llm, registry=registry, executor=executor, approver=reject
    )
    llm.propose([CLICK])

    outcome = await coordinator.run(SUBGOAL)

    assert isinstance(outcome, NeedsReplan)
    assert outcome.reason == "plan rejected"
    assert outcome.failed_tool_call.name == "act"
    assert memory.history_length() == 0
    assert driver.actions == []
    assert [tab.url for tab in memory.tabs] == ["https://example.com/login"]


@pytest.mark.asyncio
async def test_unknown_tool_is_fatal(coordinator, llm, memory):
    llm.propose([ToolCall(name="teleport", args={"to": "dashboard"})])

    with pytest.raises(UnknownToolError):
        await coordinator.run(SUBGOAL)

    assert memory.history[-1].error == "Unknown tool: teleport"


@pytest.mark.asyncio
async def test_missing_proposal_is_reflected_on(coordinator, llm, memory):
    llm.propose([], [CLICK])
    llm.script("ReflectionModel", REFLECTION)
    llm.script("QAVerdictModel", QA_PASS)

    outcome = await coordinator.run(SUBGOAL)

    assert isinstance(outcome, SubgoalSucceeded)
    assert outcome.loops == 2
    first = memory.history[0]
    assert first.tool_call.name == NO_PROPOSAL_TOOL_NAME
    assert first.error == NO_PROPOSAL_ERROR
    assert coordinator.last_tracker.consecutive_failures == 0


@pytest.mark.asyncio
async def test_only_first_proposal_runs(coordinator, llm, memory, driver):
    llm.propose([CLICK, ToolCall(name="goto", args={"url": "https://example.com/other"})])
    llm.script("QAVerdictModel", QA_PASS)

    await coordinator.run(SUBGOAL)

    assert memory.history_length() == 1
    assert driver.visited == []


@pytest.mark.asyncio
async def test_loop_budget(memory, driver, llm, registry, executor):
    coordinator = SubgoalCoordinator(
        memory=memory, driver=driver, llm=llm, registry=registry, executor=executor, max_loops=2, max_qa_fails=10
    )
    llm.repeat_tool_calls = [CLICK]
    llm.always("QAVerdictModel", QA_FAIL)

    outcome = await coordinator.run(SUBGOAL)

    assert isinstance(outcome, NeedsReplan)
    assert outcome.reason == "loop budget exhausted"
    assert llm.count("propose_tool_calls") == 2


@pytest.mark.asyncio
async def test_headless_hides_human_tools(memory, driver, llm, registry, executor):
    coordinator = SubgoalCoordinator(
        memory=memory, driver=driver, llm=llm, registry=registry, executor=executor, headless=True
    )
    llm.propose([CLICK]).script("QAVerdictModel", QA_PASS)

    await coordinator.run(SUBGOAL)

    names = {descriptor["function"]["name"] for descriptor in llm.tool_descriptors[0]}
    assert "ask_user" not in names
    assert "act" in names


@pytest.mark.asyncio
async def test_each_run_starts_with_fresh_working_memory(coordinator, llm, memory):
    memory.add_to_working_memory("leftover from the previous subgoal")
    llm.propose([CLICK]).script("QAVerdictModel", QA_PASS)

    await coordinator.run(SUBGOAL)

    assert memory.working_memory == []
    assert memory.current_subgoal == SUBGOAL
