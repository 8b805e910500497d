"""Tests for the hierarchical planner."""

import pytest

from browsercrew.errors import PlanningError, SchemaValidationError
from browsercrew.events import EventType
from browsercrew.persistence.store import RunStore
from browsercrew.planning.planner import UNACHIEVABLE_DESCRIPTION, Planner
from browsercrew.types import FailureContext, Milestone, NeedsReplan, Subgoal, ToolCall

TASK = "Log in and report the dashboard title"

INITIAL_PLAN = {
    "reasoning": "Log in first, then read the title",
    "milestones": [
        {"description": "Log in", "completion_criteria": "The dashboard is shown"},
        {"description": "Report the title", "completion_criteria": "The title was reported with finish"},
    ],
}

FAILURE = NeedsReplan(
    reason="stuck: act failed 3 times with the same arguments",
    failure_context=FailureContext(consecutive_failures=3, stagnation_count=3, summary="act failed 3 times"),
    failed_tool_call=ToolCall(name="act", args={"instruction": "type password", "password": "hunter2"}),
    error="ElementNotFoundError: Timed out",
    error_type="ElementNotFoundError",
)


@pytest.fixture
def planner(llm, memory, driver, events):
    return Planner(llm=llm, memory=memory, driver=driver, events=events, run_id="run-1")


class TestInitialPlan:
    @pytest.mark.asyncio
    async def test_milestones_in_order(self, planner, llm, events):
        llm.script("InitialPlanModel", INITIAL_PLAN)

        result = await planner.plan(TASK)

        assert [m.description for m in result.milestones] == ["Log in", "Report the title"]
        assert not result.is_terminal
        created = [e for e in events.history if e.event_type is EventType.PLAN_CREATED]
        assert created[-1].payload["mode"] == "initial"
        assert len(created[-1].payload["milestones"]) == 2

    @pytest.mark.asyncio
    async def test_schema_failure_is_planning_error(self, planner, llm):
        llm.script("InitialPlanModel", SchemaValidationError("still invalid"))

        with pytest.raises(PlanningError):
            await planner.plan(TASK)

    @pytest.mark.asyncio
    async def test_milestones_are_truncated(self, llm, memory, driver):
        planner = Planner(llm=llm, memory=memory, driver=driver, max_milestones=2)
        plan = dict(INITIAL_PLAN)
        plan["milestones"] = INITIAL_PLAN["milestones"] + [
            {"description": "Log out", "completion_criteria": "The login page is shown"}
        ]
        llm.script("InitialPlanModel", plan)

        result = await planner.plan(TASK)

        assert len(result.milestones) == 2

    @pytest.mark.asyncio
    async def test_plans_are_persisted(self, llm, memory, driver, tmp_path):
        store = RunStore(str(tmp_path / "plans.db"))
        planner = Planner(llm=llm, memory=memory, driver=driver, store=store, run_id="run-7")
        llm.script("InitialPlanModel", INITIAL_PLAN)

        await planner.plan(TASK)

        plans = store.list_plans("run-7")
        assert len(plans) == 1
        assert plans[0]["mode"] == "initial"
        assert plans[0]["milestones"][0]["description"] == "Log in"


class TestReplan:
    @pytest.mark.asyncio
    async def test_replan_returns_new_milestones(self, planner, llm):
        llm.script(
            "ReplanModel",
            {
                "reasoning": "Use the SSO button instead",
                "milestones": [{"description": "Log in with SSO", "completion_criteria": "Dashboard shown"}],
            },
        )

        result = await planner.plan(
            TASK,
            FAILURE,
            completed=[],
            failed_milestone=Milestone(description="Log in", completion_criteria="Dashboard shown"),
        )

        assert [m.description for m in result.milestones] == ["Log in with SSO"]

    @pytest.mark.asyncio
    async def test_unachievable_is_terminal(self, planner, llm, events):
        llm.script(
            "ReplanModel",
            {"reasoning": "No way in", "unachievable": True, "justification": " The site requires a hardware key "},
        )

        result = await planner.plan(TASK, FAILURE)

        assert result.is_terminal
        assert result.milestones[0].description == UNACHIEVABLE_DESCRIPTION
        assert result.justification == "The site requires a hardware key"
        assert events.history[-1].payload["terminal"] is True

    @pytest.mark.asyncio
    async def test_replan_schema_failure(self, planner, llm):
        llm.script("ReplanModel", SchemaValidationError("still invalid"))

        with pytest.raises(PlanningError):
            await planner.plan(TASK, FAILURE)

    def test_failure_report_redacts_secrets(self):
        report = FAILURE.describe()
        assert report["failed_tool"]["args"]["password"] == "[REDACTED]"


class TestDecompose:
    MILESTONE = Milestone(description="Log in", completion_criteria="The dashboard is shown")

    @pytest.mark.asyncio
    async def test_subgoals(self, planner, llm):
        llm.script(
            "TacticalPlanModel",
            {
                "subgoals": [
                    {"description": "Fill in the login form", "success_criteria": "Fields are filled"},
                    {"description": "Submit the form", "success_criteria": "The dashboard is shown"},
                ]
            },
        )

        subgoals = await planner.decompose(self.MILESTONE, TASK)

        assert [s.description for s in subgoals] == ["Fill in the login form", "Submit the form"]

    @pytest.mark.asyncio
    async def test_empty_decomposition_falls_back(self, planner, llm):
        llm.script("TacticalPlanModel", {"subgoals": []})

        subgoals = await planner.decompose(self.MILESTONE, TASK)

        assert subgoals == [Subgoal(description="Log in", success_criteria="The dashboard is shown")]

    @pytest.mark.asyncio
    async def test_invalid_decomposition_falls_back(self, planner, llm):
        llm.script("TacticalPlanModel", SchemaValidationError("bad"))

        subgoals = await planner.decompose(self.MILESTONE, TASK)

        assert subgoals == [Subgoal.from_milestone(self.MILESTONE)]
