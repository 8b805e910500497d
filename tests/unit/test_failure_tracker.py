"""Tests for FailureTracker stuck detection."""

from browsercrew.tracking import FailureTracker, hash_tool_call
from browsercrew.types import EnvironmentSnapshot, ToolCall

LOGIN = EnvironmentSnapshot(url="https://example.com/login", title="Login")
HOME = EnvironmentSnapshot(url="https://example.com/home", title="Home")


def test_hash_ignores_key_order_and_call_id():
    a = ToolCall(name="act", args={"instruction": "click", "target": "login"})
    b = ToolCall(name="act", args={"target": "login", "instruction": "click"})
    assert a.id != b.id
    assert hash_tool_call(a) == hash_tool_call(b)
    assert hash_tool_call(a) != hash_tool_call(ToolCall(name="observe", args=dict(a.args)))


class TestStagnation:
    def test_three_failures_on_same_page_are_stuck(self):
        tracker = FailureTracker()
        for i in range(3):
            tracker.record_failure(ToolCall(name="act", args={"instruction": f"try {i}"}), LOGIN)

        assert tracker.stagnation_count == 3
        assert tracker.is_stuck()

    def test_state_change_resets_stagnation(self):
        tracker = FailureTracker()
        tracker.record_failure(ToolCall(name="act", args={"instruction": "a"}), LOGIN)
        tracker.record_failure(ToolCall(name="act", args={"instruction": "b"}), LOGIN)
        tracker.record_failure(ToolCall(name="act", args={"instruction": "c"}), HOME)

        assert tracker.stagnation_count == 1
        assert not tracker.is_stuck()

    def test_new_page_failures_count_from_the_first(self):
        tracker = FailureTracker()
        tracker.record_failure(ToolCall(name="act", args={"instruction": "log in"}), LOGIN)
        for i in range(3):
            tracker.record_failure(ToolCall(name="act", args={"instruction": f"open menu {i}"}), HOME)

        assert tracker.stagnation_count == 3
        assert tracker.is_stuck()
        assert "has not changed across 3 attempts" in tracker.get_failure_context().summary

    def test_success_resets_streaks(self):
        tracker = FailureTracker()
        tracker.record_failure(ToolCall(name="act", args={"instruction": "a"}), LOGIN)
        tracker.record_failure(ToolCall(name="act", args={"instruction": "b"}), LOGIN)

        tracker.record_success()

        assert tracker.consecutive_failures == 0
        assert tracker.stagnation_count == 0
        tracker.record_failure(ToolCall(name="act", args={"instruction": "c"}), LOGIN)
        assert tracker.stagnation_count == 1


class TestRepeatedFailures:
    def test_same_call_three_times_is_stuck(self):
        tracker = FailureTracker()
        snapshots = [LOGIN, HOME, LOGIN]
        for snapshot in snapshots:
            tracker.record_failure(ToolCall(name="act", args={"instruction": "click Log in"}), snapshot)

        assert tracker.is_stuck()
        context = tracker.get_failure_context()
        assert context.repeated_failure is not None
        assert context.repeated_failure.tool_name == "act"
        assert context.repeated_failure.count == 3
        assert "failed 3 times with the same arguments" in context.summary

    def test_repeated_args_are_redacted(self):
        tracker = FailureTracker()
        call = {"instruction": "type password", "password": "hunter2"}
        for snapshot in (LOGIN, HOME, LOGIN):
            tracker.record_failure(ToolCall(name="act", args=dict(call)), snapshot)

        repeated = tracker.get_failure_context().repeated_failure
        assert repeated.args["password"] == "[REDACTED]"
        assert repeated.args["instruction"] == "type password"


def test_five_consecutive_distinct_failures_are_stuck():
    tracker = FailureTracker()
    snapshots = [LOGIN, HOME]
    for i in range(4):
        tracker.record_failure(ToolCall(name="act", args={"instruction": f"step {i}"}), snapshots[i % 2])
    assert not tracker.is_stuck()

    tracker.record_failure(ToolCall(name="act", args={"instruction": "step 4"}), HOME)
    assert tracker.consecutive_failures == 5
    assert tracker.is_stuck()


def test_context_without_failures():
    context = FailureTracker().get_failure_context()
    assert context.consecutive_failures == 0
    assert context.repeated_failure is None
    assert context.to_dict()["repeated_failure"] is None
