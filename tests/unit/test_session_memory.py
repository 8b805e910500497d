"""Tests for SessionMemory: history, memories, tabs and intervention mode."""

import pytest

from browsercrew.events import EventHub, EventType
from browsercrew.memory.session import SessionMemory, normalize_fact
from browsercrew.persistence.store import RunStore
from browsercrew.types import ExecutionRecord, InterventionMode, TabInfo, ToolCall


def _record(name="goto", error=None):
    return ExecutionRecord(tool_call=ToolCall(name=name, args={"url": "https://example.com"}), result="ok", error=error)


class TestHistory:
    def test_history_is_append_only(self):
        memory = SessionMemory()
        first, second = _record("goto"), _record("act", error="boom")

        memory.add_history(first)
        snapshot = memory.history
        memory.add_history(second)

        assert snapshot == (first,)
        assert memory.history == (first, second)
        assert memory.history_length() == 2

    def test_history_accessor_returns_copy(self):
        memory = SessionMemory()
        memory.add_history(_record())

        history = memory.history
        assert isinstance(history, tuple)
        assert memory.history_since(1) == ()

    def test_recent_history_window(self):
        memory = SessionMemory()
        records = [_record(f"tool_{i}") for i in range(7)]
        for record in records:
            memory.add_history(record)

        assert memory.recent_history(3) == tuple(records[-3:])
        assert memory.recent_history(0) == ()


class TestWorkingMemory:
    def test_clear_working_memory(self):
        memory = SessionMemory()
        memory.add_to_working_memory("note")
        memory.add_qa_failure_feedback("title not visible")

        assert len(memory.working_memory) == 2
        assert memory.working_memory[1] == "QA rejected the last attempt: title not visible"

        memory.clear_working_memory()
        assert memory.working_memory == []

    def test_working_memory_accessor_is_copy(self):
        memory = SessionMemory()
        memory.working_memory.append("sneaky")
        assert memory.working_memory == []

    def test_milestone_summaries_survive_working_memory_reset(self):
        memory = SessionMemory()
        memory.add_milestone_summary("Open login page: done")
        memory.clear_working_memory()
        assert memory.milestone_summaries == ["Open login page: done"]


class TestLongTermMemory:
    def test_duplicate_fact_is_ignored(self):
        """Case and whitespace differences do not create a new fact."""
        memory = SessionMemory()

        assert memory.add_long_term_fact("Login ID is alice") is True
        assert memory.add_long_term_fact("  login   id IS Alice ") is False

        assert memory.long_term_memory == ["Login ID is alice"]

    def test_empty_fact_is_ignored(self):
        memory = SessionMemory()
        assert memory.add_long_term_fact("   ") is False
        assert memory.long_term_memory == []

    def test_normalize_fact(self):
        assert normalize_fact("  Hello\n  World ") == "hello world"

    def test_facts_persist_across_sessions(self, tmp_path):
        store = RunStore(str(tmp_path / "run.db"))
        SessionMemory(store=store).add_long_term_fact("Dashboard URL is https://example.com/home")

        reloaded = SessionMemory(store=store)
        assert reloaded.long_term_memory == ["Dashboard URL is https://example.com/home"]
        assert reloaded.add_long_term_fact("dashboard url is https://example.com/home") is False


class TestTabs:
    def test_tab_lookup(self):
        memory = SessionMemory()
        memory.update_tabs(
            [
                TabInfo(index=0, title="Home", url="https://example.com", is_active=False),
                TabInfo(index=1, title="Docs", url="https://example.com/docs", is_active=True),
            ]
        )

        assert memory.active_tab().title == "Docs"
        assert memory.tab_at(0).title == "Home"
        with pytest.raises(IndexError):
            memory.tab_at(5)

    def test_unchanged_tabs_do_not_broadcast(self):
        events = EventHub()
        seen = []
        events.subscribe(lambda event: seen.append(event), [EventType.STATE_CHANGED])
        memory = SessionMemory(events=events)
        tabs = [TabInfo(index=0, title="Home", url="https://example.com", is_active=True)]

        memory.update_tabs(tabs)
        memory.update_tabs(list(tabs))

        assert len(seen) == 1


class TestInterventionMode:
    def test_set_mode_from_string(self):
        memory = SessionMemory()
        memory.set_intervention_mode("edit")
        assert memory.intervention_mode is InterventionMode.EDIT

    def test_invalid_mode_rejected(self):
        memory = SessionMemory()
        with pytest.raises(ValueError, match="Invalid intervention mode"):
            memory.set_intervention_mode("yolo")
        assert memory.intervention_mode is InterventionMode.CONFIRM

    def test_mode_change_broadcasts_state(self):
        events = EventHub()
        seen = []
        events.subscribe(lambda event: seen.append(event), [EventType.STATE_CHANGED])
        memory = SessionMemory(events=events)

        memory.set_intervention_mode(InterventionMode.AUTONOMOUS)

        assert seen
        assert seen[-1].payload["state"]["intervention_mode"] == "autonomous"
