"""Tests for the run store and run workspaces."""

import json

import pytest

from browsercrew.persistence.store import RunStore
from browsercrew.persistence.workspace import WorkspaceManager, resolve_in_workspace
from browsercrew.types import Milestone


@pytest.fixture
def store(tmp_path):
    return RunStore(str(tmp_path / "store.db"))


def test_plans_are_listed_per_run(store):
    store.save_plan("run-a", "task a", "initial", "first", [Milestone("Open site", "Home page shown")])
    store.save_plan("run-b", "task b", "initial", "other", [Milestone("Search", "Results shown")])
    store.save_plan(
        "run-a",
        "task a",
        "replan",
        "give up",
        [Milestone("Task is unachievable", "", terminal=True, justification="Site is down")],
    )

    plans = store.list_plans("run-a")

    assert [p["mode"] for p in plans] == ["initial", "replan"]
    assert plans[1]["milestones"][0]["terminal"] is True
    assert plans[1]["milestones"][0]["justification"] == "Site is down"
    assert len(store.list_plans()) == 3


def test_fact_keys_are_unique(store):
    assert store.add_fact("login id is alice", "Login id is alice") is True
    assert store.add_fact("login id is alice", "login ID is alice") is False
    assert store.load_facts() == ["Login id is alice"]

    store.clear_facts()
    assert store.load_facts() == []


class TestWorkspace:
    def test_run_workspace_layout(self, tmp_path):
        manager = WorkspaceManager(tmp_path / "ws")

        workspace = manager.create_run_workspace("run-1", task="Collect prices")

        assert (workspace / "outputs").is_dir()
        metadata = json.loads((workspace / ".metadata.json").read_text(encoding="utf-8"))
        assert metadata["task"] == "Collect prices"
        assert manager.create_run_workspace("run-1", task="Something else") == workspace
        assert json.loads((workspace / ".metadata.json").read_text(encoding="utf-8"))["task"] == "Collect prices"

    @pytest.mark.parametrize("path", ["/etc/passwd", "../outside.txt", "outputs/../../outside.txt", ""])
    def test_paths_outside_workspace_rejected(self, tmp_path, path):
        with pytest.raises(ValueError, match="Access denied"):
            resolve_in_workspace(tmp_path, path)

    def test_nested_path_allowed(self, tmp_path):
        assert resolve_in_workspace(tmp_path, "outputs/a/b.txt") == tmp_path.resolve() / "outputs" / "a" / "b.txt"
