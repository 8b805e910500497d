"""Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and ensures proper test environment setup.
"""

import sys
from pathlib import Path

import pytest

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from browsercrew.events import EventHub  # noqa: E402
from browsercrew.memory.session import SessionMemory  # noqa: E402
from browsercrew.tools.builtin import build_tool_registry  # noqa: E402
from browsercrew.tools.executor import ToolExecutor  # noqa: E402
from browsercrew.tools.registry import ToolContext  # noqa: E402
from browsercrew.types import InterventionMode  # noqa: E402
from tests.fakes import FakeDriver, ScriptedLanguageModel  # noqa: E402


@pytest.fixture
def events():
    return EventHub()


@pytest.fixture
def memory(events):
    session = SessionMemory(intervention_mode=InterventionMode.AUTONOMOUS, events=events)
    session.set_task("Log in and report the dashboard title")
    return session


@pytest.fixture
def driver():
    return FakeDriver(url="https://example.com/login", title="Login")


@pytest.fixture
def llm():
    return ScriptedLanguageModel()


@pytest.fixture
def registry():
    return build_tool_registry()


@pytest.fixture
def tool_context(memory, driver, llm, tmp_path):
    return ToolContext(memory=memory, driver=driver, llm=llm, workspace=tmp_path)


@pytest.fixture
def executor(registry, tool_context):
    return ToolExecutor(registry, tool_context)
