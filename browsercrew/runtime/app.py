"""Runtime assembly: settings, models, memory, tools and the orchestrator."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional

from browsercrew.agents import ChatModelClient, LanguageModel, ModelResolver
from browsercrew.browser.driver import BrowserDriver
from browsercrew.config import Settings, get_settings
from browsercrew.events import EventHub
from browsercrew.graph.coordinator import SubgoalCoordinator
from browsercrew.hitl import ApprovalGate, ApprovalResponder
from browsercrew.memory.session import SessionMemory
from browsercrew.orchestrator import Orchestrator
from browsercrew.persistence import RunStore, WorkspaceManager
from browsercrew.planning.planner import Planner
from browsercrew.tools.builtin import build_tool_registry
from browsercrew.tools.executor import ToolExecutor
from browsercrew.tools.registry import ToolContext, ToolRegistry
from browsercrew.utils.logging_utils import setup_logging
from .model_resolver import build_model_resolver, resolve_model_configs

LOGGER = logging.getLogger(__name__)


@dataclass
class Application:
    """Everything one task run needs, wired together."""

    run_id: str
    orchestrator: Orchestrator
    memory: SessionMemory
    events: EventHub
    registry: ToolRegistry
    approval: ApprovalGate
    store: Optional[RunStore]
    workspace: Path

    async def run(self, task: str):
        """Run ``task`` and always return a verdict."""
        return await self.orchestrator.run_safely(task)


def _build_store(settings: Settings) -> Optional[RunStore]:
    db_path = settings.observability.store_db_path
    if not db_path:
        return None
    try:
        return RunStore(db_path)
    except Exception as exc:
        LOGGER.warning(f"Run store disabled: {exc}")
        return None


def _build_clients(
    settings: Settings, model_resolver: Optional[ModelResolver]
) -> tuple[LanguageModel, LanguageModel]:
    configs = resolve_model_configs(settings)
    resolver = model_resolver or build_model_resolver(configs, settings.models.temperature)
    governance = settings.governance

    def client(role: str) -> ChatModelClient:
        return ChatModelClient(
            resolver(configs[role]["id"]),
            name=role,
            max_retries=governance.llm_max_retries,
            backoff_base_seconds=governance.llm_backoff_base_seconds,
            schema_max_retries=governance.schema_max_retries,
        )

    return client("default"), client("fast")


def build_application(
    *,
    driver: BrowserDriver,
    settings: Optional[Settings] = None,
    model_resolver: Optional[ModelResolver] = None,
    llm: Optional[LanguageModel] = None,
    fast_llm: Optional[LanguageModel] = None,
    responder: Optional[ApprovalResponder] = None,
    ask_user: Optional[Callable[[str], Awaitable[str]]] = None,
    events: Optional[EventHub] = None,
    headless: bool = False,
    run_id: Optional[str] = None,
    configure_logging: bool = True,
) -> Application:
    """Assemble an application around an already started browser driver.

    Args:
        driver: Browser automation backend
        llm: Main language model. Built from settings when omitted
        fast_llm: Model for memory updates and progress checks. Defaults to ``llm``
            when ``llm`` is given, otherwise built from settings
        responder: Answers approval requests in confirm and edit modes
        ask_user: Answers the agent's questions; ``ask_user`` is hidden when headless
        configure_logging: Install the file and console log handlers from settings
    """
    settings = settings or get_settings()
    governance = settings.governance
    events = events or EventHub()
    run_id = run_id or uuid.uuid4().hex

    if configure_logging:
        observability = settings.observability
        setup_logging(getattr(logging, observability.log_level.upper(), logging.INFO), observability.log_dir)

    if llm is None:
        llm, built_fast = _build_clients(settings, model_resolver)
        fast_llm = fast_llm or built_fast
    fast_llm = fast_llm or llm

    store = _build_store(settings)
    memory = SessionMemory(intervention_mode=governance.intervention_mode, store=store, events=events)
    workspace = WorkspaceManager(settings.workspace.root).create_run_workspace(run_id)

    registry = build_tool_registry(include_human=not headless)
    executor = ToolExecutor(
        registry,
        ToolContext(memory=memory, driver=driver, llm=llm, workspace=workspace, ask_user=ask_user),
    )
    approval = ApprovalGate(
        memory,
        responder=responder,
        events=events,
        autonomous_delay_seconds=governance.autonomous_delay_seconds,
    )

    coordinator = SubgoalCoordinator(
        memory=memory,
        driver=driver,
        llm=llm,
        registry=registry,
        executor=executor,
        approver=approval.approve,
        headless=headless,
        max_loops=governance.max_loops_per_subgoal,
        max_reflections=governance.max_reflections,
        max_qa_fails=governance.max_qa_fails,
        history_window=governance.history_window,
        summary_chars=governance.page_summary_chars,
        prompt_log_max_length=settings.observability.log_prompt_max_length,
    )
    planner = Planner(
        llm=llm,
        memory=memory,
        driver=driver,
        store=store,
        events=events,
        run_id=run_id,
        max_milestones=governance.max_milestones,
        history_window=governance.history_window,
        summary_chars=governance.page_summary_chars,
    )
    orchestrator = Orchestrator(
        planner=planner,
        coordinator=coordinator,
        memory=memory,
        llm=fast_llm,
        driver=driver,
        events=events,
        max_replan_attempts=governance.max_replan_attempts,
        history_window=governance.history_window,
    )

    LOGGER.info(f"Application ready: run_id={run_id}, mode={memory.intervention_mode.value}, headless={headless}")
    return Application(
        run_id=run_id,
        orchestrator=orchestrator,
        memory=memory,
        events=events,
        registry=registry,
        approval=approval,
        store=store,
        workspace=workspace,
    )
