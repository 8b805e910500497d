"""Environment-bound configuration objects.

This module provides Pydantic BaseSettings-based configuration loading from .env files.
All settings classes automatically load from environment variables with support for
multiple alias names (e.g., MODEL_DEFAULT and MODEL_DEFAULT_ID both work).

Example:
    from browsercrew.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    api_key = settings.models.default_api_key
    max_loops = settings.governance.max_loops_per_subgoal
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from browsercrew.types import InterventionMode


load_dotenv()


class ModelRoutingSettings(BaseSettings):
    """Model identifiers and credentials for the two model roles.

    - default: planner, analyst, reflection and QA
    - fast: memory consolidation and progress evaluation

    A missing fast-model key falls back to the default model's credentials.
    """

    default: str = Field(
        default="gpt-4o",
        validation_alias=AliasChoices("MODEL_DEFAULT", "MODEL_DEFAULT_ID"),
    )
    default_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_DEFAULT_API_KEY", "OPENAI_API_KEY"),
    )
    default_base_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_DEFAULT_URL", "MODEL_DEFAULT_BASE_URL", "OPENAI_BASE_URL"),
    )

    fast: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("MODEL_FAST", "MODEL_FAST_ID"),
    )
    fast_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_FAST_API_KEY"),
    )
    fast_base_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_FAST_URL", "MODEL_FAST_BASE_URL"),
    )

    temperature: float = Field(default=0.2, ge=0.0, le=2.0, alias="MODEL_TEMPERATURE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class GovernanceSettings(BaseSettings):
    """Loop budgets and human-intervention policy.

    - max_milestones: plans longer than this are truncated
    - max_loops_per_subgoal: analyze/execute iterations per subgoal
    - max_reflections: consecutive execution errors reflected on before replanning
    - max_qa_fails: rejected verifications before replanning
    - max_replan_attempts: consecutive replans before the run is aborted
    """

    max_milestones: int = Field(default=10, ge=1, le=50, alias="MAX_MILESTONES")
    max_loops_per_subgoal: int = Field(default=15, ge=1, le=200, alias="MAX_LOOPS_PER_SUBGOAL")
    max_reflections: int = Field(default=2, ge=0, le=20, alias="MAX_REFLECTIONS")
    max_qa_fails: int = Field(default=3, ge=1, le=20, alias="MAX_QA_FAILS")
    max_replan_attempts: int = Field(default=3, ge=0, le=20, alias="MAX_REPLAN_ATTEMPTS")

    history_window: int = Field(default=5, ge=1, le=50, alias="HISTORY_WINDOW")
    page_summary_chars: int = Field(default=2000, ge=200, le=20000, alias="PAGE_SUMMARY_CHARS")

    intervention_mode: InterventionMode = Field(default=InterventionMode.CONFIRM, alias="INTERVENTION_MODE")
    autonomous_delay_seconds: float = Field(default=1.0, ge=0.0, le=30.0, alias="AUTONOMOUS_DELAY_SECONDS")

    llm_max_retries: int = Field(default=5, ge=1, le=10, alias="LLM_MAX_RETRIES")
    llm_backoff_base_seconds: float = Field(default=1.0, ge=0.0, alias="LLM_BACKOFF_BASE_SECONDS")
    schema_max_retries: int = Field(default=3, ge=1, le=10, alias="SCHEMA_MAX_RETRIES")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class ObservabilitySettings(BaseSettings):
    """Logging and persistence configuration."""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="LOG_DIR")
    log_prompt_max_length: int = Field(default=500, ge=100, le=5000, alias="LOG_PROMPT_MAX_LENGTH")

    # SQLite file for plans and long-term facts.
    # Set to empty string to disable persistence
    store_db_path: Optional[str] = Field(default="data/browsercrew.db", alias="STORE_DB_PATH")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class WorkspaceSettings(BaseSettings):
    root: str = Field(default="data/workspace", alias="WORKSPACE_ROOT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class Settings(BaseSettings):
    """Root application settings loaded from .env file.

    Hierarchical structure containing four nested settings groups:
    - models: Model routing and API credentials (ModelRoutingSettings)
    - governance: Loop budgets and approval policy (GovernanceSettings)
    - observability: Logging and persistence (ObservabilitySettings)
    - workspace: Workspace file tools (WorkspaceSettings)

    Use get_settings() to obtain a cached singleton instance.
    """

    environment: str = Field(default="dev", alias="APP_ENV")
    models: ModelRoutingSettings = Field(default_factory=ModelRoutingSettings)
    governance: GovernanceSettings = Field(default_factory=GovernanceSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        case_sensitive=False,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Returns:
        Settings: Cached application settings instance
    """
    return Settings()
