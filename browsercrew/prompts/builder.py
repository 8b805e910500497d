"""Prompt template builder.

Prompts live as Jinja2 templates under ``browsercrew/prompts/templates`` and are
rendered in a sandboxed environment, so page text and model output that end up
in template variables cannot execute template code.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2.sandbox import SandboxedEnvironment

TEMPLATE_DIR = Path(__file__).parent / "templates"


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2, default=str)


@lru_cache(maxsize=1)
def _environment() -> SandboxedEnvironment:
    env = SandboxedEnvironment(trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=False)
    env.filters["tojson_pretty"] = _to_json
    return env


class PromptBuilder:
    """Loads and renders the prompt templates."""

    SYSTEM_TEMPLATE = "system.jinja2"
    CONTEXT_TEMPLATE = "context.jinja2"
    ANALYST_TEMPLATE = "analyst.jinja2"
    REFLECTION_TEMPLATE = "reflection.jinja2"
    QA_TEMPLATE = "qa.jinja2"
    PLANNER_TEMPLATE = "planner.jinja2"
    REPLAN_TEMPLATE = "replan.jinja2"
    TACTICAL_TEMPLATE = "tactical.jinja2"
    MEMORY_UPDATE_TEMPLATE = "memory_update.jinja2"
    PROGRESS_TEMPLATE = "progress.jinja2"
    EVALUATION_TEMPLATE = "evaluation.jinja2"

    @staticmethod
    @lru_cache(maxsize=None)
    def _load_template(name: str) -> str:
        return (TEMPLATE_DIR / name).read_text(encoding="utf-8")

    @classmethod
    def render(cls, name: str, **params: Any) -> str:
        template = cls._load_template(name)
        return _environment().from_string(template).render(**params).strip()
