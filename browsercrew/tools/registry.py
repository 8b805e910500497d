"""Tool catalog: definitions, metadata and registration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, ValidationError

from browsercrew.agents.interfaces import LanguageModel
from browsercrew.browser.driver import BrowserDriver
from browsercrew.errors import InvalidToolArgumentError, UnknownToolError
from browsercrew.memory.session import SessionMemory
from browsercrew.types import PreconditionResult


@dataclass(slots=True)
class ToolContext:
    """Everything a tool may touch while it runs."""

    memory: SessionMemory
    driver: BrowserDriver
    llm: LanguageModel
    workspace: Optional[Path] = None
    ask_user: Optional[Callable[[str], Awaitable[str]]] = None


Execute = Callable[[ToolContext, Any], Awaitable[Any]]
Precondition = Callable[[ToolContext, Any], Awaitable[PreconditionResult]]


@dataclass(frozen=True, slots=True)
class CatalogTool:
    """A named, schema-validated capability the analyst can propose."""

    name: str
    description: str
    args_schema: Type[BaseModel]
    execute: Execute
    precondition: Optional[Precondition] = None
    changes_tabs: bool = False

    def parse_args(self, args: Dict[str, Any]) -> BaseModel:
        try:
            return self.args_schema.model_validate(args or {})
        except ValidationError as exc:
            raise InvalidToolArgumentError(
                f"Invalid arguments for {self.name}: {exc.errors(include_url=False)}",
                tool_name=self.name,
                args=args,
            ) from exc

    def descriptor(self) -> Dict[str, Any]:
        """OpenAI function-calling descriptor accepted by ``bind_tools``."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.args_schema.model_json_schema(),
            },
        }


@dataclass(frozen=True, slots=True)
class ToolMeta:
    """Describes governance attributes for a tool."""

    name: str
    risk: str = "low"
    tags: List[str] = field(default_factory=list)
    needs_human: bool = False  # Unavailable in headless runs


class ToolRegistry:
    """Tracks catalog tools and governance metadata."""

    def __init__(self, tools: Optional[Iterable[CatalogTool]] = None, meta: Optional[Iterable[ToolMeta]] = None) -> None:
        self._tools: Dict[str, CatalogTool] = {}
        self._meta: Dict[str, ToolMeta] = {}
        if tools:
            for tool in tools:
                self.register_tool(tool)
        if meta:
            for item in meta:
                self.register_meta(item)

    def register_tool(self, tool: CatalogTool, meta: Optional[ToolMeta] = None) -> None:
        self._tools[tool.name] = tool
        if meta is not None:
            self.register_meta(meta)

    def register_meta(self, metadata: ToolMeta) -> None:
        self._meta[metadata.name] = metadata

    def get_tool(self, name: str) -> CatalogTool:
        if name not in self._tools:
            raise UnknownToolError(name)
        return self._tools[name]

    def get_tool_optional(self, name: str) -> CatalogTool | None:
        return self._tools.get(name)

    def get_meta_optional(self, name: str) -> ToolMeta | None:
        return self._meta.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def list_tools(self) -> List[CatalogTool]:
        return list(self._tools.values())

    def headless_tools(self) -> List[CatalogTool]:
        """Tools that can run without a human at the keyboard."""
        return [
            tool
            for tool in self._tools.values()
            if not (self._meta.get(tool.name) and self._meta[tool.name].needs_human)
        ]

    def descriptors(self, tools: Optional[Iterable[CatalogTool]] = None) -> List[Dict[str, Any]]:
        return [tool.descriptor() for tool in (tools if tools is not None else self._tools.values())]
