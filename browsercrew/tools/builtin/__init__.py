"""Built-in tool catalog."""

from __future__ import annotations

from typing import List, Tuple

from browsercrew.tools.registry import CatalogTool, ToolMeta, ToolRegistry

from .ask_user import ask_user_tool
from .browser import act_tool, extract_tool, goto_tool, observe_tool
from .files import read_file_tool, write_file_tool
from .finish import FINISH_PREFIX, FINISH_TOOL_NAME, finish_tool, parse_finish_result
from .tabs import close_tab_tool, new_tab_tool, switch_tab_tool

BUILTIN_TOOLS: List[Tuple[CatalogTool, ToolMeta]] = [
    (goto_tool, ToolMeta(name="goto", tags=["browser", "navigation"])),
    (act_tool, ToolMeta(name="act", risk="medium", tags=["browser"])),
    (observe_tool, ToolMeta(name="observe", tags=["browser", "read"])),
    (extract_tool, ToolMeta(name="extract", tags=["browser", "read"])),
    (new_tab_tool, ToolMeta(name="new_tab", tags=["browser", "tabs"])),
    (switch_tab_tool, ToolMeta(name="switch_tab", tags=["browser", "tabs"])),
    (close_tab_tool, ToolMeta(name="close_tab", tags=["browser", "tabs"])),
    (read_file_tool, ToolMeta(name="read_file", tags=["file", "read"])),
    (write_file_tool, ToolMeta(name="write_file", risk="high", tags=["file", "write"])),
    (ask_user_tool, ToolMeta(name="ask_user", tags=["human"], needs_human=True)),
    (finish_tool, ToolMeta(name="finish", tags=["meta"])),
]


def build_tool_registry(include_human: bool = True) -> ToolRegistry:
    """Registry holding the built-in tools.

    Args:
        include_human: Register ``ask_user``. Disable for unattended runs.
    """
    registry = ToolRegistry()
    for tool, meta in BUILTIN_TOOLS:
        if meta.needs_human and not include_human:
            continue
        registry.register_tool(tool, meta)
    return registry


__all__ = [
    "BUILTIN_TOOLS",
    "FINISH_PREFIX",
    "FINISH_TOOL_NAME",
    "act_tool",
    "ask_user_tool",
    "build_tool_registry",
    "close_tab_tool",
    "extract_tool",
    "finish_tool",
    "goto_tool",
    "new_tab_tool",
    "observe_tool",
    "parse_finish_result",
    "read_file_tool",
    "switch_tab_tool",
    "write_file_tool",
]
