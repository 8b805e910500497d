"""Tool catalog, registry and executor."""

from .executor import ToolExecutor, ToolRun
from .registry import CatalogTool, ToolContext, ToolMeta, ToolRegistry

__all__ = [
    "CatalogTool",
    "ToolContext",
    "ToolExecutor",
    "ToolMeta",
    "ToolRegistry",
    "ToolRun",
]
