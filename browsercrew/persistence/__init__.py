"""Persistence utilities."""

from .store import RunStore
from .workspace import WorkspaceManager, resolve_in_workspace

__all__ = ["RunStore", "WorkspaceManager", "resolve_in_workspace"]
