"""Workspace management for run-isolated file operations."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path

LOGGER = logging.getLogger(__name__)


class WorkspaceManager:
    """Manage per-run isolated workspaces.

    Each run gets its own directory where the ``read_file`` and ``write_file``
    tools operate. Paths handed in by the model are always interpreted
    relative to that directory.
    """

    def __init__(self, root_dir: Path | str = "data/workspace"):
        self.root = Path(root_dir)
        self.root.mkdir(parents=True, exist_ok=True)
        LOGGER.info(f"WorkspaceManager initialized: {self.root.resolve()}")

    def create_run_workspace(self, run_id: str, task: str = "") -> Path:
        """Create (or reuse) the workspace directory for a run.

        Directory structure:
            workspace/{run_id}/
                ├── outputs/         # Files written by the agent
                └── .metadata.json   # Run metadata
        """
        workspace = self.root / run_id
        if workspace.exists():
            LOGGER.debug(f"Workspace already exists: {workspace}")
            return workspace

        LOGGER.info(f"Creating workspace for run: {run_id}")
        workspace.mkdir(parents=True, exist_ok=True)
        (workspace / "outputs").mkdir(exist_ok=True)

        metadata = {"run_id": run_id, "created_at": time.time(), "task": task}
        (workspace / ".metadata.json").write_text(json.dumps(metadata, indent=2, ensure_ascii=False), encoding="utf-8")
        return workspace


def resolve_in_workspace(workspace: Path, path: str) -> Path:
    """Resolve ``path`` inside ``workspace``.

    Raises:
        ValueError: The path is absolute or escapes the workspace
    """
    if not path or path.startswith("/") or ".." in Path(path).parts:
        raise ValueError(f"Access denied. Invalid path: {path}")

    workspace_root = workspace.resolve()
    target = (workspace_root / path).resolve()
    try:
        target.relative_to(workspace_root)
    except ValueError:
        raise ValueError(f"Access denied. Can only access files within workspace: {path}") from None
    return target
