"""Top-level package exports for browsercrew."""

from .orchestrator import Orchestrator
from .runtime.app import Application, build_application
from .types import ExecutionResult, InterventionMode

__all__ = ["Application", "ExecutionResult", "InterventionMode", "Orchestrator", "build_application"]
