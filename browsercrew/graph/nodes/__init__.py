"""Graph nodes exports."""

from .analyze import build_analyze_node
from .approve import build_approve_node
from .execute import build_execute_node
from .reflect import build_reflect_node
from .verify import build_verify_node

__all__ = [
    "build_analyze_node",
    "build_approve_node",
    "build_execute_node",
    "build_reflect_node",
    "build_verify_node",
]
