"""Failure pattern tracking."""

from .failure_tracker import FailureTracker, hash_tool_call

__all__ = ["FailureTracker", "hash_tool_call"]
