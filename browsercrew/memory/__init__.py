"""Session memory owned by one run."""

from .session import SessionMemory, normalize_fact

__all__ = ["SessionMemory", "normalize_fact"]
