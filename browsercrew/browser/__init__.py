"""Browser driver contract and helpers."""

from .driver import BrowserDriver, page_summary, take_snapshot

__all__ = ["BrowserDriver", "page_summary", "take_snapshot"]
