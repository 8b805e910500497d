"""Environment snapshot rendering shared by the coordinator nodes."""

from __future__ import annotations

from dataclasses import dataclass

from browsercrew.browser.driver import BrowserDriver, page_summary
from browsercrew.memory.session import SessionMemory
from browsercrew.prompts import format_context


@dataclass(frozen=True, slots=True)
class PageContext:
    url: str
    summary: str
    rendered: str


async def capture_context(
    memory: SessionMemory,
    driver: BrowserDriver,
    *,
    history_window: int,
    summary_chars: int,
) -> PageContext:
    """Active URL, live tab list, page summary, memories and recent history, rendered for a prompt."""
    memory.update_tabs(await driver.list_tabs())
    url = await driver.current_url()
    summary = await page_summary(driver, summary_chars)
    rendered = format_context(
        memory,
        url=url,
        summary=summary,
        history_window=history_window,
        summary_chars=summary_chars,
    )
    return PageContext(url=url, summary=summary, rendered=rendered)
