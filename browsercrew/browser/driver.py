"""Browser driver contract consumed by the built-in tools.

Any automation backend (Playwright, Stagehand, a remote browser service) can
drive browsercrew as long as it provides these coroutines. Timeouts must be
raised as ``BrowserTimeoutError`` so tools can classify them.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol, runtime_checkable

from browsercrew.types import EnvironmentSnapshot, TabInfo

LOGGER = logging.getLogger("browsercrew.browser")


@runtime_checkable
class BrowserDriver(Protocol):
    async def goto(self, url: str) -> None:
        ...

    async def act(self, instruction: str) -> Any:
        """Perform a natural-language action such as "click the login button"."""
        ...

    async def observe(self, instruction: Optional[str] = None) -> List[Any]:
        """Return candidate locators or element descriptions."""
        ...

    async def extract(self, instruction: Optional[str] = None) -> Any:
        """Return structured data, or the page text when no instruction is given."""
        ...

    async def screenshot(self) -> bytes:
        ...

    async def current_url(self) -> str:
        ...

    async def title(self) -> str:
        ...

    async def list_tabs(self) -> List[TabInfo]:
        ...

    async def new_tab(self, url: Optional[str] = None) -> TabInfo:
        ...

    async def switch_tab(self, index: int) -> TabInfo:
        ...

    async def close_tab(self, index: int) -> None:
        ...


async def take_snapshot(driver: BrowserDriver) -> EnvironmentSnapshot:
    """URL and title of the active tab. A title that cannot be read becomes ""."""
    url = await driver.current_url()
    try:
        title = await driver.title()
    except Exception as exc:  # closed or navigating page
        LOGGER.debug(f"Could not read page title: {exc}")
        title = ""
    return EnvironmentSnapshot(url=url, title=title or "")


async def page_summary(driver: BrowserDriver, max_chars: int = 2000) -> str:
    """Leading page text for prompts; a placeholder when extraction fails."""
    try:
        extracted = await driver.extract()
    except Exception as exc:
        LOGGER.debug(f"Page extraction failed: {exc}")
        return "No page information available"

    if isinstance(extracted, dict):
        text = extracted.get("page_text") or extracted.get("text") or ""
    else:
        text = str(extracted or "")
    return text[:max_chars] if text else "No page information available"
