"""Page-level browser tools: goto, act, observe, extract."""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from browsercrew.errors import BrowserTimeoutError, ElementNotFoundError, NavigationTimeoutError
from browsercrew.tools.registry import CatalogTool, ToolContext
from browsercrew.types import PreconditionResult

LOGGER = logging.getLogger(__name__)

ALLOWED_SCHEMES = {"http", "https", "file", "about"}


class GotoInput(BaseModel):
    url: str = Field(..., description="Full URL to open in the active tab, including the scheme.")


class ActInput(BaseModel):
    instruction: str = Field(
        ..., min_length=1, description="Natural-language action, e.g. 'click the Log in button'."
    )


class ObserveInput(BaseModel):
    instruction: Optional[str] = Field(
        default=None, description="What to look for, e.g. 'all buttons'. Omit to list the main elements."
    )


class ExtractInput(BaseModel):
    instruction: Optional[str] = Field(
        default=None, description="What to extract, e.g. 'the article title'. Omit for the whole page text."
    )


async def _goto_precondition(ctx: ToolContext, args: GotoInput) -> PreconditionResult:
    scheme = urlparse(args.url).scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        return PreconditionResult.fail(f"'{args.url}' is not an absolute http(s) URL")
    return PreconditionResult.ok()


async def _goto(ctx: ToolContext, args: GotoInput) -> str:
    try:
        await ctx.driver.goto(args.url)
    except BrowserTimeoutError as exc:
        raise NavigationTimeoutError(
            f"Timed out navigating to {args.url}: {exc}", tool_name="goto", args=args.model_dump(), url=args.url
        ) from exc
    return f"Navigated to {args.url}."


async def _act(ctx: ToolContext, args: ActInput) -> str:
    try:
        candidates = await ctx.driver.observe(args.instruction)
        if candidates:
            result = await ctx.driver.act(candidates[0])
            return f"Performed '{args.instruction}'. Result: {result}"
        LOGGER.debug(f"observe found nothing for '{args.instruction}', acting directly")
        result = await ctx.driver.act(args.instruction)
    except BrowserTimeoutError as exc:
        raise ElementNotFoundError(
            f"Timed out performing '{args.instruction}': {exc}",
            tool_name="act",
            args=args.model_dump(),
            instruction=args.instruction,
        ) from exc
    return f"Performed '{args.instruction}' directly. Result: {result}"


async def _observe(ctx: ToolContext, args: ObserveInput) -> Any:
    return await ctx.driver.observe(args.instruction)


async def _extract(ctx: ToolContext, args: ExtractInput) -> Any:
    return await ctx.driver.extract(args.instruction)


goto_tool = CatalogTool(
    name="goto",
    description="Navigate the active browser tab to a URL.",
    args_schema=GotoInput,
    execute=_goto,
    precondition=_goto_precondition,
)

act_tool = CatalogTool(
    name="act",
    description="Perform one action on the page, such as clicking, typing or scrolling.",
    args_schema=ActInput,
    execute=_act,
)

observe_tool = CatalogTool(
    name="observe",
    description="List interactive elements on the current page that match a description.",
    args_schema=ObserveInput,
    execute=_observe,
)

extract_tool = CatalogTool(
    name="extract",
    description="Extract information from the current page.",
    args_schema=ExtractInput,
    execute=_extract,
)
