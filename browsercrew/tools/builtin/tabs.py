"""Tab management tools. Tab indices are only valid until the next tab change."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from browsercrew.tools.registry import CatalogTool, ToolContext
from browsercrew.types import PreconditionResult


class NewTabInput(BaseModel):
    url: Optional[str] = Field(default=None, description="URL to open in the new tab.")


class TabIndexInput(BaseModel):
    tab_index: int = Field(..., ge=0, description="Index of the tab, as shown in the open tab list.")


async def _known_tab(ctx: ToolContext, args: TabIndexInput) -> PreconditionResult:
    try:
        ctx.memory.tab_at(args.tab_index)
    except IndexError as exc:
        return PreconditionResult.fail(str(exc))
    return PreconditionResult.ok()


async def _close_precondition(ctx: ToolContext, args: TabIndexInput) -> PreconditionResult:
    check = await _known_tab(ctx, args)
    if check.success and len(ctx.memory.tabs) <= 1:
        return PreconditionResult.fail("Cannot close the last open tab")
    return check


async def _new_tab(ctx: ToolContext, args: NewTabInput) -> str:
    tab = await ctx.driver.new_tab(args.url)
    return f"Opened tab {tab.index}" + (f" with {args.url}." if args.url else ".")


async def _switch_tab(ctx: ToolContext, args: TabIndexInput) -> str:
    tab = await ctx.driver.switch_tab(args.tab_index)
    return f"Switched to tab {tab.index} ({tab.title or tab.url})."


async def _close_tab(ctx: ToolContext, args: TabIndexInput) -> str:
    await ctx.driver.close_tab(args.tab_index)
    return f"Closed tab {args.tab_index}."


new_tab_tool = CatalogTool(
    name="new_tab",
    description="Open a new browser tab, optionally at a URL, and make it active.",
    args_schema=NewTabInput,
    execute=_new_tab,
    changes_tabs=True,
)

switch_tab_tool = CatalogTool(
    name="switch_tab",
    description="Make the tab with the given index the active tab.",
    args_schema=TabIndexInput,
    execute=_switch_tab,
    precondition=_known_tab,
    changes_tabs=True,
)

close_tab_tool = CatalogTool(
    name="close_tab",
    description="Close the tab with the given index.",
    args_schema=TabIndexInput,
    execute=_close_tab,
    precondition=_close_precondition,
    changes_tabs=True,
)
