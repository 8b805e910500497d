"""ask_user tool - the agent asks the human for information it cannot obtain itself."""

from __future__ import annotations

from pydantic import BaseModel, Field

from browsercrew.tools.registry import CatalogTool, ToolContext
from browsercrew.types import PreconditionResult


class AskUserInput(BaseModel):
    question: str = Field(..., min_length=1, description="A specific question, e.g. asking for a login id.")


async def _precondition(ctx: ToolContext, args: AskUserInput) -> PreconditionResult:
    if ctx.ask_user is None:
        return PreconditionResult.fail("No human is available to answer questions in this run")
    return PreconditionResult.ok()


async def _ask_user(ctx: ToolContext, args: AskUserInput) -> str:
    answer = await ctx.ask_user(args.question)
    return f'The user answered: "{answer}"'


ask_user_tool = CatalogTool(
    name="ask_user",
    description=(
        "Ask the user for help when you cannot continue alone: ambiguous instructions, "
        "credentials, CAPTCHAs, or when you are completely stuck."
    ),
    args_schema=AskUserInput,
    execute=_ask_user,
    precondition=_precondition,
)
