"""File operation tools with workspace isolation."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from browsercrew.persistence.workspace import resolve_in_workspace
from browsercrew.tools.registry import CatalogTool, ToolContext
from browsercrew.types import PreconditionResult

LOGGER = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024


class ReadFileInput(BaseModel):
    path: str = Field(..., description="File path relative to the workspace root, e.g. 'outputs/report.txt'.")


class WriteFileInput(BaseModel):
    path: str = Field(..., description="File path relative to the workspace root, e.g. 'outputs/report.txt'.")
    content: str = Field(..., description="Text content to write.")


async def _read_precondition(ctx: ToolContext, args: ReadFileInput) -> PreconditionResult:
    if ctx.workspace is None:
        return PreconditionResult.fail("No workspace configured for this run")
    try:
        target = resolve_in_workspace(ctx.workspace, args.path)
    except ValueError as exc:
        return PreconditionResult.fail(str(exc))
    if not target.is_file():
        return PreconditionResult.fail(f"File not found: {args.path}")
    if target.stat().st_size > MAX_FILE_SIZE_BYTES:
        return PreconditionResult.fail(f"File exceeds the {MAX_FILE_SIZE_BYTES} byte limit: {args.path}")
    return PreconditionResult.ok()


async def _write_precondition(ctx: ToolContext, args: WriteFileInput) -> PreconditionResult:
    if ctx.workspace is None:
        return PreconditionResult.fail("No workspace configured for this run")
    try:
        resolve_in_workspace(ctx.workspace, args.path)
    except ValueError as exc:
        return PreconditionResult.fail(str(exc))
    if len(args.content.encode("utf-8")) > MAX_FILE_SIZE_BYTES:
        return PreconditionResult.fail(f"Content exceeds the {MAX_FILE_SIZE_BYTES} byte limit")
    return PreconditionResult.ok()


async def _read_file(ctx: ToolContext, args: ReadFileInput) -> str:
    target = resolve_in_workspace(ctx.workspace, args.path)
    content = target.read_text(encoding="utf-8")
    LOGGER.info(f"Read file: {args.path} ({len(content)} chars)")
    return content


async def _write_file(ctx: ToolContext, args: WriteFileInput) -> str:
    target = resolve_in_workspace(ctx.workspace, args.path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(args.content, encoding="utf-8")
    LOGGER.info(f"Wrote file: {args.path} ({len(args.content)} chars)")
    return f"Wrote {len(args.content)} characters to {args.path}."


read_file_tool = CatalogTool(
    name="read_file",
    description="Read a text file from the run's workspace directory.",
    args_schema=ReadFileInput,
    execute=_read_file,
    precondition=_read_precondition,
)

write_file_tool = CatalogTool(
    name="write_file",
    description="Write text to a file in the run's workspace directory, creating folders as needed.",
    args_schema=WriteFileInput,
    execute=_write_file,
    precondition=_write_precondition,
)
