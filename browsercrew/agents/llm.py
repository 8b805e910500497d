"""LangChain-backed language model client with rate-limit backoff.

Rate-limit errors are retried with exponential backoff
(``backoff_base_seconds * 2**attempt``); every other provider error
propagates on the first occurrence. Structured output that fails schema
validation is retried separately, up to ``schema_max_retries`` times.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Sequence, Type

from langchain_core.exceptions import OutputParserException
from langchain_core.messages import BaseMessage
from pydantic import ValidationError

from browsercrew.agents.interfaces import SchemaT
from browsercrew.errors import RateLimitError, SchemaValidationError, handle_model_error, is_rate_limit_error
from browsercrew.types import ToolCall

LOGGER = logging.getLogger("browsercrew.llm")

MAX_RETRIES = 5
BACKOFF_BASE_SECONDS = 1.0
SCHEMA_MAX_RETRIES = 3


def backoff_delay(attempt: int, base_seconds: float = BACKOFF_BASE_SECONDS) -> float:
    """Delay before retry number ``attempt`` (0-based): base, 2*base, 4*base, ..."""
    return base_seconds * (2 ** attempt)


class ChatModelClient:
    """Adapts a LangChain chat model to the ``LanguageModel`` interface."""

    def __init__(
        self,
        chat_model: Any,
        *,
        name: str = "default",
        max_retries: int = MAX_RETRIES,
        backoff_base_seconds: float = BACKOFF_BASE_SECONDS,
        schema_max_retries: int = SCHEMA_MAX_RETRIES,
    ) -> None:
        self.chat_model = chat_model
        self.name = name
        self.max_retries = max_retries
        self.backoff_base_seconds = backoff_base_seconds
        self.schema_max_retries = schema_max_retries

    async def _invoke_with_backoff(self, runnable: Any, messages: Sequence[BaseMessage]) -> Any:
        last_error: Exception | None = None
        for attempt in range(self.max_retries):
            try:
                return await runnable.ainvoke(list(messages))
            except Exception as exc:
                if not is_rate_limit_error(exc):
                    raise
                last_error = exc
                delay = backoff_delay(attempt, self.backoff_base_seconds)
                LOGGER.warning(
                    f"[{self.name}] rate limit detected, retrying in {delay:.1f}s "
                    f"({attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(delay)

        raise RateLimitError(
            f"Model call failed after {self.max_retries} retries. Last error: {last_error}",
            user_message=handle_model_error(last_error),
        ) from last_error

    async def generate_structured(self, schema: Type[SchemaT], messages: Sequence[BaseMessage]) -> SchemaT:
        runnable = self.chat_model.with_structured_output(schema)
        last_error: Exception | None = None
        raw: Any = None

        for attempt in range(self.schema_max_retries):
            try:
                raw = await self._invoke_with_backoff(runnable, messages)
                if isinstance(raw, schema):
                    return raw
                if raw is None:
                    raise OutputParserException(f"Model returned no {schema.__name__} object")
                return schema.model_validate(raw)
            except (ValidationError, OutputParserException) as exc:
                last_error = exc
                delay = backoff_delay(attempt, self.backoff_base_seconds)
                LOGGER.warning(
                    f"[{self.name}] {schema.__name__} output invalid, retrying in {delay:.1f}s "
                    f"({attempt + 1}/{self.schema_max_retries}): {exc}"
                )
                await asyncio.sleep(delay)

        validation_errors = last_error.errors() if isinstance(last_error, ValidationError) else [str(last_error)]
        raise SchemaValidationError(
            f"{schema.__name__} output still invalid after {self.schema_max_retries} attempts: {last_error}",
            validation_errors=validation_errors,
            raw_output=raw,
        ) from last_error

    async def propose_tool_calls(
        self, messages: Sequence[BaseMessage], tools: Sequence[Dict[str, Any]]
    ) -> List[ToolCall]:
        bound = self.chat_model.bind_tools(list(tools))
        response = await self._invoke_with_backoff(bound, messages)

        invalid = getattr(response, "invalid_tool_calls", None) or []
        for call in invalid:
            LOGGER.warning(f"[{self.name}] dropped malformed tool call {call.get('name')}: {call.get('error')}")

        calls: List[ToolCall] = []
        for call in getattr(response, "tool_calls", None) or []:
            kwargs: Dict[str, Any] = {"name": call["name"], "args": dict(call.get("args") or {})}
            if call.get("id"):
                kwargs["id"] = call["id"]
            calls.append(ToolCall(**kwargs))
        return calls

    async def generate_text(self, messages: Sequence[BaseMessage]) -> str:
        response = await self._invoke_with_backoff(self.chat_model, messages)
        content = getattr(response, "content", response)
        if isinstance(content, list):
            # Content blocks from multimodal providers
            return "".join(block.get("text", "") if isinstance(block, dict) else str(block) for block in content)
        return str(content)
