"""Interfaces for agent dependencies."""

from __future__ import annotations

from typing import Any, Dict, List, Protocol, Sequence, Type, TypeVar

from langchain_core.messages import BaseMessage
from pydantic import BaseModel

from browsercrew.types import ToolCall

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class ModelResolver(Protocol):
    """Callable that returns a LangChain-compatible chat model for a model id."""

    def __call__(self, model_id: str):
        ...


class LanguageModel(Protocol):
    """What the planner, coordinator and tools need from a language model.

    Implementations raise ``RateLimitError`` only after their own backoff
    budget is spent and ``SchemaValidationError`` when structured output
    cannot be decoded.
    """

    async def generate_structured(self, schema: Type[SchemaT], messages: Sequence[BaseMessage]) -> SchemaT:
        ...

    async def propose_tool_calls(
        self, messages: Sequence[BaseMessage], tools: Sequence[Dict[str, Any]]
    ) -> List[ToolCall]:
        ...

    async def generate_text(self, messages: Sequence[BaseMessage]) -> str:
        ...
