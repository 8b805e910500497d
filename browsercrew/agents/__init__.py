"""Language-model interfaces and the LangChain-backed client."""

from .interfaces import LanguageModel, ModelResolver
from .llm import ChatModelClient, backoff_delay

__all__ = ["ChatModelClient", "LanguageModel", "ModelResolver", "backoff_delay"]
