"""Error taxonomy for browsercrew.

Three families matter to control flow:

- ``ToolExecutionError`` and subclasses: local to one execution record, they
  trigger reflection inside the coordinator.
- ``ModelInvocationError`` and subclasses: raised by the language-model client.
  Rate limits are retried with backoff, everything else propagates.
- ``FatalRunError`` and subclasses: terminate the whole run and surface to the
  caller of the orchestrator.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from browsercrew.utils.redaction import redact


class BrowserCrewError(Exception):
    """Base exception for browsercrew errors."""

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

    def to_payload(self) -> Dict[str, Any]:
        """Structured form handed to the reflection prompt."""
        return {"name": type(self).__name__, "message": str(self)}


# ========== Tool errors ==========


class ToolExecutionError(BrowserCrewError):
    """Error during tool execution."""

    def __init__(self, message: str, tool_name: str, args: Optional[Dict[str, Any]] = None, user_message: str = None):
        super().__init__(message, user_message)
        self.tool_name = tool_name
        self.tool_args = dict(args or {})

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload.update({"tool_name": self.tool_name, "args": redact(self.tool_args)})
        return payload


class ElementNotFoundError(ToolExecutionError):
    """The driver could not locate an element for a natural-language instruction."""

    def __init__(self, message: str, tool_name: str, args: Dict[str, Any], instruction: str, selector: str = None):
        super().__init__(message, tool_name, args)
        self.instruction = instruction
        self.selector = selector

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["instruction"] = self.instruction
        if self.selector:
            payload["selector"] = self.selector
        return payload


class NavigationTimeoutError(ToolExecutionError):
    def __init__(self, message: str, tool_name: str, args: Dict[str, Any], url: str):
        super().__init__(message, tool_name, args)
        self.url = url

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["url"] = self.url
        return payload


class InvalidToolArgumentError(ToolExecutionError):
    """Arguments failed schema validation or the tool's precondition."""


class BrowserTimeoutError(BrowserCrewError):
    """Raised by browser drivers when an operation exceeds its deadline."""


# ========== Model errors ==========


class ModelInvocationError(BrowserCrewError):
    """Error during model invocation."""


class RateLimitError(ModelInvocationError):
    """Rate limit exceeded error."""


class SchemaValidationError(ModelInvocationError):
    """Model output did not decode into the expected schema."""

    def __init__(self, message: str, validation_errors: Optional[List[Any]] = None, raw_output: Any = None):
        super().__init__(message)
        self.validation_errors = list(validation_errors or [])
        self.raw_output = raw_output


# ========== Fatal run errors ==========


class FatalRunError(BrowserCrewError):
    """Terminates the run; never converted into a replan."""


class PlanningError(FatalRunError):
    """The planner could not produce a schema-valid plan."""


class UnknownToolError(FatalRunError):
    """The model referenced a tool that is not in the catalog."""

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class ReplanBudgetExceededError(FatalRunError):
    def __init__(self, max_attempts: int, last_reason: str = ""):
        message = f"Replan attempts exhausted ({max_attempts}); aborting the run"
        if last_reason:
            message += f". Last failure: {last_reason}"
        super().__init__(message)
        self.max_attempts = max_attempts
        self.last_reason = last_reason


class FinishPayloadError(FatalRunError):
    """The terminal finish record did not carry a well-formed self-evaluation."""


# ========== Classification helpers ==========

_RATE_LIMIT_MARKERS = ("rate limit", "quota exceeded", "too many requests")


def is_rate_limit_error(error: BaseException) -> bool:
    """Return True when ``error`` signals a provider rate limit.

    Recognizes our own ``RateLimitError``, HTTP 429 on the error or its
    ``response``, the ``rate_limit_exceeded`` code, and the usual message
    wording of the major providers.
    """
    if isinstance(error, RateLimitError):
        return True

    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    response = getattr(error, "response", None)
    if status is None and response is not None:
        status = getattr(response, "status_code", None) or getattr(response, "status", None)
    if status == 429:
        return True

    if getattr(error, "code", None) == "rate_limit_exceeded":
        return True

    message = str(error).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


def handle_model_error(error: Exception) -> str:
    """Convert model invocation errors to user-friendly messages.

    Args:
        error: Exception raised during model invocation

    Returns:
        User-friendly error message
    """
    if is_rate_limit_error(error):
        return "The model provider is rate limiting requests, please retry later"

    error_str = str(error).lower()

    if "timeout" in error_str:
        return "The model did not respond in time, please retry"

    if "context_length" in error_str:
        return "The conversation is too long for the model context window"

    if "invalid_api_key" in error_str or "authentication" in error_str:
        return "The model API key is invalid"

    if "insufficient" in error_str:
        return "The model provider quota is insufficient"

    return f"The model service is unavailable: {error}"
