"""Masking of credential-like values before they reach logs or prompts."""

from __future__ import annotations

from typing import Any

REDACTED = "[REDACTED]"

SENSITIVE_KEYS = frozenset(
    {
        "password",
        "passwd",
        "token",
        "apikey",
        "api_key",
        "secret",
        "authorization",
        "cookie",
        "cookies",
    }
)


def is_sensitive_key(key: str) -> bool:
    normalized = key.lower().replace("-", "_")
    if normalized in SENSITIVE_KEYS or normalized.replace("_", "") in SENSITIVE_KEYS:
        return True
    # access_token, client_secret, x_api_key ...
    return any(normalized.endswith(f"_{name}") for name in ("token", "secret", "password", "api_key"))


def redact(value: Any) -> Any:
    """Return a copy of ``value`` with sensitive mapping keys masked, recursively."""
    if isinstance(value, dict):
        return {
            key: (REDACTED if isinstance(key, str) and is_sensitive_key(key) else redact(item))
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact(item) for item in value)
    return value
