"""
Error boundary between the Supabase backend and everything user-facing.

Two rules:
  - Users only ever see generic messages (`to_public_message`). Nothing
    from a backend error (PostgREST messages, table names, hints) is
    echoed back to a client.
  - Diagnostics (`log_diagnostic`) are written to the application log in
    non-production environments only, after sensitive fields and
    token-looking strings have been scrubbed.

Repositories convert every SDK exception into a `StoreError` at the point
of the call, so the rest of the code works with explicit
kind / message / code fields.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from fastapi import HTTPException, status
from postgrest.exceptions import APIError

from cafe.core.config import get_settings

logger = logging.getLogger("cafe.errors")

DEFAULT_PUBLIC_ERROR = "Something went wrong. Please try again."

REDACTED = "[REDACTED]"
REDACTED_TOKEN = "[REDACTED_TOKEN]"
TRUNCATED_SUFFIX = "... [truncated]"
MAX_LOG_STRING_LENGTH = 200
MISSING_MESSAGE = "Error without message"

# Matched as case-insensitive substrings of a key name.
SENSITIVE_KEYS: tuple[str, ...] = (
    "password",
    "token",
    "secret",
    "authorization",
    "apikey",
    "api_key",
    "api-key",
    "access_token",
    "refresh_token",
    "bearer",
    "credential",
    "session",
    "cookie",
    "jwt",
)

_TOKEN_SHAPE = re.compile(r"^[A-Za-z0-9_\-]{20,}$")


class StoreError(Exception):
    """
    Failure reported by the Supabase backend (PostgREST, Storage, Auth)
    or by the transport underneath it.

    Attributes:
        kind: error class name, e.g. "APIError", "ConnectError"
        message: raw backend message (log-only, never shown to users)
        code: backend error code when the backend provides one
    """

    def __init__(self, kind: str, message: str | None, code: str | None = None):
        super().__init__(message or kind)
        self.kind = kind
        self.message = message
        self.code = code

    @classmethod
    def from_exception(cls, exc: Exception) -> "StoreError":
        if isinstance(exc, StoreError):
            return exc
        if isinstance(exc, APIError):
            code = exc.code
            return cls(
                kind="APIError",
                message=exc.message,
                code=str(code) if code is not None else None,
            )
        return cls(kind=type(exc).__name__, message=str(exc) or None)


class ValidationFailure(Exception):
    """
    Caller-supplied data broke a local rule before any backend call.
    The message is safe to show as-is.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def to_public_message(error: Exception | None, fallback: str | None = None) -> str:
    """
    Return a message that is safe to show to end users.

    `error` is accepted for call-site symmetry with `log_diagnostic` but is
    never inspected: the result is `fallback` or the generic default.
    """
    return fallback or DEFAULT_PUBLIC_ERROR


def _is_sensitive_key(key: Any) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in SENSITIVE_KEYS)


def sanitize_value(value: Any) -> Any:
    """
    Recursively scrub a value before logging.

      - mappings: values under sensitive keys become REDACTED
      - lists / tuples: each element is sanitized
      - long strings are truncated, token-shaped strings are redacted
      - anything else is returned unchanged
    """
    if value is None:
        return value

    if isinstance(value, str):
        if len(value) > MAX_LOG_STRING_LENGTH:
            return value[:MAX_LOG_STRING_LENGTH] + TRUNCATED_SUFFIX
        if _TOKEN_SHAPE.match(value):
            return REDACTED_TOKEN
        return value

    if isinstance(value, Mapping):
        sanitized: dict[str, Any] = {}
        for key, val in value.items():
            if _is_sensitive_key(key):
                sanitized[key] = REDACTED
            else:
                sanitized[key] = sanitize_value(val)
        return sanitized

    if isinstance(value, (list, tuple)):
        return [sanitize_value(item) for item in value]

    return value


def log_diagnostic(
    context: str,
    error: Exception,
    extra: Mapping[str, Any] | None = None,
) -> dict[str, Any] | None:
    """
    Write a sanitized diagnostic record for `error` to the application log.

    No-op in production (returns None). Otherwise returns the record that
    was logged, which keeps the behaviour easy to assert on.

    Args:
        context: short label of the failing operation, e.g. "cart:add_item"
        error: the failure; StoreError fields are used directly
        extra: optional structured data (quantities, field names). Ids are
            token-shaped and would only come out as REDACTED_TOKEN.
    """
    if get_settings().is_production:
        return None

    if isinstance(error, StoreError):
        name, message, code = error.kind, error.message, error.code
    else:
        store_error = StoreError.from_exception(error)
        name, message, code = store_error.kind, store_error.message, store_error.code

    record: dict[str, Any] = {
        "context": context,
        "name": name,
        "message": sanitize_value(message) if isinstance(message, str) else MISSING_MESSAGE,
        "code": code,
    }

    if extra:
        record["extra"] = sanitize_value(extra)

    logger.error("APP_ERROR %s", record)
    return record


def store_failure(
    context: str,
    error: Exception,
    fallback: str,
    extra: Mapping[str, Any] | None = None,
) -> HTTPException:
    """
    Log a backend failure and build the HTTPException to raise for it.

    Usage in services:

        try:
            rows = self.repo.list(client)
        except StoreError as exc:
            raise store_failure("products:list", exc, "Could not load the menu")
    """
    log_diagnostic(context, error, extra)
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=to_public_message(error, fallback),
    )
