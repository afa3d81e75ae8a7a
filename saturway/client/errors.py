"""Errors raised by the HTTP client."""
from __future__ import annotations

from typing import Any, Optional


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class RequestTimeoutError(ApiError):
    def __init__(self, message: str = "Request timeout"):
        super().__init__(message)


def error_message(body: Any, status_code: int) -> str:
    """Pick the most useful text out of an error body."""
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {status_code}"
