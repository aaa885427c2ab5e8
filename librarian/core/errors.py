"""Error taxonomy and exception handling utilities."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("librarian.errors")


class ChatError(Exception):
    """Request-fatal error carrying its wire code and HTTP status."""

    code = "INTERNAL_ERROR"
    status_code = 500
    error = "Chat request failed"

    def __init__(self, details: str | None = None, *, headers: dict[str, str] | None = None) -> None:
        super().__init__(details or self.error)
        self.details = details
        self.headers = headers or {}

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ConfigurationError(ChatError):
    code = "CONFIGURATION_ERROR"
    status_code = 503
    error = "Service not configured"


class RateLimitError(ChatError):
    code = "RATE_LIMITED"
    status_code = 429
    error = "Too many requests"


class ValidationError(ChatError):
    code = "VALIDATION_ERROR"
    status_code = 400
    error = "Invalid request"


class InternalError(ChatError):
    """Model or pipeline failure. Never carries internal detail to the caller."""

    code = "INTERNAL_ERROR"
    status_code = 500
    error = "Chat request failed"

    def __init__(self) -> None:
        super().__init__("Something unexpected happened. Please try again later.")


async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    """Render a ChatError into the public error envelope."""

    logger.info("%s on %s %s", exc.code, request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    """Return a generic JSON error response while logging the exception."""

    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=InternalError.status_code, content=InternalError().to_payload())
