"""
Error Taxonomy and Global Error Handling

This module defines the error kinds surfaced by the snippet data-access layer
and the application-wide exception handlers that render them.

Design Goals
------------
- One exception class per error kind, carrying its HTTP status
- Never leak internal exception details for unexpected failures
- Always return deterministic, machine-readable error responses
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("snippets.errors")


# ---------------------------------------------------------------------
# Error Taxonomy
# ---------------------------------------------------------------------

class SnippetHubError(Exception):
    """
    Base class for every expected failure of the snippet service.

    Subclasses set `kind`, `status_code` and a default user-facing message.
    `details` optionally carries a diagnostic string for the client.
    """

    kind: str = "error"
    status_code: int = 500
    default_message: str = "Something went wrong."

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFoundError(SnippetHubError):
    """The requested snippet id does not exist."""

    kind = "not_found"
    status_code = 404
    default_message = "Snippet not found"


class UnauthenticatedError(SnippetHubError):
    """A write was attempted without a resolved identity."""

    kind = "unauthenticated"
    status_code = 401
    default_message = "Please sign in to continue."


class UnauthorizedError(SnippetHubError):
    """A write was attempted by an identity that does not own the snippet."""

    kind = "unauthorized"
    status_code = 403
    default_message = "You can only modify your own snippets."


class TransientStoreError(SnippetHubError):
    """The document store failed (network, quota, constraint rejection)."""

    kind = "transient_store_failure"
    status_code = 503
    default_message = "Something went wrong. Please try again."


class ExplanationServiceError(SnippetHubError):
    """The explanation model could not be reached or returned an error."""

    kind = "explanation_service_failure"
    status_code = 500
    default_message = "Failed to explain code. Please try again."


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def snippet_hub_error_handler(
    request: Request,
    exc: SnippetHubError,
) -> JSONResponse:
    """
    Render a taxonomy error as `{error, kind, details?}` with its status code.

    Store failures are logged with their cause; the remaining kinds are
    ordinary outcomes and are logged at info level only.
    """
    if isinstance(exc, TransientStoreError):
        logger.error(
            "Store failure during request %s %s: %s",
            request.method,
            request.url.path,
            exc.details or exc.message,
        )
    else:
        logger.info(
            "%s during request %s %s",
            exc.kind,
            request.method,
            request.url.path,
        )

    payload: Dict[str, Any] = {
        "error": exc.message,
        "kind": exc.kind,
    }
    if exc.details:
        payload["details"] = exc.details

    return JSONResponse(status_code=exc.status_code, content=payload)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "Internal server error",
        "kind": "internal_server_error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
