"""
Error taxonomy for the reminder backend and classification of remote failures.
"""

from __future__ import annotations

import errno
import socket

import httplib2
from google.auth import exceptions as google_auth_exceptions
from googleapiclient.errors import HttpError


class ReminderAppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(ReminderAppError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(ReminderAppError):
    status_code = 404
    default_message = "Not found"


class AuthenticationError(ReminderAppError):
    """Credential or setup failure against the spreadsheet, not a user login."""

    status_code = 500
    default_message = "Authentication error"


class ServiceUnavailable(ReminderAppError):
    status_code = 503
    default_message = "Service temporarily unavailable"


class InternalError(ReminderAppError):
    status_code = 500
    default_message = "Internal server error"


# Retrying these cannot change the outcome.
NON_RETRYABLE = (ValidationError, NotFoundError)

_CONNECTION_ERRNOS = {errno.ECONNREFUSED, errno.ETIMEDOUT, errno.ECONNRESET}


def _is_connection_failure(exc: BaseException) -> bool:
    if isinstance(
        exc,
        (socket.timeout, TimeoutError, ConnectionError, httplib2.ServerNotFoundError),
    ):
        return True
    return isinstance(exc, OSError) and exc.errno in _CONNECTION_ERRNOS


def classify_remote_error(
    exc: BaseException, message: str | None = None
) -> ReminderAppError:
    """
    Map a failure that survived all retries onto the error taxonomy.

    `message` replaces the generic text for the InternalError fallback so
    callers can say which operation failed.
    """
    if isinstance(exc, ReminderAppError):
        return exc
    if _is_connection_failure(exc):
        return ServiceUnavailable()
    if isinstance(exc, google_auth_exceptions.GoogleAuthError):
        return AuthenticationError()
    if isinstance(exc, HttpError):
        status = getattr(exc.resp, "status", None)
        if status == 404:
            return NotFoundError("Sheet not found")
        if status in (401, 403):
            return AuthenticationError()
        if status in (502, 503, 504):
            return ServiceUnavailable()
    if "authentication" in str(exc).lower():
        return AuthenticationError()
    return InternalError(message)
