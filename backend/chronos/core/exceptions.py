"""Domain errors raised by services and mapped to HTTP responses in main."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import status


class ErrorCode(Enum):
    """Standard error codes for the application."""

    NOT_FOUND = "NOT_FOUND"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    AUTH_FAILED = "AUTH_FAILED"
    INVITE_EXPIRED = "INVITE_EXPIRED"
    CONFLICT = "CONFLICT"
    PROTECTED_CALENDAR = "PROTECTED_CALENDAR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ChronosError(Exception):
    """Base exception for the calendar service."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(ChronosError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = ErrorCode.NOT_FOUND


class NotAuthorizedError(ChronosError):
    """Authenticated, but the role or ownership does not allow the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = ErrorCode.NOT_AUTHORIZED


class AuthenticationError(ChronosError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = ErrorCode.AUTH_FAILED


class InviteExpiredError(ChronosError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = ErrorCode.INVITE_EXPIRED


class ConflictError(ChronosError):
    """Business rule violation."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.CONFLICT


class ProtectedCalendarError(ConflictError):
    """Main and holiday calendars cannot be hidden or deleted."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = ErrorCode.PROTECTED_CALENDAR


class ServiceUnavailableError(ChronosError):
    """A backing service (e.g. the revocation store) cannot be reached."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = ErrorCode.SERVICE_UNAVAILABLE
