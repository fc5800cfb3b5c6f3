"""Error taxonomy shared by the ordering services and the HTTP transport."""

from __future__ import annotations

from fastapi import status


class OrderingError(RuntimeError):
    """Base exception for ordering failures.

    Each subclass carries the HTTP status code the transport renders it with.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(OrderingError):
    """Raised when a request payload is malformed; nothing is mutated."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(OrderingError):
    """Raised when a referenced record does not exist or is not orderable."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str, missing_ids: list[int] | None = None) -> None:
        super().__init__(message)
        self.missing_ids = list(missing_ids or [])


class StoreError(OrderingError):
    """Raised when the record store fails; the enclosing unit is rolled back."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PermissionDeniedError(OrderingError):
    """Raised when the caller lacks the capability an operation requires."""

    status_code = status.HTTP_403_FORBIDDEN


class RateLimitError(OrderingError):
    """Raised when a caller exceeds the save-order call budget."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class AuthenticationError(OrderingError):
    """Raised when the bearer token is missing or invalid."""

    status_code = status.HTTP_401_UNAUTHORIZED
