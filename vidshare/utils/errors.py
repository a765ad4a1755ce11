"""Structured API error raised by handlers and services."""

from fastapi import status


class ApiError(Exception):
    """Carries the HTTP status, a message and an optional detail list.

    Converted into the error envelope by the exception handlers in
    ``vidshare.middleware.error_handler``.
    """

    def __init__(self, status_code: int, message: str = "Something went wrong", errors: list | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []

    @classmethod
    def bad_request(cls, message: str, errors: list | None = None) -> "ApiError":
        return cls(status.HTTP_400_BAD_REQUEST, message, errors)

    @classmethod
    def unauthorized(cls, message: str = "Unauthorized request") -> "ApiError":
        return cls(status.HTTP_401_UNAUTHORIZED, message)

    @classmethod
    def not_found(cls, message: str) -> "ApiError":
        return cls(status.HTTP_404_NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> "ApiError":
        return cls(status.HTTP_409_CONFLICT, message)

    @classmethod
    def internal(cls, message: str = "Something went wrong") -> "ApiError":
        return cls(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    def __repr__(self) -> str:
        return f"ApiError({self.status_code}, {self.message!r})"
