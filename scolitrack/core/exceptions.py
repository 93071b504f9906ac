"""
Application error taxonomy.
Services raise these; the exception handlers in main.py turn them into the
{success, feedback} response envelope with the matching status code.
"""

from typing import Any, Optional

from fastapi import status
from postgrest.exceptions import APIError

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_feedback: str = "Unexpected error"

    def __init__(self, feedback: Optional[str] = None, data: Any = None):
        self.feedback = feedback or self.default_feedback
        self.data = data
        super().__init__(self.feedback)


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_feedback = "Invalid request data"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_feedback = "Authentication required"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_feedback = "Forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_feedback = "Resource not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_feedback = "Resource already exists"


class EncryptionFailed(AppError):
    default_feedback = "Failed to encrypt sensitive data"


class Unexpected(AppError):
    pass


class MailDeliveryFailed(Unexpected):
    default_feedback = "Failed to send email"


def is_unique_violation(error: APIError) -> bool:
    return getattr(error, "code", None) == UNIQUE_VIOLATION


def is_foreign_key_violation(error: APIError) -> bool:
    return getattr(error, "code", None) == FOREIGN_KEY_VIOLATION
