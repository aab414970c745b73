"""
Error taxonomy shared by the course, note and assignment services.

Every service operation surfaces exactly one of these; ``main.py`` turns them
into a ``{"message": ...}`` body with the matching status code.
"""

from typing import Optional


class LearnItError(Exception):
    """Base class for errors reported to API callers."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(LearnItError):
    """Raised when an entity or sub-entity does not exist."""

    status_code = 404


class ForbiddenError(LearnItError):
    """Raised when the caller is authenticated but lacks the authority."""

    status_code = 403


class ValidationError(LearnItError):
    """Raised for malformed or policy-violating input."""

    status_code = 400


class DuplicateSubmissionError(ValidationError):
    """Raised when a student submits the same assignment twice."""


class InternalError(LearnItError):
    """Raised for unexpected persistence or runtime failures."""

    status_code = 500
