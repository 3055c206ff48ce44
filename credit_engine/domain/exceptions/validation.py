"""Input validation exceptions."""

from typing import List, Optional

from .base import DomainException


class ValidationError(DomainException):
    """Raised when applicant data is missing, malformed or out of range."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
        )
        self.errors = errors or [message]
