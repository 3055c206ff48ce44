"""Enrichment source exceptions."""

from .base import DomainException


class EnrichmentUnavailable(DomainException):
    """
    Raised when the enrichment source cannot be used for this call.

    Never surfaced to engine callers: the engine converts it into a note
    and a zero bonus.
    """

    def __init__(self, message: str, reason: str = "failure"):
        super().__init__(
            message=message,
            code="ENRICHMENT_UNAVAILABLE",
        )
        self.reason = reason
