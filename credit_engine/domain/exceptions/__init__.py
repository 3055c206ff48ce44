"""Domain Exceptions - Business rule violations and domain errors."""

from .base import DomainException
from .validation import ValidationError
from .configuration import ConfigurationError
from .enrichment import EnrichmentUnavailable

__all__ = [
    "DomainException",
    "ValidationError",
    "ConfigurationError",
    "EnrichmentUnavailable",
]
