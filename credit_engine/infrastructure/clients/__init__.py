"""Enrichment source implementations."""

from .enrichment_client import HttpEnrichmentClient
from .signals_source import ApplicantSignalsSource

__all__ = [
    "ApplicantSignalsSource",
    "HttpEnrichmentClient",
]
