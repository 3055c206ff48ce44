"""External collaborator interfaces."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict

from credit_engine.domain.entities import EnrichmentSignals, NormalizedApplicant

# Callback receiving one redacted audit record per engine invocation.
AuditLogger = Callable[[Dict[str, Any]], None]


class EnrichmentSource(ABC):
    """
    Abstract source of alternative-data signals.

    The engine calls it at most once per scoring request, behind the rate
    limiter and circuit breaker, and under a timeout.
    """

    name: str = "enrichment"

    @abstractmethod
    async def fetch(self, applicant: NormalizedApplicant) -> EnrichmentSignals:
        """
        Fetch enrichment signals for an applicant.

        Args:
            applicant: The normalized applicant being scored

        Returns:
            Signals confirmed by the source

        Raises:
            EnrichmentUnavailable: If the source cannot answer
        """
        ...
