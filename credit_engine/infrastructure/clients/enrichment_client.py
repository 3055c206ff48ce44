"""HTTP implementation of EnrichmentSource."""

import asyncio
from typing import Any, Dict, Optional

import httpx
import structlog

from credit_engine.core.config import settings
from credit_engine.core.metrics import track_enrichment_latency
from credit_engine.domain.entities import EnrichmentSignals, NormalizedApplicant
from credit_engine.domain.exceptions import EnrichmentUnavailable
from credit_engine.domain.interfaces import EnrichmentSource

logger = structlog.get_logger(__name__)


class HttpEnrichmentClient(EnrichmentSource):
    """
    HTTP client for a remote alternative-data service.

    Posts the applicant's non-monetary signals and reads back the confirmed
    enrichment flags. Timeouts are retried with exponential backoff; HTTP
    errors are not.
    """

    name = "http"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url or settings.enrichment_api_url
        self._timeout = timeout or settings.enrichment_timeout
        self._max_retries = max(1, max_retries)
        self._transport = transport

    def _payload(self, applicant: NormalizedApplicant) -> Dict[str, Any]:
        return {
            "applicant_id": applicant.applicant_id,
            "utility_payments": applicant.utility_payments,
            "rent_payments": applicant.rent_payments,
            "savings_consistency_score": applicant.savings_consistency_score,
            "financial_literacy_score": applicant.financial_literacy_score,
            "debt_service_ratio": round(applicant.debt_service_ratio, 4),
        }

    async def fetch(self, applicant: NormalizedApplicant) -> EnrichmentSignals:
        """
        Fetch enrichment signals for an applicant.

        Raises:
            EnrichmentUnavailable: On timeout, HTTP error or malformed response
        """
        url = f"{self._base_url}/enrichment/signals"
        payload = self._payload(applicant)

        last_exception: Optional[EnrichmentUnavailable] = None

        for attempt in range(self._max_retries):
            try:
                with track_enrichment_latency():
                    async with httpx.AsyncClient(
                        timeout=self._timeout,
                        transport=self._transport,
                    ) as client:
                        response = await client.post(url, json=payload)

                if response.status_code >= 400:
                    raise EnrichmentUnavailable(
                        message=f"Enrichment API error: {response.status_code}",
                        reason="http_error",
                    )

                data = response.json()
                if not isinstance(data, dict):
                    raise EnrichmentUnavailable(
                        message="Enrichment API returned an unexpected payload",
                        reason="malformed",
                    )
                return EnrichmentSignals.from_dict(data.get("signals", data))

            except httpx.TimeoutException:
                last_exception = EnrichmentUnavailable(
                    message="Enrichment API timed out",
                    reason="timeout",
                )
                logger.warning(
                    "enrichment_api_timeout",
                    applicant_id=applicant.applicant_id,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                )
            except EnrichmentUnavailable:
                raise
            except (httpx.HTTPError, ValueError) as e:
                logger.error(
                    "enrichment_api_error",
                    applicant_id=applicant.applicant_id,
                    error=str(e),
                )
                raise EnrichmentUnavailable(
                    message=f"Enrichment API failure: {e}",
                    reason="failure",
                )

            # Exponential backoff
            if attempt < self._max_retries - 1:
                await asyncio.sleep(2**attempt * 0.1)

        raise last_exception or EnrichmentUnavailable("Failed to fetch enrichment signals")
