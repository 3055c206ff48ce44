"""
Integration tests for the HTTP enrichment client.

These tests verify:
1. Signals are parsed from camelCase or snake_case payloads
2. Only non-monetary applicant data leaves the engine
3. HTTP errors, malformed payloads and timeouts raise EnrichmentUnavailable
4. Timeouts are retried before giving up
"""

import json

import httpx
import pytest

from credit_engine.domain.exceptions import EnrichmentUnavailable
from credit_engine.infrastructure.clients import HttpEnrichmentClient
from credit_engine.service.scoring.normalizer import normalize, parse_applicant
from credit_engine.service.scoring.settings import resolve_scoring_config
from tests.integration.conftest import EXAMPLE_APPLICANT

BASE_URL = "http://enrichment.test"


def normalized_applicant():
    return normalize(parse_applicant(EXAMPLE_APPLICANT), resolve_scoring_config())


def make_client(handler, max_retries: int = 2) -> HttpEnrichmentClient:
    return HttpEnrichmentClient(
        base_url=BASE_URL,
        timeout=1.0,
        max_retries=max_retries,
        transport=httpx.MockTransport(handler),
    )


# =============================================================================
# Successful Responses
# =============================================================================

class TestFetchSignals:
    """Tests for HttpEnrichmentClient.fetch()."""

    @pytest.mark.asyncio
    async def test_parses_signals(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={
                "signals": {"consistentTransactions": True, "lowDebtPayments": True},
            })

        signals = await make_client(handler).fetch(normalized_applicant())

        assert signals.consistent_transactions
        assert signals.low_debt_payments
        assert not signals.verified_rental_history
        assert requests[0].url.path == "/enrichment/signals"

    @pytest.mark.asyncio
    async def test_flat_snake_case_payload(self):
        def handler(request):
            return httpx.Response(200, json={"verified_rental_history": True})

        signals = await make_client(handler).fetch(normalized_applicant())
        assert signals.verified_rental_history

    @pytest.mark.asyncio
    async def test_payload_excludes_amounts(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={})

        await make_client(handler).fetch(normalized_applicant())

        body = bodies[0]
        assert body["applicant_id"] == "app-001"
        assert body["rent_payments"] == 1.0
        assert "monthly_income" not in body
        assert "average_daily_balance" not in body


# =============================================================================
# Failures
# =============================================================================

class TestFetchFailures:
    """Tests for enrichment client failure handling."""

    @pytest.mark.asyncio
    async def test_http_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503, json={"error": "maintenance"})

        with pytest.raises(EnrichmentUnavailable) as exc_info:
            await make_client(handler).fetch(normalized_applicant())

        assert exc_info.value.reason == "http_error"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(EnrichmentUnavailable) as exc_info:
            await make_client(handler, max_retries=2).fetch(normalized_applicant())

        assert exc_info.value.reason == "timeout"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_timeout_then_success(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectTimeout("connect timed out", request=request)
            return httpx.Response(200, json={"consistentSavings": True})

        signals = await make_client(handler).fetch(normalized_applicant())
        assert signals.consistent_savings
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        def handler(request):
            return httpx.Response(200, json=["not", "an", "object"])

        with pytest.raises(EnrichmentUnavailable) as exc_info:
            await make_client(handler).fetch(normalized_applicant())
        assert exc_info.value.reason == "malformed"

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(EnrichmentUnavailable) as exc_info:
            await make_client(handler).fetch(normalized_applicant())
        assert exc_info.value.reason == "failure"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(EnrichmentUnavailable) as exc_info:
            await make_client(handler).fetch(normalized_applicant())
        assert exc_info.value.reason == "failure"


# =============================================================================
# Engine Wiring
# =============================================================================

class TestEngineWithHttpClient:
    """Tests for the engine using the HTTP client."""

    @pytest.mark.asyncio
    async def test_bonus_from_remote_signals(self, make_engine, example_applicant):
        def handler(request):
            return httpx.Response(200, json={"signals": {"consistentTransactions": True}})

        engine = make_engine(make_client(handler))
        result = await engine.score(example_applicant, {"fetchExternalData": True})
        assert result.breakdown.external_data == 10

    @pytest.mark.asyncio
    async def test_remote_failure_degrades_gracefully(self, make_engine, example_applicant):
        def handler(request):
            return httpx.Response(500)

        engine = make_engine(make_client(handler))
        result = await engine.score(example_applicant, {"fetchExternalData": True})

        assert result.breakdown.external_data == 0
        assert "External data fetch failed." in result.notes
        assert engine.circuit_breaker.failure_count == 1
