"""
Fixtures for integration tests.

Provides:
- Manually advanced clock for the rate limiter and circuit breaker
- Mock enrichment sources (healthy, failing, slow)
- Recording audit sink
- CreditEngine factory wired with the above
"""

import asyncio
from typing import Any, Callable, Dict, List

import pytest

from credit_engine.application.services import CreditEngine
from credit_engine.domain.entities import EnrichmentSignals, NormalizedApplicant
from credit_engine.domain.interfaces import EnrichmentSource
from credit_engine.infrastructure.audit import AuditRecorder
from credit_engine.service.resilience import CircuitBreaker, RateLimiter


# =============================================================================
# Test Data
# =============================================================================

# Small local-currency amounts; at the default rate of 139 they are roughly
# 43/1.4/10/18 in the reference currency.
EXAMPLE_APPLICANT: Dict[str, Any] = {
    "applicantId": "app-001",
    "monthlyIncome": 6000,
    "monthlyDebtPayments": 200,
    "monthlyExpenses": 1400,
    "averageDailyBalance": 2500,
    "utilityPayments": 0.83,
    "rentPayments": 1.0,
    "employmentStability": "moderate",
}

STRONG_APPLICANT: Dict[str, Any] = {
    "applicantId": "app-002",
    "monthlyIncome": 834000,
    "monthlyDebtPayments": 27800,
    "monthlyExpenses": 194600,
    "averageDailyBalance": 347500,
    "utilityPayments": 0.83,
    "rentPayments": 1.0,
    "employmentStability": "moderate",
    "industryRisk": "medium",
    "loanPurpose": "neutral",
    "financialLiteracyScore": 70,
    "savingsConsistencyScore": 66.67,
    "cashFlowStability": 65,
    "residenceStabilityMonths": 12,
    "phoneNumber": "+251911000000",
}

ALL_SIGNALS = EnrichmentSignals(
    consistent_transactions=True,
    verified_rental_history=True,
    consistent_savings=True,
    low_debt_payments=True,
    high_financial_literacy=True,
)


# =============================================================================
# Mock Collaborators
# =============================================================================

class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockEnrichmentSource(EnrichmentSource):
    """Enrichment source returning fixed signals, or failing on demand."""

    name = "mock"

    def __init__(
        self,
        signals: EnrichmentSignals = ALL_SIGNALS,
        fail_mode: bool = False,
        delay: float = 0.0,
    ):
        self.signals = signals
        self.fail_mode = fail_mode
        self.delay = delay
        self.call_count = 0

    async def fetch(self, applicant: NormalizedApplicant) -> EnrichmentSignals:
        self.call_count += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_mode:
            raise RuntimeError("enrichment backend unavailable")
        return self.signals


class RecordingAuditSink:
    """Collects every audit record the engine emits."""

    def __init__(self):
        self.records: List[Dict[str, Any]] = []

    def __call__(self, record: Dict[str, Any]) -> None:
        self.records.append(record)

    @property
    def last(self) -> Dict[str, Any]:
        return self.records[-1]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def enrichment_source() -> MockEnrichmentSource:
    """Create a healthy enrichment source."""
    return MockEnrichmentSource()


@pytest.fixture
def failing_source() -> MockEnrichmentSource:
    """Create an enrichment source that always fails."""
    return MockEnrichmentSource(fail_mode=True)


@pytest.fixture
def make_engine(clock: FakeClock, audit_sink: RecordingAuditSink) -> Callable[..., CreditEngine]:
    """
    Factory for engines sharing the test clock and audit sink.

    Each engine gets its own rate limiter and circuit breaker.
    """

    def factory(
        source: EnrichmentSource = None,
        max_calls: int = 100,
        failure_threshold: int = 3,
        timeout: float = 1.0,
    ) -> CreditEngine:
        return CreditEngine(
            enrichment_source=source,
            rate_limiter=RateLimiter(max_calls=max_calls, window_seconds=60, clock=clock),
            circuit_breaker=CircuitBreaker(
                failure_threshold=failure_threshold,
                reset_timeout=300,
                hysteresis_delay=30,
                clock=clock,
            ),
            audit_recorder=AuditRecorder(sink=audit_sink),
            enrichment_timeout=timeout,
        )

    return factory


@pytest.fixture
def engine(make_engine, enrichment_source) -> CreditEngine:
    """Engine backed by the healthy mock source."""
    return make_engine(enrichment_source)


@pytest.fixture
def example_applicant() -> Dict[str, Any]:
    return dict(EXAMPLE_APPLICANT)


@pytest.fixture
def strong_applicant() -> Dict[str, Any]:
    return dict(STRONG_APPLICANT)
