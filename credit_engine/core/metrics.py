"""Prometheus metrics for the credit engine.

Metrics are organized into two categories:

Business Metrics (for Product/Risk):
- credit_engine_score_total: Scores computed by tier
- credit_engine_decision_total: Lending decisions by status
- credit_engine_offer_total: Loan offers generated by type

Technical Metrics (for Engineering/SRE):
- credit_engine_score_latency_seconds: Scoring latency
- credit_engine_decision_latency_seconds: Decision + offer latency
- credit_engine_enrichment_total: Enrichment attempts by outcome
- credit_engine_enrichment_latency_seconds: Enrichment call latency
"""

import time
from contextlib import contextmanager
from typing import Dict, Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest


# =============================================================================
# Business Metrics
# =============================================================================

score_total = Counter(
    "credit_engine_score_total",
    "Total number of creditworthiness scores computed",
    ["tier"],
)

decision_total = Counter(
    "credit_engine_decision_total",
    "Total number of lending decisions made",
    ["status"],  # approved, denied, counteroffer, review
)

offer_total = Counter(
    "credit_engine_offer_total",
    "Total number of loan offers generated",
    ["offer_type"],
)


# =============================================================================
# Technical Metrics
# =============================================================================

score_latency = Histogram(
    "credit_engine_score_latency_seconds",
    "Scoring latency in seconds",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5],
)

decision_latency = Histogram(
    "credit_engine_decision_latency_seconds",
    "Decision and offer generation latency in seconds",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

enrichment_total = Counter(
    "credit_engine_enrichment_total",
    "Enrichment attempts by outcome",
    ["outcome"],  # success, failure, timeout, rate_limited, circuit_open
)

enrichment_latency = Histogram(
    "credit_engine_enrichment_latency_seconds",
    "Enrichment call latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_score(tier: str) -> None:
    """Record a computed score."""
    score_total.labels(tier=tier).inc()


def record_decision(status: str, offer_types: list[str]) -> None:
    """Record a decision and the offers built for it."""
    decision_total.labels(status=status).inc()
    for offer_type in offer_types:
        offer_total.labels(offer_type=offer_type).inc()


def record_enrichment(outcome: str) -> None:
    """Record an enrichment attempt outcome."""
    enrichment_total.labels(outcome=outcome).inc()


@contextmanager
def track_score_latency() -> Generator[None, None, None]:
    """Context manager to track scoring latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        score_latency.observe(time.perf_counter() - start)


@contextmanager
def track_decision_latency() -> Generator[None, None, None]:
    """Context manager to track decision latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        decision_latency.observe(time.perf_counter() - start)


@contextmanager
def track_enrichment_latency() -> Generator[None, None, None]:
    """Context manager to track enrichment call latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        enrichment_latency.observe(time.perf_counter() - start)


@contextmanager
def track_component(timings: Dict[str, float], name: str) -> Generator[None, None, None]:
    """Record the duration of a pipeline stage, in milliseconds, into ``timings``."""
    start = time.perf_counter()
    try:
        yield
    finally:
        timings[name] = round((time.perf_counter() - start) * 1000, 4)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)
