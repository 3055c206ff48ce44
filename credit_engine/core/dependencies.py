"""Dependency wiring for the credit engine."""

from functools import lru_cache
from typing import Optional

from credit_engine.core.config import Settings, settings
from credit_engine.domain.exceptions import ConfigurationError
from credit_engine.domain.interfaces import EnrichmentSource
from credit_engine.infrastructure.clients import (
    ApplicantSignalsSource,
    HttpEnrichmentClient,
)
from credit_engine.application.services import CreditEngine
from credit_engine.service.resilience import CircuitBreaker, RateLimiter


# External client dependencies
def get_enrichment_source(config: Optional[Settings] = None) -> EnrichmentSource:
    """Get the EnrichmentSource selected by ``enrichment_source``."""
    config = config or settings
    if config.enrichment_source == "http":
        return HttpEnrichmentClient(
            base_url=config.enrichment_api_url,
            timeout=config.enrichment_timeout,
        )
    if config.enrichment_source == "applicant":
        return ApplicantSignalsSource()
    raise ConfigurationError("enrichment_source", f"unknown source '{config.enrichment_source}'")


# Resilience dependencies
def get_rate_limiter(config: Optional[Settings] = None) -> RateLimiter:
    config = config or settings
    return RateLimiter(
        max_calls=config.rate_limit_max_calls,
        window_seconds=config.rate_limit_window_seconds,
    )


def get_circuit_breaker(config: Optional[Settings] = None) -> CircuitBreaker:
    config = config or settings
    return CircuitBreaker(
        failure_threshold=config.circuit_failure_threshold,
        reset_timeout=config.circuit_reset_timeout_seconds,
        hysteresis_delay=config.circuit_hysteresis_delay_seconds,
    )


# Service dependencies
def build_credit_engine(config: Optional[Settings] = None) -> CreditEngine:
    """Build a CreditEngine with its own resilience state."""
    config = config or settings
    return CreditEngine(
        enrichment_source=get_enrichment_source(config),
        rate_limiter=get_rate_limiter(config),
        circuit_breaker=get_circuit_breaker(config),
        enrichment_timeout=config.enrichment_timeout,
    )


@lru_cache
def get_credit_engine() -> CreditEngine:
    """Get the process-wide CreditEngine instance."""
    return build_credit_engine()
