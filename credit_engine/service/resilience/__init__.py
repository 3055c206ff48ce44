"""
Resilience components guarding the enrichment call
"""

from .circuit_breaker import CircuitBreaker, CircuitState
from .rate_limiter import RateLimiter

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "RateLimiter",
]
