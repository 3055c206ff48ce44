"""Application services (use cases)."""

from .engine import CreditEngine

__all__ = [
    "CreditEngine",
]
