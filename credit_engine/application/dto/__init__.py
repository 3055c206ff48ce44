"""Data Transfer Objects for application layer."""

from .evaluation import EvaluationResult

__all__ = [
    "EvaluationResult",
]
