"""Score result entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Tuple


class Tier(str, Enum):
    """Risk tier derived from the total score, lowest first."""
    POOR = "Poor"
    FAIR = "Fair"
    GOOD = "Good"
    VERY_GOOD = "Very Good"
    EXCELLENT = "Excellent"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)


_TIER_ORDER = list(Tier)


class LoanType(str, Enum):
    PERSONAL = "personal"
    MORTGAGE = "mortgage"
    BUSINESS = "business"
    CREDIT_CARD = "creditCard"


class Category(str, Enum):
    """The five scoring categories."""
    CAPACITY = "capacity"
    CHARACTER = "character"
    CAPITAL = "capital"
    COLLATERAL = "collateral"
    CONDITIONS = "conditions"


@dataclass(frozen=True)
class ScoreBreakdown:
    """
    Points contributed by each scoring component.

    The five category scores are each bounded by their weight. External
    data adds 0-30 bonus points and monitoring adjusts by -10 to +10.
    """

    capacity: float = 0.0
    character: float = 0.0
    capital: float = 0.0
    collateral: float = 0.0
    conditions: float = 0.0
    external_data: float = 0.0
    monitoring: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.capacity + self.character + self.capital + self.collateral
            + self.conditions + self.external_data + self.monitoring
        )

    def to_dict(self) -> dict:
        return {
            "capacity": self.capacity,
            "character": self.character,
            "capital": self.capital,
            "collateral": self.collateral,
            "conditions": self.conditions,
            "external_data": self.external_data,
            "monitoring": self.monitoring,
        }


@dataclass(frozen=True)
class ScoreResult:
    """
    The outcome of scoring one applicant.

    Purely derived from the applicant record and the resolved configuration;
    never mutated after construction.

    Attributes:
        total_score: Rounded total, 0 to the sum of category weights
        classification: Risk tier reached by the total score
        breakdown: Per-component points
        recommended_credit_limit: Suggested limit in the applicant's local currency
        disclosures: Compliance disclosure codes with their messages
        notes: Human-readable explanation lines
        weights: Category weights used (after loan-type presets and overrides)
        thresholds: Tier thresholds used, keyed by tier name
        credit_limits: Reference-currency limits per tier
        loan_type: Loan product being scored
        is_secured_card: Whether the secured-card path was used
        currency_rate: Local currency units per reference unit
        macro_adjustment_factor: Factor applied to capacity thresholds
        timings: Explain-trace of component durations in milliseconds
    """

    total_score: int
    classification: Tier
    breakdown: ScoreBreakdown
    recommended_credit_limit: int
    disclosures: Tuple[str, ...]
    notes: Tuple[str, ...]
    weights: Dict[str, float]
    thresholds: Dict[str, float]
    credit_limits: Dict[str, float]
    loan_type: LoanType
    is_secured_card: bool
    currency_rate: float
    macro_adjustment_factor: float
    engine: str = "five-c-creditworthiness"
    version: str = "0.1.0"
    timings: Dict[str, float] = field(default_factory=dict, compare=False)
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
        compare=False,
    )

    @property
    def is_zero_income(self) -> bool:
        return any(d.startswith("ZERO_INCOME_WARNING") for d in self.disclosures)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "engine": self.engine,
            "version": self.version,
            "total_score": self.total_score,
            "classification": self.classification.value,
            "breakdown": self.breakdown.to_dict(),
            "recommended_credit_limit": self.recommended_credit_limit,
            "disclosures": list(self.disclosures),
            "notes": list(self.notes),
            "weights": dict(self.weights),
            "thresholds": dict(self.thresholds),
            "credit_limits": dict(self.credit_limits),
            "loan_type": self.loan_type.value,
            "is_secured_card": self.is_secured_card,
            "currency_rate": self.currency_rate,
            "macro_adjustment_factor": self.macro_adjustment_factor,
            "timings": dict(self.timings),
            "timestamp": self.timestamp.isoformat(),
        }
