"""Lending decision entity."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .score import Tier


class DecisionStatus(str, Enum):
    APPROVED = "approved"
    DENIED = "denied"
    COUNTEROFFER = "counteroffer"
    REVIEW = "review"


class DtiStatus(str, Enum):
    ACCEPTABLE = "acceptable"
    HIGH = "high"


def _display_ratio(value: float) -> float:
    # Non-finite ratios (zero income) are reported as a sentinel.
    return 999.99 if value == float("inf") else round(value, 4)


@dataclass
class LendingDecision:
    """
    Represents a lending decision derived from a score result.

    Amounts are in the applicant's local currency. DTI and LTV are
    percentages; DSCR is a plain ratio.
    """

    status: DecisionStatus
    reason: str
    approved_amount: float
    risk_category: Tier
    dti: float = 0.0
    dti_status: DtiStatus = DtiStatus.ACCEPTABLE
    loan_to_value: float = 0.0
    debt_service_coverage_ratio: float = 0.0
    verification_flags: List[str] = field(default_factory=list)
    co_applicant_required: bool = False

    @property
    def is_denied(self) -> bool:
        return self.status == DecisionStatus.DENIED

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "status": self.status.value,
            "reason": self.reason,
            "approved_amount": round(self.approved_amount, 2),
            "risk_category": self.risk_category.value,
            "dti": _display_ratio(self.dti),
            "dti_status": self.dti_status.value,
            "loan_to_value": _display_ratio(self.loan_to_value),
            "debt_service_coverage_ratio": _display_ratio(self.debt_service_coverage_ratio),
            "verification_flags": list(self.verification_flags),
            "co_applicant_required": self.co_applicant_required,
        }
