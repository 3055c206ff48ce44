"""Loan offer entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from .decision import LendingDecision


class OfferType(str, Enum):
    PRIMARY = "primary"
    SECURED_ALTERNATIVE = "secured_alternative"
    EXTENDED_TERM = "extended_term"
    CO_APPLICANT = "co_applicant"


class SecurityType(str, Enum):
    SECURED = "secured"
    UNSECURED = "unsecured"


@dataclass(frozen=True)
class AmortizationEntry:
    """A single period of an amortization preview."""

    month: int
    payment: float
    principal: float
    interest: float
    remaining_balance: float

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "payment": round(self.payment, 2),
            "principal": round(self.principal, 2),
            "interest": round(self.interest, 2),
            "remaining_balance": round(self.remaining_balance, 2),
        }


@dataclass
class LoanOffer:
    """
    A concrete loan offer built from a non-denied decision.

    ``term_months`` is None for revolving (credit card) products, which also
    carry no monthly payment or amortization preview.
    """

    offer_id: str
    offer_type: OfferType
    amount: float
    currency: str
    term_months: Optional[int]
    interest_rate: float
    apr: float
    monthly_payment: float
    security_type: SecurityType
    collateral_required: bool
    collateral_type: Optional[str]
    collateral_value: float
    fees: Dict[str, float]
    expiration: datetime
    conditions: List[str] = field(default_factory=list)
    required_documents: List[str] = field(default_factory=list)
    amortization_schedule: List[AmortizationEntry] = field(default_factory=list)
    disclosures: List[str] = field(default_factory=list)

    @property
    def is_revolving(self) -> bool:
        return self.term_months is None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "offer_id": self.offer_id,
            "offer_type": self.offer_type.value,
            "amount": round(self.amount, 2),
            "currency": self.currency,
            "term": "revolving" if self.is_revolving else self.term_months,
            "interest_rate": round(self.interest_rate, 4),
            "apr": round(self.apr, 4),
            "monthly_payment": round(self.monthly_payment, 2),
            "security_type": self.security_type.value,
            "collateral_required": self.collateral_required,
            "collateral_type": self.collateral_type,
            "collateral_value": self.collateral_value,
            "fees": {name: round(amount, 2) for name, amount in self.fees.items()},
            "expiration": self.expiration.isoformat(),
            "conditions": list(self.conditions),
            "required_documents": list(self.required_documents),
            "amortization_schedule": [e.to_dict() for e in self.amortization_schedule],
            "disclosures": list(self.disclosures),
        }


@dataclass
class LendingOutcome:
    """A decision together with the offers generated for it."""

    decision: LendingDecision
    offers: List[LoanOffer] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "decision": self.decision.to_dict(),
            "offers": [offer.to_dict() for offer in self.offers],
        }
