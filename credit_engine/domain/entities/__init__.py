"""Domain Entities - Core business objects."""

from .applicant import (
    COLLATERAL_TYPE_VALUES,
    MONETARY_FIELDS,
    ApplicantProfile,
    CoApplicant,
    CollateralLiquidity,
    CollateralType,
    EmploymentStability,
    LoanPurpose,
    NormalizedApplicant,
    PaymentRecord,
    RiskLevel,
)
from .score import Category, LoanType, ScoreBreakdown, ScoreResult, Tier
from .decision import DecisionStatus, DtiStatus, LendingDecision
from .offer import (
    AmortizationEntry,
    LendingOutcome,
    LoanOffer,
    OfferType,
    SecurityType,
)
from .enrichment import EnrichmentSignals

__all__ = [
    "COLLATERAL_TYPE_VALUES",
    "MONETARY_FIELDS",
    "ApplicantProfile",
    "CoApplicant",
    "CollateralLiquidity",
    "CollateralType",
    "EmploymentStability",
    "LoanPurpose",
    "NormalizedApplicant",
    "PaymentRecord",
    "RiskLevel",
    "Category",
    "LoanType",
    "ScoreBreakdown",
    "ScoreResult",
    "Tier",
    "DecisionStatus",
    "DtiStatus",
    "LendingDecision",
    "AmortizationEntry",
    "LendingOutcome",
    "LoanOffer",
    "OfferType",
    "SecurityType",
    "EnrichmentSignals",
]
