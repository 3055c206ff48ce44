"""
Applicant entities.

``ApplicantProfile`` is the validated, immutable input record in the
applicant's local currency. ``NormalizedApplicant`` is the same applicant
expressed in the reference currency with every default resolved; it is
what the factor scorers consume.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class EmploymentStability(str, Enum):
    STABLE = "stable"
    MODERATE = "moderate"
    UNSTABLE = "unstable"


class RiskLevel(str, Enum):
    """Low/medium/high rating used for industry, sector and macro risk."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LoanPurpose(str, Enum):
    PRODUCTIVE = "productive"
    NEUTRAL = "neutral"
    DISCRETIONARY = "discretionary"


class CollateralLiquidity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CollateralType(str, Enum):
    REAL_ESTATE = "realEstate"
    VEHICLE = "vehicle"
    SECURED_DEPOSIT = "securedDeposit"
    OTHER = "other"


COLLATERAL_TYPE_VALUES = frozenset(t.value for t in CollateralType)

# Fields holding local-currency amounts; redacted from audit records.
MONETARY_FIELDS = (
    "monthly_income",
    "monthly_debt_payments",
    "monthly_expenses",
    "average_daily_balance",
    "down_payment",
    "collateral_value",
    "requested_amount",
)


class _ProfileModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        allow_inf_nan=False,
        str_strip_whitespace=True,
    )


class PaymentRecord(_ProfileModel):
    """One entry of the applicant's recent payment history."""

    on_time: bool


class CoApplicant(_ProfileModel):
    """Co-applicant details. Only its presence affects the decision."""

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    monthly_income: float = Field(default=0.0, ge=0)


class ApplicantProfile(_ProfileModel):
    """
    Validated applicant data in local currency.

    Accepts both snake_case and camelCase keys, so upstream records such as
    ``{"monthlyIncome": 834000, ...}`` validate directly.
    """

    # Required cash-flow figures
    monthly_income: float = Field(..., ge=0)
    monthly_debt_payments: float = Field(..., ge=0)
    monthly_expenses: float = Field(..., ge=0)
    average_daily_balance: float = Field(..., ge=0)

    # Payment behaviour ratios (0-1)
    utility_payments: float = Field(default=0.0, ge=0, le=1)
    rent_payments: float = Field(default=0.0, ge=0, le=1)
    utilization_rate: float = Field(default=0.0, ge=0, le=1)

    # Categorical risk fields
    employment_stability: EmploymentStability = EmploymentStability.UNSTABLE
    industry_risk: RiskLevel = RiskLevel.HIGH
    loan_purpose: LoanPurpose = LoanPurpose.DISCRETIONARY
    macro_risk_level: RiskLevel = RiskLevel.MEDIUM
    sector_risk: RiskLevel = RiskLevel.MEDIUM

    # Self-reported / derived scores (0-100)
    financial_literacy_score: float = Field(default=0.0, ge=0, le=100)
    savings_consistency_score: float = Field(default=0.0, ge=0, le=100)
    cash_flow_stability: float = Field(default=0.0, ge=0, le=100)

    # Collateral
    down_payment: float = Field(default=0.0, ge=0)
    collateral_value: float = Field(default=0.0, ge=0)
    collateral_liquidity: Optional[CollateralLiquidity] = None
    collateral_type: Optional[str] = None

    # Loan context
    interest_rate: float = Field(default=0.18, ge=0)
    loan_term_months: int = Field(default=12, ge=0)

    # Counts and tenure
    bankruptcies: int = Field(default=0, ge=0)
    legal_issues: int = Field(default=0, ge=0)
    residence_stability_months: float = Field(default=0.0, ge=0)
    job_tenure_months: float = Field(default=0.0, ge=0)
    job_hops_in_last_2_years: int = Field(default=0, ge=0, alias="jobHopsInLast2Years")

    behavioral_red_flags: Tuple[str, ...] = ()
    payment_history: Tuple[PaymentRecord, ...] = ()

    # Decision inputs
    requested_amount: Optional[float] = Field(default=None, ge=0)
    requested_term_months: Optional[int] = Field(default=None, gt=0)
    co_applicant: Optional[CoApplicant] = None

    # Identifiers (never scored)
    applicant_id: Optional[str] = None
    phone_number: Optional[str] = None

    @model_validator(mode="after")
    def check_collateral_type(self) -> "ApplicantProfile":
        """A positive collateral value must name a known collateral type."""
        if self.collateral_value > 0 and self.collateral_type not in COLLATERAL_TYPE_VALUES:
            raise ValueError(
                "collateralType must be one of "
                f"{sorted(COLLATERAL_TYPE_VALUES)} when collateralValue > 0"
            )
        return self

    @property
    def has_co_applicant(self) -> bool:
        return self.co_applicant is not None

    def redacted(self) -> Dict[str, Any]:
        """Dump the profile with monetary and contact fields replaced by ``[REDACTED]``."""
        data = self.model_dump(mode="json")
        for name in MONETARY_FIELDS + ("phone_number",):
            if data.get(name) is not None:
                data[name] = "[REDACTED]"
        return data


@dataclass(frozen=True)
class NormalizedApplicant:
    """
    Applicant expressed in the reference currency with all defaults applied.

    Attributes:
        monthly_income: Monthly income in reference currency
        monthly_debt_payments: Monthly debt service in reference currency
        monthly_expenses: Non-debt monthly expenses in reference currency
        average_daily_balance: Average daily bank balance in reference currency
        down_payment: Secured-card deposit in reference currency
        collateral_value: Collateral value in reference currency (the deposit
            for secured cards that declare no other collateral)
        collateral_type: Resolved collateral type
        collateral_liquidity: Resolved collateral liquidity
        recent_on_time_rate: On-time share of the last three payments, or
            None without payment history
        macro_adjustment_factor: Macroeconomic factor the thresholds were
            scaled by for this applicant
    """
    monthly_income: float
    monthly_debt_payments: float
    monthly_expenses: float
    average_daily_balance: float
    down_payment: float
    collateral_value: float
    collateral_type: CollateralType
    collateral_liquidity: CollateralLiquidity
    utility_payments: float
    rent_payments: float
    utilization_rate: float
    employment_stability: EmploymentStability
    industry_risk: RiskLevel
    loan_purpose: LoanPurpose
    macro_risk_level: RiskLevel
    sector_risk: RiskLevel
    financial_literacy_score: float
    savings_consistency_score: float
    cash_flow_stability: float
    loan_term_months: int
    bankruptcies: int
    legal_issues: int
    residence_stability_months: float
    job_hops_in_last_2_years: int
    behavioral_red_flags: Tuple[str, ...]
    recent_on_time_rate: Optional[float]
    applicant_id: Optional[str] = None
    macro_adjustment_factor: float = 1.0

    @property
    def debt_service_ratio(self) -> float:
        """Monthly debt payments over monthly income (1.0 with no income)."""
        if self.monthly_income <= 0:
            return 1.0
        return self.monthly_debt_payments / self.monthly_income

    @property
    def disposable_income(self) -> float:
        return self.monthly_income - self.monthly_expenses - self.monthly_debt_payments

    @property
    def has_payment_history(self) -> bool:
        return self.recent_on_time_rate is not None
