"""
Lending Settings for the Credit Engine.

Thresholds, rate matrices, fee schedules and offer parameters used by the
decision engine and the offer generator. Defaults can be overridden via
environment variables (LENDING_ prefix) or per call through
``resolve_lending_config``.

Fee schedules are tagged unions keyed by ``type``:
    {"type": "percentage", "value": 0.01, "min": 0, "max": 500}
    {"type": "fixed", "value": 200}
    {"type": "riskBased", "table": {"Excellent": 0, "Poor": 500, ...}}
"""

from functools import lru_cache
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel, to_snake
from pydantic_settings import BaseSettings, SettingsConfigDict

from credit_engine.domain.entities import LoanType, SecurityType, Tier
from credit_engine.domain.exceptions import ConfigurationError


class _LendingModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class PercentageFee(_LendingModel):
    """Fee as a share of the offer amount, optionally clamped."""

    type: Literal["percentage"] = "percentage"
    value: float = Field(..., ge=0)
    min: Optional[float] = Field(default=None, ge=0)
    max: Optional[float] = Field(default=None, ge=0)
    upfront: bool = False

    def amount(self, principal: float, tier: Tier) -> float:
        fee = principal * self.value
        if self.min is not None:
            fee = max(fee, self.min)
        if self.max is not None:
            fee = min(fee, self.max)
        return fee


class FixedFee(_LendingModel):
    type: Literal["fixed"] = "fixed"
    value: float = Field(..., ge=0)
    upfront: bool = False

    def amount(self, principal: float, tier: Tier) -> float:
        return self.value


class RiskBasedFee(_LendingModel):
    """Fee looked up by risk tier."""

    type: Literal["riskBased"] = "riskBased"
    table: Dict[Tier, float]
    upfront: bool = False

    def amount(self, principal: float, tier: Tier) -> float:
        return self.table.get(tier, self.table.get(Tier.POOR, 0.0))


FeeDefinition = Annotated[
    Union[PercentageFee, FixedFee, RiskBasedFee],
    Field(discriminator="type"),
]


class TermAdjustment(_LendingModel):
    """Rate add-on applied once the term reaches ``min_term`` months."""

    min_term: int = Field(..., gt=0)
    adjustment: float


class LendingThresholds(_LendingModel):
    secured: float = Field(default=300, ge=0)
    unsecured: float = Field(default=400, ge=0)


def _default_rate_matrix() -> Dict[SecurityType, Dict[Tier, float]]:
    return {
        SecurityType.SECURED: {
            Tier.EXCELLENT: 11.5,
            Tier.VERY_GOOD: 13.0,
            Tier.GOOD: 15.5,
            Tier.FAIR: 18.0,
            Tier.POOR: 22.0,
        },
        SecurityType.UNSECURED: {
            Tier.EXCELLENT: 12.5,
            Tier.VERY_GOOD: 14.5,
            Tier.GOOD: 17.0,
            Tier.FAIR: 20.0,
            Tier.POOR: 25.0,
        },
    }


def _default_fee_structure() -> Dict[LoanType, Dict[str, FeeDefinition]]:
    return {
        LoanType.PERSONAL: {
            "origination": PercentageFee(value=0.01, min=0, max=500, upfront=True),
            "latePayment": FixedFee(value=200),
            "prepayment": FixedFee(value=0),
        },
        LoanType.CREDIT_CARD: {
            "annual": RiskBasedFee(
                table={
                    Tier.EXCELLENT: 0,
                    Tier.VERY_GOOD: 300,
                    Tier.GOOD: 400,
                    Tier.FAIR: 500,
                    Tier.POOR: 500,
                },
            ),
            "latePayment": FixedFee(value=300),
            "cashAdvance": PercentageFee(value=0.03),
        },
        LoanType.BUSINESS: {
            "origination": PercentageFee(value=0.015, upfront=True),
            "latePayment": FixedFee(value=500),
            "prepayment": PercentageFee(value=0.005),
        },
    }


def _default_term_adjustments() -> List[TermAdjustment]:
    return [
        TermAdjustment(min_term=24, adjustment=1.0),
        TermAdjustment(min_term=36, adjustment=0.5),
    ]


class LendingSettings(BaseSettings):
    """
    Configurable parameters for lending decisions and loan offers.

    Rates and APR caps are annual percentages. Amounts are in the
    applicant's local currency.
    """

    model_config = SettingsConfigDict(
        env_prefix="LENDING_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Decision Thresholds ===
    thresholds: LendingThresholds = Field(default_factory=LendingThresholds)
    max_dti: float = Field(
        default=40,
        gt=0,
        description="Maximum debt-to-income percentage, trial installment included",
    )
    max_ltv: float = Field(
        default=80,
        gt=0,
        description="Maximum loan-to-value percentage",
    )
    counteroffer_ratio: float = Field(
        default=0.8,
        gt=0,
        le=1,
        description="Share of the limit offered when DTI or LTV is exceeded",
    )
    trial_payment_term_months: int = Field(
        default=12,
        gt=0,
        description="Term of the trial installment used for DTI",
    )

    # === Pricing ===
    rate_matrix: Dict[SecurityType, Dict[Tier, float]] = Field(default_factory=_default_rate_matrix)
    term_adjustments: List[TermAdjustment] = Field(default_factory=_default_term_adjustments)
    fee_structure: Dict[LoanType, Dict[str, FeeDefinition]] = Field(default_factory=_default_fee_structure)
    max_apr: float = Field(
        default=36.0,
        gt=0,
        description="Cap on the nominal rate, annual percentage",
    )

    # === Offers ===
    currency: str = "ETB"
    default_term_months: int = Field(default=12, gt=0)
    max_term: int = Field(default=60, gt=0)
    term_extension_months: int = Field(default=12, gt=0)
    offer_validity_days: int = Field(default=30, gt=0)
    amortization_preview_months: int = Field(default=12, gt=0)

    def rate_for(self, security: SecurityType, tier: Tier) -> float:
        return self.rate_matrix[security][tier]


@lru_cache
def get_lending_settings() -> LendingSettings:
    """Get cached lending settings instance."""
    return LendingSettings()


lending_settings = get_lending_settings()


def validate_lending_settings(settings: LendingSettings) -> LendingSettings:
    """
    Check cross-field invariants of a lending configuration.

    Raises:
        ConfigurationError: If the APR cap exceeds 100, thresholds are not
            increasing, or any tier is left unpriced
    """
    if settings.max_apr > 100:
        raise ConfigurationError("maxApr", f"{settings.max_apr:g} exceeds 100")

    if settings.thresholds.secured >= settings.thresholds.unsecured:
        raise ConfigurationError(
            "thresholds",
            "secured threshold must be below the unsecured threshold",
        )

    for security in SecurityType:
        matrix = settings.rate_matrix.get(security)
        if matrix is None:
            raise ConfigurationError("rateMatrix", f"missing {security.value} rates")
        missing = [tier.value for tier in Tier if tier not in matrix]
        if missing:
            raise ConfigurationError(
                f"rateMatrix.{security.value}",
                f"no rate for {', '.join(missing)}",
            )

    for loan_type, fees in settings.fee_structure.items():
        for name, fee in fees.items():
            if isinstance(fee, RiskBasedFee):
                missing = [tier.value for tier in Tier if tier not in fee.table]
                if missing:
                    raise ConfigurationError(
                        f"feeStructure.{loan_type.value}.{name}",
                        f"no fee for {', '.join(missing)}",
                    )

    return settings


def resolve_lending_config(
    overrides: Union[LendingSettings, Mapping[str, Any], None] = None,
    settings: LendingSettings = lending_settings,
) -> LendingSettings:
    """
    Merge caller overrides into the lending settings and validate them.

    Top-level keys replace the configured value (snake_case or camelCase).

    Args:
        overrides: Caller configuration (model or mapping)
        settings: Base lending settings (uses defaults if not provided)

    Returns:
        Validated LendingSettings for this call

    Raises:
        ConfigurationError: If the merged configuration is invalid
    """
    if isinstance(overrides, LendingSettings):
        return validate_lending_settings(overrides)

    if not overrides:
        return validate_lending_settings(settings)

    merged = settings.model_dump()
    for key, value in overrides.items():
        merged[to_snake(key)] = value

    try:
        resolved = LendingSettings(**merged)
    except PydanticValidationError as e:
        details = e.errors()
        location = ".".join(str(part) for part in details[0].get("loc", ())) if details else ""
        message = details[0].get("msg") if details else str(e)
        raise ConfigurationError(location or "lending", message)

    return validate_lending_settings(resolved)
