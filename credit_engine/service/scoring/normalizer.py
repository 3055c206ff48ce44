"""
Input normalization for the scoring pipeline.

Validates raw applicant data into an ``ApplicantProfile`` and converts it
into a ``NormalizedApplicant`` in the reference currency. The raw input and
the validated profile are never mutated.
"""

from typing import Any, Mapping, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from credit_engine.domain.entities import (
    ApplicantProfile,
    COLLATERAL_TYPE_VALUES,
    CollateralLiquidity,
    CollateralType,
    NormalizedApplicant,
)
from credit_engine.domain.exceptions import ValidationError

from .settings import ScoringConfig

logger = structlog.get_logger(__name__)

RECENT_PAYMENTS_WINDOW = 3

ApplicantInput = Union[ApplicantProfile, Mapping[str, Any]]


def _format_error(detail: dict) -> str:
    location = ".".join(str(part) for part in detail.get("loc", ()))
    message = detail.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def parse_applicant(data: ApplicantInput) -> ApplicantProfile:
    """
    Validate raw applicant data.

    Args:
        data: Applicant record (mapping with snake_case or camelCase keys)

    Returns:
        The validated, immutable profile

    Raises:
        ValidationError: If required fields are missing, negative or out of
            range, or if collateral is declared without a known type
    """
    if isinstance(data, ApplicantProfile):
        return data
    if not isinstance(data, Mapping):
        raise ValidationError("Applicant data must be a mapping")

    try:
        return ApplicantProfile.model_validate(dict(data))
    except PydanticValidationError as e:
        errors = [_format_error(detail) for detail in e.errors()]
        logger.info("applicant_validation_failed", error_count=len(errors))
        raise ValidationError(
            f"Invalid applicant data: {errors[0]}" if errors else "Invalid applicant data",
            errors=errors,
        )


def recent_on_time_rate(profile: ApplicantProfile) -> Optional[float]:
    """On-time share of the most recent payments, or None without history."""
    recent = profile.payment_history[-RECENT_PAYMENTS_WINDOW:]
    if not recent:
        return None
    return sum(1 for record in recent if record.on_time) / len(recent)


def normalize(profile: ApplicantProfile, config: ScoringConfig) -> NormalizedApplicant:
    """
    Convert a validated profile into the reference currency.

    Every monetary field is divided by the configured currency rate. On the
    secured-card path the deposit stands in for missing collateral, the
    collateral type defaults to a secured deposit and liquidity to high.

    Args:
        profile: Validated applicant profile (local currency)
        config: Resolved scoring configuration

    Returns:
        A new NormalizedApplicant
    """
    rate = config.currency_rate

    def to_reference(amount: float) -> float:
        return amount / rate

    collateral_value = profile.collateral_value
    if config.is_secured_card and collateral_value <= 0:
        collateral_value = profile.down_payment

    if not profile.collateral_type:
        collateral_type = (
            CollateralType.SECURED_DEPOSIT if config.is_secured_card else CollateralType.OTHER
        )
    elif profile.collateral_type in COLLATERAL_TYPE_VALUES:
        collateral_type = CollateralType(profile.collateral_type)
    else:
        logger.info(
            "unknown_collateral_type",
            applicant_id=profile.applicant_id,
            collateral_type=profile.collateral_type,
        )
        collateral_type = CollateralType.OTHER

    liquidity = profile.collateral_liquidity
    if liquidity is None:
        liquidity = CollateralLiquidity.HIGH if config.is_secured_card else CollateralLiquidity.LOW

    return NormalizedApplicant(
        monthly_income=to_reference(profile.monthly_income),
        monthly_debt_payments=to_reference(profile.monthly_debt_payments),
        monthly_expenses=to_reference(profile.monthly_expenses),
        average_daily_balance=to_reference(profile.average_daily_balance),
        down_payment=to_reference(profile.down_payment),
        collateral_value=to_reference(collateral_value),
        collateral_type=collateral_type,
        collateral_liquidity=liquidity,
        utility_payments=profile.utility_payments,
        rent_payments=profile.rent_payments,
        utilization_rate=profile.utilization_rate,
        employment_stability=profile.employment_stability,
        industry_risk=profile.industry_risk,
        loan_purpose=profile.loan_purpose,
        macro_risk_level=profile.macro_risk_level,
        sector_risk=profile.sector_risk,
        financial_literacy_score=profile.financial_literacy_score,
        savings_consistency_score=profile.savings_consistency_score,
        cash_flow_stability=profile.cash_flow_stability,
        loan_term_months=profile.loan_term_months,
        bankruptcies=profile.bankruptcies,
        legal_issues=profile.legal_issues,
        residence_stability_months=profile.residence_stability_months,
        job_hops_in_last_2_years=profile.job_hops_in_last_2_years,
        behavioral_red_flags=profile.behavioral_red_flags,
        recent_on_time_rate=recent_on_time_rate(profile),
        applicant_id=profile.applicant_id,
        macro_adjustment_factor=config.macro_adjustment_factor,
    )
