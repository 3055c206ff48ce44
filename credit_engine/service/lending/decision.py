"""
Decision Engine for the Credit Engine.

Derives a single lending decision from a score result and the applicant's
local-currency figures:
1. Secured card: always approved at the deposit-based limit
2. Below the secured threshold: denied
3. Compute DTI (with a trial installment), LTV and DSCR
4. Above the unsecured threshold within DTI/LTV limits: approve, or
   counteroffer at the recommended limit
5. Above the unsecured threshold but over DTI/LTV: counteroffer at a
   reduced limit
6. Between the thresholds with collateral: counteroffer a secured product
7. Otherwise: denied
"""

from dataclasses import dataclass

from credit_engine.domain.entities import (
    ApplicantProfile,
    CollateralType,
    DecisionStatus,
    DtiStatus,
    LendingDecision,
    ScoreResult,
    SecurityType,
)

from .pricing import installment_payment
from .settings import LendingSettings

CO_APPLICANT_NOTE = " (Co-applicant recommended)"


@dataclass(frozen=True)
class AffordabilityMetrics:
    """DTI and LTV as percentages, DSCR as a ratio."""

    dti: float
    loan_to_value: float
    debt_service_coverage_ratio: float
    trial_payment: float


def requested_amount(score_result: ScoreResult, profile: ApplicantProfile) -> float:
    """Requested amount, defaulting to the recommended limit when not given."""
    if profile.requested_amount is None:
        return float(score_result.recommended_credit_limit)
    return profile.requested_amount


def affordability_metrics(
    score_result: ScoreResult,
    profile: ApplicantProfile,
    settings: LendingSettings,
) -> AffordabilityMetrics:
    """
    Compute DTI, LTV and DSCR for the requested amount.

    The trial installment prices min(requested, recommended limit) at the
    tier's unsecured rate over the trial term.

    Args:
        score_result: Result of scoring the applicant
        profile: Validated applicant profile (local currency)
        settings: Lending settings

    Returns:
        AffordabilityMetrics (DTI is infinite when there is no income, DSCR
        when there is no debt service)
    """
    limit = score_result.recommended_credit_limit
    amount = min(requested_amount(score_result, profile), limit)
    rate = settings.rate_for(SecurityType.UNSECURED, score_result.classification)
    trial_payment = installment_payment(amount, rate, settings.trial_payment_term_months)

    income = profile.monthly_income
    debt = profile.monthly_debt_payments
    debt_service = debt + trial_payment

    if income > 0:
        dti = debt_service / income * 100
    else:
        dti = float("inf")

    if profile.collateral_value > 0:
        ltv = amount / profile.collateral_value * 100
    else:
        ltv = 0.0

    disposable = income - debt - profile.monthly_expenses
    if disposable <= 0:
        dscr = 0.0
    elif debt_service > 0:
        dscr = disposable / debt_service
    else:
        dscr = float("inf")

    return AffordabilityMetrics(
        dti=dti,
        loan_to_value=ltv,
        debt_service_coverage_ratio=dscr,
        trial_payment=trial_payment,
    )


def verification_flags(score_result: ScoreResult, profile: ApplicantProfile) -> list[str]:
    """Verifications required for Very Good and above."""
    very_good = score_result.thresholds.get("veryGood")
    if very_good is None or score_result.total_score < very_good:
        return []

    flags = ["INCOME_VERIFICATION_REQUIRED", "ADDRESS_VERIFICATION_REQUIRED"]
    if profile.collateral_value > 0:
        collateral_type = profile.collateral_type or CollateralType.OTHER.value
        flags.append(f"{collateral_type.upper()}_APPRAISAL_REQUIRED")
    return flags


def make_lending_decision(
    score_result: ScoreResult,
    profile: ApplicantProfile,
    settings: LendingSettings,
) -> LendingDecision:
    """
    Make a lending decision for a scored applicant.

    Args:
        score_result: Result of scoring the applicant
        profile: Validated applicant profile (local currency)
        settings: Validated lending settings

    Returns:
        LendingDecision with status, amount and affordability metrics
    """
    total = score_result.total_score
    limit = float(score_result.recommended_credit_limit)
    requested = requested_amount(score_result, profile)
    thresholds = settings.thresholds

    metrics = affordability_metrics(score_result, profile, settings)
    within_limits = metrics.dti <= settings.max_dti and metrics.loan_to_value <= settings.max_ltv

    decision = LendingDecision(
        status=DecisionStatus.DENIED,
        reason="Credit score below minimum threshold",
        approved_amount=0.0,
        risk_category=score_result.classification,
        dti=metrics.dti,
        dti_status=DtiStatus.ACCEPTABLE if metrics.dti <= settings.max_dti else DtiStatus.HIGH,
        loan_to_value=metrics.loan_to_value,
        debt_service_coverage_ratio=metrics.debt_service_coverage_ratio,
        verification_flags=verification_flags(score_result, profile),
    )

    if score_result.is_secured_card:
        decision.status = DecisionStatus.APPROVED
        decision.reason = "Secured card approved based on deposit"
        decision.approved_amount = limit
    elif total < thresholds.secured:
        decision.reason = (
            f"Credit score ({total}) below minimum secured threshold "
            f"({thresholds.secured:g}) by {thresholds.secured - total:g} points"
        )
    elif total >= thresholds.unsecured and within_limits:
        if requested <= limit:
            decision.status = DecisionStatus.APPROVED
            decision.reason = "Approved within recommended limit"
            decision.approved_amount = requested
        else:
            decision.status = DecisionStatus.COUNTEROFFER
            decision.reason = "Counteroffer: Requested amount exceeds recommended limit"
            decision.approved_amount = limit
    elif total >= thresholds.unsecured:
        decision.status = DecisionStatus.COUNTEROFFER
        decision.reason = "Counteroffer: DTI or LTV constraints require adjusted terms"
        decision.approved_amount = limit * settings.counteroffer_ratio
    elif profile.collateral_value > 0:
        decision.status = DecisionStatus.COUNTEROFFER
        decision.reason = "Consider secured loan option"
        decision.approved_amount = min(limit, profile.collateral_value * settings.max_ltv / 100)
    else:
        decision.reason = (
            f"Credit score ({total}) below unsecured threshold "
            f"({thresholds.unsecured:g}) and no collateral offered"
        )

    if profile.has_co_applicant:
        decision.co_applicant_required = True
        decision.reason += CO_APPLICANT_NOTE

    return decision


def review_decision(score_result: ScoreResult) -> LendingDecision:
    """Safe fallback when a decision could not be derived."""
    return LendingDecision(
        status=DecisionStatus.REVIEW,
        reason="Application requires manual review",
        approved_amount=0.0,
        risk_category=score_result.classification,
    )


def explain_decision(decision: LendingDecision) -> str:
    """
    Generate a human-readable explanation of a decision.

    Args:
        decision: The decision to explain

    Returns:
        Human-readable explanation string
    """
    lines = [f"Decision: {decision.status.value.upper()}"]
    if decision.approved_amount > 0:
        lines[0] += f" ({decision.approved_amount:,.0f})"
    lines.append(f"Reason: {decision.reason}")
    lines.append(f"Risk Category: {decision.risk_category.value}")
    lines.append("")
    lines.append("Affordability:")

    dti = decision.to_dict()["dti"]
    if decision.dti_status == DtiStatus.ACCEPTABLE:
        lines.append(f"  - DTI: {dti:.1f}% (acceptable)")
    else:
        lines.append(f"  - DTI: {dti:.1f}% (high)")

    if decision.loan_to_value > 0:
        lines.append(f"  - LTV: {decision.loan_to_value:.1f}%")
    else:
        lines.append("  - LTV: n/a (no collateral)")

    if decision.debt_service_coverage_ratio == float("inf"):
        lines.append("  - DSCR: n/a (no debt service)")
    elif decision.debt_service_coverage_ratio >= 1:
        lines.append(f"  - DSCR: {decision.debt_service_coverage_ratio:.2f} (covers debt service)")
    else:
        lines.append(f"  - DSCR: {decision.debt_service_coverage_ratio:.2f} (thin coverage)")

    if decision.verification_flags:
        lines.append("")
        lines.append("Verifications: " + ", ".join(decision.verification_flags))
    if decision.co_applicant_required:
        lines.append("Co-applicant required")

    return "\n".join(lines)
