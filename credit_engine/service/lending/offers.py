"""
Offer Generator for the Credit Engine.

Builds concrete loan offers for approved and counteroffer decisions:
- primary: always
- secured_alternative: collateral available and the primary is not a
  clean approval (not for secured cards)
- extended_term: installment products with term headroom
- co_applicant: a co-applicant was supplied
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import structlog

from credit_engine.domain.entities import (
    ApplicantProfile,
    DecisionStatus,
    LendingDecision,
    LoanOffer,
    LoanType,
    OfferType,
    ScoreResult,
    SecurityType,
    Tier,
)

from .pricing import (
    amortization_schedule,
    calculate_fees,
    installment_payment,
    nominal_rate,
    solve_apr,
    upfront_fees,
)
from .settings import LendingSettings

logger = structlog.get_logger(__name__)

OFFERABLE_STATUSES = (DecisionStatus.APPROVED, DecisionStatus.COUNTEROFFER)


def generate_offer_id() -> str:
    return "OFFER-" + secrets.token_hex(8).upper()


def required_documents(loan_type: LoanType, tier: Tier, has_co_applicant: bool) -> List[str]:
    """Documents the applicant must supply for an offer."""
    documents = ["ID_CARD", "PROOF_OF_ADDRESS"]
    if tier in (Tier.FAIR, Tier.POOR):
        documents.append("BANK_STATEMENTS_6_MONTHS")
    if loan_type == LoanType.BUSINESS:
        documents.extend(["BUSINESS_REGISTRATION", "FINANCIAL_STATEMENTS"])
    if loan_type == LoanType.MORTGAGE:
        documents.extend(["PROPERTY_TITLE", "SALARY_CERTIFICATE"])
    if has_co_applicant:
        documents.extend(["CO_APPLICANT_ID", "CO_APPLICANT_INCOME_PROOF"])
    return documents


def offer_disclosures(score_result: ScoreResult, settings: LendingSettings) -> List[str]:
    return [
        *score_result.disclosures,
        "RATES_AND_TERMS_SUBJECT_TO_CHANGE_WITHOUT_NOTICE",
        "LATE_PAYMENTS_SUBJECT_TO_PENALTIES",
        f"MAX_APR:{settings.max_apr:g}%",
    ]


def create_offer(
    offer_type: OfferType,
    amount: float,
    decision: LendingDecision,
    score_result: ScoreResult,
    profile: ApplicantProfile,
    settings: LendingSettings,
    secured: bool,
    term_months: int,
    now: datetime,
) -> LoanOffer:
    """
    Build a single offer.

    Credit cards are revolving: no term, no installment and no
    amortization preview, and the APR equals the nominal rate.

    Args:
        offer_type: Kind of offer
        amount: Offer amount (local currency)
        decision: Decision the offer is built for
        score_result: Score result of the applicant
        profile: Validated applicant profile
        settings: Lending settings
        secured: Whether the offer is collateral-backed
        term_months: Term for installment products
        now: Reference time for the expiration

    Returns:
        LoanOffer
    """
    loan_type = score_result.loan_type
    tier = decision.risk_category
    revolving = loan_type == LoanType.CREDIT_CARD
    term: Optional[int] = None if revolving else term_months
    security = SecurityType.SECURED if secured else SecurityType.UNSECURED

    rate = nominal_rate(security, tier, term, settings)
    fees = calculate_fees(loan_type, amount, tier, settings)

    if revolving:
        monthly_payment = 0.0
        schedule = []
    else:
        monthly_payment = installment_payment(amount, rate, term)
        schedule = (
            amortization_schedule(amount, rate, term, settings.amortization_preview_months)
            if term <= settings.max_term
            else []
        )

    apr = solve_apr(amount, rate, term, upfront_fees(loan_type, fees, settings)).apr

    collateral_value = profile.collateral_value
    if score_result.is_secured_card and collateral_value <= 0:
        collateral_value = profile.down_payment

    return LoanOffer(
        offer_id=generate_offer_id(),
        offer_type=offer_type,
        amount=amount,
        currency=settings.currency,
        term_months=term,
        interest_rate=rate,
        apr=apr,
        monthly_payment=monthly_payment,
        security_type=security,
        collateral_required=secured,
        collateral_type=profile.collateral_type,
        collateral_value=collateral_value,
        fees=fees,
        expiration=now + timedelta(days=settings.offer_validity_days),
        conditions=[
            "FINAL_APPROVAL_SUBJECT_TO_VERIFICATION",
            f"OFFER_VALID_FOR_{settings.offer_validity_days}_DAYS",
            *decision.verification_flags,
        ],
        required_documents=required_documents(loan_type, tier, profile.has_co_applicant),
        amortization_schedule=schedule,
        disclosures=offer_disclosures(score_result, settings),
    )


def generate_offers(
    decision: LendingDecision,
    score_result: ScoreResult,
    profile: ApplicantProfile,
    settings: LendingSettings,
    now: Optional[datetime] = None,
) -> List[LoanOffer]:
    """
    Build 1-4 offers for an approved or counteroffer decision.

    Args:
        decision: The lending decision
        score_result: Score result of the applicant
        profile: Validated applicant profile
        settings: Lending settings
        now: Reference time (defaults to the current UTC time)

    Returns:
        List of offers, primary first (empty for denied or review decisions)
    """
    if decision.status not in OFFERABLE_STATUSES:
        return []

    now = now or datetime.now(timezone.utc)
    term = profile.requested_term_months or settings.default_term_months
    base_secured = score_result.is_secured_card

    def build(offer_type: OfferType, amount: float, secured: bool = base_secured, term_months: int = term):
        return create_offer(
            offer_type,
            amount,
            decision,
            score_result,
            profile,
            settings,
            secured=secured,
            term_months=term_months,
            now=now,
        )

    offers = [build(OfferType.PRIMARY, decision.approved_amount)]

    if (
        not score_result.is_secured_card
        and decision.status != DecisionStatus.APPROVED
        and profile.collateral_value > 0
    ):
        secured_amount = min(
            decision.approved_amount,
            profile.collateral_value * settings.max_ltv / 100,
        )
        offers.append(build(OfferType.SECURED_ALTERNATIVE, secured_amount, secured=True))

    if score_result.loan_type != LoanType.CREDIT_CARD and term < settings.max_term:
        extended = min(settings.max_term, term + settings.term_extension_months)
        offers.append(build(OfferType.EXTENDED_TERM, decision.approved_amount, term_months=extended))

    if profile.has_co_applicant:
        co_applicant_offer = build(OfferType.CO_APPLICANT, decision.approved_amount)
        co_applicant_offer.conditions.append("CO_APPLICANT_REQUIRED")
        offers.append(co_applicant_offer)

    logger.debug(
        "offers_generated",
        status=decision.status.value,
        offer_types=[offer.offer_type.value for offer in offers],
    )
    return offers
