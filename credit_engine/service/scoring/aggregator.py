"""
Score Aggregator for the Five-C Creditworthiness Engine.

Combines the five category scores with the enrichment bonus and the
monitoring adjustment, classifies the total into a tier and derives the
recommended credit limit, disclosures and explanatory notes.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from credit_engine import __version__
from credit_engine.domain.entities import (
    Category,
    EnrichmentSignals,
    NormalizedApplicant,
    ScoreBreakdown,
    ScoreResult,
    Tier,
)

from .factors import is_high_income
from .settings import ScoringConfig

ZERO_INCOME_DISCLOSURE = (
    "ZERO_INCOME_WARNING: Zero income detected; consider alternative income sources or secured card."
)

# (signal attribute, points, note)
ENRICHMENT_BONUSES: Tuple[Tuple[str, float, str], ...] = (
    ("consistent_transactions", 10, "Added 10 points for consistent bank transactions."),
    ("verified_rental_history", 5, "Added 5 points for verified rental payment history."),
    ("consistent_savings", 5, "Added 5 points for consistent savings behavior."),
    ("low_debt_payments", 5, "Added 5 points for low monthly debt payments."),
    ("high_financial_literacy", 5, "Added 5 points for high financial literacy."),
)

VERIFICATION_NOTE = (
    "Submit bank statements or receipts within 30 days to verify utility, "
    "rent, savings, and financial literacy data."
)


@dataclass
class Adjustment:
    """Bonus or penalty points with the notes explaining them."""

    points: float = 0.0
    notes: List[str] = field(default_factory=list)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def enrichment_bonus(signals: EnrichmentSignals, config: ScoringConfig) -> Adjustment:
    """
    Bonus points for confirmed enrichment signals.

    Args:
        signals: Signals returned by the enrichment source
        config: Resolved scoring configuration

    Returns:
        Adjustment of 0 to ``external_bonus_max`` points
    """
    adjustment = Adjustment()
    for attribute, points, note in ENRICHMENT_BONUSES:
        if getattr(signals, attribute):
            adjustment.points += points
            adjustment.notes.append(note)
    adjustment.points = min(adjustment.points, config.settings.external_bonus_max)
    return adjustment


def _payment_band(rate: float) -> float:
    if rate >= 0.9:
        return 10
    elif rate >= 0.7:
        return 5
    return -5


def monitoring_adjustment(applicant: NormalizedApplicant, config: ScoringConfig) -> Adjustment:
    """
    Monitoring adjustment from recent payment behaviour.

    Uses the on-time rate of the last three payments, with a further
    deduction for utilization above 30%. Without payment history the
    average of the utility and rent payment rates stands in.

    Args:
        applicant: Normalized applicant
        config: Resolved scoring configuration

    Returns:
        Adjustment within [-monitoring_bound, +monitoring_bound]
    """
    if not config.enable_monitoring:
        return Adjustment()

    bound = config.settings.monitoring_bound
    if applicant.has_payment_history:
        points = _payment_band(applicant.recent_on_time_rate)
        notes = [
            {
                10: "Added 10 points for excellent payment history.",
                5: "Added 5 points for good payment history.",
            }.get(points, "Deducted 5 points for poor payment history.")
        ]
        if applicant.utilization_rate > 0.3:
            points -= 5
            notes.append("Deducted 5 points for high utilization rate.")
        else:
            notes.append("Utilization rate within recommended range.")
        notes.append("Enable autopay to ensure on-time payments.")
    else:
        proxy = (applicant.utility_payments + applicant.rent_payments) / 2
        points = _payment_band(proxy)
        notes = [
            {
                10: "Added 10 points for strong utility/rent payment history.",
                5: "Added 5 points for good utility/rent payment history.",
            }.get(points, "Deducted 5 points for poor utility/rent payment history."),
            "Submit bank statements or receipts to verify payment history.",
        ]

    return Adjustment(points=max(-bound, min(bound, points)), notes=notes)


def recommended_limit_reference(
    applicant: NormalizedApplicant,
    tier: Tier,
    monitoring: float,
    config: ScoringConfig,
) -> float:
    """Recommended credit limit in the reference currency."""
    settings = config.settings
    if config.is_secured_card:
        return min(
            max(applicant.collateral_value, settings.secured_card_min_deposit),
            settings.secured_card_max_deposit,
        )

    limit = config.credit_limits.for_tier(tier)
    if config.enable_monitoring:
        limit *= 1 + monitoring / 100
    return limit


def build_disclosures(
    applicant: NormalizedApplicant,
    total_score: int,
    monitoring: float,
    config: ScoringConfig,
) -> List[str]:
    """Compliance disclosures triggered by the score and the applicant."""
    thresholds = config.thresholds
    disclosures = []
    if total_score < thresholds.fair:
        disclosures.append("LOW_SCORE_NOTICE: Consider a secured card to build credit.")
    if applicant.debt_service_ratio > config.debt_service_thresholds.fair:
        disclosures.append(
            "HIGH_DEBT_SERVICE_WARNING: High monthly debt payments relative to income detected."
        )
    if config.is_secured_card:
        disclosures.append("SECURED_CARD_DISCLOSURE: Credit limit equals refundable deposit.")
    if monitoring < 0:
        disclosures.append("MONITORING_WARNING: Poor utility/rent payment history detected.")
    if is_high_income(applicant, config):
        disclosures.append(
            "HIGH_INCOME_ADJUSTMENT: Financial literacy score contribution reduced due to high income."
        )
    if total_score >= thresholds.very_good:
        disclosures.append(
            "VERIFICATION_REQUIRED: Submit bank statements or receipts within 30 days to verify data."
        )
    return disclosures


def build_notes(
    applicant: NormalizedApplicant,
    total_score: int,
    config: ScoringConfig,
    external_notes: List[str],
    monitoring_notes: List[str],
) -> List[str]:
    notes = [
        f"Currency rate used: 1 reference unit = {config.currency_rate:g} local units.",
        "Inputs accepted in local currency, converted to the reference currency for scoring.",
        (
            "Secured card: Credit limit equals deposit, refundable upon account closure."
            if config.is_secured_card
            else "Unsecured product: credit limit derived from the achieved tier."
        ),
        f"Macroeconomic adjustment factor: {config.macro_adjustment_factor:.2f} based on provided conditions.",
        (
            "Financial literacy score contribution reduced due to high monthly income."
            if is_high_income(applicant, config)
            else "Financial literacy score based on user-reported budgeting and payment behavior."
        ),
        "Make on-time payments and keep utilization below 30% to build credit.",
    ]
    notes.extend(external_notes)
    notes.extend(monitoring_notes)
    if total_score >= config.thresholds.very_good:
        notes.append(VERIFICATION_NOTE)
    return notes


def _config_snapshot(config: ScoringConfig) -> Dict[str, Dict[str, float]]:
    return {
        "weights": config.weights.model_dump(by_alias=True),
        "thresholds": config.thresholds.model_dump(by_alias=True),
        "credit_limits": config.credit_limits.model_dump(by_alias=True),
    }


def aggregate(
    applicant: NormalizedApplicant,
    category_scores: Dict[Category, float],
    config: ScoringConfig,
    external: Optional[Adjustment] = None,
    timings: Optional[Dict[str, float]] = None,
) -> ScoreResult:
    """
    Combine category scores into the final ScoreResult.

    Args:
        applicant: Normalized applicant
        category_scores: Points per category from the factor scorers
        config: Resolved scoring configuration
        external: Enrichment bonus and notes (zero when skipped)
        timings: Explain-trace component timings in milliseconds

    Returns:
        Immutable ScoreResult
    """
    external = external or Adjustment()
    monitoring = monitoring_adjustment(applicant, config)

    breakdown = ScoreBreakdown(
        capacity=category_scores[Category.CAPACITY],
        character=category_scores[Category.CHARACTER],
        capital=category_scores[Category.CAPITAL],
        collateral=category_scores[Category.COLLATERAL],
        conditions=category_scores[Category.CONDITIONS],
        external_data=external.points,
        monitoring=monitoring.points,
    )

    total_score = max(0, min(round_half_up(breakdown.total), int(config.weights.total)))
    tier = config.thresholds.classify(total_score)
    limit = recommended_limit_reference(applicant, tier, monitoring.points, config)

    return ScoreResult(
        total_score=total_score,
        classification=tier,
        breakdown=breakdown,
        recommended_credit_limit=round_half_up(config.to_local(limit)),
        disclosures=tuple(build_disclosures(applicant, total_score, monitoring.points, config)),
        notes=tuple(build_notes(applicant, total_score, config, external.notes, monitoring.notes)),
        loan_type=config.loan_type,
        is_secured_card=config.is_secured_card,
        currency_rate=config.currency_rate,
        macro_adjustment_factor=config.macro_adjustment_factor,
        version=__version__,
        timings=dict(timings or {}),
        **_config_snapshot(config),
    )


def zero_income_result(
    applicant: NormalizedApplicant,
    config: ScoringConfig,
    timings: Optional[Dict[str, float]] = None,
) -> ScoreResult:
    """
    Fixed result for applicants without income; no scorer runs.

    The secured-card path keeps its deposit-based limit since the deposit,
    not income, backs the card.
    """
    limit = 0
    if config.is_secured_card:
        limit = round_half_up(config.to_local(recommended_limit_reference(applicant, Tier.POOR, 0.0, config)))

    return ScoreResult(
        total_score=0,
        classification=Tier.POOR,
        breakdown=ScoreBreakdown(),
        recommended_credit_limit=limit,
        disclosures=(ZERO_INCOME_DISCLOSURE,),
        notes=(
            "Zero income detected; scoring aborted.",
            "Submit proof of alternative income sources to improve score.",
        ),
        loan_type=config.loan_type,
        is_secured_card=config.is_secured_card,
        currency_rate=config.currency_rate,
        macro_adjustment_factor=config.macro_adjustment_factor,
        version=__version__,
        timings=dict(timings or {}),
        **_config_snapshot(config),
    )
