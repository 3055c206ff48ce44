"""
Factor Scorers for the Five-C Creditworthiness Engine.

Each category scorer is a pure function ``(applicant, config) -> float``
bounded by the category weight. Scorers share no state and may run in
any order or concurrently.

Category (default weight):
- Capacity (500): ability to service debt from income
- Character (300): legal history, stability, financial literacy
- Capital (150): savings, cash-flow stability and reserves
- Collateral (25): loan-to-value, liquidity and collateral type
- Conditions (25): term, macro, sector and loan purpose
"""

from typing import Callable, Dict

from credit_engine.domain.entities import (
    Category,
    CollateralLiquidity,
    EmploymentStability,
    LoanPurpose,
    NormalizedApplicant,
    RiskLevel,
)

from .settings import BandThresholds, ScoringConfig

FactorScorer = Callable[[NormalizedApplicant, ScoringConfig], float]

EMPLOYMENT_POINTS = {
    EmploymentStability.STABLE: 150,
    EmploymentStability.MODERATE: 100,
    EmploymentStability.UNSTABLE: 50,
}

INDUSTRY_RISK_POINTS = {
    RiskLevel.LOW: 50,
    RiskLevel.MEDIUM: 25,
    RiskLevel.HIGH: 0,
}

MACRO_RISK_POINTS = {
    RiskLevel.LOW: 10,
    RiskLevel.MEDIUM: 5,
    RiskLevel.HIGH: 0,
}

SECTOR_RISK_POINTS = {
    RiskLevel.LOW: 5,
    RiskLevel.MEDIUM: 3,
    RiskLevel.HIGH: 0,
}

LOAN_PURPOSE_POINTS = {
    LoanPurpose.PRODUCTIVE: 5,
    LoanPurpose.NEUTRAL: 2,
    LoanPurpose.DISCRETIONARY: 0,
}

# Share of a collateral type's max score granted by liquidity.
LIQUIDITY_SHARE = {
    CollateralLiquidity.HIGH: 0.3,
    CollateralLiquidity.MEDIUM: 0.2,
    CollateralLiquidity.LOW: 0.1,
}

LITERACY_MAX_POINTS = 60
CHARACTER_COMPONENT_CAP = 100


def _clamp(value: float, upper: float) -> float:
    return max(0.0, min(value, upper))


def _band(value: float, bands: BandThresholds, high: float, medium: float, low: float, floor: float) -> float:
    """Points for a 0-100 score against high/medium/low cut-offs."""
    if value >= bands.high:
        return high
    elif value >= bands.medium:
        return medium
    elif value >= bands.low:
        return low
    return floor


# =============================================================================
# Capacity
# =============================================================================

def score_debt_service(ratio: float, config: ScoringConfig) -> float:
    """
    Points for the debt-service ratio, using macro-adjusted thresholds.

    Args:
        ratio: Monthly debt payments over monthly income
        config: Resolved scoring configuration

    Returns:
        200, 150, 100 or 50 points
    """
    thresholds = config.debt_service_thresholds
    if ratio <= thresholds.excellent:
        return 200
    elif ratio <= thresholds.good:
        return 150
    elif ratio <= thresholds.fair:
        return 100
    return 50


def score_disposable_income(disposable: float) -> float:
    """Points for income left after expenses and debt (reference currency)."""
    if disposable > 2000:
        return 50
    elif disposable > 1000:
        return 40
    elif disposable > 0:
        return 30
    return 0


def score_capacity_balance(balance: float, config: ScoringConfig) -> float:
    """Points for average daily balance, using macro-adjusted thresholds."""
    thresholds = config.balance_thresholds
    if balance >= thresholds.high:
        return 50
    elif balance >= thresholds.medium:
        return 30
    return 10


def score_payment_rate(rate: float) -> float:
    """Bonus for utility or rent on-time payment rate."""
    if rate >= 0.95:
        return 20
    elif rate >= 0.85:
        return 10
    return 0


def score_capacity(applicant: NormalizedApplicant, config: ScoringConfig) -> float:
    """
    Capacity: ability to service debt from current income.

    Args:
        applicant: Normalized applicant (reference currency)
        config: Resolved scoring configuration

    Returns:
        Capacity points, at most the capacity weight
    """
    points = (
        score_debt_service(applicant.debt_service_ratio, config)
        + EMPLOYMENT_POINTS[applicant.employment_stability]
        + INDUSTRY_RISK_POINTS[applicant.industry_risk]
        + score_disposable_income(applicant.disposable_income)
        + score_capacity_balance(applicant.average_daily_balance, config)
        + score_payment_rate(applicant.utility_payments)
        + score_payment_rate(applicant.rent_payments)
    )
    return _clamp(points, config.weights.capacity)


# =============================================================================
# Character
# =============================================================================

def score_residence(months: float) -> float:
    if months >= 24:
        return 60
    elif months >= 12:
        return 40
    return 20


def score_job_stability(job_hops: int) -> float:
    if job_hops == 0:
        return 60
    elif job_hops == 1:
        return 40
    elif job_hops == 2:
        return 20
    return 10


def score_financial_literacy(literacy: float, config: ScoringConfig) -> float:
    return _band(literacy, config.settings.literacy_thresholds, 60, 40, 20, 0)


def red_flag_penalty(flags, config: ScoringConfig) -> float:
    """Total points deducted for behavioural red flags (unknown flags cost nothing)."""
    penalties = config.settings.behavioral_red_flags
    return sum(penalties.get(flag, 0) for flag in flags)


def is_high_income(applicant: NormalizedApplicant, config: ScoringConfig) -> bool:
    return applicant.monthly_income >= config.settings.high_income_threshold


def score_character(applicant: NormalizedApplicant, config: ScoringConfig) -> float:
    """
    Character: legal history, residence and job stability, financial literacy.

    High earners have literacy points compressed to a third; half of the
    forgone points (out of the 60 maximum) moves to each of residence and
    job stability, each capped at 100.

    Args:
        applicant: Normalized applicant (reference currency)
        config: Resolved scoring configuration

    Returns:
        Character points within [0, character weight]
    """
    has_legal_history = (applicant.bankruptcies + applicant.legal_issues) > 0
    legal = 0 if has_legal_history else 100

    residence = score_residence(applicant.residence_stability_months)
    job = score_job_stability(applicant.job_hops_in_last_2_years)
    literacy = score_financial_literacy(applicant.financial_literacy_score, config)

    if is_high_income(applicant, config):
        literacy = round(literacy / 3)
        redistributed = (LITERACY_MAX_POINTS - literacy) / 2
        residence = min(residence + redistributed, CHARACTER_COMPONENT_CAP)
        job = min(job + redistributed, CHARACTER_COMPONENT_CAP)

    penalty = red_flag_penalty(applicant.behavioral_red_flags, config)
    return _clamp(legal + residence + job + literacy - penalty, config.weights.character)


# =============================================================================
# Capital
# =============================================================================

def score_capital_balance(balance: float, config: ScoringConfig) -> float:
    """Coarser balance bands than capacity's; not macro-adjusted."""
    thresholds = config.settings.capital_balance_thresholds
    if balance >= thresholds.high:
        return 40
    elif balance >= thresholds.medium:
        return 25
    elif balance >= thresholds.low:
        return 15
    return 0


def score_capital(applicant: NormalizedApplicant, config: ScoringConfig) -> float:
    """Capital: savings consistency, cash-flow stability and reserves."""
    settings = config.settings
    points = (
        _band(applicant.savings_consistency_score, settings.savings_thresholds, 50, 30, 20, 10)
        + _band(applicant.cash_flow_stability, settings.cash_flow_thresholds, 40, 25, 15, 0)
        + score_capital_balance(applicant.average_daily_balance, config)
    )
    return _clamp(points, config.weights.capital)


# =============================================================================
# Collateral
# =============================================================================

def score_collateral(applicant: NormalizedApplicant, config: ScoringConfig) -> float:
    """
    Collateral: loan-to-value and liquidity, scaled by collateral type.

    The loan-type multiplier zeroes this category for unsecured credit
    cards.

    Args:
        applicant: Normalized applicant (reference currency)
        config: Resolved scoring configuration

    Returns:
        Collateral points, at most the collateral weight
    """
    rule = config.collateral_rule(applicant.collateral_type)

    if applicant.collateral_value > 0:
        ltv = applicant.monthly_debt_payments / applicant.collateral_value
    else:
        ltv = 1.0
    ltv_points = rule.max_score * (0.6 if ltv <= 1.0 else 0.2)
    liquidity_points = rule.max_score * LIQUIDITY_SHARE[applicant.collateral_liquidity]

    points = (
        (ltv_points + liquidity_points)
        * rule.multiplier
        * config.loan_type_adjustment.collateral_multiplier
    )
    return _clamp(points, config.weights.collateral)


# =============================================================================
# Conditions
# =============================================================================

def score_term(months: int) -> float:
    if months <= 12:
        return 10
    elif months <= 24:
        return 5
    return 0


def score_conditions(applicant: NormalizedApplicant, config: ScoringConfig) -> float:
    """Conditions: term, macro risk, sector risk and loan purpose."""
    points = (
        score_term(applicant.loan_term_months)
        + MACRO_RISK_POINTS[applicant.macro_risk_level]
        + SECTOR_RISK_POINTS[applicant.sector_risk]
        + LOAN_PURPOSE_POINTS[applicant.loan_purpose]
    )
    weight = config.weights.conditions
    cap = min(weight * config.loan_type_adjustment.conditions_multiplier, weight)
    return _clamp(points, cap)


FACTOR_SCORERS: Dict[Category, FactorScorer] = {
    Category.CAPACITY: score_capacity,
    Category.CHARACTER: score_character,
    Category.CAPITAL: score_capital,
    Category.COLLATERAL: score_collateral,
    Category.CONDITIONS: score_conditions,
}
