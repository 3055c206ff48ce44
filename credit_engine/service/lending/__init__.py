"""
Lending Decision and Offer Module for the Credit Engine
"""

from .settings import (
    FeeDefinition,
    FixedFee,
    LendingSettings,
    PercentageFee,
    RiskBasedFee,
    TermAdjustment,
    get_lending_settings,
    lending_settings,
    resolve_lending_config,
    validate_lending_settings,
)
from .pricing import (
    AprSolution,
    amortization_schedule,
    calculate_fees,
    installment_payment,
    nominal_rate,
    solve_apr,
)
from .decision import (
    affordability_metrics,
    explain_decision,
    make_lending_decision,
    review_decision,
)
from .offers import generate_offers, required_documents

__all__ = [
    # Settings
    "FeeDefinition",
    "FixedFee",
    "LendingSettings",
    "PercentageFee",
    "RiskBasedFee",
    "TermAdjustment",
    "get_lending_settings",
    "lending_settings",
    "resolve_lending_config",
    "validate_lending_settings",
    # Pricing
    "AprSolution",
    "amortization_schedule",
    "calculate_fees",
    "installment_payment",
    "nominal_rate",
    "solve_apr",
    # Decision
    "affordability_metrics",
    "explain_decision",
    "make_lending_decision",
    "review_decision",
    # Offers
    "generate_offers",
    "required_documents",
]
