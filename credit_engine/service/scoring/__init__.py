"""
Five-C Scoring Module for the Credit Engine
"""

from .settings import (
    ScoringConfig,
    ScoringOptions,
    ScoringSettings,
    get_scoring_settings,
    resolve_scoring_config,
    scoring_settings,
)
from .normalizer import normalize, parse_applicant
from .factors import (
    FACTOR_SCORERS,
    score_capacity,
    score_capital,
    score_character,
    score_collateral,
    score_conditions,
)
from .aggregator import (
    Adjustment,
    aggregate,
    enrichment_bonus,
    monitoring_adjustment,
    zero_income_result,
)

__all__ = [
    # Settings
    "ScoringConfig",
    "ScoringOptions",
    "ScoringSettings",
    "get_scoring_settings",
    "resolve_scoring_config",
    "scoring_settings",
    # Normalization
    "normalize",
    "parse_applicant",
    # Factor Scorers
    "FACTOR_SCORERS",
    "score_capacity",
    "score_capital",
    "score_character",
    "score_collateral",
    "score_conditions",
    # Aggregation
    "Adjustment",
    "aggregate",
    "enrichment_bonus",
    "monitoring_adjustment",
    "zero_income_result",
]
