"""
Scoring Settings for the Five-C Creditworthiness Engine.

This module contains all configurable parameters of the scoring system and
the resolver that merges them with per-call caller options. Defaults can be
adjusted via environment variables for tuning or market-specific rollouts.

Environment variables use the SCORING_ prefix and ``__`` for nesting:
    SCORING_MAX_SCORE=1000
    SCORING_THRESHOLDS__EXCELLENT=720
    SCORING_DEFAULT_CURRENCY_RATE=139

Usage:
    from credit_engine.service.scoring.settings import resolve_scoring_config

    config = resolve_scoring_config({"loanType": "personal", "currencyRate": 1.0})
    config.weights.capacity  # 450.0
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel, to_snake
from pydantic_settings import BaseSettings, SettingsConfigDict

from credit_engine.domain.entities import CollateralType, LoanType, Tier
from credit_engine.domain.exceptions import ConfigurationError


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class CategoryWeights(_ConfigModel):
    """Maximum points per scoring category."""

    capacity: float = Field(default=500, ge=0)
    character: float = Field(default=300, ge=0)
    capital: float = Field(default=150, ge=0)
    collateral: float = Field(default=25, ge=0)
    conditions: float = Field(default=25, ge=0)

    @property
    def total(self) -> float:
        return self.capacity + self.character + self.capital + self.collateral + self.conditions


class TierThresholds(_ConfigModel):
    """Minimum total score for each tier above Poor."""

    fair: float = 400
    good: float = 500
    very_good: float = 600
    excellent: float = 700

    @model_validator(mode="after")
    def check_strictly_increasing(self) -> "TierThresholds":
        if not (self.fair < self.good < self.very_good < self.excellent):
            raise ValueError("thresholds must be strictly increasing: fair < good < veryGood < excellent")
        return self

    def for_tier(self, tier: Tier) -> float:
        """Threshold of a tier (Poor starts at zero)."""
        return {
            Tier.POOR: 0.0,
            Tier.FAIR: self.fair,
            Tier.GOOD: self.good,
            Tier.VERY_GOOD: self.very_good,
            Tier.EXCELLENT: self.excellent,
        }[tier]

    def classify(self, total_score: float) -> Tier:
        """Highest tier whose threshold the score meets, else Poor."""
        for tier in reversed(list(Tier)):
            if tier != Tier.POOR and total_score >= self.for_tier(tier):
                return tier
        return Tier.POOR


class CreditLimits(_ConfigModel):
    """Unsecured credit limit per tier, in reference currency."""

    excellent: float = Field(default=5000, ge=0)
    very_good: float = Field(default=2000, ge=0)
    good: float = Field(default=1000, ge=0)
    fair: float = Field(default=500, ge=0)
    poor: float = Field(default=200, ge=0)

    def for_tier(self, tier: Tier) -> float:
        return {
            Tier.POOR: self.poor,
            Tier.FAIR: self.fair,
            Tier.GOOD: self.good,
            Tier.VERY_GOOD: self.very_good,
            Tier.EXCELLENT: self.excellent,
        }[tier]


class MacroConditions(_ConfigModel):
    """Caller-supplied macroeconomic inputs."""

    inflation_rate: float = 0.02
    unemployment_rate: float = 0.05

    def adjustment_factor(self, baseline_inflation: float, baseline_unemployment: float) -> float:
        """Deviation from baseline conditions, clamped to [0.8, 1.2]."""
        factor = (
            1.0
            + (self.inflation_rate - baseline_inflation)
            + (self.unemployment_rate - baseline_unemployment)
        )
        return max(0.8, min(1.2, factor))


class DebtServiceThresholds(_ConfigModel):
    """Debt-service ratio upper bounds for the capacity bands."""

    excellent: float = 0.15
    good: float = 0.25
    fair: float = 0.35


class BalanceThresholds(_ConfigModel):
    """Average daily balance lower bounds, in reference currency."""

    high: float = 5000
    medium: float = 1000
    low: float = 0


class BandThresholds(_ConfigModel):
    """High/medium/low cut-offs for 0-100 scores."""

    high: float = 80
    medium: float = 60
    low: float = 40


class CollateralTypeRule(_ConfigModel):
    multiplier: float = Field(..., ge=0)
    max_score: float = Field(..., ge=0)


class LoanTypeAdjustment(_ConfigModel):
    collateral_multiplier: float = Field(..., ge=0)
    conditions_multiplier: float = Field(..., ge=0)


def _default_weight_presets() -> Dict[LoanType, CategoryWeights]:
    return {
        LoanType.CREDIT_CARD: CategoryWeights(capacity=500, character=300, capital=150, collateral=25, conditions=25),
        LoanType.PERSONAL: CategoryWeights(capacity=450, character=300, capital=150, collateral=50, conditions=50),
        LoanType.MORTGAGE: CategoryWeights(capacity=400, character=250, capital=150, collateral=100, conditions=100),
        LoanType.BUSINESS: CategoryWeights(capacity=450, character=250, capital=150, collateral=50, conditions=100),
    }


def _default_collateral_types() -> Dict[CollateralType, CollateralTypeRule]:
    return {
        CollateralType.REAL_ESTATE: CollateralTypeRule(multiplier=1.2, max_score=50),
        CollateralType.VEHICLE: CollateralTypeRule(multiplier=1.0, max_score=30),
        CollateralType.SECURED_DEPOSIT: CollateralTypeRule(multiplier=1.0, max_score=25),
        CollateralType.OTHER: CollateralTypeRule(multiplier=0.8, max_score=20),
    }


def _default_loan_type_adjustments() -> Dict[LoanType, LoanTypeAdjustment]:
    # Unsecured credit cards ignore collateral entirely; see ScoringConfig.
    return {
        LoanType.CREDIT_CARD: LoanTypeAdjustment(collateral_multiplier=0.0, conditions_multiplier=0.5),
        LoanType.PERSONAL: LoanTypeAdjustment(collateral_multiplier=1.0, conditions_multiplier=1.0),
        LoanType.MORTGAGE: LoanTypeAdjustment(collateral_multiplier=1.2, conditions_multiplier=0.8),
        LoanType.BUSINESS: LoanTypeAdjustment(collateral_multiplier=0.8, conditions_multiplier=1.2),
    }


def _default_red_flags() -> Dict[str, float]:
    return {
        "frequentOverdrafts": 15,
        "lateUtilityPayments": 10,
        "legalDisputes": 20,
        "highRiskTransactions": 10,
    }


class ScoringSettings(BaseSettings):
    """
    Configurable parameters for the five-category scoring algorithm.

    All settings can be overridden via environment variables with SCORING_ prefix.
    Monetary values are in the reference currency.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCORING_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Score Scale ===
    max_score: float = Field(
        default=1000,
        gt=0,
        description="Category weights must add up to this value",
    )
    default_loan_type: LoanType = Field(
        default=LoanType.CREDIT_CARD,
        description="Loan type used when the caller does not name one",
    )

    # === Category Weights ===
    weights: CategoryWeights = Field(
        default_factory=CategoryWeights,
        description="Fallback weights for loan types without a preset",
    )
    weight_presets: Dict[LoanType, CategoryWeights] = Field(
        default_factory=_default_weight_presets,
        description="Per-loan-type category weights",
    )

    # === Tiers and Limits ===
    thresholds: TierThresholds = Field(default_factory=TierThresholds)
    credit_limits: CreditLimits = Field(default_factory=CreditLimits)
    secured_card_min_deposit: float = Field(
        default=49,
        ge=0,
        description="Lowest secured-card limit (reference currency)",
    )
    secured_card_max_deposit: float = Field(
        default=200,
        ge=0,
        description="Highest secured-card limit (reference currency)",
    )

    # === Capacity ===
    debt_service_thresholds: DebtServiceThresholds = Field(default_factory=DebtServiceThresholds)
    balance_thresholds: BalanceThresholds = Field(default_factory=BalanceThresholds)
    baseline_inflation_rate: float = Field(
        default=0.02,
        description="Inflation rate at which the macro factor is neutral",
    )
    baseline_unemployment_rate: float = Field(
        default=0.05,
        description="Unemployment rate at which the macro factor is neutral",
    )

    # === Character ===
    literacy_thresholds: BandThresholds = Field(default_factory=BandThresholds)
    high_income_threshold: float = Field(
        default=5000,
        ge=0,
        description="Monthly income at or above which literacy points are compressed",
    )
    behavioral_red_flags: Dict[str, float] = Field(
        default_factory=_default_red_flags,
        description="Points deducted per behavioural red flag",
    )

    # === Capital ===
    savings_thresholds: BandThresholds = Field(default_factory=BandThresholds)
    cash_flow_thresholds: BandThresholds = Field(default_factory=BandThresholds)
    capital_balance_thresholds: BalanceThresholds = Field(
        default_factory=lambda: BalanceThresholds(high=10000, medium=5000, low=1000),
    )

    # === Collateral / Conditions ===
    collateral_types: Dict[CollateralType, CollateralTypeRule] = Field(
        default_factory=_default_collateral_types,
    )
    loan_type_adjustments: Dict[LoanType, LoanTypeAdjustment] = Field(
        default_factory=_default_loan_type_adjustments,
    )
    secured_card_collateral_multiplier: float = Field(
        default=1.0,
        ge=0,
        description="Collateral multiplier for credit cards on the secured-card path",
    )

    # === Bonus Bounds ===
    external_bonus_max: float = Field(default=30, ge=0)
    monitoring_bound: float = Field(default=10, ge=0)

    # === Currency ===
    default_currency_rate: float = Field(
        default=139.0,
        gt=0,
        description="Local currency units per reference currency unit",
    )


@lru_cache
def get_scoring_settings() -> ScoringSettings:
    """Get cached scoring settings instance."""
    return ScoringSettings()


scoring_settings = get_scoring_settings()


class ScoringOptions(BaseModel):
    """
    Per-call scoring options.

    Keys may be given in snake_case or camelCase (``isSecuredCard``).
    Partial ``weights``, ``thresholds`` and ``credit_limits`` mappings
    override the configured defaults key by key.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    weights: Optional[Dict[str, float]] = None
    thresholds: Optional[Dict[str, float]] = None
    credit_limits: Optional[Dict[str, float]] = None
    loan_type: Optional[LoanType] = None
    is_secured_card: bool = False
    fetch_external_data: bool = False
    enable_monitoring: bool = False
    macro_conditions: Optional[MacroConditions] = None
    currency_rate: Optional[float] = Field(default=None, gt=0)
    logger: Optional[Callable[[Dict[str, Any]], None]] = Field(default=None, exclude=True)
    enrichment_timeout: Optional[float] = Field(default=None, gt=0)

    def redacted(self) -> Dict[str, Any]:
        """Options as plain data for audit records."""
        return self.model_dump(mode="json", exclude={"logger"})


@dataclass(frozen=True)
class ScoringConfig:
    """
    Scoring configuration resolved for a single call.

    Combines the environment-level settings with caller overrides and
    pre-computes the macro-adjusted capacity thresholds.
    """

    settings: ScoringSettings
    weights: CategoryWeights
    thresholds: TierThresholds
    credit_limits: CreditLimits
    loan_type: LoanType
    is_secured_card: bool
    fetch_external_data: bool
    enable_monitoring: bool
    currency_rate: float
    macro_adjustment_factor: float
    enrichment_timeout: Optional[float] = None

    @property
    def debt_service_thresholds(self) -> DebtServiceThresholds:
        base = self.settings.debt_service_thresholds
        factor = self.macro_adjustment_factor
        return DebtServiceThresholds(
            excellent=base.excellent * factor,
            good=base.good * factor,
            fair=base.fair * factor,
        )

    @property
    def balance_thresholds(self) -> BalanceThresholds:
        base = self.settings.balance_thresholds
        factor = self.macro_adjustment_factor
        return BalanceThresholds(
            high=base.high * factor,
            medium=base.medium * factor,
            low=base.low,
        )

    @property
    def loan_type_adjustment(self) -> LoanTypeAdjustment:
        adjustments = self.settings.loan_type_adjustments
        adjustment = adjustments.get(self.loan_type, adjustments[LoanType.CREDIT_CARD])
        if self.loan_type == LoanType.CREDIT_CARD and self.is_secured_card:
            return adjustment.model_copy(
                update={"collateral_multiplier": self.settings.secured_card_collateral_multiplier}
            )
        return adjustment

    def collateral_rule(self, collateral_type: CollateralType) -> CollateralTypeRule:
        rules = self.settings.collateral_types
        return rules.get(collateral_type, rules[CollateralType.OTHER])

    def to_local(self, amount: float) -> float:
        """Convert a reference-currency amount to local currency."""
        return amount * self.currency_rate


Model = TypeVar("Model", bound=BaseModel)


def _merge(
    model_cls: Type[Model],
    base: Model,
    overrides: Optional[Mapping[str, Any]],
    config_key: str,
) -> Model:
    """Apply key-by-key overrides (snake or camel case) to a config model."""
    if not overrides:
        return base
    merged = base.model_dump()
    for key, value in overrides.items():
        merged[to_snake(key)] = value
    try:
        return model_cls.model_validate(merged)
    except PydanticValidationError as e:
        raise ConfigurationError(config_key, _first_error(e))


def _first_error(error: PydanticValidationError) -> str:
    details = error.errors()
    if not details:
        return str(error)
    first = details[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


def parse_scoring_options(
    options: Union[ScoringOptions, Mapping[str, Any], None],
) -> ScoringOptions:
    """Coerce caller options into ``ScoringOptions``."""
    if options is None:
        return ScoringOptions()
    if isinstance(options, ScoringOptions):
        return options
    try:
        return ScoringOptions.model_validate(dict(options))
    except PydanticValidationError as e:
        raise ConfigurationError("options", _first_error(e))


def resolve_scoring_config(
    options: Union[ScoringOptions, Mapping[str, Any], None] = None,
    settings: ScoringSettings = scoring_settings,
) -> ScoringConfig:
    """
    Merge defaults with caller options and validate the result.

    Weights start from the loan type's preset, then caller overrides apply.
    The merged weights must add up to ``settings.max_score`` and the tier
    thresholds must be strictly increasing.

    Args:
        options: Caller options (model or mapping)
        settings: Scoring settings (uses defaults if not provided)

    Returns:
        Resolved, immutable ScoringConfig

    Raises:
        ConfigurationError: If options or the merged configuration are invalid
    """
    opts = parse_scoring_options(options)
    loan_type = opts.loan_type or settings.default_loan_type

    base_weights = settings.weight_presets.get(loan_type, settings.weights)
    weights = _merge(CategoryWeights, base_weights, opts.weights, "weights")
    if abs(weights.total - settings.max_score) > 1e-9:
        raise ConfigurationError(
            "weights",
            f"category weights sum to {weights.total:g}, expected {settings.max_score:g}",
        )

    thresholds = _merge(TierThresholds, settings.thresholds, opts.thresholds, "thresholds")
    if thresholds.excellent > settings.max_score:
        raise ConfigurationError("thresholds", "excellent threshold exceeds the maximum score")

    credit_limits = _merge(CreditLimits, settings.credit_limits, opts.credit_limits, "creditLimits")

    if settings.secured_card_min_deposit > settings.secured_card_max_deposit:
        raise ConfigurationError("securedCardDeposit", "minimum deposit exceeds maximum deposit")

    macro_factor = 1.0
    if opts.macro_conditions is not None:
        macro_factor = opts.macro_conditions.adjustment_factor(
            settings.baseline_inflation_rate,
            settings.baseline_unemployment_rate,
        )

    return ScoringConfig(
        settings=settings,
        weights=weights,
        thresholds=thresholds,
        credit_limits=credit_limits,
        loan_type=loan_type,
        is_secured_card=opts.is_secured_card,
        fetch_external_data=opts.fetch_external_data,
        enable_monitoring=opts.enable_monitoring,
        currency_rate=opts.currency_rate or settings.default_currency_rate,
        macro_adjustment_factor=macro_factor,
        enrichment_timeout=opts.enrichment_timeout,
    )
