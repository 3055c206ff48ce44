"""
Unit Tests for score aggregation.

These tests verify:
1. Totals are rounded half-up and clamped to the weight sum
2. Tier classification is monotonic in the total score
3. Monitoring adjustments use the last three payments or the utility/rent proxy
4. Recommended limits, disclosures and notes follow the tier and product

Test Categories:
- TestRounding: round_half_up()
- TestClassification: TierThresholds.classify()
- TestMonitoring: monitoring_adjustment()
- TestEnrichmentBonus: enrichment_bonus()
- TestAggregate: aggregate() and zero_income_result()
"""

import pytest

from credit_engine.domain.entities import Category, EnrichmentSignals, Tier
from credit_engine.service.scoring.aggregator import (
    ZERO_INCOME_DISCLOSURE,
    Adjustment,
    aggregate,
    enrichment_bonus,
    monitoring_adjustment,
    round_half_up,
    zero_income_result,
)
from credit_engine.service.scoring.factors import FACTOR_SCORERS
from credit_engine.service.scoring.normalizer import normalize, parse_applicant
from credit_engine.service.scoring.settings import (
    ScoringSettings,
    TierThresholds,
    resolve_scoring_config,
)


# =============================================================================
# Test Fixtures - Helper Functions
# =============================================================================

BASE_APPLICANT = {
    "monthlyIncome": 6000,
    "monthlyDebtPayments": 200,
    "monthlyExpenses": 1400,
    "averageDailyBalance": 2500,
    "utilityPayments": 0.83,
    "rentPayments": 1.0,
    "employmentStability": "moderate",
    "industryRisk": "medium",
    "loanPurpose": "neutral",
    "financialLiteracyScore": 70,
    "savingsConsistencyScore": 66.67,
    "cashFlowStability": 65,
    "residenceStabilityMonths": 12,
}


def make_config(settings=None, **options):
    options.setdefault("currencyRate", 1.0)
    if settings is None:
        return resolve_scoring_config(options)
    return resolve_scoring_config(options, settings)


def make_applicant(config, **overrides):
    return normalize(parse_applicant({**BASE_APPLICANT, **overrides}), config)


def score_categories(applicant, config):
    return {category: scorer(applicant, config) for category, scorer in FACTOR_SCORERS.items()}


def flat_scores(capacity=0, character=0, capital=0, collateral=0, conditions=0):
    return {
        Category.CAPACITY: capacity,
        Category.CHARACTER: character,
        Category.CAPITAL: capital,
        Category.COLLATERAL: collateral,
        Category.CONDITIONS: conditions,
    }


def payments(*on_time):
    return [{"onTime": flag} for flag in on_time]


# =============================================================================
# Rounding and Classification
# =============================================================================

class TestRounding:
    """Tests for round_half_up()."""

    @pytest.mark.parametrize("value,expected", [
        (767.5, 768),
        (2.5, 3),
        (2.49, 2),
        (0.0, 0),
    ])
    def test_half_rounds_up(self, value, expected):
        assert round_half_up(value) == expected


class TestClassification:
    """Tests for TierThresholds.classify()."""

    @pytest.mark.parametrize("total,tier", [
        (0, Tier.POOR),
        (399, Tier.POOR),
        (400, Tier.FAIR),
        (499, Tier.FAIR),
        (500, Tier.GOOD),
        (600, Tier.VERY_GOOD),
        (699, Tier.VERY_GOOD),
        (700, Tier.EXCELLENT),
        (1000, Tier.EXCELLENT),
    ])
    def test_boundaries(self, total, tier):
        assert TierThresholds().classify(total) == tier

    def test_monotonic(self):
        """A higher total never lands in a lower tier."""
        thresholds = TierThresholds()
        ranks = [thresholds.classify(total).rank for total in range(0, 1001)]
        assert ranks == sorted(ranks)

    def test_custom_thresholds(self):
        thresholds = TierThresholds(fair=300, good=450, very_good=650, excellent=800)
        assert thresholds.classify(449) == Tier.FAIR
        assert thresholds.classify(800) == Tier.EXCELLENT


# =============================================================================
# Monitoring
# =============================================================================

class TestMonitoring:
    """Tests for monitoring_adjustment()."""

    def test_disabled_by_default(self):
        config = make_config()
        adjustment = monitoring_adjustment(make_applicant(config), config)
        assert adjustment.points == 0
        assert adjustment.notes == []

    def test_excellent_recent_history(self):
        config = make_config(enableMonitoring=True)
        applicant = make_applicant(config, paymentHistory=payments(True, True, True), utilizationRate=0.1)
        adjustment = monitoring_adjustment(applicant, config)
        assert adjustment.points == 10
        assert "Added 10 points for excellent payment history." in adjustment.notes

    def test_only_last_three_payments_count(self):
        config = make_config(enableMonitoring=True)
        applicant = make_applicant(config, paymentHistory=payments(False, True, True, True))
        assert monitoring_adjustment(applicant, config).points == 10

    def test_poor_history_with_high_utilization(self):
        """Late payments and utilization above 30% both deduct."""
        config = make_config(enableMonitoring=True)
        applicant = make_applicant(config, paymentHistory=payments(True, True, False), utilizationRate=0.5)
        adjustment = monitoring_adjustment(applicant, config)
        assert adjustment.points == -10
        assert "Deducted 5 points for high utilization rate." in adjustment.notes

    def test_proxy_without_history(self):
        """Utility and rent rates stand in for a missing payment history."""
        config = make_config(enableMonitoring=True)
        assert monitoring_adjustment(make_applicant(config), config).points == 10
        fair = make_applicant(config, utilityPayments=0.6, rentPayments=0.8)
        assert monitoring_adjustment(fair, config).points == 5

    def test_proxy_ignores_utilization(self):
        config = make_config(enableMonitoring=True)
        applicant = make_applicant(config, utilityPayments=0, rentPayments=0, utilizationRate=0.9)
        assert monitoring_adjustment(applicant, config).points == -5


# =============================================================================
# Enrichment Bonus
# =============================================================================

class TestEnrichmentBonus:
    """Tests for enrichment_bonus()."""

    def test_all_signals(self):
        signals = EnrichmentSignals(
            consistent_transactions=True,
            verified_rental_history=True,
            consistent_savings=True,
            low_debt_payments=True,
            high_financial_literacy=True,
        )
        bonus = enrichment_bonus(signals, make_config())
        assert bonus.points == 30
        assert len(bonus.notes) == 5

    def test_partial_signals(self):
        signals = EnrichmentSignals(consistent_transactions=True, consistent_savings=True)
        bonus = enrichment_bonus(signals, make_config())
        assert bonus.points == 15
        assert bonus.notes == [
            "Added 10 points for consistent bank transactions.",
            "Added 5 points for consistent savings behavior.",
        ]

    def test_capped_by_settings(self):
        config = make_config(ScoringSettings(external_bonus_max=12))
        signals = EnrichmentSignals(consistent_transactions=True, consistent_savings=True)
        assert enrichment_bonus(signals, config).points == 12

    def test_no_signals(self):
        assert enrichment_bonus(EnrichmentSignals(), make_config()).points == 0


# =============================================================================
# Aggregation
# =============================================================================

class TestAggregate:
    """Tests for aggregate() and zero_income_result()."""

    def test_base_applicant(self):
        """Category scores add up to 767.5, which rounds half-up to 768."""
        config = make_config()
        applicant = make_applicant(config)
        result = aggregate(applicant, score_categories(applicant, config), config)

        assert result.total_score == 768
        assert result.classification == Tier.EXCELLENT
        assert result.recommended_credit_limit == 5000
        assert result.breakdown.capacity == 425
        assert result.breakdown.collateral == 0
        assert result.disclosures == (
            "HIGH_INCOME_ADJUSTMENT: Financial literacy score contribution reduced due to high income.",
            "VERIFICATION_REQUIRED: Submit bank statements or receipts within 30 days to verify data.",
        )
        assert "Macroeconomic adjustment factor: 1.00 based on provided conditions." in result.notes
        assert result.thresholds["veryGood"] == 600
        assert result.weights["capacity"] == 500

    def test_limit_converted_to_local_currency(self):
        config = make_config(currencyRate=139.0)
        applicant = make_applicant(config)
        result = aggregate(applicant, flat_scores(capacity=500), config)
        # Good tier: 1000 reference units
        assert result.classification == Tier.GOOD
        assert result.recommended_credit_limit == 139000
        assert "Currency rate used: 1 reference unit = 139 local units." in result.notes

    def test_monitoring_scales_limit(self):
        config = make_config(enableMonitoring=True)
        applicant = make_applicant(config, paymentHistory=payments(True, True, True), utilizationRate=0.1)
        result = aggregate(applicant, score_categories(applicant, config), config)

        assert result.breakdown.monitoring == 10
        assert result.total_score == 778
        assert result.recommended_credit_limit == 5500

    def test_negative_monitoring_disclosed(self):
        config = make_config(enableMonitoring=True)
        applicant = make_applicant(config, utilityPayments=0, rentPayments=0)
        result = aggregate(applicant, flat_scores(capacity=300), config)
        assert result.breakdown.monitoring == -5
        assert any(d.startswith("MONITORING_WARNING") for d in result.disclosures)
        assert any(d.startswith("LOW_SCORE_NOTICE") for d in result.disclosures)

    def test_total_clamped_to_weight_sum(self):
        """Bonuses cannot push the total past the maximum score."""
        config = make_config()
        applicant = make_applicant(config)
        scores = flat_scores(capacity=500, character=300, capital=150, collateral=25, conditions=25)
        result = aggregate(applicant, scores, config, external=Adjustment(points=30))
        assert result.total_score == 1000
        assert result.breakdown.external_data == 30

    def test_external_notes_included(self):
        config = make_config()
        applicant = make_applicant(config)
        external = Adjustment(points=0, notes=["External data fetch timed out."])
        result = aggregate(applicant, flat_scores(), config, external=external)
        assert "External data fetch timed out." in result.notes

    @pytest.mark.parametrize("deposit,expected", [(500, 200), (150, 150), (10, 49)])
    def test_secured_card_limit_clamped(self, deposit, expected):
        """Secured-card limits follow the deposit within [49, 200]."""
        config = make_config(isSecuredCard=True)
        applicant = make_applicant(config, downPayment=deposit)
        result = aggregate(applicant, score_categories(applicant, config), config)
        assert result.recommended_credit_limit == expected
        assert "SECURED_CARD_DISCLOSURE: Credit limit equals refundable deposit." in result.disclosures

    def test_high_debt_service_disclosed(self):
        config = make_config()
        applicant = make_applicant(config, monthlyDebtPayments=3000)
        result = aggregate(applicant, score_categories(applicant, config), config)
        assert any(d.startswith("HIGH_DEBT_SERVICE_WARNING") for d in result.disclosures)

    def test_results_are_equal_for_equal_inputs(self):
        config = make_config()
        applicant = make_applicant(config)
        first = aggregate(applicant, score_categories(applicant, config), config, timings={"a": 1.0})
        second = aggregate(applicant, score_categories(applicant, config), config, timings={"a": 2.0})
        assert first == second

    def test_zero_income(self):
        config = make_config()
        applicant = make_applicant(config, monthlyIncome=0)
        result = zero_income_result(applicant, config)

        assert result.total_score == 0
        assert result.classification == Tier.POOR
        assert result.recommended_credit_limit == 0
        assert result.disclosures == (ZERO_INCOME_DISCLOSURE,)
        assert result.breakdown.total == 0
        assert result.is_zero_income

    def test_zero_income_secured_card_keeps_deposit_limit(self):
        config = make_config(isSecuredCard=True)
        applicant = make_applicant(config, monthlyIncome=0, downPayment=100)
        assert zero_income_result(applicant, config).recommended_credit_limit == 100
