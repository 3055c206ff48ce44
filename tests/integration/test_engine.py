"""
Integration tests for the CreditEngine.

These tests verify:
1. End-to-end scoring of a local-currency applicant
2. Zero-income and secured-card paths
3. Determinism and score bounds
4. Configuration and validation errors fail fast and are audited
5. Decisions fall back to review on unexpected errors
6. Audit records are emitted once per call with amounts redacted
"""

import copy

import pytest

from credit_engine.application.dto import EvaluationResult
from credit_engine.domain.entities import DecisionStatus, OfferType, Tier
from credit_engine.domain.exceptions import ConfigurationError, ValidationError
from credit_engine.infrastructure.audit import REDACTED
from credit_engine.service.scoring.aggregator import ZERO_INCOME_DISCLOSURE
from credit_engine.service.scoring.settings import ScoringOptions


# =============================================================================
# Scoring
# =============================================================================

class TestScoring:
    """Tests for CreditEngine.score()."""

    @pytest.mark.asyncio
    async def test_example_applicant(self, engine, example_applicant):
        """Small local-currency amounts convert to a mid-tier score."""
        result = await engine.score(example_applicant)

        assert result.classification in (Tier.FAIR, Tier.GOOD)
        assert result.total_score == 563
        assert result.recommended_credit_limit == 139000
        assert result.notes
        assert any(note.startswith("Macroeconomic adjustment factor") for note in result.notes)
        assert result.engine == "five-c-creditworthiness"

    @pytest.mark.asyncio
    async def test_timings_recorded(self, engine, example_applicant):
        result = await engine.score(example_applicant)
        for component in ("config", "validation", "normalization", "capacity", "aggregation"):
            assert component in result.timings

    @pytest.mark.asyncio
    async def test_zero_income_timings_recorded(self, engine, audit_sink, strong_applicant):
        result = await engine.score({**strong_applicant, "monthlyIncome": 0})

        assert "aggregation" in result.timings
        assert "capacity" not in result.timings
        assert audit_sink.last["timings"] == result.timings

    @pytest.mark.asyncio
    async def test_unknown_collateral_type_scored(self, engine, audit_sink, example_applicant):
        """An unrecognized collateral type is scored as other collateral."""
        data = {**example_applicant, "collateralValue": 0, "collateralType": "boat"}
        result = await engine.score(data)

        assert result.total_score == 563
        assert audit_sink.last["errors"] == []

    @pytest.mark.asyncio
    async def test_input_not_mutated(self, engine, strong_applicant):
        snapshot = copy.deepcopy(strong_applicant)
        await engine.evaluate(strong_applicant, {"loanType": "personal"})
        assert strong_applicant == snapshot

    @pytest.mark.asyncio
    async def test_deterministic(self, engine, strong_applicant):
        """Same input and configuration give equal results."""
        first = await engine.score(strong_applicant)
        second = await engine.score(strong_applicant)
        assert first == second

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {},
        {"monthlyIncome": 1, "monthlyDebtPayments": 10**7, "bankruptcies": 3},
        {"employmentStability": "stable", "industryRisk": "low", "savingsConsistencyScore": 100},
    ])
    async def test_total_within_bounds(self, engine, strong_applicant, overrides):
        options = {"fetchExternalData": True, "enableMonitoring": True}
        result = await engine.score({**strong_applicant, **overrides}, options)
        assert 0 <= result.total_score <= 1000

    @pytest.mark.asyncio
    async def test_zero_income(self, engine, enrichment_source, strong_applicant):
        """Zero income skips scoring and enrichment entirely."""
        data = {**strong_applicant, "monthlyIncome": 0}
        result = await engine.score(data, {"fetchExternalData": True})

        assert result.total_score == 0
        assert result.classification == Tier.POOR
        assert result.recommended_credit_limit == 0
        assert result.disclosures == (ZERO_INCOME_DISCLOSURE,)
        assert enrichment_source.call_count == 0

    @pytest.mark.asyncio
    async def test_options_model_and_mapping_agree(self, engine, strong_applicant):
        from_mapping = await engine.score(strong_applicant, {"loanType": "mortgage"})
        from_model = await engine.score(strong_applicant, ScoringOptions(loan_type="mortgage"))
        assert from_mapping == from_model


# =============================================================================
# Secured Card
# =============================================================================

class TestSecuredCard:
    """Tests for the secured-card path."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("deposit,expected", [
        (13900, 13900),
        (1000, 6811),
        (50000, 27800),
    ])
    async def test_approved_at_clamped_deposit(self, engine, example_applicant, deposit, expected):
        """The approved amount is the deposit clamped to [49, 200] reference units."""
        data = {**example_applicant, "downPayment": deposit, "requestedAmount": 10**6}
        evaluation = await engine.evaluate(data, {"isSecuredCard": True})

        decision = evaluation.outcome.decision
        assert decision.status == DecisionStatus.APPROVED
        assert decision.approved_amount == expected
        assert evaluation.score.recommended_credit_limit == expected

    @pytest.mark.asyncio
    async def test_zero_income_secured_card(self, engine, example_applicant):
        data = {**example_applicant, "monthlyIncome": 0, "downPayment": 13900}
        evaluation = await engine.evaluate(data, {"isSecuredCard": True})

        assert evaluation.score.total_score == 0
        assert evaluation.outcome.decision.status == DecisionStatus.APPROVED
        assert evaluation.outcome.decision.approved_amount == 13900
        assert [offer.offer_type for offer in evaluation.offers] == [OfferType.PRIMARY]


# =============================================================================
# Errors
# =============================================================================

class TestErrors:
    """Tests for validation and configuration failures."""

    @pytest.mark.asyncio
    async def test_invalid_weights_fail_before_enrichment(self, engine, enrichment_source, example_applicant):
        with pytest.raises(ConfigurationError) as exc_info:
            await engine.score(example_applicant, {"weights": {"capacity": 100}, "fetchExternalData": True})

        assert exc_info.value.config_key == "weights"
        assert enrichment_source.call_count == 0

    @pytest.mark.asyncio
    async def test_invalid_applicant(self, engine, audit_sink, example_applicant):
        data = {**example_applicant, "monthlyIncome": -5}
        with pytest.raises(ValidationError):
            await engine.score(data)

        record = audit_sink.last
        assert record["operation"] == "score"
        assert record["result"] is None
        assert record["errors"][0]["code"] == "VALIDATION_ERROR"
        assert record["errors"][0]["handled"] is False

    @pytest.mark.asyncio
    async def test_unexpected_error_audited(self, engine, audit_sink, example_applicant, monkeypatch):
        """Internal scoring errors propagate after an audit record is emitted."""
        def explode(*args, **kwargs):
            raise RuntimeError("normalizer crashed")

        monkeypatch.setattr("credit_engine.application.services.engine.normalize", explode)

        with pytest.raises(RuntimeError):
            await engine.score(example_applicant)

        record = audit_sink.last
        assert record["operation"] == "score"
        assert record["result"] is None
        assert record["errors"][0]["type"] == "RuntimeError"
        assert record["errors"][0]["handled"] is False

    @pytest.mark.asyncio
    async def test_invalid_lending_config(self, engine, example_applicant):
        result = await engine.score(example_applicant)
        with pytest.raises(ConfigurationError):
            engine.decide(result, example_applicant, {"maxApr": 250})

    @pytest.mark.asyncio
    async def test_decision_failure_falls_back_to_review(self, engine, audit_sink, example_applicant, monkeypatch):
        """Unexpected decision errors produce a review decision without offers."""
        def explode(*args, **kwargs):
            raise RuntimeError("pricing table corrupted")

        monkeypatch.setattr(
            "credit_engine.application.services.engine.make_lending_decision",
            explode,
        )

        result = await engine.score(example_applicant)
        outcome = engine.decide(result, example_applicant)

        assert outcome.decision.status == DecisionStatus.REVIEW
        assert outcome.offers == []
        record = audit_sink.last
        assert record["operation"] == "decide"
        assert record["errors"][0]["type"] == "RuntimeError"
        assert record["errors"][0]["handled"] is True


# =============================================================================
# Audit
# =============================================================================

class TestAudit:
    """Tests for audit records."""

    @pytest.mark.asyncio
    async def test_one_record_per_call(self, engine, audit_sink, strong_applicant):
        await engine.evaluate(strong_applicant)
        assert [record["operation"] for record in audit_sink.records] == ["score", "decide"]

    @pytest.mark.asyncio
    async def test_amounts_redacted(self, engine, audit_sink, strong_applicant):
        await engine.score(strong_applicant)
        data = audit_sink.last["input"]["data"]

        assert data["monthlyIncome"] == REDACTED
        assert data["averageDailyBalance"] == REDACTED
        assert data["phoneNumber"] == REDACTED
        assert data["utilityPayments"] == 0.83
        assert data["employmentStability"] == "moderate"
        assert audit_sink.last["result"]["total_score"] > 0

    @pytest.mark.asyncio
    async def test_per_call_logger_option(self, engine, audit_sink, example_applicant):
        """A logger in the options receives the record instead of the default sink."""
        received = []
        await engine.score(example_applicant, {"logger": received.append, "enableMonitoring": True})

        assert len(received) == 1
        assert audit_sink.records == []
        assert "logger" not in received[0]["input"]["options"]
        assert received[0]["input"]["options"]["enableMonitoring"] is True

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_break_scoring(self, engine, example_applicant):
        def broken_sink(record):
            raise IOError("disk full")

        result = await engine.score(example_applicant, {"logger": broken_sink})
        assert result.total_score == 563


# =============================================================================
# Evaluation
# =============================================================================

class TestEvaluate:
    """Tests for CreditEngine.evaluate()."""

    @pytest.mark.asyncio
    async def test_full_evaluation(self, engine, strong_applicant):
        data = {**strong_applicant, "requestedAmount": 100000, "requestedTermMonths": 24}
        evaluation = await engine.evaluate(data, {"loanType": "personal"})

        assert isinstance(evaluation, EvaluationResult)
        assert evaluation.score.classification == Tier.EXCELLENT
        assert evaluation.outcome.decision.status == DecisionStatus.APPROVED
        assert evaluation.outcome.decision.approved_amount == 100000
        assert [offer.offer_type for offer in evaluation.offers] == [
            OfferType.PRIMARY,
            OfferType.EXTENDED_TERM,
        ]

        payload = evaluation.to_dict()
        assert set(payload) == {"score", "decision", "offers"}
        assert payload["decision"]["status"] == "approved"

    @pytest.mark.asyncio
    async def test_denied_applicant(self, engine, example_applicant):
        data = {
            **example_applicant,
            "monthlyDebtPayments": 5000,
            "employmentStability": "unstable",
            "rentPayments": 0.2,
            "bankruptcies": 1,
        }
        evaluation = await engine.evaluate(data)

        assert evaluation.outcome.decision.status == DecisionStatus.DENIED
        assert evaluation.offers == []
