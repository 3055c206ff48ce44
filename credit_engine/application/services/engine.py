"""Credit engine - orchestrates scoring, lending decisions and offers."""

import asyncio
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional, Union

import structlog

from credit_engine.core.config import settings as app_settings
from credit_engine.core.metrics import (
    record_decision,
    record_enrichment,
    record_score,
    track_component,
    track_decision_latency,
    track_score_latency,
)
from credit_engine.domain.entities import (
    ApplicantProfile,
    LendingOutcome,
    NormalizedApplicant,
    ScoreResult,
)
from credit_engine.domain.exceptions import DomainException, EnrichmentUnavailable
from credit_engine.domain.interfaces import AuditLogger, EnrichmentSource
from credit_engine.application.dto import EvaluationResult
from credit_engine.infrastructure.audit import AuditRecord, AuditRecorder, redact
from credit_engine.service.lending import (
    LendingSettings,
    generate_offers,
    lending_settings,
    make_lending_decision,
    resolve_lending_config,
    review_decision,
)
from credit_engine.service.resilience import CircuitBreaker, RateLimiter
from credit_engine.service.scoring import (
    FACTOR_SCORERS,
    Adjustment,
    ScoringConfig,
    ScoringOptions,
    ScoringSettings,
    aggregate,
    enrichment_bonus,
    normalize,
    parse_applicant,
    resolve_scoring_config,
    scoring_settings,
    zero_income_result,
)
from credit_engine.service.scoring.settings import parse_scoring_options

logger = structlog.get_logger(__name__)

ApplicantData = Union[ApplicantProfile, Mapping[str, Any]]
OptionsInput = Union[ScoringOptions, Mapping[str, Any], None]

ENRICHMENT_NOTES = {
    "rate_limited": "Rate limit exceeded for external data fetch.",
    "circuit_open": "Circuit breaker open: External data fetch disabled.",
    "timeout": "External data fetch timed out.",
    "unconfigured": "No external data source configured.",
}
ENRICHMENT_FAILED_NOTE = "External data fetch failed."


def _raw_options(options: OptionsInput) -> Dict[str, Any]:
    """Options as plain data for the audit record, callbacks dropped."""
    if options is None:
        return {}
    if isinstance(options, ScoringOptions):
        return options.redacted()
    return {key: value for key, value in options.items() if not callable(value)}


def _options_sink(options: OptionsInput) -> Optional[AuditLogger]:
    if isinstance(options, ScoringOptions):
        return options.logger
    if isinstance(options, Mapping):
        sink = options.get("logger")
        return sink if callable(sink) else None
    return None


class CreditEngine:
    """
    Application service for creditworthiness scoring and lending decisions.

    Holds the only cross-call mutable state (rate limiter and circuit
    breaker), so independent engines never share enrichment budgets.
    """

    def __init__(
        self,
        enrichment_source: Optional[EnrichmentSource] = None,
        rate_limiter: Optional[RateLimiter] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        audit_recorder: Optional[AuditRecorder] = None,
        scoring: ScoringSettings = scoring_settings,
        lending: LendingSettings = lending_settings,
        enrichment_timeout: Optional[float] = None,
    ):
        self._enrichment_source = enrichment_source
        self._rate_limiter = rate_limiter or RateLimiter(
            max_calls=app_settings.rate_limit_max_calls,
            window_seconds=app_settings.rate_limit_window_seconds,
        )
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=app_settings.circuit_failure_threshold,
            reset_timeout=app_settings.circuit_reset_timeout_seconds,
            hysteresis_delay=app_settings.circuit_hysteresis_delay_seconds,
        )
        self._audit = audit_recorder or AuditRecorder()
        self._scoring_settings = scoring
        self._lending_settings = lending
        self._enrichment_timeout = enrichment_timeout or app_settings.enrichment_timeout

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    async def score(
        self,
        applicant_data: ApplicantData,
        options: OptionsInput = None,
    ) -> ScoreResult:
        """
        Score an applicant across the five categories.

        Args:
            applicant_data: Applicant record in local currency
            options: Scoring options (weights, thresholds, loan type, ...)

        Returns:
            ScoreResult

        Raises:
            ConfigurationError: If options or merged configuration are invalid
            ValidationError: If the applicant data is invalid
        """
        record = self._audit.start("score", applicant_data, _raw_options(options))
        sink = _options_sink(options)
        timings: Dict[str, float] = {}

        try:
            with track_score_latency():
                with track_component(timings, "config"):
                    opts = parse_scoring_options(options)
                    config = resolve_scoring_config(opts, self._scoring_settings)
                with track_component(timings, "validation"):
                    profile = parse_applicant(applicant_data)
                with track_component(timings, "normalization"):
                    applicant = normalize(profile, config)

                if applicant.monthly_income <= 0:
                    with track_component(timings, "aggregation"):
                        result = zero_income_result(applicant, config)
                else:
                    result = await self._score_applicant(applicant, config, timings, record)
                result = replace(result, timings=dict(timings))
        except DomainException as e:
            logger.info("score_failed", code=e.code, error=e.message)
            record.add_error(e)
            record.timings = timings
            self._audit.emit(record, sink)
            raise
        except Exception as e:
            logger.exception("score_error", error=str(e))
            record.add_error(e)
            record.timings = timings
            self._audit.emit(record, sink)
            raise

        record.result = redact(result.to_dict())
        record.timings = timings
        self._audit.emit(record, sink)

        record_score(result.classification.value)
        logger.info(
            "score_calculated",
            applicant_id=profile.applicant_id,
            total_score=result.total_score,
            tier=result.classification.value,
            loan_type=result.loan_type.value,
            zero_income=result.is_zero_income,
        )
        return result

    async def _score_applicant(
        self,
        applicant: NormalizedApplicant,
        config: ScoringConfig,
        timings: Dict[str, float],
        record: AuditRecord,
    ) -> ScoreResult:
        category_scores = {}
        for category, scorer in FACTOR_SCORERS.items():
            with track_component(timings, category.value):
                category_scores[category] = scorer(applicant, config)

        external = Adjustment()
        if config.fetch_external_data:
            with track_component(timings, "external_data"):
                external = await self._enrich(applicant, config, record)

        with track_component(timings, "aggregation"):
            return aggregate(applicant, category_scores, config, external)

    async def _enrich(
        self,
        applicant: NormalizedApplicant,
        config: ScoringConfig,
        record: AuditRecord,
    ) -> Adjustment:
        """Fetch the enrichment bonus; never raises."""
        try:
            signals = await self._fetch_signals(applicant, config)
        except EnrichmentUnavailable as e:
            note = ENRICHMENT_NOTES.get(e.reason, ENRICHMENT_FAILED_NOTE)
            record_enrichment(e.reason)
            record.add_error(e, handled=True)
            record.notes.append(note)
            logger.info(
                "enrichment_skipped",
                applicant_id=applicant.applicant_id,
                reason=e.reason,
            )
            return Adjustment(notes=[note])

        record_enrichment("success")
        return enrichment_bonus(signals, config)

    async def _fetch_signals(self, applicant: NormalizedApplicant, config: ScoringConfig):
        source = self._enrichment_source
        if source is None:
            raise EnrichmentUnavailable("No enrichment source configured", reason="unconfigured")

        # Circuit first so rejected attempts do not spend the rate budget.
        if self._circuit_breaker.is_open():
            raise EnrichmentUnavailable(ENRICHMENT_NOTES["circuit_open"], reason="circuit_open")
        if not self._rate_limiter.try_acquire():
            raise EnrichmentUnavailable(ENRICHMENT_NOTES["rate_limited"], reason="rate_limited")
        if not self._circuit_breaker.allow_request():
            raise EnrichmentUnavailable(ENRICHMENT_NOTES["circuit_open"], reason="circuit_open")

        timeout = config.enrichment_timeout or self._enrichment_timeout
        try:
            signals = await asyncio.wait_for(source.fetch(applicant), timeout=timeout)
        except asyncio.TimeoutError:
            self._circuit_breaker.record_failure()
            raise EnrichmentUnavailable(
                f"Enrichment source '{source.name}' timed out after {timeout}s",
                reason="timeout",
            )
        except EnrichmentUnavailable:
            self._circuit_breaker.record_failure()
            raise
        except Exception as e:
            self._circuit_breaker.record_failure()
            logger.warning("enrichment_failed", source=source.name, error=str(e))
            raise EnrichmentUnavailable(f"External data fetch failed: {e}", reason="failure") from e

        self._circuit_breaker.record_success()
        return signals

    def decide(
        self,
        score_result: ScoreResult,
        applicant_data: ApplicantData,
        config: Union[LendingSettings, Mapping[str, Any], None] = None,
        logger_callback: Optional[AuditLogger] = None,
    ) -> LendingOutcome:
        """
        Derive a lending decision and offers from a score result.

        Unexpected errors while deriving the decision produce a ``review``
        decision without offers instead of propagating.

        Args:
            score_result: Result of ``score`` for the same applicant
            applicant_data: Applicant record in local currency
            config: Lending configuration overrides
            logger_callback: Audit callback (defaults to the recorder's sink)

        Returns:
            LendingOutcome with the decision and its offers

        Raises:
            ConfigurationError: If the lending configuration is invalid
            ValidationError: If the applicant data is invalid
        """
        audit_config = config.model_dump(mode="json") if isinstance(config, LendingSettings) else config
        record = self._audit.start("decide", applicant_data, audit_config)
        timings: Dict[str, float] = {}

        with track_decision_latency():
            try:
                with track_component(timings, "config"):
                    lending = resolve_lending_config(config, self._lending_settings)
                with track_component(timings, "validation"):
                    profile = parse_applicant(applicant_data)
            except DomainException as e:
                logger.info("decision_failed", code=e.code, error=e.message)
                record.add_error(e)
                record.timings = timings
                self._audit.emit(record, logger_callback)
                raise

            try:
                with track_component(timings, "decision"):
                    decision = make_lending_decision(score_result, profile, lending)
                with track_component(timings, "offers"):
                    offers = generate_offers(decision, score_result, profile, lending)
            except Exception as e:
                logger.exception(
                    "decision_fallback_to_review",
                    applicant_id=profile.applicant_id,
                    error=str(e),
                )
                record.add_error(e, handled=True)
                decision = review_decision(score_result)
                offers = []

        outcome = LendingOutcome(decision=decision, offers=offers)
        record.result = redact(outcome.to_dict())
        record.timings = timings
        self._audit.emit(record, logger_callback)

        record_decision(decision.status.value, [offer.offer_type.value for offer in offers])
        logger.info(
            "decision_made",
            applicant_id=profile.applicant_id,
            status=decision.status.value,
            risk_category=decision.risk_category.value,
            offers=len(offers),
        )
        return outcome

    async def evaluate(
        self,
        applicant_data: ApplicantData,
        options: OptionsInput = None,
        config: Union[LendingSettings, Mapping[str, Any], None] = None,
    ) -> EvaluationResult:
        """Score an applicant and derive the decision and offers."""
        score_result = await self.score(applicant_data, options)
        outcome = self.decide(
            score_result,
            applicant_data,
            config,
            logger_callback=_options_sink(options),
        )
        return EvaluationResult.from_entities(score_result, outcome)
