"""Local EnrichmentSource deriving signals from the applicant record."""

from credit_engine.domain.entities import EnrichmentSignals, NormalizedApplicant
from credit_engine.domain.interfaces import EnrichmentSource
from credit_engine.service.scoring.settings import ScoringSettings, scoring_settings


class ApplicantSignalsSource(EnrichmentSource):
    """
    Derives enrichment signals from data the applicant already supplied.

    Stands in for a remote alternative-data provider: balances above the
    medium band count as consistent transactions, a near-perfect rent
    record as verified rental history, and so on. The balance and
    debt-service bands follow the applicant's macroeconomic adjustment.
    """

    name = "applicant"

    def __init__(self, settings: ScoringSettings = scoring_settings):
        self._settings = settings

    async def fetch(self, applicant: NormalizedApplicant) -> EnrichmentSignals:
        settings = self._settings
        factor = applicant.macro_adjustment_factor
        return EnrichmentSignals(
            consistent_transactions=(
                applicant.average_daily_balance > settings.balance_thresholds.medium * factor
            ),
            verified_rental_history=applicant.rent_payments >= 0.95,
            consistent_savings=(
                applicant.savings_consistency_score >= settings.savings_thresholds.medium
            ),
            low_debt_payments=(
                applicant.debt_service_ratio <= settings.debt_service_thresholds.good * factor
            ),
            high_financial_literacy=(
                applicant.financial_literacy_score >= settings.literacy_thresholds.medium
            ),
        )
