"""Enrichment signal entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EnrichmentSignals:
    """
    Alternative-data signals returned by an enrichment source.

    Each confirmed signal is worth a fixed number of bonus points; the
    total bonus is bounded to 0-30.
    """

    consistent_transactions: bool = False
    verified_rental_history: bool = False
    consistent_savings: bool = False
    low_debt_payments: bool = False
    high_financial_literacy: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "EnrichmentSignals":
        """Build from a payload using either snake_case or camelCase keys."""
        def flag(snake: str, camel: str) -> bool:
            return bool(data.get(snake, data.get(camel, False)))

        return cls(
            consistent_transactions=flag("consistent_transactions", "consistentTransactions"),
            verified_rental_history=flag("verified_rental_history", "verifiedRentalHistory"),
            consistent_savings=flag("consistent_savings", "consistentSavings"),
            low_debt_payments=flag("low_debt_payments", "lowDebtPayments"),
            high_financial_literacy=flag("high_financial_literacy", "highFinancialLiteracy"),
        )
