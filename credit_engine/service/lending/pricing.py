"""
Loan pricing: rates, fees, installments, amortization and APR.

All rates passed in and returned are annual percentages (``15.0`` means
15%). Amounts are in the applicant's local currency.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from credit_engine.domain.entities import AmortizationEntry, LoanType, SecurityType, Tier

from .settings import LendingSettings

APR_TOLERANCE = 0.01
APR_MAX_ITERATIONS = 20


def _monthly_rate(annual_rate: float) -> float:
    return annual_rate / 100 / 12


def nominal_rate(
    security: SecurityType,
    tier: Tier,
    term_months: Optional[int],
    settings: LendingSettings,
) -> float:
    """
    Annual rate for a tier and security type with term adjustments.

    Each adjustment applies once the term reaches its ``min_term``; the
    result is capped at ``max_apr``. Revolving products (no term) get no
    term adjustment.
    """
    rate = settings.rate_for(security, tier)
    if term_months is not None:
        for adjustment in settings.term_adjustments:
            if term_months >= adjustment.min_term:
                rate += adjustment.adjustment
    return min(rate, settings.max_apr)


def installment_payment(principal: float, annual_rate: float, term_months: int) -> float:
    """
    Level monthly payment that amortizes ``principal`` over the term.

    Args:
        principal: Amount financed
        annual_rate: Annual percentage rate
        term_months: Number of monthly payments

    Returns:
        Monthly payment (0 for a zero principal or term)
    """
    if term_months <= 0 or principal == 0:
        return 0.0
    r = _monthly_rate(annual_rate)
    if r == 0:
        return principal / term_months
    growth = (1 + r) ** term_months
    return principal * r * growth / (growth - 1)


def amortization_schedule(
    principal: float,
    annual_rate: float,
    term_months: int,
    max_periods: int = 12,
) -> List[AmortizationEntry]:
    """First ``max_periods`` rows of the amortization table."""
    r = _monthly_rate(annual_rate)
    payment = installment_payment(principal, annual_rate, term_months)
    balance = principal
    schedule = []
    for month in range(1, min(term_months, max_periods) + 1):
        interest = balance * r
        principal_paid = payment - interest
        balance -= principal_paid
        schedule.append(
            AmortizationEntry(
                month=month,
                payment=payment,
                principal=principal_paid,
                interest=interest,
                remaining_balance=balance,
            )
        )
    return schedule


@dataclass(frozen=True)
class AprSolution:
    """
    Result of the APR solve.

    Attributes:
        apr: Annual percentage rate
        monthly_rate: Periodic rate found by the solver
        residual_balance: Balance left after the final period at that rate
        iterations: Newton steps taken
    """

    apr: float
    monthly_rate: float
    residual_balance: float
    iterations: int


def _balance_and_slope(net_principal: float, payment: float, rate: float, term_months: int):
    """Final balance at ``rate`` and its derivative with respect to ``rate``."""
    balance = net_principal
    slope = 0.0
    for _ in range(term_months):
        slope = slope * (1 + rate) + balance
        balance = balance * (1 + rate) - payment
    return balance, slope


def solve_apr(
    principal: float,
    annual_rate: float,
    term_months: Optional[int],
    upfront_fees: float = 0.0,
) -> AprSolution:
    """
    Solve the APR by Newton-Raphson on the periodic rate.

    Finds the monthly rate at which the amount actually received
    (principal less upfront fees), repaid with the nominal level payment,
    amortizes to zero over the term. Stops when the final balance is
    within ``APR_TOLERANCE`` or after ``APR_MAX_ITERATIONS`` steps.

    Args:
        principal: Amount financed
        annual_rate: Nominal annual percentage rate
        term_months: Number of payments (None for revolving products)
        upfront_fees: Fees deducted from the amount received

    Returns:
        AprSolution with the APR and the final residual balance
    """
    start = _monthly_rate(annual_rate)
    if not term_months or principal <= 0:
        return AprSolution(apr=annual_rate, monthly_rate=start, residual_balance=0.0, iterations=0)

    payment = installment_payment(principal, annual_rate, term_months)
    net_principal = principal - upfront_fees

    rate = start
    balance, slope = _balance_and_slope(net_principal, payment, rate, term_months)
    iterations = 0
    while abs(balance) >= APR_TOLERANCE and iterations < APR_MAX_ITERATIONS:
        if slope == 0:
            break
        rate -= balance / slope
        iterations += 1
        balance, slope = _balance_and_slope(net_principal, payment, rate, term_months)

    return AprSolution(
        apr=rate * 12 * 100,
        monthly_rate=rate,
        residual_balance=balance,
        iterations=iterations,
    )


def calculate_fees(
    loan_type: LoanType,
    amount: float,
    tier: Tier,
    settings: LendingSettings,
) -> Dict[str, float]:
    """Fee breakdown for a loan type; loan types without a schedule carry no fees."""
    schedule = settings.fee_structure.get(loan_type, {})
    return {name: fee.amount(amount, tier) for name, fee in schedule.items()}


def upfront_fees(
    loan_type: LoanType,
    fees: Dict[str, float],
    settings: LendingSettings,
) -> float:
    """Sum of the fees deducted from the disbursed amount."""
    schedule = settings.fee_structure.get(loan_type, {})
    return sum(fees[name] for name, fee in schedule.items() if fee.upfront and name in fees)
