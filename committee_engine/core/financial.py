"""Loan and coverage ratio calculations.

Used by the normalizer to derive KPIs the dossier did not state and by the
stress tests to reprice the loan.
"""

from __future__ import annotations

import math

import numpy_financial as npf


def calculate_monthly_payment(
    principal: float,
    annual_rate_pct: float,
    duration_months: int,
) -> float:
    """Calculate monthly loan payment (principal + interest only).

    Args:
        principal: Loan amount in €
        annual_rate_pct: Annual interest rate as percentage (e.g., 3.5 for 3.5%)
        duration_months: Loan term in months

    Returns:
        Monthly payment amount in €
    """
    if principal <= 0 or duration_months <= 0:
        return 0.0

    monthly_rate = (annual_rate_pct / 100.0) / 12.0

    if monthly_rate <= 0:
        return principal / duration_months

    payment = float(-npf.pmt(monthly_rate, float(duration_months), principal))
    if not math.isfinite(payment):
        # (1 + r)^n overflowed: the annuity tends to interest-only
        return principal * monthly_rate
    return payment


def calculate_dscr(annual_income: float | None, monthly_payment: float | None) -> float | None:
    """Debt service coverage ratio: annual income over annual debt service."""
    if annual_income is None or not monthly_payment or monthly_payment <= 0:
        return None
    return annual_income / (monthly_payment * 12.0)


def ratio_pct(numerator: float | None, denominator: float | None) -> float | None:
    """Return numerator/denominator as a percentage, or None if undefined."""
    if numerator is None or not denominator or denominator <= 0:
        return None
    return numerator / denominator * 100.0


def round_or_none(value: float | None, digits: int = 2) -> float | None:
    """Round to `digits`; None for missing or non-finite values."""
    if value is None or not math.isfinite(value):
        return None
    return round(value, digits)
