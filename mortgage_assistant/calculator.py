"""Fixed-rate mortgage math.

Pure functions, no I/O. Shared by the chat engine and the public
calculator route.
"""

from __future__ import annotations

import math

from mortgage_assistant.models.breakdown import (
    MonthlyCostRequest,
    MonthlyCostResponse,
    MortgageBreakdown,
)


def monthly_payment(principal: float, annual_rate: float, years: int) -> float:
    """Level monthly payment for a fully amortizing fixed-rate loan.

    ``annual_rate`` is a percentage (6.5 means 6.5%). A zero rate spreads
    the principal evenly over the term, as does a rate too small to
    register in floating point.
    """
    monthly_rate = annual_rate / 100 / 12
    n_payments = years * 12

    # (1 + r) ** n - 1, without losing a tiny r to rounding
    growth = math.expm1(n_payments * math.log1p(monthly_rate))
    if growth == 0:
        return principal / n_payments

    return principal * monthly_rate * (growth + 1) / growth


def calculate_breakdown(
    property_price: float,
    down_payment: float,
    annual_rate: float,
    years: int,
) -> MortgageBreakdown:
    """Monthly payment, total paid and total interest for the loan."""
    loan_amount = property_price - down_payment
    n_payments = years * 12
    payment = monthly_payment(loan_amount, annual_rate, years)
    total_payment = payment * n_payments

    return MortgageBreakdown(
        loan_amount=loan_amount,
        monthly_payment=payment,
        total_payment=total_payment,
        total_interest=total_payment - loan_amount,
        number_of_payments=n_payments,
    )


def estimate_monthly_costs(req: MonthlyCostRequest) -> MonthlyCostResponse:
    """Principal and interest plus the recurring housing costs."""
    loan_amount = req.price - req.down_payment
    principal_and_interest = monthly_payment(loan_amount, req.interest_rate, req.loan_term_years)
    monthly_tax = req.annual_property_tax / 12

    total = (
        principal_and_interest
        + monthly_tax
        + req.monthly_insurance
        + req.monthly_hoa
        + req.monthly_utilities
    )

    return MonthlyCostResponse(
        loan_amount=round(loan_amount, 2),
        down_payment_percent=round(req.down_payment / req.price * 100),
        principal_and_interest=round(principal_and_interest, 2),
        monthly_property_tax=round(monthly_tax, 2),
        monthly_insurance=round(req.monthly_insurance, 2),
        monthly_hoa=round(req.monthly_hoa, 2),
        monthly_utilities=round(req.monthly_utilities, 2),
        monthly_payment=round(total, 2),
    )
