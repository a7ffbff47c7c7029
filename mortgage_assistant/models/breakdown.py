"""Payment breakdown and monthly cost calculator schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class MortgageBreakdown(BaseModel):
    """Amortization result for a fixed-rate loan.

    Values are kept unrounded; formatting happens at the edge.
    """

    loan_amount: float
    monthly_payment: float
    total_payment: float
    total_interest: float
    number_of_payments: int


class MonthlyCostRequest(BaseModel):
    """Input for the standalone monthly cost calculator."""

    price: float = Field(gt=0)
    down_payment: float = Field(ge=0)
    interest_rate: float = Field(default=6.5, ge=0, lt=20)
    loan_term_years: int = Field(default=30, gt=0, le=50)
    annual_property_tax: float = Field(default=265, ge=0)
    monthly_insurance: float = Field(default=100, ge=0)
    monthly_hoa: float = Field(default=0, ge=0)
    monthly_utilities: float = Field(default=100, ge=0)

    @model_validator(mode="after")
    def _down_payment_below_price(self) -> "MonthlyCostRequest":
        if self.down_payment >= self.price:
            raise ValueError("down_payment must be less than price")
        return self


class MonthlyCostResponse(BaseModel):
    """Monthly cost estimate results."""

    loan_amount: float
    down_payment_percent: int
    principal_and_interest: float
    monthly_property_tax: float
    monthly_insurance: float
    monthly_hoa: float
    monthly_utilities: float
    monthly_payment: float
