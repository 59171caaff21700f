"""
Mortgage calculation API endpoints.

These endpoints accept loan terms directly and return calculated results
without touching the database. Used by the property form to preview the
remaining debt before saving.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import List, Optional
from datetime import date

from app.calculations.mortgage import (
    InvalidTermsError,
    MortgageTerms,
    PaymentTiming,
    calculate_remaining_balance,
    calculate_total_interest,
    calculate_total_principal,
    generate_payment_schedule,
    round_currency,
)
from app.config import get_settings
from app.services.mortgage import local_today

router = APIRouter()
settings = get_settings()


class MortgageCalculationInput(BaseModel):
    """Input for mortgage calculations.

    Invariants are checked by the engine, not the schema, so invalid
    terms come back as a 400 with the engine's message.
    """

    loan_amount: float
    start_date: date
    interest_rate: float
    principal_rate: float
    payment_timing: PaymentTiming = PaymentTiming.START_OF_MONTH
    as_of: Optional[date] = None

    def to_terms(self) -> MortgageTerms:
        return MortgageTerms(
            loan_amount=self.loan_amount,
            start_date=self.start_date,
            interest_rate=self.interest_rate,
            principal_rate=self.principal_rate,
            payment_timing=self.payment_timing,
        )


class BalanceResponse(BaseModel):
    """Remaining balance of a loan at a date."""

    as_of: date
    loan_amount: float
    monthly_payment: float
    remaining_balance: float
    amount_repaid: float
    currency: str


class ScheduleResponse(BaseModel):
    """Posted installments of a loan up to a date."""

    as_of: date
    monthly_payment: float
    remaining_balance: float
    total_interest: float
    total_principal: float
    schedule: List[dict]


def _money(value) -> float:
    return float(round_currency(value, settings.currency_decimal_places))


@router.post("/mortgage/balance", response_model=BalanceResponse)
async def calculate_mortgage_balance(inputs: MortgageCalculationInput):
    """Calculate the remaining balance of a loan."""
    as_of = inputs.as_of or local_today()

    try:
        terms = inputs.to_terms()
        balance = calculate_remaining_balance(terms, as_of)
    except InvalidTermsError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return BalanceResponse(
        as_of=as_of,
        loan_amount=_money(terms.loan_amount),
        monthly_payment=_money(terms.monthly_payment),
        remaining_balance=_money(balance),
        amount_repaid=_money(terms.loan_amount - balance),
        currency=settings.currency_code,
    )


@router.post("/mortgage/schedule", response_model=ScheduleResponse)
async def calculate_mortgage_schedule(inputs: MortgageCalculationInput):
    """Generate the installments posted up to the reference date."""
    as_of = inputs.as_of or local_today()

    try:
        terms = inputs.to_terms()
        schedule = generate_payment_schedule(terms, as_of)
    except InvalidTermsError as e:
        raise HTTPException(status_code=400, detail=str(e))

    remaining = schedule[-1].ending_balance if schedule else terms.loan_amount

    return ScheduleResponse(
        as_of=as_of,
        monthly_payment=_money(terms.monthly_payment),
        remaining_balance=_money(remaining),
        total_interest=_money(calculate_total_interest(schedule)),
        total_principal=_money(calculate_total_principal(schedule)),
        schedule=[row.to_dict(settings.currency_decimal_places) for row in schedule],
    )
