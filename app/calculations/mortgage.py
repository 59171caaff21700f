"""
Mortgage Amortization Calculations

Reconstructs the outstanding principal of a property loan as of a given
calendar date by simulating the monthly interest/principal split from the
loan's start month.

The loan uses a fixed monthly installment derived from the combined annual
interest and principal (repayment) rates, the usual structure of German
"Annuitaetendarlehen" quotes (e.g. 3.5% interest + 2.0% Tilgung).
"""

import enum
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional, Union

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = Decimal("12")

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


class InvalidTermsError(ValueError):
    """Raised when mortgage terms violate an invariant or cannot be parsed."""


class PaymentTiming(str, enum.Enum):
    """Day of the month on which the installment is deemed to post."""
    START_OF_MONTH = "START_OF_MONTH"
    END_OF_MONTH = "END_OF_MONTH"


def parse_calendar_date(value: str) -> date:
    """
    Parse a strict ``YYYY-MM-DD`` string into a calendar date.

    No timezone is involved, so a stored start date can never shift to the
    previous day the way a UTC-parsed timestamp would.
    """
    match = _ISO_DATE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidTermsError(f"Malformed date {value!r}, expected YYYY-MM-DD")

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidTermsError(f"Invalid calendar date {value!r}: {e}") from e


def _to_decimal(value, field_name: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise InvalidTermsError(f"{field_name} must be a number, got {value!r}")
    try:
        # str() keeps floats like 3.5 exact instead of their binary expansion
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidTermsError(f"{field_name} must be a number, got {value!r}") from e


def _to_date(value, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_calendar_date(value)
    raise InvalidTermsError(f"{field_name} must be a date, got {value!r}")


def _to_timing(value) -> PaymentTiming:
    if isinstance(value, PaymentTiming):
        return value
    try:
        return PaymentTiming(value)
    except ValueError as e:
        raise InvalidTermsError(f"Unknown payment timing {value!r}") from e


@dataclass(frozen=True)
class MortgageTerms:
    """Terms of the single active loan on a property."""

    loan_amount: Decimal  # Original principal disbursed
    start_date: date  # Only year and month are used for scheduling
    interest_rate: Decimal  # Annual nominal percent, e.g. 3.5
    principal_rate: Decimal  # Annual repayment percent, e.g. 2.0
    bank_name: Optional[str] = None
    payment_timing: PaymentTiming = PaymentTiming.START_OF_MONTH

    def __post_init__(self):
        object.__setattr__(self, "loan_amount", _to_decimal(self.loan_amount, "loan_amount"))
        object.__setattr__(self, "interest_rate", _to_decimal(self.interest_rate, "interest_rate"))
        object.__setattr__(self, "principal_rate", _to_decimal(self.principal_rate, "principal_rate"))
        object.__setattr__(self, "start_date", _to_date(self.start_date, "start_date"))
        object.__setattr__(self, "payment_timing", _to_timing(self.payment_timing))

    @property
    def monthly_interest_factor(self) -> Decimal:
        return self.interest_rate / HUNDRED / MONTHS_PER_YEAR

    @property
    def annual_total_rate(self) -> Decimal:
        return (self.interest_rate + self.principal_rate) / HUNDRED

    @property
    def monthly_payment(self) -> Decimal:
        """Fixed installment for the life of the loan."""
        return self.loan_amount * self.annual_total_rate / MONTHS_PER_YEAR

    def validate(self) -> None:
        """Raise InvalidTermsError if the terms cannot be amortized."""
        for name in ("loan_amount", "interest_rate", "principal_rate"):
            if not getattr(self, name).is_finite():
                raise InvalidTermsError(f"{name} must be finite")

        if self.loan_amount <= 0:
            raise InvalidTermsError(
                f"loan_amount must be positive, got {self.loan_amount}"
            )
        if self.interest_rate < 0:
            raise InvalidTermsError(
                f"interest_rate must not be negative, got {self.interest_rate}"
            )
        if self.principal_rate < 0:
            raise InvalidTermsError(
                f"principal_rate must not be negative, got {self.principal_rate}"
            )


@dataclass
class PaymentRow:
    """One posted installment of the amortization schedule."""

    period: int
    payment_date: date
    beginning_balance: Decimal
    payment: Decimal
    interest: Decimal
    principal: Decimal
    ending_balance: Decimal

    def to_dict(self, places: int = 2) -> dict:
        return {
            "period": self.period,
            "payment_date": self.payment_date.isoformat(),
            "beginning_balance": float(round_currency(self.beginning_balance, places)),
            "payment": float(round_currency(self.payment, places)),
            "interest": float(round_currency(self.interest, places)),
            "principal": float(round_currency(self.principal, places)),
            "ending_balance": float(round_currency(self.ending_balance, places)),
        }


def round_currency(value: Decimal, places: int = 2) -> Decimal:
    """Round to display precision. Never used inside the simulation."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def payment_date_for_month(month_start: date, timing: PaymentTiming) -> date:
    """Posting date of the installment due in the month of ``month_start``."""
    if timing == PaymentTiming.END_OF_MONTH:
        # relativedelta clamps day=31 to the month's last day
        return month_start + relativedelta(day=31)
    return month_start.replace(day=1)


def _normalize_as_of(as_of: Union[date, datetime]) -> date:
    # Truncate time of day; due dates are plain calendar dates too
    if isinstance(as_of, datetime):
        return as_of.date()
    return as_of


def _iter_posted_payments(terms: MortgageTerms, as_of: date):
    """
    Yield ``(payment_date, interest, principal)`` for each posted installment.

    The walk stops at the first month whose payment date is still ahead of
    ``as_of``; later months cannot have posted either.
    """
    current_month = terms.start_date.replace(day=1)
    stop_month = as_of.replace(day=1)
    interest_factor = terms.monthly_interest_factor
    payment = terms.monthly_payment
    balance = terms.loan_amount

    while current_month <= stop_month:
        payment_date = payment_date_for_month(current_month, terms.payment_timing)
        if payment_date > as_of:
            break

        interest = balance * interest_factor
        principal = payment - interest
        balance -= principal
        yield payment_date, interest, principal

        if balance <= 0:
            return
        if current_month == stop_month:
            break
        current_month += relativedelta(months=1)


def calculate_remaining_balance(
    terms: MortgageTerms, as_of: Union[date, datetime]
) -> Decimal:
    """
    Calculate the outstanding principal as of a calendar date.

    Args:
        terms: Loan terms
        as_of: Reference date; a datetime is truncated to its calendar day

    Returns:
        Remaining balance at full precision, never negative. Equals
        ``terms.loan_amount`` before the first payment has posted.

    Raises:
        InvalidTermsError: If the terms violate an invariant
    """
    terms.validate()
    as_of = _normalize_as_of(as_of)

    balance = terms.loan_amount
    payments = 0
    for _, _, principal in _iter_posted_payments(terms, as_of):
        balance -= principal
        payments += 1
        if balance <= 0:
            logger.debug(f"Loan fully amortized after {payments} payments")
            return ZERO

    logger.debug(
        f"Remaining balance as of {as_of.isoformat()} after {payments} payments: {balance}"
    )
    return balance


def generate_payment_schedule(
    terms: MortgageTerms, as_of: Union[date, datetime]
) -> List[PaymentRow]:
    """
    Generate the installments posted up to ``as_of``.

    The last ending balance always matches calculate_remaining_balance(); the
    final principal part is capped at the outstanding balance so a paid-off
    loan ends at exactly zero.
    """
    terms.validate()
    as_of = _normalize_as_of(as_of)

    schedule = []
    balance = terms.loan_amount

    for period, (payment_date, interest, principal) in enumerate(
        _iter_posted_payments(terms, as_of), start=1
    ):
        principal = min(principal, balance)
        ending_balance = balance - principal
        schedule.append(
            PaymentRow(
                period=period,
                payment_date=payment_date,
                beginning_balance=balance,
                payment=interest + principal,
                interest=interest,
                principal=principal,
                ending_balance=ending_balance,
            )
        )
        balance = ending_balance

    return schedule


def calculate_total_interest(schedule: List[PaymentRow]) -> Decimal:
    """Calculate total interest paid across the given installments."""
    return sum((row.interest for row in schedule), ZERO)


def calculate_total_principal(schedule: List[PaymentRow]) -> Decimal:
    """Calculate total principal repaid across the given installments."""
    return sum((row.principal for row in schedule), ZERO)
