"""Early-payment discount calculator for loan installments"""

from dataclasses import replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from finplan_gateway.domain.models import AnticipationResult, ZERO
from finplan_gateway.utils.date_utils import days_between

CENT = Decimal("0.01")

# Flat month used to estimate the interest share of an installment
MONTH_DAYS = 30


def to_cents(value: Decimal) -> Decimal:
    """Round half-up to the currency minor unit"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_anticipation(
    face_value: Decimal,
    due_date: date,
    settlement_date: date,
    daily_rate: Decimal,
) -> AnticipationResult:
    """
    Settle one installment on settlement_date using the bank simple-discount formula.

    Early (due_date after settlement_date):
        present_value = face / (1 + rate * days_early)
        interest      = face * rate * (30 - days_early), floored at 0
        amortization  = present_value - interest, floored at 0
    On time or late: no discount, interest estimated as one flat month
    (face * rate * 30) and amortization = face - interest.

    A zero or negative rate yields zero interest and zero savings.
    Only the final values are rounded to cents.
    """
    face = Decimal(face_value)
    rate = max(Decimal(daily_rate), Decimal(0))
    days_early = days_between(due_date, settlement_date)

    if days_early <= 0:
        interest = face * rate * MONTH_DAYS
        return AnticipationResult(
            face_value=to_cents(face),
            present_value=to_cents(face),
            savings=ZERO,
            days_early=days_early,
            interest=to_cents(interest),
            amortization=to_cents(face - interest),
            is_early=False,
            is_late=days_early < 0,
            raw_savings=ZERO,
        )

    present_value = face / (1 + rate * days_early)
    savings = face - present_value
    interest = max(face * rate * (MONTH_DAYS - days_early), Decimal(0))
    amortization = max(present_value - interest, Decimal(0))

    return AnticipationResult(
        face_value=to_cents(face),
        present_value=to_cents(present_value),
        savings=to_cents(savings),
        days_early=days_early,
        interest=to_cents(interest),
        amortization=to_cents(amortization),
        is_early=True,
        is_late=False,
        raw_savings=to_cents(savings),
    )


def apply_settled_amount(result: AnticipationResult, settled_amount: Decimal) -> AnticipationResult:
    """
    Override the computed present value with an amount the user actually paid.

    savings is clamped at zero for reporting; raw_savings keeps the signed
    difference so an overpayment stays visible.
    """
    paid = to_cents(settled_amount)
    raw = result.face_value - paid
    return replace(
        result,
        present_value=paid,
        savings=max(raw, ZERO),
        raw_savings=raw,
    )
