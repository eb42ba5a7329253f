"""Credit-card billing cycle resolution and invoice aggregation"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from finplan_gateway.domain.anticipation import to_cents
from finplan_gateway.domain.exceptions import ValidationError
from finplan_gateway.domain.models import Account, BillingCycle, Direction, Entry, InvoiceSummary, ZERO
from finplan_gateway.utils.date_utils import clamped_date, shift_month


def validate_day_of_month(day: Optional[int], label: str) -> int:
    if day is None or not 1 <= day <= 31:
        raise ValidationError(f"{label} must be between 1 and 31")
    return day


def _cycle_closing_in(year: int, month: int, closing_day: int) -> BillingCycle:
    """Cycle whose closing date falls in (year, month)"""
    end = clamped_date(year, month, closing_day)
    prev_year, prev_month = shift_month(year, month, -1)
    start = clamped_date(prev_year, prev_month, closing_day) + timedelta(days=1)
    return BillingCycle(start=start, end=end)


def _closing_month(closing_day: int, reference: date, months_back: int):
    if reference.day > closing_day:
        year, month = reference.year, reference.month
    else:
        year, month = shift_month(reference.year, reference.month, -1)
    return shift_month(year, month, -months_back)


def current_open_cycle(closing_day: int, reference: Optional[date] = None) -> BillingCycle:
    """
    Cycle attributed to the reference date.

    Closes this month when reference.day > closing_day, otherwise last month.
    end is the clamped closing day; start is the day after the previous closing.
    """
    validate_day_of_month(closing_day, "Closing day")
    reference = reference or date.today()
    year, month = _closing_month(closing_day, reference, 0)
    return _cycle_closing_in(year, month, closing_day)


def last_closed_cycle(closing_day: int, reference: Optional[date] = None) -> BillingCycle:
    """Cycle immediately preceding current_open_cycle"""
    validate_day_of_month(closing_day, "Closing day")
    reference = reference or date.today()
    year, month = _closing_month(closing_day, reference, 1)
    return _cycle_closing_in(year, month, closing_day)


def due_date_for(closing_date: date, due_day: int, closing_day: Optional[int] = None) -> date:
    """
    Due date of the invoice closing on closing_date.

    due_day <= closing_day means the invoice is due the month after closing
    (December closing -> January due), otherwise in the closing month.
    """
    validate_day_of_month(due_day, "Due day")
    closing_day = closing_day or closing_date.day
    if due_day <= closing_day:
        year, month = shift_month(closing_date.year, closing_date.month, 1)
    else:
        year, month = closing_date.year, closing_date.month
    return clamped_date(year, month, due_day)


def cycle_closing_for(tx_date: date, closing_day: int) -> date:
    """Closing date of the cycle a purchase made on tx_date is billed in"""
    validate_day_of_month(closing_day, "Closing day")
    closing = clamped_date(tx_date.year, tx_date.month, closing_day)
    if tx_date <= closing:
        return closing
    year, month = shift_month(tx_date.year, tx_date.month, 1)
    return clamped_date(year, month, closing_day)


def in_cycle(tx_date: date, cycle_start: date, cycle_end: date) -> bool:
    """Inclusive [start, end] membership test"""
    return cycle_start <= tx_date <= cycle_end


def summarize_invoice(
    account: Account,
    entries: Iterable[Entry],
    reference: Optional[date] = None,
    closing_soon_days: int = 5,
) -> InvoiceSummary:
    """
    Aggregate a card's outflows over its cycles.

    open_invoice_total: every outflow posted inside the open cycle.
    closed_invoice_total: unsettled outflows of the last closed cycle ("pay now").
    total_outstanding: every unsettled outflow ever posted; drives available credit.
    """
    if not account.is_credit_card:
        raise ValidationError("Invoice summary requires a credit-card account")
    closing_day = validate_day_of_month(account.closing_day, "Closing day")
    reference = reference or date.today()

    open_cycle = current_open_cycle(closing_day, reference)
    closed_cycle = last_closed_cycle(closing_day, reference)

    outflows = [e for e in entries if e.account_id == account.id and e.direction == Direction.OUTFLOW]

    open_total = sum((e.amount for e in outflows if open_cycle.contains(e.posting_date)), ZERO)
    closed_total = sum(
        (e.amount for e in outflows if closed_cycle.contains(e.posting_date) and not e.settled),
        ZERO,
    )
    outstanding = sum((e.amount for e in outflows if not e.settled), ZERO)

    available = None
    utilization = None
    if account.credit_limit is not None:
        limit = Decimal(account.credit_limit)
        available = to_cents(limit - max(ZERO, outstanding))
        if limit > 0:
            utilization = to_cents(max(ZERO, outstanding) / limit * 100)

    open_due = closed_due = None
    if account.due_day is not None:
        open_due = due_date_for(open_cycle.end, account.due_day, closing_day)
        closed_due = due_date_for(closed_cycle.end, account.due_day, closing_day)

    next_closing = cycle_closing_for(reference, closing_day)
    days_until_closing = (next_closing - reference).days

    return InvoiceSummary(
        account_id=account.id,
        reference_date=reference,
        open_cycle=open_cycle,
        closed_cycle=closed_cycle,
        open_due_date=open_due,
        closed_due_date=closed_due,
        next_closing_date=next_closing,
        days_until_closing=days_until_closing,
        urgent=days_until_closing <= closing_soon_days,
        open_invoice_total=to_cents(open_total),
        closed_invoice_total=to_cents(closed_total),
        total_outstanding=to_cents(outstanding),
        credit_limit=account.credit_limit,
        available_credit=available,
        utilization_pct=utilization,
    )
