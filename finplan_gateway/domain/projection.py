"""Current balance and forward cash-flow projection"""

from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from finplan_gateway.domain.anticipation import to_cents
from finplan_gateway.domain.billing import cycle_closing_for
from finplan_gateway.domain.exceptions import UnknownRecurrenceError, ValidationError
from finplan_gateway.domain.models import (
    Account,
    AccountKind,
    CashFlowProjection,
    Direction,
    Entry,
    ProjectionMonth,
    RecurrenceKind,
    ZERO,
)
from finplan_gateway.utils.date_utils import month_bounds, shift_month

REPLAYABLE_KINDS = frozenset(
    {RecurrenceKind.WEEKLY, RecurrenceKind.MONTHLY, RecurrenceKind.YEARLY, RecurrenceKind.FIXED}
)

EffectiveDateRule = Callable[[Entry, Account], date]


def _posting_date(entry: Entry, account: Account) -> date:
    return entry.posting_date


def _card_effective_date(entry: Entry, account: Account) -> date:
    # Pending card purchases count in the month their invoice closes
    if entry.settled:
        return entry.settlement_date or entry.posting_date
    if account.closing_day is None:
        return entry.posting_date
    return cycle_closing_for(entry.posting_date, account.closing_day)


_EFFECTIVE_DATE_RULES: Dict[AccountKind, EffectiveDateRule] = {
    AccountKind.CREDIT_CARD: _card_effective_date,
}


def effective_date(entry: Entry, account: Optional[Account]) -> date:
    """Date an entry is attributed to for projection and reporting"""
    if account is None:
        return entry.posting_date
    rule = _EFFECTIVE_DATE_RULES.get(account.kind, _posting_date)
    return rule(entry, account)


def current_balance(accounts: Iterable[Account], entries: Iterable[Entry]) -> Decimal:
    """
    Sum of opening balance plus settled, non-transfer inflows minus outflows
    across every non-card account. Card accounts never contribute directly.
    """
    cash_accounts = {a.id: a for a in accounts if not a.is_credit_card}
    total = sum((Decimal(a.opening_balance or 0) for a in cash_accounts.values()), ZERO)

    for entry in entries:
        if entry.account_id not in cash_accounts or entry.is_transfer or not entry.settled:
            continue
        if entry.direction == Direction.INFLOW:
            total += entry.booked_amount
        else:
            total -= entry.booked_amount

    return to_cents(total)


def recurring_templates(entries: Iterable[Entry]) -> List[Entry]:
    """
    Entries replayed once per projected month: every non-transfer entry whose
    recurrence is not "none", each materialized occurrence included.
    """
    templates = [e for e in entries if e.recurrence != RecurrenceKind.NONE and not e.is_transfer]
    for template in templates:
        if template.recurrence not in REPLAYABLE_KINDS:
            raise UnknownRecurrenceError(f"Recurrence kind {template.recurrence!r} has no cycle")
    return templates


def _split(entries: Iterable[Entry]):
    inflow = outflow = ZERO
    for entry in entries:
        if entry.direction == Direction.INFLOW:
            inflow += entry.amount
        else:
            outflow += entry.amount
    return inflow, outflow


def project_cash_flow(
    accounts: Iterable[Account],
    entries: Iterable[Entry],
    months: int,
    reference: Optional[date] = None,
) -> CashFlowProjection:
    """
    Project the running balance over the current month plus `months` months.

    Month 0 adds the pending, non-transfer entries whose effective date falls in
    the current calendar month. Months 1..N replay every recurring template once
    per month at its flat amount, whatever its cadence.
    balance[0] = current balance + net[0]; balance[i] = balance[i-1] + net[i].
    """
    if months is None or months < 0:
        raise ValidationError("Projection horizon must be zero or more months")

    accounts = list(accounts)
    entries = list(entries)
    reference = reference or date.today()
    by_id = {a.id: a for a in accounts}

    opening = current_balance(accounts, entries)
    month_start, month_end = month_bounds(reference)

    pending_now = [
        e
        for e in entries
        if not e.settled
        and not e.is_transfer
        and month_start <= effective_date(e, by_id.get(e.account_id)) <= month_end
    ]
    pending_now.sort(key=lambda e: effective_date(e, by_id.get(e.account_id)))
    templates = recurring_templates(entries)

    projected: List[ProjectionMonth] = []
    balance = opening
    for i in range(months + 1):
        if i == 0:
            contributing = pending_now
            start, end = month_start, month_end
        else:
            contributing = templates
            year, month = shift_month(reference.year, reference.month, i)
            start, end = month_bounds(date(year, month, 1))

        inflow, outflow = _split(contributing)
        net = to_cents(inflow - outflow)
        balance = to_cents(balance + net)
        projected.append(
            ProjectionMonth(
                index=i,
                month_start=start,
                month_end=end,
                inflow=to_cents(inflow),
                outflow=to_cents(outflow),
                net=net,
                balance=balance,
                entry_ids=[e.id for e in contributing],
            )
        )

    minimum = min(m.balance for m in projected)
    return CashFlowProjection(
        reference_date=reference,
        current_balance=opening,
        months=projected,
        minimum_balance=minimum,
        at_risk=minimum < 0,
    )
