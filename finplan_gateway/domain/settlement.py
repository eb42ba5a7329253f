"""Confirmation of pending ledger entries"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from finplan_gateway.domain.anticipation import to_cents
from finplan_gateway.domain.exceptions import InconsistentSettlementError, ValidationError
from finplan_gateway.domain.models import BillingCycle, Direction, Entry, SettlementState


def settle_entry(
    entry: Entry,
    settlement_date: date,
    settled_amount: Optional[Decimal] = None,
    earliest_activity: Optional[date] = None,
) -> Entry:
    """
    Mark an entry as executed on settlement_date.

    Raises InconsistentSettlementError when the date precedes the account's
    earliest known activity; the entry is never silently adjusted.
    """
    if settlement_date is None:
        raise ValidationError("Settlement date is required")
    if entry.settled:
        raise ValidationError("Entry is already settled")
    if settled_amount is not None and Decimal(settled_amount) <= 0:
        raise ValidationError("Settled amount must be greater than zero")
    if earliest_activity is not None and settlement_date < earliest_activity:
        raise InconsistentSettlementError(
            f"Settlement date {settlement_date.isoformat()} is before the account's "
            f"first activity on {earliest_activity.isoformat()}"
        )

    return replace(
        entry,
        state=SettlementState.SETTLED,
        settlement_date=settlement_date,
        settled_amount=to_cents(settled_amount) if settled_amount is not None else None,
    )


def settle_cycle_outflows(entries: Iterable[Entry], cycle: BillingCycle, settlement_date: date) -> List[Entry]:
    """Settled copies of the unsettled outflows posted inside a billing cycle"""
    return [
        settle_entry(e, settlement_date)
        for e in entries
        if e.direction == Direction.OUTFLOW and not e.settled and cycle.contains(e.posting_date)
    ]
