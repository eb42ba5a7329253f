"""Unit tests for credit-card billing cycles and invoice aggregation"""

import uuid
import pytest
from datetime import date
from decimal import Decimal
from finplan_gateway.domain.billing import (
    current_open_cycle,
    cycle_closing_for,
    due_date_for,
    in_cycle,
    last_closed_cycle,
    summarize_invoice,
)
from finplan_gateway.domain.exceptions import ValidationError
from finplan_gateway.domain.models import BillingCycle, Direction, Entry, PaymentChannel, SettlementState


def test_open_and_closed_cycle_mid_month():
    """Closing on the 10th, seen from June 12th"""
    assert current_open_cycle(10, date(2024, 6, 12)) == BillingCycle(date(2024, 5, 11), date(2024, 6, 10))
    assert last_closed_cycle(10, date(2024, 6, 12)) == BillingCycle(date(2024, 4, 11), date(2024, 5, 10))


def test_open_cycle_due_date_same_month_when_due_after_closing():
    cycle = current_open_cycle(10, date(2024, 6, 12))
    assert due_date_for(cycle.end, 20, 10) == date(2024, 6, 20)


def test_cycle_does_not_roll_into_next_year():
    assert current_open_cycle(28, date(2024, 12, 30)) == BillingCycle(date(2024, 11, 29), date(2024, 12, 28))


def test_reference_on_closing_day_belongs_to_previous_closing():
    assert current_open_cycle(10, date(2024, 6, 10)) == BillingCycle(date(2024, 4, 11), date(2024, 5, 10))


def test_january_reference_reaches_back_into_december():
    assert current_open_cycle(15, date(2024, 1, 5)) == BillingCycle(date(2023, 11, 16), date(2023, 12, 15))


def test_closing_day_clamped_in_short_months():
    cycle = current_open_cycle(31, date(2024, 3, 5))
    assert cycle == BillingCycle(date(2024, 2, 1), date(2024, 2, 29))


def test_december_closing_due_in_january():
    assert due_date_for(date(2024, 12, 25), 5, 25) == date(2025, 1, 5)


def test_due_day_clamped_to_month_length():
    assert due_date_for(date(2024, 1, 20), 31, 20) == date(2024, 1, 31)
    assert due_date_for(date(2024, 1, 31), 30, 31) == date(2024, 2, 29)


@pytest.mark.parametrize("closing_day", [0, 32, None])
def test_invalid_closing_day_rejected(closing_day):
    with pytest.raises(ValidationError):
        current_open_cycle(closing_day, date(2024, 6, 12))


def test_cycle_closing_for_purchase_dates():
    assert cycle_closing_for(date(2024, 6, 10), 10) == date(2024, 6, 10)
    assert cycle_closing_for(date(2024, 6, 11), 10) == date(2024, 7, 10)
    assert cycle_closing_for(date(2024, 12, 29), 28) == date(2025, 1, 28)


def test_in_cycle_is_inclusive():
    assert in_cycle(date(2024, 5, 11), date(2024, 5, 11), date(2024, 6, 10))
    assert in_cycle(date(2024, 6, 10), date(2024, 5, 11), date(2024, 6, 10))
    assert not in_cycle(date(2024, 6, 11), date(2024, 5, 11), date(2024, 6, 10))


def card_entry(account_id, posting_date, amount, settled=True, direction=Direction.OUTFLOW) -> Entry:
    return Entry(
        id=uuid.uuid4(),
        account_id=account_id,
        direction=direction,
        amount=Decimal(amount),
        posting_date=posting_date,
        channel=PaymentChannel.CREDIT_CARD if settled else PaymentChannel.OTHER,
        state=SettlementState.SETTLED if settled else SettlementState.PENDING,
    )


def test_invoice_summary_totals(card):
    entries = [
        card_entry(card.id, date(2024, 4, 20), "300.00", settled=False),  # closed cycle, unpaid
        card_entry(card.id, date(2024, 5, 5), "100.00"),  # closed cycle, settled
        card_entry(card.id, date(2024, 5, 20), "250.00"),  # open cycle
        card_entry(card.id, date(2024, 6, 1), "50.00", settled=False),  # open cycle, unpaid
        card_entry(card.id, date(2024, 6, 1), "999.00", direction=Direction.INFLOW),
        card_entry(uuid.uuid4(), date(2024, 6, 1), "777.00", settled=False),  # other account
    ]

    summary = summarize_invoice(card, entries, date(2024, 6, 12))

    assert summary.open_invoice_total == Decimal("300.00")
    assert summary.closed_invoice_total == Decimal("300.00")
    assert summary.total_outstanding == Decimal("350.00")
    assert summary.available_credit == Decimal("4650.00")
    assert summary.utilization_pct == Decimal("7.00")
    assert summary.open_due_date == date(2024, 6, 20)
    assert summary.closed_due_date == date(2024, 5, 20)


def test_invoice_summary_next_closing(card):
    summary = summarize_invoice(card, [], date(2024, 6, 12))

    assert summary.next_closing_date == date(2024, 7, 10)
    assert summary.days_until_closing == 28
    assert summary.urgent is False
    assert summary.available_credit == Decimal("5000.00")

    soon = summarize_invoice(card, [], date(2024, 7, 7))
    assert soon.days_until_closing == 3
    assert soon.urgent is True


def test_invoice_summary_requires_card(checking):
    with pytest.raises(ValidationError):
        summarize_invoice(checking, [], date(2024, 6, 12))
