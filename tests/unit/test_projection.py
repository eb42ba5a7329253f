"""Unit tests for current balance and the forward cash-flow projection"""

import uuid
import pytest
from dataclasses import replace
from datetime import date
from decimal import Decimal
from finplan_gateway.domain.exceptions import ValidationError
from finplan_gateway.domain.models import (
    Direction,
    Entry,
    EntryDraft,
    PaymentChannel,
    RecurrenceKind,
    SettlementState,
)
from finplan_gateway.domain.occurrences import generate_occurrences
from finplan_gateway.domain.projection import (
    current_balance,
    effective_date,
    project_cash_flow,
    recurring_templates,
)
from finplan_gateway.domain.transfers import build_transfer

REFERENCE = date(2024, 6, 12)


def entry(
    account_id,
    direction,
    amount,
    posting_date,
    settled=True,
    recurrence=RecurrenceKind.NONE,
    channel=PaymentChannel.INSTANT,
    **kw,
) -> Entry:
    return Entry(
        id=uuid.uuid4(),
        account_id=account_id,
        direction=direction,
        amount=Decimal(amount),
        posting_date=posting_date,
        channel=channel,
        state=SettlementState.SETTLED if settled else SettlementState.PENDING,
        recurrence=recurrence,
        **kw,
    )


@pytest.fixture
def scenario(checking):
    """2000.00 balance, 300.00 pending this month, +500/-1200 monthly templates"""
    return [
        entry(checking.id, Direction.OUTFLOW, "100.00", date(2024, 6, 15), settled=False),
        entry(checking.id, Direction.OUTFLOW, "200.00", date(2024, 6, 28), settled=False),
        entry(checking.id, Direction.INFLOW, "500.00", date(2024, 7, 5), settled=False, recurrence=RecurrenceKind.FIXED),
        entry(checking.id, Direction.OUTFLOW, "1200.00", date(2024, 7, 10), settled=False, recurrence=RecurrenceKind.FIXED),
    ]


def test_projection_running_balance(checking, scenario):
    projection = project_cash_flow([checking], scenario, 2, REFERENCE)

    assert projection.current_balance == Decimal("2000.00")
    assert projection.balances == [Decimal("1700.00"), Decimal("1000.00"), Decimal("300.00")]
    assert projection.months[0].outflow == Decimal("300.00")
    assert projection.months[1].inflow == Decimal("500.00")
    assert projection.months[1].outflow == Decimal("1200.00")
    assert projection.at_risk is False
    assert projection.minimum_balance == Decimal("300.00")


def test_projection_month_windows(checking, scenario):
    projection = project_cash_flow([checking], scenario, 7, REFERENCE)

    assert projection.months[0].month_start == date(2024, 6, 1)
    assert projection.months[0].month_end == date(2024, 6, 30)
    assert projection.months[7].month_start == date(2025, 1, 1)
    assert projection.months[7].month_end == date(2025, 1, 31)


def test_projection_is_deterministic(checking, scenario):
    first = project_cash_flow([checking], scenario, 6, REFERENCE)
    second = project_cash_flow([checking], scenario, 6, REFERENCE)

    assert first == second
    for i in range(1, len(first.months)):
        assert first.balances[i] - first.balances[i - 1] == first.months[i].net


def test_negative_balance_flags_risk(checking, scenario):
    projection = project_cash_flow([checking], scenario, 4, REFERENCE)

    assert projection.balances[-1] == Decimal("-1100.00")
    assert projection.minimum_balance == Decimal("-1100.00")
    assert projection.at_risk is True


def test_zero_months_only_current_month(checking, scenario):
    projection = project_cash_flow([checking], scenario, 0, REFERENCE)

    assert len(projection.months) == 1
    assert projection.balances == [Decimal("1700.00")]


def test_empty_ledger_is_flat(checking):
    projection = project_cash_flow([checking], [], 3, REFERENCE)

    assert projection.balances == [Decimal("2000.00")] * 4
    assert all(m.net == Decimal("0.00") for m in projection.months)


def test_negative_horizon_rejected(checking):
    with pytest.raises(ValidationError):
        project_cash_flow([checking], [], -1, REFERENCE)


def test_every_series_occurrence_is_replayed(checking):
    """A 3-occurrence monthly series adds three times its amount per projected month"""
    draft = EntryDraft(
        account_id=checking.id,
        direction=Direction.OUTFLOW,
        amount=Decimal("80.00"),
        first_date=date(2024, 1, 20),
        channel=PaymentChannel.CASH,
        recurrence=RecurrenceKind.MONTHLY,
        count=3,
    )
    series = generate_occurrences(draft)

    assert [t.id for t in recurring_templates(series)] == [e.id for e in series]

    projection = project_cash_flow([checking], series, 1, REFERENCE)
    assert projection.months[1].outflow == Decimal("240.00")


def test_weekly_template_replayed_once_per_month(checking):
    weekly = entry(checking.id, Direction.OUTFLOW, "50.00", date(2024, 5, 1), recurrence=RecurrenceKind.WEEKLY)
    projection = project_cash_flow([checking], [weekly], 2, REFERENCE)

    assert projection.months[1].outflow == Decimal("50.00")
    assert projection.months[2].outflow == Decimal("50.00")


def test_transfers_do_not_move_the_projection(checking):
    savings = replace(checking, id=uuid.uuid4(), name="Savings", opening_balance=Decimal("0.00"))
    outgoing, incoming = build_transfer(checking.id, savings.id, Decimal("400.00"), date(2024, 6, 12))

    projection = project_cash_flow([checking, savings], [outgoing, incoming], 1, REFERENCE)

    assert projection.current_balance == Decimal("2000.00")
    assert projection.balances == [Decimal("2000.00"), Decimal("2000.00")]


def test_current_balance_ignores_cards_and_pending(checking, card):
    entries = [
        entry(checking.id, Direction.INFLOW, "1000.00", date(2024, 6, 1)),
        entry(checking.id, Direction.OUTFLOW, "250.00", date(2024, 6, 2)),
        entry(checking.id, Direction.OUTFLOW, "999.00", date(2024, 6, 20), settled=False),
        entry(card.id, Direction.OUTFLOW, "500.00", date(2024, 6, 3), channel=PaymentChannel.CREDIT_CARD),
    ]

    assert current_balance([checking, card], entries) == Decimal("2750.00")


def test_current_balance_uses_settled_amount(checking):
    paid = entry(
        checking.id,
        Direction.OUTFLOW,
        "100.00",
        date(2024, 6, 1),
        settlement_date=date(2024, 6, 2),
        settled_amount=Decimal("95.50"),
    )

    assert current_balance([checking], [paid]) == Decimal("1904.50")


def test_pending_card_purchase_counts_at_cycle_closing(card):
    pending = entry(card.id, Direction.OUTFLOW, "80.00", date(2024, 6, 11), settled=False, channel=PaymentChannel.OTHER)
    settled = entry(
        card.id,
        Direction.OUTFLOW,
        "80.00",
        date(2024, 6, 11),
        channel=PaymentChannel.CREDIT_CARD,
        settlement_date=date(2024, 6, 12),
    )

    assert effective_date(pending, card) == date(2024, 7, 10)
    assert effective_date(settled, card) == date(2024, 6, 12)


def test_non_card_effective_date_is_posting_date(checking):
    pending = entry(checking.id, Direction.OUTFLOW, "10.00", date(2024, 6, 28), settled=False)

    assert effective_date(pending, checking) == date(2024, 6, 28)
    assert effective_date(pending, None) == date(2024, 6, 28)


def test_pending_card_purchase_after_closing_leaves_current_month(checking, card):
    pending = entry(card.id, Direction.OUTFLOW, "80.00", date(2024, 6, 11), settled=False, channel=PaymentChannel.OTHER)
    projection = project_cash_flow([checking, card], [pending], 0, REFERENCE)

    assert projection.months[0].outflow == Decimal("0.00")


def test_no_accounts_projects_zero():
    projection = project_cash_flow([], [], 2, REFERENCE)

    assert projection.balances == [Decimal("0.00")] * 3
    assert projection.at_risk is False
