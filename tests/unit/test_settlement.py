"""Unit tests for entry confirmation, paired transfers and invoice payment"""

import uuid
import pytest
from datetime import date
from decimal import Decimal
from finplan_gateway.domain.billing import summarize_invoice
from finplan_gateway.domain.exceptions import InconsistencyError, InconsistentSettlementError, ValidationError
from finplan_gateway.domain.models import (
    BillingCycle,
    Direction,
    Entry,
    PaymentChannel,
    SettlementState,
)
from finplan_gateway.domain.settlement import settle_cycle_outflows, settle_entry
from finplan_gateway.domain.transfers import build_transfer, pay_invoice


def pending_entry(account_id, posting_date, amount="100.00", direction=Direction.OUTFLOW) -> Entry:
    return Entry(
        id=uuid.uuid4(),
        account_id=account_id,
        direction=direction,
        amount=Decimal(amount),
        posting_date=posting_date,
        channel=PaymentChannel.OTHER,
        state=SettlementState.PENDING,
    )


def test_settle_entry_marks_settled():
    entry = pending_entry(uuid.uuid4(), date(2024, 6, 20))
    settled = settle_entry(entry, date(2024, 6, 18))

    assert settled.settled
    assert settled.settlement_date == date(2024, 6, 18)
    assert settled.booked_amount == Decimal("100.00")
    assert not entry.settled


def test_settlement_timing_relative_to_posting_date():
    entry = pending_entry(uuid.uuid4(), date(2024, 6, 20))

    assert entry.settlement_timing is None
    assert settle_entry(entry, date(2024, 6, 18)).settlement_timing == "early"
    assert settle_entry(entry, date(2024, 6, 20)).settlement_timing == "on_time"
    assert settle_entry(entry, date(2024, 6, 25)).settlement_timing == "late"


def test_settle_entry_with_actual_amount():
    entry = pending_entry(uuid.uuid4(), date(2024, 6, 20))
    settled = settle_entry(entry, date(2024, 6, 20), settled_amount=Decimal("92.345"))

    assert settled.settled_amount == Decimal("92.35")
    assert settled.booked_amount == Decimal("92.35")


def test_settle_entry_before_first_activity_is_inconsistent():
    entry = pending_entry(uuid.uuid4(), date(2024, 6, 20))

    with pytest.raises(InconsistentSettlementError) as exc:
        settle_entry(entry, date(2024, 1, 1), earliest_activity=date(2024, 3, 1))
    assert isinstance(exc.value, InconsistencyError)


def test_settle_entry_rejects_already_settled():
    entry = settle_entry(pending_entry(uuid.uuid4(), date(2024, 6, 20)), date(2024, 6, 20))

    with pytest.raises(ValidationError):
        settle_entry(entry, date(2024, 6, 21))


def test_settle_cycle_outflows_only_touches_cycle():
    account_id = uuid.uuid4()
    inside = pending_entry(account_id, date(2024, 4, 20))
    outside = pending_entry(account_id, date(2024, 5, 20))
    inflow = pending_entry(account_id, date(2024, 4, 25), direction=Direction.INFLOW)

    settled = settle_cycle_outflows(
        [inside, outside, inflow], BillingCycle(date(2024, 4, 11), date(2024, 5, 10)), date(2024, 6, 12)
    )

    assert [e.id for e in settled] == [inside.id]
    assert settled[0].settlement_date == date(2024, 6, 12)


def test_build_transfer_pair(counter_ids):
    source, destination = uuid.uuid4(), uuid.uuid4()
    outgoing, incoming = build_transfer(source, destination, Decimal("250.00"), date(2024, 6, 12), id_factory=counter_ids)

    assert outgoing.direction == Direction.OUTFLOW and outgoing.account_id == source
    assert incoming.direction == Direction.INFLOW and incoming.account_id == destination
    assert outgoing.transfer_pair_id == incoming.transfer_pair_id == uuid.UUID(int=1)
    assert outgoing.amount == incoming.amount == Decimal("250.00")
    assert outgoing.is_transfer and incoming.is_transfer
    assert outgoing.settled and incoming.settled


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1.00")])
def test_build_transfer_rejects_non_positive_amount(amount):
    with pytest.raises(ValidationError):
        build_transfer(uuid.uuid4(), uuid.uuid4(), amount, date(2024, 6, 12))


def test_build_transfer_rejects_same_account():
    account_id = uuid.uuid4()
    with pytest.raises(ValidationError):
        build_transfer(account_id, account_id, Decimal("10.00"), date(2024, 6, 12))


def test_pay_invoice_settles_closed_cycle(checking, card):
    entries = [
        pending_entry(card.id, date(2024, 4, 20), "300.00"),
        pending_entry(card.id, date(2024, 5, 20), "150.00"),
    ]
    invoice = summarize_invoice(card, entries, date(2024, 6, 12))

    (outgoing, incoming), covered = pay_invoice(card, checking, invoice, entries, date(2024, 6, 12))

    assert outgoing.account_id == checking.id
    assert incoming.account_id == card.id
    assert outgoing.amount == Decimal("300.00")
    assert [e.id for e in covered] == [entries[0].id]


def test_pay_invoice_requires_funding_account(card):
    entries = [pending_entry(card.id, date(2024, 4, 20), "300.00")]
    invoice = summarize_invoice(card, entries, date(2024, 6, 12))

    with pytest.raises(ValidationError):
        pay_invoice(card, card, invoice, entries, date(2024, 6, 12))


def test_pay_invoice_with_nothing_due(checking, card):
    invoice = summarize_invoice(card, [], date(2024, 6, 12))

    with pytest.raises(ValidationError):
        pay_invoice(card, checking, invoice, [], date(2024, 6, 12))
