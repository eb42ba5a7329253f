"""Paired transfers between accounts and credit-card invoice payment"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from finplan_gateway.domain.exceptions import ValidationError
from finplan_gateway.domain.models import (
    Account,
    AccountKind,
    Direction,
    Entry,
    InvoiceSummary,
    PaymentChannel,
    SettlementState,
)
from finplan_gateway.domain.settlement import settle_cycle_outflows

# Accounts that can fund a card invoice
FUNDING_KINDS = frozenset({AccountKind.CHECKING, AccountKind.SAVINGS, AccountKind.WALLET})


def build_transfer(
    source_id: uuid.UUID,
    destination_id: uuid.UUID,
    amount: Decimal,
    on: date,
    description: Optional[str] = None,
    id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
) -> Tuple[Entry, Entry]:
    """
    Outflow from source and inflow to destination, same date and amount,
    linked only by a shared transfer_pair_id.
    """
    if source_id == destination_id:
        raise ValidationError("Destination account must differ from source account")
    if amount is None or Decimal(amount) <= 0:
        raise ValidationError("Amount must be greater than zero")
    if on is None:
        raise ValidationError("Transfer date is required")

    pair_id = id_factory()
    common = dict(
        amount=Decimal(amount),
        posting_date=on,
        channel=PaymentChannel.TRANSFER,
        state=SettlementState.SETTLED,
        settlement_date=on,
        description=description,
        transfer_pair_id=pair_id,
    )
    outgoing = Entry(id=id_factory(), account_id=source_id, direction=Direction.OUTFLOW, **common)
    incoming = Entry(id=id_factory(), account_id=destination_id, direction=Direction.INFLOW, **common)
    return outgoing, incoming


def pay_invoice(
    card: Account,
    source: Account,
    invoice: InvoiceSummary,
    card_entries: Iterable[Entry],
    on: date,
    id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
) -> Tuple[Tuple[Entry, Entry], List[Entry]]:
    """
    Pay the closed invoice of a card from a cash account.

    Returns the transfer pair and the settled copies of the card outflows the
    payment covers.
    """
    if not card.is_credit_card:
        raise ValidationError("Invoice payment target must be a credit-card account")
    if source.kind not in FUNDING_KINDS:
        raise ValidationError("Invoice must be paid from a checking, savings or wallet account")
    if invoice.closed_invoice_total <= 0:
        raise ValidationError("There is no closed invoice to pay")

    pair = build_transfer(
        source.id,
        card.id,
        invoice.closed_invoice_total,
        on,
        description=f"Invoice payment {card.name}",
        id_factory=id_factory,
    )
    covered = settle_cycle_outflows(
        (e for e in card_entries if e.account_id == card.id),
        invoice.closed_cycle,
        on,
    )
    return pair, covered
