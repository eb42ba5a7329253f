"""Occurrence generation for recurring entries and loan installments"""

import uuid
from decimal import Decimal
from typing import Callable, List

from finplan_gateway.domain.exceptions import UnknownRecurrenceError, ValidationError
from finplan_gateway.domain.models import (
    Entry,
    EntryDraft,
    LoanInstallment,
    LoanPlan,
    PaymentChannel,
    RecurrenceKind,
    SeriesId,
    SettlementState,
)
from finplan_gateway.utils.date_utils import add_cycles

IdFactory = Callable[[], uuid.UUID]


def parse_recurrence(value: str) -> RecurrenceKind:
    """Map a stored/requested recurrence string to its kind; unknown kinds are rejected"""
    try:
        return RecurrenceKind(value)
    except ValueError as e:
        raise UnknownRecurrenceError(f"Unknown recurrence kind: {value!r}") from e


def validate_draft(draft: EntryDraft) -> None:
    """Reject drafts that cannot produce a consistent series"""
    if draft.first_date is None:
        raise ValidationError("First date is required")
    if draft.amount is None or Decimal(draft.amount) <= 0:
        raise ValidationError("Amount must be greater than zero")
    if draft.count is not None and draft.count < 1:
        raise ValidationError("Occurrence count must be at least 1")
    if draft.channel == PaymentChannel.TRANSFER:
        raise ValidationError("Transfers are created as a paired transfer, not as a draft")


def _single_entry(draft: EntryDraft, id_factory: IdFactory) -> Entry:
    return Entry(
        id=id_factory(),
        account_id=draft.account_id,
        direction=draft.direction,
        amount=Decimal(draft.amount),
        posting_date=draft.first_date,
        channel=draft.channel,
        state=SettlementState.SETTLED,
        category_id=draft.category_id,
        description=draft.description,
        recurrence=draft.recurrence,
    )


def generate_occurrences(draft: EntryDraft, id_factory: IdFactory = uuid.uuid4) -> List[Entry]:
    """
    Expand a draft into its chronological series of Entries.

    - recurrence "none" or count <= 1: one settled entry
    - recurrence "fixed": one settled template, repeated later by the projection
    - weekly/monthly/yearly with count k > 1: k entries at
      add_cycles(first_date, kind, i) for i in 0..k-1, all sharing the first
      entry's id as series id

    Settlement default: card purchases are settled on every occurrence; any
    other channel settles only occurrence 1 and leaves the rest pending.

    Nothing is returned unless the whole series could be built.
    """
    validate_draft(draft)

    count = draft.count or 1
    if draft.recurrence == RecurrenceKind.NONE or count <= 1:
        return [_single_entry(draft, id_factory)]

    if draft.recurrence == RecurrenceKind.FIXED:
        return [_single_entry(draft, id_factory)]

    first_id = id_factory()
    series_id = SeriesId(first_id)
    card_purchase = draft.channel == PaymentChannel.CREDIT_CARD

    entries = []
    for i in range(count):
        settled = card_purchase or i == 0
        entries.append(
            Entry(
                id=first_id if i == 0 else id_factory(),
                account_id=draft.account_id,
                direction=draft.direction,
                amount=Decimal(draft.amount),
                posting_date=add_cycles(draft.first_date, draft.recurrence, i),
                channel=draft.channel,
                state=SettlementState.SETTLED if settled else SettlementState.PENDING,
                category_id=draft.category_id,
                description=draft.description,
                recurrence=draft.recurrence,
                series_id=series_id,
                occurrence_index=i + 1,
                series_total=count,
            )
        )

    return entries


def generate_loan_installments(plan: LoanPlan, id_factory: IdFactory = uuid.uuid4) -> List[LoanInstallment]:
    """
    Expand a loan plan into monthly installments, all unpaid.

    Installment i (1-based) is due add_cycles(first_installment_date, monthly, i-1).
    """
    if plan.first_installment_date is None:
        raise ValidationError("First installment date is required")
    if plan.installment_count is None or plan.installment_count < 1:
        raise ValidationError("Installment count must be at least 1")
    if Decimal(plan.installment_value) <= 0:
        raise ValidationError("Installment value must be greater than zero")
    if Decimal(plan.principal) <= 0:
        raise ValidationError("Financed principal must be greater than zero")

    return [
        LoanInstallment(
            id=id_factory(),
            plan_id=plan.id,
            sequence=i + 1,
            due_date=add_cycles(plan.first_installment_date, RecurrenceKind.MONTHLY, i),
            face_value=Decimal(plan.installment_value),
        )
        for i in range(plan.installment_count)
    ]
