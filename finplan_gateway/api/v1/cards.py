"""Credit-card invoice endpoints"""

import uuid
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from finplan_gateway.api.v1.schemas import (
    EntrySchema,
    InvoiceResponse,
    PayInvoiceRequest,
    PayInvoiceResponse,
    TransferResponse,
)
from finplan_gateway.api.dependencies import get_request_id, get_today, raise_domain_error
from finplan_gateway.config import settings
from finplan_gateway.domain.billing import summarize_invoice
from finplan_gateway.domain.exceptions import DomainException
from finplan_gateway.domain.transfers import pay_invoice
from finplan_gateway.infrastructure.database.session import get_db
from finplan_gateway.infrastructure.database.repositories import AccountRepository, EntryRepository
from finplan_gateway.infrastructure.observability.logging import log_invoice_payment

router = APIRouter()


def _load_account(db: Session, user_id: str, account_id: uuid.UUID):
    account = AccountRepository(db).get_account(user_id, account_id)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


@router.get("/cards/{account_id}/invoice", response_model=InvoiceResponse)
def get_invoice(
    account_id: uuid.UUID,
    request: Request,
    user_id: str = Query(..., description="User identifier"),
    reference_date: Optional[date] = Query(None, description="Defaults to today"),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """
    Open and closed invoice of a card for the reference date.

    Returns:
        Cycle windows, due dates, invoice totals and available credit
    """
    card = _load_account(db, user_id, account_id)
    entries = EntryRepository(db).list_entries(user_id, account_id=account_id)
    try:
        summary = summarize_invoice(card, entries, reference_date or today, settings.closing_soon_days)
    except DomainException as e:
        raise_domain_error(db, e, get_request_id(request))
    return InvoiceResponse.model_validate(summary)


@router.post("/cards/{account_id}/pay", response_model=PayInvoiceResponse, status_code=201)
def pay_card_invoice(
    account_id: uuid.UUID,
    request_body: PayInvoiceRequest,
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """
    Pay the closed invoice of a card.

    Flow:
    1. Summarize the card's invoice on the payment date
    2. Create the paired transfer from the source account into the card
    3. Settle the card outflows covered by the closed cycle
    4. Commit everything in one transaction
    """
    request_id = get_request_id(request)
    user_id = request_body.user_id
    card = _load_account(db, user_id, account_id)
    source = _load_account(db, user_id, request_body.source_account_id)
    payment_date = request_body.payment_date or today

    repo = EntryRepository(db)
    card_entries = repo.list_entries(user_id, account_id=account_id)
    try:
        invoice = summarize_invoice(card, card_entries, payment_date, settings.closing_soon_days)
        (outgoing, incoming), covered = pay_invoice(card, source, invoice, card_entries, payment_date)
        repo.add_entries(user_id, [outgoing, incoming])
        for entry in covered:
            repo.update_settlement(user_id, entry)
        db.commit()
    except DomainException as e:
        raise_domain_error(db, e, request_id)

    log_invoice_payment(
        request_id,
        user_id,
        str(account_id),
        str(source.id),
        str(invoice.closed_invoice_total),
        len(covered),
    )
    return PayInvoiceResponse(
        amount=invoice.closed_invoice_total,
        transfer=TransferResponse(
            outgoing=EntrySchema.model_validate(outgoing),
            incoming=EntrySchema.model_validate(incoming),
        ),
        settled_entries=len(covered),
    )
