"""Ledger entry endpoints: series creation, confirmation, deletion and transfers"""

import uuid
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from finplan_gateway.api.v1.schemas import (
    ConfirmEntryRequest,
    DeleteResponse,
    DeleteScope,
    EntryCreate,
    EntryListResponse,
    EntrySchema,
    TransferCreate,
    TransferResponse,
)
from finplan_gateway.api.dependencies import get_request_id, raise_domain_error
from finplan_gateway.infrastructure.database.session import get_db
from finplan_gateway.infrastructure.database.repositories import AccountRepository, EntryRepository
from finplan_gateway.domain.models import EntryDraft, SettlementState
from finplan_gateway.domain.occurrences import generate_occurrences
from finplan_gateway.domain.series import SeriesIndex
from finplan_gateway.domain.settlement import settle_entry
from finplan_gateway.domain.transfers import build_transfer
from finplan_gateway.domain.exceptions import DomainException
from finplan_gateway.infrastructure.observability.metrics import record_occurrences
from finplan_gateway.infrastructure.observability.logging import log_series_created, log_settlement

router = APIRouter()


@router.post("/entries", response_model=EntryListResponse, status_code=201)
def create_entries(request_body: EntryCreate, request: Request, db: Session = Depends(get_db)):
    """
    Expand an entry draft into its occurrences and persist them.

    Flow:
    1. Check the owning account exists
    2. Generate the whole series (weekly/monthly/yearly with count > 1)
    3. Stage every occurrence and commit once, so readers never see a partial series
    """
    request_id = get_request_id(request)
    if AccountRepository(db).get_account(request_body.user_id, request_body.account_id) is None:
        raise HTTPException(status_code=404, detail="Account not found")

    draft = EntryDraft(
        account_id=request_body.account_id,
        direction=request_body.direction,
        amount=request_body.amount,
        first_date=request_body.first_date,
        channel=request_body.channel,
        recurrence=request_body.recurrence,
        count=request_body.count,
        category_id=request_body.category_id,
        description=request_body.description,
    )

    try:
        entries = generate_occurrences(draft)
        EntryRepository(db).add_entries(request_body.user_id, entries)
        db.commit()
    except DomainException as e:
        raise_domain_error(db, e, request_id)

    record_occurrences(request_body.recurrence.value, len(entries))
    log_series_created(request_id, request_body.user_id, request_body.recurrence.value, len(entries))

    return EntryListResponse(
        user_id=request_body.user_id,
        entries=[EntrySchema.model_validate(e) for e in entries],
    )


@router.get("/entries", response_model=EntryListResponse)
def list_entries(
    user_id: str = Query(..., description="User identifier"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    account_id: Optional[uuid.UUID] = Query(None),
    state: Optional[SettlementState] = Query(None, description="pending lists entries awaiting confirmation"),
    db: Session = Depends(get_db),
):
    entries = EntryRepository(db).list_entries(user_id, start=start, end=end, account_id=account_id, state=state)
    return EntryListResponse(user_id=user_id, entries=[EntrySchema.model_validate(e) for e in entries])


@router.get("/entries/{entry_id}/series", response_model=EntryListResponse)
def list_series(
    entry_id: uuid.UUID,
    user_id: str = Query(..., description="User identifier"),
    from_date: Optional[date] = Query(None, description="Only occurrences posted on or after this date"),
    db: Session = Depends(get_db),
):
    """Occurrences of the series an entry belongs to, in chronological order"""
    repo = EntryRepository(db)
    entry = repo.get_entry(user_id, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    if entry.series_id is None:
        return EntryListResponse(user_id=user_id, entries=[EntrySchema.model_validate(entry)])

    index = SeriesIndex(repo.list_entries(user_id, account_id=entry.account_id))
    if from_date is None:
        occurrences = index.occurrences(entry.series_id)
    else:
        occurrences = index.occurrences_from(entry.series_id, from_date)
    return EntryListResponse(user_id=user_id, entries=[EntrySchema.model_validate(e) for e in occurrences])


@router.post("/entries/{entry_id}/confirm", response_model=EntrySchema)
def confirm_entry(
    entry_id: uuid.UUID,
    request_body: ConfirmEntryRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Mark a pending entry as executed, optionally with the amount actually paid"""
    request_id = get_request_id(request)
    repo = EntryRepository(db)

    entry = repo.get_entry(request_body.user_id, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")

    try:
        earliest = repo.earliest_activity(request_body.user_id, entry.account_id)
        settled = settle_entry(
            entry,
            request_body.settlement_date,
            settled_amount=request_body.settled_amount,
            earliest_activity=earliest,
        )
        repo.update_settlement(request_body.user_id, settled)
        db.commit()
    except DomainException as e:
        raise_domain_error(db, e, request_id)

    log_settlement(
        request_id,
        request_body.user_id,
        "entry",
        str(entry_id),
        settled.settlement_timing,
        str(entry.amount - settled.booked_amount),
    )
    return EntrySchema.model_validate(settled)


@router.delete("/entries/{entry_id}", response_model=DeleteResponse)
def delete_entry(
    entry_id: uuid.UUID,
    request: Request,
    user_id: str = Query(..., description="User identifier"),
    scope: DeleteScope = Query("single", description="single entry or this and all future occurrences"),
    db: Session = Depends(get_db),
):
    repo = EntryRepository(db)
    entry = repo.get_entry(user_id, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")

    if scope == "future" and entry.series_id is not None:
        deleted = repo.delete_series_from(user_id, entry.series_id, entry.posting_date)
    else:
        deleted = repo.delete_entry(user_id, entry_id)
    db.commit()

    logging.info(
        "Entries deleted",
        extra={"request_id": get_request_id(request), "user_id": user_id, "scope": scope, "deleted": deleted},
    )
    return DeleteResponse(deleted=deleted)


@router.post("/transfers", response_model=TransferResponse, status_code=201)
def create_transfer(request_body: TransferCreate, request: Request, db: Session = Depends(get_db)):
    """Move money between two of the user's accounts as a linked outflow/inflow pair"""
    request_id = get_request_id(request)
    accounts = AccountRepository(db)
    for account_id in (request_body.source_account_id, request_body.destination_account_id):
        if accounts.get_account(request_body.user_id, account_id) is None:
            raise HTTPException(status_code=404, detail="Account not found")

    try:
        outgoing, incoming = build_transfer(
            request_body.source_account_id,
            request_body.destination_account_id,
            request_body.amount,
            request_body.transfer_date,
            description=request_body.description,
        )
        EntryRepository(db).add_entries(request_body.user_id, [outgoing, incoming])
        db.commit()
    except DomainException as e:
        raise_domain_error(db, e, request_id)

    return TransferResponse(
        outgoing=EntrySchema.model_validate(outgoing),
        incoming=EntrySchema.model_validate(incoming),
    )
