"""GET /v1/balance and GET /v1/projection - balance and forward cash flow"""

import time
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from finplan_gateway.api.v1.schemas import BalanceResponse, ProjectionResponse
from finplan_gateway.api.dependencies import get_request_id, get_today, raise_domain_error
from finplan_gateway.config import settings
from finplan_gateway.domain.exceptions import DomainException
from finplan_gateway.domain.projection import current_balance, project_cash_flow
from finplan_gateway.infrastructure.database.session import get_db
from finplan_gateway.infrastructure.database.repositories import AccountRepository, EntryRepository
from finplan_gateway.infrastructure.observability.metrics import record_projection
from finplan_gateway.infrastructure.observability.logging import log_projection

router = APIRouter()


@router.get("/balance", response_model=BalanceResponse)
def get_balance(
    user_id: str = Query(..., description="User identifier"),
    db: Session = Depends(get_db),
):
    """Settled balance across every non-card account"""
    accounts = AccountRepository(db).list_accounts(user_id)
    entries = EntryRepository(db).list_entries(user_id)
    return BalanceResponse(user_id=user_id, current_balance=current_balance(accounts, entries))


@router.get("/projection", response_model=ProjectionResponse)
def get_projection(
    request: Request,
    user_id: str = Query(..., description="User identifier"),
    months: Optional[int] = Query(None, ge=0, le=settings.max_projection_months),
    reference_date: Optional[date] = Query(None, description="Defaults to today"),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """
    Project the running balance for the current month plus N months.

    Returns:
        Per-month inflow/outflow/net/balance and a negative-balance risk flag
    """
    start_time = time.time()
    request_id = get_request_id(request)
    horizon = settings.default_projection_months if months is None else months

    accounts = AccountRepository(db).list_accounts(user_id)
    entries = EntryRepository(db).list_entries(user_id)
    try:
        projection = project_cash_flow(accounts, entries, horizon, reference_date or today)
    except DomainException as e:
        raise_domain_error(db, e, request_id)

    duration_ms = (time.time() - start_time) * 1000
    record_projection(projection.at_risk)
    log_projection(request_id, user_id, horizon, projection.at_risk, str(projection.minimum_balance), duration_ms)

    return ProjectionResponse.model_validate(projection)
