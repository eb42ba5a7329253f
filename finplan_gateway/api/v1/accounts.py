"""POST/GET /v1/accounts - account directory"""

import uuid
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from finplan_gateway.api.v1.schemas import AccountCreate, AccountSchema
from finplan_gateway.domain.models import Account, AccountKind
from finplan_gateway.infrastructure.database.session import get_db
from finplan_gateway.infrastructure.database.repositories import AccountRepository

router = APIRouter()


@router.post("/accounts", response_model=AccountSchema, status_code=201)
def create_account(request_body: AccountCreate, db: Session = Depends(get_db)):
    """
    Register an account.

    Card accounts carry limit, closing day and due day; their opening balance is
    stored as zero because cards never contribute to the balance directly.
    """
    is_card = request_body.kind == AccountKind.CREDIT_CARD
    account = Account(
        id=uuid.uuid4(),
        name=request_body.name,
        kind=request_body.kind,
        opening_balance=request_body.opening_balance if not is_card else 0,
        credit_limit=request_body.credit_limit if is_card else None,
        closing_day=request_body.closing_day if is_card else None,
        due_day=request_body.due_day if is_card else None,
    )
    created = AccountRepository(db).create_account(request_body.user_id, account)
    db.commit()
    return AccountSchema.model_validate(created)


@router.get("/accounts", response_model=List[AccountSchema])
def list_accounts(
    user_id: str = Query(..., description="User identifier"),
    db: Session = Depends(get_db),
):
    accounts = AccountRepository(db).list_accounts(user_id)
    return [AccountSchema.model_validate(a) for a in accounts]
