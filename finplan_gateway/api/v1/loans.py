"""Loan plan endpoints: creation, installment anticipation and reset"""

import uuid
from dataclasses import replace
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from finplan_gateway.api.v1.schemas import (
    AnticipationSchema,
    InstallmentSchema,
    LoanCreate,
    LoanPlanSchema,
    LoanResponse,
    LoanSummarySchema,
    PayInstallmentRequest,
    ResetRequest,
)
from finplan_gateway.api.dependencies import get_request_id, get_today, raise_domain_error
from finplan_gateway.config import settings
from finplan_gateway.domain.exceptions import DomainException
from finplan_gateway.domain.loans import preview_installment, reset_installments, settle_installment, summarize_loan
from finplan_gateway.domain.models import LoanInstallment, LoanPlan
from finplan_gateway.domain.occurrences import generate_loan_installments
from finplan_gateway.infrastructure.database.session import get_db
from finplan_gateway.infrastructure.database.repositories import LoanRepository
from finplan_gateway.infrastructure.observability.metrics import record_installment_settlement
from finplan_gateway.infrastructure.observability.logging import log_settlement

router = APIRouter()


def _loan_response(plan: LoanPlan, installments: List[LoanInstallment]) -> LoanResponse:
    return LoanResponse(
        plan=LoanPlanSchema.model_validate(plan),
        installments=[InstallmentSchema.model_validate(i) for i in installments],
        summary=LoanSummarySchema.model_validate(summarize_loan(plan, installments)),
    )


def _load_plan(db: Session, user_id: str, plan_id: uuid.UUID):
    found = LoanRepository(db).get_plan(user_id, plan_id)
    if found is None:
        raise HTTPException(status_code=404, detail="Loan plan not found")
    return found


def _find_installment(installments: List[LoanInstallment], sequence: int) -> LoanInstallment:
    for installment in installments:
        if installment.sequence == sequence:
            return installment
    raise HTTPException(status_code=404, detail="Installment not found")


@router.post("/loans", response_model=LoanResponse, status_code=201)
def create_loan(request_body: LoanCreate, request: Request, db: Session = Depends(get_db)):
    """
    Create the user's loan plan, replacing any existing plan.

    All installments are generated monthly from the first installment date and
    start unpaid; plan and installments are committed together.
    """
    plan = LoanPlan(
        id=uuid.uuid4(),
        principal=request_body.principal,
        installment_value=request_body.installment_value,
        installment_count=request_body.installment_count,
        daily_rate=request_body.daily_rate if request_body.daily_rate is not None else settings.default_daily_rate,
        first_installment_date=request_body.first_installment_date,
        monthly_rate=request_body.monthly_rate,
        contract_date=request_body.contract_date,
    )
    try:
        installments = generate_loan_installments(plan)
        LoanRepository(db).replace_plan(request_body.user_id, plan, installments)
        db.commit()
    except DomainException as e:
        raise_domain_error(db, e, get_request_id(request))

    return _loan_response(plan, installments)


@router.get("/loans/{plan_id}", response_model=LoanResponse)
def get_loan(
    plan_id: uuid.UUID,
    user_id: str = Query(..., description="User identifier"),
    db: Session = Depends(get_db),
):
    plan, installments = _load_plan(db, user_id, plan_id)
    return _loan_response(plan, installments)


@router.get("/loans/{plan_id}/installments/{sequence}/preview", response_model=AnticipationSchema)
def preview_payment(
    plan_id: uuid.UUID,
    sequence: int,
    user_id: str = Query(..., description="User identifier"),
    settlement_date: Optional[date] = Query(None, description="Defaults to today"),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Discount obtained by paying one installment on settlement_date, without saving it"""
    plan, installments = _load_plan(db, user_id, plan_id)
    installment = _find_installment(installments, sequence)
    result = preview_installment(installment, settlement_date or today, plan.daily_rate)
    return AnticipationSchema.model_validate(result)


@router.post("/loans/{plan_id}/installments/{sequence}/pay", response_model=InstallmentSchema)
def pay_installment(
    plan_id: uuid.UUID,
    sequence: int,
    request_body: PayInstallmentRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Record payment of one installment, computing its anticipation discount"""
    request_id = get_request_id(request)
    plan, installments = _load_plan(db, request_body.user_id, plan_id)
    installment = _find_installment(installments, sequence)

    try:
        paid = settle_installment(
            installment,
            request_body.payment_date,
            plan.daily_rate,
            paid_amount=request_body.paid_amount,
        )
        LoanRepository(db).save_installment(paid)
        db.commit()
    except DomainException as e:
        raise_domain_error(db, e, request_id)

    record_installment_settlement(paid.timing, paid.savings)
    log_settlement(request_id, request_body.user_id, "installment", str(paid.id), paid.timing, str(paid.savings))

    return InstallmentSchema.model_validate(paid)


@router.post("/loans/{plan_id}/reset", response_model=LoanResponse)
def reset_loan(plan_id: uuid.UUID, request_body: ResetRequest, db: Session = Depends(get_db)):
    """Clear every installment settlement so payments can be re-entered with new rates"""
    plan, installments = _load_plan(db, request_body.user_id, plan_id)
    repo = LoanRepository(db)
    if request_body.daily_rate is not None or request_body.monthly_rate is not None:
        plan = replace(
            plan,
            daily_rate=request_body.daily_rate if request_body.daily_rate is not None else plan.daily_rate,
            monthly_rate=request_body.monthly_rate,
        )
        repo.update_rates(plan)

    cleared = reset_installments(installments)
    for installment in cleared:
        repo.save_installment(installment)
    db.commit()
    return _loan_response(plan, cleared)
