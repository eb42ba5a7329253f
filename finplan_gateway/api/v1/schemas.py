"""Pydantic schemas for API request/response validation"""

import uuid
from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import date
from decimal import Decimal
from typing import Annotated, List, Literal, Optional

from finplan_gateway.domain.models import AccountKind, Direction, PaymentChannel, RecurrenceKind

PositiveMoney = Annotated[Decimal, Field(gt=0, max_digits=14, decimal_places=2)]


class DomainSchema(BaseModel):
    """Response models built straight from domain dataclasses"""

    model_config = ConfigDict(from_attributes=True)


class AccountCreate(BaseModel):
    """Request body for POST /v1/accounts"""

    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    kind: AccountKind
    opening_balance: Decimal = Field(Decimal("0.00"), max_digits=14, decimal_places=2)
    credit_limit: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    closing_day: Optional[int] = Field(None, ge=1, le=31)
    due_day: Optional[int] = Field(None, ge=1, le=31)

    @model_validator(mode="after")
    def card_needs_cycle_days(self) -> "AccountCreate":
        if self.kind == AccountKind.CREDIT_CARD and (self.closing_day is None or self.due_day is None):
            raise ValueError("Credit-card accounts require closing_day and due_day")
        return self


class AccountSchema(DomainSchema):
    id: uuid.UUID
    name: str
    kind: AccountKind
    opening_balance: Decimal
    credit_limit: Optional[Decimal] = None
    closing_day: Optional[int] = None
    due_day: Optional[int] = None


class EntryCreate(BaseModel):
    """Request body for POST /v1/entries"""

    user_id: str = Field(..., min_length=1)
    account_id: uuid.UUID
    direction: Direction
    amount: PositiveMoney
    first_date: date
    channel: PaymentChannel
    recurrence: RecurrenceKind = RecurrenceKind.NONE
    count: Optional[int] = Field(None, le=600)
    category_id: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)


class EntrySchema(DomainSchema):
    id: uuid.UUID
    account_id: uuid.UUID
    direction: Direction
    amount: Decimal
    posting_date: date
    channel: PaymentChannel
    settled: bool
    settlement_date: Optional[date] = None
    settled_amount: Optional[Decimal] = None
    category_id: Optional[str] = None
    description: Optional[str] = None
    recurrence: RecurrenceKind
    series_id: Optional[uuid.UUID] = None
    occurrence_index: Optional[int] = None
    series_total: Optional[int] = None
    transfer_pair_id: Optional[uuid.UUID] = None


class EntryListResponse(BaseModel):
    user_id: str
    entries: List[EntrySchema]


class ConfirmEntryRequest(BaseModel):
    """Request body for POST /v1/entries/{id}/confirm"""

    user_id: str = Field(..., min_length=1)
    settlement_date: date
    settled_amount: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)


class DeleteResponse(BaseModel):
    deleted: int


class TransferCreate(BaseModel):
    """Request body for POST /v1/transfers"""

    user_id: str = Field(..., min_length=1)
    source_account_id: uuid.UUID
    destination_account_id: uuid.UUID
    amount: PositiveMoney
    transfer_date: date
    description: Optional[str] = Field(None, max_length=500)


class TransferResponse(BaseModel):
    outgoing: EntrySchema
    incoming: EntrySchema


class CycleSchema(DomainSchema):
    start: date
    end: date


class InvoiceResponse(DomainSchema):
    account_id: uuid.UUID
    reference_date: date
    open_cycle: CycleSchema
    closed_cycle: CycleSchema
    open_due_date: Optional[date] = None
    closed_due_date: Optional[date] = None
    next_closing_date: date
    days_until_closing: int
    urgent: bool
    open_invoice_total: Decimal
    closed_invoice_total: Decimal
    total_outstanding: Decimal
    credit_limit: Optional[Decimal] = None
    available_credit: Optional[Decimal] = None
    utilization_pct: Optional[Decimal] = None


class PayInvoiceRequest(BaseModel):
    """Request body for POST /v1/cards/{account_id}/pay"""

    user_id: str = Field(..., min_length=1)
    source_account_id: uuid.UUID
    payment_date: Optional[date] = None


class PayInvoiceResponse(BaseModel):
    amount: Decimal
    transfer: TransferResponse
    settled_entries: int


class BalanceResponse(BaseModel):
    user_id: str
    current_balance: Decimal


class ProjectionMonthSchema(DomainSchema):
    index: int
    month_start: date
    month_end: date
    inflow: Decimal
    outflow: Decimal
    net: Decimal
    balance: Decimal


class ProjectionResponse(DomainSchema):
    reference_date: date
    current_balance: Decimal
    months: List[ProjectionMonthSchema]
    minimum_balance: Decimal
    at_risk: bool


class LoanCreate(BaseModel):
    """Request body for POST /v1/loans"""

    user_id: str = Field(..., min_length=1)
    principal: PositiveMoney
    installment_value: PositiveMoney
    installment_count: int = Field(..., ge=1, le=600)
    daily_rate: Optional[Decimal] = Field(None, ge=0, lt=1, description="Defaults to the configured daily rate")
    monthly_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    first_installment_date: date
    contract_date: Optional[date] = None


class LoanPlanSchema(DomainSchema):
    id: uuid.UUID
    principal: Decimal
    installment_value: Decimal
    installment_count: int
    daily_rate: Decimal
    effective_monthly_rate: Decimal
    first_installment_date: date
    contract_date: Optional[date] = None


class InstallmentSchema(DomainSchema):
    """Single installment in a loan plan"""

    id: uuid.UUID
    sequence: int
    due_date: date
    face_value: Decimal
    paid: bool
    payment_date: Optional[date] = None
    paid_amount: Optional[Decimal] = None
    anticipated: bool
    days_anticipated: Optional[int] = None
    interest: Optional[Decimal] = None
    amortization: Optional[Decimal] = None
    savings: Optional[Decimal] = None


class LoanSummarySchema(DomainSchema):
    installment_count: int
    paid_count: int
    total_paid: Decimal
    total_savings: Decimal
    total_interest: Decimal
    total_amortization: Decimal
    outstanding_principal: Decimal
    remaining_face_value: Decimal


class LoanResponse(BaseModel):
    """Response for GET /v1/loans/{plan_id}"""

    plan: LoanPlanSchema
    installments: List[InstallmentSchema]
    summary: LoanSummarySchema


class AnticipationSchema(DomainSchema):
    face_value: Decimal
    present_value: Decimal
    savings: Decimal
    raw_savings: Decimal
    days_early: int
    interest: Decimal
    amortization: Decimal
    is_early: bool
    is_late: bool
    timing: str


class PayInstallmentRequest(BaseModel):
    """Request body for POST /v1/loans/{plan_id}/installments/{n}/pay"""

    user_id: str = Field(..., min_length=1)
    payment_date: date
    paid_amount: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)


class ResetRequest(BaseModel):
    """Request body for POST /v1/loans/{plan_id}/reset; new rates are optional"""

    user_id: str = Field(..., min_length=1)
    daily_rate: Optional[Decimal] = Field(None, ge=0, lt=1)
    monthly_rate: Optional[Decimal] = Field(None, ge=0, le=1)


DeleteScope = Literal["single", "future"]
