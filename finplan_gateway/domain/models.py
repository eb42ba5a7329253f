"""Domain models - pure Python dataclasses representing ledger entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, NewType, Optional

SeriesId = NewType("SeriesId", uuid.UUID)

ZERO = Decimal("0.00")


def classify_timing(due: date, settled_on: Optional[date]) -> Optional[str]:
    """early, on_time or late relative to the due date; None until settled"""
    if settled_on is None:
        return None
    if settled_on < due:
        return "early"
    return "late" if settled_on > due else "on_time"


class AccountKind(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    WALLET = "wallet"
    INVESTMENT = "investment"
    CREDIT_CARD = "credit_card"


class Direction(str, Enum):
    INFLOW = "inflow"
    OUTFLOW = "outflow"


class PaymentChannel(str, Enum):
    INSTANT = "instant"
    DEBIT = "debit"
    CREDIT_CARD = "credit_card"
    CASH = "cash"
    OTHER = "other"
    TRANSFER = "transfer"  # paired-transfer marker, never counted as income/expense


class SettlementState(str, Enum):
    SETTLED = "settled"
    PENDING = "pending"


class RecurrenceKind(str, Enum):
    NONE = "none"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    FIXED = "fixed"  # unlimited, replayed by the projection instead of materialized


@dataclass
class Account:
    """Account definition from the account directory"""

    id: uuid.UUID
    name: str
    kind: AccountKind
    opening_balance: Decimal = ZERO
    credit_limit: Optional[Decimal] = None
    closing_day: Optional[int] = None
    due_day: Optional[int] = None

    @property
    def is_credit_card(self) -> bool:
        return self.kind == AccountKind.CREDIT_CARD


@dataclass
class Entry:
    """Single ledger line, optionally part of a recurring/installment series"""

    id: uuid.UUID
    account_id: uuid.UUID
    direction: Direction
    amount: Decimal
    posting_date: date
    channel: PaymentChannel
    state: SettlementState = SettlementState.SETTLED
    settlement_date: Optional[date] = None
    settled_amount: Optional[Decimal] = None
    category_id: Optional[str] = None
    description: Optional[str] = None
    recurrence: RecurrenceKind = RecurrenceKind.NONE
    series_id: Optional[SeriesId] = None
    occurrence_index: Optional[int] = None
    series_total: Optional[int] = None
    transfer_pair_id: Optional[uuid.UUID] = None

    @property
    def settled(self) -> bool:
        return self.state == SettlementState.SETTLED

    @property
    def is_transfer(self) -> bool:
        return self.channel == PaymentChannel.TRANSFER

    @property
    def booked_amount(self) -> Decimal:
        """Amount that actually moved: the settled amount when one was recorded"""
        if self.settled and self.settled_amount is not None:
            return self.settled_amount
        return self.amount

    @property
    def settlement_timing(self) -> Optional[str]:
        if not self.settled:
            return None
        return classify_timing(self.posting_date, self.settlement_date)


@dataclass
class EntryDraft:
    """User input that the occurrence generator expands into Entries"""

    account_id: uuid.UUID
    direction: Direction
    amount: Decimal
    first_date: Optional[date]
    channel: PaymentChannel
    recurrence: RecurrenceKind = RecurrenceKind.NONE
    count: Optional[int] = None
    category_id: Optional[str] = None
    description: Optional[str] = None


@dataclass
class LoanPlan:
    """Fixed-rate installment loan"""

    id: uuid.UUID
    principal: Decimal
    installment_value: Decimal
    installment_count: int
    daily_rate: Decimal
    first_installment_date: date
    monthly_rate: Optional[Decimal] = None
    contract_date: Optional[date] = None

    @property
    def effective_monthly_rate(self) -> Decimal:
        if self.monthly_rate is not None:
            return self.monthly_rate
        return self.daily_rate * 30


@dataclass
class LoanInstallment:
    """One installment of a LoanPlan with its settlement outcome once paid"""

    id: uuid.UUID
    plan_id: uuid.UUID
    sequence: int
    due_date: date
    face_value: Decimal
    paid: bool = False
    payment_date: Optional[date] = None
    paid_amount: Optional[Decimal] = None
    anticipated: bool = False
    days_anticipated: Optional[int] = None
    interest: Optional[Decimal] = None
    amortization: Optional[Decimal] = None
    savings: Optional[Decimal] = None

    @property
    def timing(self) -> Optional[str]:
        return classify_timing(self.due_date, self.payment_date) if self.paid else None


@dataclass
class AnticipationResult:
    """Outcome of settling one installment-like amount on a given date"""

    face_value: Decimal
    present_value: Decimal
    savings: Decimal
    days_early: int
    interest: Decimal
    amortization: Decimal
    is_early: bool
    is_late: bool
    raw_savings: Decimal  # face - paid, kept unclamped for audit

    @property
    def timing(self) -> str:
        if self.is_early:
            return "early"
        return "late" if self.is_late else "on_time"


@dataclass
class BillingCycle:
    """Inclusive [start, end] window of one credit-card invoice"""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass
class InvoiceSummary:
    """Per-card aggregation over its billing cycles"""

    account_id: uuid.UUID
    reference_date: date
    open_cycle: BillingCycle
    closed_cycle: BillingCycle
    open_due_date: Optional[date]
    closed_due_date: Optional[date]
    next_closing_date: date
    days_until_closing: int
    urgent: bool
    open_invoice_total: Decimal
    closed_invoice_total: Decimal
    total_outstanding: Decimal
    credit_limit: Optional[Decimal]
    available_credit: Optional[Decimal]
    utilization_pct: Optional[Decimal]


@dataclass
class ProjectionMonth:
    """Aggregated flow for one month of the forward projection"""

    index: int
    month_start: date
    month_end: date
    inflow: Decimal
    outflow: Decimal
    net: Decimal
    balance: Decimal
    entry_ids: List[uuid.UUID] = field(default_factory=list)


@dataclass
class CashFlowProjection:
    """Current balance plus N-month running-balance projection"""

    reference_date: date
    current_balance: Decimal
    months: List[ProjectionMonth]
    minimum_balance: Decimal
    at_risk: bool

    @property
    def balances(self) -> List[Decimal]:
        return [m.balance for m in self.months]


@dataclass
class LoanSummary:
    """Totals over a plan's installments for reporting"""

    plan_id: uuid.UUID
    installment_count: int
    paid_count: int
    total_paid: Decimal
    total_savings: Decimal
    total_interest: Decimal
    total_amortization: Decimal
    outstanding_principal: Decimal
    remaining_face_value: Decimal
