"""Data access layer for accounts, ledger entries and loans"""

import uuid
from datetime import date
from typing import Iterable, List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session
from finplan_gateway.infrastructure.database.models import AccountRow, EntryRow, LoanPlanRow, LoanInstallmentRow
from finplan_gateway.domain.models import (
    Account,
    AccountKind,
    Direction,
    Entry,
    LoanInstallment,
    LoanPlan,
    PaymentChannel,
    SeriesId,
    SettlementState,
)
from finplan_gateway.domain.occurrences import parse_recurrence


def _account_from_row(row: AccountRow) -> Account:
    return Account(
        id=row.id,
        name=row.name,
        kind=AccountKind(row.kind),
        opening_balance=row.opening_balance,
        credit_limit=row.credit_limit,
        closing_day=row.closing_day,
        due_day=row.due_day,
    )


def _entry_from_row(row: EntryRow) -> Entry:
    return Entry(
        id=row.id,
        account_id=row.account_id,
        direction=Direction(row.direction),
        amount=row.amount,
        posting_date=row.posting_date,
        channel=PaymentChannel(row.channel),
        state=SettlementState(row.state),
        settlement_date=row.settlement_date,
        settled_amount=row.settled_amount,
        category_id=row.category_id,
        description=row.description,
        recurrence=parse_recurrence(row.recurrence),
        series_id=SeriesId(row.series_id) if row.series_id else None,
        occurrence_index=row.occurrence_index,
        series_total=row.series_total,
        transfer_pair_id=row.transfer_pair_id,
    )


def _plan_from_row(row: LoanPlanRow) -> LoanPlan:
    return LoanPlan(
        id=row.id,
        principal=row.principal,
        installment_value=row.installment_value,
        installment_count=row.installment_count,
        daily_rate=row.daily_rate,
        first_installment_date=row.first_installment_date,
        monthly_rate=row.monthly_rate,
        contract_date=row.contract_date,
    )


def _installment_from_row(row: LoanInstallmentRow) -> LoanInstallment:
    return LoanInstallment(
        id=row.id,
        plan_id=row.plan_id,
        sequence=row.sequence,
        due_date=row.due_date,
        face_value=row.face_value,
        paid=row.paid,
        payment_date=row.payment_date,
        paid_amount=row.paid_amount,
        anticipated=row.anticipated,
        days_anticipated=row.days_anticipated,
        interest=row.interest,
        amortization=row.amortization,
        savings=row.savings,
    )


class AccountRepository:
    """Repository for the account directory"""

    def __init__(self, db: Session):
        self.db = db

    def create_account(self, user_id: str, account: Account) -> Account:
        row = AccountRow(
            id=account.id,
            user_id=user_id,
            name=account.name,
            kind=account.kind.value,
            opening_balance=account.opening_balance,
            credit_limit=account.credit_limit,
            closing_day=account.closing_day,
            due_day=account.due_day,
        )
        self.db.add(row)
        self.db.flush()
        return _account_from_row(row)

    def get_account(self, user_id: str, account_id: uuid.UUID) -> Optional[Account]:
        row = (
            self.db.query(AccountRow)
            .filter(AccountRow.user_id == user_id, AccountRow.id == account_id)
            .first()
        )
        return _account_from_row(row) if row else None

    def list_accounts(self, user_id: str) -> List[Account]:
        rows = (
            self.db.query(AccountRow)
            .filter(AccountRow.user_id == user_id)
            .order_by(AccountRow.created_at, AccountRow.name)
            .all()
        )
        return [_account_from_row(r) for r in rows]


class EntryRepository:
    """Repository for ledger entries (the ledger store)"""

    def __init__(self, db: Session):
        self.db = db

    def add_entries(self, user_id: str, entries: Iterable[Entry]) -> None:
        """Stage a batch of entries; the caller commits so the batch lands atomically"""
        for entry in entries:
            self.db.add(
                EntryRow(
                    id=entry.id,
                    user_id=user_id,
                    account_id=entry.account_id,
                    direction=entry.direction.value,
                    amount=entry.amount,
                    posting_date=entry.posting_date,
                    channel=entry.channel.value,
                    state=entry.state.value,
                    settlement_date=entry.settlement_date,
                    settled_amount=entry.settled_amount,
                    category_id=entry.category_id,
                    description=entry.description,
                    recurrence=entry.recurrence.value,
                    series_id=entry.series_id,
                    occurrence_index=entry.occurrence_index,
                    series_total=entry.series_total,
                    transfer_pair_id=entry.transfer_pair_id,
                )
            )
        self.db.flush()

    def get_entry(self, user_id: str, entry_id: uuid.UUID) -> Optional[Entry]:
        row = self._get_row(user_id, entry_id)
        return _entry_from_row(row) if row else None

    def list_entries(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        account_id: Optional[uuid.UUID] = None,
        state: Optional[SettlementState] = None,
    ) -> List[Entry]:
        """Entries of a user, optionally restricted to a posting-date window, account or state"""
        query = self.db.query(EntryRow).filter(EntryRow.user_id == user_id)
        if start is not None:
            query = query.filter(EntryRow.posting_date >= start)
        if end is not None:
            query = query.filter(EntryRow.posting_date <= end)
        if account_id is not None:
            query = query.filter(EntryRow.account_id == account_id)
        if state is not None:
            query = query.filter(EntryRow.state == state.value)
        rows = query.order_by(EntryRow.posting_date, EntryRow.occurrence_index).all()
        return [_entry_from_row(r) for r in rows]

    def update_settlement(self, user_id: str, entry: Entry) -> None:
        """Write back the settlement fields of exactly one entry"""
        row = self._get_row(user_id, entry.id)
        if row is None:
            raise LookupError(f"Entry {entry.id} not found")
        row.state = entry.state.value
        row.settlement_date = entry.settlement_date
        row.settled_amount = entry.settled_amount
        self.db.flush()

    def earliest_activity(self, user_id: str, account_id: uuid.UUID) -> Optional[date]:
        return (
            self.db.query(func.min(EntryRow.posting_date))
            .filter(EntryRow.user_id == user_id, EntryRow.account_id == account_id)
            .scalar()
        )

    def delete_entry(self, user_id: str, entry_id: uuid.UUID) -> int:
        return (
            self.db.query(EntryRow)
            .filter(EntryRow.user_id == user_id, EntryRow.id == entry_id)
            .delete(synchronize_session=False)
        )

    def delete_series_from(self, user_id: str, series_id: SeriesId, from_date: date) -> int:
        """Delete this and all future occurrences of a series in one range query"""
        return (
            self.db.query(EntryRow)
            .filter(
                EntryRow.user_id == user_id,
                EntryRow.series_id == series_id,
                EntryRow.posting_date >= from_date,
            )
            .delete(synchronize_session=False)
        )

    def _get_row(self, user_id: str, entry_id: uuid.UUID) -> Optional[EntryRow]:
        return (
            self.db.query(EntryRow)
            .filter(EntryRow.user_id == user_id, EntryRow.id == entry_id)
            .first()
        )


class LoanRepository:
    """Repository for loan plans and their installments"""

    def __init__(self, db: Session):
        self.db = db

    def replace_plan(self, user_id: str, plan: LoanPlan, installments: List[LoanInstallment]) -> None:
        """Drop the user's existing plans and insert the new plan with all installments"""
        existing = self.db.query(LoanPlanRow).filter(LoanPlanRow.user_id == user_id).all()
        for old in existing:
            self.db.delete(old)
        self.db.flush()

        db_plan = LoanPlanRow(
            id=plan.id,
            user_id=user_id,
            principal=plan.principal,
            installment_value=plan.installment_value,
            installment_count=plan.installment_count,
            daily_rate=plan.daily_rate,
            monthly_rate=plan.effective_monthly_rate,
            first_installment_date=plan.first_installment_date,
            contract_date=plan.contract_date,
        )
        self.db.add(db_plan)
        self.db.flush()

        for inst in installments:
            self.db.add(
                LoanInstallmentRow(
                    id=inst.id,
                    plan_id=db_plan.id,
                    sequence=inst.sequence,
                    due_date=inst.due_date,
                    face_value=inst.face_value,
                )
            )
        self.db.flush()

    def get_plan(self, user_id: str, plan_id: uuid.UUID) -> Optional[Tuple[LoanPlan, List[LoanInstallment]]]:
        """Fetch plan with installments ordered by sequence"""
        row = (
            self.db.query(LoanPlanRow)
            .filter(LoanPlanRow.user_id == user_id, LoanPlanRow.id == plan_id)
            .first()
        )
        if row is None:
            return None
        return _plan_from_row(row), [_installment_from_row(i) for i in row.installments]

    def update_rates(self, plan: LoanPlan) -> None:
        row = self.db.get(LoanPlanRow, plan.id)
        if row is None:
            raise LookupError(f"Loan plan {plan.id} not found")
        row.daily_rate = plan.daily_rate
        row.monthly_rate = plan.effective_monthly_rate
        self.db.flush()

    def save_installment(self, installment: LoanInstallment) -> None:
        """Write back the settlement fields of one installment"""
        row = self.db.get(LoanInstallmentRow, installment.id)
        if row is None:
            raise LookupError(f"Installment {installment.id} not found")
        row.paid = installment.paid
        row.payment_date = installment.payment_date
        row.paid_amount = installment.paid_amount
        row.anticipated = installment.anticipated
        row.days_anticipated = installment.days_anticipated
        row.interest = installment.interest
        row.amortization = installment.amortization
        row.savings = installment.savings
        self.db.flush()
