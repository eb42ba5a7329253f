"""SQLAlchemy ORM models for accounts, ledger entries and loan plans"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, ForeignKey, Numeric, Text, Uuid, Index
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

Money = Numeric(14, 2, asdecimal=True)
Rate = Numeric(12, 8, asdecimal=True)


class AccountRow(Base):
    """Account in the user's account directory"""

    __tablename__ = "account"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    kind = Column(String(32), nullable=False)
    opening_balance = Column(Money, nullable=False, default=0)
    credit_limit = Column(Money, nullable=True)
    closing_day = Column(Integer, nullable=True)
    due_day = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class EntryRow(Base):
    """Ledger line; series occurrences share series_id"""

    __tablename__ = "ledger_entry"
    __table_args__ = (Index("ix_ledger_entry_series_posting", "series_id", "posting_date"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(Uuid, ForeignKey("account.id", ondelete="CASCADE"), nullable=False, index=True)
    direction = Column(String(16), nullable=False)
    amount = Column(Money, nullable=False)
    posting_date = Column(Date, nullable=False, index=True)
    channel = Column(String(32), nullable=False)
    state = Column(String(16), nullable=False, default="settled")
    settlement_date = Column(Date, nullable=True)
    settled_amount = Column(Money, nullable=True)
    category_id = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    recurrence = Column(String(16), nullable=False, default="none")
    series_id = Column(Uuid, nullable=True)
    occurrence_index = Column(Integer, nullable=True)
    series_total = Column(Integer, nullable=True)
    transfer_pair_id = Column(Uuid, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class LoanPlanRow(Base):
    """Fixed-rate installment loan"""

    __tablename__ = "loan_plan"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    principal = Column(Money, nullable=False)
    installment_value = Column(Money, nullable=False)
    installment_count = Column(Integer, nullable=False)
    daily_rate = Column(Rate, nullable=False)
    monthly_rate = Column(Rate, nullable=True)
    first_installment_date = Column(Date, nullable=False)
    contract_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    installments = relationship(
        "LoanInstallmentRow",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="LoanInstallmentRow.sequence",
    )


class LoanInstallmentRow(Base):
    """Individual installment within a loan plan"""

    __tablename__ = "loan_installment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    plan_id = Column(Uuid, ForeignKey("loan_plan.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    face_value = Column(Money, nullable=False)
    paid = Column(Boolean, nullable=False, default=False)
    payment_date = Column(Date, nullable=True)
    paid_amount = Column(Money, nullable=True)
    anticipated = Column(Boolean, nullable=False, default=False)
    days_anticipated = Column(Integer, nullable=True)
    interest = Column(Money, nullable=True)
    amortization = Column(Money, nullable=True)
    savings = Column(Money, nullable=True)

    plan = relationship("LoanPlanRow", back_populates="installments")
