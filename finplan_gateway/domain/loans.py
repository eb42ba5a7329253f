"""Loan installment settlement and plan reporting"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from finplan_gateway.domain.anticipation import apply_settled_amount, calculate_anticipation, to_cents
from finplan_gateway.domain.exceptions import ValidationError
from finplan_gateway.domain.models import AnticipationResult, LoanInstallment, LoanPlan, LoanSummary, ZERO


def preview_installment(installment: LoanInstallment, settlement_date: date, daily_rate: Decimal) -> AnticipationResult:
    """Anticipation result for paying this installment on settlement_date"""
    return calculate_anticipation(installment.face_value, installment.due_date, settlement_date, daily_rate)


def settle_installment(
    installment: LoanInstallment,
    settlement_date: date,
    daily_rate: Decimal,
    paid_amount: Optional[Decimal] = None,
) -> LoanInstallment:
    """
    Return a paid copy of the installment with interest, amortization and savings.

    A manually entered paid_amount replaces the computed present value; savings
    then becomes face - paid_amount clamped at zero.
    """
    if settlement_date is None:
        raise ValidationError("Payment date is required")
    if installment.paid:
        raise ValidationError(f"Installment {installment.sequence} is already paid")
    if paid_amount is not None and Decimal(paid_amount) <= 0:
        raise ValidationError("Paid amount must be greater than zero")

    result = preview_installment(installment, settlement_date, daily_rate)
    if paid_amount is not None:
        result = apply_settled_amount(result, Decimal(paid_amount))

    return replace(
        installment,
        paid=True,
        payment_date=settlement_date,
        paid_amount=result.present_value,
        anticipated=result.is_early,
        days_anticipated=max(result.days_early, 0),
        interest=result.interest,
        amortization=result.amortization,
        savings=result.savings,
    )


def reset_installments(installments: Iterable[LoanInstallment]) -> List[LoanInstallment]:
    """Clear every settlement field, as after the plan's rates were changed"""
    return [
        replace(
            inst,
            paid=False,
            payment_date=None,
            paid_amount=None,
            anticipated=False,
            days_anticipated=None,
            interest=None,
            amortization=None,
            savings=None,
        )
        for inst in installments
    ]


def summarize_loan(plan: LoanPlan, installments: Iterable[LoanInstallment]) -> LoanSummary:
    installments = list(installments)
    paid = [i for i in installments if i.paid]

    total_amortization = sum((i.amortization or ZERO for i in paid), ZERO)

    return LoanSummary(
        plan_id=plan.id,
        installment_count=len(installments),
        paid_count=len(paid),
        total_paid=to_cents(sum((i.paid_amount or ZERO for i in paid), ZERO)),
        total_savings=to_cents(sum((i.savings or ZERO for i in paid), ZERO)),
        total_interest=to_cents(sum((i.interest or ZERO for i in paid), ZERO)),
        total_amortization=to_cents(total_amortization),
        outstanding_principal=to_cents(max(ZERO, Decimal(plan.principal) - total_amortization)),
        remaining_face_value=to_cents(sum((i.face_value for i in installments if not i.paid), ZERO)),
    )
