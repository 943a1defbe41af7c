"""Lifecycle of a single loan: created active, closed once, never reopened."""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from lending.core.errors import ErrorCode, conflict
from lending.models.models import Loan, LoanStatus

TRANSITIONS = {
    LoanStatus.ACTIVE: frozenset({LoanStatus.RETURNED}),
    LoanStatus.RETURNED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return LoanStatus(target) in TRANSITIONS[LoanStatus(current)]


def open_loan(db: Session, item_id: int, member_id: int, tenant_id: Optional[int],
              due_date: datetime, now: datetime) -> Loan:
    loan = Loan(item_id=item_id, member_id=member_id, tenant_id=tenant_id,
                borrowed_at=now, due_date=due_date, status=LoanStatus.ACTIVE.value)
    db.add(loan)
    db.flush()
    return loan


def close_loan(db: Session, loan_id: int, now: datetime) -> None:
    # the status predicate makes concurrent duplicate returns race for one row
    updated = (
        db.query(Loan)
        .filter(Loan.id == loan_id, Loan.status == LoanStatus.ACTIVE.value)
        .update({Loan.status: LoanStatus.RETURNED.value, Loan.returned_at: now},
                synchronize_session=False)
    )
    if updated != 1:
        raise conflict(ErrorCode.ALREADY_RETURNED, "Loan already returned", resource="loan")


def is_overdue(loan: Loan, now: datetime) -> bool:
    return loan.status == LoanStatus.ACTIVE.value and loan.due_date < now
