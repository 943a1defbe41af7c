"""Borrow and return: the two writes that move a copy between shelf and member.

Each runs as one unit of work. A borrow first writes the acting member's row,
which serializes borrows of that member, then decrements the item counter
conditionally and counts the member's active loans inside the same
transaction. Nothing is visible unless the whole unit commits.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from lending.core.config import logger
from lending.core.database import atomic
from lending.core.errors import (ErrorCode, conflict, forbidden, invalid, not_found,
                                 returns_result)
from lending.models.models import Loan, LoanStatus, Member, utcnow
from lending.services.guard import Actor, ensure_visible, require_tenant, scope_of
from lending.services.inventory import find_item, release_copy, reserve_copy
from lending.services.limits import check_loan_limit
from lending.services.loan_state import can_transition, close_loan, open_loan


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def count_active(db: Session, member_id: int) -> int:
    return (
        db.query(func.count(Loan.id))
        .filter(Loan.member_id == member_id, Loan.status == LoanStatus.ACTIVE.value)
        .scalar()
    )


def lock_member(db: Session, member_id: int, tenant_id: int) -> None:
    updated = (
        db.query(Member)
        .filter(Member.id == member_id, Member.tenant_id == tenant_id)
        .update({Member.lock_version: Member.lock_version + 1}, synchronize_session=False)
    )
    if updated != 1:
        raise not_found("member")


@returns_result
def borrow(db: Session, actor: Actor, item_id: int, due_date: datetime,
           now: Optional[datetime] = None) -> Loan:
    now = as_utc(now or utcnow())
    due_date = as_utc(due_date)
    if due_date <= now:
        raise invalid("due_date", "Due date must be in the future")
    tenant_id = require_tenant(actor)

    def work():
        lock_member(db, actor.member_id, tenant_id)
        item = find_item(db, actor, item_id)
        reserve_copy(db, item.id)
        check_loan_limit(count_active(db, actor.member_id))
        return open_loan(db, item.id, actor.member_id, tenant_id, due_date, now)

    loan = atomic(db, work)
    db.refresh(loan)
    logger.info(f"Member {actor.member_id} borrowed item {item_id} loan {loan.id}")
    return loan


@returns_result
def return_loan(db: Session, actor: Actor, loan_id: int,
                now: Optional[datetime] = None) -> Loan:
    now = as_utc(now or utcnow())

    def work():
        loan = ensure_visible(actor, db.get(Loan, loan_id), "loan")
        if loan.member_id != actor.member_id and not actor.is_admin:
            raise forbidden("Only the borrower or an administrator can return this loan",
                            resource="loan")
        if not can_transition(loan.status, LoanStatus.RETURNED):
            raise conflict(ErrorCode.ALREADY_RETURNED, "Loan already returned", resource="loan")
        close_loan(db, loan.id, now)
        release_copy(db, loan.item_id)
        return loan

    loan = atomic(db, work)
    db.refresh(loan)
    logger.info(f"Loan {loan_id} returned by member {actor.member_id}")
    return loan


@returns_result
def active_loan_count(db: Session, actor: Actor, member_id: int) -> int:
    ensure_visible(actor, db.get(Member, member_id), "member")
    if member_id != actor.member_id and not actor.is_admin:
        raise forbidden("Members can only see their own loan count", resource="member")
    return count_active(db, member_id)


@returns_result
def list_loans(db: Session, actor: Actor, member_id: Optional[int] = None,
               status: Optional[str] = None, skip: int = 0, limit: int = 50) -> List[Loan]:
    scope = scope_of(actor)
    if not actor.is_admin:
        if member_id is not None and member_id != actor.member_id:
            raise forbidden("Members can only list their own loans", resource="loan")
        member_id = actor.member_id
    if status is not None and status not in {s.value for s in LoanStatus}:
        raise invalid("status", f"Unknown loan status {status!r}")

    query = db.query(Loan)
    if member_id is not None:
        ensure_visible(actor, db.get(Member, member_id), "member")
        query = query.filter(Loan.member_id == member_id)
    if scope is not None:
        query = query.filter(Loan.tenant_id == scope)
    if status is not None:
        query = query.filter(Loan.status == status)
    return query.order_by(Loan.borrowed_at.desc(), Loan.id.desc()).offset(skip).limit(limit).all()
