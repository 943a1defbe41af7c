from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import timedelta

from lending.api.deps import get_actor, require_admin
from lending.core.config import LOAN_DAYS, LOAN_LIMIT
from lending.core.database import get_db
from lending.core.errors import ErrorKind, LendingError, Result
from lending.models.models import utcnow
from lending.schemas import schemas
from lending.services import inventory, transactions
from lending.services.guard import Actor, scope_of
from lending.services.overdue import list_overdue

router = APIRouter()

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.VALIDATION: 422,
    ErrorKind.INTERNAL: 500,
}

def http_error(error: LendingError) -> HTTPException:
    return HTTPException(status_code=STATUS_BY_KIND[error.kind], detail=error.to_dict())

def unwrap(result: Result):
    if not result.ok:
        raise http_error(result.error)
    return result.value

@router.post("/loans/borrow", response_model=schemas.LoanOut, status_code=201)
def borrow_item(req: schemas.BorrowRequest, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    now = utcnow()
    due_date = req.due_date or now + timedelta(days=LOAN_DAYS)
    return unwrap(transactions.borrow(db, actor, req.item_id, due_date, now=now))

@router.post("/loans/{loan_id}/return", response_model=schemas.LoanOut)
def return_item(loan_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return unwrap(transactions.return_loan(db, actor, loan_id))

@router.get("/loans/overdue", response_model=List[schemas.LoanOut])
def overdue_loans(actor: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        scope = scope_of(actor)
    except LendingError as exc:
        raise http_error(exc)
    return list_overdue(db, scope)

@router.get("/loans/", response_model=List[schemas.LoanOut])
def list_loans(member_id: Optional[int] = None, status: Optional[str] = None, skip: int = 0, limit: int = 50,
               actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return unwrap(transactions.list_loans(db, actor, member_id=member_id, status=status, skip=skip, limit=limit))

@router.get("/members/{member_id}/active-loans", response_model=schemas.ActiveLoanCountOut)
def active_loans(member_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    count = unwrap(transactions.active_loan_count(db, actor, member_id))
    return {"member_id": member_id, "active_loans": count, "limit": LOAN_LIMIT}

@router.get("/items/{item_id}/availability", response_model=schemas.ItemAvailabilityOut)
def item_availability(item_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return unwrap(inventory.get_availability(db, actor, item_id))

@router.patch("/items/{item_id}/copies", response_model=schemas.ItemAvailabilityOut)
def update_copies(item_id: int, upd: schemas.CopiesUpdate, actor: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    return unwrap(inventory.adjust_total_copies(db, actor, item_id, upd.total_copies))
