from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from lending.models.models import Loan, LoanStatus, utcnow


def list_overdue(db: Session, tenant_id: Optional[int] = None,
                 now: Optional[datetime] = None) -> List[Loan]:
    """Active loans whose due date has passed, computed at call time.

    ``tenant_id=None`` scans every tenant.
    """
    now = now or utcnow()
    query = db.query(Loan).filter(Loan.status == LoanStatus.ACTIVE.value, Loan.due_date < now)
    if tenant_id is not None:
        query = query.filter(Loan.tenant_id == tenant_id)
    return query.order_by(Loan.due_date, Loan.id).all()
