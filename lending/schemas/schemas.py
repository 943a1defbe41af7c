from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class BorrowRequest(BaseModel):
    item_id: int
    due_date: Optional[datetime] = None

class LoanOut(BaseModel):
    id: int
    item_id: int
    member_id: int
    tenant_id: Optional[int] = None
    borrowed_at: datetime
    due_date: datetime
    returned_at: Optional[datetime] = None
    status: str
    class Config:
        from_attributes = True

class ItemAvailabilityOut(BaseModel):
    id: int
    tenant_id: Optional[int] = None
    title: str
    total_copies: int
    available_copies: int
    status: str
    class Config:
        from_attributes = True

class CopiesUpdate(BaseModel):
    total_copies: int = Field(ge=1)

class ActiveLoanCountOut(BaseModel):
    member_id: int
    active_loans: int
    limit: int
