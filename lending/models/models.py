from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from enum import Enum
from lending.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Role(str, Enum):
    MEMBER = "member"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class LoanStatus(str, Enum):
    ACTIVE = "active"
    RETURNED = "returned"


class Tenant(Base):
    __tablename__ = "tenants"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

class Member(Base):
    __tablename__ = "members"
    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    role = Column(String, nullable=False, default=Role.MEMBER.value)
    # bumped by every borrow; the write serializes borrows of one member
    lock_version = Column(Integer, nullable=False, default=0)
    joined_at = Column(DateTime, default=utcnow)
    loans = relationship("Loan", back_populates="member")

class Item(Base):
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("total_copies > 0", name="ck_items_total_positive"),
        CheckConstraint("available_copies >= 0", name="ck_items_available_non_negative"),
        CheckConstraint("available_copies <= total_copies", name="ck_items_available_le_total"),
    )
    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=True, index=True)
    title = Column(String, nullable=False)
    author = Column(String, nullable=True)
    code = Column(String, nullable=True, index=True)
    total_copies = Column(Integer, nullable=False, default=1)
    available_copies = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow)
    loans = relationship("Loan", back_populates="item")

    @property
    def status(self) -> str:
        return "available" if self.available_copies > 0 else "unavailable"

class Loan(Base):
    __tablename__ = "loans"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'returned')", name="ck_loans_status"),
        CheckConstraint(
            "(status = 'active' AND returned_at IS NULL) OR "
            "(status = 'returned' AND returned_at IS NOT NULL)",
            name="ck_loans_returned_at_matches_status",
        ),
    )
    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=True, index=True)
    borrowed_at = Column(DateTime, nullable=False, default=utcnow)
    due_date = Column(DateTime, nullable=False, index=True)
    returned_at = Column(DateTime, nullable=True)
    status = Column(String, nullable=False, default=LoanStatus.ACTIVE.value, index=True)
    member = relationship("Member", back_populates="loans")
    item = relationship("Item", back_populates="loans")

Index('ix_loans_member_status', Loan.member_id, Loan.status)
Index('ix_loans_status_due', Loan.status, Loan.due_date)
