"""Inventory ledger: the only writer of an item's copy counters.

Counters change exclusively through conditional UPDATE statements whose
WHERE clause carries the invariant ``0 <= available_copies <= total_copies``;
the affected row count is the outcome, never a value read beforehand.
"""

from sqlalchemy.orm import Session

from lending.core.database import atomic
from lending.core.errors import ErrorCode, conflict, forbidden, internal, invalid, returns_result
from lending.models.models import Item
from lending.services.guard import Actor, ensure_visible


def find_item(db: Session, actor: Actor, item_id: int) -> Item:
    return ensure_visible(actor, db.get(Item, item_id), "item")


def reserve_copy(db: Session, item_id: int) -> None:
    updated = (
        db.query(Item)
        .filter(Item.id == item_id, Item.available_copies > 0)
        .update({Item.available_copies: Item.available_copies - 1}, synchronize_session=False)
    )
    if updated != 1:
        raise conflict(ErrorCode.NO_COPIES_AVAILABLE, "No copies available", resource="item")


def release_copy(db: Session, item_id: int) -> None:
    updated = (
        db.query(Item)
        .filter(Item.id == item_id, Item.available_copies < Item.total_copies)
        .update({Item.available_copies: Item.available_copies + 1}, synchronize_session=False)
    )
    if updated != 1:
        raise internal(ErrorCode.INVENTORY_OVERFLOW,
                       f"Returning a copy of item {item_id} would exceed its total copies",
                       resource="item")


@returns_result
def get_availability(db: Session, actor: Actor, item_id: int) -> Item:
    return find_item(db, actor, item_id)


@returns_result
def adjust_total_copies(db: Session, actor: Actor, item_id: int, total_copies: int) -> Item:
    """Change an item's total and shift its available counter by the same delta.

    Rejected when fewer copies would remain than are currently on loan.
    """
    if not actor.is_admin:
        raise forbidden("Only administrators can change copy counts", resource="item")
    if total_copies < 1:
        raise invalid("total_copies", "total_copies must be at least 1")

    def work():
        item = find_item(db, actor, item_id)
        delta = total_copies - Item.total_copies
        updated = (
            db.query(Item)
            .filter(Item.id == item.id, Item.available_copies + delta >= 0)
            .update({Item.total_copies: total_copies,
                     Item.available_copies: Item.available_copies + delta},
                    synchronize_session=False)
        )
        if updated != 1:
            raise conflict(ErrorCode.COPIES_ON_LOAN,
                           "More copies are on loan than the new total allows", resource="item")
        return item

    item = atomic(db, work)
    db.refresh(item)
    return item
