from datetime import datetime, timedelta

from sqlalchemy import inspect

from conftest import headers
from lending.core.database import engine
from lending.models.models import Item
from lending.services.transactions import borrow


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_borrow_and_return(client, world):
    # Borrow with the default due date
    r = client.post("/loans/borrow", json={"item_id": world.single}, headers=headers(world.alice))
    assert r.status_code == 201
    loan = r.json()
    assert loan["status"] == "active"
    assert loan["returned_at"] is None
    due = datetime.fromisoformat(loan["due_date"])
    borrowed = datetime.fromisoformat(loan["borrowed_at"])
    assert due - borrowed == timedelta(days=14)

    r = client.get(f"/items/{world.single}/availability", headers=headers(world.alice))
    assert r.json()["available_copies"] == 0
    assert r.json()["status"] == "unavailable"

    # Return book
    r = client.post(f"/loans/{loan['id']}/return", headers=headers(world.alice))
    assert r.status_code == 200
    assert r.json()["status"] == "returned"
    assert r.json()["returned_at"] is not None

    r = client.post(f"/loans/{loan['id']}/return", headers=headers(world.alice))
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "AlreadyReturned"


def test_borrow_errors(client, world):
    r = client.post("/loans/borrow", json={"item_id": world.single})
    assert r.status_code == 401

    r = client.post("/loans/borrow", json={"item_id": world.single}, headers=headers(world.carol))
    assert r.status_code == 404
    assert r.json()["detail"]["resource"] == "item"

    r = client.post("/loans/borrow", json={"item_id": world.single, "due_date": "2001-01-01T00:00:00"},
                    headers=headers(world.alice))
    assert r.status_code == 422
    assert r.json()["detail"]["field"] == "due_date"

    r = client.post("/loans/borrow", json={"item_id": world.single}, headers=headers(world.root))
    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "TenantContextRequired"

    client.post("/loans/borrow", json={"item_id": world.single}, headers=headers(world.bob))
    r = client.post("/loans/borrow", json={"item_id": world.single}, headers=headers(world.alice))
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "NoCopiesAvailable"


def test_overdue_requires_admin(client, db, world):
    past = datetime(2001, 1, 1)
    loan = borrow(db, world.alice, world.pair, past + timedelta(days=14), now=past).unwrap()

    r = client.get("/loans/overdue", headers=headers(world.alice))
    assert r.status_code == 403

    r = client.get("/loans/overdue", headers=headers(world.ada))
    assert r.status_code == 200
    assert [l["id"] for l in r.json()] == [loan.id]

    r = client.get("/loans/overdue", headers=headers(world.sam))
    assert r.json() == []

    r = client.get("/loans/overdue", headers=headers(world.root))
    assert [l["id"] for l in r.json()] == [loan.id]


def test_active_loans_and_listing(client, world):
    client.post("/loans/borrow", json={"item_id": world.pair}, headers=headers(world.alice))
    client.post("/loans/borrow", json={"item_id": world.shelf}, headers=headers(world.alice))

    r = client.get(f"/members/{world.alice.member_id}/active-loans", headers=headers(world.ada))
    assert r.json() == {"member_id": world.alice.member_id, "active_loans": 2, "limit": 5}

    r = client.get(f"/members/{world.alice.member_id}/active-loans", headers=headers(world.carol))
    assert r.status_code == 404

    r = client.get(f"/members/{world.alice.member_id}/active-loans", headers=headers(world.bob))
    assert r.status_code == 403

    r = client.get("/loans/", headers=headers(world.alice))
    assert len(r.json()) == 2
    r = client.get(f"/loans/?member_id={world.alice.member_id}", headers=headers(world.bob))
    assert r.status_code == 403


def test_update_copies(client, world):
    r = client.patch(f"/items/{world.pair}/copies", json={"total_copies": 4}, headers=headers(world.alice))
    assert r.status_code == 403

    r = client.patch(f"/items/{world.pair}/copies", json={"total_copies": 4}, headers=headers(world.ada))
    assert r.status_code == 200
    assert (r.json()["total_copies"], r.json()["available_copies"]) == (4, 4)


def test_internal_errors_are_generic(client, db, world):
    r = client.post("/loans/borrow", json={"item_id": world.pair}, headers=headers(world.alice))
    db.query(Item).filter(Item.id == world.pair).update({Item.available_copies: 2})
    db.commit()

    r = client.post(f"/loans/{r.json()['id']}/return", headers=headers(world.alice))
    assert r.status_code == 500
    assert r.json()["detail"] == {"kind": "internal", "code": "Internal",
                                  "message": "The request could not be completed"}


def test_startup_creates_tables(client):
    assert inspect(engine).has_table("loans")
