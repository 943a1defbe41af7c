import os
import tempfile

# the app creates its tables on startup; keep that database out of the cwd
os.environ.setdefault("LENDING_DB", "sqlite:///" + os.path.join(tempfile.mkdtemp(), "lending.db"))

import threading
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from lending.core.database import Base, get_db, make_engine
from lending.main import app
from lending.models.models import Item, Member, Role, Tenant
from lending.services.guard import Actor

NOW = datetime(2020, 1, 6, 9, 0, 0)


def due(days=14):
    return NOW + timedelta(days=days)


def headers(actor):
    h = {"X-Actor-Id": str(actor.member_id), "X-Actor-Role": actor.role}
    if actor.tenant_id is not None:
        h["X-Tenant-Id"] = str(actor.tenant_id)
    return h


def run_concurrently(session_factory, calls):
    """Run each ``call(db)`` on its own thread and session, released together."""
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)

    def worker(i, call):
        db = session_factory()
        try:
            barrier.wait()
            results[i] = call(db)
        finally:
            db.close()

    threads = [threading.Thread(target=worker, args=(i, call)) for i, call in enumerate(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'lending.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def world(db):
    """Two tenants with members of every role and a few items."""
    north = Tenant(name="North Primary", slug="north")
    south = Tenant(name="South High", slug="south")
    db.add_all([north, south])
    db.flush()

    alice = Member(name="Alice", email="alice@north.test", tenant_id=north.id)
    bob = Member(name="Bob", email="bob@north.test", tenant_id=north.id)
    ada = Member(name="Ada", email="ada@north.test", tenant_id=north.id, role=Role.ADMIN.value)
    carol = Member(name="Carol", email="carol@south.test", tenant_id=south.id)
    sam = Member(name="Sam", email="sam@south.test", tenant_id=south.id, role=Role.ADMIN.value)
    root = Member(name="Root", email="root@platform.test", role=Role.SUPER_ADMIN.value)
    pair = Item(title="Two Copies", total_copies=2, available_copies=2, tenant_id=north.id)
    single = Item(title="Last Copy", total_copies=1, available_copies=1, tenant_id=north.id)
    shelf = Item(title="Big Shelf", total_copies=10, available_copies=10, tenant_id=north.id)
    southern = Item(title="Southern Book", total_copies=1, available_copies=1, tenant_id=south.id)
    db.add_all([alice, bob, ada, carol, sam, root, pair, single, shelf, southern])
    db.commit()

    return SimpleNamespace(
        north=north.id,
        south=south.id,
        alice=Actor(alice.id, north.id),
        bob=Actor(bob.id, north.id),
        ada=Actor(ada.id, north.id, Role.ADMIN.value),
        carol=Actor(carol.id, south.id),
        sam=Actor(sam.id, south.id, Role.ADMIN.value),
        root=Actor(root.id, None, Role.SUPER_ADMIN.value),
        pair=pair.id,
        single=single.id,
        shelf=shelf.id,
        southern=southern.id,
    )
