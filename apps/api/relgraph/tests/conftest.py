from __future__ import annotations

import os
import tempfile

# Settings are cached on first import, so the test database and inline queue
# must be configured before anything under relgraph is imported.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="relgraph-tests-")
os.environ.setdefault("DATABASE_DSN", f"sqlite:///{os.path.join(_TEST_DB_DIR, 'relgraph.db')}")
os.environ.setdefault("QUEUE_MODE", "inline")

import pytest  # noqa: E402

from relgraph.core.context import RequestContext  # noqa: E402
from relgraph.db.pg import models as _models  # noqa: E402,F401
from relgraph.db.pg.base import Base  # noqa: E402
from relgraph.db.pg.models import ContactCache  # noqa: E402
from relgraph.db.pg.session import SessionLocal, engine  # noqa: E402


def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def add_contact(db, tenant_id: str, contact_id: str, **fields) -> ContactCache:  # noqa: ANN001
    contact = ContactCache(
        contact_id=contact_id,
        tenant_id=tenant_id,
        first_name=fields.pop("first_name", contact_id.upper()),
        last_name=fields.pop("last_name", "Test"),
        tags_json=fields.pop("tags", []),
        **fields,
    )
    db.add(contact)
    db.commit()
    return contact


@pytest.fixture
def db():
    reset_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext(tenant_id="tenant-1", actor_id="user-1")


@pytest.fixture
def other_ctx() -> RequestContext:
    return RequestContext(tenant_id="tenant-2", actor_id="user-2")


@pytest.fixture
def make_contact(db):
    def _make(tenant_id: str, contact_id: str, **fields) -> ContactCache:
        return add_contact(db, tenant_id, contact_id, **fields)

    return _make
