from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy import select

from relgraph.db.pg.models import ContactCache
from relgraph.main import app


client = TestClient(app)
HEADERS = {"X-Tenant-Id": "tenant-1", "X-Actor-Id": "user-1"}


def test_contacts_sync_upserts_and_normalizes(db) -> None:
    payload = {
        "rows": [
            {
                "contact_id": "contact-001",
                "first_name": " Jamie ",
                "last_name": "Nguyen",
                "primary_email": "Jamie@Example.com",
                "company": "Acme Corp",
                "tags": ["Fintech", "fintech", " board "],
            },
            {"contact_id": "contact-002", "first_name": "Ola", "status": "INACTIVE"},
        ]
    }

    response = client.post("/v1/contacts/sync", json=payload, headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {"upserted": 2, "skipped": 0}
    contact = db.scalar(select(ContactCache).where(ContactCache.contact_id == "contact-001"))
    assert contact.tenant_id == "tenant-1"
    assert contact.first_name == "Jamie"
    assert contact.primary_email == "jamie@example.com"
    assert contact.tags_json == ["Fintech", "board"]
    inactive = db.scalar(select(ContactCache).where(ContactCache.contact_id == "contact-002"))
    assert inactive.status == "INACTIVE"


def test_contacts_sync_later_duplicate_row_wins(db) -> None:
    payload = {
        "rows": [
            {"contact_id": "contact-001", "company": "First Co"},
            {"contact_id": "contact-001", "company": "Second Co"},
        ]
    }

    response = client.post("/v1/contacts/sync", json=payload, headers=HEADERS)

    assert response.json() == {"upserted": 1, "skipped": 0}
    contact = db.scalar(select(ContactCache).where(ContactCache.contact_id == "contact-001"))
    assert contact.company == "Second Co"


def test_contacts_sync_never_overwrites_other_tenant(db) -> None:
    client.post("/v1/contacts/sync", json={"rows": [{"contact_id": "shared", "company": "Mine"}]}, headers=HEADERS)

    response = client.post(
        "/v1/contacts/sync",
        json={"rows": [{"contact_id": "shared", "company": "Theirs"}]},
        headers={"X-Tenant-Id": "tenant-2"},
    )

    assert response.json() == {"upserted": 0, "skipped": 1}
    db.expire_all()
    contact = db.scalar(select(ContactCache).where(ContactCache.contact_id == "shared"))
    assert contact.tenant_id == "tenant-1"
    assert contact.company == "Mine"


def test_contacts_sync_requires_tenant(db) -> None:
    response = client.post("/v1/contacts/sync", json={"rows": []})

    assert response.status_code == 401
    assert response.json()["detail"] == "Missing tenant"
