from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from relgraph.db.pg.models import ContactCache


def contact_summary(contact: ContactCache) -> dict[str, Any]:
    return {
        "id": contact.contact_id,
        "first_name": contact.first_name,
        "last_name": contact.last_name,
        "company": contact.company,
        "position": contact.position,
        "email": contact.primary_email,
        "linkedin_url": contact.linkedin_url,
        "city": contact.city,
        "state": contact.state,
        "country": contact.country,
    }


def display_name(contact: ContactCache) -> str:
    joined = " ".join(part for part in [(contact.first_name or "").strip(), (contact.last_name or "").strip()] if part)
    return joined or contact.primary_email or contact.contact_id


def get_contact(db: Session, contact_id: str, tenant_id: str) -> ContactCache | None:
    return db.scalar(
        select(ContactCache).where(ContactCache.contact_id == contact_id, ContactCache.tenant_id == tenant_id)
    )


def contact_belongs_to_tenant(db: Session, contact_id: str, tenant_id: str) -> bool:
    return get_contact(db, contact_id, tenant_id) is not None


def get_contacts_by_tenant(db: Session, tenant_id: str, *, active_only: bool = True) -> list[ContactCache]:
    query = select(ContactCache).where(ContactCache.tenant_id == tenant_id)
    if active_only:
        query = query.where(ContactCache.status == "ACTIVE")
    return db.scalars(query.order_by(ContactCache.contact_id)).all()


def get_contacts_by_ids(db: Session, tenant_id: str, contact_ids: list[str] | set[str]) -> dict[str, ContactCache]:
    if not contact_ids:
        return {}
    rows = db.scalars(
        select(ContactCache).where(ContactCache.tenant_id == tenant_id, ContactCache.contact_id.in_(list(contact_ids)))
    ).all()
    return {row.contact_id: row for row in rows}
