from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from relgraph.api.v1.schemas import ContactRow
from relgraph.db.pg.models import ContactCache

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    cleaned = (value or "").strip()
    return cleaned or None


def _normalized_tags(tags: list[str]) -> list[str]:
    seen: set[str] = set()
    normalized: list[str] = []
    for tag in tags:
        cleaned = tag.strip()
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            normalized.append(cleaned)
    return normalized


def _dedupe_source_rows(rows: list[ContactRow]) -> list[ContactRow]:
    winners: dict[str, ContactRow] = {}
    order: list[str] = []
    for row in rows:
        if row.contact_id not in winners:
            order.append(row.contact_id)
        # later rows win for the same id
        winners[row.contact_id] = row
    if len(order) != len(rows):
        logger.warning(
            "contacts_sync_duplicate_ids_deduped",
            extra={"input_rows": len(rows), "deduped_rows": len(order)},
        )
    return [winners[contact_id] for contact_id in order]


def _apply_contact_updates(contact: ContactCache, row: ContactRow) -> None:
    contact.first_name = _clean(row.first_name)
    contact.last_name = _clean(row.last_name)
    contact.primary_email = (_clean(row.primary_email) or "").lower() or None
    contact.company = _clean(row.company)
    contact.position = _clean(row.position)
    contact.city = _clean(row.city)
    contact.state = _clean(row.state)
    contact.country = _clean(row.country)
    contact.tags_json = _normalized_tags(row.tags)
    contact.linkedin_url = _clean(row.linkedin_url)
    contact.status = row.status
    contact.tier = _clean(row.tier)
    contact.priority_score = row.priority_score
    contact.opportunity_score = row.opportunity_score
    contact.strategic_value = row.strategic_value
    contact.engagement_score = row.engagement_score


def push_contacts(db: Session, tenant_id: str, rows: list[ContactRow]) -> dict[str, int]:
    upserted = 0
    skipped = 0
    for row in _dedupe_source_rows(rows):
        existing = db.scalar(select(ContactCache).where(ContactCache.contact_id == row.contact_id))
        if existing is not None and existing.tenant_id != tenant_id:
            # Contact ids are global; never let one tenant overwrite another's row.
            skipped += 1
            logger.warning(
                "contacts_sync_cross_tenant_row_skipped",
                extra={"contact_id": row.contact_id, "tenant_id": tenant_id},
            )
            continue
        if existing is None:
            existing = ContactCache(contact_id=row.contact_id, tenant_id=tenant_id)
            db.add(existing)
        _apply_contact_updates(existing, row)
        upserted += 1

    db.commit()
    logger.info("contacts_sync_completed", extra={"tenant_id": tenant_id, "upserted": upserted, "skipped": skipped})
    return {"upserted": upserted, "skipped": skipped}
