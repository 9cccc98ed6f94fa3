from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from relgraph.core.config import get_settings
from relgraph.core.context import RequestContext
from relgraph.core.errors import ConflictError, InvalidEdgeError, NotFoundError
from relgraph.db.pg.models import RELATIONSHIP_TYPES, ContactRelationship, NetworkAnalytics, unordered_pair
from relgraph.services.contacts_registry.directory import contact_belongs_to_tenant, contact_summary, get_contacts_by_ids

logger = logging.getLogger(__name__)

_PATCHABLE_FIELDS = ("relationship_type", "strength", "confidence", "notes", "source", "is_mutual", "is_verified")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate_unit_interval(name: str, value: Any) -> None:
    if value is None:
        return
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not 0.0 <= float(value) <= 1.0:
        raise InvalidEdgeError(f"{name} must be between 0 and 1")


def _validate_attrs(attrs: dict[str, Any]) -> None:
    relationship_type = attrs.get("relationship_type")
    if relationship_type is not None and relationship_type not in RELATIONSHIP_TYPES:
        raise InvalidEdgeError(f"Unknown relationship type {relationship_type!r}")
    _validate_unit_interval("strength", attrs.get("strength"))
    _validate_unit_interval("confidence", attrs.get("confidence"))


def edge_payload(edge: ContactRelationship, contacts_by_id: dict | None = None) -> dict[str, Any]:
    contacts_by_id = contacts_by_id or {}
    contact = contacts_by_id.get(edge.contact_id)
    related = contacts_by_id.get(edge.related_contact_id)
    return {
        "id": edge.id,
        "contact_id": edge.contact_id,
        "related_contact_id": edge.related_contact_id,
        "relationship_type": edge.relationship_type,
        "strength": edge.strength,
        "confidence": edge.confidence,
        "is_mutual": edge.is_mutual,
        "is_verified": edge.is_verified,
        "source": edge.source,
        "notes": edge.notes,
        "discovered_by": edge.discovered_by,
        "created_at": edge.created_at,
        "updated_at": edge.updated_at,
        "last_verified": edge.last_verified,
        "contact": contact_summary(contact) if contact is not None else None,
        "related_contact": contact_summary(related) if related is not None else None,
    }


def find_edge_between(db: Session, tenant_id: str, contact_id: str, related_contact_id: str) -> ContactRelationship | None:
    low, high = unordered_pair(contact_id, related_contact_id)
    return db.scalar(
        select(ContactRelationship).where(
            ContactRelationship.tenant_id == tenant_id,
            ContactRelationship.pair_low == low,
            ContactRelationship.pair_high == high,
        )
    )


def get_tenant_edge(db: Session, ctx: RequestContext, edge_id: str) -> ContactRelationship:
    edge = db.scalar(select(ContactRelationship).where(ContactRelationship.id == edge_id))
    if edge is None or edge.tenant_id != ctx.tenant_id:
        raise NotFoundError("Relationship not found")
    return edge


def edges_touching(db: Session, tenant_id: str, contact_id: str) -> list[ContactRelationship]:
    return db.scalars(
        select(ContactRelationship)
        .where(
            ContactRelationship.tenant_id == tenant_id,
            or_(ContactRelationship.contact_id == contact_id, ContactRelationship.related_contact_id == contact_id),
        )
        .order_by(ContactRelationship.created_at, ContactRelationship.id)
    ).all()


def add_edge(
    db: Session,
    ctx: RequestContext,
    contact_id: str,
    related_contact_id: str,
    attrs: dict[str, Any],
) -> ContactRelationship:
    """Validate and stage a new edge in the current transaction without committing.

    Raises ``InvalidEdgeError`` for self-loops or bad attributes, ``NotFoundError``
    when either endpoint is outside the caller's tenant and ``ConflictError``
    when the unordered pair is already connected. The unique constraint on
    ``(tenant_id, pair_low, pair_high)`` still backs the pre-check at flush time.
    """
    if contact_id == related_contact_id:
        raise InvalidEdgeError("Cannot create relationship with self")
    _validate_attrs(attrs)
    if not attrs.get("relationship_type"):
        raise InvalidEdgeError("relationship_type is required")

    if not all(contact_belongs_to_tenant(db, item, ctx.tenant_id) for item in (contact_id, related_contact_id)):
        raise NotFoundError("One or both contacts not found")

    if find_edge_between(db, ctx.tenant_id, contact_id, related_contact_id) is not None:
        raise ConflictError("Relationship already exists")

    settings = get_settings()
    low, high = unordered_pair(contact_id, related_contact_id)
    strength = attrs.get("strength")
    confidence = attrs.get("confidence")
    is_verified = attrs.get("is_verified")
    edge = ContactRelationship(
        tenant_id=ctx.tenant_id,
        contact_id=contact_id,
        related_contact_id=related_contact_id,
        pair_low=low,
        pair_high=high,
        relationship_type=attrs["relationship_type"],
        strength=settings.default_edge_strength if strength is None else float(strength),
        confidence=settings.default_edge_confidence if confidence is None else float(confidence),
        notes=attrs.get("notes"),
        source=attrs.get("source") or "manual",
        is_mutual=bool(attrs.get("is_mutual") or False),
        is_verified=True if is_verified is None else bool(is_verified),
        discovered_by=ctx.actor_id,
        last_verified=_utcnow(),
    )
    db.add(edge)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        logger.info(
            "edge_create_conflict_on_flush",
            extra={"tenant_id": ctx.tenant_id, "contact_id": contact_id, "related_contact_id": related_contact_id},
        )
        raise ConflictError("Relationship already exists") from exc
    return edge


def create_edge(
    db: Session,
    ctx: RequestContext,
    contact_id: str,
    related_contact_id: str,
    attrs: dict[str, Any],
) -> dict[str, Any]:
    edge = add_edge(db, ctx, contact_id, related_contact_id, attrs)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Relationship already exists") from exc
    db.refresh(edge)
    logger.info(
        "edge_created",
        extra={"tenant_id": ctx.tenant_id, "edge_id": edge.id, "relationship_type": edge.relationship_type},
    )
    contacts = get_contacts_by_ids(db, ctx.tenant_id, {edge.contact_id, edge.related_contact_id})
    return edge_payload(edge, contacts)


def update_edge(db: Session, ctx: RequestContext, edge_id: str, patch: dict[str, Any]) -> dict[str, Any]:
    edge = get_tenant_edge(db, ctx, edge_id)
    _validate_attrs(patch)
    if "relationship_type" in patch and not patch["relationship_type"]:
        raise InvalidEdgeError("relationship_type cannot be empty")

    for field in _PATCHABLE_FIELDS:
        if field in patch and (patch[field] is not None or field == "notes"):
            setattr(edge, field, patch[field])
    edge.last_verified = _utcnow()
    db.commit()
    db.refresh(edge)
    logger.info("edge_updated", extra={"tenant_id": ctx.tenant_id, "edge_id": edge.id, "fields": sorted(patch)})
    contacts = get_contacts_by_ids(db, ctx.tenant_id, {edge.contact_id, edge.related_contact_id})
    return edge_payload(edge, contacts)


def delete_edge(db: Session, ctx: RequestContext, edge_id: str) -> None:
    edge = get_tenant_edge(db, ctx, edge_id)
    db.delete(edge)
    db.commit()
    logger.info("edge_deleted", extra={"tenant_id": ctx.tenant_id, "edge_id": edge_id})


def neighbors_of(db: Session, ctx: RequestContext, contact_id: str) -> list[dict[str, Any]]:
    if not contact_belongs_to_tenant(db, contact_id, ctx.tenant_id):
        raise NotFoundError("Contact not found")
    edges = edges_touching(db, ctx.tenant_id, contact_id)
    other_ids = {edge.related_contact_id if edge.contact_id == contact_id else edge.contact_id for edge in edges}
    contacts = get_contacts_by_ids(db, ctx.tenant_id, other_ids)
    neighbors: list[dict[str, Any]] = []
    for edge in edges:
        other_id = edge.related_contact_id if edge.contact_id == contact_id else edge.contact_id
        other = contacts.get(other_id)
        neighbors.append(
            {
                "edge": edge_payload(edge),
                "direction": "outgoing" if edge.contact_id == contact_id else "incoming",
                "other_contact": contact_summary(other) if other is not None else None,
            }
        )
    return neighbors


def get_relationships(db: Session, ctx: RequestContext, contact_id: str, include_analytics: bool = False) -> dict[str, Any]:
    if not contact_belongs_to_tenant(db, contact_id, ctx.tenant_id):
        raise NotFoundError("Contact not found")

    ordering = (ContactRelationship.strength.desc(), ContactRelationship.updated_at.desc(), ContactRelationship.id)
    direct = db.scalars(
        select(ContactRelationship)
        .where(ContactRelationship.tenant_id == ctx.tenant_id, ContactRelationship.contact_id == contact_id)
        .order_by(*ordering)
    ).all()
    reverse = db.scalars(
        select(ContactRelationship)
        .where(ContactRelationship.tenant_id == ctx.tenant_id, ContactRelationship.related_contact_id == contact_id)
        .order_by(*ordering)
    ).all()

    contact_ids = {contact_id}
    for edge in [*direct, *reverse]:
        contact_ids.update((edge.contact_id, edge.related_contact_id))
    contacts = get_contacts_by_ids(db, ctx.tenant_id, contact_ids)

    analytics = None
    if include_analytics:
        analytics = db.scalar(select(NetworkAnalytics).where(NetworkAnalytics.contact_id == contact_id))

    return {
        "relationships": [edge_payload(edge, contacts) for edge in direct],
        "related_to": [edge_payload(edge, contacts) for edge in reverse],
        "analytics": analytics,
        "total_relationships": len(direct) + len(reverse),
    }
