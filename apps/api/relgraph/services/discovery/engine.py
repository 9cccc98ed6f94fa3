from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from relgraph.core.config import get_settings
from relgraph.core.context import RequestContext
from relgraph.core.errors import AlreadyReviewedError, GraphEngineError, NotFoundError
from relgraph.db.pg.models import (
    CANDIDATE_APPROVED,
    CANDIDATE_PENDING,
    CANDIDATE_REJECTED,
    ContactCache,
    PotentialRelationship,
    unordered_pair,
)
from relgraph.services.contacts_registry.directory import (
    contact_summary,
    get_contact,
    get_contacts_by_ids,
    get_contacts_by_tenant,
)
from relgraph.services.discovery.evidence import (
    analyze_relationship_evidence,
    calculate_confidence,
    infer_relationship_type,
)
from relgraph.services.graph.edge_store import add_edge, edge_payload
from relgraph.services.graph.index import build_graph_index, neighbor_ids

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def score_candidates(
    contact: ContactCache,
    candidates: list[ContactCache],
    neighbors_by_id: dict[str, set[str]],
    min_confidence: float,
) -> list[dict[str, Any]]:
    own_neighbors = neighbors_by_id.get(contact.contact_id, set())
    discoveries: list[dict[str, Any]] = []
    for candidate in candidates:
        mutual_count = len((own_neighbors & neighbors_by_id.get(candidate.contact_id, set())) - {contact.contact_id, candidate.contact_id})
        evidence = analyze_relationship_evidence(contact, candidate, mutual_count)
        if not evidence:
            continue
        confidence = calculate_confidence(evidence)
        if confidence < min_confidence:
            continue
        discoveries.append(
            {
                "contact_id": contact.contact_id,
                "related_contact_id": candidate.contact_id,
                "relationship_type": infer_relationship_type(evidence, contact, candidate),
                "confidence": confidence,
                "evidence": evidence,
                "source": "auto_discovery",
            }
        )
    discoveries.sort(key=lambda item: (-item["confidence"], item["related_contact_id"]))
    return discoveries


def _find_candidate_for_pair(db: Session, tenant_id: str, contact_id: str, related_contact_id: str) -> PotentialRelationship | None:
    low, high = unordered_pair(contact_id, related_contact_id)
    return db.scalar(
        select(PotentialRelationship).where(
            PotentialRelationship.tenant_id == tenant_id,
            PotentialRelationship.pair_low == low,
            PotentialRelationship.pair_high == high,
        )
    )


def _refine_candidate(row: PotentialRelationship, discovery: dict[str, Any]) -> bool:
    # Reviewed candidates are terminal; discovery never rewrites them.
    if row.status != CANDIDATE_PENDING:
        return False
    row.confidence = discovery["confidence"]
    row.evidence_json = discovery["evidence"]
    row.relationship_type = discovery["relationship_type"]
    return True


def upsert_candidate(db: Session, tenant_id: str, discovery: dict[str, Any]) -> PotentialRelationship | None:
    """Insert or refine the PENDING candidate for a pair.

    Returns the written row, or ``None`` when the pair already has a reviewed
    candidate and nothing was written.
    """
    existing = _find_candidate_for_pair(db, tenant_id, discovery["contact_id"], discovery["related_contact_id"])
    if existing is not None:
        if not _refine_candidate(existing, discovery):
            return None
        db.commit()
        return existing

    low, high = unordered_pair(discovery["contact_id"], discovery["related_contact_id"])
    row = PotentialRelationship(
        tenant_id=tenant_id,
        contact_id=discovery["contact_id"],
        related_contact_id=discovery["related_contact_id"],
        pair_low=low,
        pair_high=high,
        relationship_type=discovery["relationship_type"],
        confidence=discovery["confidence"],
        evidence_json=discovery["evidence"],
        source=discovery["source"],
        status=CANDIDATE_PENDING,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent discovery inserted the same pair first; refine theirs.
        db.rollback()
        existing = _find_candidate_for_pair(db, tenant_id, discovery["contact_id"], discovery["related_contact_id"])
        if existing is None:
            raise
        if not _refine_candidate(existing, discovery):
            return None
        db.commit()
        return existing
    return row


def _reviewed_pairs(db: Session, tenant_id: str, contact_id: str) -> set[tuple[str, str]]:
    rows = db.execute(
        select(PotentialRelationship.pair_low, PotentialRelationship.pair_high).where(
            PotentialRelationship.tenant_id == tenant_id,
            PotentialRelationship.status != CANDIDATE_PENDING,
            or_(PotentialRelationship.pair_low == contact_id, PotentialRelationship.pair_high == contact_id),
        )
    ).all()
    return {(low, high) for low, high in rows}


def discover_for_contact(db: Session, ctx: RequestContext, contact_id: str) -> dict[str, Any]:
    settings = get_settings()
    contact = get_contact(db, contact_id, ctx.tenant_id)
    if contact is None:
        raise NotFoundError("Contact not found")

    graph = build_graph_index(db, ctx.tenant_id)
    connected = neighbor_ids(graph, contact_id)
    candidates = [
        other
        for other in get_contacts_by_tenant(db, ctx.tenant_id, active_only=True)
        if other.contact_id != contact_id and other.contact_id not in connected
    ]
    neighbors_by_id = {node_id: set(graph.adj[node_id]) for node_id in graph}

    discoveries = score_candidates(contact, candidates, neighbors_by_id, settings.discovery_min_confidence)
    # reviewed pairs are terminal and must not take persist slots
    reviewed = _reviewed_pairs(db, ctx.tenant_id, contact_id)
    to_persist = [
        item
        for item in discoveries
        if item["confidence"] >= settings.discovery_persist_min_confidence
        and unordered_pair(item["contact_id"], item["related_contact_id"]) not in reviewed
    ][: settings.discovery_persist_limit]
    persisted = sum(1 for discovery in to_persist if upsert_candidate(db, ctx.tenant_id, discovery) is not None)

    logger.info(
        "relationship_discovery_completed",
        extra={
            "tenant_id": ctx.tenant_id,
            "contact_id": contact_id,
            "candidates_scanned": len(candidates),
            "discovered": len(discoveries),
            "persisted": persisted,
        },
    )
    return {
        "discoveries": discoveries,
        "total_discovered": len(discoveries),
        "high_confidence": sum(1 for item in discoveries if item["confidence"] >= settings.discovery_high_confidence),
        "persisted": persisted,
    }


def candidate_payload(row: PotentialRelationship, contacts: dict[str, ContactCache]) -> dict[str, Any]:
    contact = contacts.get(row.contact_id)
    related = contacts.get(row.related_contact_id)
    return {
        "id": row.id,
        "contact_id": row.contact_id,
        "related_contact_id": row.related_contact_id,
        "relationship_type": row.relationship_type,
        "confidence": row.confidence,
        "evidence": row.evidence_json or [],
        "source": row.source,
        "status": row.status,
        "reviewed_by": row.reviewed_by,
        "reviewed_at": row.reviewed_at,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
        "contact": contact_summary(contact) if contact is not None else None,
        "related_contact": contact_summary(related) if related is not None else None,
    }


def list_candidates(
    db: Session,
    ctx: RequestContext,
    status: str = CANDIDATE_PENDING,
    min_confidence: float = 0.3,
    page: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    filters = (
        PotentialRelationship.tenant_id == ctx.tenant_id,
        PotentialRelationship.status == status,
        PotentialRelationship.confidence >= min_confidence,
    )
    total = db.scalar(select(func.count(PotentialRelationship.id)).where(*filters)) or 0
    rows = db.scalars(
        select(PotentialRelationship)
        .where(*filters)
        .order_by(PotentialRelationship.confidence.desc(), PotentialRelationship.id)
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    contact_ids: set[str] = set()
    for row in rows:
        contact_ids.update((row.contact_id, row.related_contact_id))
    contacts = get_contacts_by_ids(db, ctx.tenant_id, contact_ids)
    return {
        "potential_relationships": [candidate_payload(row, contacts) for row in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if limit else 0,
        },
    }


def _get_tenant_candidate(db: Session, ctx: RequestContext, candidate_id: str) -> PotentialRelationship:
    row = db.scalar(
        select(PotentialRelationship).where(
            PotentialRelationship.id == candidate_id,
            PotentialRelationship.tenant_id == ctx.tenant_id,
        )
    )
    if row is None:
        raise NotFoundError("Potential relationship not found")
    if row.status != CANDIDATE_PENDING:
        raise AlreadyReviewedError(f"Potential relationship already {row.status.lower()}")
    return row


def _claim_pending(db: Session, ctx: RequestContext, candidate_id: str, new_status: str) -> datetime:
    """Compare-and-swap the candidate out of PENDING; raises if another reviewer won."""
    reviewed_at = _utcnow()
    result = db.execute(
        update(PotentialRelationship)
        .where(
            PotentialRelationship.id == candidate_id,
            PotentialRelationship.tenant_id == ctx.tenant_id,
            PotentialRelationship.status == CANDIDATE_PENDING,
        )
        .values(status=new_status, reviewed_by=ctx.actor_id, reviewed_at=reviewed_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise AlreadyReviewedError("Potential relationship already reviewed")
    return reviewed_at


def approve_candidate(db: Session, ctx: RequestContext, candidate_id: str) -> dict[str, Any]:
    settings = get_settings()
    candidate = _get_tenant_candidate(db, ctx, candidate_id)
    contact_id = candidate.contact_id
    related_contact_id = candidate.related_contact_id
    confidence = candidate.confidence
    relationship_type = candidate.relationship_type
    evidence = candidate.evidence_json or []

    _claim_pending(db, ctx, candidate_id, CANDIDATE_APPROVED)
    try:
        edge = add_edge(
            db,
            ctx,
            contact_id,
            related_contact_id,
            {
                "relationship_type": relationship_type,
                "strength": min(confidence, settings.approved_strength_cap),
                "confidence": confidence,
                "source": "discovery_approved",
                "notes": f"Approved from discovery. Evidence: {json.dumps(evidence, sort_keys=True, default=str)}",
                "is_verified": True,
            },
        )
        db.commit()
    except GraphEngineError:
        # The status claim and the edge insert share one transaction.
        db.rollback()
        raise
    db.refresh(edge)

    logger.info(
        "potential_relationship_approved",
        extra={"tenant_id": ctx.tenant_id, "candidate_id": candidate_id, "edge_id": edge.id, "reviewed_by": ctx.actor_id},
    )
    contacts = get_contacts_by_ids(db, ctx.tenant_id, {contact_id, related_contact_id})
    return edge_payload(edge, contacts)


def reject_candidate(db: Session, ctx: RequestContext, candidate_id: str) -> dict[str, Any]:
    _get_tenant_candidate(db, ctx, candidate_id)
    _claim_pending(db, ctx, candidate_id, CANDIDATE_REJECTED)
    db.commit()

    logger.info(
        "potential_relationship_rejected",
        extra={"tenant_id": ctx.tenant_id, "candidate_id": candidate_id, "reviewed_by": ctx.actor_id},
    )
    row = db.scalar(select(PotentialRelationship).where(PotentialRelationship.id == candidate_id))
    contacts = get_contacts_by_ids(db, ctx.tenant_id, {row.contact_id, row.related_contact_id})
    return candidate_payload(row, contacts)
