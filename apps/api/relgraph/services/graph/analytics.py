from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from relgraph.core.config import Settings, get_settings
from relgraph.core.context import RequestContext
from relgraph.core.errors import NotFoundError
from relgraph.db.pg.models import ContactCache, ContactRelationship, NetworkAnalytics
from relgraph.services.contacts_registry.directory import display_name, get_contact, get_contacts_by_ids
from relgraph.services.graph.edge_store import edges_touching

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _diversity(distinct_count: int, cap: int) -> float:
    if distinct_count <= 0:
        return 0.0
    return min(1.0, distinct_count / cap)


def compute_influence_score(
    direct_connections: int,
    network_reach: int,
    industry_diversity: float,
    geographic_spread: float,
    seniority_spread: float,
    settings: Settings | None = None,
) -> float:
    settings = settings or get_settings()
    weighted = (
        direct_connections * settings.influence_weight_direct
        + network_reach * settings.influence_weight_reach
        + industry_diversity * settings.influence_weight_industry
        + geographic_spread * settings.influence_weight_geography
        + seniority_spread * settings.influence_weight_seniority
    )
    # Raw sums pass 1.0 quickly for well connected contacts; the clamp is the only bound.
    return max(0.0, min(1.0, weighted / settings.influence_normalizer))


def _second_degree_edge_count(db: Session, tenant_id: str, contact_id: str, neighbor_ids: set[str]) -> int:
    # Counts edges, not distinct 2nd-degree contacts: an edge between two
    # direct neighbors is counted once, and so is each edge leading outward.
    if not neighbor_ids:
        return 0
    ids = list(neighbor_ids)
    return db.scalar(
        select(func.count(ContactRelationship.id)).where(
            ContactRelationship.tenant_id == tenant_id,
            or_(
                and_(ContactRelationship.contact_id.in_(ids), ContactRelationship.related_contact_id != contact_id),
                and_(ContactRelationship.related_contact_id.in_(ids), ContactRelationship.contact_id != contact_id),
            ),
        )
    ) or 0


def compute_analytics(db: Session, ctx: RequestContext, contact_id: str) -> NetworkAnalytics:
    if get_contact(db, contact_id, ctx.tenant_id) is None:
        raise NotFoundError("Contact not found")

    settings = get_settings()
    edges = edges_touching(db, ctx.tenant_id, contact_id)
    direct_connections = len(edges)
    mutual_connections = sum(1 for edge in edges if edge.is_mutual)
    verified_connections = sum(1 for edge in edges if edge.is_verified)

    neighbor_ids = {edge.related_contact_id if edge.contact_id == contact_id else edge.contact_id for edge in edges}
    network_reach = _second_degree_edge_count(db, ctx.tenant_id, contact_id, neighbor_ids)

    companies: set[str] = set()
    locations: set[str] = set()
    positions: set[str] = set()
    for neighbor in get_contacts_by_ids(db, ctx.tenant_id, neighbor_ids).values():
        if neighbor.company:
            companies.add(neighbor.company)
        if neighbor.city and neighbor.state:
            locations.add(f"{neighbor.city}, {neighbor.state}")
        if neighbor.position:
            positions.add(neighbor.position)

    industry_diversity = _diversity(len(companies), settings.industry_diversity_cap)
    geographic_spread = _diversity(len(locations), settings.geographic_diversity_cap)
    seniority_spread = _diversity(len(positions), settings.seniority_diversity_cap)
    influence_score = compute_influence_score(
        direct_connections,
        network_reach,
        industry_diversity,
        geographic_spread,
        seniority_spread,
        settings,
    )

    analytics = db.scalar(select(NetworkAnalytics).where(NetworkAnalytics.contact_id == contact_id))
    if analytics is None:
        analytics = NetworkAnalytics(contact_id=contact_id, tenant_id=ctx.tenant_id)
        db.add(analytics)
    analytics.tenant_id = ctx.tenant_id
    analytics.total_connections = direct_connections
    analytics.direct_connections = direct_connections
    analytics.mutual_connections = mutual_connections
    analytics.verified_connections = verified_connections
    analytics.network_reach = network_reach
    analytics.influence_score = influence_score
    analytics.industry_diversity = industry_diversity
    analytics.geographic_spread = geographic_spread
    analytics.seniority_spread = seniority_spread
    analytics.last_calculated = _utcnow()
    db.commit()
    db.refresh(analytics)

    logger.info(
        "network_analytics_computed",
        extra={
            "tenant_id": ctx.tenant_id,
            "contact_id": contact_id,
            "direct_connections": direct_connections,
            "network_reach": network_reach,
        },
    )
    return analytics


def is_stale(analytics: NetworkAnalytics, now: datetime | None = None) -> bool:
    now = now or _utcnow()
    threshold = timedelta(hours=get_settings().analytics_staleness_hours)
    return now - _as_utc(analytics.last_calculated) >= threshold


def get_analytics(db: Session, ctx: RequestContext, contact_id: str) -> NetworkAnalytics:
    if get_contact(db, contact_id, ctx.tenant_id) is None:
        raise NotFoundError("Contact not found")
    analytics = db.scalar(
        select(NetworkAnalytics).where(
            NetworkAnalytics.contact_id == contact_id,
            NetworkAnalytics.tenant_id == ctx.tenant_id,
        )
    )
    if analytics is not None and not is_stale(analytics):
        return analytics
    return compute_analytics(db, ctx, contact_id)


def recompute_stale_for_tenant(db: Session, tenant_id: str) -> dict[str, int]:
    ctx = RequestContext(tenant_id=tenant_id)
    contacts = db.scalars(
        select(ContactCache).where(ContactCache.tenant_id == tenant_id, ContactCache.status == "ACTIVE")
    ).all()
    cached = {
        row.contact_id: row
        for row in db.scalars(select(NetworkAnalytics).where(NetworkAnalytics.tenant_id == tenant_id)).all()
    }
    now = _utcnow()
    recomputed = 0
    for contact in contacts:
        existing = cached.get(contact.contact_id)
        if existing is not None and not is_stale(existing, now):
            continue
        compute_analytics(db, ctx, contact.contact_id)
        recomputed += 1
    return {"contacts": len(contacts), "recomputed": recomputed}


def top_influencers(db: Session, ctx: RequestContext, limit: int = 50) -> dict[str, Any]:
    rows = db.execute(
        select(ContactCache, NetworkAnalytics)
        .join(NetworkAnalytics, NetworkAnalytics.contact_id == ContactCache.contact_id)
        .where(ContactCache.tenant_id == ctx.tenant_id, ContactCache.status == "ACTIVE")
        .order_by(NetworkAnalytics.influence_score.desc(), ContactCache.contact_id)
        .limit(limit)
    ).all()

    influence_data = [
        {
            "id": contact.contact_id,
            "name": display_name(contact),
            "company": contact.company,
            "position": contact.position,
            "influence_score": analytics.influence_score,
            "total_connections": analytics.total_connections,
            "network_reach": analytics.network_reach,
            "industry_diversity": analytics.industry_diversity,
            "geographic_spread": analytics.geographic_spread,
        }
        for contact, analytics in rows
    ]
    scores = [item["influence_score"] for item in influence_data]
    return {
        "influence_data": influence_data,
        "metrics": {
            "total_influencers": sum(1 for score in scores if score > 0.5),
            "avg_influence": (sum(scores) / len(scores)) if scores else 0.0,
            "top_influencers": influence_data[:10],
            "influence_distribution": {
                "high": sum(1 for score in scores if score > 0.7),
                "medium": sum(1 for score in scores if 0.4 < score <= 0.7),
                "low": sum(1 for score in scores if score <= 0.4),
            },
        },
    }
