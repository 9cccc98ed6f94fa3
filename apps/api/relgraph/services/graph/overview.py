from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import networkx as nx
from sqlalchemy import select
from sqlalchemy.orm import Session

from relgraph.core.context import RequestContext
from relgraph.db.pg.models import ContactCache, ContactRelationship, NetworkAnalytics
from relgraph.services.contacts_registry.directory import display_name


def _node_payload(contact: ContactCache, analytics: NetworkAnalytics | None) -> dict[str, Any]:
    return {
        "id": contact.contact_id,
        "name": display_name(contact),
        "company": contact.company,
        "position": contact.position,
        "email": contact.primary_email,
        "location": ", ".join(part for part in [contact.city, contact.state, contact.country] if part),
        "tier": contact.tier,
        "priority_score": contact.priority_score,
        "opportunity_score": contact.opportunity_score,
        "strategic_value": contact.strategic_value,
        "influence_score": analytics.influence_score if analytics else 0.0,
        "total_connections": analytics.total_connections if analytics else 0,
        "direct_connections": analytics.direct_connections if analytics else 0,
        "network_reach": analytics.network_reach if analytics else 0,
        "industry_diversity": analytics.industry_diversity if analytics else 0.0,
        "geographic_spread": analytics.geographic_spread if analytics else 0.0,
    }


def build_network_graph(
    db: Session,
    ctx: RequestContext,
    *,
    min_strength: float = 0.0,
    max_nodes: int = 500,
    contact_ids: list[str] | None = None,
    include_inactive: bool = False,
) -> dict[str, Any]:
    query = (
        select(ContactCache, NetworkAnalytics)
        .outerjoin(NetworkAnalytics, NetworkAnalytics.contact_id == ContactCache.contact_id)
        .where(ContactCache.tenant_id == ctx.tenant_id)
    )
    if not include_inactive:
        query = query.where(ContactCache.status == "ACTIVE")
    if contact_ids:
        query = query.where(ContactCache.contact_id.in_(contact_ids))
    rows = db.execute(
        query.order_by(ContactCache.priority_score.desc().nulls_last(), ContactCache.last_name, ContactCache.contact_id)
        .limit(max_nodes)
    ).all()

    nodes = [_node_payload(contact, analytics) for contact, analytics in rows]
    node_ids = [node["id"] for node in nodes]

    edges: list[dict[str, Any]] = []
    if node_ids:
        relationships = db.scalars(
            select(ContactRelationship)
            .where(
                ContactRelationship.tenant_id == ctx.tenant_id,
                ContactRelationship.contact_id.in_(node_ids),
                ContactRelationship.related_contact_id.in_(node_ids),
                ContactRelationship.strength >= min_strength,
            )
            .order_by(ContactRelationship.strength.desc(), ContactRelationship.id)
        ).all()
        edges = [
            {
                "id": rel.id,
                "source": rel.contact_id,
                "target": rel.related_contact_id,
                "relationship_type": rel.relationship_type,
                "strength": rel.strength,
                "confidence": rel.confidence,
                "is_mutual": rel.is_mutual,
                "is_verified": rel.is_verified,
                "source_type": rel.source,
                "last_verified": rel.last_verified,
            }
            for rel in relationships
        ]

    graph = nx.Graph()
    graph.add_nodes_from(node_ids)
    graph.add_edges_from((edge["source"], edge["target"]) for edge in edges)
    node_count = len(nodes)
    edge_count = len(edges)
    stats = {
        "total_nodes": node_count,
        "total_edges": edge_count,
        "average_connections": (edge_count * 2) / node_count if node_count else 0.0,
        "network_density": nx.density(graph),
        "verified_relationships": sum(1 for edge in edges if edge["is_verified"]),
        "mutual_relationships": sum(1 for edge in edges if edge["is_mutual"]),
        "tier_distribution": {
            "tier1": sum(1 for node in nodes if node["tier"] == "TIER_1"),
            "tier2": sum(1 for node in nodes if node["tier"] == "TIER_2"),
            "tier3": sum(1 for node in nodes if node["tier"] == "TIER_3"),
            "untiered": sum(1 for node in nodes if not node["tier"]),
        },
    }
    return {
        "nodes": nodes,
        "edges": edges,
        "stats": stats,
        "metadata": {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "filters": {
                "include_inactive": include_inactive,
                "min_strength": min_strength,
                "max_nodes": max_nodes,
                "contact_ids": len(contact_ids) if contact_ids else None,
            },
        },
    }


def company_clusters(db: Session, ctx: RequestContext, min_strength: float = 0.3) -> dict[str, Any]:
    contacts = db.scalars(
        select(ContactCache)
        .where(ContactCache.tenant_id == ctx.tenant_id, ContactCache.status == "ACTIVE")
        .order_by(ContactCache.contact_id)
    ).all()

    members_by_company: dict[str, list[str]] = {}
    for contact in contacts:
        if contact.company:
            members_by_company.setdefault(contact.company, []).append(contact.contact_id)

    relationships = db.scalars(
        select(ContactRelationship).where(
            ContactRelationship.tenant_id == ctx.tenant_id,
            ContactRelationship.strength >= min_strength,
        )
    ).all()
    graph = nx.Graph()
    graph.add_edges_from((rel.contact_id, rel.related_contact_id, {"strength": rel.strength}) for rel in relationships)

    result: list[dict[str, Any]] = []
    for company, member_ids in members_by_company.items():
        if len(member_ids) < 2:
            continue
        cluster = nx.Graph(graph.subgraph(member_ids))
        cluster.add_nodes_from(member_ids)
        strengths = [data["strength"] for _, _, data in cluster.edges(data=True)]
        result.append(
            {
                "id": company,
                "name": company,
                "type": "company",
                "member_ids": member_ids,
                "size": len(member_ids),
                "connections": len(strengths),
                "avg_strength": sum(strengths) / len(strengths) if strengths else 0.0,
                "density": nx.density(cluster),
            }
        )
    result.sort(key=lambda item: (-item["size"], item["name"]))

    return {
        "clusters": result,
        "total_clusters": len(result),
        "largest_cluster": result[0] if result else None,
        "avg_cluster_size": sum(item["size"] for item in result) / len(result) if result else 0.0,
    }
