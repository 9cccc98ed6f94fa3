from __future__ import annotations

import logging
from typing import Any

import networkx as nx
from networkx.utils import pairwise
from sqlalchemy.orm import Session

from relgraph.core.context import RequestContext
from relgraph.core.errors import NotFoundError
from relgraph.db.pg.models import ContactCache
from relgraph.services.contacts_registry.directory import (
    contact_summary,
    display_name,
    get_contact,
    get_contacts_by_ids,
)
from relgraph.services.graph.edge_store import edges_touching
from relgraph.services.graph.index import build_graph_index

logger = logging.getLogger(__name__)


def _require_pair(db: Session, ctx: RequestContext, first_id: str, second_id: str) -> tuple[ContactCache, ContactCache]:
    first = get_contact(db, first_id, ctx.tenant_id)
    second = get_contact(db, second_id, ctx.tenant_id)
    if first is None or second is None:
        raise NotFoundError("One or both contacts not found")
    return first, second


def _first_degree_ids(db: Session, tenant_id: str, contact_id: str) -> set[str]:
    ids: set[str] = set()
    for edge in edges_touching(db, tenant_id, contact_id):
        ids.add(edge.related_contact_id if edge.contact_id == contact_id else edge.contact_id)
    return ids


def _ordered_summaries(db: Session, tenant_id: str, path_ids: list[str]) -> list[dict[str, Any]]:
    contacts = get_contacts_by_ids(db, tenant_id, set(path_ids))
    return [contact_summary(contacts[contact_id]) if contact_id in contacts else {"id": contact_id} for contact_id in path_ids]


def mutual_connections(db: Session, ctx: RequestContext, contact_id_1: str, contact_id_2: str) -> dict[str, Any]:
    first, second = _require_pair(db, ctx, contact_id_1, contact_id_2)
    shared = _first_degree_ids(db, ctx.tenant_id, contact_id_1) & _first_degree_ids(db, ctx.tenant_id, contact_id_2)
    shared -= {contact_id_1, contact_id_2}

    contacts = get_contacts_by_ids(db, ctx.tenant_id, shared)
    mutual = [contact_summary(contacts[contact_id]) for contact_id in sorted(contacts)]
    return {
        "contact1": {"id": first.contact_id, "name": display_name(first)},
        "contact2": {"id": second.contact_id, "name": display_name(second)},
        "mutual_connections": mutual,
        "total_mutual_connections": len(mutual),
    }


def shortest_path_ids(graph: nx.Graph, from_id: str, to_id: str, max_degrees: int) -> list[str] | None:
    """Breadth-first search bounded by ``max_degrees`` hops.

    Adjacency is sorted by contact id, so among equal-length paths the one
    discovered first through lower ids wins. Returns ``None`` when no path of
    at most ``max_degrees`` hops exists.
    """
    if from_id == to_id:
        return [from_id]
    if from_id not in graph:
        return None
    return nx.single_source_shortest_path(graph, from_id, cutoff=max_degrees).get(to_id)


def find_path(db: Session, ctx: RequestContext, from_id: str, to_id: str, max_degrees: int = 3) -> dict[str, Any]:
    _require_pair(db, ctx, from_id, to_id)
    if from_id == to_id:
        return {"path": _ordered_summaries(db, ctx.tenant_id, [from_id]), "degrees": 0, "path_exists": True}

    graph = build_graph_index(db, ctx.tenant_id)
    path_ids = shortest_path_ids(graph, from_id, to_id, max_degrees)
    if path_ids is None:
        logger.debug("path_not_found", extra={"tenant_id": ctx.tenant_id, "max_degrees": max_degrees})
        return {"path": [], "degrees": -1, "path_exists": False}
    return {
        "path": _ordered_summaries(db, ctx.tenant_id, path_ids),
        "degrees": len(path_ids) - 1,
        "path_exists": True,
    }


def _ranked_entry(graph: nx.Graph, contact_ids: list[str]) -> dict[str, Any]:
    steps = [graph.edges[source, target] for source, target in pairwise(contact_ids)]
    strengths = [step["strength"] for step in steps]
    return {
        "contact_ids": list(contact_ids),
        "hops": len(steps),
        # a zero-hop path has no weak link
        "strength": min(strengths) if strengths else 1.0,
        "total_weight": sum(1.0 - value for value in strengths),
        "relationship_types": [step["relationship_type"] for step in steps],
    }


def enumerate_paths(
    graph: nx.Graph,
    from_id: str,
    to_id: str,
    max_degrees: int,
    max_paths: int,
) -> list[dict[str, Any]]:
    """Simple paths from ``from_id`` to ``to_id`` ranked by hops, then weakest link.

    ``nx.shortest_simple_paths`` yields paths in non-decreasing hop count. Once
    ``max_paths`` paths are collected, the remaining paths of the same hop
    count are still read so the strength ranking sees all of them; longer
    paths cannot outrank them and are never generated.
    """
    if from_id == to_id:
        return [_ranked_entry(graph, [from_id])]
    if from_id not in graph or to_id not in graph:
        return []

    collected: list[dict[str, Any]] = []
    hop_limit = max_degrees
    try:
        for contact_ids in nx.shortest_simple_paths(graph, from_id, to_id):
            hops = len(contact_ids) - 1
            if hops > hop_limit:
                break
            collected.append(_ranked_entry(graph, contact_ids))
            if len(collected) >= max_paths:
                hop_limit = hops
    except nx.NetworkXNoPath:
        return []

    collected.sort(key=lambda item: (item["hops"], -item["strength"], item["total_weight"], item["contact_ids"]))
    return collected[:max_paths]


def find_paths(
    db: Session,
    ctx: RequestContext,
    from_id: str,
    to_id: str,
    max_degrees: int = 4,
    min_strength: float = 0.2,
    max_paths: int = 3,
    verified_only: bool = False,
) -> dict[str, Any]:
    from_contact, to_contact = _require_pair(db, ctx, from_id, to_id)
    graph = build_graph_index(db, ctx.tenant_id, min_strength=min_strength, verified_only=verified_only)
    ranked = enumerate_paths(graph, from_id, to_id, max_degrees, max_paths)

    paths = [
        {
            "path": _ordered_summaries(db, ctx.tenant_id, item["contact_ids"]),
            "path_length": item["hops"],
            "strength": item["strength"],
            "total_weight": item["total_weight"],
            "relationship_types": item["relationship_types"],
        }
        for item in ranked
    ]
    return {
        "from_contact": contact_summary(from_contact),
        "to_contact": contact_summary(to_contact),
        "paths": paths,
        "paths_found": len(paths),
        "search_params": {
            "max_degrees": max_degrees,
            "min_strength": min_strength,
            "max_paths": max_paths,
            "verified_only": verified_only,
        },
    }
