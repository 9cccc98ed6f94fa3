from __future__ import annotations

import networkx as nx
from sqlalchemy import select
from sqlalchemy.orm import Session

from relgraph.db.pg.models import ContactRelationship


def index_from_edges(tenant_id: str, edges: list[ContactRelationship]) -> nx.Graph:
    """Undirected view of one tenant's edge store.

    Edges are inserted in ``(pair_low, pair_high)`` order, which leaves every
    node's adjacency sorted by neighbor contact id. Traversals that walk
    ``graph.adj`` are therefore deterministic regardless of storage order.
    Edge attributes carry ``strength``, ``relationship_type``, ``is_mutual``
    and ``edge_id``.
    """
    graph = nx.Graph(tenant_id=tenant_id)
    for edge in sorted(edges, key=lambda item: (item.pair_low, item.pair_high)):
        graph.add_edge(
            edge.pair_low,
            edge.pair_high,
            strength=edge.strength if edge.strength is not None else 0.5,
            relationship_type=edge.relationship_type,
            is_mutual=bool(edge.is_mutual),
            edge_id=edge.id,
        )
    return graph


def neighbor_ids(graph: nx.Graph, contact_id: str) -> set[str]:
    if contact_id not in graph:
        return set()
    return set(graph.adj[contact_id])


def build_graph_index(
    db: Session,
    tenant_id: str,
    *,
    min_strength: float | None = None,
    verified_only: bool = False,
) -> nx.Graph:
    query = select(ContactRelationship).where(ContactRelationship.tenant_id == tenant_id)
    if min_strength is not None:
        query = query.where(ContactRelationship.strength >= min_strength)
    if verified_only:
        query = query.where(ContactRelationship.is_verified.is_(True))
    edges = db.scalars(query).all()
    return index_from_edges(tenant_id, edges)
