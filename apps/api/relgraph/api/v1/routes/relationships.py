from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from relgraph.api.v1.deps import get_db, get_request_context, get_settings_dep
from relgraph.api.v1.schemas import (
    ContactRelationshipsResponse,
    MutualConnectionsResponse,
    NeighborsResponse,
    NetworkAnalyticsOut,
    PathResponse,
    RelationshipCreate,
    RelationshipOut,
    RelationshipUpdate,
)
from relgraph.core.context import RequestContext
from relgraph.services.graph.analytics import get_analytics
from relgraph.services.graph.edge_store import create_edge, delete_edge, get_relationships, neighbors_of, update_edge
from relgraph.services.graph.paths import find_path, mutual_connections

router = APIRouter(prefix="/relationships", tags=["relationships"])


@router.get("/contact/{contact_id}", response_model=ContactRelationshipsResponse)
def contact_relationships(
    contact_id: str,
    include_analytics: bool = False,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> ContactRelationshipsResponse:
    result = get_relationships(db, ctx, contact_id, include_analytics=include_analytics)
    analytics = result["analytics"]
    return ContactRelationshipsResponse(
        relationships=result["relationships"],
        related_to=result["related_to"],
        analytics=NetworkAnalyticsOut.model_validate(analytics) if analytics is not None else None,
        total_relationships=result["total_relationships"],
    )


@router.get("/contact/{contact_id}/neighbors", response_model=NeighborsResponse)
def contact_neighbors(
    contact_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> NeighborsResponse:
    return NeighborsResponse(contact_id=contact_id, neighbors=neighbors_of(db, ctx, contact_id))


@router.post("", response_model=RelationshipOut, status_code=status.HTTP_201_CREATED)
def create_relationship(
    payload: RelationshipCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> RelationshipOut:
    attrs = payload.model_dump(exclude={"contact_id", "related_contact_id"}, exclude_none=True)
    return RelationshipOut(**create_edge(db, ctx, payload.contact_id, payload.related_contact_id, attrs))


@router.put("/{relationship_id}", response_model=RelationshipOut)
def update_relationship(
    relationship_id: str,
    payload: RelationshipUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> RelationshipOut:
    patch = payload.model_dump(exclude_unset=True)
    return RelationshipOut(**update_edge(db, ctx, relationship_id, patch))


@router.delete("/{relationship_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_relationship(
    relationship_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> Response:
    delete_edge(db, ctx, relationship_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/mutual/{contact_id_1}/{contact_id_2}", response_model=MutualConnectionsResponse)
def mutual(
    contact_id_1: str,
    contact_id_2: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> MutualConnectionsResponse:
    return MutualConnectionsResponse(**mutual_connections(db, ctx, contact_id_1, contact_id_2))


@router.get("/analytics/network/{contact_id}", response_model=NetworkAnalyticsOut)
def network_analytics(
    contact_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> NetworkAnalyticsOut:
    return NetworkAnalyticsOut.model_validate(get_analytics(db, ctx, contact_id))


@router.get("/path/{from_contact_id}/{to_contact_id}", response_model=PathResponse)
def shortest_path(
    from_contact_id: str,
    to_contact_id: str,
    max_degrees: int | None = Query(default=None, ge=1, le=10),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    settings=Depends(get_settings_dep),
) -> PathResponse:
    degrees = max_degrees if max_degrees is not None else settings.path_default_max_degrees
    return PathResponse(**find_path(db, ctx, from_contact_id, to_contact_id, max_degrees=degrees))
