from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from relgraph.api.v1.deps import get_db, get_request_context, get_settings_dep
from relgraph.api.v1.schemas import ClustersResponse, InfluenceResponse, NetworkGraphResponse, PathsResponse
from relgraph.core.context import RequestContext
from relgraph.services.graph.analytics import top_influencers
from relgraph.services.graph.overview import build_network_graph, company_clusters
from relgraph.services.graph.paths import find_paths

router = APIRouter(prefix="/network", tags=["network"])


@router.get("/paths/{from_contact_id}/{to_contact_id}", response_model=PathsResponse)
def ranked_paths(
    from_contact_id: str,
    to_contact_id: str,
    max_degrees: int | None = Query(default=None, ge=1, le=8),
    min_strength: float | None = Query(default=None, ge=0.0, le=1.0),
    max_paths: int | None = Query(default=None, ge=1, le=50),
    verified_only: bool = False,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    settings=Depends(get_settings_dep),
) -> PathsResponse:
    result = find_paths(
        db,
        ctx,
        from_contact_id,
        to_contact_id,
        max_degrees=max_degrees if max_degrees is not None else settings.paths_default_max_degrees,
        min_strength=min_strength if min_strength is not None else settings.paths_default_min_strength,
        max_paths=max_paths if max_paths is not None else settings.paths_default_max_results,
        verified_only=verified_only,
    )
    return PathsResponse(**result)


@router.get("/graph", response_model=NetworkGraphResponse)
def network_graph(
    min_strength: float = Query(default=0.0, ge=0.0, le=1.0),
    max_nodes: int = Query(default=500, ge=1, le=5000),
    contact_ids: list[str] | None = Query(default=None),
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> NetworkGraphResponse:
    result = build_network_graph(
        db,
        ctx,
        min_strength=min_strength,
        max_nodes=max_nodes,
        contact_ids=contact_ids,
        include_inactive=include_inactive,
    )
    return NetworkGraphResponse(**result)


@router.get("/clusters", response_model=ClustersResponse)
def network_clusters(
    min_strength: float = Query(default=0.3, ge=0.0, le=1.0),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> ClustersResponse:
    return ClustersResponse(**company_clusters(db, ctx, min_strength=min_strength))


@router.get("/influence", response_model=InfluenceResponse)
def network_influence(
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> InfluenceResponse:
    return InfluenceResponse(**top_influencers(db, ctx, limit=limit))
