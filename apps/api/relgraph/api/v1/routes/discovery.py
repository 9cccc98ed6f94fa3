from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from relgraph.api.v1.deps import get_db, get_request_context
from relgraph.api.v1.schemas import (
    BatchDiscoveryResponse,
    CandidateListResponse,
    CandidateOut,
    CandidateStatus,
    DiscoveryJobOut,
    DiscoveryResponse,
    RelationshipOut,
)
from relgraph.core.context import RequestContext
from relgraph.services.discovery.batch import get_discovery_job, start_batch_discovery
from relgraph.services.discovery.engine import (
    approve_candidate,
    discover_for_contact,
    list_candidates,
    reject_candidate,
)

router = APIRouter(prefix="/discovery", tags=["discovery"])


@router.post("/contacts/{contact_id}", response_model=DiscoveryResponse)
def discover_contact(
    contact_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> DiscoveryResponse:
    return DiscoveryResponse(**discover_for_contact(db, ctx, contact_id))


@router.get("/candidates", response_model=CandidateListResponse)
def candidates(
    status_filter: CandidateStatus = Query(default="PENDING", alias="status"),
    min_confidence: float = Query(default=0.3, ge=0.0, le=1.0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=200),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> CandidateListResponse:
    result = list_candidates(db, ctx, status=status_filter, min_confidence=min_confidence, page=page, limit=limit)
    return CandidateListResponse(**result)


@router.post("/candidates/{candidate_id}/approve", response_model=RelationshipOut)
def approve(
    candidate_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> RelationshipOut:
    return RelationshipOut(**approve_candidate(db, ctx, candidate_id))


@router.post("/candidates/{candidate_id}/reject", response_model=CandidateOut)
def reject(
    candidate_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> CandidateOut:
    return CandidateOut(**reject_candidate(db, ctx, candidate_id))


@router.post("/batch", response_model=BatchDiscoveryResponse, status_code=status.HTTP_202_ACCEPTED)
def batch_discover(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> BatchDiscoveryResponse:
    return BatchDiscoveryResponse(**start_batch_discovery(db, ctx))


@router.get("/jobs/{job_id}", response_model=DiscoveryJobOut)
def discovery_job(
    job_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> DiscoveryJobOut:
    return DiscoveryJobOut.model_validate(get_discovery_job(db, ctx, job_id))
