from __future__ import annotations

from fastapi import APIRouter, Depends

from relgraph.api.v1.deps import get_request_context
from relgraph.core.context import RequestContext
from relgraph.workers.queue import enqueue_job

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/recompute_analytics")
def recompute_analytics(ctx: RequestContext = Depends(get_request_context)) -> dict:
    job_id = enqueue_job("recompute_stale_analytics", ctx.tenant_id)
    return {"job_id": job_id, "status": "enqueued"}
