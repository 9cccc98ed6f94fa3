from __future__ import annotations

import logging

from relgraph.db.pg.session import session_scope
from relgraph.services.discovery.batch import run_discovery_job
from relgraph.services.graph.analytics import recompute_stale_for_tenant

logger = logging.getLogger(__name__)


def run_batch_discovery(job_id: str) -> dict:
    with session_scope() as db:
        job = run_discovery_job(db, job_id)
        return {
            "job_id": job.job_id,
            "status": job.status,
            "processed_contacts": job.processed_contacts,
            "failed_contacts": job.failed_contacts,
            "candidates_persisted": job.candidates_persisted,
        }


def recompute_stale_analytics(tenant_id: str) -> dict:
    with session_scope() as db:
        result = recompute_stale_for_tenant(db, tenant_id)
    logger.info("stale_analytics_recomputed", extra={"tenant_id": tenant_id, **result})
    return {"tenant_id": tenant_id, **result}
