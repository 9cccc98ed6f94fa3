from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from relgraph.core.config import get_settings
from relgraph.core.context import RequestContext
from relgraph.core.errors import NotFoundError
from relgraph.db.pg.models import JOB_COMPLETED, JOB_FAILED, JOB_RUNNING, DiscoveryJob
from relgraph.services.contacts_registry.directory import get_contacts_by_tenant
from relgraph.services.discovery.engine import discover_for_contact
from relgraph.workers.queue import enqueue_job

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_discovery_job(db: Session, ctx: RequestContext) -> DiscoveryJob:
    job = DiscoveryJob(tenant_id=ctx.tenant_id, requested_by=ctx.actor_id, status=JOB_RUNNING, item_results_json=[])
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def get_discovery_job(db: Session, ctx: RequestContext, job_id: str) -> DiscoveryJob:
    job = db.scalar(select(DiscoveryJob).where(DiscoveryJob.job_id == job_id, DiscoveryJob.tenant_id == ctx.tenant_id))
    if job is None:
        raise NotFoundError("Discovery job not found")
    return job


def _chunks(items: list, size: int):
    for start in range(0, len(items), size):
        yield items[start : start + size]


def run_discovery_job(db: Session, job_id: str) -> DiscoveryJob:
    """Run discovery for every active contact of the job's tenant.

    A failing contact is logged and recorded as a failed item; the batch keeps
    going. Only an error outside the per-contact loop marks the job FAILED.
    """
    job = db.scalar(select(DiscoveryJob).where(DiscoveryJob.job_id == job_id))
    if job is None:
        raise NotFoundError("Discovery job not found")
    if job.status != JOB_RUNNING:
        logger.warning("discovery_job_not_running", extra={"job_id": job_id, "status": job.status})
        return job

    settings = get_settings()
    ctx = RequestContext(tenant_id=job.tenant_id, actor_id=job.requested_by)
    tenant_id = job.tenant_id
    item_results: list[dict[str, Any]] = []
    processed = failed = persisted = 0
    try:
        contact_ids = [contact.contact_id for contact in get_contacts_by_tenant(db, tenant_id, active_only=True)]
        job.total_contacts = len(contact_ids)
        db.commit()

        for chunk in _chunks(contact_ids, settings.discovery_batch_size):
            for contact_id in chunk:
                try:
                    result = discover_for_contact(db, ctx, contact_id)
                except Exception as exc:
                    db.rollback()
                    logger.exception(
                        "batch_discovery_contact_failed",
                        extra={"job_id": job_id, "tenant_id": tenant_id, "contact_id": contact_id},
                    )
                    item_results.append({"contact_id": contact_id, "status": "failed", "error": str(exc)})
                    failed += 1
                else:
                    item_results.append(
                        {
                            "contact_id": contact_id,
                            "status": "ok",
                            "discovered": result["total_discovered"],
                            "persisted": result["persisted"],
                        }
                    )
                    persisted += result["persisted"]
                processed += 1
            # progress is written once per chunk
            job.processed_contacts = processed
            job.failed_contacts = failed
            job.candidates_persisted = persisted
            job.item_results_json = list(item_results)
            db.commit()

        job.status = JOB_COMPLETED
        job.finished_at = _utcnow()
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.exception("batch_discovery_failed", extra={"job_id": job_id, "tenant_id": tenant_id})
        job.processed_contacts = processed
        job.failed_contacts = failed
        job.candidates_persisted = persisted
        job.status = JOB_FAILED
        job.error = str(exc)
        job.item_results_json = list(item_results)
        job.finished_at = _utcnow()
        db.commit()
        raise

    logger.info(
        "batch_discovery_completed",
        extra={"job_id": job_id, "tenant_id": tenant_id, "processed": processed, "failed": failed, "persisted": persisted},
    )
    db.refresh(job)
    return job


def start_batch_discovery(db: Session, ctx: RequestContext) -> dict[str, str]:
    job = create_discovery_job(db, ctx)
    job_id = job.job_id
    queue_job_id = enqueue_job("run_batch_discovery", job_id)
    logger.info(
        "batch_discovery_started",
        extra={"job_id": job_id, "tenant_id": ctx.tenant_id, "queue_job_id": queue_job_id},
    )
    db.refresh(job)
    return {"job_id": job_id, "status": job.status, "message": "Batch relationship discovery started"}
