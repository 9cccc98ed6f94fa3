from __future__ import annotations

import pytest
from sqlalchemy import select

from relgraph.core.errors import NotFoundError
from relgraph.db.pg.models import PotentialRelationship
from relgraph.services.discovery.batch import get_discovery_job, start_batch_discovery


def _seed(ctx, make_contact) -> None:  # noqa: ANN001
    make_contact(ctx.tenant_id, "a", company="Acme")
    make_contact(ctx.tenant_id, "b", company="Acme")
    make_contact(ctx.tenant_id, "c", company="Acme")
    make_contact(ctx.tenant_id, "inactive", company="Acme", status="INACTIVE")


def test_batch_discovery_runs_every_active_contact(db, ctx, make_contact) -> None:
    _seed(ctx, make_contact)

    started = start_batch_discovery(db, ctx)

    assert started["status"] == "COMPLETED"
    job = get_discovery_job(db, ctx, started["job_id"])
    assert job.total_contacts == 3
    assert job.processed_contacts == 3
    assert job.failed_contacts == 0
    assert job.finished_at is not None
    assert job.candidates_persisted == 6
    assert job.requested_by == "user-1"
    pairs = sorted((row.pair_low, row.pair_high) for row in db.scalars(select(PotentialRelationship)).all())
    assert pairs == [("a", "b"), ("a", "c"), ("b", "c")]


def test_batch_discovery_continues_after_contact_failure(db, ctx, make_contact, monkeypatch) -> None:
    _seed(ctx, make_contact)
    calls: list[str] = []

    def _fake_discover(db, ctx, contact_id):  # noqa: ANN001
        calls.append(contact_id)
        if contact_id == "b":
            raise RuntimeError("boom")
        return {"discoveries": [], "total_discovered": 1, "high_confidence": 0, "persisted": 1}

    monkeypatch.setattr("relgraph.services.discovery.batch.discover_for_contact", _fake_discover)

    started = start_batch_discovery(db, ctx)

    job = get_discovery_job(db, ctx, started["job_id"])
    assert calls == ["a", "b", "c"]
    assert job.status == "COMPLETED"
    assert job.processed_contacts == 3
    assert job.failed_contacts == 1
    assert job.candidates_persisted == 2
    failed = [item for item in job.item_results_json if item["status"] == "failed"]
    assert failed == [{"contact_id": "b", "status": "failed", "error": "boom"}]


def test_discovery_job_is_tenant_scoped(db, ctx, other_ctx, make_contact) -> None:
    _seed(ctx, make_contact)
    started = start_batch_discovery(db, ctx)

    with pytest.raises(NotFoundError):
        get_discovery_job(db, other_ctx, started["job_id"])
