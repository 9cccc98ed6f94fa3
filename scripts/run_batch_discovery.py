from __future__ import annotations

import argparse
import json

from relgraph.core.context import RequestContext
from relgraph.core.logging import configure_logging
from relgraph.db.pg.session import session_scope
from relgraph.services.discovery.batch import create_discovery_job, run_discovery_job


def main() -> None:
    parser = argparse.ArgumentParser(description="Run relationship discovery for every active contact of a tenant.")
    parser.add_argument("tenant_id")
    parser.add_argument("--actor-id", default=None)
    args = parser.parse_args()

    configure_logging()
    with session_scope() as db:
        job = create_discovery_job(db, RequestContext(tenant_id=args.tenant_id, actor_id=args.actor_id))
        job = run_discovery_job(db, job.job_id)
        result = {
            "job_id": job.job_id,
            "status": job.status,
            "total_contacts": job.total_contacts,
            "processed_contacts": job.processed_contacts,
            "failed_contacts": job.failed_contacts,
            "candidates_persisted": job.candidates_persisted,
        }
    print(json.dumps(result, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
