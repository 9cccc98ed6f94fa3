from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends

from relgraph.core.config import Settings, get_settings
from relgraph.core.context import RequestContext
from relgraph.core.security import actor_header, resolve_request_context, tenant_header
from relgraph.db.pg.session import SessionLocal


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_settings_dep() -> Settings:
    return get_settings()


def get_request_context(
    x_tenant_id: str | None = Depends(tenant_header),
    x_actor_id: str | None = Depends(actor_header),
) -> RequestContext:
    return resolve_request_context(x_tenant_id, x_actor_id)
