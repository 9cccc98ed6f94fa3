from __future__ import annotations

from fastapi import Header, HTTPException, status

from relgraph.core.context import RequestContext


def tenant_header(x_tenant_id: str | None = Header(default=None)) -> str | None:
    return x_tenant_id


def actor_header(x_actor_id: str | None = Header(default=None)) -> str | None:
    return x_actor_id


def resolve_request_context(tenant_id: str | None, actor_id: str | None) -> RequestContext:
    tenant = (tenant_id or "").strip()
    if not tenant:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing tenant",
        )
    actor = (actor_id or "").strip() or None
    return RequestContext(tenant_id=tenant, actor_id=actor)
