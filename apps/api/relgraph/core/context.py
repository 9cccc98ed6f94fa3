from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Tenant and actor every engine call is scoped to."""

    tenant_id: str
    actor_id: str | None = None
