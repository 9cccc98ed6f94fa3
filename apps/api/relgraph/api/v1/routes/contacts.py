from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from relgraph.api.v1.deps import get_db, get_request_context
from relgraph.api.v1.schemas import ContactsSyncRequest, ContactsSyncResponse
from relgraph.core.context import RequestContext
from relgraph.services.contacts_registry.sync import push_contacts

router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.post("/sync", response_model=ContactsSyncResponse)
def contacts_sync(
    payload: ContactsSyncRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> ContactsSyncResponse:
    return ContactsSyncResponse(**push_contacts(db, ctx.tenant_id, payload.rows))
