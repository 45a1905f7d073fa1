"""Delivery log API router."""

from fastapi import APIRouter, Depends, HTTPException, Query

from folio_engine.common.exceptions import FolioError
from folio_engine.common.security import require_api_key
from folio_engine.dispatch.schemas import DeliveryLogResponse

router = APIRouter()


def _get_dispatcher():
    from folio_engine.deps import get_dispatcher
    return get_dispatcher()


def _get_tenants():
    from folio_engine.deps import get_tenant_service
    return get_tenant_service()


def _get_db():
    from folio_engine.deps import get_db
    return get_db()


@router.get("/deliveries", response_model=list[DeliveryLogResponse])
async def list_deliveries(
    tenant: str = Query(..., min_length=1),
    limit: int = Query(100, ge=1, le=500),
    _=Depends(require_api_key),
):
    """Delivery attempts for a tenant, newest first."""
    dispatcher = _get_dispatcher()
    db = _get_db()
    async with db.get_session() as session:
        try:
            record = await _get_tenants().resolve(session, tenant)
        except FolioError as e:
            raise HTTPException(status_code=e.status_code, detail=e.message)
        entries = await dispatcher.list_entries(session, record, limit=limit)
        return [DeliveryLogResponse.from_model(e) for e in entries]
