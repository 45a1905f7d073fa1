"""Tenant API router — requires super-admin authentication."""

from fastapi import APIRouter, Depends, HTTPException

from folio_engine.common.security import require_super_admin
from folio_engine.tenants.schemas import TenantCreate, TenantResponse, TenantUpdate

router = APIRouter(prefix="/tenants", tags=["tenants"])


def _get_service():
    from folio_engine.deps import get_tenant_service
    return get_tenant_service()


def _get_db():
    from folio_engine.deps import get_db
    return get_db()


@router.post("", response_model=TenantResponse, status_code=201)
async def create_tenant(body: TenantCreate, _=Depends(require_super_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        if await svc.get_by_slug(session, body.slug) is not None:
            raise HTTPException(status_code=409, detail="Tenant slug already exists")
        values = body.model_dump()
        slug = values.pop("slug")
        tenant = await svc.create_tenant(session, slug, **values)
        return TenantResponse.from_model(tenant)


@router.get("", response_model=list[TenantResponse])
async def list_tenants(_=Depends(require_super_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenants = await svc.list_tenants(session)
        return [TenantResponse.from_model(t) for t in tenants]


@router.get("/{slug}", response_model=TenantResponse)
async def get_tenant(slug: str, _=Depends(require_super_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenant = await svc.get_by_slug(session, slug)
        if tenant is None:
            raise HTTPException(status_code=404, detail="Tenant not found")
        return TenantResponse.from_model(tenant)


@router.patch("/{slug}", response_model=TenantResponse)
async def update_tenant(slug: str, body: TenantUpdate, _=Depends(require_super_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenant = await svc.update_tenant(
            session, slug, **body.model_dump(exclude_none=True)
        )
        if tenant is None:
            raise HTTPException(status_code=404, detail="Tenant not found")
        return TenantResponse.from_model(tenant)


@router.delete("/{slug}/credential", response_model=TenantResponse)
async def disconnect_delegated_identity(slug: str, _=Depends(require_super_admin)):
    """Drop the tenant's delegated credential; later calls use the service identity."""
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenant = await svc.clear_delegated_credential(session, slug)
        if tenant is None:
            raise HTTPException(status_code=404, detail="Tenant not found")
        return TenantResponse.from_model(tenant)
