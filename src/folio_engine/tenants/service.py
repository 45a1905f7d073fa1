"""Tenant lookup, branding updates, and delegated-credential storage."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from folio_engine.common.exceptions import TenantNotFoundError
from folio_engine.tenants.cache import TenantCache
from folio_engine.tenants.models import TenantModel
from folio_engine.tenants.record import TenantRecord
from folio_engine.vault.cipher import CredentialVault

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "business_name",
    "business_address",
    "business_email",
    "business_phone",
    "tax_id",
    "owner_email",
    "currency",
    "timezone",
    "logo_url",
    "brand_color",
    "email_from",
    "template_invoice_id",
    "template_quote_id",
    "template_receipt_id",
    "exports_folder_id",
)


class TenantService:
    """Tenant management operations."""

    def __init__(self, cache: TenantCache, vault: CredentialVault):
        self.cache = cache
        self.vault = vault

    async def create_tenant(
        self,
        session: AsyncSession,
        slug: str,
        business_name: str = "",
        **fields,
    ) -> TenantModel:
        tenant = TenantModel(slug=slug, business_name=business_name)
        for field in _EDITABLE_FIELDS:
            if fields.get(field) is not None:
                setattr(tenant, field, fields[field])
        session.add(tenant)
        await session.flush()
        return tenant

    async def get_by_slug(
        self, session: AsyncSession, slug: str
    ) -> TenantModel | None:
        result = await session.execute(
            select(TenantModel).where(TenantModel.slug == slug)
        )
        return result.scalar_one_or_none()

    async def list_tenants(self, session: AsyncSession) -> list[TenantModel]:
        result = await session.execute(select(TenantModel).order_by(TenantModel.slug))
        return list(result.scalars().all())

    async def resolve(self, session: AsyncSession, slug: str) -> TenantRecord:
        """Return the tenant snapshot for `slug`, served from the cache while fresh."""
        slug = (slug or "").strip()
        if not slug:
            raise TenantNotFoundError("Missing tenant")
        cached = self.cache.get(slug)
        if cached is not None:
            return cached

        tenant = await self.get_by_slug(session, slug)
        if tenant is None:
            raise TenantNotFoundError(f"Tenant '{slug}' not found")
        record = TenantRecord.from_model(tenant)
        self.cache.put(record)
        return record

    async def update_tenant(
        self, session: AsyncSession, slug: str, **updates
    ) -> TenantModel | None:
        tenant = await self.get_by_slug(session, slug)
        if tenant is None:
            return None
        for field in _EDITABLE_FIELDS:
            if field in updates and updates[field] is not None:
                setattr(tenant, field, updates[field])
        await session.flush()
        self.cache.invalidate(slug)
        return tenant

    async def save_delegated_credential(
        self, session: AsyncSession, slug: str, secret: str
    ) -> TenantModel:
        """Seal `secret` and store it as the tenant's delegated credential."""
        tenant = await self.get_by_slug(session, slug)
        if tenant is None:
            raise TenantNotFoundError(f"Tenant '{slug}' not found")
        tenant.delegated_credential_encrypted = self.vault.seal_text(secret)
        await session.flush()
        self.cache.invalidate(slug)
        logger.info("Stored delegated credential", extra={"tenant": slug})
        return tenant

    async def clear_delegated_credential(
        self, session: AsyncSession, slug: str
    ) -> TenantModel | None:
        tenant = await self.get_by_slug(session, slug)
        if tenant is None:
            return None
        tenant.delegated_credential_encrypted = ""
        await session.flush()
        self.cache.invalidate(slug)
        return tenant
