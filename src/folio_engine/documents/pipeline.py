"""Render → deliver → dispatch orchestration for one tenant document.

Each call runs its steps strictly in order and awaits each one before the
next: tenant lookup, identity, rendering, delivery, then dispatch. The first
failure ends the call.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from folio_engine.common.exceptions import RecipientRequiredError
from folio_engine.delivery.resolver import DeliveryResolver
from folio_engine.dispatch.models import DeliveryLogModel
from folio_engine.dispatch.service import Dispatcher
from folio_engine.documents.schemas import DocumentRequest
from folio_engine.documents.service import DocumentService
from folio_engine.identity.client import DocumentApiClient
from folio_engine.identity.resolver import IdentityResolver
from folio_engine.rendering.pdf import LayoutRenderer
from folio_engine.rendering.results import LinkResult, RenderResult
from folio_engine.rendering.templates import TemplateCloneRenderer
from folio_engine.tenants.record import TenantRecord
from folio_engine.tenants.service import TenantService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delivery:
    entry: DeliveryLogModel
    link: str


class DocumentPipeline:
    def __init__(
        self,
        tenants: TenantService,
        documents: DocumentService,
        identity: IdentityResolver,
        delivery: DeliveryResolver,
        dispatcher: Dispatcher,
        layout: LayoutRenderer,
    ):
        self.tenants = tenants
        self.documents = documents
        self.identity = identity
        self.delivery = delivery
        self.dispatcher = dispatcher
        self.layout = layout

    async def render_with(
        self, client: DocumentApiClient, tenant: TenantRecord, request: DocumentRequest
    ) -> RenderResult:
        """Template clone when the tenant has a template for the type, else direct layout."""
        if tenant.template_for(request.document_type.value):
            return await TemplateCloneRenderer(client).render(tenant, request)
        return self.layout.render(tenant, request)

    async def render_bytes(
        self, client: DocumentApiClient, tenant: TenantRecord, request: DocumentRequest
    ) -> bytes:
        result = await self.render_with(client, tenant, request)
        if isinstance(result, LinkResult):
            return await client.download(result.url)
        return result.data

    async def render(
        self,
        session: AsyncSession,
        tenant_slug: str,
        document_id: Optional[str] = None,
        number: Optional[str] = None,
    ) -> tuple[DocumentRequest, RenderResult]:
        tenant = await self.tenants.resolve(session, tenant_slug)
        request = await self.documents.load_request(session, tenant, document_id=document_id, number=number)
        client = await self.identity.resolve_client(tenant)
        return request, await self.render_with(client, tenant, request)

    async def get_link(self, session: AsyncSession, tenant_slug: str, number: str) -> str:
        """Signed link for a document; the identity is only resolved when a render is needed."""
        tenant = await self.tenants.resolve(session, tenant_slug)
        request = await self.documents.load_request(session, tenant, number=number)

        async def regenerate() -> bytes:
            client = await self.identity.resolve_client(tenant)
            return await self.render_bytes(client, tenant, request)

        return await self.delivery.get_link(tenant, request.number, regenerate)

    async def send(
        self,
        session: AsyncSession,
        tenant_slug: str,
        document_id: Optional[str] = None,
        number: Optional[str] = None,
        to_email: Optional[str] = None,
    ) -> Delivery:
        tenant = await self.tenants.resolve(session, tenant_slug)
        request = await self.documents.load_request(session, tenant, document_id=document_id, number=number)
        recipient = (to_email or request.client.email or "").strip()
        if not recipient:
            raise RecipientRequiredError()

        client = await self.identity.resolve_client(tenant)

        async def regenerate() -> bytes:
            return await self.render_bytes(client, tenant, request)

        link = await self.delivery.get_link(tenant, request.number, regenerate)
        entry = await self.dispatcher.send(session, tenant, request, recipient, link)
        return Delivery(entry=entry, link=link)
