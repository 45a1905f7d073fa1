"""Tenant-scoped document lookup, creation, and numbering."""

import re
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from folio_engine.common.exceptions import DocumentNotFoundError
from folio_engine.documents.models import ClientModel, DocumentItemModel, DocumentModel
from folio_engine.documents.schemas import (
    NUMBER_PREFIXES,
    ClientInfo,
    DocumentCreate,
    DocumentRequest,
    DocumentType,
    LineItem,
)
from folio_engine.tenants.record import TenantRecord

_SEQUENCE = re.compile(r"-(\d+)$")


def to_request(doc: DocumentModel, tenant: TenantRecord) -> DocumentRequest:
    """Build the render payload for a stored document."""
    client = doc.client
    return DocumentRequest(
        document_type=DocumentType(doc.document_type),
        number=doc.number,
        id=doc.id,
        status=doc.status or "",
        issue_date=doc.issue_date or "",
        due_date=doc.due_date or "",
        valid_until=doc.valid_until or "",
        currency=doc.currency or tenant.currency or "EUR",
        subtotal=doc.subtotal,
        tax_total=doc.tax_total,
        total=doc.total,
        notes=doc.notes or "",
        client=ClientInfo(
            name=client.name or "",
            email=client.email or "",
            phone=client.phone or "",
            address=client.address or "",
        ) if client is not None else ClientInfo(),
        items=[
            LineItem(
                description=item.description or "",
                unit=item.unit or "each",
                qty=item.qty,
                unit_price=item.unit_price,
                tax_rate=item.tax_rate,
                line_total=item.line_total,
            )
            for item in doc.items
        ],
    )


class DocumentService:
    """Reads and writes the documents the pipeline renders."""

    async def get_document(
        self,
        session: AsyncSession,
        tenant: TenantRecord,
        document_id: str | None = None,
        number: str | None = None,
    ) -> DocumentModel:
        """Find a document by id, then by number, always within the tenant."""
        doc = None
        if document_id:
            result = await session.execute(
                select(DocumentModel).where(
                    DocumentModel.tenant_id == tenant.id,
                    DocumentModel.id == document_id,
                ).execution_options(populate_existing=True)
            )
            doc = result.scalar_one_or_none()
        if doc is None and number:
            result = await session.execute(
                select(DocumentModel).where(
                    DocumentModel.tenant_id == tenant.id,
                    DocumentModel.number == number,
                ).execution_options(populate_existing=True)
            )
            doc = result.scalar_one_or_none()
        if doc is None:
            ref = document_id or number or "?"
            raise DocumentNotFoundError(f"Document '{ref}' not found for tenant '{tenant.slug}'")
        return doc

    async def load_request(
        self,
        session: AsyncSession,
        tenant: TenantRecord,
        document_id: str | None = None,
        number: str | None = None,
    ) -> DocumentRequest:
        doc = await self.get_document(session, tenant, document_id=document_id, number=number)
        return to_request(doc, tenant)

    async def next_number(
        self,
        session: AsyncSession,
        tenant: TenantRecord,
        document_type: DocumentType,
        year: int | None = None,
    ) -> str:
        """Next `<PREFIX>-<year>-<NNN>` number for the tenant."""
        year = year or datetime.now(timezone.utc).year
        prefix = f"{NUMBER_PREFIXES[document_type]}-{year}-"
        result = await session.execute(
            select(DocumentModel.number).where(
                DocumentModel.tenant_id == tenant.id,
                DocumentModel.number.like(f"{prefix}%"),
            )
        )
        highest = 0
        for existing in result.scalars().all():
            match = _SEQUENCE.search(existing)
            if match:
                highest = max(highest, int(match.group(1)))
        return f"{prefix}{highest + 1:03d}"

    async def create_document(
        self,
        session: AsyncSession,
        tenant: TenantRecord,
        body: DocumentCreate,
    ) -> DocumentModel:
        client_id = None
        if body.client is not None:
            client = ClientModel(tenant_id=tenant.id, **body.client.model_dump())
            session.add(client)
            await session.flush()
            client_id = client.id

        number = body.number or await self.next_number(session, tenant, body.document_type)
        doc = DocumentModel(
            tenant_id=tenant.id,
            client_id=client_id,
            document_type=body.document_type.value,
            number=number,
            status=body.status,
            issue_date=body.issue_date,
            due_date=body.due_date,
            valid_until=body.valid_until,
            currency=body.currency or tenant.currency or "EUR",
            subtotal=body.subtotal,
            tax_total=body.tax_total,
            total=body.total,
            notes=body.notes,
            items=[
                DocumentItemModel(position=index, **item.model_dump())
                for index, item in enumerate(body.items, start=1)
            ],
        )
        session.add(doc)
        await session.flush()
        return doc
