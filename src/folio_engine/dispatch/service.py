"""Document notification emails and the delivery log."""

import logging
import pathlib

from jinja2 import Environment, FileSystemLoader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from folio_engine.common.exceptions import DispatchError
from folio_engine.dispatch.email import EmailSender
from folio_engine.dispatch.models import DeliveryLogModel
from folio_engine.documents.schemas import DocumentRequest, DocumentType
from folio_engine.rendering.formatting import css_color, format_money
from folio_engine.tenants.record import TenantRecord

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = pathlib.Path(__file__).parent.parent / "templates"

email_templates = Environment(loader=FileSystemLoader(str(_TEMPLATES_DIR)), autoescape=True)


def compose_subject(tenant: TenantRecord, request: DocumentRequest) -> str:
    return f"{request.document_type.label} {request.number} — {tenant.display_name}"


def compose_body(tenant: TenantRecord, request: DocumentRequest, link: str) -> str:
    """Branded HTML body from `document_email.html`; the template autoescapes every value."""
    if request.document_type is DocumentType.QUOTE:
        second_date = ("Valid until", request.valid_until)
    else:
        second_date = ("Due date", request.due_date)
    dates = [(name, value) for name, value in (("Issue date", request.issue_date), second_date) if value]

    return email_templates.get_template("document_email.html").render(
        logo_url=tenant.logo_url,
        brand=css_color(tenant.brand_color),
        heading=compose_subject(tenant, request),
        client_name=request.client.name,
        label=request.document_type.label,
        number=request.number,
        dates=dates,
        total=format_money(request.total, request.currency),
        link=link,
    )


class Dispatcher:
    """Sends a document link and records the attempt."""

    def __init__(self, sender: EmailSender):
        self.sender = sender

    async def send(
        self,
        session: AsyncSession,
        tenant: TenantRecord,
        request: DocumentRequest,
        recipient: str,
        link: str,
    ) -> DeliveryLogModel:
        """Send and log exactly one entry, whatever the outcome.

        A failed send is committed to the log before DispatchError is raised,
        so the entry survives the caller's rollback.
        """
        subject = compose_subject(tenant, request)
        result = await self.sender.send(
            recipient,
            subject,
            compose_body(tenant, request, link),
            from_email=tenant.email_from or None,
            from_name=tenant.business_name or None,
            reply_to=tenant.business_email or None,
        )

        entry = DeliveryLogModel(
            tenant_id=tenant.id,
            document_id=request.id,
            document_number=request.number,
            kind=request.document_type.value,
            to_email=recipient,
            subject=subject,
            status="sent" if result.ok else "error",
            provider=result.provider,
            provider_id=result.provider_id,
            error=None if result.ok else (result.error or "send failed"),
            link=link,
        )
        session.add(entry)
        await session.flush()

        log_extra = {
            "tenant": tenant.slug,
            "document": request.number,
            "provider": result.provider,
            "status": entry.status,
        }
        if not result.ok:
            await session.commit()
            logger.warning("Delivery failed", extra=log_extra)
            raise DispatchError(entry.error)
        logger.info("Delivery sent", extra=log_extra)
        return entry

    async def list_entries(
        self, session: AsyncSession, tenant: TenantRecord, limit: int = 100
    ) -> list[DeliveryLogModel]:
        result = await session.execute(
            select(DeliveryLogModel)
            .where(DeliveryLogModel.tenant_id == tenant.id)
            .order_by(DeliveryLogModel.created_at.desc(), DeliveryLogModel.id)
            .limit(limit)
        )
        return list(result.scalars().all())
