"""Template-clone rendering: copy a remote template, fill placeholders, export."""

import logging
from typing import Optional

from folio_engine.common.exceptions import RenderError, TemplateNotFoundError
from folio_engine.documents.schemas import DocumentRequest
from folio_engine.identity.client import PDF_MIME, DocumentApiClient
from folio_engine.rendering.formatting import format_money, format_quantity
from folio_engine.rendering.results import InlineBytesResult, LinkResult, RenderResult
from folio_engine.tenants.record import TenantRecord

logger = logging.getLogger(__name__)

TOKENS = (
    "BUSINESS_NAME",
    "DOCUMENT_NUMBER",
    "INVOICE_NUMBER",
    "ISSUE_DATE",
    "DUE_DATE",
    "CLIENT_NAME",
    "CLIENT_ADDRESS",
    "CURRENCY",
    "SUBTOTAL",
    "TAX_TOTAL",
    "TOTAL",
    "NOTES",
    "LINES",
)


def format_lines(request: DocumentRequest) -> str:
    """One `description — qty × unit price = line total` row per item."""
    currency = request.currency
    return "\n".join(
        f"{item.description} — {format_quantity(item.qty)} × "
        f"{format_money(item.unit_price, currency)} = {format_money(item.line_total, currency)}"
        for item in request.items
    )


def substitutions(tenant: TenantRecord, request: DocumentRequest) -> dict[str, str]:
    """Value for every token; missing data substitutes as ""."""
    currency = request.currency or tenant.currency
    values: dict[str, Optional[str]] = {
        "BUSINESS_NAME": tenant.business_name,
        "DOCUMENT_NUMBER": request.number,
        "INVOICE_NUMBER": request.number,
        "ISSUE_DATE": request.issue_date,
        "DUE_DATE": request.due_date or request.valid_until,
        "CLIENT_NAME": request.client.name,
        "CLIENT_ADDRESS": request.client.address,
        "CURRENCY": currency,
        "SUBTOTAL": format_money(request.subtotal, currency),
        "TAX_TOTAL": format_money(request.tax_total, currency),
        "TOTAL": format_money(request.total, currency),
        "NOTES": request.notes,
        "LINES": format_lines(request),
    }
    return {token: "" if values[token] is None else str(values[token]) for token in TOKENS}


def replace_requests(values: dict[str, str]) -> list[dict]:
    return [
        {
            "replaceAllText": {
                "containsText": {"text": f"{{{{{token}}}}}", "matchCase": False},
                "replaceText": value,
            }
        }
        for token, value in values.items()
    ]


class TemplateCloneRenderer:
    """Renders through a copy of the tenant's template document.

    Copy the template into the exports folder, replace every placeholder in
    one batch, then hand back either the export link or the exported bytes.
    """

    def __init__(self, client: DocumentApiClient):
        self.client = client

    async def render(self, tenant: TenantRecord, request: DocumentRequest) -> RenderResult:
        template_id = tenant.template_for(request.document_type.value)
        if not template_id:
            raise TemplateNotFoundError(
                f"Tenant '{tenant.slug}' has no {request.document_type.value} template"
            )

        copy = await self.client.copy_file(
            template_id,
            name=f"{request.document_type.label} {request.number}",
            parent_id=tenant.exports_folder_id or None,
        )
        document_id = copy.get("id")
        if not document_id:
            raise RenderError("Template copy returned no document id")
        logger.info(
            "Copied template",
            extra={"tenant": tenant.slug, "document": request.number, "mode": self.client.mode},
        )

        await self.client.batch_update(document_id, replace_requests(substitutions(tenant, request)))

        meta = await self.client.get_file_metadata(document_id)
        document_url = meta.get("webViewLink")
        export_links = meta.get("exportLinks")
        pdf_url = export_links.get(PDF_MIME) if isinstance(export_links, dict) else None
        if pdf_url:
            return LinkResult(
                url=pdf_url,
                filename=request.suggested_filename,
                document_id=document_id,
                document_url=document_url,
            )

        data = await self.client.export_pdf(document_id)
        if not data:
            raise RenderError(f"Export of {request.number} returned no bytes")
        return InlineBytesResult(
            data=data,
            filename=request.suggested_filename,
            document_id=document_id,
            document_url=document_url,
        )
