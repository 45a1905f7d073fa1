"""Direct PDF rendering of invoices, quotes and receipts."""

import logging

from folio_engine.common.exceptions import RenderError
from folio_engine.documents.schemas import DocumentRequest, DocumentType
from folio_engine.rendering.formatting import (
    format_money,
    format_quantity,
    format_rate,
    parse_hex_color,
)
from folio_engine.rendering.layout import (
    BLACK,
    BOLD,
    FONT,
    HEADER_FILL,
    MUTED,
    RULE_GREY,
    Column,
    PageLayout,
    truncate,
    wrap_text,
)
from folio_engine.rendering.results import InlineBytesResult
from folio_engine.tenants.record import TenantRecord

logger = logging.getLogger(__name__)

COLUMN_WIDTH = 200
FOOTER_TOP = 60
ROW_HEIGHT = 25

# (title, x offset from the left margin, width, alignment)
TABLE_COLUMNS = (
    ("Description", 0, 190, "left"),
    ("Unit", 195, 45, "left"),
    ("Qty", 245, 40, "right"),
    ("Unit Price", 290, 75, "right"),
    ("Tax %", 370, 45, "right"),
    ("Total", 420, 75, "right"),
)


def _details(request: DocumentRequest) -> list[tuple[str, str]]:
    if request.document_type is DocumentType.QUOTE:
        rows = [("Quote Date:", request.issue_date), ("Valid Until:", request.valid_until)]
    elif request.document_type is DocumentType.RECEIPT:
        rows = [("Receipt Date:", request.issue_date), ("Status:", request.status or "Paid")]
    else:
        rows = [("Issue Date:", request.issue_date), ("Due Date:", request.due_date)]
    rows.append(("Currency:", request.currency))
    return rows


def footer_text(document_type: DocumentType) -> str:
    return (
        "Thank you for your business! For questions about this "
        f"{document_type.value}, please contact us."
    )


def reference_text(request: DocumentRequest) -> str:
    return f"{request.document_type.label} Reference: #{request.number}"


class LayoutRenderer:
    """Lays a document out onto A4 pages with reportlab.

    Pages run header, line-item table, totals, notes; every page carries the
    footer. Long tables continue on new pages under a repeated header row.
    """

    def __init__(self, compress: bool = True):
        self.compress = compress

    def render(self, tenant: TenantRecord, request: DocumentRequest) -> InlineBytesResult:
        try:
            data = self._render(tenant, request)
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(f"Layout failed for {request.number}: {exc}") from exc
        logger.info(
            "Rendered document layout",
            extra={"tenant": tenant.slug, "document": request.number, "bytes": len(data)},
        )
        return InlineBytesResult(data=data, filename=request.suggested_filename)

    def _render(self, tenant: TenantRecord, request: DocumentRequest) -> bytes:
        brand = parse_hex_color(tenant.brand_color)

        def draw_footer(layout: PageLayout) -> None:
            y = layout.margin + FOOTER_TOP
            layout.draw_line(layout.margin, y, layout.right, y)
            y -= 20
            for line in wrap_text(footer_text(request.document_type), FONT, 10, layout.content_width):
                y = layout.draw_centered(line, y, size=10)
            y -= 10
            layout.draw_centered(reference_text(request), y, size=8, color=MUTED)

        layout = PageLayout(compress=self.compress, on_page_end=draw_footer)
        layout.bottom_limit = layout.margin + FOOTER_TOP + 15
        layout.canvas.setTitle(f"{request.document_type.label} {request.number}")
        layout.canvas.setAuthor(tenant.display_name)

        self._header(layout, tenant, request, brand)
        self._items(layout, request)
        self._totals(layout, request, brand)
        self._notes(layout, request)
        return layout.finish()

    def _header(self, layout: PageLayout, tenant: TenantRecord, request: DocumentRequest, brand) -> None:
        y = layout.draw_text(request.document_type.value.upper(), layout.margin, layout.y, font=BOLD, size=24, color=brand)
        y -= 10

        left_x = layout.margin
        right_x = layout.right - COLUMN_WIDTH
        left_width = right_x - left_x - 20

        sender = [tenant.business_address]
        sender += [
            f"{label}: {value}"
            for label, value in (
                ("Email", tenant.business_email),
                ("Phone", tenant.business_phone),
                ("Tax ID", tenant.tax_id),
            )
            if value
        ]
        left_y = _column(
            layout, left_x, y, left_width, layout.bottom_limit,
            "From:", tenant.display_name, brand, sender,
        )

        client = request.client
        recipient = [f"{label}: {value}" for label, value in (("Email", client.email), ("Phone", client.phone)) if value]
        recipient.append(client.address)
        details = _details(request)
        box_height = 14 * len(details) + 16
        # The details box goes under the recipient column and must stay above the footer too.
        right_y = _column(
            layout, right_x, y, COLUMN_WIDTH - 10, layout.bottom_limit + 20 + box_height,
            "To:", client.name, BLACK, recipient,
        )

        right_y -= 20
        layout.fill_rect(right_x - 10, right_y - box_height + 14, COLUMN_WIDTH, box_height, HEADER_FILL)
        for label, value in details:
            layout.draw_text(label, right_x, right_y, font=BOLD, size=10)
            right_y = layout.draw_text(value, right_x + 90, right_y, size=10)

        layout.y = min(left_y, right_y) - 40

    def _items(self, layout: PageLayout, request: DocumentRequest) -> None:
        layout.ensure_space(20 + 2 * ROW_HEIGHT)
        layout.y = layout.draw_text("Items & Services", layout.margin, layout.y, font=BOLD, size=14)
        layout.y -= 6

        columns = [
            Column(title, layout.margin + offset, width, align)
            for title, offset, width, align in TABLE_COLUMNS
        ]
        rows = [
            [
                item.description,
                item.unit,
                format_quantity(item.qty),
                format_money(item.unit_price),
                format_rate(item.tax_rate),
                format_money(item.line_total),
            ]
            for item in request.items
        ]
        layout.draw_table(columns, rows, row_height=ROW_HEIGHT)
        layout.y -= 30

    def _totals(self, layout: PageLayout, request: DocumentRequest, brand) -> None:
        layout.ensure_space(70)
        totals_x = layout.right - COLUMN_WIDTH
        currency = request.currency

        y = layout.y
        for label, value in (("Subtotal:", request.subtotal), ("Tax:", request.tax_total)):
            layout.draw_text(label, totals_x, y, size=12)
            y = layout.draw_right(format_money(value, currency), layout.right, y, size=12)

        layout.draw_line(totals_x, y + 6, layout.right, y + 6, color=RULE_GREY, thickness=1)
        y -= 10
        layout.draw_text("Total:", totals_x, y, font=BOLD, size=14, color=brand)
        y = layout.draw_right(format_money(request.total, currency), layout.right, y, font=BOLD, size=14, color=brand)
        layout.y = y

    def _notes(self, layout: PageLayout, request: DocumentRequest) -> None:
        if not request.notes.strip():
            return
        layout.y -= 30
        layout.ensure_space(30)
        layout.y = layout.draw_text("Notes:", layout.margin, layout.y, font=BOLD, size=12)
        for paragraph in _lines(request.notes):
            for line in wrap_text(paragraph, FONT, 10, layout.content_width):
                layout.ensure_space(14)
                layout.y = layout.draw_text(line, layout.margin, layout.y, size=10)


def _lines(text: str) -> list[str]:
    return [line.strip() for line in str(text or "").splitlines() if line.strip()]


def _column(
    layout: PageLayout,
    x: float,
    y: float,
    width: float,
    floor: float,
    title: str,
    name: str,
    name_color,
    paragraphs: list[str],
) -> float:
    """One header column: title, wrapped name, then the paragraphs' lines.

    Lines whose baseline would fall below `floor` are dropped and the last
    line drawn ends in an ellipsis.
    """
    y = layout.draw_text(title, x, y, font=BOLD, size=10)
    lines = [(line, BOLD, 14, name_color) for line in wrap_text(name, BOLD, 14, width)]
    for paragraph in paragraphs:
        for text in _lines(paragraph):
            lines += [(line, FONT, 10, BLACK) for line in wrap_text(text, FONT, 10, width)]

    kept = []
    baseline = y
    for line in lines:
        if baseline < floor:
            break
        kept.append(line)
        baseline -= line[2] + 4
    if kept and len(kept) < len(lines):
        text, font, size, color = kept[-1]
        kept[-1] = (truncate(text, font, size, width, force=True), font, size, color)

    for text, font, size, color in kept:
        y = layout.draw_text(text, x, y, font=font, size=size, color=color)
    return y
