"""Cursor-based page layout on top of a reportlab canvas.

Coordinates are PDF user units with the origin at the bottom-left corner.
The cursor ``y`` starts at ``height - margin`` and moves down as content is
drawn; every draw call returns the next baseline so calls chain top to
bottom::

    y = layout.draw_text("INVOICE", layout.margin, y, font=BOLD, size=24)
    y = layout.draw_text("From:", layout.margin, y, size=10)

Widths come from the font's glyph metrics at the requested size, so
proportional text wraps and aligns correctly.
"""

import io
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from reportlab.lib.colors import Color
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

A4 = (595, 842)
MARGIN = 50
FONT = "Helvetica"
BOLD = "Helvetica-Bold"

BLACK = Color(0, 0, 0)
RULE_GREY = Color(0.8, 0.8, 0.8)
HEADER_FILL = Color(0.95, 0.95, 0.95)
ZEBRA_FILL = Color(0.98, 0.98, 0.98)
MUTED = Color(0.6, 0.6, 0.6)

CELL_PADDING = 5


def measure(text: str, font: str = FONT, size: float = 12) -> float:
    return stringWidth(text, font, size)


def wrap_text(text: str, font: str, size: float, max_width: float) -> list[str]:
    """Greedy word wrap by measured width.

    Words are packed onto a line while the line still fits `max_width`; a
    single word wider than `max_width` gets a line to itself.
    """
    lines: list[str] = []
    line = ""
    for word in str(text or "").split():
        candidate = f"{line} {word}" if line else word
        if measure(candidate, font, size) <= max_width:
            line = candidate
            continue
        if line:
            lines.append(line)
        line = word
    if line:
        lines.append(line)
    return lines


def truncate(
    text: str,
    font: str,
    size: float,
    max_width: float,
    ellipsis: str = "...",
    force: bool = False,
) -> str:
    """Shorten `text` with a trailing ellipsis until it fits `max_width`.

    With `force` the ellipsis is added even when `text` already fits, to mark
    that more content followed.
    """
    text = str(text or "")
    if not force and measure(text, font, size) <= max_width:
        return text
    while text and measure(text + ellipsis, font, size) > max_width:
        text = text[:-1]
    return text.rstrip() + ellipsis if text or force else ""


@dataclass(frozen=True)
class Column:
    title: str
    x: float
    width: float
    align: str = "left"


class PageLayout:
    """One PDF document being laid out page by page."""

    def __init__(
        self,
        pagesize: tuple[float, float] = A4,
        margin: float = MARGIN,
        compress: bool = True,
        on_page_end: Optional[Callable[["PageLayout"], None]] = None,
    ):
        self.width, self.height = pagesize
        self.margin = margin
        self.bottom_limit = margin
        self.page_number = 1
        self.on_page_end = on_page_end
        self._buffer = io.BytesIO()
        # invariant=1 drops timestamps and random ids so equal input gives equal bytes.
        self.canvas = canvas.Canvas(
            self._buffer,
            pagesize=pagesize,
            pageCompression=1 if compress else 0,
            invariant=1,
        )
        self.y = self.top

    @property
    def top(self) -> float:
        return self.height - self.margin

    @property
    def right(self) -> float:
        return self.width - self.margin

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    # ── Primitives ──

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        font: str = FONT,
        size: float = 12,
        color: Color = BLACK,
        line_height: Optional[float] = None,
    ) -> float:
        self.canvas.setFont(font, size)
        self.canvas.setFillColor(color)
        self.canvas.drawString(x, y, str(text or ""))
        return y - (line_height if line_height is not None else size + 4)

    def draw_right(
        self,
        text: str,
        right_x: float,
        y: float,
        font: str = FONT,
        size: float = 12,
        color: Color = BLACK,
        line_height: Optional[float] = None,
    ) -> float:
        text = str(text or "")
        x = right_x - measure(text, font, size)
        return self.draw_text(text, x, y, font=font, size=size, color=color, line_height=line_height)

    def draw_centered(
        self,
        text: str,
        y: float,
        font: str = FONT,
        size: float = 12,
        color: Color = BLACK,
        line_height: Optional[float] = None,
    ) -> float:
        text = str(text or "")
        x = self.margin + (self.content_width - measure(text, font, size)) / 2
        return self.draw_text(text, x, y, font=font, size=size, color=color, line_height=line_height)

    def draw_wrapped(
        self,
        text: str,
        x: float,
        y: float,
        max_width: float,
        font: str = FONT,
        size: float = 10,
        color: Color = BLACK,
    ) -> float:
        for line in wrap_text(text, font, size, max_width):
            y = self.draw_text(line, x, y, font=font, size=size, color=color)
        return y

    def draw_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        color: Color = RULE_GREY,
        thickness: float = 1,
    ) -> None:
        self.canvas.setStrokeColor(color)
        self.canvas.setLineWidth(thickness)
        self.canvas.line(x1, y1, x2, y2)

    def fill_rect(self, x: float, y: float, width: float, height: float, color: Color) -> None:
        self.canvas.setFillColor(color)
        self.canvas.rect(x, y, width, height, stroke=0, fill=1)

    # ── Pages ──

    def ensure_space(self, height: float) -> bool:
        """Start a new page when `height` would cross `bottom_limit`. Returns True if it did."""
        if self.y - height >= self.bottom_limit:
            return False
        self.new_page()
        return True

    def new_page(self) -> None:
        if self.on_page_end is not None:
            self.on_page_end(self)
        self.canvas.showPage()
        self.page_number += 1
        self.y = self.top

    def finish(self) -> bytes:
        if self.on_page_end is not None:
            self.on_page_end(self)
        self.canvas.showPage()
        self.canvas.save()
        return self._buffer.getvalue()

    # ── Tables ──

    def draw_table(
        self,
        columns: Sequence[Column],
        rows: Sequence[Sequence[str]],
        row_height: float = 25,
        size: float = 10,
    ) -> None:
        """Header row plus zebra-striped body, in row order, starting at the cursor.

        Rows that would cross `bottom_limit` continue on a new page under a
        repeated header row.
        """
        self._table_header(columns, row_height, size)
        for index, cells in enumerate(rows):
            if self.y - row_height < self.bottom_limit:
                self.new_page()
                self._table_header(columns, row_height, size)
            row_top = self.y
            if index % 2 == 1:
                self.fill_rect(self.margin, row_top - row_height, self.content_width, row_height, ZEBRA_FILL)
            baseline = row_top - row_height + (row_height - size) / 2 + 2
            for column, cell in zip(columns, cells):
                text = truncate(cell, FONT, size, column.width - 2 * CELL_PADDING)
                if column.align == "right":
                    self.draw_right(text, column.x + column.width - CELL_PADDING, baseline, size=size)
                else:
                    self.draw_text(text, column.x + CELL_PADDING, baseline, size=size)
            self.draw_line(self.margin, row_top - row_height, self.right, row_top - row_height)
            self.y = row_top - row_height

    def _table_header(self, columns: Sequence[Column], row_height: float, size: float) -> None:
        top = self.y
        self.fill_rect(self.margin, top - row_height, self.content_width, row_height, HEADER_FILL)
        baseline = top - row_height + (row_height - size) / 2 + 2
        for column in columns:
            if column.align == "right":
                self.draw_right(column.title, column.x + column.width - CELL_PADDING, baseline, font=BOLD, size=size)
            else:
                self.draw_text(column.title, column.x + CELL_PADDING, baseline, font=BOLD, size=size)
        self.draw_line(self.margin, top, self.right, top)
        self.draw_line(self.margin, top - row_height, self.right, top - row_height)
        self.y = top - row_height
