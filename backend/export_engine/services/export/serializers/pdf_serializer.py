"""
PDF Serializer

Renders documents with the reportlab canvas:

- Title section ("Data Export Report") with metadata lines
- Per document: a heading, optional preamble lines and a paginated table
- At most ``rows_per_page`` table rows per page; a new page whenever the
  remaining vertical space cannot hold the next row
- Header row repeated on every page in the theme colors
- Optional diagonal watermark and chart images
"""

from typing import Any, List, Optional
import io
import logging

from reportlab.lib.colors import HexColor, Color
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from export_engine.core.config import settings
from export_engine.schema.export_config import ExportConfiguration, ExportFormat
from ..documents import CanonicalDocument, ExportMetadata
from ..themes import ThemePalette, resolve_palette
from .base import BaseSerializer, RenderContext, cell_text

logger = logging.getLogger(__name__)


BOLD_FONTS = {
    "Helvetica": "Helvetica-Bold",
    "Times-Roman": "Times-Bold",
    "Courier": "Courier-Bold",
}


class PdfSerializer(BaseSerializer):
    FORMAT = ExportFormat.PDF
    EXTENSION = "pdf"
    MEDIA_TYPE = "application/pdf"

    PAGE_SIZE = landscape(A4)
    MARGIN = 36.0
    TITLE = "Data Export Report"

    ROW_HEIGHT = 16.0
    HEADING_GAP = 22.0
    LINE_HEIGHT = 13.0
    CELL_PADDING = 3.0

    def __init__(self, rows_per_page: Optional[int] = None):
        self.rows_per_page = rows_per_page or settings.PDF_ROWS_PER_PAGE

    def render(
        self,
        documents: List[CanonicalDocument],
        configuration: ExportConfiguration,
        context: RenderContext,
    ) -> bytes:
        buffer = io.BytesIO()
        writer = _PageWriter(
            canvas.Canvas(buffer, pagesize=self.PAGE_SIZE),
            self,
            configuration,
            resolve_palette(configuration.styling),
        )

        writer.title(context.metadata if configuration.include_metadata else None, len(documents))
        for document in documents:
            writer.document(document)

        if configuration.include_images and context.images:
            for name, image in context.images.values():
                writer.image(name, image)

        writer.finish()
        return buffer.getvalue()


class _PageWriter:
    """Tracks the cursor across pages for one render."""

    def __init__(
        self,
        pdf: canvas.Canvas,
        serializer: PdfSerializer,
        configuration: ExportConfiguration,
        palette: ThemePalette,
    ):
        self.pdf = pdf
        self.s = serializer
        self.configuration = configuration
        self.palette = palette

        family = configuration.styling.fonts.family
        self.font = family if family in BOLD_FONTS else "Helvetica"
        self.bold = BOLD_FONTS[self.font]
        self.font_size = configuration.styling.fonts.size

        self.width, self.height = serializer.PAGE_SIZE
        self.left = serializer.MARGIN
        self.right = self.width - serializer.MARGIN
        self.top = self.height - serializer.MARGIN
        self.bottom = serializer.MARGIN
        self.y = self.top
        self.page = 1
        self.page_has_content = False

    # =========================================================================
    # PAGES
    # =========================================================================

    def new_page(self) -> None:
        self._decorate_page()
        self.pdf.showPage()
        self.page += 1
        self.y = self.top
        self.page_has_content = False

    def finish(self) -> None:
        self._decorate_page()
        self.pdf.showPage()
        self.pdf.save()

    def ensure_space(self, needed: float) -> None:
        if self.y - needed < self.bottom and self.page_has_content:
            self.new_page()

    def _decorate_page(self) -> None:
        watermark = self.configuration.watermark
        if watermark is not None and watermark.active:
            self.pdf.saveState()
            self.pdf.setFillColor(Color(0.6, 0.6, 0.6, alpha=0.25))
            self.pdf.setFont(self.bold, 60)
            self.pdf.translate(self.width / 2, self.height / 2)
            self.pdf.rotate(45)
            self.pdf.drawCentredString(0, 0, watermark.text)
            self.pdf.restoreState()

        self.pdf.saveState()
        self.pdf.setFont(self.font, 8)
        self.pdf.setFillColor(HexColor("#6B7280"))
        self.pdf.drawRightString(self.right, self.bottom / 2, f"Page {self.page}")
        self.pdf.restoreState()

    # =========================================================================
    # CONTENT
    # =========================================================================

    def title(self, metadata: Optional[ExportMetadata], document_count: int) -> None:
        self.pdf.setFont(self.bold, 20)
        self.pdf.setFillColor(HexColor(self.palette.body_text))
        self.pdf.drawString(self.left, self.y - 20, self.s.TITLE)
        self.y -= 34

        if metadata is not None:
            self.pdf.setFont(self.font, 10)
            for line in (
                f"Generated: {metadata.generated_label}",
                f"Location: {metadata.source_location}",
                f"View: {metadata.view_name}",
                f"Tables: {document_count}",
            ):
                self.pdf.drawString(self.left, self.y, line)
                self.y -= self.s.LINE_HEIGHT
        self.y -= 10
        self.page_has_content = True

    def document(self, document: CanonicalDocument) -> None:
        preamble = document.metadata_preamble or []
        columns = document.column_count

        # heading, preamble and at least one row must share a page
        self.ensure_space(self.s.HEADING_GAP + len(preamble) * self.s.LINE_HEIGHT + 2 * self.s.ROW_HEIGHT)
        self._heading(document.sheet_name)

        self.pdf.setFont(self.font, 8)
        self.pdf.setFillColor(HexColor("#4B5563"))
        for line in preamble:
            text = ": ".join(part for part in line if part)
            self.pdf.drawString(self.left, self.y, self._fit(text, self.right - self.left, self.font, 8))
            self.y -= self.s.LINE_HEIGHT
        if preamble:
            self.y -= 4

        if columns == 0:
            return

        widths = self._column_widths(columns)
        self._header(document.header_row, widths)

        rows_on_page = 0
        for index, row in enumerate(document.rows):
            if rows_on_page >= self.s.rows_per_page or self.y - self.s.ROW_HEIGHT < self.bottom:
                self.new_page()
                self._heading(f"{document.sheet_name} (continued)")
                self._header(document.header_row, widths)
                rows_on_page = 0
            self._row(row, widths, striped=index % 2 == 1)
            rows_on_page += 1

        self.y -= self.s.HEADING_GAP / 2
        self.page_has_content = True

    def image(self, name: str, data: bytes) -> None:
        reader = ImageReader(io.BytesIO(data))
        image_width, image_height = reader.getSize()
        max_width = self.right - self.left
        max_height = (self.top - self.bottom) - self.s.HEADING_GAP
        scale = min(max_width / image_width, max_height / image_height, 1.0)
        draw_width, draw_height = image_width * scale, image_height * scale

        self.ensure_space(self.s.HEADING_GAP + draw_height)
        self._heading(name)
        self.pdf.drawImage(reader, self.left, self.y - draw_height, width=draw_width, height=draw_height)
        self.y -= draw_height + self.s.HEADING_GAP / 2
        self.page_has_content = True

    # =========================================================================
    # TABLE PIECES
    # =========================================================================

    def _heading(self, text: str) -> None:
        self.pdf.setFont(self.bold, 13)
        self.pdf.setFillColor(HexColor(self.palette.body_text))
        self.pdf.drawString(self.left, self.y - 13, self._fit(text, self.right - self.left, self.bold, 13))
        self.y -= self.s.HEADING_GAP
        self.page_has_content = True

    def _header(self, header_row: Optional[List[str]], widths: List[float]) -> None:
        if not header_row:
            return
        height = self.s.ROW_HEIGHT
        self.pdf.setFillColor(HexColor(self.palette.header_fill))
        self.pdf.rect(self.left, self.y - height, sum(widths), height, fill=1, stroke=0)
        self.pdf.setFillColor(HexColor(self.palette.header_text))
        self._cells(header_row, widths, self.bold)
        self.y -= height

    def _row(self, row: List[Any], widths: List[float], striped: bool) -> None:
        height = self.s.ROW_HEIGHT
        if striped:
            self.pdf.setFillColor(HexColor(self.palette.stripe_fill))
            self.pdf.rect(self.left, self.y - height, sum(widths), height, fill=1, stroke=0)
        self.pdf.setStrokeColor(HexColor(self.palette.grid))
        self.pdf.setLineWidth(0.25)
        self.pdf.line(self.left, self.y - height, self.left + sum(widths), self.y - height)
        self.pdf.setFillColor(HexColor(self.palette.body_text))
        self._cells(row, widths, self.font)
        self.y -= height

    def _cells(self, values: List[Any], widths: List[float], font: str) -> None:
        size = self.font_size
        self.pdf.setFont(font, size)
        x = self.left
        baseline = self.y - self.s.ROW_HEIGHT + (self.s.ROW_HEIGHT - size) / 2 + 1
        for index, width in enumerate(widths):
            value = values[index] if index < len(values) else ""
            text = self._fit(cell_text(value), width - 2 * self.s.CELL_PADDING, font, size)
            self.pdf.drawString(x + self.s.CELL_PADDING, baseline, text)
            x += width

    def _column_widths(self, columns: int) -> List[float]:
        available = self.right - self.left
        return [available / columns] * columns

    def _fit(self, text: str, width: float, font: str, size: float) -> str:
        """Truncate text with an ellipsis so it fits the width."""
        if stringWidth(text, font, size) <= width:
            return text
        ellipsis = "..."
        while text and stringWidth(text + ellipsis, font, size) > width:
            text = text[:-1]
        return text + ellipsis if text else ""
