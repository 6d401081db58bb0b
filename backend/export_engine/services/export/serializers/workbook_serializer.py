"""
Workbook Serializer

XLSX via openpyxl: one sheet per document, plus a leading "Summary" sheet
when metadata is included. Header rows are bold, filled with the theme
color and frozen; column widths follow the content.
"""

from typing import Any, List, Optional
import io
import logging

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from export_engine.exceptions.export_exceptions import SerializationFault
from export_engine.schema.export_config import ExportConfiguration, ExportFormat
from ..documents import CanonicalDocument, ExportMetadata
from ..themes import ThemePalette, hex_to_argb, resolve_palette
from .base import BaseSerializer, RenderContext

logger = logging.getLogger(__name__)


class WorkbookSerializer(BaseSerializer):
    FORMAT = ExportFormat.WORKBOOK
    EXTENSION = "xlsx"
    MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    MAX_SHEET_ROWS = 1048576
    SUMMARY_SHEET = "Summary"

    MIN_COLUMN_WIDTH = 10
    MAX_COLUMN_WIDTH = 60
    WIDTH_SAMPLE_ROWS = 200

    def render(
        self,
        documents: List[CanonicalDocument],
        configuration: ExportConfiguration,
        context: RenderContext,
    ) -> bytes:
        for document in documents:
            needed = document.row_count + (1 if document.header_row else 0)
            if needed > self.MAX_SHEET_ROWS:
                raise SerializationFault(
                    f"Sheet '{document.sheet_name}' needs {needed:,} rows but a workbook sheet holds "
                    f"{self.MAX_SHEET_ROWS:,}. Turn on split_large_files to spread it over several sheets."
                )

        palette = resolve_palette(configuration.styling)
        workbook = Workbook()
        workbook.remove(workbook.active)

        if configuration.include_metadata:
            self._write_summary(workbook, documents, context.metadata)

        for document in documents:
            sheet = workbook.create_sheet(title=document.sheet_name)
            self._write_document(sheet, document, palette, configuration)

        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    # =========================================================================
    # SHEETS
    # =========================================================================

    def _write_document(
        self,
        sheet: Worksheet,
        document: CanonicalDocument,
        palette: ThemePalette,
        configuration: ExportConfiguration,
    ) -> None:
        if document.header_row:
            sheet.append([self._cell(h) for h in document.header_row])
            header_font = Font(
                name=configuration.styling.fonts.family,
                size=configuration.styling.fonts.size,
                bold=True,
                color=hex_to_argb(palette.header_text),
            )
            header_fill = PatternFill(fill_type="solid", fgColor=hex_to_argb(palette.header_fill))
            for cell in sheet[1]:
                cell.font = header_font
                cell.fill = header_fill
                cell.alignment = Alignment(horizontal="center", vertical="center")
            sheet.freeze_panes = "A2"

        for row in document.rows:
            sheet.append([self._cell(value) for value in row])

        self._autosize(sheet, document)

    def _write_summary(
        self,
        workbook: Workbook,
        documents: List[CanonicalDocument],
        metadata: Optional[ExportMetadata],
    ) -> None:
        sheet = workbook.create_sheet(title=self.SUMMARY_SHEET)
        sheet.append(["Export Summary"])
        sheet["A1"].font = Font(bold=True, size=14)

        if metadata is not None:
            sheet.append(["Generated", metadata.generated_label])
            sheet.append(["Location", metadata.source_location])
            sheet.append(["View", metadata.view_name])
        sheet.append(["Sheets", len(documents)])
        sheet.append([])

        sheet.append(["Sheet", "Contents"])
        for cell in sheet[sheet.max_row]:
            cell.font = Font(bold=True)
        for document in documents:
            sheet.append([
                document.sheet_name,
                f"{document.row_count} rows x {document.column_count} columns",
            ])

        units = [(d.sheet_name, header, unit) for d in documents for header, unit in d.units.items()]
        if units:
            sheet.append([])
            sheet.append(["Sheet", "Column", "Unit"])
            for cell in sheet[sheet.max_row]:
                cell.font = Font(bold=True)
            for row in units:
                sheet.append(list(row))

        sheet.column_dimensions["A"].width = 32
        sheet.column_dimensions["B"].width = 40
        sheet.column_dimensions["C"].width = 20

    def _autosize(self, sheet: Worksheet, document: CanonicalDocument) -> None:
        sample = document.rows[:self.WIDTH_SAMPLE_ROWS]
        if document.header_row:
            sample = [document.header_row] + sample

        widths = {}
        for row in sample:
            for index, value in enumerate(row):
                length = len(str(value)) if value is not None else 0
                widths[index] = max(widths.get(index, 0), length)

        for index, length in widths.items():
            width = min(self.MAX_COLUMN_WIDTH, max(self.MIN_COLUMN_WIDTH, length + 2))
            sheet.column_dimensions[get_column_letter(index + 1)].width = width

    def _cell(self, value: Any) -> Any:
        if isinstance(value, str):
            return ILLEGAL_CHARACTERS_RE.sub("", value)
        return value
