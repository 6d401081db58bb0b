"""
Format Serializers

One serializer per export format, all sharing the BaseSerializer contract.
"""

from typing import Dict, Type

from export_engine.schema.export_config import ExportFormat
from .base import BaseSerializer, RenderContext, SerializedFile
from .archive import ArchiveBundler
from .csv_serializer import CsvSerializer
from .json_serializer import JsonSerializer
from .workbook_serializer import WorkbookSerializer
from .pdf_serializer import PdfSerializer
from .markdown_serializer import MarkdownSerializer
from .archive_serializer import ArchiveSerializer

SERIALIZERS: Dict[ExportFormat, Type[BaseSerializer]] = {
    ExportFormat.CSV: CsvSerializer,
    ExportFormat.JSON: JsonSerializer,
    ExportFormat.WORKBOOK: WorkbookSerializer,
    ExportFormat.PDF: PdfSerializer,
    ExportFormat.CLIPBOARD: MarkdownSerializer,
    ExportFormat.ARCHIVE: ArchiveSerializer,
}


def get_serializer(export_format: ExportFormat) -> BaseSerializer:
    return SERIALIZERS[ExportFormat(export_format)]()


__all__ = [
    "BaseSerializer",
    "RenderContext",
    "SerializedFile",
    "ArchiveBundler",
    "CsvSerializer",
    "JsonSerializer",
    "WorkbookSerializer",
    "PdfSerializer",
    "MarkdownSerializer",
    "ArchiveSerializer",
    "SERIALIZERS",
    "get_serializer",
]
