"""
Export

Turns selected detection records into files:

- DocumentBuilder: records -> CanonicalDocuments
- Serializers: CSV, JSON, XLSX workbook, PDF, markdown clipboard, ZIP archive
- Delivery: download directory, memory, clipboard sink
- ExportOrchestrator: validate -> build -> serialize -> deliver
"""

from .documents import CanonicalDocument, DocumentBuilder, ExportMetadata, ManifestEntry, ResolvedSelection
from .filenames import FilenameAllocator, export_base_name, slugify
from .themes import ThemePalette, THEMES, resolve_palette
from .estimates import ExportEstimate, estimate, estimate_export_time, format_bytes
from .serializers import SerializedFile, RenderContext, get_serializer
from .delivery import (
    Delivery,
    DeliveryReceipt,
    FileDownloadDelivery,
    MemoryDelivery,
    ClipboardDelivery,
    ScheduledDeliveryStub,
)
from .orchestrator import ExportOrchestrator, ExportJob, ExportCheckpoint, JobState, ChartImageProvider

__all__ = [
    "CanonicalDocument",
    "DocumentBuilder",
    "ExportMetadata",
    "ManifestEntry",
    "ResolvedSelection",
    "FilenameAllocator",
    "export_base_name",
    "slugify",
    "ThemePalette",
    "THEMES",
    "resolve_palette",
    "ExportEstimate",
    "estimate",
    "estimate_export_time",
    "format_bytes",
    "SerializedFile",
    "RenderContext",
    "get_serializer",
    "Delivery",
    "DeliveryReceipt",
    "FileDownloadDelivery",
    "MemoryDelivery",
    "ClipboardDelivery",
    "ScheduledDeliveryStub",
    "ExportOrchestrator",
    "ExportJob",
    "ExportCheckpoint",
    "JobState",
    "ChartImageProvider",
]
