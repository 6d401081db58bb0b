"""
Schemas Package

Pydantic models for export configuration and the export API.
"""

from .export_config import (
    ExportFormat,
    ThemeName,
    ColorOverrides,
    FontOptions,
    Styling,
    Watermark,
    ExportConfiguration,
    ExportSelection,
)
from .requests import (
    NotificationResponse,
    ScanRequest,
    ScanResponse,
    DownloadRequest,
    EstimateResponse,
)

__all__ = [
    "ExportFormat",
    "ThemeName",
    "ColorOverrides",
    "FontOptions",
    "Styling",
    "Watermark",
    "ExportConfiguration",
    "ExportSelection",
    "NotificationResponse",
    "ScanRequest",
    "ScanResponse",
    "DownloadRequest",
    "EstimateResponse",
]
