"""
Request and response models for the export API.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

from export_engine.core.config import settings
from .export_config import ExportConfiguration, ExportSelection


class NotificationResponse(BaseModel):
    title: str
    message: str
    variant: str = "default"


class ScanRequest(BaseModel):

    html: str
    view_name: str = Field(default_factory=lambda: settings.DEFAULT_VIEW_NAME)
    locale: Optional[Literal["en", "eu", "plain"]] = None
    check_visibility: bool = True


class ScanResponse(BaseModel):

    view_name: str
    scanned_at: str
    tables: List[Dict[str, Any]]
    metrics: List[Dict[str, Any]]
    charts: List[Dict[str, Any]]
    rankings: List[Dict[str, Any]]
    faults: List[str] = []
    notification: Optional[NotificationResponse] = None


class DownloadRequest(ScanRequest):

    selection: ExportSelection
    configuration: ExportConfiguration = Field(default_factory=ExportConfiguration)

    # base64 PNG per chart id, used when configuration.include_images is set
    chart_images: Dict[str, str] = Field(default_factory=dict)


class EstimateResponse(BaseModel):

    rows: int
    columns: int
    sizes: Dict[str, str]
    seconds: float
