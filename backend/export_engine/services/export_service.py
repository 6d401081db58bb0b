"""
Export Service

Request-scoped glue between the API routes and an ExportSession. Every
request carries the view's HTML, so each call scans afresh; record ids
are deterministic, so ids returned by /scan stay valid for /download
against the same HTML.
"""

from typing import Dict, Optional, Tuple
import base64
import binascii
import logging

from export_engine.exceptions.export_exceptions import InvalidChartImageError
from export_engine.schema import DownloadRequest, EstimateResponse, ScanRequest, ScanResponse
from export_engine.services.detection import ChartRecord, DetectionConfig, DetectionResult, NumberLocale
from export_engine.services.export import MemoryDelivery, SerializedFile
from export_engine.services.notifications import Notification
from export_engine.services.session import ExportSession
from export_engine.services.snapshot import HtmlSnapshot

logger = logging.getLogger(__name__)


class ExportService:

    def _session(self, request: ScanRequest, images: Optional[Dict[str, bytes]] = None) -> ExportSession:
        config = DetectionConfig(check_visibility=request.check_visibility)
        if request.locale:
            config.locale = NumberLocale(request.locale)

        provider = None
        if images:
            def provider(chart: ChartRecord) -> Optional[bytes]:
                return images.get(chart.id)

        return ExportSession(delivery=MemoryDelivery(), detection_config=config, image_provider=provider)

    def _scan(self, session: ExportSession, request: ScanRequest) -> DetectionResult:
        snapshot = HtmlSnapshot(request.html, view_name=request.view_name)
        return session.scan(snapshot)

    def scan(self, request: ScanRequest) -> ScanResponse:
        session = self._session(request)
        try:
            result = self._scan(session, request)
            notification = session.detector.last_notification
            return ScanResponse(
                **result.to_dict(),
                notification=notification.to_dict() if notification else None,
            )
        finally:
            session.close()

    def download(self, request: DownloadRequest) -> Tuple[SerializedFile, Notification]:
        images = self._decode_images(request.chart_images) if request.configuration.include_images else None
        session = self._session(request, images)
        try:
            self._scan(session, request)
            job = session.export(request.selection, request.configuration)
            return job.file, job.notification
        finally:
            session.close()

    def estimate(self, request: DownloadRequest) -> EstimateResponse:
        session = self._session(request)
        try:
            self._scan(session, request)
            return EstimateResponse(**session.estimate(request.selection, request.configuration).to_dict())
        finally:
            session.close()

    def _decode_images(self, encoded: Dict[str, str]) -> Dict[str, bytes]:
        images = {}
        for chart_id, data in encoded.items():
            try:
                images[chart_id] = base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError) as e:
                raise InvalidChartImageError(f"Chart image for '{chart_id}' is not valid base64: {str(e)}")
        logger.info(f"Received {len(images)} chart images")
        return images


export_service = ExportService()
