"""
Export Session

Pairs one DetectionOrchestrator with one ExportOrchestrator for a single
view. Only one scan or export runs at a time; a rescan discards the
previous result and closing the session drops everything it holds.

Usage:
    session = ExportSession(delivery=FileDownloadDelivery())
    session.scan(HtmlSnapshot(html, view_name="sales"))
    job = session.export(ExportSelection(tables=["table-1-0"]), ExportConfiguration(format="csv"))
"""

from datetime import datetime
from typing import Callable, Iterator, Optional
import logging

from export_engine.exceptions.export_exceptions import EmptySelectionError, SessionBusyError
from export_engine.schema.export_config import ExportConfiguration, ExportSelection
from export_engine.services.detection import (
    DetectionConfig,
    DetectionOrchestrator,
    DetectionResult,
    NumberLocale,
    ProgressCheckpoint,
    ScanState,
    TargetRegistry,
)
from export_engine.services.export import (
    ChartImageProvider,
    Delivery,
    ExportCheckpoint,
    ExportEstimate,
    ExportJob,
    ExportOrchestrator,
    estimate,
)
from export_engine.services.snapshot import PageSnapshot

logger = logging.getLogger(__name__)


class ExportSession:

    def __init__(
        self,
        delivery: Optional[Delivery] = None,
        registry: Optional[TargetRegistry] = None,
        detection_config: Optional[DetectionConfig] = None,
        image_provider: Optional[ChartImageProvider] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.detector = DetectionOrchestrator(config=detection_config, registry=registry)
        self.exporter = ExportOrchestrator(delivery=delivery, image_provider=image_provider, clock=clock)
        self.closed = False

    @property
    def result(self) -> Optional[DetectionResult]:
        return self.detector.result

    @property
    def is_busy(self) -> bool:
        return self.detector.is_scanning or self.exporter.is_running

    def _ensure_idle(self) -> None:
        if self.closed:
            raise SessionBusyError("This export session has been closed.")
        if self.is_busy:
            raise SessionBusyError()

    # =========================================================================
    # SCAN
    # =========================================================================

    def iter_scan(self, snapshot: PageSnapshot, locale: Optional[NumberLocale] = None) -> Iterator[ProgressCheckpoint]:
        self._ensure_idle()
        yield from self.detector.iter_scan(snapshot, locale=locale)

    def scan(self, snapshot: PageSnapshot, locale: Optional[NumberLocale] = None) -> DetectionResult:
        self._ensure_idle()
        return self.detector.scan(snapshot, locale=locale)

    # =========================================================================
    # EXPORT
    # =========================================================================

    def iter_export(self, job: ExportJob) -> Iterator[ExportCheckpoint]:
        self._ensure_idle()
        yield from self.exporter.iter_export(job, self.result)

    def export(self, selection: ExportSelection, configuration: ExportConfiguration) -> ExportJob:
        self._ensure_idle()
        return self.exporter.export(self.result, selection, configuration)

    def estimate(self, selection: ExportSelection, configuration: ExportConfiguration) -> ExportEstimate:
        """Size and time estimates for a selection, without exporting."""
        if self.result is None:
            raise EmptySelectionError()
        documents = self.exporter.builder.build(self.result, selection, configuration)
        return estimate(documents)

    def close(self) -> None:
        if self.closed:
            return
        self.detector.state = ScanState.IDLE
        self.detector.result = None
        self.detector.last_notification = None
        self.exporter.current_job = None
        self.closed = True
        logger.info("Export session closed")
