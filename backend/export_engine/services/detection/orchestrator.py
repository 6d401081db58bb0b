"""
Detection Orchestrator

Runs the extractors over one page snapshot in a fixed order and owns the
resulting DetectionResult until the next scan replaces it.

Stages:
    tables (25%) -> metrics (50%) -> charts (75%) -> rankings (100%)

A stage that raises is logged and recorded in ``DetectionResult.faults``;
later stages still run. A scan fails only when the snapshot itself cannot
be queried.

Usage:
    orchestrator = DetectionOrchestrator(registry=registry)
    for checkpoint in orchestrator.iter_scan(snapshot):
        print(checkpoint.stage, checkpoint.progress)
    result = orchestrator.result
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterator, List, Optional, Tuple
import logging

from export_engine.core.config import settings
from export_engine.exceptions.detection_exceptions import ScanInProgressError, SnapshotUnavailableFault
from export_engine.services.notifications import Notification, scan_failed, scan_summary
from export_engine.services.snapshot.node import PageSnapshot
from .base import ExtractionResult, VisibilityPolicy
from .chart_locator import ChartLocator
from .classifier import BlockClassifier
from .deduplicator import deduplicate
from .metric_extractor import MetricExtractor
from .models import DetectionResult
from .ranking_extractor import RankingExtractor
from .registry import TargetRegistry
from .table_extractor import TableExtractor
from .value_parser import NumberLocale, ValueParser

logger = logging.getLogger(__name__)


class ScanState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class DetectionConfig:
    """Per-scan detection options."""

    locale: NumberLocale = field(default_factory=lambda: NumberLocale(settings.DEFAULT_LOCALE))

    # Visibility predicate shared by all extractors
    check_visibility: bool = True

    # Latency bounds
    max_rows_per_block: int = field(default_factory=lambda: settings.MAX_ROWS_PER_BLOCK)
    type_sample_size: int = field(default_factory=lambda: settings.TYPE_SAMPLE_SIZE)


@dataclass
class ProgressCheckpoint:
    """Emitted after each stage."""
    stage: str
    progress: int
    state: ScanState
    found: int = 0
    fault: Optional[str] = None


class DetectionOrchestrator:
    """
    Stateless-per-scan detection driver.

    The target registry is an optional collaborator owned by the caller.
    """

    STAGES: List[Tuple[str, int]] = [
        ("tables", 25),
        ("metrics", 50),
        ("charts", 75),
        ("rankings", 100),
    ]

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        registry: Optional[TargetRegistry] = None,
    ):
        self.config = config or DetectionConfig()
        self.registry = registry

        self.state = ScanState.IDLE
        self.result: Optional[DetectionResult] = None
        self.last_notification: Optional[Notification] = None

    @property
    def is_scanning(self) -> bool:
        return self.state == ScanState.SCANNING

    def _build_stages(self, config: DetectionConfig) -> List[Tuple[str, int, Callable[[PageSnapshot], ExtractionResult]]]:
        visibility = VisibilityPolicy(enabled=config.check_visibility)
        parser = ValueParser(config.locale)
        classifier = BlockClassifier()

        tables = TableExtractor(
            parser=parser,
            classifier=classifier,
            visibility=visibility,
            max_rows=config.max_rows_per_block,
            sample_size=config.type_sample_size,
        )
        metrics = MetricExtractor(parser=parser, classifier=classifier, visibility=visibility)
        charts = ChartLocator(visibility=visibility)
        rankings = RankingExtractor(visibility=visibility)

        runners = {
            "tables": lambda snapshot: tables.extract(snapshot, registry=self.registry),
            "metrics": metrics.extract,
            "charts": charts.extract,
            "rankings": rankings.extract,
        }
        return [(name, progress, runners[name]) for name, progress in self.STAGES]

    # =========================================================================
    # SCANNING
    # =========================================================================

    def iter_scan(
        self,
        snapshot: PageSnapshot,
        locale: Optional[NumberLocale] = None,
    ) -> Iterator[ProgressCheckpoint]:
        """
        Scan a snapshot, yielding a checkpoint after each stage.

        The previous result is discarded when the scan starts. Abandoning
        the generator part-way returns the orchestrator to IDLE with no
        result.

        Raises:
            ScanInProgressError: another scan is in flight
            SnapshotUnavailableFault: the snapshot cannot be queried
        """
        if self.is_scanning:
            raise ScanInProgressError()

        config = self.config
        if locale is not None:
            config = DetectionConfig(
                locale=NumberLocale(locale),
                check_visibility=self.config.check_visibility,
                max_rows_per_block=self.config.max_rows_per_block,
                type_sample_size=self.config.type_sample_size,
            )

        self.state = ScanState.SCANNING
        self.result = None
        self.last_notification = None
        started = datetime.now()

        try:
            try:
                snapshot.ensure_available()
            except SnapshotUnavailableFault as e:
                self._fail(e)
                raise

            result = DetectionResult(view_name=snapshot.view_name, scanned_at=started)
            logger.info(f"Scanning '{snapshot.view_name}' (locale={config.locale.value})")

            for stage, progress, run in self._build_stages(config):
                found = 0
                fault: Optional[str] = None
                try:
                    extraction = run(snapshot)
                    found = self._store(result, stage, extraction)
                except SnapshotUnavailableFault as e:
                    self._fail(e)
                    raise
                except Exception as e:
                    fault = f"{stage}: {str(e)}"
                    logger.error(f"Stage '{stage}' failed: {str(e)}", exc_info=True)
                    result.faults.append(fault)

                yield ProgressCheckpoint(
                    stage=stage,
                    progress=progress,
                    state=ScanState.SCANNING,
                    found=found,
                    fault=fault,
                )

            self.result = result
            self.state = ScanState.SUCCEEDED
            self.last_notification = scan_summary(
                len(result.tables), len(result.metrics), len(result.charts), len(result.rankings)
            )
            duration = (datetime.now() - started).total_seconds()
            logger.info(f"Scan complete in {duration:.2f}s: {self.last_notification.message}")
        finally:
            if self.state == ScanState.SCANNING:
                logger.info(f"Scan of '{snapshot.view_name}' abandoned")
                self.state = ScanState.IDLE

    def scan(self, snapshot: PageSnapshot, locale: Optional[NumberLocale] = None) -> DetectionResult:
        """Run every stage and return the result."""
        for checkpoint in self.iter_scan(snapshot, locale=locale):
            logger.debug(f"Scan progress: {checkpoint.stage} {checkpoint.progress}%")
        return self.result

    def reset(self) -> None:
        if self.is_scanning:
            raise ScanInProgressError()
        self.state = ScanState.IDLE
        self.result = None
        self.last_notification = None

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _store(self, result: DetectionResult, stage: str, extraction: ExtractionResult) -> int:
        result.faults.extend(f"{stage}: {fault.detail}" for fault in extraction.faults)

        if stage == "tables":
            result.tables = deduplicate(extraction.items)
            return len(result.tables)
        if stage == "metrics":
            result.metrics = list(extraction.items)
            return len(result.metrics)
        if stage == "charts":
            result.charts = list(extraction.items)
            return len(result.charts)
        result.rankings = list(extraction.items)
        return len(result.rankings)

    def _fail(self, error: SnapshotUnavailableFault) -> None:
        self.state = ScanState.FAILED
        self.result = None
        self.last_notification = scan_failed(error.detail)
        logger.error(f"Scan failed: {error.detail}")
