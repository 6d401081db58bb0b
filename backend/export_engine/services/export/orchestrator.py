"""
Export Orchestrator

Linear export pipeline for one job:

    validate -> build documents -> serialize -> deliver

Checkpoints are yielded between stages so the host can show progress or
cancel. A serializer or delivery fault aborts the job: nothing is
delivered, a failure notification is recorded and the error is raised as
a SerializationFault (DeliveryNotSupportedError passes through unchanged).
There is no automatic retry; re-run the job.

Usage:
    orchestrator = ExportOrchestrator(delivery=FileDownloadDelivery("./exports"))
    job = orchestrator.export(result, selection, configuration)
    print(job.receipt.location)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Tuple
import logging

from export_engine.exceptions.base import AppException
from export_engine.exceptions.export_exceptions import (
    DeliveryNotSupportedError,
    EmptySelectionError,
    ExportCancelledError,
    SerializationFault,
)
from export_engine.schema.export_config import ExportConfiguration, ExportFormat, ExportSelection
from export_engine.services.detection.models import ChartRecord, DetectionResult
from export_engine.services.notifications import Notification, export_failed, export_succeeded
from .delivery import Delivery, DeliveryReceipt, MemoryDelivery
from .documents import CanonicalDocument, DocumentBuilder, ExportMetadata
from .filenames import FilenameAllocator, export_base_name
from .serializers import ArchiveBundler, RenderContext, SerializedFile, get_serializer

logger = logging.getLogger(__name__)

ChartImageProvider = Callable[[ChartRecord], Optional[bytes]]


class JobState(str, Enum):
    PENDING = "pending"
    BUILDING = "building"
    SERIALIZING = "serializing"
    DELIVERING = "delivering"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ExportJob:
    """One export; lives only for the duration of the export."""
    selection: ExportSelection
    configuration: ExportConfiguration
    progress: int = 0
    state: JobState = JobState.PENDING

    documents: List[CanonicalDocument] = field(default_factory=list)
    file: Optional[SerializedFile] = None
    receipt: Optional[DeliveryReceipt] = None
    notification: Optional[Notification] = None
    error: Optional[str] = None

    started_at: datetime = field(default_factory=datetime.now)
    cancel_requested: bool = False

    def cancel(self) -> None:
        self.cancel_requested = True

    @property
    def is_finished(self) -> bool:
        return self.state in (JobState.SUCCEEDED, JobState.FAILED, JobState.CANCELLED)


@dataclass
class ExportCheckpoint:
    stage: str
    progress: int
    state: JobState


class ExportOrchestrator:
    """
    Runs export jobs against a DetectionResult.

    The chart image provider is optional; without one, chart images are
    skipped even when ``include_images`` is set.
    """

    def __init__(
        self,
        delivery: Optional[Delivery] = None,
        builder: Optional[DocumentBuilder] = None,
        image_provider: Optional[ChartImageProvider] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.delivery = delivery or MemoryDelivery()
        self.clock = clock or datetime.now
        self.builder = builder or DocumentBuilder(clock=self.clock)
        self.image_provider = image_provider
        self.bundler = ArchiveBundler()

        self.current_job: Optional[ExportJob] = None

    @property
    def is_running(self) -> bool:
        return self.current_job is not None and not self.current_job.is_finished \
            and self.current_job.state != JobState.PENDING

    # =========================================================================
    # PIPELINE
    # =========================================================================

    def iter_export(self, job: ExportJob, result: Optional[DetectionResult]) -> Iterator[ExportCheckpoint]:
        """
        Run a job, yielding a checkpoint after each stage.

        Raises:
            EmptySelectionError: nothing selected resolves to a record
            SerializationFault: serialization or delivery failed
            DeliveryNotSupportedError: the delivery is the scheduled/email stub
        """
        self.current_job = job
        configuration = job.configuration

        for flag in configuration.declared_only_flags:
            logger.warning(f"Export option '{flag}' is accepted but not implemented; ignoring it")

        # Stage 1: validate
        if result is None or job.selection.is_empty:
            self._reject(job, EmptySelectionError())
        try:
            resolved = self.builder.resolve(result, job.selection)
        except EmptySelectionError as e:
            self._reject(job, e)

        if self._cancelled(job):
            return

        try:
            # Stage 2: build documents
            job.state = JobState.BUILDING
            metadata = self.builder.build_metadata(result, resolved)
            job.documents = self.builder.build(result, job.selection, configuration, metadata=metadata)
            job.progress = 30
            yield ExportCheckpoint("build", job.progress, job.state)
            if self._cancelled(job):
                return

            # Stage 3: serialize
            job.state = JobState.SERIALIZING
            try:
                job.file = self._serialize(job, result, metadata, resolved.charts)
            except AppException as e:
                self._fail(job, e)
            except Exception as e:
                self._fail(job, SerializationFault(f"Could not export data: {str(e)}"))
            job.progress = 70
            yield ExportCheckpoint("serialize", job.progress, job.state)
            if self._cancelled(job):
                return

            # Stage 4: deliver
            job.state = JobState.DELIVERING
            try:
                job.receipt = self.delivery.deliver(job.file)
            except AppException as e:
                self._fail(job, e)
            except Exception as e:
                self._fail(job, SerializationFault(f"Could not deliver {job.file.filename}: {str(e)}"))
            job.progress = 90
            yield ExportCheckpoint("deliver", job.progress, job.state)

            job.state = JobState.SUCCEEDED
            job.progress = 100
            job.notification = export_succeeded(job.file.filename, resolved.item_count)
            duration = (self.clock() - job.started_at).total_seconds()
            logger.info(f"Export of {job.file.filename} finished in {duration:.2f}s")
            yield ExportCheckpoint("done", job.progress, job.state)
        finally:
            if not job.is_finished:
                job.state = JobState.CANCELLED
                logger.info("Export abandoned before it finished")

    def export(
        self,
        result: Optional[DetectionResult],
        selection: ExportSelection,
        configuration: ExportConfiguration,
    ) -> ExportJob:
        """Run a job to completion and return it."""
        job = ExportJob(selection=selection, configuration=configuration, started_at=self.clock())
        for checkpoint in self.iter_export(job, result):
            logger.debug(f"Export progress: {checkpoint.stage} {checkpoint.progress}%")
        if job.state == JobState.CANCELLED:
            raise ExportCancelledError()
        return job

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def _serialize(
        self,
        job: ExportJob,
        result: DetectionResult,
        metadata: ExportMetadata,
        charts: List[ChartRecord],
    ) -> SerializedFile:
        configuration = job.configuration
        context = RenderContext(
            base_name=export_base_name(configuration, result.view_name),
            metadata=metadata,
            images=self._chart_images(charts) if configuration.include_images else {},
            allocator=FilenameAllocator(existing=self.delivery.existing_names(), clock=self.clock),
        )

        serializer = get_serializer(configuration.format)
        file = serializer.serialize(job.documents, configuration, context)

        already_zipped = file.media_type == "application/zip"
        if configuration.compression and not already_zipped and configuration.format != ExportFormat.CLIPBOARD:
            file = self.bundler.bundle([file], context.base_name, context.allocator)

        return file

    def _chart_images(self, charts: List[ChartRecord]) -> Dict[str, Tuple[str, bytes]]:
        if self.image_provider is None or not charts:
            return {}
        images = {}
        for chart in charts:
            image = self.image_provider(chart)
            if image:
                images[chart.id] = (chart.name, image)
        return images

    # =========================================================================
    # OUTCOMES
    # =========================================================================

    def _cancelled(self, job: ExportJob) -> bool:
        if not job.cancel_requested:
            return False
        job.state = JobState.CANCELLED
        job.notification = export_failed("The export was cancelled.")
        logger.info("Export cancelled")
        return True

    def _reject(self, job: ExportJob, error: EmptySelectionError) -> None:
        job.state = JobState.FAILED
        job.error = error.detail
        job.notification = export_failed(error.detail)
        raise error

    def _fail(self, job: ExportJob, error: AppException) -> None:
        job.state = JobState.FAILED
        job.file = None
        job.error = error.detail
        job.notification = export_failed(error.detail)
        logger.error(f"Export failed: {error.detail}")
        if isinstance(error, (SerializationFault, DeliveryNotSupportedError)):
            raise error
        raise SerializationFault(error.detail) from error
