"""
Archive Serializer

The "archive" export format: a ZIP holding one CSV per document, a JSON
metadata file when metadata is included, and chart images when they were
requested.
"""

from typing import List, Optional
import json
import logging

from export_engine.schema.export_config import ExportConfiguration, ExportFormat
from ..documents import CanonicalDocument
from .archive import ArchiveBundler
from .base import BaseSerializer, RenderContext, SerializedFile
from .csv_serializer import CsvSerializer

logger = logging.getLogger(__name__)


class ArchiveSerializer(BaseSerializer):
    FORMAT = ExportFormat.ARCHIVE
    EXTENSION = "zip"
    MEDIA_TYPE = "application/zip"

    def __init__(self, csv_serializer: Optional[CsvSerializer] = None, bundler: Optional[ArchiveBundler] = None):
        self.csv = csv_serializer or CsvSerializer()
        self.bundler = bundler or ArchiveBundler()

    def serialize(
        self,
        documents: List[CanonicalDocument],
        configuration: ExportConfiguration,
        context: Optional[RenderContext] = None,
    ) -> SerializedFile:
        context = context or RenderContext()
        files = self.csv.serialize_each(documents, context)

        if configuration.include_metadata and context.metadata is not None:
            files.append(SerializedFile(
                filename="metadata.json",
                content=json.dumps(context.metadata.to_dict(), indent=2, default=str).encode("utf-8"),
                media_type="application/json",
            ))

        if configuration.include_images:
            for name, image in context.images.values():
                files.append(SerializedFile(
                    filename=context.allocator.allocate(name, "png"),
                    content=image,
                    media_type="image/png",
                ))

        return self.bundler.bundle(files, context.base_name, context.allocator)

    def render(
        self,
        documents: List[CanonicalDocument],
        configuration: ExportConfiguration,
        context: RenderContext,
    ) -> bytes:
        return self.serialize(documents, configuration, context).content
