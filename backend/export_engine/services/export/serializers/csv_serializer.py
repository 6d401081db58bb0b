"""
CSV Serializer

One RFC 4180 file per document: metadata preamble rows first, then a
blank row, then the header and data rows. Several documents come back as
one ZIP archive.
"""

from typing import List, Optional
import csv
import io
import logging

from export_engine.exceptions.export_exceptions import SerializationFault
from export_engine.schema.export_config import ExportConfiguration, ExportFormat
from ..documents import CanonicalDocument
from .archive import ArchiveBundler
from .base import BaseSerializer, RenderContext, SerializedFile, cell_text

logger = logging.getLogger(__name__)


class CsvSerializer(BaseSerializer):
    FORMAT = ExportFormat.CSV
    EXTENSION = "csv"
    MEDIA_TYPE = "text/csv"

    def __init__(self, bundler: Optional[ArchiveBundler] = None):
        self.bundler = bundler or ArchiveBundler()

    def serialize(
        self,
        documents: List[CanonicalDocument],
        configuration: ExportConfiguration,
        context: Optional[RenderContext] = None,
    ) -> SerializedFile:
        context = context or RenderContext()
        if len(documents) <= 1:
            return super().serialize(documents, configuration, context)

        files = self.serialize_each(documents, context)
        return self.bundler.bundle(files, context.base_name, context.allocator)

    def serialize_each(self, documents: List[CanonicalDocument], context: RenderContext) -> List[SerializedFile]:
        """One CSV file per document, named after its sheet."""
        files = []
        for document in documents:
            try:
                content = self.render_document(document)
            except Exception as e:
                logger.error(f"CSV serialization of '{document.sheet_name}' failed: {str(e)}", exc_info=True)
                raise SerializationFault(f"Could not create the csv file: {str(e)}") from e
            files.append(SerializedFile(
                filename=context.allocator.allocate(document.sheet_name, self.EXTENSION),
                content=content,
                media_type=self.MEDIA_TYPE,
            ))
        return files

    def render(
        self,
        documents: List[CanonicalDocument],
        configuration: ExportConfiguration,
        context: RenderContext,
    ) -> bytes:
        return self.render_document(documents[0])

    def render_document(self, document: CanonicalDocument) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")

        if document.metadata_preamble:
            writer.writerows(document.metadata_preamble)
            writer.writerow([])

        if document.header_row:
            writer.writerow(document.header_row)
        for row in document.rows:
            writer.writerow([cell_text(value) for value in row])

        return buffer.getvalue().encode("utf-8")
