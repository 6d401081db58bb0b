"""
Base Serializer

Common contract for every export format:

    serialize(documents, configuration, context) -> SerializedFile

Any exception raised while rendering surfaces as a SerializationFault; no
partial output is returned.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging

from export_engine.exceptions.export_exceptions import SerializationFault
from export_engine.schema.export_config import ExportConfiguration, ExportFormat
from ..documents import CanonicalDocument, ExportMetadata
from ..filenames import FilenameAllocator

logger = logging.getLogger(__name__)


@dataclass
class SerializedFile:
    """A named byte stream ready for delivery."""
    filename: str
    content: bytes
    media_type: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class RenderContext:
    """
    Export-wide inputs that are not part of the documents.

    ``images`` maps chart ids to (display name, PNG bytes) pairs supplied by
    the chart image provider; it is empty unless images were requested.
    """
    base_name: str = "export"
    metadata: Optional[ExportMetadata] = None
    images: Dict[str, Tuple[str, bytes]] = field(default_factory=dict)
    allocator: FilenameAllocator = field(default_factory=FilenameAllocator)


class BaseSerializer(ABC):
    """
    Abstract base class for format serializers.

    Subclasses implement render() and declare FORMAT, EXTENSION and
    MEDIA_TYPE.
    """

    FORMAT: ExportFormat
    EXTENSION: str = ""
    MEDIA_TYPE: str = "application/octet-stream"

    def serialize(
        self,
        documents: List[CanonicalDocument],
        configuration: ExportConfiguration,
        context: Optional[RenderContext] = None,
    ) -> SerializedFile:
        """
        Render documents into one file.

        Raises:
            SerializationFault: rendering failed; nothing is returned
        """
        context = context or RenderContext()
        if not documents:
            raise SerializationFault("There is nothing to export.")

        try:
            content = self.render(documents, configuration, context)
        except SerializationFault:
            raise
        except Exception as e:
            logger.error(f"{self.FORMAT.value} serialization failed: {str(e)}", exc_info=True)
            raise SerializationFault(f"Could not create the {self.FORMAT.value} file: {str(e)}") from e

        filename = context.allocator.allocate(context.base_name, self.EXTENSION)
        logger.info(f"Serialized {len(documents)} documents to {filename} ({len(content)} bytes)")
        return SerializedFile(filename=filename, content=content, media_type=self.MEDIA_TYPE)

    @abstractmethod
    def render(
        self,
        documents: List[CanonicalDocument],
        configuration: ExportConfiguration,
        context: RenderContext,
    ) -> bytes:
        pass


def cell_text(value) -> str:
    """Text form of a normalized cell value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
