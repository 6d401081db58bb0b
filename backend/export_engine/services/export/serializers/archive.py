"""
Archive Bundler

Wraps several serialized files into one ZIP (deflate) container.
"""

from typing import List
import io
import zipfile
import logging

from export_engine.exceptions.export_exceptions import SerializationFault
from ..filenames import FilenameAllocator
from .base import SerializedFile

logger = logging.getLogger(__name__)

ZIP_MEDIA_TYPE = "application/zip"


class ArchiveBundler:
    """
    Usage:
        bundle = ArchiveBundler().bundle(files, "sales-export", allocator)
    """

    def bundle(
        self,
        files: List[SerializedFile],
        base_name: str,
        allocator: FilenameAllocator,
    ) -> SerializedFile:
        """
        Zip files under unique inner names.

        Inner name collisions get a -HHMMSS suffix and then a counter.
        """
        if not files:
            raise SerializationFault("There is nothing to archive.")

        inner = FilenameAllocator(clock=allocator.clock)
        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for file in files:
                    name = inner.claim(file.filename)
                    archive.writestr(name, file.content)
        except Exception as e:
            logger.error(f"Archive creation failed: {str(e)}", exc_info=True)
            raise SerializationFault(f"Could not create the archive: {str(e)}") from e

        filename = allocator.allocate(base_name, "zip")
        logger.info(f"Bundled {len(files)} files into {filename}")
        return SerializedFile(filename=filename, content=buffer.getvalue(), media_type=ZIP_MEDIA_TYPE)
