"""
Delivery

Hands a serialized file to its destination:

- FileDownloadDelivery: writes into a download directory through a temp
  file and an atomic rename, so a failed write leaves nothing behind
- MemoryDelivery: keeps the file for an HTTP response
- ClipboardDelivery: passes UTF-8 text to a caller-supplied sink
- ScheduledDeliveryStub: scheduled and emailed exports (not available)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union
import os
import tempfile
import logging

from export_engine.core.config import settings
from export_engine.exceptions.export_exceptions import DeliveryNotSupportedError, SerializationFault
from .serializers.base import SerializedFile

logger = logging.getLogger(__name__)


@dataclass
class DeliveryReceipt:
    filename: str
    location: str
    size: int


class Delivery(ABC):
    """Abstract destination for exported files."""

    def existing_names(self) -> List[str]:
        """Filenames already present at the destination."""
        return []

    @abstractmethod
    def deliver(self, file: SerializedFile) -> DeliveryReceipt:
        pass


class FileDownloadDelivery(Delivery):
    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory or settings.EXPORT_DIR)

    def existing_names(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        return [p.name for p in self.directory.iterdir()]

    def deliver(self, file: SerializedFile) -> DeliveryReceipt:
        target = self.directory / file.filename
        temp_path: Optional[str] = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=self.directory, prefix=".", suffix=".part")
            with os.fdopen(fd, "wb") as handle:
                handle.write(file.content)
            os.replace(temp_path, target)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                os.unlink(temp_path)
            logger.error(f"Writing {target} failed: {str(e)}")
            raise SerializationFault(f"Could not save {file.filename}: {str(e)}") from e

        logger.info(f"Saved {target} ({file.size} bytes)")
        return DeliveryReceipt(filename=file.filename, location=str(target), size=file.size)


class MemoryDelivery(Delivery):
    def __init__(self):
        self.files: List[SerializedFile] = []

    def deliver(self, file: SerializedFile) -> DeliveryReceipt:
        self.files.append(file)
        return DeliveryReceipt(filename=file.filename, location="memory", size=file.size)


class ClipboardDelivery(Delivery):
    def __init__(self, sink: Callable[[str], None]):
        self.sink = sink

    def deliver(self, file: SerializedFile) -> DeliveryReceipt:
        try:
            text = file.content.decode("utf-8")
            self.sink(text)
        except Exception as e:
            logger.error(f"Clipboard write failed: {str(e)}")
            raise SerializationFault(f"Could not copy to the clipboard: {str(e)}") from e
        return DeliveryReceipt(filename=file.filename, location="clipboard", size=file.size)


class ScheduledDeliveryStub(Delivery):
    def deliver(self, file: SerializedFile) -> DeliveryReceipt:
        raise DeliveryNotSupportedError()
