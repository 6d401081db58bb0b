"""
Export Filenames

<base>-<YYYY-MM-DD>.<ext>, with collisions broken by a -HHMMSS suffix and
then a counter.
"""

from datetime import datetime
from typing import Callable, Iterable, Optional, Set
import re

from export_engine.schema.export_config import ExportConfiguration, ExportFormat

EXTENSIONS = {
    ExportFormat.WORKBOOK: "xlsx",
    ExportFormat.CSV: "csv",
    ExportFormat.JSON: "json",
    ExportFormat.PDF: "pdf",
    ExportFormat.ARCHIVE: "zip",
    ExportFormat.CLIPBOARD: "md",
}

SLUG_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


def slugify(text: str) -> str:
    """Month on Month: Sales -> month-on-month-sales"""
    slug = SLUG_CHARS.sub('-', text.strip().lower())
    slug = re.sub(r'-{2,}', '-', slug)
    return slug.strip('-.') or "export"


def export_base_name(configuration: ExportConfiguration, view_name: str) -> str:
    if configuration.custom_file_name:
        return slugify(configuration.custom_file_name)
    return slugify(f"{view_name}-export")


class FilenameAllocator:
    """
    Hands out unique filenames within one export and against an optional
    set of names that already exist (a download directory).

    Usage:
        allocator = FilenameAllocator(existing=os.listdir(export_dir))
        allocator.allocate("sales-export", "xlsx")  # sales-export-2024-03-01.xlsx
    """

    def __init__(
        self,
        existing: Optional[Iterable[str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.clock = clock or datetime.now
        self._taken: Set[str] = {name.lower() for name in (existing or [])}

    def allocate(self, base: str, extension: str) -> str:
        """<slug(base)>-<YYYY-MM-DD>.<extension>, unique within this allocator."""
        date = self.clock().strftime("%Y-%m-%d")
        return self.claim(f"{slugify(base)}-{date}.{extension}")

    def claim(self, filename: str) -> str:
        """
        Reserve an existing filename, renaming it with -HHMMSS and then a
        counter when it is already taken.
        """
        if filename.lower() not in self._taken:
            self._taken.add(filename.lower())
            return filename

        stem, dot, extension = filename.rpartition(".")
        if not dot:
            stem, extension = filename, ""
        suffix = f".{extension}" if extension else ""

        stem = f"{stem}-{self.clock().strftime('%H%M%S')}"
        candidate = f"{stem}{suffix}"
        counter = 2
        while candidate.lower() in self._taken:
            candidate = f"{stem}-{counter}{suffix}"
            counter += 1

        self._taken.add(candidate.lower())
        return candidate
