"""
Markdown Serializer

Clipboard preview: a markdown table per document, capped at a fixed
number of rows with a note for the rest. Never a full-fidelity export.
"""

from typing import Any, List, Optional
import logging

from export_engine.core.config import settings
from export_engine.schema.export_config import ExportConfiguration, ExportFormat
from ..documents import CanonicalDocument
from .base import BaseSerializer, RenderContext, cell_text

logger = logging.getLogger(__name__)


class MarkdownSerializer(BaseSerializer):
    FORMAT = ExportFormat.CLIPBOARD
    EXTENSION = "md"
    MEDIA_TYPE = "text/markdown"

    def __init__(self, preview_rows: Optional[int] = None):
        self.preview_rows = preview_rows or settings.CLIPBOARD_PREVIEW_ROWS

    def render(
        self,
        documents: List[CanonicalDocument],
        configuration: ExportConfiguration,
        context: RenderContext,
    ) -> bytes:
        return self.render_text(documents, configuration, context).encode("utf-8")

    def render_text(
        self,
        documents: List[CanonicalDocument],
        configuration: ExportConfiguration,
        context: RenderContext,
    ) -> str:
        metadata = context.metadata
        lines: List[str] = []

        if metadata is not None:
            lines.append(f"# {metadata.source_location} - {metadata.view_name} Data Export")
            if configuration.include_metadata:
                lines.append("")
                lines.append(f"Generated: {metadata.generated_label}")
        else:
            lines.append("# Data Export")
        lines.append("")

        for document in documents:
            lines.extend(self._document(document))

        return "\n".join(lines).rstrip() + "\n"

    def _document(self, document: CanonicalDocument) -> List[str]:
        lines = [f"## {document.sheet_name}", ""]

        width = document.column_count
        if width == 0:
            return lines + ["*No rows*", ""]

        header = document.header_row or [f"Column {i + 1}" for i in range(width)]
        lines.append(self._row(header, width))
        lines.append("| " + " | ".join("---" for _ in range(width)) + " |")

        for row in document.rows[:self.preview_rows]:
            lines.append(self._row(row, width))

        remaining = document.row_count - self.preview_rows
        if remaining > 0:
            lines.append("")
            lines.append(f"*... and {remaining} more rows*")

        lines.append("")
        return lines

    def _row(self, values: List[Any], width: int) -> str:
        cells = [self._escape(cell_text(values[i]) if i < len(values) else "") for i in range(width)]
        return "| " + " | ".join(cells) + " |"

    def _escape(self, text: str) -> str:
        return text.replace("|", "\\|").replace("\n", " ")
