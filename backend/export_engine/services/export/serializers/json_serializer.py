"""
JSON Serializer

Layout:
    {
      "metadata": {...},               # when include_metadata
      "tables": [
        {"name", "headers"?, "rows", "rowCount", "columnCount", "units"?, "location"}
      ]
    }

Values are the normalized cells: numbers stay numbers, the unit of a
currency or percentage column lives in "units". parse() reads a file
back into CanonicalDocuments.
"""

from typing import Any, Dict, List
import json
import logging

from export_engine.exceptions.export_exceptions import SerializationFault
from export_engine.schema.export_config import ExportConfiguration, ExportFormat
from ..documents import CanonicalDocument
from .base import BaseSerializer, RenderContext

logger = logging.getLogger(__name__)


class JsonSerializer(BaseSerializer):
    FORMAT = ExportFormat.JSON
    EXTENSION = "json"
    MEDIA_TYPE = "application/json"

    def render(
        self,
        documents: List[CanonicalDocument],
        configuration: ExportConfiguration,
        context: RenderContext,
    ) -> bytes:
        payload: Dict[str, Any] = {}
        if configuration.include_metadata and context.metadata is not None:
            payload["metadata"] = context.metadata.to_dict()

        payload["tables"] = [self._table(document) for document in documents]
        return json.dumps(payload, ensure_ascii=False, indent=2, default=str).encode("utf-8")

    def _table(self, document: CanonicalDocument) -> Dict[str, Any]:
        table: Dict[str, Any] = {"name": document.sheet_name}
        if document.header_row is not None:
            table["headers"] = document.header_row
        table["rows"] = document.rows
        table["rowCount"] = document.row_count
        table["columnCount"] = document.column_count
        if document.units:
            table["units"] = document.units
        if document.source_location:
            table["location"] = document.source_location
        if document.part_count > 1:
            table["part"] = document.part
            table["partCount"] = document.part_count
        return table

    def parse(self, content: bytes) -> List[CanonicalDocument]:
        """
        Read a file produced by render() back into documents.

        Raises:
            SerializationFault: the content is not a table export
        """
        try:
            payload = json.loads(content.decode("utf-8"))
            tables = payload["tables"]
        except (ValueError, KeyError, TypeError, UnicodeDecodeError) as e:
            raise SerializationFault(f"Not a valid JSON export: {str(e)}") from e

        documents = []
        for table in tables:
            documents.append(CanonicalDocument(
                sheet_name=table["name"],
                header_row=table.get("headers"),
                rows=table.get("rows", []),
                title=table["name"],
                units=table.get("units", {}),
                source_location=table.get("location", ""),
                part=table.get("part", 1),
                part_count=table.get("partCount", 1),
            ))
        return documents
