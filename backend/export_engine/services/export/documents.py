"""
Canonical Document Builder

Turns the selected detection records into sheet-like CanonicalDocuments
that every serializer consumes.

- One document per selected table
- One document for all selected metrics
- One document per selected ranking
- One chart manifest document for selected charts
- Or a single combined document when ``combine_into_single_sheet`` is set

Full-file formats keep every row. With ``split_large_files`` a table with
more than ``max_rows_per_sheet`` rows becomes several documents named
"<name> (Part k)".
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set
import re
import logging

from export_engine.exceptions.export_exceptions import EmptySelectionError
from export_engine.schema.export_config import ExportConfiguration, ExportFormat, ExportSelection
from export_engine.services.detection.models import (
    ChartRecord,
    DetectionResult,
    MetricRecord,
    RankingRecord,
    TabularBlock,
)

logger = logging.getLogger(__name__)


# =============================================================================
# DOCUMENTS
# =============================================================================

@dataclass
class CanonicalDocument:
    """One sheet of an export."""
    sheet_name: str
    header_row: Optional[List[str]]
    rows: List[List[Any]]
    metadata_preamble: Optional[List[List[str]]] = None

    title: str = ""
    units: Dict[str, str] = field(default_factory=dict)
    source_ids: List[str] = field(default_factory=list)
    source_location: str = ""
    part: int = 1
    part_count: int = 1

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        if self.header_row:
            return len(self.header_row)
        return max((len(r) for r in self.rows), default=0)


@dataclass
class ManifestEntry:
    name: str
    kind: str
    row_count: int
    column_count: int
    source_location: str = ""

    def describe(self) -> str:
        return f"{self.name}: {self.row_count} rows x {self.column_count} columns"


@dataclass
class ExportMetadata:
    """Export-wide facts shown in Summary sheets, JSON metadata and PDF titles."""
    generated_at: datetime
    view_name: str
    source_location: str
    manifest: List[ManifestEntry] = field(default_factory=list)
    units: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @property
    def generated_label(self) -> str:
        return self.generated_at.strftime("%Y-%m-%d %H:%M:%S")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at.isoformat(timespec="seconds"),
            "view": self.view_name,
            "location": self.source_location,
            "items": [
                {
                    "name": entry.name,
                    "kind": entry.kind,
                    "rowCount": entry.row_count,
                    "columnCount": entry.column_count,
                }
                for entry in self.manifest
            ],
            "units": self.units,
        }


@dataclass
class ResolvedSelection:
    tables: List[TabularBlock] = field(default_factory=list)
    metrics: List[MetricRecord] = field(default_factory=list)
    charts: List[ChartRecord] = field(default_factory=list)
    rankings: List[RankingRecord] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.tables) + len(self.metrics) + len(self.charts) + len(self.rankings)


# =============================================================================
# BUILDER
# =============================================================================

class DocumentBuilder:
    """
    Build CanonicalDocuments from a DetectionResult and a selection.

    Usage:
        builder = DocumentBuilder()
        documents = builder.build(result, selection, configuration)
    """

    INVALID_SHEET_CHARS = re.compile(r'[:\\/?*\[\]]')

    SHEET_NAME_LIMITS = {
        ExportFormat.WORKBOOK: 31,
    }
    DEFAULT_NAME_LIMIT = 100

    SUMMARY_SHEET = "Summary"

    METRIC_HEADERS = ["Metric", "Value", "Format", "Unit", "Trend", "Change", "Category"]
    RANKING_HEADERS = ["Rank", "Name", "Value"]
    CHART_HEADERS = ["Chart", "Kind", "X", "Y", "Width", "Height", "Location"]

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or datetime.now

    # =========================================================================
    # SELECTION
    # =========================================================================

    def resolve(self, result: DetectionResult, selection: ExportSelection) -> ResolvedSelection:
        """
        Look up the selected records. Unknown ids are ignored.

        Raises:
            EmptySelectionError: nothing selected resolves to a record
        """
        def pick(records, ids):
            wanted = set(ids)
            return [r for r in records if r.id in wanted]

        resolved = ResolvedSelection(
            tables=pick(result.tables, selection.tables),
            metrics=pick(result.metrics, selection.metrics),
            charts=pick(result.charts, selection.charts),
            rankings=pick(result.rankings, selection.rankings),
        )

        if resolved.item_count == 0:
            raise EmptySelectionError()

        requested = len(set(selection.tables)) + len(set(selection.metrics)) + \
            len(set(selection.charts)) + len(set(selection.rankings))
        if requested > resolved.item_count:
            logger.warning(f"{requested - resolved.item_count} selected ids were not found and are ignored")

        return resolved

    def build_metadata(self, result: DetectionResult, resolved: ResolvedSelection) -> ExportMetadata:
        locations = [t.source_location for t in resolved.tables if t.source_location]
        metadata = ExportMetadata(
            generated_at=self.clock(),
            view_name=result.view_name,
            source_location=locations[0] if locations else result.view_name,
        )

        for table in resolved.tables:
            metadata.manifest.append(ManifestEntry(
                name=table.name,
                kind="table",
                row_count=table.row_count,
                column_count=table.column_count,
                source_location=table.source_location,
            ))
            if table.units:
                metadata.units[table.name] = dict(table.units)
        if resolved.metrics:
            metadata.manifest.append(ManifestEntry("Metrics", "metrics", len(resolved.metrics), len(self.METRIC_HEADERS)))
        for ranking in resolved.rankings:
            metadata.manifest.append(ManifestEntry(ranking.name, "ranking", len(ranking.items), len(self.RANKING_HEADERS)))
        if resolved.charts:
            metadata.manifest.append(ManifestEntry("Charts", "charts", len(resolved.charts), len(self.CHART_HEADERS)))

        return metadata

    # =========================================================================
    # BUILDING
    # =========================================================================

    def build(
        self,
        result: DetectionResult,
        selection: ExportSelection,
        configuration: ExportConfiguration,
        metadata: Optional[ExportMetadata] = None,
    ) -> List[CanonicalDocument]:
        """
        Build the documents for one export.

        Args:
            result: The current detection result
            selection: Selected record ids
            configuration: Validated export configuration
            metadata: Export metadata; built from the selection when omitted

        Returns:
            Documents in selection order: tables, metrics, rankings, charts

        Raises:
            EmptySelectionError: nothing selected resolves to a record
        """
        resolved = self.resolve(result, selection)
        metadata = metadata or self.build_metadata(result, resolved)

        if configuration.combine_into_single_sheet:
            documents = [self._combined(resolved, configuration, metadata)]
        else:
            documents = []
            for table in resolved.tables:
                documents.extend(self._table_documents(table, configuration, metadata))
            if resolved.metrics:
                documents.append(self._metrics_document(resolved.metrics, configuration, metadata))
            for ranking in resolved.rankings:
                documents.append(self._ranking_document(ranking, configuration, metadata))
            if resolved.charts:
                documents.append(self._chart_document(resolved.charts, configuration, metadata))

        self._assign_sheet_names(documents, configuration)
        logger.info(f"Built {len(documents)} documents from {resolved.item_count} selected items")
        return documents

    def _table_documents(
        self,
        table: TabularBlock,
        configuration: ExportConfiguration,
        metadata: ExportMetadata,
    ) -> List[CanonicalDocument]:
        chunks = [table.rows]
        limit = configuration.max_rows_per_sheet
        if configuration.split_large_files and table.row_count > limit:
            chunks = [table.rows[i:i + limit] for i in range(0, table.row_count, limit)]

        documents = []
        for index, rows in enumerate(chunks):
            part = index + 1
            title = table.name if len(chunks) == 1 else f"{table.name} (Part {part})"
            document = CanonicalDocument(
                sheet_name=title,
                header_row=list(table.headers) if configuration.include_headers else None,
                rows=rows,
                title=title,
                units=dict(table.units),
                source_ids=[table.id],
                source_location=table.source_location,
                part=part,
                part_count=len(chunks),
            )
            if configuration.include_metadata:
                document.metadata_preamble = self._preamble(
                    title,
                    table.source_location or metadata.source_location,
                    [f"{table.name}: {table.row_count} rows x {table.column_count} columns"],
                    table.units,
                    metadata,
                )
            documents.append(document)
        return documents

    def _metrics_document(
        self,
        metrics: List[MetricRecord],
        configuration: ExportConfiguration,
        metadata: ExportMetadata,
    ) -> CanonicalDocument:
        rows = [
            [
                m.label,
                m.normalized_value,
                m.format.value,
                m.unit or "",
                m.trend.value if m.trend else "",
                m.change_text or "",
                m.category,
            ]
            for m in metrics
        ]
        document = CanonicalDocument(
            sheet_name="Metrics",
            header_row=list(self.METRIC_HEADERS) if configuration.include_headers else None,
            rows=rows,
            title="Metrics",
            source_ids=[m.id for m in metrics],
            source_location=metadata.source_location,
        )
        if configuration.include_metadata:
            document.metadata_preamble = self._preamble(
                "Metrics", metadata.source_location, [f"Metrics: {len(metrics)} items"], {}, metadata
            )
        return document

    def _ranking_document(
        self,
        ranking: RankingRecord,
        configuration: ExportConfiguration,
        metadata: ExportMetadata,
    ) -> CanonicalDocument:
        document = CanonicalDocument(
            sheet_name=ranking.name,
            header_row=list(self.RANKING_HEADERS) if configuration.include_headers else None,
            rows=[[item.rank, item.name, item.value] for item in ranking.items],
            title=ranking.name,
            source_ids=[ranking.id],
            source_location=ranking.source_location,
        )
        if configuration.include_metadata:
            document.metadata_preamble = self._preamble(
                ranking.name,
                ranking.source_location or metadata.source_location,
                [f"{ranking.name}: {len(ranking.items)} items"],
                {},
                metadata,
            )
        return document

    def _chart_document(
        self,
        charts: List[ChartRecord],
        configuration: ExportConfiguration,
        metadata: ExportMetadata,
    ) -> CanonicalDocument:
        rows = []
        for chart in charts:
            box = chart.bounding_box
            rows.append([
                chart.name,
                chart.kind.value,
                box.x if box else "",
                box.y if box else "",
                box.width if box else "",
                box.height if box else "",
                chart.source_location,
            ])
        document = CanonicalDocument(
            sheet_name="Charts",
            header_row=list(self.CHART_HEADERS) if configuration.include_headers else None,
            rows=rows,
            title="Charts",
            source_ids=[c.id for c in charts],
            source_location=metadata.source_location,
        )
        if configuration.include_metadata:
            document.metadata_preamble = self._preamble(
                "Charts", metadata.source_location, [f"Charts: {len(charts)} items"], {}, metadata
            )
        return document

    def _combined(
        self,
        resolved: ResolvedSelection,
        configuration: ExportConfiguration,
        metadata: ExportMetadata,
    ) -> CanonicalDocument:
        """All selected items stacked in one sheet, each under its own title row."""
        sections = []
        for table in resolved.tables:
            sections.append((table.name, table.headers, table.rows))
        if resolved.metrics:
            metrics_doc = self._metrics_document(resolved.metrics, configuration, metadata)
            sections.append(("Metrics", self.METRIC_HEADERS, metrics_doc.rows))
        for ranking in resolved.rankings:
            sections.append((ranking.name, self.RANKING_HEADERS, [[i.rank, i.name, i.value] for i in ranking.items]))
        if resolved.charts:
            chart_doc = self._chart_document(resolved.charts, configuration, metadata)
            sections.append(("Charts", self.CHART_HEADERS, chart_doc.rows))

        rows: List[List[Any]] = []
        for index, (name, headers, section_rows) in enumerate(sections):
            if index > 0:
                rows.append([])
            rows.append([name])
            if configuration.include_headers:
                rows.append(list(headers))
            rows.extend(section_rows)

        units = {}
        for table in resolved.tables:
            for header, unit in table.units.items():
                units[f"{table.name} / {header}"] = unit

        document = CanonicalDocument(
            sheet_name="Combined Export",
            header_row=None,
            rows=rows,
            title="Combined Export",
            units=units,
            source_ids=[t.id for t in resolved.tables] + [m.id for m in resolved.metrics]
            + [r.id for r in resolved.rankings] + [c.id for c in resolved.charts],
            source_location=metadata.source_location,
        )
        if configuration.include_metadata:
            document.metadata_preamble = self._preamble(
                "Combined Export",
                metadata.source_location,
                [entry.describe() for entry in metadata.manifest],
                units,
                metadata,
            )
        return document

    def _preamble(
        self,
        title: str,
        location: str,
        manifest: List[str],
        units: Dict[str, str],
        metadata: ExportMetadata,
    ) -> List[List[str]]:
        lines = [
            ["Export", title],
            ["Generated", metadata.generated_label],
            ["Location", location],
        ]
        for index, entry in enumerate(manifest):
            lines.append(["Includes" if index == 0 else "", entry])
        if units:
            lines.append(["Units", ", ".join(f"{header}={unit}" for header, unit in units.items())])
        return lines

    # =========================================================================
    # SHEET NAMES
    # =========================================================================

    def name_limit(self, export_format: ExportFormat) -> int:
        return self.SHEET_NAME_LIMITS.get(export_format, self.DEFAULT_NAME_LIMIT)

    def sanitize_sheet_name(self, name: str, limit: int) -> str:
        """Replace : \\ / ? * [ ] with _ and truncate to the limit."""
        cleaned = self.INVALID_SHEET_CHARS.sub('_', name or "").strip()
        # workbook sheet names may not start or end with an apostrophe
        cleaned = cleaned.strip("'") or "Sheet"
        return cleaned[:limit].rstrip() or "Sheet"

    def _assign_sheet_names(self, documents: List[CanonicalDocument], configuration: ExportConfiguration) -> None:
        limit = self.name_limit(configuration.format)
        used: Set[str] = set()
        if configuration.format == ExportFormat.WORKBOOK and configuration.include_metadata:
            used.add(self.SUMMARY_SHEET.lower())

        for document in documents:
            name = self._fit_part_name(document, limit)
            candidate = name
            counter = 2
            while candidate.lower() in used:
                suffix = f" ({counter})"
                candidate = name[:limit - len(suffix)].rstrip() + suffix
                counter += 1
            used.add(candidate.lower())
            document.sheet_name = candidate

    def _fit_part_name(self, document: CanonicalDocument, limit: int) -> str:
        """Truncate the base name so a "(Part k)" suffix always survives."""
        if document.part_count > 1:
            suffix = f" (Part {document.part})"
            base = document.title[:-len(suffix)] if document.title.endswith(suffix) else document.title
            base = self.sanitize_sheet_name(base, limit - len(suffix)).rstrip()
            return base + suffix
        return self.sanitize_sheet_name(document.title or document.sheet_name, limit)
