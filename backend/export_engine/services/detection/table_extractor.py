"""
Table Extractor

Finds table-like regions in a page snapshot and turns each into a typed
TabularBlock.

Handles:
- Native <table> elements and ARIA tables/grids
- Component tables identified by class name (.data-table, .react-table, ...)
- List-like containers (leaderboards, stat grids) as Item / Value / Details

Usage:
    extractor = TableExtractor()
    result = extractor.extract(snapshot, registry=registry)
    for block in result.items:
        print(block.name, block.data_types)
"""

from typing import Any, Dict, List, Optional, Tuple
import logging

from export_engine.core.config import settings
from export_engine.exceptions.detection_exceptions import ExtractionFault
from export_engine.services.snapshot.node import PageSnapshot, SnapshotNode
from .base import BaseExtractor, ExtractionResult, RegionTracker, VisibilityPolicy
from .classifier import BlockClassifier
from .header_resolver import HeaderResolver, ResolvedHeaders
from .matchers import TABLE_MATCHERS, PatternMatcher
from .models import DetectionTier, SourceType, TabularBlock, ValueType
from .registry import TargetRegistry
from .value_parser import NumberLocale, ParsedValue, ValueParser, summarize_column

logger = logging.getLogger(__name__)


class TableExtractor(BaseExtractor):
    """
    Extract tabular blocks from a page snapshot.

    Matchers are tried in priority order (registry targets, markers,
    structural roles, class-name heuristics, list containers). A node
    inside a region that an earlier match already produced a block for is
    skipped, so one physical table yields one block.
    """

    STAGE = "tables"

    TABLE_ROOT_SELECTOR = 'table, [role="table"], [role="grid"]'
    GRID_ROW_SELECTOR = '[data-header-row], [role="row"], tr, [data-row], .table-row'
    TABLE_CELL_TAGS = ("td", "th")
    GRID_CELL_SELECTOR = (
        '[role="cell"], [role="gridcell"], [role="columnheader"], [role="rowheader"], '
        '[data-cell], .table-cell, .cell, td, th'
    )

    LIST_ITEM_SELECTOR = 'li, .item, .list-item, [data-item], [class*="item"]'
    LIST_VALUE_SELECTOR = '[data-value], .value, .number, .amount, .count'
    LIST_NAME_SELECTOR = '[data-name], .name, .title, .label, .key'
    LIST_HEADERS = ["Item", "Value", "Details"]

    NAME_ATTRIBUTES = ("data-table-name", "data-name", "aria-label")

    def __init__(
        self,
        parser: Optional[ValueParser] = None,
        classifier: Optional[BlockClassifier] = None,
        visibility: Optional[VisibilityPolicy] = None,
        max_rows: Optional[int] = None,
        sample_size: Optional[int] = None,
    ):
        super().__init__(visibility)
        self.parser = parser or ValueParser(NumberLocale(settings.DEFAULT_LOCALE))
        self.classifier = classifier or BlockClassifier()
        self.headers = HeaderResolver(self.clean_text)
        self.max_rows = max_rows or settings.MAX_ROWS_PER_BLOCK
        self.sample_size = sample_size or settings.TYPE_SAMPLE_SIZE

    def extract(
        self,
        snapshot: PageSnapshot,
        registry: Optional[TargetRegistry] = None,
        matchers: Optional[List[PatternMatcher]] = None,
        **kwargs
    ) -> ExtractionResult[TabularBlock]:
        """
        Extract all tabular blocks.

        Args:
            snapshot: The rendered view
            registry: Optional explicit targets, matched before anything else
            matchers: Override of the built-in matcher list

        Returns:
            ExtractionResult with TabularBlocks in detection order
        """
        result: ExtractionResult[TabularBlock] = ExtractionResult(view_name=snapshot.view_name)
        regions = RegionTracker()

        ordered = list(matchers if matchers is not None else TABLE_MATCHERS)
        if registry is not None:
            ordered = registry.matchers() + ordered

        for mi, matcher, ei, node in self.iter_candidates(snapshot, ordered, regions, result):
            try:
                block, region = self._extract_candidate(node, matcher, mi, ei, snapshot.view_name, regions)
            except Exception as e:
                result.add_fault(ExtractionFault(
                    f"Table candidate {mi}-{ei} ({matcher.name}) failed: {str(e)}",
                    stage=self.STAGE,
                    matcher=matcher.name,
                ))
                continue

            if block is None:
                continue

            regions.claim(node)
            if region is not None and region != node:
                regions.claim(region)
            result.items.append(block)
            logger.debug(f"Table '{block.name}' ({block.row_count}x{block.column_count}) via {matcher.name}")

        logger.info(f"Extracted {result.count} tables from '{snapshot.view_name}'")
        return result

    # =========================================================================
    # CANDIDATES
    # =========================================================================

    def _extract_candidate(
        self,
        node: SnapshotNode,
        matcher: PatternMatcher,
        mi: int,
        ei: int,
        view_name: str,
        regions: RegionTracker,
    ) -> Tuple[Optional[TabularBlock], Optional[SnapshotNode]]:
        if matcher.structure == "list":
            block = self._extract_list(node, matcher, mi, ei, view_name)
            return block, node

        root = self._resolve_root(node)
        if root != node and (regions.is_claimed(root) or not self.visibility(root)):
            return None, None

        if root.tag == "table":
            source_type = SourceType.TABLE
            rows = [r for r in root.select("tr") if r.closest("table") == root]
            cells_of = self._table_cells
        else:
            source_type = SourceType.GRID
            rows = self._grid_rows(root)
            cells_of = self._grid_cells

        rows = [r for r in rows if self.visibility(r)]
        if not rows:
            return None, root

        resolved = self.headers.resolve(root, rows, cells_of)
        if not resolved.headers:
            return None, root

        headers, raw_rows = self._collect_rows(rows, resolved, cells_of)
        if not headers or not raw_rows:
            return None, root

        block = self._build_block(
            block_id=f"table-{mi}-{ei}" if matcher.tier != DetectionTier.REGISTRY else self._registry_id(matcher),
            name=self._table_name(node, root, matcher, headers),
            headers=headers,
            raw_rows=raw_rows,
            matcher=matcher,
            source_type=source_type,
            hints=node.classes + root.classes + [node.get("data-table", "") or ""],
        )
        block.source_location = self.resolve_location(node, view_name)
        block.bounding_box = node.bounding_box or root.bounding_box
        return block, root

    def _resolve_root(self, node: SnapshotNode) -> SnapshotNode:
        """The matched node when it is a table itself, else its first inner table."""
        if node.tag == "table" or node.role in ("table", "grid"):
            return node
        inner = node.select_one(self.TABLE_ROOT_SELECTOR)
        return inner if inner is not None else node

    def _registry_id(self, matcher: PatternMatcher) -> str:
        return matcher.name.split(":", 1)[1] if ":" in matcher.name else matcher.name

    # =========================================================================
    # ROWS AND CELLS
    # =========================================================================

    def _table_cells(self, row: SnapshotNode) -> List[SnapshotNode]:
        return [c for c in row.children if c.tag in self.TABLE_CELL_TAGS]

    def _grid_rows(self, root: SnapshotNode) -> List[SnapshotNode]:
        rows = root.select(self.GRID_ROW_SELECTOR)
        # a row nested inside another row is a cell wrapper, not a row
        return [r for r in rows if not any(other != r and other.contains(r) for other in rows)]

    def _grid_cells(self, row: SnapshotNode) -> List[SnapshotNode]:
        cells = row.select(self.GRID_CELL_SELECTOR)
        outer = [c for c in cells if not any(other != c and other.contains(c) for other in cells)]
        if outer:
            return outer
        return row.children

    def _collect_rows(
        self,
        rows: List[SnapshotNode],
        resolved: ResolvedHeaders,
        cells_of,
    ) -> Tuple[List[str], List[List[str]]]:
        """
        Raw cell text per header position.

        Cells beyond the header row's width become extra ``Column N``
        columns; rows whose every cell is empty are dropped.
        """
        data_rows = [
            r for r in rows
            if r != resolved.header_row and not self._in_header_section(r)
        ]

        texts: List[List[str]] = []
        for row in data_rows:
            cells = [self.clean_text(c.text) for c in cells_of(row)]
            if not any(cells):
                continue
            if len(texts) >= self.max_rows:
                logger.warning(f"Row cap of {self.max_rows} reached, remaining rows skipped")
                break
            texts.append(cells)

        positions = list(resolved.positions)
        headers = list(resolved.headers)
        start = resolved.width if resolved.header_row is not None else len(positions)
        widest = max((len(t) for t in texts), default=0)
        for i in range(start, widest):
            headers.append(self._free_label(f"Column {i + 1}", headers))
            positions.append(i)

        raw_rows: List[List[str]] = []
        for cells in texts:
            row = [cells[p] if p < len(cells) else "" for p in positions]
            if any(row):
                raw_rows.append(row)

        return headers, raw_rows

    def _in_header_section(self, row: SnapshotNode) -> bool:
        return row.closest("thead") is not None

    @staticmethod
    def _free_label(label: str, taken: List[str]) -> str:
        candidate = label
        counter = 2
        while candidate in taken:
            candidate = f"{label} ({counter})"
            counter += 1
        return candidate

    # =========================================================================
    # LISTS
    # =========================================================================

    def _extract_list(
        self,
        node: SnapshotNode,
        matcher: PatternMatcher,
        mi: int,
        ei: int,
        view_name: str,
    ) -> Optional[TabularBlock]:
        items = node.select(self.LIST_ITEM_SELECTOR)
        items = [i for i in items if not any(o != i and o.contains(i) for o in items)]
        if not items:
            items = node.children
        items = [i for i in items if self.visibility(i)]

        raw_rows: List[List[str]] = []
        for index, item in enumerate(items):
            if len(raw_rows) >= self.max_rows:
                break
            text = self.clean_text(item.text)
            if not text:
                continue

            name_node = item.select_one(self.LIST_NAME_SELECTOR)
            value_node = item.select_one(self.LIST_VALUE_SELECTOR)
            name = self.clean_text(name_node.text) if name_node else ""
            value = self.clean_text(value_node.text) if value_node else ""
            name = name or f"Item {index + 1}"

            details = text
            for part in (name, value):
                if part:
                    details = details.replace(part, "", 1)
            details = self.clean_text(details)

            raw_rows.append([name, value or text, details])

        if not raw_rows:
            return None

        name = (
            self.find_heading(node)
            or node.get("aria-label")
            or node.get("data-label")
            or node.get("data-name")
            or f"List {mi + 1}-{ei + 1}"
        )

        block = self._build_block(
            block_id=f"list-{mi}-{ei}",
            name=name,
            headers=list(self.LIST_HEADERS),
            raw_rows=raw_rows,
            matcher=matcher,
            source_type=SourceType.LIST,
            hints=node.classes,
        )
        block.source_location = self.resolve_location(node, view_name)
        block.bounding_box = node.bounding_box
        return block

    # =========================================================================
    # TYPING AND METADATA
    # =========================================================================

    def _build_block(
        self,
        block_id: str,
        name: str,
        headers: List[str],
        raw_rows: List[List[str]],
        matcher: PatternMatcher,
        source_type: SourceType,
        hints: List[str],
    ) -> TabularBlock:
        """Type columns by majority vote, normalize cells and classify."""
        data_types: Dict[str, ValueType] = {}
        units: Dict[str, str] = {}
        summary: Dict[str, Dict[str, Any]] = {}
        columns: List[List[ParsedValue]] = []

        for ci, header in enumerate(headers):
            column_raw = [row[ci] for row in raw_rows]
            column_type = self.parser.infer_column_type(column_raw, header, self.sample_size)
            parsed = [self.parser.normalize(text, header, column_type) for text in column_raw]

            data_types[header] = column_type
            unit = self.parser.column_unit(parsed, column_type)
            if unit:
                units[header] = unit
            summary[header] = summarize_column([p.value for p in parsed], column_type)
            columns.append(parsed)

        rows = [[columns[ci][ri].value for ci in range(len(headers))] for ri in range(len(raw_rows))]

        category = self.classifier.category(headers)
        block = TabularBlock(
            id=block_id,
            name=name,
            headers=headers,
            rows=rows,
            category=category,
            kind=self.classifier.kind(headers, len(rows), hints=[h for h in hints if h]),
            confidence=self.classifier.confidence(matcher.tier),
            complexity=self.classifier.complexity(len(rows), len(headers)),
            detection_tier=matcher.tier,
            source_type=source_type,
            data_types=data_types,
            units=units,
            summary=summary,
        )
        if not block.name:
            block.name = self._fallback_name(block)
        return block

    def _table_name(
        self,
        node: SnapshotNode,
        root: SnapshotNode,
        matcher: PatternMatcher,
        headers: List[str],
    ) -> str:
        """
        Display name, first hit wins:
        registry name > name attributes > caption > data-table id > heading.
        Empty when nothing is found; the category fallback is applied later.
        """
        if matcher.display_name:
            return matcher.display_name

        for candidate in (node, root):
            for attribute in self.NAME_ATTRIBUTES:
                value = self.clean_text(candidate.get(attribute))
                if value:
                    return value

        caption = root.select_one("caption")
        if caption is not None and self.clean_text(caption.text):
            return self.clean_text(caption.text)

        marker = node.get("data-table") or root.get("data-table")
        if marker:
            return self.humanize(marker)

        return self.find_heading(node) or ""

    def _fallback_name(self, block: TabularBlock) -> str:
        category = block.category.value.capitalize()
        return f"{category} Data ({', '.join(block.headers[:3])})"
