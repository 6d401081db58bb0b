"""
Header Resolver

Picks the header row of a table-like block using an ordered fallback:

1. explicit header-row marker (``thead tr``, ``[data-header-row]``)
2. first row whose cells all carry a header role (``th``, ``role=columnheader``)
3. first row with any text
4. synthetic ``Column N`` labels sized to the widest row
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional
import logging

from export_engine.services.snapshot.node import SnapshotNode

logger = logging.getLogger(__name__)

CellsOf = Callable[[SnapshotNode], List[SnapshotNode]]
Cleaner = Callable[[Optional[str]], str]


@dataclass
class ResolvedHeaders:
    """
    Headers kept after resolution.

    ``positions[i]`` is the source cell index that ``headers[i]`` labels;
    ``width`` is the number of cells in the source header row.
    """
    headers: List[str] = field(default_factory=list)
    positions: List[int] = field(default_factory=list)
    header_row: Optional[SnapshotNode] = None
    width: int = 0
    strategy: str = "synthetic"


class HeaderResolver:
    """Resolves headers for table, grid and list blocks."""

    EXPLICIT_SELECTOR = "thead tr, [data-header-row]"
    HEADER_CELL_TAGS = ("th",)
    HEADER_CELL_ROLES = ("columnheader",)

    def __init__(self, clean: Cleaner):
        self.clean = clean

    def resolve(self, root: SnapshotNode, rows: List[SnapshotNode], cells_of: CellsOf) -> ResolvedHeaders:
        """
        Resolve the header row of a block.

        Args:
            root: The block's root node
            rows: The block's row nodes, in document order
            cells_of: Returns the cell nodes of a row

        Returns:
            ResolvedHeaders (synthetic when no row qualifies)
        """
        # Strategy 1: explicit marker
        for candidate in root.select(self.EXPLICIT_SELECTOR):
            if candidate not in rows:
                continue
            resolved = self._from_row(candidate, cells_of, "explicit")
            if resolved is not None:
                return resolved

        # Strategy 2: header-role cells
        for row in rows:
            cells = cells_of(row)
            if cells and all(self._is_header_cell(c) for c in cells):
                resolved = self._from_row(row, cells_of, "header-role")
                if resolved is not None:
                    return resolved

        # Strategy 3: first row with text
        for row in rows:
            resolved = self._from_row(row, cells_of, "first-row")
            if resolved is not None:
                return resolved

        # Strategy 4: synthetic labels
        width = max((len(cells_of(row)) for row in rows), default=0)
        return ResolvedHeaders(
            headers=[f"Column {i + 1}" for i in range(width)],
            positions=list(range(width)),
            header_row=None,
            width=width,
            strategy="synthetic",
        )

    def _is_header_cell(self, cell: SnapshotNode) -> bool:
        return cell.tag in self.HEADER_CELL_TAGS or cell.role in self.HEADER_CELL_ROLES

    def _from_row(self, row: SnapshotNode, cells_of: CellsOf, strategy: str) -> Optional[ResolvedHeaders]:
        cells = cells_of(row)
        texts = [self.clean(c.text) for c in cells]
        if not any(texts):
            return None

        headers: List[str] = []
        positions: List[int] = []
        seen = set()

        for i, text in enumerate(texts):
            label = text or f"Column {i + 1}"
            if label in seen:
                logger.debug(f"Duplicate header '{label}' at position {i} suppressed")
                continue
            seen.add(label)
            headers.append(label)
            positions.append(i)

        return ResolvedHeaders(
            headers=headers,
            positions=positions,
            header_row=row,
            width=len(cells),
            strategy=strategy,
        )
