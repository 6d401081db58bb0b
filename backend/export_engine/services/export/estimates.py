"""
Export Estimates

Rough size and duration estimates shown before an export starts.
"""

from dataclasses import dataclass
from typing import Dict, List
import math

from export_engine.schema.export_config import ExportFormat
from .documents import CanonicalDocument

AVERAGE_CELL_BYTES = 10

SIZE_FACTORS: Dict[ExportFormat, float] = {
    ExportFormat.CSV: 0.8,
    ExportFormat.WORKBOOK: 1.2,
    ExportFormat.PDF: 2.5,
    ExportFormat.JSON: 1.5,
    ExportFormat.ARCHIVE: 0.4,
    ExportFormat.CLIPBOARD: 0.8,
}


@dataclass
class ExportEstimate:
    rows: int
    columns: int
    sizes: Dict[ExportFormat, int]
    seconds: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "rows": self.rows,
            "columns": self.columns,
            "sizes": {fmt.value: format_bytes(size) for fmt, size in self.sizes.items()},
            "seconds": round(self.seconds, 2),
        }


def estimate_export_time(rows: int, columns: int) -> float:
    """Half a second minimum, plus a millisecond per row and ten per column."""
    return max(0.5, rows * 0.001 + columns * 0.01)


def estimate_sizes(cell_count: int) -> Dict[ExportFormat, int]:
    base = cell_count * AVERAGE_CELL_BYTES
    return {fmt: int(base * factor) for fmt, factor in SIZE_FACTORS.items()}


def estimate(documents: List[CanonicalDocument]) -> ExportEstimate:
    rows = sum(d.row_count for d in documents)
    columns = max((d.column_count for d in documents), default=0)
    cells = sum(d.row_count * d.column_count for d in documents)
    return ExportEstimate(
        rows=rows,
        columns=columns,
        sizes=estimate_sizes(cells),
        seconds=estimate_export_time(rows, columns),
    )


def format_bytes(size: int) -> str:
    """1536 -> '1.5 KB'"""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / (1024 ** index), 2)
    if value == int(value):
        value = int(value)
    return f"{value} {units[index]}"
