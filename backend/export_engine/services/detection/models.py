"""
Detection Models

In-memory records produced by one scan. None of these are persisted:
a DetectionResult lives until the next scan replaces it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from export_engine.services.snapshot.node import BoundingBox


class ValueType(str, Enum):
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    NUMBER = "number"
    DATE = "date"
    TEXT = "text"


class TableCategory(str, Enum):
    FINANCIAL = "financial"
    PERFORMANCE = "performance"
    BEHAVIOR = "behavior"
    ANALYSIS = "analysis"
    OPERATIONAL = "operational"


class TableKind(str, Enum):
    MONTH_ON_MONTH = "month-on-month"
    YEAR_ON_YEAR = "year-on-year"
    PERFORMANCE = "performance"
    ANALYTICS = "analytics"
    SUMMARY = "summary"
    UNKNOWN = "unknown"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class DetectionTier(str, Enum):
    REGISTRY = "registry"
    MARKER = "marker"
    STRUCTURAL = "structural"
    HEURISTIC = "heuristic"


class SourceType(str, Enum):
    TABLE = "table"
    GRID = "grid"
    LIST = "list"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class ChartKind(str, Enum):
    CANVAS = "canvas"
    SVG = "svg"
    CONTAINER = "container"


@dataclass
class TabularBlock:
    """
    Canonical representation of one detected table-like region.

    Cells hold normalized values: numbers for currency, percentage and
    number columns, ISO strings for dates, plain text otherwise. The unit
    of each currency/percentage column lives in ``units``.
    """
    # === Identity ===
    id: str
    name: str

    # === Structure ===
    headers: List[str]
    rows: List[List[Any]]

    # === Classification ===
    category: TableCategory = TableCategory.OPERATIONAL
    kind: TableKind = TableKind.UNKNOWN
    confidence: float = 0.0
    complexity: Complexity = Complexity.SIMPLE
    detection_tier: DetectionTier = DetectionTier.HEURISTIC
    source_type: SourceType = SourceType.TABLE

    # === Type Information ===
    data_types: Dict[str, ValueType] = field(default_factory=dict)
    units: Dict[str, str] = field(default_factory=dict)
    summary: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    # === Position ===
    source_location: str = ""
    bounding_box: Optional[BoundingBox] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "headers": self.headers,
            "rows": self.rows,
            "category": self.category.value,
            "kind": self.kind.value,
            "confidence": self.confidence,
            "complexity": self.complexity.value,
            "detection_tier": self.detection_tier.value,
            "source_type": self.source_type.value,
            "row_count": self.row_count,
            "column_count": self.column_count,
            "data_types": {h: t.value for h, t in self.data_types.items()},
            "units": self.units,
            "summary": self.summary,
            "source_location": self.source_location,
            "bounding_box": self.bounding_box.to_dict() if self.bounding_box else None,
        }


@dataclass
class MetricRecord:
    """One scalar KPI widget."""
    id: str
    label: str
    raw_text: str
    normalized_value: Any
    format: ValueType
    trend: Optional[Trend] = None
    change_text: Optional[str] = None
    unit: Optional[str] = None
    category: str = "general"
    source_location: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "raw_text": self.raw_text,
            "normalized_value": self.normalized_value,
            "format": self.format.value,
            "trend": self.trend.value if self.trend else None,
            "change_text": self.change_text,
            "unit": self.unit,
            "category": self.category,
            "source_location": self.source_location,
        }


@dataclass
class ChartRecord:
    """Where a chart sits on the page. Holds no series data."""
    id: str
    name: str
    kind: ChartKind
    bounding_box: Optional[BoundingBox] = None
    source_location: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "bounding_box": self.bounding_box.to_dict() if self.bounding_box else None,
            "source_location": self.source_location,
        }


@dataclass
class RankingItem:
    rank: int
    name: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"rank": self.rank, "name": self.name, "value": self.value}


@dataclass
class RankingRecord:
    id: str
    name: str
    items: List[RankingItem] = field(default_factory=list)
    source_location: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
            "source_location": self.source_location,
        }


@dataclass
class DetectionResult:
    """Everything one scan found, plus the faults it recovered from."""
    tables: List[TabularBlock] = field(default_factory=list)
    metrics: List[MetricRecord] = field(default_factory=list)
    charts: List[ChartRecord] = field(default_factory=list)
    rankings: List[RankingRecord] = field(default_factory=list)
    scanned_at: datetime = field(default_factory=datetime.now)
    view_name: str = ""
    faults: List[str] = field(default_factory=list)

    @property
    def total_detected(self) -> int:
        return len(self.tables) + len(self.metrics) + len(self.charts) + len(self.rankings)

    @property
    def is_empty(self) -> bool:
        return self.total_detected == 0

    def find_table(self, table_id: str) -> Optional[TabularBlock]:
        return next((t for t in self.tables if t.id == table_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tables": [t.to_dict() for t in self.tables],
            "metrics": [m.to_dict() for m in self.metrics],
            "charts": [c.to_dict() for c in self.charts],
            "rankings": [r.to_dict() for r in self.rankings],
            "scanned_at": self.scanned_at.isoformat(),
            "view_name": self.view_name,
            "faults": self.faults,
        }
