"""
Shared fixtures: a detection result shaped like a small studio dashboard
and a fixed clock so generated names and timestamps are predictable.
"""

from datetime import datetime

import pytest

from export_engine.services.detection.models import (
    ChartKind,
    ChartRecord,
    DetectionResult,
    DetectionTier,
    MetricRecord,
    RankingItem,
    RankingRecord,
    TableCategory,
    TabularBlock,
    Trend,
    ValueType,
)
from export_engine.services.snapshot.node import BoundingBox


FIXED_NOW = datetime(2024, 3, 1, 9, 30, 15)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def sample_result() -> DetectionResult:
    revenue = TabularBlock(
        id="table-4-0",
        name="Studio Revenue",
        headers=["Name", "Revenue", "Date"],
        rows=[
            ["Alice", 1200.0, "2024-01-05"],
            ["Bruno", 950.5, "2024-01-06"],
            ["Chen", 2100.0, "2024-01-07"],
        ],
        category=TableCategory.FINANCIAL,
        confidence=0.70,
        detection_tier=DetectionTier.STRUCTURAL,
        data_types={"Name": ValueType.TEXT, "Revenue": ValueType.CURRENCY, "Date": ValueType.DATE},
        units={"Revenue": "currency:USD"},
        source_location="sales-section",
    )
    attendance = TabularBlock(
        id="table-4-1",
        name="Class Attendance",
        headers=["Class", "Attendees", "Fill Rate"],
        rows=[
            ["Spin", 18, 90],
            ["Barre", 12, 60],
        ],
        category=TableCategory.PERFORMANCE,
        confidence=0.70,
        detection_tier=DetectionTier.STRUCTURAL,
        data_types={"Class": ValueType.TEXT, "Attendees": ValueType.NUMBER, "Fill Rate": ValueType.PERCENTAGE},
        units={"Fill Rate": "percent"},
        source_location="attendance-section",
    )
    metric = MetricRecord(
        id="metric-3-0",
        label="Total Revenue",
        raw_text="$12,500",
        normalized_value=12500,
        format=ValueType.CURRENCY,
        trend=Trend.UP,
        change_text="↑ 12%",
        unit="currency:USD",
        category="financial",
        source_location="overview",
    )
    chart = ChartRecord(
        id="chart-3-0",
        name="Attendance Trend",
        kind=ChartKind.CONTAINER,
        bounding_box=BoundingBox(x=10, y=20, width=400, height=300),
        source_location="charts-section",
    )
    ranking = RankingRecord(
        id="ranking-3-0",
        name="Top Instructors",
        items=[
            RankingItem(rank=1, name="Maya", value="98"),
            RankingItem(rank=2, name="Leo", value="91"),
        ],
        source_location="studio",
    )
    return DetectionResult(
        tables=[revenue, attendance],
        metrics=[metric],
        charts=[chart],
        rankings=[ranking],
        scanned_at=FIXED_NOW,
        view_name="studio",
    )
