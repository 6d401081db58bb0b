"""
Pattern Matchers

Ordered, typed predicates used to locate candidate nodes. Each matcher
pairs a CSS selector with the detection tier that decides the confidence
of whatever it finds, and the structure the extractor should expect.

Order matters: earlier matchers claim regions first, so narrow, explicit
matchers come before broad structural and class-name guesses.
"""

from dataclasses import dataclass
from typing import List, Optional

from .models import DetectionTier


@dataclass(frozen=True)
class PatternMatcher:
    name: str
    selector: str
    tier: DetectionTier
    structure: str = "table"  # table | list
    display_name: Optional[str] = None  # registry targets carry their own name


def _m(selector: str, tier: DetectionTier, structure: str = "table") -> PatternMatcher:
    return PatternMatcher(name=selector, selector=selector, tier=tier, structure=structure)


# =============================================================================
# TABLES
# =============================================================================

TABLE_MATCHERS: List[PatternMatcher] = [
    # Marked tables
    _m('[data-table]', DetectionTier.MARKER),
    _m('[data-table-name]', DetectionTier.MARKER),
    _m('[data-testid*="table"]', DetectionTier.MARKER),

    # Structural roles
    _m('table[role="table"]', DetectionTier.STRUCTURAL),
    _m('table', DetectionTier.STRUCTURAL),
    _m('[role="table"]', DetectionTier.STRUCTURAL),
    _m('[role="grid"]', DetectionTier.STRUCTURAL),

    # Component class names
    _m('.data-table', DetectionTier.HEURISTIC),
    _m('.react-table', DetectionTier.HEURISTIC),
    _m('.ag-theme-alpine', DetectionTier.HEURISTIC),
    _m('.metric-table', DetectionTier.HEURISTIC),
    _m('.analytics-table', DetectionTier.HEURISTIC),
    _m('.summary-table', DetectionTier.HEURISTIC),
    _m('.dashboard-table', DetectionTier.HEURISTIC),
    _m('.report-table', DetectionTier.HEURISTIC),
    _m('.stats-table', DetectionTier.HEURISTIC),
    _m('[aria-label*="table"]', DetectionTier.HEURISTIC),

    # List-like data, converted to Item / Value / Details
    _m('.ranking-list', DetectionTier.HEURISTIC, "list"),
    _m('.leaderboard', DetectionTier.HEURISTIC, "list"),
    _m('.top-performers', DetectionTier.HEURISTIC, "list"),
    _m('.performance-list', DetectionTier.HEURISTIC, "list"),
    _m('.metric-grid', DetectionTier.HEURISTIC, "list"),
    _m('.stats-grid', DetectionTier.HEURISTIC, "list"),
    _m('.data-grid', DetectionTier.HEURISTIC, "list"),
]


# =============================================================================
# METRICS
# =============================================================================

METRIC_MATCHERS: List[PatternMatcher] = [
    _m('[data-metric]', DetectionTier.MARKER),
    _m('[data-kpi]', DetectionTier.MARKER),
    _m('[data-stat]', DetectionTier.MARKER),
    _m('.metric-card', DetectionTier.HEURISTIC),
    _m('.kpi-card', DetectionTier.HEURISTIC),
    _m('.stat-card', DetectionTier.HEURISTIC),
    _m('.summary-card', DetectionTier.HEURISTIC),
    _m('.hero-metric', DetectionTier.HEURISTIC),
    _m('[class*="metric"]', DetectionTier.HEURISTIC),
    _m('[class*="kpi"]', DetectionTier.HEURISTIC),
]


# =============================================================================
# CHARTS
# =============================================================================

CHART_MATCHERS: List[PatternMatcher] = [
    _m('[data-chart]', DetectionTier.MARKER),
    _m('[data-graph]', DetectionTier.MARKER),
    _m('.recharts-wrapper', DetectionTier.STRUCTURAL),
    _m('.chart-container', DetectionTier.HEURISTIC),
    _m('.graph-container', DetectionTier.HEURISTIC),
    _m('.plot-container', DetectionTier.HEURISTIC),
    _m('canvas', DetectionTier.STRUCTURAL),
    _m('svg[class*="chart"]', DetectionTier.STRUCTURAL),
    _m('svg[class*="graph"]', DetectionTier.STRUCTURAL),
    _m('.chart', DetectionTier.HEURISTIC),
    _m('.visualization', DetectionTier.HEURISTIC),
]


# =============================================================================
# RANKINGS
# =============================================================================

RANKING_MATCHERS: List[PatternMatcher] = [
    _m('[data-ranking]', DetectionTier.MARKER),
    _m('.ranking', DetectionTier.HEURISTIC),
    _m('.ranking-list', DetectionTier.HEURISTIC),
    _m('.leaderboard', DetectionTier.HEURISTIC),
    _m('.performance-ranking', DetectionTier.HEURISTIC),
    _m('.top-performers', DetectionTier.HEURISTIC),
    _m('.top-list', DetectionTier.HEURISTIC),
    _m('.top-items', DetectionTier.HEURISTIC),
]


def attribute_selector(attribute: str, value: str) -> str:
    """[attribute="value"] with the value quoted for CSS."""
    escaped = value.replace('\\', '\\\\').replace('"', '\\"')
    return f'[{attribute}="{escaped}"]'
