"""
Classifier & Scorer

Assigns confidence, category, kind and complexity to extracted blocks.
Confidence depends on how a block was found, never on its content.
"""

from typing import Dict, Iterable, List, Optional

from .models import Complexity, DetectionTier, TableCategory, TableKind


CONFIDENCE_BY_TIER: Dict[DetectionTier, float] = {
    DetectionTier.REGISTRY: 0.95,
    DetectionTier.MARKER: 0.85,
    DetectionTier.STRUCTURAL: 0.70,
    DetectionTier.HEURISTIC: 0.60,
}


class BlockClassifier:
    """
    Keyword classification of tabular blocks.

    Usage:
        classifier = BlockClassifier()
        classifier.category(["Name", "Revenue"])  # TableCategory.FINANCIAL
    """

    CATEGORY_KEYWORDS = [
        (TableCategory.FINANCIAL, ['revenue', 'sales', 'payment', 'price', 'cost', 'amount', 'income']),
        (TableCategory.PERFORMANCE, ['performance', 'metric', 'kpi', 'score', 'utilization', 'fill']),
        (TableCategory.BEHAVIOR, ['behavior', 'behaviour', 'customer', 'user', 'client', 'member', 'retention']),
        (TableCategory.ANALYSIS, ['analysis', 'comparison', 'trend', 'variance', 'growth']),
    ]

    KIND_KEYWORDS = [
        (TableKind.MONTH_ON_MONTH, ['month-on-month', 'month on month', 'monthonmonth', 'mom', 'month']),
        (TableKind.YEAR_ON_YEAR, ['year-on-year', 'year on year', 'yearonyear', 'yoy', 'year']),
        (TableKind.PERFORMANCE, ['performance']),
        (TableKind.ANALYTICS, ['analytics', 'analysis']),
    ]

    SUMMARY_ROW_LIMIT = 10

    def confidence(self, tier: DetectionTier) -> float:
        return CONFIDENCE_BY_TIER[tier]

    def category(self, headers: Iterable[str]) -> TableCategory:
        text = ' '.join(headers).lower()
        for category, keywords in self.CATEGORY_KEYWORDS:
            if any(k in text for k in keywords):
                return category
        return TableCategory.OPERATIONAL

    def kind(self, headers: Iterable[str], row_count: int, hints: Optional[List[str]] = None) -> TableKind:
        """
        Kind from header text and container hints (class names, marker ids).

        Hints are checked first; header text second; a block under ten rows
        with no keyword match is a summary.
        """
        for source in (' '.join(hints or []), ' '.join(headers)):
            words = source.lower()
            if not words:
                continue
            tokens = set(words.replace('-', ' ').replace('_', ' ').split())
            for kind, keywords in self.KIND_KEYWORDS:
                for keyword in keywords:
                    if ' ' in keyword or '-' in keyword:
                        if keyword in words:
                            return kind
                    elif keyword in tokens:
                        return kind

        if row_count < self.SUMMARY_ROW_LIMIT:
            return TableKind.SUMMARY
        return TableKind.UNKNOWN

    def complexity(self, row_count: int, column_count: int) -> Complexity:
        if row_count > 100 or column_count > 10:
            return Complexity.COMPLEX
        if row_count > 20 or column_count > 5:
            return Complexity.MODERATE
        return Complexity.SIMPLE

    # =========================================================================
    # METRICS
    # =========================================================================

    def metric_category(self, label: str, value_text: str = "") -> str:
        """financial | customer | performance | volume | general"""
        name = label.lower()
        if any(k in name for k in ('revenue', 'sales')) or '$' in value_text:
            return "financial"
        if any(k in name for k in ('customer', 'member', 'user', 'client')):
            return "customer"
        if any(k in name for k in ('performance', 'conversion', 'rate')):
            return "performance"
        if any(k in name for k in ('count', 'total', 'number')):
            return "volume"
        return "general"
