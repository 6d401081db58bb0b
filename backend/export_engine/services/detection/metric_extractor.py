"""
Metric Extractor

Finds scalar KPI widgets (metric cards, stat tiles) and reads their label,
value and optional trend.
"""

from typing import List, Optional, Tuple
import re
import logging

from export_engine.core.config import settings
from export_engine.exceptions.detection_exceptions import ExtractionFault
from export_engine.services.snapshot.node import PageSnapshot, SnapshotNode
from .base import BaseExtractor, ExtractionResult, RegionTracker, VisibilityPolicy
from .classifier import BlockClassifier
from .matchers import METRIC_MATCHERS, PatternMatcher
from .models import MetricRecord, Trend, ValueType
from .value_parser import NumberLocale, ValueParser

logger = logging.getLogger(__name__)


class MetricExtractor(BaseExtractor):
    """
    Extract MetricRecords.

    Value and label come from explicit marker sub-nodes first; otherwise
    from the card's own leaf text (first numeric leaf is the value, first
    other leaf the label), with aria-label / title as a last resort for
    the label.
    """

    STAGE = "metrics"

    VALUE_SELECTOR = '[data-value], .metric-value, .kpi-value, .stat-value, .value, .number, .amount'
    LABEL_SELECTOR = '[data-label], .metric-label, .kpi-label, .label, .title, .name'
    TREND_SELECTOR = '[data-trend], .trend, .change, .delta, .growth'
    LABEL_ATTRIBUTES = ("aria-label", "title")

    UP_GLYPHS = re.compile(r"[↑▲]|(?:^|\s)\+\s*\d")
    DOWN_GLYPHS = re.compile(r"[↓▼]|(?:^|\s)[-−]\s*\d")
    UP_WORDS = re.compile(r"\b(?:up|increase|positive)\b", re.I)
    DOWN_WORDS = re.compile(r"\b(?:down|decrease|negative)\b", re.I)

    def __init__(
        self,
        parser: Optional[ValueParser] = None,
        classifier: Optional[BlockClassifier] = None,
        visibility: Optional[VisibilityPolicy] = None,
    ):
        super().__init__(visibility)
        self.parser = parser or ValueParser(NumberLocale(settings.DEFAULT_LOCALE))
        self.classifier = classifier or BlockClassifier()

    def extract(
        self,
        snapshot: PageSnapshot,
        matchers: Optional[List[PatternMatcher]] = None,
        **kwargs
    ) -> ExtractionResult[MetricRecord]:
        result: ExtractionResult[MetricRecord] = ExtractionResult(view_name=snapshot.view_name)
        regions = RegionTracker()
        ordered = matchers if matchers is not None else METRIC_MATCHERS

        for mi, matcher, ei, node in self.iter_candidates(snapshot, ordered, regions, result):
            # a wrapper around cards that were already read
            if regions.encloses_claimed(node):
                continue
            try:
                metric = self._extract_metric(node, f"metric-{mi}-{ei}", snapshot.view_name)
            except Exception as e:
                result.add_fault(ExtractionFault(
                    f"Metric candidate {mi}-{ei} ({matcher.name}) failed: {str(e)}",
                    stage=self.STAGE,
                    matcher=matcher.name,
                ))
                continue

            if metric is None:
                continue

            regions.claim(node)
            result.items.append(metric)

        logger.info(f"Extracted {result.count} metrics from '{snapshot.view_name}'")
        return result

    def _extract_metric(self, node: SnapshotNode, metric_id: str, view_name: str) -> Optional[MetricRecord]:
        value_text, value_node = self._resolve_value(node)
        label = self._resolve_label(node, value_node, value_text)

        if not value_text or not label or value_text == label:
            return None

        parsed = self.parser.parse(value_text, header=label)
        trend, change_text = self._resolve_trend(node)

        return MetricRecord(
            id=metric_id,
            label=label,
            raw_text=value_text,
            normalized_value=parsed.value,
            format=parsed.type,
            trend=trend,
            change_text=change_text,
            unit=parsed.unit,
            category=self.classifier.metric_category(label, value_text),
            source_location=self.resolve_location(node, view_name),
        )

    # =========================================================================
    # SUB-NODE RESOLUTION
    # =========================================================================

    def _leaves(self, node: SnapshotNode) -> List[SnapshotNode]:
        if not node.children:
            return [node] if self.clean_text(node.text) else []
        leaves = []
        for child in node.children:
            if not self.visibility(child):
                continue
            if child.children:
                leaves.extend(self._leaves(child))
            elif self.clean_text(child.text):
                leaves.append(child)
        return leaves

    def _resolve_value(self, node: SnapshotNode) -> Tuple[str, Optional[SnapshotNode]]:
        value_node = node.select_one(self.VALUE_SELECTOR)
        if value_node is not None:
            explicit = value_node.get("data-value")
            return self.clean_text(explicit or value_node.text), value_node

        explicit = node.get("data-value")
        if explicit:
            return self.clean_text(explicit), None

        for leaf in self._leaves(node):
            if leaf.closest(self.TREND_SELECTOR) is not None:
                continue
            text = self.clean_text(leaf.text)
            if self.parser.parse(text).type != ValueType.TEXT:
                return text, leaf

        return "", None

    def _resolve_label(self, node: SnapshotNode, value_node: Optional[SnapshotNode], value_text: str) -> str:
        for candidate in node.select(self.LABEL_SELECTOR):
            if value_node is not None and (candidate.contains(value_node) or value_node.contains(candidate)):
                continue
            text = self.clean_text(candidate.get("data-label") or candidate.text)
            if text and text != value_text:
                return text

        for leaf in self._leaves(node):
            if value_node is not None and value_node.contains(leaf):
                continue
            if leaf.closest(self.TREND_SELECTOR) is not None:
                continue
            text = self.clean_text(leaf.text)
            if text and text != value_text:
                return text

        for attribute in self.LABEL_ATTRIBUTES:
            text = self.clean_text(node.get(attribute))
            if text:
                return text

        for attribute in ("data-metric", "data-kpi", "data-stat"):
            marker = node.get(attribute)
            if marker:
                return self.humanize(marker)

        return ""

    def _resolve_trend(self, node: SnapshotNode) -> Tuple[Optional[Trend], Optional[str]]:
        trend_node = node.select_one(self.TREND_SELECTOR)
        if trend_node is None:
            return None, None

        declared = (trend_node.get("data-trend") or "").lower()
        if declared in (Trend.UP.value, Trend.DOWN.value, Trend.STABLE.value):
            return Trend(declared), trend_node.text or None

        # raw text keeps the arrow glyphs that clean_text would drop
        text = trend_node.text
        words = text + " " + " ".join(trend_node.classes)
        if self.UP_GLYPHS.search(text) or self.UP_WORDS.search(words):
            return Trend.UP, text or None
        if self.DOWN_GLYPHS.search(text) or self.DOWN_WORDS.search(words):
            return Trend.DOWN, text or None
        return Trend.STABLE, text or None
