"""
Detection

Discovers exportable content (tables, metrics, charts, rankings) in a
page snapshot.
"""

from .models import (
    ValueType,
    TableCategory,
    TableKind,
    Complexity,
    DetectionTier,
    SourceType,
    Trend,
    ChartKind,
    TabularBlock,
    MetricRecord,
    ChartRecord,
    RankingItem,
    RankingRecord,
    DetectionResult,
)
from .base import BaseExtractor, ExtractionResult, VisibilityPolicy
from .value_parser import NumberLocale, ParsedValue, ValueParser
from .header_resolver import HeaderResolver, ResolvedHeaders
from .matchers import PatternMatcher, TABLE_MATCHERS, METRIC_MATCHERS, CHART_MATCHERS, RANKING_MATCHERS
from .registry import TargetRegistry
from .classifier import BlockClassifier, CONFIDENCE_BY_TIER
from .table_extractor import TableExtractor
from .metric_extractor import MetricExtractor
from .chart_locator import ChartLocator
from .ranking_extractor import RankingExtractor
from .deduplicator import block_signature, deduplicate
from .orchestrator import DetectionOrchestrator, DetectionConfig, ProgressCheckpoint, ScanState

__all__ = [
    # Models
    "ValueType",
    "TableCategory",
    "TableKind",
    "Complexity",
    "DetectionTier",
    "SourceType",
    "Trend",
    "ChartKind",
    "TabularBlock",
    "MetricRecord",
    "ChartRecord",
    "RankingItem",
    "RankingRecord",
    "DetectionResult",
    # Extraction
    "BaseExtractor",
    "ExtractionResult",
    "VisibilityPolicy",
    "NumberLocale",
    "ParsedValue",
    "ValueParser",
    "HeaderResolver",
    "ResolvedHeaders",
    "PatternMatcher",
    "TABLE_MATCHERS",
    "METRIC_MATCHERS",
    "CHART_MATCHERS",
    "RANKING_MATCHERS",
    "TargetRegistry",
    "BlockClassifier",
    "CONFIDENCE_BY_TIER",
    "TableExtractor",
    "MetricExtractor",
    "ChartLocator",
    "RankingExtractor",
    "block_signature",
    "deduplicate",
    # Orchestration
    "DetectionOrchestrator",
    "DetectionConfig",
    "ProgressCheckpoint",
    "ScanState",
]
