"""
Base Extractor

Abstract base class for all view extractors.
Provides the common candidate walk (visibility, nested-region exclusion,
per-node fault isolation) and the naming/location helpers every
extractor shares.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Iterator, List, Optional, Tuple, TypeVar
import re
import logging

from export_engine.exceptions.detection_exceptions import ExtractionFault
from export_engine.services.snapshot.node import PageSnapshot, SnapshotNode
from .matchers import PatternMatcher

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class ExtractionResult(Generic[T]):
    """
    Generic result container for extraction operations.

    Contains the extracted items plus the faults that were recovered
    while producing them.
    """
    items: List[T] = field(default_factory=list)
    extraction_timestamp: datetime = field(default_factory=datetime.now)
    view_name: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    faults: List[ExtractionFault] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.items)

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)
        logger.warning(f"Extraction warning: {warning}")

    def add_fault(self, fault: ExtractionFault) -> None:
        self.faults.append(fault)
        self.add_warning(fault.detail)


@dataclass
class VisibilityPolicy:
    """
    The one visibility predicate used by every extractor.

    A node is visible when it is not hidden (itself or via an ancestor)
    and its rendered box, when known, has a non-zero area. Setting
    ``enabled`` to False accepts every node, for snapshots taken without
    layout information.
    """
    enabled: bool = True

    def __call__(self, node: SnapshotNode) -> bool:
        if not self.enabled:
            return True
        if node.is_hidden:
            return False
        box = node.bounding_box
        if box is not None and box.is_empty:
            return False
        return True


class RegionTracker:
    """Remembers accepted regions so nested matches are not counted twice."""

    def __init__(self):
        self._regions: List[SnapshotNode] = []

    def is_claimed(self, node: SnapshotNode) -> bool:
        return any(region.contains(node) for region in self._regions)

    def encloses_claimed(self, node: SnapshotNode) -> bool:
        """True when an accepted region lies inside node."""
        return any(node.contains(region) for region in self._regions)

    def claim(self, node: SnapshotNode) -> None:
        self._regions.append(node)

    def __len__(self) -> int:
        return len(self._regions)


class BaseExtractor(ABC):
    """
    Abstract base class for view extractors.

    All extractors should inherit from this class and implement
    the extract() method.

    Common utilities provided:
    - Candidate iteration over an ordered matcher list
    - Text cleaning
    - Nearest-heading lookup
    - Source location paths
    """

    STAGE = "base"

    SORT_GLYPHS = re.compile(r'[↑↓▲▼⟳⟴⇅⇵]')

    HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6, .title, .heading"
    CONTAINER_SELECTOR = "section, .card, .widget, [class*='section']"

    LOCATION_HINTS = ("section", "tab", "panel", "card")

    def __init__(self, visibility: Optional[VisibilityPolicy] = None):
        self.visibility = visibility or VisibilityPolicy()

    @abstractmethod
    def extract(self, snapshot: PageSnapshot, **kwargs) -> ExtractionResult:
        """
        Extract records from a page snapshot.

        Args:
            snapshot: The rendered view to inspect
            **kwargs: Extractor-specific parameters

        Returns:
            ExtractionResult containing the extracted items
        """
        pass

    # =========================================================================
    # CANDIDATE WALK
    # =========================================================================

    def iter_candidates(
        self,
        snapshot: PageSnapshot,
        matchers: List[PatternMatcher],
        regions: RegionTracker,
        result: ExtractionResult,
    ) -> Iterator[Tuple[int, PatternMatcher, int, SnapshotNode]]:
        """
        Yield (matcher_index, matcher, element_index, node) for every
        visible, unclaimed match, in matcher priority order.

        A matcher whose query fails is recorded as a fault and skipped;
        zero matches is normal.
        """
        for matcher_index, matcher in enumerate(matchers):
            try:
                nodes = snapshot.select(matcher.selector)
            except Exception as e:
                result.add_fault(ExtractionFault(
                    f"Matcher '{matcher.name}' failed: {str(e)}",
                    stage=self.STAGE,
                    matcher=matcher.name,
                ))
                continue

            for element_index, node in enumerate(nodes):
                if not self.visibility(node):
                    continue
                if regions.is_claimed(node):
                    continue
                yield matcher_index, matcher, element_index, node

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def clean_text(self, text: Optional[str]) -> str:
        """Clean and normalize text, dropping sort indicators."""
        if not text:
            return ""

        text = self.SORT_GLYPHS.sub('', text)
        text = re.sub(r'\s+', ' ', text)
        return text.strip()

    def find_heading(self, node: SnapshotNode) -> Optional[str]:
        """
        Nearest heading text for a node.

        Checks the immediately preceding sibling first, then the headings
        of the enclosing section/card/widget that are not inside the node
        itself: the last one before the node wins, else the first one.
        """
        previous = node.previous_sibling
        if previous is not None and previous.matches(self.HEADING_SELECTOR):
            text = self.clean_text(previous.text)
            if text:
                return text

        container = node.closest(self.CONTAINER_SELECTOR)
        if container is None or container == node:
            parent = node.parent
            container = parent.closest(self.CONTAINER_SELECTOR) if parent else None
        if container is None:
            return None

        candidates = [
            h for h in container.select(self.HEADING_SELECTOR)
            if not node.contains(h) and self.clean_text(h.text)
        ]
        if not candidates:
            return None

        preceding = [h for h in candidates if h.order < node.order]
        heading = preceding[-1] if preceding else candidates[0]
        return self.clean_text(heading.text)

    def resolve_location(self, node: SnapshotNode, view_name: str) -> str:
        """
        Path of up to three enclosing section/tab/panel/card class names,
        innermost first; the view name when none are found.
        """
        parts: List[str] = []
        for ancestor in node.ancestors():
            if len(parts) >= 3:
                break
            matching = [
                c for c in ancestor.classes
                if any(hint in c.lower() for hint in self.LOCATION_HINTS)
            ]
            if matching:
                parts.append(matching[0])

        return " > ".join(parts) if parts else view_name

    def humanize(self, identifier: str) -> str:
        """month-on-month -> Month On Month"""
        words = re.split(r'[-_\s]+', identifier.strip())
        return ' '.join(w.capitalize() for w in words if w)
