"""
Chart Locator

Records where charts sit on the page. Series data and pixels are not
read; when images are wanted at export time they come from a chart
image provider supplied by the caller.
"""

from typing import List, Optional
import logging

from export_engine.exceptions.detection_exceptions import ExtractionFault
from export_engine.services.snapshot.node import PageSnapshot, SnapshotNode
from .base import BaseExtractor, ExtractionResult, RegionTracker
from .matchers import CHART_MATCHERS, PatternMatcher
from .models import ChartKind, ChartRecord

logger = logging.getLogger(__name__)


class ChartLocator(BaseExtractor):
    """Locate canvas, chart-classed SVG and chart container nodes."""

    STAGE = "charts"

    def extract(
        self,
        snapshot: PageSnapshot,
        matchers: Optional[List[PatternMatcher]] = None,
        **kwargs
    ) -> ExtractionResult[ChartRecord]:
        result: ExtractionResult[ChartRecord] = ExtractionResult(view_name=snapshot.view_name)
        regions = RegionTracker()
        ordered = matchers if matchers is not None else CHART_MATCHERS

        for mi, matcher, ei, node in self.iter_candidates(snapshot, ordered, regions, result):
            # a layout wrapper around charts that were already recorded
            if regions.encloses_claimed(node):
                continue
            try:
                chart = ChartRecord(
                    id=f"chart-{mi}-{ei}",
                    name=self._chart_name(node, len(result.items) + 1),
                    kind=self._chart_kind(node),
                    bounding_box=node.bounding_box,
                    source_location=self.resolve_location(node, snapshot.view_name),
                )
            except Exception as e:
                result.add_fault(ExtractionFault(
                    f"Chart candidate {mi}-{ei} ({matcher.name}) failed: {str(e)}",
                    stage=self.STAGE,
                    matcher=matcher.name,
                ))
                continue

            regions.claim(node)
            result.items.append(chart)

        logger.info(f"Located {result.count} charts in '{snapshot.view_name}'")
        return result

    def _chart_kind(self, node: SnapshotNode) -> ChartKind:
        if node.tag == "canvas":
            return ChartKind.CANVAS
        if node.tag == "svg":
            return ChartKind.SVG
        return ChartKind.CONTAINER

    def _chart_name(self, node: SnapshotNode, position: int) -> str:
        """Nearest heading > accessible label > Chart N."""
        heading = self.find_heading(node)
        if heading:
            return heading

        for attribute in ("aria-label", "data-chart", "title"):
            label = self.clean_text(node.get(attribute))
            if label:
                return label if attribute != "data-chart" else self.humanize(label)

        return f"Chart {position}"
