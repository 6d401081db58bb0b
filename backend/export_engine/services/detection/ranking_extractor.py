"""
Ranking Extractor

Reads ranked lists (leaderboards, top performers) as (rank, name, value)
items.
"""

from typing import List, Optional
import re
import logging

from export_engine.exceptions.detection_exceptions import ExtractionFault
from export_engine.services.snapshot.node import PageSnapshot, SnapshotNode
from .base import BaseExtractor, ExtractionResult, RegionTracker
from .matchers import RANKING_MATCHERS, PatternMatcher
from .models import RankingItem, RankingRecord

logger = logging.getLogger(__name__)


class RankingExtractor(BaseExtractor):
    """
    Extract RankingRecords.

    Each visible child item yields one RankingItem. Rank comes from a rank
    marker when present and parses as an integer, else the 1-based
    position; name from a name marker, else the item's first word; value
    from a value marker, else the item's last token.
    """

    STAGE = "rankings"

    ITEM_SELECTOR = 'li, [data-rank-item], .ranking-item, .leaderboard-item, .list-item, .item'
    RANK_SELECTOR = '[data-rank], .rank, .position, .badge'
    NAME_SELECTOR = '[data-name], .name, .title, .label'
    VALUE_SELECTOR = '[data-value], .value, .score, .amount, .number, .count'

    RANK_NUMBER = re.compile(r'\d+')

    def extract(
        self,
        snapshot: PageSnapshot,
        matchers: Optional[List[PatternMatcher]] = None,
        **kwargs
    ) -> ExtractionResult[RankingRecord]:
        result: ExtractionResult[RankingRecord] = ExtractionResult(view_name=snapshot.view_name)
        regions = RegionTracker()
        ordered = matchers if matchers is not None else RANKING_MATCHERS

        for mi, matcher, ei, node in self.iter_candidates(snapshot, ordered, regions, result):
            try:
                ranking = self._extract_ranking(node, f"ranking-{mi}-{ei}", snapshot.view_name, len(result.items) + 1)
            except Exception as e:
                result.add_fault(ExtractionFault(
                    f"Ranking candidate {mi}-{ei} ({matcher.name}) failed: {str(e)}",
                    stage=self.STAGE,
                    matcher=matcher.name,
                ))
                continue

            if ranking is None:
                continue

            regions.claim(node)
            result.items.append(ranking)

        logger.info(f"Extracted {result.count} rankings from '{snapshot.view_name}'")
        return result

    def _extract_ranking(
        self,
        node: SnapshotNode,
        ranking_id: str,
        view_name: str,
        position: int,
    ) -> Optional[RankingRecord]:
        entries = node.select(self.ITEM_SELECTOR)
        entries = [e for e in entries if not any(o != e and o.contains(e) for o in entries)]
        if not entries:
            entries = node.children
        entries = [e for e in entries if self.visibility(e) and self.clean_text(e.text)]
        if not entries:
            return None

        items = [self._extract_item(entry, index + 1) for index, entry in enumerate(entries)]

        name = (
            self.find_heading(node)
            or self.clean_text(node.get("aria-label"))
            or (self.humanize(node.get("data-ranking")) if node.get("data-ranking") else "")
            or f"Ranking {position}"
        )

        return RankingRecord(
            id=ranking_id,
            name=name,
            items=items,
            source_location=self.resolve_location(node, view_name),
        )

    def _extract_item(self, entry: SnapshotNode, index: int) -> RankingItem:
        text = self.clean_text(entry.text)
        tokens = text.split()

        rank = index
        rank_node = entry.select_one(self.RANK_SELECTOR)
        rank_text = entry.get("data-rank") or (rank_node.text if rank_node is not None else "")
        match = self.RANK_NUMBER.search(rank_text or "")
        if match:
            rank = int(match.group())

        name_node = entry.select_one(self.NAME_SELECTOR)
        name = self.clean_text(name_node.text) if name_node is not None else ""
        if not name:
            first = tokens[0] if tokens else ""
            if rank_node is not None and first == self.clean_text(rank_node.text) and len(tokens) > 1:
                first = tokens[1]
            name = first

        value_node = entry.select_one(self.VALUE_SELECTOR)
        if value_node is not None:
            value = self.clean_text(value_node.get("data-value") or value_node.text)
        else:
            value = tokens[-1] if len(tokens) > 1 else ""

        return RankingItem(rank=rank, name=name, value=value)
