"""
Deduplicator

Collapses tabular blocks that describe the same physical region. Broad and
narrow matchers can both hit one table; blocks with identical headers and
identical first three rows are one block.
"""

from typing import Dict, List
import logging

from .models import TabularBlock

logger = logging.getLogger(__name__)

SIGNATURE_ROWS = 3


def cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def block_signature(block: TabularBlock) -> str:
    """headers joined by '|', then the first three rows cell-joined."""
    head = "|".join(block.headers)
    body = "||".join("|".join(cell_text(c) for c in row) for row in block.rows[:SIGNATURE_ROWS])
    return head + body


def deduplicate(blocks: List[TabularBlock]) -> List[TabularBlock]:
    """
    Keep one block per signature.

    The survivor is the highest-confidence block (earliest on ties) and
    sits at the position where the signature first appeared.

    Args:
        blocks: Blocks in detection order

    Returns:
        New list without duplicates
    """
    slots: Dict[str, int] = {}
    kept: List[TabularBlock] = []

    for block in blocks:
        signature = block_signature(block)
        slot = slots.get(signature)
        if slot is None:
            slots[signature] = len(kept)
            kept.append(block)
            continue

        current = kept[slot]
        if block.confidence > current.confidence:
            logger.debug(f"Duplicate '{current.name}' replaced by higher-confidence '{block.name}'")
            kept[slot] = block
        else:
            logger.debug(f"Duplicate '{block.name}' dropped")

    if len(kept) != len(blocks):
        logger.info(f"Deduplicated {len(blocks)} blocks to {len(kept)}")
    return kept
