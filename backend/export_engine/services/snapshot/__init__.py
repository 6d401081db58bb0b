"""
Page Snapshots

Read-only, queryable trees of the UI nodes rendered at scan time.
"""

from .node import BoundingBox, SnapshotNode, PageSnapshot
from .html_snapshot import HtmlSnapshot, HtmlNode

__all__ = [
    "BoundingBox",
    "SnapshotNode",
    "PageSnapshot",
    "HtmlSnapshot",
    "HtmlNode",
]
