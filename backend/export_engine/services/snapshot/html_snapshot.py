"""
HTML Snapshot

Page snapshot backed by serialized HTML. The host UI serializes the
visible view (outerHTML) at scan time and records the rendered geometry of
each element as ``data-bbox="x,y,width,height"``; computed visibility is
read from the ``hidden`` attribute, ``aria-hidden`` and inline styles.

Usage:
    snapshot = HtmlSnapshot(html, view_name="sales")
    for node in snapshot.select("table"):
        print(node.text)
"""

from bs4 import BeautifulSoup, Tag
from typing import Dict, List, Optional
import re
import logging

from .node import BoundingBox, SnapshotNode, PageSnapshot
from export_engine.exceptions.detection_exceptions import SnapshotUnavailableFault

logger = logging.getLogger(__name__)


HIDDEN_STYLE_PATTERNS = [
    re.compile(r'(?:^|;)\s*display\s*:\s*none\b', re.I),
    re.compile(r'(?:^|;)\s*visibility\s*:\s*(?:hidden|collapse)\b', re.I),
    re.compile(r'(?:^|;)\s*opacity\s*:\s*0*(?:\.0+)?\s*(?:;|$)', re.I),
]

WHITESPACE = re.compile(r'\s+')


def _parse_bbox(raw: Optional[str]) -> Optional[BoundingBox]:
    if not raw:
        return None
    parts = [p.strip() for p in raw.split(',')]
    if len(parts) != 4:
        return None
    try:
        x, y, width, height = (float(p) for p in parts)
    except ValueError:
        return None
    return BoundingBox(x=x, y=y, width=width, height=height)


def _attr_text(value) -> str:
    # bs4 returns multi-valued attributes (class, rel) as lists
    if isinstance(value, list):
        return ' '.join(value)
    return str(value)


class HtmlNode(SnapshotNode):
    """SnapshotNode wrapping one BeautifulSoup tag."""

    def __init__(self, tag: Tag, snapshot: "HtmlSnapshot"):
        self._tag = tag
        self._snapshot = snapshot
        self._text: Optional[str] = None
        self._attrs: Optional[Dict[str, str]] = None

    def __eq__(self, other) -> bool:
        return isinstance(other, HtmlNode) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    def __repr__(self) -> str:
        return f"<HtmlNode {self.tag} #{self.order}>"

    @property
    def is_document(self) -> bool:
        return isinstance(self._tag, BeautifulSoup)

    @property
    def tag(self) -> str:
        return self._tag.name or ""

    @property
    def attrs(self) -> Dict[str, str]:
        if self._attrs is None:
            self._attrs = {k: _attr_text(v) for k, v in self._tag.attrs.items()}
        return self._attrs

    @property
    def text(self) -> str:
        if self._text is None:
            raw = self._tag.get_text(' ')
            self._text = WHITESPACE.sub(' ', raw).strip()
        return self._text

    @property
    def bounding_box(self) -> Optional[BoundingBox]:
        return _parse_bbox(self.get('data-bbox'))

    @property
    def own_hidden(self) -> bool:
        if self.is_document:
            return False
        attrs = self._tag.attrs
        if 'hidden' in attrs:
            return True
        if str(attrs.get('aria-hidden', '')).lower() == 'true':
            return True
        style = self.get('style') or ''
        return any(p.search(style) for p in HIDDEN_STYLE_PATTERNS)

    @property
    def is_hidden(self) -> bool:
        if self.own_hidden:
            return True
        return any(
            isinstance(a, HtmlNode) and a.own_hidden
            for a in self.ancestors()
        )

    @property
    def parent(self) -> Optional[SnapshotNode]:
        parent = self._tag.parent
        if parent is None:
            return None
        return self._snapshot.wrap(parent)

    @property
    def children(self) -> List[SnapshotNode]:
        return [self._snapshot.wrap(c) for c in self._tag.find_all(True, recursive=False)]

    @property
    def previous_sibling(self) -> Optional[SnapshotNode]:
        sibling = self._tag.find_previous_sibling(True)
        return self._snapshot.wrap(sibling) if sibling is not None else None

    @property
    def next_sibling(self) -> Optional[SnapshotNode]:
        sibling = self._tag.find_next_sibling(True)
        return self._snapshot.wrap(sibling) if sibling is not None else None

    @property
    def order(self) -> int:
        return self._snapshot.order_of(self._tag)

    def select(self, selector: str) -> List[SnapshotNode]:
        return [self._snapshot.wrap(t) for t in self._tag.select(selector)]

    def matches(self, selector: str) -> bool:
        if self.is_document:
            return False
        return bool(self._tag.css.match(selector))


class HtmlSnapshot(PageSnapshot):
    """
    Snapshot over serialized HTML.

    Args:
        html: outerHTML of the visible view (None when the host could not
              capture one)
        view_name: name of the current tab or page, used as the fallback
                   source location
    """

    def __init__(self, html: Optional[str], view_name: str = "dashboard"):
        self.html = html
        self.view_name = view_name
        self._soup: Optional[BeautifulSoup] = None
        self._order: Dict[int, int] = {}
        self._nodes: Dict[int, HtmlNode] = {}

    def ensure_available(self) -> None:
        if self.html is None or not self.html.strip():
            raise SnapshotUnavailableFault("The page snapshot is empty.")
        if self._soup is None:
            try:
                self._soup = BeautifulSoup(self.html, 'html.parser')
            except Exception as e:
                raise SnapshotUnavailableFault(f"The page snapshot could not be parsed: {str(e)}")
            self._order = {id(t): i for i, t in enumerate(self._soup.find_all(True))}
            logger.debug(f"Snapshot '{self.view_name}' parsed with {len(self._order)} elements")

    @property
    def root(self) -> SnapshotNode:
        self.ensure_available()
        return self.wrap(self._soup)

    def wrap(self, tag: Tag) -> HtmlNode:
        key = id(tag)
        node = self._nodes.get(key)
        if node is None:
            node = HtmlNode(tag, self)
            self._nodes[key] = node
        return node

    def order_of(self, tag: Tag) -> int:
        return self._order.get(id(tag), -1)
