"""
Snapshot Node Interface

The detection engine never touches a concrete DOM. Everything it needs
from the rendered view goes through these two abstract classes, so a
snapshot can come from serialized HTML, a test double, or a live
accessibility tree.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Any


@dataclass(frozen=True)
class BoundingBox:
    """Position and size of a node in CSS pixels."""
    x: float
    y: float
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


class SnapshotNode(ABC):
    """
    One rendered UI node.

    Equality is identity of the underlying rendered node, so two wrappers
    around the same element compare equal.
    """

    @property
    @abstractmethod
    def tag(self) -> str:
        pass

    @property
    @abstractmethod
    def attrs(self) -> Dict[str, str]:
        pass

    @property
    @abstractmethod
    def text(self) -> str:
        """Whitespace-normalized text content of the node and its subtree."""
        pass

    @property
    @abstractmethod
    def bounding_box(self) -> Optional[BoundingBox]:
        """Rendered geometry, or None when the snapshot carries no layout."""
        pass

    @property
    @abstractmethod
    def is_hidden(self) -> bool:
        """Computed visibility: hidden on this node or on any ancestor."""
        pass

    @property
    @abstractmethod
    def parent(self) -> Optional["SnapshotNode"]:
        pass

    @property
    @abstractmethod
    def children(self) -> List["SnapshotNode"]:
        pass

    @property
    @abstractmethod
    def previous_sibling(self) -> Optional["SnapshotNode"]:
        pass

    @property
    @abstractmethod
    def next_sibling(self) -> Optional["SnapshotNode"]:
        pass

    @property
    @abstractmethod
    def order(self) -> int:
        """Position of the node in document order."""
        pass

    @abstractmethod
    def select(self, selector: str) -> List["SnapshotNode"]:
        """Descendants matching a CSS selector, in document order."""
        pass

    @abstractmethod
    def matches(self, selector: str) -> bool:
        pass

    # =========================================================================
    # DERIVED HELPERS
    # =========================================================================

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        value = self.attrs.get(name)
        if value is None or value == "":
            return default
        return value

    @property
    def role(self) -> Optional[str]:
        return self.get("role")

    @property
    def classes(self) -> List[str]:
        return (self.get("class") or "").split()

    def select_one(self, selector: str) -> Optional["SnapshotNode"]:
        found = self.select(selector)
        return found[0] if found else None

    def ancestors(self) -> List["SnapshotNode"]:
        result = []
        current = self.parent
        while current is not None:
            result.append(current)
            current = current.parent
        return result

    def closest(self, selector: str) -> Optional["SnapshotNode"]:
        """This node or its nearest ancestor matching the selector."""
        if self.matches(selector):
            return self
        for ancestor in self.ancestors():
            if ancestor.matches(selector):
                return ancestor
        return None

    def contains(self, other: "SnapshotNode") -> bool:
        """True when other is this node or one of its descendants."""
        if other == self:
            return True
        return any(ancestor == self for ancestor in other.ancestors())


class PageSnapshot(ABC):
    """A read-only tree of the UI nodes visible at scan time."""

    view_name: str = "dashboard"

    @abstractmethod
    def ensure_available(self) -> None:
        """
        Raise SnapshotUnavailableFault when the tree cannot be queried.
        """
        pass

    @property
    @abstractmethod
    def root(self) -> SnapshotNode:
        pass

    def select(self, selector: str) -> List[SnapshotNode]:
        root = self.root
        found = root.select(selector)
        if root.matches(selector):
            found.insert(0, root)
        return found
