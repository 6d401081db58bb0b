"""
Target Registry

Explicit list of tables the host view has declared as exportable. Passed
to the Detection Orchestrator by the caller; matches found through it get
the highest confidence tier.

Usage:
    registry = TargetRegistry()
    registry.register("month-on-month", name="Month on Month Sales")
    orchestrator = DetectionOrchestrator(registry=registry)
"""

from collections import OrderedDict
from typing import Dict, List, Optional

from .matchers import PatternMatcher, attribute_selector
from .models import DetectionTier


class TargetRegistry:
    """Known targets keyed by their ``data-table`` marker value."""

    MARKER_ATTRIBUTE = "data-table"

    def __init__(self):
        self._targets: "OrderedDict[str, Optional[str]]" = OrderedDict()

    def register(self, target_id: str, name: Optional[str] = None) -> None:
        if not target_id:
            raise ValueError("target_id must not be empty")
        self._targets[target_id] = name

    def unregister(self, target_id: str) -> None:
        self._targets.pop(target_id, None)

    def __contains__(self, target_id: str) -> bool:
        return target_id in self._targets

    def __len__(self) -> int:
        return len(self._targets)

    @property
    def targets(self) -> Dict[str, Optional[str]]:
        return dict(self._targets)

    def matchers(self) -> List[PatternMatcher]:
        """One REGISTRY-tier matcher per registered target, in registration order."""
        return [
            PatternMatcher(
                name=f"registry:{target_id}",
                selector=attribute_selector(self.MARKER_ATTRIBUTE, target_id),
                tier=DetectionTier.REGISTRY,
                display_name=name,
            )
            for target_id, name in self._targets.items()
        ]
