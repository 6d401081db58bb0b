"""
Detection Exceptions

Faults raised while scanning a page snapshot for exportable content.
"""

from fastapi import status
from typing import Optional
from .base import AppException


class SnapshotUnavailableFault(AppException):
    """Raised when the page snapshot cannot be queried at all."""
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "The page snapshot is unavailable."


class ExtractionFault(AppException):
    """
    Raised when one matcher, node or stage fails during extraction.

    Always recovered locally: the orchestrator records it and carries on.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Failed to extract content from the view."

    def __init__(self, detail: Optional[str] = None, stage: str = "", matcher: str = ""):
        super().__init__(detail)
        self.stage = stage
        self.matcher = matcher


class ScanInProgressError(AppException):
    status_code = status.HTTP_409_CONFLICT
    detail = "A scan is already in progress."
