"""
Notifications

Short user-facing messages produced by scans and export jobs. The host UI
renders them as toasts; the API returns them alongside results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class NotificationVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass
class Notification:
    title: str
    message: str
    variant: NotificationVariant = NotificationVariant.DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "message": self.message, "variant": self.variant.value}


def scan_summary(tables: int, metrics: int, charts: int, rankings: int) -> Notification:
    return Notification(
        title="Data scan complete",
        message=f"Found {tables} tables, {metrics} metrics, {charts} charts, and {rankings} rankings.",
    )


def scan_failed(reason: str) -> Notification:
    return Notification(
        title="Data scan failed",
        message=reason,
        variant=NotificationVariant.DESTRUCTIVE,
    )


def export_succeeded(filename: str, item_count: int) -> Notification:
    return Notification(
        title="Export complete",
        message=f"Exported {item_count} items to {filename}.",
    )


def export_failed(reason: str) -> Notification:
    return Notification(
        title="Export failed",
        message=f"{reason} You can retry the export.",
        variant=NotificationVariant.DESTRUCTIVE,
    )
