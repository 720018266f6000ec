"""
Run state: the HarvestRun object threaded through both phases, per-item
results, and the terminal summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional
from uuid import uuid4

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from harvester.crawl.load_detector import LoadState


class ItemStatus(str, Enum):
    SAVED = "saved"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ItemResult:
    """Outcome of processing one item."""

    reverse_index: int
    status: ItemStatus
    item_id: Optional[str] = None
    title: Optional[str] = None
    snapshot_file: Optional[str] = None
    assets_saved: int = 0
    assets_failed: int = 0
    error: Optional[str] = None


@dataclass
class RunSummary:
    """Counts reported when a run ends."""

    total_items: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    assets_saved: int = 0
    assets_failed: int = 0
    skipped_items: list[int] = field(default_factory=list)
    failed_items: list[int] = field(default_factory=list)

    @classmethod
    def from_results(cls, results: list[ItemResult], total_items: int) -> "RunSummary":
        summary = cls(total_items=total_items)
        for result in results:
            summary.assets_saved += result.assets_saved
            summary.assets_failed += result.assets_failed
            if result.status is ItemStatus.SAVED:
                summary.succeeded += 1
            elif result.status is ItemStatus.SKIPPED:
                summary.skipped += 1
                summary.skipped_items.append(result.reverse_index)
            else:
                summary.failed += 1
                summary.failed_items.append(result.reverse_index)
        return summary

    def as_log_fields(self) -> dict[str, Any]:
        return {
            "total_items": self.total_items,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
            "assets_saved": self.assets_saved,
            "assets_failed": self.assets_failed,
            "skipped_items": self.skipped_items,
            "failed_items": self.failed_items,
        }


@dataclass
class HarvestRun:
    """
    State of one harvesting run.

    `items` is fixed in render order once loading completes, each entry
    pinned to its item id where it has one, so later reordering of the list
    does not move it; `position` is the reverse index (1-based from the
    end) of the item being processed.
    """

    run_id: str = field(default_factory=lambda: str(uuid4()))
    items: list["Locator"] = field(default_factory=list)
    position: int = 0
    load_state: Optional["LoadState"] = None
    results: list[ItemResult] = field(default_factory=list)

    def record(self, result: ItemResult) -> None:
        self.results.append(result)

    def summary(self) -> RunSummary:
        return RunSummary.from_results(self.results, total_items=len(self.items))
