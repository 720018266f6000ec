"""
Harvest error kinds.

Only `ContainerNotFound` is allowed to end a run; the others are raised and
caught inside the item or asset scope that produced them.
"""

from __future__ import annotations

from typing import Optional


class HarvestError(Exception):
    """Base class for harvester errors."""


class ContainerNotFound(HarvestError):
    """The list container never appeared within the readiness bound."""

    def __init__(self, selector: str, attempts: int) -> None:
        super().__init__(f"Container {selector!r} not found after {attempts} attempts")
        self.selector = selector
        self.attempts = attempts


class ActivationHandleMissing(HarvestError):
    """The item has no clickable / navigable element."""

    def __init__(self, reverse_index: int, selector: str) -> None:
        super().__init__(f"Item #{reverse_index} has no element matching {selector!r}")
        self.reverse_index = reverse_index
        self.selector = selector


class ItemProcessingFailed(HarvestError):
    """Activation, capture or persistence failed for one item."""

    def __init__(self, reverse_index: int, cause: BaseException) -> None:
        super().__init__(f"Item #{reverse_index} failed: {type(cause).__name__}: {cause}")
        self.reverse_index = reverse_index
        self.cause = cause


class AssetFetchFailed(HarvestError):
    """Non-success response or transport error while fetching one image."""

    def __init__(self, source: str, status: Optional[int] = None, reason: str = "") -> None:
        detail = f"HTTP {status}" if status is not None else (reason or "transport error")
        super().__init__(f"Failed to fetch {source!r}: {detail}")
        self.source = source
        self.status = status
        self.reason = reason
