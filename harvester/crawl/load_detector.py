"""
Load-completion detection for a lazily rendered list.

Items render asynchronously as the container scrolls, so there is no
"loaded" signal. Each tick scrolls the container to its end and re-counts;
the list counts as loaded after `threshold` consecutive ticks without growth.

The transition function is pure so tick sequences can be tested without a
browser; `force_full_load` is the timer-driven loop around it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from playwright.async_api import Locator

from harvester.constants import SCROLL_CHECK_INTERVAL_MS, STALL_THRESHOLD
from harvester.crawl.readiness import delay
from harvester.state import HarvestRun
from shared.logging import get_logger

logger = get_logger(__name__)

_SCROLL_TO_END_JS = "el => { el.scrollTop = el.scrollHeight; }"


class LoadPhase(str, Enum):
    WAITING = "waiting"
    POLLING = "polling"
    STALLING = "stalling"
    COMPLETE = "complete"


class LoadAction(str, Enum):
    SCROLL = "scroll"
    FINISH = "finish"
    NONE = "none"


@dataclass(frozen=True)
class LoadState:
    """Detector state between ticks."""

    threshold: int
    phase: LoadPhase = LoadPhase.WAITING
    item_count: int = 0
    stalled_ticks: int = 0
    ticks: int = 0

    def __post_init__(self) -> None:
        if self.threshold < 1:
            raise ValueError(f"threshold must be >= 1, got {self.threshold}")


def advance_load_state(state: LoadState, observed_count: int) -> tuple[LoadState, LoadAction]:
    """
    Feed one tick's item count into the detector.

    Returns the new state and what the driver should do next. Once COMPLETE,
    further ticks are ignored so completion is reported once.
    """
    if state.phase is LoadPhase.COMPLETE:
        return state, LoadAction.NONE

    ticks = state.ticks + 1
    if observed_count > state.item_count:
        return (
            replace(
                state,
                phase=LoadPhase.POLLING,
                item_count=observed_count,
                stalled_ticks=0,
                ticks=ticks,
            ),
            LoadAction.SCROLL,
        )

    stalled = state.stalled_ticks + 1
    if stalled >= state.threshold:
        return (
            replace(state, phase=LoadPhase.COMPLETE, stalled_ticks=stalled, ticks=ticks),
            LoadAction.FINISH,
        )
    return (
        replace(state, phase=LoadPhase.STALLING, stalled_ticks=stalled, ticks=ticks),
        LoadAction.SCROLL,
    )


def _attribute_selector(attribute: str, value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'[{attribute}="{escaped}"]'


async def pin_items(
    container: Locator,
    items: list[Locator],
    id_attribute: Optional[str],
) -> list[Locator]:
    """
    Replace positional item locators with ones keyed on `id_attribute`.

    `Locator.all()` hands back `nth(i)` locators that re-resolve by position
    on every use, so a list that reorders after an activation (a visited
    entry moving to the top) would shift them onto other items. An item
    without the attribute keeps its positional locator.
    """
    if not id_attribute:
        return items
    pinned: list[Locator] = []
    for position, item in enumerate(items):
        item_id = await item.get_attribute(id_attribute)
        if not item_id:
            logger.debug("item_id_missing", position=position, attribute=id_attribute)
            pinned.append(item)
            continue
        pinned.append(container.locator(_attribute_selector(id_attribute, item_id)).first)
    return pinned


async def force_full_load(
    container: Locator,
    items_selector: str,
    run: HarvestRun,
    *,
    interval_ms: int = SCROLL_CHECK_INTERVAL_MS,
    stall_threshold: int = STALL_THRESHOLD,
    item_id_attribute: Optional[str] = None,
) -> list[Locator]:
    """
    Scroll the container until its item count stops growing.

    Each tick waits one interval, scrolls to the end and re-counts. Returns
    the items in render order once the detector reports completion, pinned
    by `item_id_attribute` when given; the final list is also stored on
    `run.items`.
    """
    logger.info(
        "load_started",
        interval_ms=interval_ms,
        stall_threshold=stall_threshold,
    )
    items = container.locator(items_selector)
    run.load_state = LoadState(threshold=stall_threshold)

    while True:
        await delay(interval_ms)
        await container.evaluate(_SCROLL_TO_END_JS)
        count = await items.count()

        previous = run.load_state
        run.load_state, action = advance_load_state(previous, count)

        if run.load_state.phase is LoadPhase.POLLING:
            logger.info("item_count_increased", previous=previous.item_count, current=count)
        else:
            logger.debug(
                "item_count_unchanged",
                current=count,
                stalled_ticks=run.load_state.stalled_ticks,
                stall_threshold=stall_threshold,
            )

        if action is not LoadAction.SCROLL:
            break

    run.items = await pin_items(container, await items.all(), item_id_attribute)
    logger.info(
        "load_complete",
        item_count=len(run.items),
        ticks=run.load_state.ticks,
    )
    return run.items
