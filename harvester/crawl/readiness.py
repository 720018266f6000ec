"""
Readiness: the delay primitive and the container waiter.

The container is polled at a fixed interval until it exists. Unlike a bare
poll loop, the wait is bounded by `max_attempts` (0 or None = unbounded).
"""

from __future__ import annotations

import asyncio
from typing import Optional

from playwright.async_api import Locator, Page

from harvester.constants import CONTAINER_MAX_ATTEMPTS, CONTAINER_POLL_INTERVAL_MS
from harvester.errors import ContainerNotFound
from shared.logging import get_logger

logger = get_logger(__name__)


async def delay(ms: int) -> None:
    """Suspend the current task for `ms` milliseconds."""
    await asyncio.sleep(ms / 1000)


async def await_container(
    page: Page,
    selector: str,
    *,
    poll_interval_ms: int = CONTAINER_POLL_INTERVAL_MS,
    max_attempts: Optional[int] = CONTAINER_MAX_ATTEMPTS,
) -> Locator:
    """
    Poll the page until an element matching `selector` exists.

    The first poll runs immediately and each miss waits `poll_interval_ms`
    before the next, so the longest wait is `(max_attempts - 1)` intervals.
    Returns a locator for the first match. Raises ContainerNotFound once
    `max_attempts` polls have missed; `max_attempts` of 0 or None polls
    forever.
    """
    attempt = 0
    while True:
        attempt += 1
        candidates = page.locator(selector)
        if await candidates.count() > 0:
            logger.info("container_found", selector=selector, attempts=attempt)
            return candidates.first

        if max_attempts and attempt >= max_attempts:
            logger.error("container_not_found", selector=selector, attempts=attempt)
            raise ContainerNotFound(selector, attempt)

        logger.info("container_not_found_retrying", attempt=attempt)
        await delay(poll_interval_ms)
