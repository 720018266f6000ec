"""
Harvest orchestrator: wait for the list → load it fully → process every item.

Phases run strictly one after another on the same page. Only a missing
container ends the run early (ContainerNotFound propagates to the caller);
everything after that is best effort and reported in the summary.
"""

from __future__ import annotations

from typing import Optional

from playwright.async_api import Page

from harvester.crawl.load_detector import force_full_load
from harvester.crawl.readiness import await_container, delay
from harvester.locators import LocatorSet, locators_from_config
from harvester.processor import process_all
from harvester.sink import FileSink, create_sink
from harvester.state import HarvestRun, RunSummary
from shared.config import AppConfig
from shared.logging import bind_run_context, clear_run_context, get_logger

logger = get_logger(__name__)


async def harvest(
    page: Page,
    config: AppConfig,
    *,
    locators: Optional[LocatorSet] = None,
    sink: Optional[FileSink] = None,
    run: Optional[HarvestRun] = None,
) -> RunSummary:
    """
    Run one harvest against an already-navigated page.

    Run fields are bound to the logging context for the duration of the
    call. Raises ContainerNotFound if the list container never appears.
    """
    locators = locators or locators_from_config(config)
    sink = sink or create_sink(config, page)
    run = run or HarvestRun()
    bound = bind_run_context(run_id=run.run_id, output_dir=config.output_dir)
    try:
        return await _run_phases(page, config, locators, sink, run)
    finally:
        clear_run_context(bound)


async def _run_phases(
    page: Page,
    config: AppConfig,
    locators: LocatorSet,
    sink: FileSink,
    run: HarvestRun,
) -> RunSummary:
    logger.info("harvest_started", startup_delay_ms=config.startup_delay_ms)
    await delay(config.startup_delay_ms)

    container = await await_container(
        page,
        locators.container,
        poll_interval_ms=config.container_poll_interval_ms,
        max_attempts=config.container_max_attempts,
    )

    await force_full_load(
        container,
        locators.items,
        run,
        interval_ms=config.scroll_check_interval_ms,
        stall_threshold=config.stall_threshold,
        item_id_attribute=locators.item_id_attribute,
    )

    summary = await process_all(
        page,
        run,
        locators=locators,
        sink=sink,
        settle_delay_ms=config.settle_delay_ms,
        image_scope=config.image_scope,
    )
    logger.info("harvest_complete", **summary.as_log_fields())
    return summary
