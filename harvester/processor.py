"""
Sequential item processor: activate each item, wait, capture, persist.

Items are visited from the last rendered to the first. Activation rewrites
the shared document, so each item's snapshot and images are fully persisted
before the next item is clicked; nothing here runs concurrently.

Failures are contained per item (and per image): a bad item is logged and
recorded, and the loop moves on.
"""

from __future__ import annotations

from typing import Literal, Optional

from playwright.async_api import Locator, Page

from harvester.constants import SETTLE_DELAY_MS, UNTITLED
from harvester.crawl.assets import extract_images
from harvester.crawl.readiness import delay
from harvester.errors import ActivationHandleMissing, ItemProcessingFailed
from harvester.locators import DEFAULT_LOCATORS, LocatorSet
from harvester.naming import asset_filename, sanitize_filename, snapshot_filename
from harvester.sink import FileSink
from harvester.state import HarvestRun, ItemResult, ItemStatus, RunSummary
from shared.logging import get_logger

logger = get_logger(__name__)

_SCROLL_INTO_VIEW_JS = "el => el.scrollIntoView({block: 'center'})"


async def read_title(item: Locator, locators: LocatorSet) -> str:
    """
    Item display title: the title attribute, else the fallback element's
    text, else "Untitled".
    """
    title: Optional[str] = None
    title_node = item.locator(locators.title).first
    if await title_node.count():
        title = await title_node.get_attribute(locators.title_attribute)

    if not title:
        fallback = item.locator(locators.title_fallback).first
        if await fallback.count():
            title = ((await fallback.text_content()) or "").strip()

    return title or UNTITLED


async def read_item_id(item: Locator, locators: LocatorSet) -> Optional[str]:
    try:
        return await item.get_attribute(locators.item_id_attribute)
    except Exception:
        return None


async def _scroll_into_view(item: Locator, reverse_index: int) -> None:
    """Best effort; a failure here does not stop the item."""
    try:
        await item.evaluate(_SCROLL_INTO_VIEW_JS)
    except Exception as e:
        logger.warning(
            "item_scroll_failed",
            reverse_index=reverse_index,
            error=str(e),
            error_type=type(e).__name__,
        )


async def _save_images(
    page: Page,
    result: ItemResult,
    safe_title: str,
    *,
    locators: LocatorSet,
    sink: FileSink,
    scope_selector: Optional[str],
) -> None:
    failed_sources: list[str] = []
    async for asset in extract_images(
        page,
        image_selector=locators.images,
        scope_selector=scope_selector,
        failed_sources=failed_sources,
    ):
        name = asset_filename(result.reverse_index, safe_title, asset.index, asset.extension)
        try:
            await sink.save(asset.payload, name)
            result.assets_saved += 1
        except Exception as e:
            result.assets_failed += 1
            logger.warning(
                "asset_save_failed",
                filename=name,
                source=asset.source,
                error=str(e),
                error_type=type(e).__name__,
            )
    result.assets_failed += len(failed_sources)


async def process_item(
    page: Page,
    item: Locator,
    reverse_index: int,
    *,
    locators: LocatorSet = DEFAULT_LOCATORS,
    sink: FileSink,
    settle_delay_ms: int = SETTLE_DELAY_MS,
    image_scope: Literal["document", "content"] = "document",
) -> ItemResult:
    """
    Activate one item and persist its snapshot and images.

    Never raises: a missing activation handle yields a SKIPPED result, any
    other error a FAILED result.
    """
    item_id = await read_item_id(item, locators)
    result = ItemResult(reverse_index=reverse_index, status=ItemStatus.SAVED, item_id=item_id)
    logger.info("item_processing_started", reverse_index=reverse_index, item_id=item_id)

    await _scroll_into_view(item, reverse_index)

    try:
        handle = item.locator(locators.activation).first
        if not await handle.count():
            raise ActivationHandleMissing(reverse_index, locators.activation)

        await handle.click()
        logger.info("item_activated", reverse_index=reverse_index, settle_delay_ms=settle_delay_ms)
        await delay(settle_delay_ms)

        html = await page.content()
        title = await read_title(item, locators)
        safe_title = sanitize_filename(title) or UNTITLED
        result.title = title
        logger.info("item_title", reverse_index=reverse_index, title=title, safe_title=safe_title)

        name = snapshot_filename(reverse_index, safe_title)
        await sink.save(html.encode("utf-8"), name)
        result.snapshot_file = name

        scope_selector = locators.content_region if image_scope == "content" else None
        await _save_images(
            page,
            result,
            safe_title,
            locators=locators,
            sink=sink,
            scope_selector=scope_selector,
        )
    except ActivationHandleMissing as e:
        logger.warning("activation_handle_missing", reverse_index=reverse_index, error=str(e))
        result.status = ItemStatus.SKIPPED
        result.error = str(e)
    except Exception as e:
        failure = ItemProcessingFailed(reverse_index, e)
        logger.error(
            "item_processing_failed",
            reverse_index=reverse_index,
            item_id=item_id,
            error=str(failure),
            error_type=type(e).__name__,
        )
        result.status = ItemStatus.FAILED
        result.error = str(failure)
    else:
        logger.info(
            "item_processing_complete",
            reverse_index=reverse_index,
            snapshot_file=result.snapshot_file,
            assets_saved=result.assets_saved,
            assets_failed=result.assets_failed,
        )
    return result


async def process_all(
    page: Page,
    run: HarvestRun,
    *,
    locators: LocatorSet = DEFAULT_LOCATORS,
    sink: FileSink,
    settle_delay_ms: int = SETTLE_DELAY_MS,
    image_scope: Literal["document", "content"] = "document",
) -> RunSummary:
    """
    Process `run.items` from last rendered to first, one at a time.

    Reverse index 1 is the last-rendered item. Results are recorded on the
    run; the returned summary counts saved, skipped and failed items.
    """
    total = len(run.items)
    if not total:
        logger.info("no_items_found")
        return run.summary()

    logger.info("processing_started", item_count=total, order="last_to_first")
    for index in range(total - 1, -1, -1):
        reverse_index = total - index
        run.position = reverse_index
        result = await process_item(
            page,
            run.items[index],
            reverse_index,
            locators=locators,
            sink=sink,
            settle_delay_ms=settle_delay_ms,
            image_scope=image_scope,
        )
        run.record(result)

    logger.info("processing_complete", item_count=total)
    return run.summary()
