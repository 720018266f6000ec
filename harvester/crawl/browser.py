"""
Browser context creation for a harvest run (viewport, storage state, downloads).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright

from harvester.constants import VIEWPORT
from shared.logging import get_logger

logger = get_logger(__name__)


async def create_browser_context(
    browser: Browser,
    storage_state_path: Optional[str] = None,
) -> BrowserContext:
    """
    Create a browser context for harvesting.

    Loads a saved storage state (cookies + localStorage) when the file
    exists, so the run starts signed in. Downloads are accepted because the
    browser sink saves files through them.
    """
    storage_state = None
    if storage_state_path:
        if Path(storage_state_path).is_file():
            storage_state = storage_state_path
        else:
            logger.warning("storage_state_missing", path=storage_state_path)

    return await browser.new_context(
        viewport=VIEWPORT,
        accept_downloads=True,
        storage_state=storage_state,
        locale="en-US",
    )


async def open_page(
    playwright: Playwright,
    *,
    headless: bool,
    storage_state_path: Optional[str] = None,
    cdp_url: Optional[str] = None,
) -> tuple[Browser, Page]:
    """
    Launch Chromium (or attach over CDP) and return (browser, page).

    When attached to an existing browser, its first context and page are
    reused so the harvest runs inside the user's signed-in session.
    """
    if cdp_url:
        browser = await playwright.chromium.connect_over_cdp(cdp_url)
        logger.info("browser_attached", cdp_url=cdp_url)
        if browser.contexts:
            context = browser.contexts[0]
        else:
            context = await create_browser_context(browser, storage_state_path)
        page = context.pages[0] if context.pages else await context.new_page()
        return browser, page

    browser = await playwright.chromium.launch(headless=headless)
    logger.info("browser_launched", headless=headless)
    context = await create_browser_context(browser, storage_state_path)
    page = await context.new_page()
    return browser, page
