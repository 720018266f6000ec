#!/usr/bin/env python3
"""
Save a signed-in browser session for later harvest runs.

Usage: harvest-login [--url URL] [--storage-state FILE]

Opens a visible Chromium window; sign in, come back to the terminal and press
Enter. Cookies and localStorage are written to the storage-state file, which
`harvest --storage-state FILE` then loads.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv
from playwright.async_api import async_playwright

from harvester.constants import NAV_TIMEOUT_MS
from harvester.crawl.browser import create_browser_context
from shared.config import get_config
from shared.logging import configure_logging, get_logger

logger = get_logger(__name__)

DEFAULT_STATE_PATH = "profiles/storage_state.json"


async def save_storage_state(url: str, state_path: Path) -> None:
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=False)
        try:
            context = await create_browser_context(browser)
            page = await context.new_page()
            await page.goto(url, wait_until="load", timeout=NAV_TIMEOUT_MS)
            logger.info("login_page_loaded", url=url)

            print("\nSign in in the browser window until the list is visible.")
            await asyncio.to_thread(input, "Press Enter here to save the session state... ")

            state_path.parent.mkdir(parents=True, exist_ok=True)
            await context.storage_state(path=state_path)
            logger.info("storage_state_saved", path=str(state_path))
        finally:
            await browser.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    config = get_config()
    parser = argparse.ArgumentParser(description="Save browser storage state for harvesting.")
    parser.add_argument("--url", default=config.target_url, help="Sign-in start URL")
    parser.add_argument(
        "--storage-state",
        default=config.storage_state_path or DEFAULT_STATE_PATH,
        help="Where to write the storage state JSON",
    )
    args = parser.parse_args(argv)

    configure_logging()
    state_path = Path(args.storage_state)
    asyncio.run(save_storage_state(args.url, state_path))
    print(f"Saved storage state -> {state_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
