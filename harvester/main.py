#!/usr/bin/env python3
"""
CLI entry point for a harvest run.

Usage: harvest [--url <list_page_url>] [--output-dir DIR] [--no-headless]
               [--storage-state FILE] [--cdp-url URL]

Exits 1 only when the list container never appears; per-item failures are
reported in the log and the final summary.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv
from playwright.async_api import async_playwright

from harvester.constants import NAV_TIMEOUT_MS
from harvester.crawl.browser import open_page
from harvester.errors import ContainerNotFound
from harvester.orchestrator import harvest
from harvester.state import RunSummary
from shared.config import AppConfig, get_config
from shared.logging import bind_run_context, configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Load a lazily rendered list fully, then save every item's page and images.",
    )
    parser.add_argument("--url", help="Page holding the list (default: HARVEST_URL)")
    parser.add_argument("--output-dir", help="Directory for saved files (default: OUTPUT_DIR)")
    parser.add_argument(
        "--no-headless",
        action="store_true",
        help="Show the browser window. Use for local debugging.",
    )
    parser.add_argument(
        "--storage-state",
        help="Playwright storage state file from harvest-login (default: STORAGE_STATE)",
    )
    parser.add_argument(
        "--cdp-url",
        help="Attach to a running Chromium over CDP instead of launching one (default: CDP_URL)",
    )
    return parser


def apply_cli_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Command-line flags take precedence over environment values."""
    overrides: dict = {}
    if args.url:
        overrides["target_url"] = args.url
    if args.output_dir:
        overrides["output_dir"] = args.output_dir
    if args.no_headless:
        overrides["headless"] = False
    if args.storage_state:
        overrides["storage_state_path"] = args.storage_state
    if args.cdp_url:
        overrides["cdp_url"] = args.cdp_url
    return dataclasses.replace(config, **overrides)


async def run_harvest(config: AppConfig) -> RunSummary:
    """Open the browser, navigate to the list page and harvest it."""
    async with async_playwright() as playwright:
        browser, page = await open_page(
            playwright,
            headless=config.headless,
            storage_state_path=config.storage_state_path,
            cdp_url=config.cdp_url,
        )
        try:
            bind_run_context(url=config.target_url)
            logger.info("navigation_started")
            await page.goto(config.target_url, wait_until="domcontentloaded", timeout=NAV_TIMEOUT_MS)
            return await harvest(page, config)
        finally:
            # An attached (CDP) browser belongs to the user; leave it running.
            if not config.cdp_url:
                await browser.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    config = apply_cli_overrides(get_config(), args)

    configure_logging(
        level=logging.getLevelName(config.log_level.upper()),
        log_file=config.log_file,
        log_stdout=config.log_stdout,
    )

    try:
        summary = asyncio.run(run_harvest(config))
    except ContainerNotFound as e:
        logger.error("harvest_aborted", reason="container_not_found", error=str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("harvest_interrupted")
        print("\nHarvest stopped.")
        return 130

    print(
        f"Saved {summary.succeeded} of {summary.total_items} items "
        f"({summary.skipped} skipped, {summary.failed} failed); "
        f"{summary.assets_saved} images saved, {summary.assets_failed} failed."
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
