"""
Playwright-based page primitives for list harvesting.

This package implements the container waiter, the load-completion detector,
image extraction and browser setup.

Public API: re-exports the symbols used by the processor, the orchestrator
and tests so that `from harvester.crawl import ...` stays valid.
"""

from __future__ import annotations

from harvester.crawl.assets import ImageAsset, collect_image_sources, extract_images, fetch_asset
from harvester.crawl.browser import create_browser_context, open_page
from harvester.crawl.load_detector import (
    LoadAction,
    LoadPhase,
    LoadState,
    advance_load_state,
    force_full_load,
    pin_items,
)
from harvester.crawl.readiness import await_container, delay

__all__ = [
    # assets
    "ImageAsset",
    "collect_image_sources",
    "extract_images",
    "fetch_asset",
    # browser
    "create_browser_context",
    "open_page",
    # load_detector
    "LoadAction",
    "LoadPhase",
    "LoadState",
    "advance_load_state",
    "force_full_load",
    "pin_items",
    # readiness
    "await_container",
    "delay",
]
