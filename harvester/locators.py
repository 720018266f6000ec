"""
Locator provider: the selectors that tie the harvester to one page layout.

The orchestrator only ever reads selectors from a `LocatorSet`, so pointing
the harvester at another list layout is a configuration change.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from harvester.constants import (
    DEFAULT_ACTIVATION_SELECTOR,
    DEFAULT_CONTAINER_SELECTOR,
    DEFAULT_CONTENT_SELECTOR,
    DEFAULT_IMAGE_SELECTOR,
    DEFAULT_ITEM_ID_ATTRIBUTE,
    DEFAULT_ITEM_SELECTOR,
    DEFAULT_TITLE_ATTRIBUTE,
    DEFAULT_TITLE_FALLBACK_SELECTOR,
    DEFAULT_TITLE_SELECTOR,
)
from shared.config import AppConfig


@dataclass(frozen=True)
class LocatorSet:
    """Selectors for container, items, activation handle, title and images."""

    container: str = DEFAULT_CONTAINER_SELECTOR
    items: str = DEFAULT_ITEM_SELECTOR
    activation: str = DEFAULT_ACTIVATION_SELECTOR
    title: str = DEFAULT_TITLE_SELECTOR
    title_attribute: str = DEFAULT_TITLE_ATTRIBUTE
    title_fallback: str = DEFAULT_TITLE_FALLBACK_SELECTOR
    images: str = DEFAULT_IMAGE_SELECTOR
    content_region: str = DEFAULT_CONTENT_SELECTOR
    item_id_attribute: str = DEFAULT_ITEM_ID_ATTRIBUTE


DEFAULT_LOCATORS = LocatorSet()


def locators_from_config(config: AppConfig, base: Optional[LocatorSet] = None) -> LocatorSet:
    """Apply the selector overrides present in config on top of `base`."""
    base = base or DEFAULT_LOCATORS
    overrides = {
        "container": config.container_selector,
        "items": config.item_selector,
        "activation": config.activation_selector,
        "title": config.title_selector,
        "title_fallback": config.title_fallback_selector,
        "images": config.image_selector,
        "content_region": config.content_selector,
    }
    return replace(base, **{k: v for k, v in overrides.items() if v})
