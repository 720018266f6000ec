"""
Harvest constants: reference timings, naming scheme, default selectors.

Timing values are defaults only; `shared.config` overrides them per run.
"""

from __future__ import annotations

# Timing constants (in milliseconds)
STARTUP_DELAY_MS = 3000  # Wait after navigation before looking for the container
CONTAINER_POLL_INTERVAL_MS = 1000  # Readiness poll interval
CONTAINER_MAX_ATTEMPTS = 300  # Readiness bound; 0 = poll indefinitely
SCROLL_CHECK_INTERVAL_MS = 2000  # Load-completion tick
STALL_THRESHOLD = 60  # Consecutive non-growing ticks before the list counts as loaded
SETTLE_DELAY_MS = 6000  # Blind wait after activating an item

# Output naming
FILENAME_PREFIX = "conversation"
SNAPSHOT_EXTENSION = ".html"
UNTITLED = "Untitled"
FALLBACK_IMAGE_EXTENSION = ".jpg"
MAX_EXTENSION_LENGTH = 5  # Including the leading dot
INVALID_FILENAME_CHARS = r'[\\/:*?"<>|]'
FILENAME_PLACEHOLDER = "_"

# Default locators: chat-history sidebar on chatgpt.com
DEFAULT_CONTAINER_SELECTOR = (
    'nav[aria-label="Chat history"].flex.h-full.w-full.flex-col.px-3 .overflow-y-auto'
)
DEFAULT_ITEM_SELECTOR = 'li[data-testid^="history-item-"]'
DEFAULT_ACTIVATION_SELECTOR = "a[href], button"
DEFAULT_TITLE_SELECTOR = "div[title]"
DEFAULT_TITLE_ATTRIBUTE = "title"
DEFAULT_TITLE_FALLBACK_SELECTOR = ".relative.grow"
DEFAULT_IMAGE_SELECTOR = 'img[alt="Uploaded image"]'
DEFAULT_CONTENT_SELECTOR = "main"
DEFAULT_ITEM_ID_ATTRIBUTE = "data-testid"

# Browser context
VIEWPORT = {"width": 1440, "height": 900}
NAV_TIMEOUT_MS = 60_000
