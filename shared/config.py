"""
Environment-based configuration for the list harvester.

This module exposes a small, typed configuration surface shared by the
harvesting CLI and its helpers. All values are sourced from environment
variables with defaults that reproduce the reference timings.

No credentials are handled here; an authenticated browser session is
provided through a Playwright storage-state file (see `harvester.login`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

Environment = Literal["local", "dev", "staging", "prod"]
ImageScope = Literal["document", "content"]
SinkMode = Literal["disk", "browser"]


def _bool_env(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or str(default)).strip().lower()
    return raw in ("true", "1", "yes")


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    """Parse an integer env var; malformed values fall back to the default."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, value)


def _optional_env(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


@dataclass(frozen=True)
class AppConfig:
    """
    Top-level harvester configuration.

    Timing defaults mirror the reference behavior: 1s container polling,
    2s scroll ticks, 60 stalled ticks before the list counts as loaded,
    and a 6s settle delay after each item activation.
    """

    environment: Environment
    log_level: str

    # Optional file path for structured JSON logs; when set, logs are written
    # to file (and stdout if log_stdout).
    log_file: Optional[str]
    log_stdout: bool

    # Browser session
    target_url: str
    headless: bool
    storage_state_path: Optional[str]
    cdp_url: Optional[str]

    # Output
    output_dir: str
    sink_mode: SinkMode

    # Timings (ms) and loading bounds
    startup_delay_ms: int
    container_poll_interval_ms: int
    container_max_attempts: int  # 0 = poll indefinitely
    scroll_check_interval_ms: int
    stall_threshold: int
    settle_delay_ms: int

    image_scope: ImageScope

    # Selector overrides; None keeps the default locator set.
    container_selector: Optional[str] = None
    item_selector: Optional[str] = None
    activation_selector: Optional[str] = None
    title_selector: Optional[str] = None
    title_fallback_selector: Optional[str] = None
    image_selector: Optional[str] = None
    content_selector: Optional[str] = None

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Construct configuration from environment variables.

        Unknown enumeration values fail fast instead of guessing.
        """

        environment = os.getenv("APP_ENV", "local")
        if environment not in {"local", "dev", "staging", "prod"}:
            raise ValueError(f"Unsupported APP_ENV value: {environment!r}")

        image_scope = (os.getenv("IMAGE_SCOPE") or "document").strip().lower()
        if image_scope not in {"document", "content"}:
            raise ValueError(f"Unsupported IMAGE_SCOPE value: {image_scope!r}")

        sink_mode = (os.getenv("SINK_MODE") or "disk").strip().lower()
        if sink_mode not in {"disk", "browser"}:
            raise ValueError(f"Unsupported SINK_MODE value: {sink_mode!r}")

        return cls(
            environment=environment,  # type: ignore[arg-type]
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            log_stdout=_bool_env("LOG_STDOUT", True),
            target_url=os.getenv("HARVEST_URL", "https://chatgpt.com/"),
            headless=_bool_env("HEADLESS", True),
            storage_state_path=_optional_env("STORAGE_STATE"),
            cdp_url=_optional_env("CDP_URL"),
            output_dir=os.getenv("OUTPUT_DIR", "./harvest"),
            sink_mode=sink_mode,  # type: ignore[arg-type]
            startup_delay_ms=_int_env("STARTUP_DELAY_MS", 3000),
            container_poll_interval_ms=_int_env("CONTAINER_POLL_INTERVAL_MS", 1000),
            container_max_attempts=_int_env("CONTAINER_MAX_ATTEMPTS", 300),
            scroll_check_interval_ms=_int_env("SCROLL_CHECK_INTERVAL_MS", 2000),
            stall_threshold=_int_env("STALL_THRESHOLD", 60, minimum=1),
            settle_delay_ms=_int_env("SETTLE_DELAY_MS", 6000),
            image_scope=image_scope,  # type: ignore[arg-type]
            container_selector=_optional_env("CONTAINER_SELECTOR"),
            item_selector=_optional_env("ITEM_SELECTOR"),
            activation_selector=_optional_env("ACTIVATION_SELECTOR"),
            title_selector=_optional_env("TITLE_SELECTOR"),
            title_fallback_selector=_optional_env("TITLE_FALLBACK_SELECTOR"),
            image_selector=_optional_env("IMAGE_SELECTOR"),
            content_selector=_optional_env("CONTENT_SELECTOR"),
        )


def get_config() -> AppConfig:
    """
    Helper to obtain the current configuration.

    The CLI builds one `AppConfig` at startup and passes it explicitly;
    this helper is for scripts and tests.
    """

    return AppConfig.from_env()
