"""
File sinks: persist a byte payload under a given filename.

`LocalFileSink` writes straight to the output directory. `BrowserDownloadSink`
saves through the page itself (Blob + object URL + hidden anchor click) and
collects the resulting download, for runs that must go through the browser's
own download path.
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Protocol

from playwright.async_api import Page

from shared.config import AppConfig
from shared.logging import get_logger

logger = get_logger(__name__)

# The object URL is revoked in `finally` so it is released even if the click throws.
_SAVE_BLOB_JS = """
([encoded, fileName]) => {
    const binary = atob(encoded);
    const bytes = new Uint8Array(binary.length);
    for (let i = 0; i < binary.length; i++) {
        bytes[i] = binary.charCodeAt(i);
    }
    const blob = new Blob([bytes], {type: "octet/stream"});
    const url = window.URL.createObjectURL(blob);
    const a = document.createElement("a");
    a.style.display = "none";
    a.href = url;
    a.download = fileName;
    document.body.appendChild(a);
    try {
        a.click();
    } finally {
        window.URL.revokeObjectURL(url);
        a.remove();
    }
}
"""


class FileSink(Protocol):
    async def save(self, payload: bytes, filename: str) -> Path: ...


def ensure_output_dir(path: Path) -> None:
    """Ensure the directory for an output path exists."""
    path.parent.mkdir(parents=True, exist_ok=True)


class LocalFileSink:
    """Write payloads unmodified to `output_dir/filename`."""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    async def save(self, payload: bytes, filename: str) -> Path:
        """May raise OSError on write failure."""
        path = self.output_dir / filename
        ensure_output_dir(path)
        path.write_bytes(payload)
        logger.info("file_saved", filename=filename, size_bytes=len(payload))
        return path


class BrowserDownloadSink:
    """Trigger a client-side download in `page` and store it in `output_dir`."""

    def __init__(self, page: Page, output_dir: str | Path) -> None:
        self.page = page
        self.output_dir = Path(output_dir)

    async def save(self, payload: bytes, filename: str) -> Path:
        encoded = base64.b64encode(payload).decode("ascii")
        async with self.page.expect_download() as download_info:
            await self.page.evaluate(_SAVE_BLOB_JS, [encoded, filename])
        download = await download_info.value

        path = self.output_dir / filename
        ensure_output_dir(path)
        await download.save_as(path)
        logger.info("file_saved", filename=filename, size_bytes=len(payload), via="download")
        return path


def create_sink(config: AppConfig, page: Page) -> FileSink:
    """Build the sink selected by `SINK_MODE`."""
    if config.sink_mode == "browser":
        return BrowserDownloadSink(page, config.output_dir)
    return LocalFileSink(config.output_dir)
