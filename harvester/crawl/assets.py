"""
Image asset extraction for the active item.

Finds elements carrying the "uploaded image" marker, fetches each source
and yields the payloads one at a time. http(s) sources go through the
browser context's request client (so the page's cookies apply), `data:`
URLs are decoded locally and other page-local schemes such as `blob:` are
read by a fetch inside the page. A failed fetch skips that image only.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import AsyncIterator, Optional
from urllib.parse import unquote_to_bytes, urlsplit

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from harvester.errors import AssetFetchFailed
from harvester.naming import image_extension
from shared.logging import get_logger

logger = get_logger(__name__)

_RESOLVED_SRC_JS = "el => el.currentSrc || el.src || ''"

_IN_PAGE_FETCH_JS = """
async (src) => {
  const response = await fetch(src);
  if (!response.ok) {
    return { ok: false, status: response.status, data: "" };
  }
  const bytes = new Uint8Array(await response.arrayBuffer());
  let binary = "";
  for (let i = 0; i < bytes.length; i += 0x8000) {
    binary += String.fromCharCode.apply(null, bytes.subarray(i, i + 0x8000));
  }
  return { ok: true, status: response.status, data: btoa(binary) };
}
"""


@dataclass
class ImageAsset:
    """One fetched image; `index` is 1-based within the item."""

    source: str
    index: int
    extension: str
    payload: bytes


async def collect_image_sources(
    page: Page,
    image_selector: str,
    scope_selector: Optional[str] = None,
) -> list[str]:
    """
    Resolved `src` of every matching image, in document order.

    With `scope_selector`, only images inside the first matching region are
    considered; otherwise the whole document is searched.
    """
    root = page.locator(scope_selector).first if scope_selector else page
    sources: list[str] = []
    for element in await root.locator(image_selector).all():
        source = await element.evaluate(_RESOLVED_SRC_JS)
        if not source:
            logger.info("image_without_source", selector=image_selector)
            continue
        sources.append(source)
    return sources


async def _fetch_over_http(page: Page, source: str) -> bytes:
    try:
        response = await page.context.request.get(source)
    except PlaywrightError as e:
        raise AssetFetchFailed(source, reason=str(e)) from e
    try:
        if not response.ok:
            raise AssetFetchFailed(source, status=response.status)
        try:
            return await response.body()
        except PlaywrightError as e:
            raise AssetFetchFailed(source, reason=str(e)) from e
    finally:
        try:
            await response.dispose()
        except PlaywrightError as e:
            logger.debug("asset_response_dispose_failed", source=source, error=str(e))


def _decode_data_url(source: str) -> bytes:
    """Payload of a `data:` URL (base64 or percent-encoded)."""
    header, sep, data = source.partition(",")
    if not sep:
        raise AssetFetchFailed(source, reason="malformed data URL")
    if header.lower().endswith(";base64"):
        try:
            return base64.b64decode(data, validate=False)
        except binascii.Error as e:
            raise AssetFetchFailed(source, reason=str(e)) from e
    return unquote_to_bytes(data)


async def _fetch_in_page(page: Page, source: str) -> bytes:
    """Fetch a page-local source (`blob:` and the like) with the page's own fetch."""
    try:
        result = await page.evaluate(_IN_PAGE_FETCH_JS, source)
    except PlaywrightError as e:
        raise AssetFetchFailed(source, reason=str(e)) from e
    if not result.get("ok"):
        raise AssetFetchFailed(source, status=result.get("status"))
    return base64.b64decode(result["data"])


async def fetch_asset(page: Page, source: str) -> bytes:
    """Fetch `source` and return its raw bytes; raises AssetFetchFailed."""
    scheme = urlsplit(source).scheme.lower()
    if scheme in ("http", "https"):
        return await _fetch_over_http(page, source)
    if scheme == "data":
        return _decode_data_url(source)
    return await _fetch_in_page(page, source)


async def extract_images(
    page: Page,
    *,
    image_selector: str,
    scope_selector: Optional[str] = None,
    failed_sources: Optional[list[str]] = None,
) -> AsyncIterator[ImageAsset]:
    """
    Yield each image of the current document with its payload.

    Sources are read up front so that indexes are stable; each payload is
    fetched only when the caller asks for the next asset. Sources that could
    not be fetched are appended to `failed_sources` when given.
    """
    sources = await collect_image_sources(page, image_selector, scope_selector)
    if not sources:
        logger.info("no_images_found")
        return
    logger.info("images_found", image_count=len(sources))

    for index, source in enumerate(sources, start=1):
        try:
            payload = await fetch_asset(page, source)
        except AssetFetchFailed as e:
            logger.warning(
                "asset_fetch_failed",
                source=source,
                asset_index=index,
                status=e.status,
                error=str(e),
            )
            if failed_sources is not None:
                failed_sources.append(source)
            continue
        yield ImageAsset(
            source=source,
            index=index,
            extension=image_extension(source),
            payload=payload,
        )
