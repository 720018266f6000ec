"""
Filename sanitizing and the output naming scheme.

Snapshots:  conversation-{reverse_index}-{title}.html
Assets:     conversation-{reverse_index}-{title}-image-{asset_index}{extension}
"""

from __future__ import annotations

import re

from harvester.constants import (
    FALLBACK_IMAGE_EXTENSION,
    FILENAME_PLACEHOLDER,
    FILENAME_PREFIX,
    INVALID_FILENAME_CHARS,
    MAX_EXTENSION_LENGTH,
    SNAPSHOT_EXTENSION,
)

_INVALID_CHARS_RE = re.compile(INVALID_FILENAME_CHARS)
# Characters a real file extension is made of (after the leading dot).
_EXTENSION_RE = re.compile(r"^\.[A-Za-z0-9]+$")


def sanitize_filename(value: str) -> str:
    """Replace characters illegal in filenames with `_` and trim whitespace."""
    return _INVALID_CHARS_RE.sub(FILENAME_PLACEHOLDER, value).strip()


def snapshot_filename(reverse_index: int, safe_title: str) -> str:
    return f"{FILENAME_PREFIX}-{reverse_index}-{safe_title}{SNAPSHOT_EXTENSION}"


def asset_filename(reverse_index: int, safe_title: str, asset_index: int, extension: str) -> str:
    return f"{FILENAME_PREFIX}-{reverse_index}-{safe_title}-image-{asset_index}{extension}"


def image_extension(source: str) -> str:
    """
    Derive a file extension from an image source URL.

    Takes the suffix from the last dot. Falls back to `.jpg` when there is no
    dot, when the suffix is longer than 5 characters (query strings such as
    `.jpeg?x=1`), or when it contains characters no extension has.
    """
    dot = source.rfind(".")
    if dot == -1:
        return FALLBACK_IMAGE_EXTENSION
    suffix = source[dot:]
    if len(suffix) > MAX_EXTENSION_LENGTH or not _EXTENSION_RE.match(suffix):
        return FALLBACK_IMAGE_EXTENSION
    return suffix
