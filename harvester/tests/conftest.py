"""
Shared fakes for harvester tests.

A tiny in-memory stand-in for the Playwright objects the harvester touches:
list items with child nodes, a page whose content and images change when an
item is clicked, and a sink that records what was saved. No browser needed.
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Callable, Optional

import pytest
from playwright.async_api import Error as PlaywrightError


class FakeNode:
    def __init__(
        self,
        *,
        attrs: Optional[dict] = None,
        text: Optional[str] = None,
        on_click: Optional[Callable[[], None]] = None,
    ) -> None:
        self.attrs = attrs or {}
        self.text = text
        self.on_click = on_click


class FakeMatch:
    """Result of `locator(selector).first` on an item: zero or one node."""

    def __init__(self, node: Optional[FakeNode]) -> None:
        self.node = node

    @property
    def first(self) -> "FakeMatch":
        return self

    async def count(self) -> int:
        return 1 if self.node else 0

    async def get_attribute(self, name: str) -> Optional[str]:
        return self.node.attrs.get(name) if self.node else None

    async def text_content(self) -> Optional[str]:
        return self.node.text if self.node else None

    async def click(self) -> None:
        if self.node and self.node.on_click:
            self.node.on_click()


class FakeItem:
    """One list entry; `children` maps selector -> node."""

    def __init__(self, item_id: str, children: dict[str, FakeNode]) -> None:
        self.item_id = item_id
        self.children = children
        self.scrolled_into_view = False

    @property
    def first(self) -> "FakeItem":
        return self

    def locator(self, selector: str) -> FakeMatch:
        return FakeMatch(self.children.get(selector))

    async def get_attribute(self, name: str) -> Optional[str]:
        if name == "data-testid":
            return self.item_id
        return None

    async def evaluate(self, script: str) -> None:
        self.scrolled_into_view = True


class FakeImage:
    def __init__(self, src: str) -> None:
        self.src = src

    async def evaluate(self, script: str) -> str:
        return self.src


class FakeImageQuery:
    def __init__(self, images: list[FakeImage]) -> None:
        self.images = images

    async def all(self) -> list[FakeImage]:
        return list(self.images)


class FakeScope:
    def __init__(self, page: "FakePage") -> None:
        self.page = page

    @property
    def first(self) -> "FakeScope":
        return self

    def locator(self, selector: str) -> FakeImageQuery:
        return FakeImageQuery([FakeImage(src) for src in self.page.scoped_images])


class FakeResponse:
    def __init__(
        self,
        status: int,
        body: bytes,
        body_error: Optional[str] = None,
        dispose_error: Optional[str] = None,
    ) -> None:
        self.status = status
        self.ok = 200 <= status < 300
        self._body = body
        self._body_error = body_error
        self._dispose_error = dispose_error
        self.disposed = False

    async def body(self) -> bytes:
        if self._body_error:
            raise PlaywrightError(self._body_error)
        return self._body

    async def dispose(self) -> None:
        self.disposed = True
        if self._dispose_error:
            raise PlaywrightError(self._dispose_error)


class FakeRequest:
    """`page.context.request`: responses keyed by URL; `None` means transport error."""

    def __init__(self) -> None:
        self.responses: dict[str, Optional[FakeResponse]] = {}
        self.fetched: list[str] = []

    async def get(self, url: str) -> FakeResponse:
        self.fetched.append(url)
        response = self.responses.get(url, FakeResponse(200, b"img:" + url.encode()))
        if response is None:
            raise PlaywrightError("net::ERR_CONNECTION_RESET")
        return response


class FakeContext:
    def __init__(self) -> None:
        self.request = FakeRequest()


class FakePage:
    """Document state changes only through item clicks."""

    def __init__(self) -> None:
        self.current: Optional[str] = None
        self.images: list[str] = []
        self.scoped_images: list[str] = []
        self.activations: list[str] = []
        self.context = FakeContext()
        # In-page fetch results keyed by URL; `None` means the fetch threw.
        self.in_page_responses: dict[str, Optional[tuple[int, bytes]]] = {}
        self.evaluated: list[str] = []

    async def content(self) -> str:
        return f"<html><body>{self.current}</body></html>"

    async def evaluate(self, script: str, arg=None):
        self.evaluated.append(arg)
        if arg not in self.in_page_responses:
            raise PlaywrightError(f"TypeError: Failed to fetch {arg}")
        result = self.in_page_responses[arg]
        if result is None:
            raise PlaywrightError("TypeError: Failed to fetch")
        status, body = result
        return {
            "ok": 200 <= status < 300,
            "status": status,
            "data": base64.b64encode(body).decode("ascii"),
        }

    def locator(self, selector: str):
        if selector == "main":
            return FakeScope(self)
        return FakeImageQuery([FakeImage(src) for src in self.images])


class RecordingSink:
    def __init__(self, fail_on: Optional[set[str]] = None) -> None:
        self.saved: dict[str, bytes] = {}
        self.order: list[str] = []
        self.fail_on = fail_on or set()

    async def save(self, payload: bytes, filename: str) -> Path:
        if filename in self.fail_on:
            raise OSError(f"disk full: {filename}")
        self.saved[filename] = payload
        self.order.append(filename)
        return Path(filename)


def make_item(
    page: FakePage,
    name: str,
    *,
    title: Optional[str] = None,
    fallback_text: Optional[str] = None,
    has_handle: bool = True,
    images: Optional[list[str]] = None,
    click_error: Optional[Exception] = None,
) -> FakeItem:
    """Build an item whose click loads `name` (and `images`) into the page."""

    def activate() -> None:
        if click_error is not None:
            raise click_error
        page.current = name
        page.images = list(images or [])
        page.activations.append(name)

    children: dict[str, FakeNode] = {}
    if has_handle:
        children["a[href], button"] = FakeNode(on_click=activate)
    if title is not None:
        children["div[title]"] = FakeNode(attrs={"title": title})
    if fallback_text is not None:
        children[".relative.grow"] = FakeNode(text=fallback_text)
    return FakeItem(f"history-item-{name}", children)


@pytest.fixture
def page() -> FakePage:
    return FakePage()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def item_factory(page: FakePage):
    def _factory(name: str, **kwargs) -> FakeItem:
        return make_item(page, name, **kwargs)

    return _factory
