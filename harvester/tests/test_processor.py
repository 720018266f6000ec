"""
Unit tests for the sequential item processor.

Covers: last-to-first visiting order and numbering, title fallbacks,
missing activation handles, per-item failure isolation, per-image failure
isolation, and image scoping. Offline, with fake Playwright objects.
"""

from __future__ import annotations

import pytest
from conftest import FakeResponse, RecordingSink, make_item

from harvester.crawl.load_detector import force_full_load, pin_items
from harvester.processor import process_all, process_item, read_title
from harvester.locators import DEFAULT_LOCATORS
from harvester.state import HarvestRun, ItemStatus


async def _run(page, items, sink, **kwargs):
    run = HarvestRun(items=items)
    summary = await process_all(page, run, sink=sink, settle_delay_ms=0, **kwargs)
    return run, summary


@pytest.mark.asyncio
async def test_three_items_processed_last_to_first(page, sink, item_factory):
    """Render order A, B, C -> visits C, B, A with reverse numbering."""
    items = [item_factory(name, title=name) for name in ("A", "B", "C")]

    run, summary = await _run(page, items, sink)

    assert page.activations == ["C", "B", "A"]
    assert sink.order == [
        "conversation-1-C.html",
        "conversation-2-B.html",
        "conversation-3-A.html",
    ]
    assert summary.succeeded == 3
    assert [r.reverse_index for r in run.results] == [1, 2, 3]


@pytest.mark.asyncio
async def test_snapshot_captures_document_after_activation(page, sink, item_factory):
    """Each snapshot holds the document loaded by that item's click."""
    items = [item_factory(name, title=name) for name in ("A", "B")]

    await _run(page, items, sink)

    assert b"<body>B</body>" in sink.saved["conversation-1-B.html"]
    assert b"<body>A</body>" in sink.saved["conversation-2-A.html"]


@pytest.mark.asyncio
@pytest.mark.parametrize("size", [0, 1, 2, 7])
async def test_each_item_visited_once_in_reverse(page, sink, item_factory, size):
    items = [item_factory(f"i{n}", title=f"i{n}") for n in range(size)]

    run, summary = await _run(page, items, sink)

    assert page.activations == [f"i{n}" for n in reversed(range(size))]
    assert [r.reverse_index for r in run.results] == list(range(1, size + 1))
    assert summary.total_items == size


@pytest.mark.asyncio
async def test_empty_list_saves_nothing(page, sink):
    run, summary = await _run(page, [], sink)

    assert sink.order == []
    assert run.results == []
    assert summary.total_items == 0


@pytest.mark.asyncio
async def test_missing_activation_handle_skips_item(page, sink, item_factory):
    """B has no handle: A and C are still saved, B is skipped."""
    items = [
        item_factory("A", title="A"),
        item_factory("B", title="B", has_handle=False),
        item_factory("C", title="C"),
    ]

    run, summary = await _run(page, items, sink)

    assert sink.order == ["conversation-1-C.html", "conversation-3-A.html"]
    assert summary.succeeded == 2
    assert summary.skipped == 1
    assert summary.skipped_items == [2]
    assert run.results[1].status is ItemStatus.SKIPPED


@pytest.mark.asyncio
async def test_failing_item_does_not_stop_later_items(page, sink, item_factory):
    """An exception while processing C still lets B and A run."""
    items = [
        item_factory("A", title="A"),
        item_factory("B", title="B"),
        item_factory("C", title="C", click_error=RuntimeError("Target closed")),
    ]

    run, summary = await _run(page, items, sink)

    assert page.activations == ["B", "A"]
    assert summary.failed == 1
    assert summary.failed_items == [1]
    assert summary.succeeded == 2
    assert "Target closed" in run.results[0].error


@pytest.mark.asyncio
async def test_snapshot_save_failure_marks_item_failed(page, item_factory):
    sink = RecordingSink(fail_on={"conversation-1-B.html"})
    items = [item_factory("A", title="A"), item_factory("B", title="B")]

    run, summary = await _run(page, items, sink)

    assert run.results[0].status is ItemStatus.FAILED
    assert sink.order == ["conversation-2-A.html"]


@pytest.mark.asyncio
async def test_title_is_sanitized_in_filenames(page, sink, item_factory):
    items = [item_factory("R", title="Report: Q1/Q2?", images=["https://cdn.test/a.png"])]

    await _run(page, items, sink)

    assert sink.order == [
        "conversation-1-Report_ Q1_Q2_.html",
        "conversation-1-Report_ Q1_Q2_-image-1.png",
    ]


@pytest.mark.asyncio
async def test_same_titles_at_different_positions_do_not_collide(page, sink, item_factory):
    items = [item_factory(f"n{n}", title="Same", images=["https://cdn.test/x.png"]) for n in range(3)]

    await _run(page, items, sink)

    assert len(sink.saved) == 6
    assert len(set(sink.order)) == 6


@pytest.mark.asyncio
async def test_read_title_falls_back_to_text_then_untitled(page, item_factory):
    with_attr = item_factory("a", title="From attribute", fallback_text="From text")
    text_only = item_factory("b", fallback_text="  From text  ")
    empty_attr = item_factory("c", title="", fallback_text="Fallback")
    nothing = item_factory("d")

    assert await read_title(with_attr, DEFAULT_LOCATORS) == "From attribute"
    assert await read_title(text_only, DEFAULT_LOCATORS) == "From text"
    assert await read_title(empty_attr, DEFAULT_LOCATORS) == "Fallback"
    assert await read_title(nothing, DEFAULT_LOCATORS) == "Untitled"


@pytest.mark.asyncio
async def test_untitled_item_filename(page, sink, item_factory):
    await _run(page, [item_factory("x")], sink)

    assert sink.order == ["conversation-1-Untitled.html"]


@pytest.mark.asyncio
async def test_image_404_skips_only_that_image(page, sink, item_factory):
    """Snapshot and the other images are saved when one image returns 404."""
    images = [
        "https://cdn.test/one.png",
        "https://cdn.test/missing.png",
        "https://cdn.test/three.webp",
    ]
    page.context.request.responses["https://cdn.test/missing.png"] = FakeResponse(404, b"")
    items = [item_factory("A", title="A", images=images)]

    run, summary = await _run(page, items, sink)

    assert sink.order == [
        "conversation-1-A.html",
        "conversation-1-A-image-1.png",
        "conversation-1-A-image-3.webp",
    ]
    assert run.results[0].status is ItemStatus.SAVED
    assert summary.assets_saved == 2
    assert summary.assets_failed == 1


@pytest.mark.asyncio
async def test_image_transport_error_is_isolated(page, sink, item_factory):
    page.context.request.responses["https://cdn.test/a.png"] = None
    items = [item_factory("A", title="A", images=["https://cdn.test/a.png", "https://cdn.test/b.gif"])]

    run, _ = await _run(page, items, sink)

    assert "conversation-1-A-image-2.gif" in sink.saved
    assert run.results[0].assets_failed == 1


@pytest.mark.asyncio
async def test_image_body_read_error_keeps_item_saved(page, sink, item_factory):
    page.context.request.responses["https://cdn.test/a.png"] = FakeResponse(
        200, b"", body_error="Target page, context or browser has been closed"
    )
    items = [item_factory("A", title="A", images=["https://cdn.test/a.png", "https://cdn.test/b.gif"])]

    run, _ = await _run(page, items, sink)

    assert run.results[0].status is ItemStatus.SAVED
    assert run.results[0].assets_failed == 1
    assert "conversation-1-A-image-2.gif" in sink.saved


@pytest.mark.asyncio
async def test_image_save_failure_continues_with_next_image(page, item_factory):
    sink = RecordingSink(fail_on={"conversation-1-A-image-1.png"})
    items = [item_factory("A", title="A", images=["https://cdn.test/a.png", "https://cdn.test/b.png"])]

    run, _ = await _run(page, items, sink)

    assert "conversation-1-A-image-2.png" in sink.saved
    assert run.results[0].assets_saved == 1
    assert run.results[0].assets_failed == 1


@pytest.mark.asyncio
async def test_image_payload_saved_unmodified(page, sink, item_factory):
    page.context.request.responses["https://cdn.test/raw.png"] = FakeResponse(200, b"\x89PNG\x00\xff")
    items = [item_factory("A", title="A", images=["https://cdn.test/raw.png"])]

    await _run(page, items, sink)

    assert sink.saved["conversation-1-A-image-1.png"] == b"\x89PNG\x00\xff"


@pytest.mark.asyncio
async def test_content_scope_ignores_document_wide_images(page, sink, item_factory):
    """With image_scope=content only images inside the content region are saved."""
    items = [item_factory("A", title="A", images=["https://cdn.test/stale.png"])]
    page.scoped_images = ["https://cdn.test/fresh.png"]

    await _run(page, items, sink, image_scope="content")

    assert page.context.request.fetched == ["https://cdn.test/fresh.png"]


@pytest.mark.asyncio
async def test_process_item_scrolls_item_into_view(page, sink, item_factory):
    item = item_factory("A", title="A")

    result = await process_item(page, item, 1, sink=sink, settle_delay_ms=0)

    assert item.scrolled_into_view is True
    assert result.item_id == "history-item-A"
    assert result.snapshot_file == "conversation-1-A.html"


class _PositionalItem:
    """`nth(i)` locator: re-resolves against the sidebar's current order on every call."""

    def __init__(self, sidebar: "ReorderingSidebar", position: int) -> None:
        self.sidebar = sidebar
        self.position = position

    @property
    def _target(self):
        return self.sidebar.entries[self.position]

    def locator(self, selector: str):
        return self._target.locator(selector)

    async def get_attribute(self, name: str):
        return await self._target.get_attribute(name)

    async def evaluate(self, script: str) -> None:
        await self._target.evaluate(script)


class ReorderingSidebar:
    """List container where an activated entry jumps to the top of the list."""

    def __init__(self, page, names: list[str]) -> None:
        self.entries = [make_item(page, name, title=name) for name in names]
        for entry in self.entries:
            handle = entry.children["a[href], button"]
            handle.on_click = self._move_to_top(entry, handle.on_click)

    def _move_to_top(self, entry, activate):
        def on_click() -> None:
            activate()
            self.entries.remove(entry)
            self.entries.insert(0, entry)

        return on_click

    def locator(self, selector: str):
        for entry in self.entries:
            if selector == f'[data-testid="{entry.item_id}"]':
                return entry
        return self

    async def count(self) -> int:
        return len(self.entries)

    async def all(self) -> list[_PositionalItem]:
        return [_PositionalItem(self, i) for i in range(len(self.entries))]

    async def evaluate(self, script: str) -> None:
        return None


@pytest.mark.asyncio
async def test_reordering_after_activation_keeps_each_item(page, sink):
    sidebar = ReorderingSidebar(page, ["A", "B", "C"])
    run = HarvestRun()
    await force_full_load(
        sidebar,
        DEFAULT_LOCATORS.items,
        run,
        interval_ms=0,
        stall_threshold=1,
        item_id_attribute=DEFAULT_LOCATORS.item_id_attribute,
    )

    await process_all(page, run, sink=sink, settle_delay_ms=0)

    assert page.activations == ["C", "B", "A"]
    assert sink.order == [
        "conversation-1-C.html",
        "conversation-2-B.html",
        "conversation-3-A.html",
    ]


@pytest.mark.asyncio
async def test_item_without_id_keeps_positional_locator(page):
    sidebar = ReorderingSidebar(page, ["A"])
    positional = await sidebar.all()
    sidebar.entries[0].item_id = ""

    pinned = await pin_items(sidebar, positional, DEFAULT_LOCATORS.item_id_attribute)

    assert pinned == positional
