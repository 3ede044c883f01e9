import math

import pytest

from analysis.pagination import PaginationInfo, parse_pagination_text
from errors import DiscoveryError, FetchError
from pipeline.collector import ListingPage, PaginatedCollector


class MetadataSource:
    """Serves `total` numbered rows in pages of `page_size` with authoritative metadata."""

    def __init__(self, total, page_size, has_next=True):
        self.total = total
        self.page_size = page_size
        self.has_next = has_next
        self.requested = []

    async def fetch_page(self, page_number):
        self.requested.append(page_number)
        start = (page_number - 1) * self.page_size
        rows = [{"n": i} for i in range(start, min(start + self.page_size, self.total))]
        if self.total == 0:
            info = PaginationInfo(range_start=1, range_end=0, total=0)
        else:
            info = PaginationInfo(range_start=start + 1, range_end=start + self.page_size, total=self.total)
        has_next = (start + self.page_size < self.total) if self.has_next else None
        return ListingPage(rows=rows, pagination=info, has_next=has_next)


class ScriptedSource:
    def __init__(self, pages):
        self.pages = pages
        self.requested = []

    async def fetch_page(self, page_number):
        self.requested.append(page_number)
        page = self.pages[page_number - 1]
        if isinstance(page, Exception):
            raise page
        return page


async def _drain(collector):
    return [row async for row in collector.collect()]


@pytest.mark.asyncio
@pytest.mark.parametrize("total, page_size", [(1, 10), (10, 10), (25, 10), (101, 7), (60, 1)])
async def test_visits_exactly_the_computed_number_of_pages(total, page_size):
    source = MetadataSource(total, page_size, has_next=False)
    collector = PaginatedCollector(source, max_pages=5)

    rows = await _drain(collector)

    expected_pages = math.ceil(total / page_size)
    assert collector.total_pages == expected_pages
    assert collector.pages_visited == expected_pages
    assert source.requested == list(range(1, expected_pages + 1))
    assert [r["n"] for r in rows] == list(range(total))
    assert not collector.degraded


@pytest.mark.asyncio
async def test_empty_collection_visits_no_pages():
    source = MetadataSource(0, 0)
    collector = PaginatedCollector(source)

    assert await _drain(collector) == []
    assert collector.total_pages == 0
    assert collector.pages_visited == 0
    assert source.requested == [1]


@pytest.mark.asyncio
async def test_unparseable_metadata_falls_back_to_next_affordance():
    pages = [
        ListingPage(rows=[{"n": 0}, {"n": 1}], pagination=parse_pagination_text("garbage"), has_next=True),
        ListingPage(rows=[{"n": 2}], pagination=None, has_next=False),
        ListingPage(rows=[{"n": 99}], pagination=None, has_next=False),
    ]
    source = ScriptedSource(pages)
    collector = PaginatedCollector(source)

    rows = await _drain(collector)

    assert [r["n"] for r in rows] == [0, 1, 2]
    assert collector.total_pages is None
    assert source.requested == [1, 2]


@pytest.mark.asyncio
async def test_half_rendered_total_is_ignored():
    pages = [
        ListingPage(rows=[{"n": 0}], pagination=parse_pagination_text("1-10 of 0"), has_next=True),
        ListingPage(rows=[{"n": 1}], has_next=False),
    ]
    collector = PaginatedCollector(ScriptedSource(pages))

    assert len(await _drain(collector)) == 2
    assert collector.total_pages is None


@pytest.mark.asyncio
async def test_safety_cap_stops_traversal_as_degraded():
    pages = [ListingPage(rows=[{"n": i}], has_next=True) for i in range(10)]
    source = ScriptedSource(pages)
    collector = PaginatedCollector(source, max_pages=3)

    rows = await _drain(collector)

    assert len(rows) == 3
    assert source.requested == [1, 2, 3]
    assert collector.degraded
    assert "safety cap" in collector.stop_reason


@pytest.mark.asyncio
async def test_empty_page_stops_traversal():
    pages = [
        ListingPage(rows=[{"n": 0}], has_next=None),
        ListingPage(rows=[], has_next=None),
        ListingPage(rows=[{"n": 2}], has_next=None),
    ]
    source = ScriptedSource(pages)
    collector = PaginatedCollector(source)

    assert len(await _drain(collector)) == 1
    assert source.requested == [1, 2]
    assert collector.pages_visited == 1


@pytest.mark.asyncio
async def test_disabled_next_stops_before_computed_total():
    pages = [
        ListingPage(rows=[{"n": 0}], pagination=PaginationInfo(1, 1, 5), has_next=True),
        ListingPage(rows=[{"n": 1}], pagination=PaginationInfo(2, 2, 5), has_next=False),
    ]
    source = ScriptedSource(pages)
    collector = PaginatedCollector(source)

    assert len(await _drain(collector)) == 2
    assert collector.total_pages == 5
    assert source.requested == [1, 2]


@pytest.mark.asyncio
async def test_first_page_failure_is_a_discovery_error():
    collector = PaginatedCollector(ScriptedSource([FetchError("GET listing", 3, "boom")]))
    with pytest.raises(DiscoveryError):
        await _drain(collector)


@pytest.mark.asyncio
async def test_later_page_failure_degrades_without_raising():
    pages = [ListingPage(rows=[{"n": 0}], has_next=True), FetchError("GET listing", 3, "boom")]
    collector = PaginatedCollector(ScriptedSource(pages))

    assert len(await _drain(collector)) == 1
    assert collector.degraded


@pytest.mark.asyncio
async def test_settle_delay_applies_before_first_page_only():
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    source = MetadataSource(30, 10, has_next=False)
    collector = PaginatedCollector(source, settle_delay=1.5, sleep=fake_sleep)
    await _drain(collector)

    assert delays == [1.5]


def test_max_pages_must_be_positive():
    with pytest.raises(ValueError):
        PaginatedCollector(ScriptedSource([]), max_pages=0)
