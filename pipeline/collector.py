#!/usr/bin/env python3
"""Single-pass traversal of a paginated collection of unknown length."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Protocol

from analysis.pagination import PaginationResult, total_pages
from constants import C_RED, C_RESET, C_YELLOW, DEFAULT_MAX_PAGES
from errors import DiscoveryError, ExtractionError


@dataclass
class ListingPage:
    """One page of raw member rows.

    `pagination` is the parsed metadata shown alongside the page (only the
    first page's is used). `has_next` is the state of the next-page
    affordance, or None when the source exposes none.
    """
    rows: List[Dict[str, Any]] = field(default_factory=list)
    pagination: Optional[PaginationResult] = None
    has_next: Optional[bool] = None


class PageSource(Protocol):
    async def fetch_page(self, page_number: int) -> ListingPage: ...


class PaginatedCollector:
    def __init__(
        self,
        source: PageSource,
        *,
        max_pages: int = DEFAULT_MAX_PAGES,
        settle_delay: float = 0.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.source = source
        self.max_pages = max_pages
        self.settle_delay = settle_delay
        self._sleep = sleep
        self.pages_visited = 0
        self.total_pages: Optional[int] = None
        self.degraded = False
        self.stop_reason: Optional[str] = None

    async def collect(self) -> AsyncIterator[Dict[str, Any]]:
        """Yields every raw row of every page, page by page.

        Raises DiscoveryError when the first page cannot be fetched. Later
        page failures end the traversal early and mark it degraded.
        """
        page_number = 1
        while True:
            if self.total_pages is None and page_number > self.max_pages:
                self.degraded = True
                self._stop(f"reached max pages safety cap ({self.max_pages}) without pagination metadata", warn=True)
                return

            if page_number == 1 and self.settle_delay > 0:
                await self._sleep(self.settle_delay)

            try:
                page = await self.source.fetch_page(page_number)
            except ExtractionError as exc:
                if page_number == 1:
                    raise DiscoveryError(f"Could not fetch the first listing page: {exc}") from exc
                print(f"{C_RED}Listing page {page_number} failed: {exc}{C_RESET}")
                self.degraded = True
                self._stop(f"page {page_number} could not be fetched", warn=True)
                return

            if page_number == 1:
                self.total_pages = total_pages(page.pagination)
                if self.total_pages is None:
                    print(f"{C_YELLOW}No usable pagination metadata ({page.pagination}); "
                          f"relying on the next-page affordance (cap {self.max_pages} pages).{C_RESET}")
                elif self.total_pages == 0:
                    self._stop("collection is empty")
                    return
                else:
                    print(f"Pagination: {self.total_pages} page(s) expected.")

            if not page.rows:
                self._stop(f"page {page_number} returned no rows")
                return

            self.pages_visited += 1
            print(f"Listing page {page_number}{'/' + str(self.total_pages) if self.total_pages else ''}: {len(page.rows)} row(s).")
            for row in page.rows:
                yield row

            if self.total_pages is not None and page_number >= self.total_pages:
                self._stop(f"reached last page ({page_number}/{self.total_pages})")
                return
            if page.has_next is False:
                early = self.total_pages is not None and page_number < self.total_pages
                self._stop(f"next-page affordance disabled on page {page_number}", warn=early)
                return
            # Without metadata or an affordance, probe until an empty page or the cap.
            page_number += 1

    def _stop(self, reason: str, warn: bool = False) -> None:
        self.stop_reason = reason
        if warn:
            print(f"{C_YELLOW}Stopping traversal: {reason}.{C_RESET}")
        else:
            print(f"Traversal finished: {reason}.")
