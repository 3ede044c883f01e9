#!/usr/bin/env python3
"""Serves the (unpaginated) vault listing endpoint as fixed-size pages."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from analysis.pagination import PaginationInfo
from constants import DEFAULT_PAGE_SIZE
from pipeline.collector import ListingPage
from services.hyperliquid_client import HyperliquidClient


class VaultListingSource:
    """Page source over the vault listing.

    The listing is downloaded once, on the first page request; every page
    after that is sliced from the same snapshot so one traversal never sees
    the collection shift underneath it.
    """

    def __init__(self, client: HyperliquidClient, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.client = client
        self.page_size = page_size
        self._snapshot: Optional[List[Dict[str, Any]]] = None

    async def fetch_page(self, page_number: int) -> ListingPage:
        if self._snapshot is None:
            self._snapshot = await self.client.get_vault_listing()
        total = len(self._snapshot)
        start = (page_number - 1) * self.page_size
        rows = self._snapshot[start:start + self.page_size]
        if total == 0:
            pagination = PaginationInfo(range_start=1, range_end=0, total=0)
        else:
            pagination = PaginationInfo(range_start=start + 1, range_end=start + len(rows), total=total)
        return ListingPage(rows=list(rows), pagination=pagination, has_next=start + self.page_size < total)
