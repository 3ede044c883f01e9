#!/usr/bin/env python3
"""Async wrapper for the Hyperliquid vault listing and info endpoints."""
from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List

from constants import (
    DETAIL_TYPE_CLEARINGHOUSE,
    DETAIL_TYPE_FILLS,
    DETAIL_TYPE_FUNDING,
    DETAIL_TYPE_LEDGER,
    DETAIL_TYPE_VAULT,
    DEFAULT_REQUEST_DELAY,
    HYPERLIQUID_INFO_URL,
    VAULT_LISTING_URL,
)
from errors import ParseError
from services.retrying_fetcher import FetchRequest, RetryingFetcher


class HyperliquidClient:
    def __init__(
        self,
        fetcher: RetryingFetcher,
        *,
        info_url: str = HYPERLIQUID_INFO_URL,
        listing_url: str = VAULT_LISTING_URL,
        rate_limit_delay: float = DEFAULT_REQUEST_DELAY,
    ):
        self.fetcher = fetcher
        self.info_url = info_url
        self.listing_url = listing_url
        self._last_request_time = 0.0
        self._rate_limit_delay = rate_limit_delay

    async def _wait_for_rate_limit(self):
        elapsed = time.time() - self._last_request_time
        if elapsed < self._rate_limit_delay:
            await asyncio.sleep(self._rate_limit_delay - elapsed)
        self._last_request_time = time.time()

    async def _info(self, body: Dict[str, Any]) -> Any:
        await self._wait_for_rate_limit()
        return await self.fetcher.fetch(FetchRequest(url=self.info_url, method='POST', json_body=body))

    async def _info_list(self, body: Dict[str, Any]) -> List[Dict[str, Any]]:
        data = await self._info(body)
        if not isinstance(data, list):
            raise ParseError(f"{body['type']} returned {type(data).__name__}, expected a list")
        return data

    async def get_vault_listing(self) -> List[Dict[str, Any]]:
        """Returns the raw listing rows for every vault."""
        await self._wait_for_rate_limit()
        data = await self.fetcher.fetch(FetchRequest(url=self.listing_url))
        if not isinstance(data, list):
            raise ParseError(f"vault listing returned {type(data).__name__}, expected a list")
        return data

    async def get_vault_details(self, vault_address: str) -> Dict[str, Any]:
        data = await self._info({'type': DETAIL_TYPE_VAULT, 'vaultAddress': vault_address})
        if not isinstance(data, dict):
            raise ParseError(f"vaultDetails for {vault_address} returned {type(data).__name__}, expected an object")
        return data

    async def get_user_fills(self, address: str) -> List[Dict[str, Any]]:
        return await self._info_list({'type': DETAIL_TYPE_FILLS, 'user': address})

    async def get_user_funding(self, address: str, start_time: int = 0) -> List[Dict[str, Any]]:
        return await self._info_list({'type': DETAIL_TYPE_FUNDING, 'user': address, 'startTime': start_time})

    async def get_ledger_updates(self, address: str, start_time: int = 0) -> List[Dict[str, Any]]:
        return await self._info_list({'type': DETAIL_TYPE_LEDGER, 'user': address, 'startTime': start_time})

    async def get_clearinghouse_state(self, address: str) -> Dict[str, Any]:
        data = await self._info({'type': DETAIL_TYPE_CLEARINGHOUSE, 'user': address})
        if not isinstance(data, dict):
            raise ParseError(f"clearinghouseState for {address} returned {type(data).__name__}, expected an object")
        return data
