# extractor.py
from contextlib import aclosing
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import aiohttp

from analysis.eligibility import Thresholds, evaluate_eligibility
from analysis.models import ExtractionRun, ExtractionRunBuilder, VaultSummary
from config import AppConfig
from constants import C_BLUE, C_GREEN, C_RED, C_RESET, C_YELLOW
from errors import DiscoveryError, ParseError, VaultProcessingError
from pipeline.collector import PaginatedCollector
from pipeline.detail_aggregator import DetailAggregator, DetailOptions
from services.hyperliquid_client import HyperliquidClient
from services.listing_source import VaultListingSource
from services.retrying_fetcher import RetryingFetcher, RetryPolicy


class DatasetAssembler:
    """Drives one extraction run: collect, filter, aggregate, assemble."""

    def __init__(
        self,
        collector: PaginatedCollector,
        aggregator: DetailAggregator,
        thresholds: Thresholds,
        *,
        max_vaults: Optional[int] = None,
        config_snapshot: Optional[Dict[str, Any]] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.collector = collector
        self.aggregator = aggregator
        self.thresholds = thresholds
        self.max_vaults = max_vaults
        self.config_snapshot = config_snapshot or {}
        self._clock = clock

    async def run(self) -> ExtractionRun:
        builder = ExtractionRunBuilder(config=self.config_snapshot, started_at=self._clock())
        counters = builder.counters
        aborted_reason = None
        try:
            async with aclosing(self.collector.collect()) as rows:
                async for raw in rows:
                    counters.found += 1
                    try:
                        summary = VaultSummary.from_listing_row(raw)
                    except ParseError as e:
                        counters.parse_failures += 1
                        print(f"{C_YELLOW}Skipping malformed listing row: {e}{C_RESET}")
                        continue

                    decision = evaluate_eligibility(summary, self.thresholds)
                    if not decision.eligible:
                        counters.rejected += 1
                        print(f"Rejected {summary.name or summary.address}: {decision.reason}")
                        continue

                    counters.eligible += 1
                    cap = self.max_vaults if self.max_vaults is not None else 'All'
                    print(f"Processing eligible vault ({counters.processed + 1}/{cap}): "
                          f"{C_BLUE}{summary.name}{C_RESET} ({summary.address})")
                    try:
                        record = await self.aggregator.aggregate(summary)
                    except VaultProcessingError as e:
                        counters.failed += 1
                        print(f"{C_RED}{e}. Skipping.{C_RESET}")
                        continue

                    builder.add(record)
                    if self.max_vaults is not None and counters.processed >= self.max_vaults:
                        print(f"Reached processing limit of {self.max_vaults} vaults. Stopping.")
                        break
        except DiscoveryError as e:
            aborted_reason = str(e)
            print(f"{C_RED}Vault discovery failed: {e}{C_RESET}")

        counters.pages_visited = self.collector.pages_visited
        counters.degraded = self.collector.degraded
        run = builder.build(finished_at=self._clock(), aborted_reason=aborted_reason)
        colour = C_RED if run.aborted else C_GREEN
        print(f"{colour}Extraction {'aborted' if run.aborted else 'complete'}: found {counters.found}, "
              f"eligible {counters.eligible}, processed {counters.processed}, failed {counters.failed}.{C_RESET}")
        return run


def build_assembler(config: AppConfig, session: aiohttp.ClientSession) -> DatasetAssembler:
    """Wires the production pipeline for the given configuration."""
    fetcher = RetryingFetcher(
        session,
        RetryPolicy.linear(max_attempts=config.max_retries, base_delay=config.base_delay),
        timeout=config.request_timeout,
    )
    client = HyperliquidClient(
        fetcher,
        info_url=config.info_url,
        listing_url=config.listing_url,
        rate_limit_delay=config.request_delay,
    )
    collector = PaginatedCollector(
        VaultListingSource(client, page_size=config.page_size),
        max_pages=config.max_pages,
        settle_delay=config.settle_delay,
    )
    aggregator = DetailAggregator(
        client,
        DetailOptions(
            fetch_trades=config.fetch_trades,
            fetch_funding=config.fetch_funding,
            fetch_ledger=config.fetch_ledger,
            fetch_depositors=config.fetch_depositors,
            fetch_positions=config.fetch_positions,
            history_start=config.history_start,
            portfolio_period=config.portfolio_period,
        ),
    )
    return DatasetAssembler(
        collector,
        aggregator,
        Thresholds.create(config.min_tvl, config.min_apr, config.blacklist),
        max_vaults=config.max_vaults,
        config_snapshot=config.snapshot(),
    )
