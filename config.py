#!/usr/bin/env python3
import os
import argparse
from typing import NamedTuple, Optional
import constants


class AppConfig(NamedTuple):
    """Typed configuration object."""
    min_tvl: float
    min_apr: float
    blacklist: list[str]
    max_vaults: int | None
    fetch_trades: bool
    fetch_funding: bool
    fetch_ledger: bool
    fetch_depositors: bool
    fetch_positions: bool
    max_retries: int
    base_delay: float
    request_timeout: float
    request_delay: float
    page_size: int
    max_pages: int
    settle_delay: float
    portfolio_period: str
    history_start: int
    output_dir: str
    write_summary: bool
    listing_url: str
    info_url: str

    def snapshot(self) -> dict:
        """JSON-serialisable view of the settings used for a run."""
        data = self._asdict()
        data['blacklist'] = sorted(self.blacklist)
        return data


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _non_negative_float(value: str) -> float:
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return number


def load_config(argv: Optional[list[str]] = None) -> AppConfig:
    """
    Parses command-line arguments and loads environment variables to create a configuration object.
    """
    parser = argparse.ArgumentParser(
        description="Extract a dataset of eligible Hyperliquid vaults with their performance metrics and trading history.",
        epilog="Example: ./main.py --min-tvl 50000 --min-apr 0.05 --max-vaults 10 --skip-trades"
    )
    # --- Eligibility ---
    parser.add_argument('--min-tvl', type=_non_negative_float, default=constants.DEFAULT_MIN_TVL, help=f'Minimum TVL in USD (inclusive, default: {constants.DEFAULT_MIN_TVL:g}).')
    parser.add_argument('--min-apr', type=float, default=constants.DEFAULT_MIN_APR, help=f'Minimum APR as a decimal fraction (inclusive, default: {constants.DEFAULT_MIN_APR}).')
    parser.add_argument('--blacklist', nargs='*', default=None, metavar='ADDRESS', help='Vault addresses to exclude (default: HLP and Liquidator vaults).')
    parser.add_argument('--max-vaults', type=_positive_int, default=None, help='Stop after processing this many eligible vaults (default: unlimited).')

    # --- Nested Resources ---
    parser.add_argument('--skip-trades', action='store_true', help='Do not fetch trade history.')
    parser.add_argument('--skip-funding', action='store_true', help='Do not fetch funding history.')
    parser.add_argument('--skip-ledger', action='store_true', help='Do not fetch deposits and withdrawals.')
    parser.add_argument('--skip-depositors', action='store_true', help='Do not include the depositor list.')
    parser.add_argument('--skip-positions', action='store_true', help='Do not fetch open positions and balances.')
    parser.add_argument('--portfolio-period', choices=constants.PORTFOLIO_PERIODS, default=constants.DEFAULT_PORTFOLIO_PERIOD, help=f'Portfolio window used for drawdown and PnL (default: {constants.DEFAULT_PORTFOLIO_PERIOD}).')
    parser.add_argument('--history-start', type=int, default=0, help='Start time (epoch ms) for funding and ledger history (default: 0).')

    # --- Retry / Pacing ---
    parser.add_argument('--max-retries', type=_positive_int, default=constants.DEFAULT_MAX_RETRIES, help=f'Attempts per request before giving up (default: {constants.DEFAULT_MAX_RETRIES}).')
    parser.add_argument('--base-delay', type=_non_negative_float, default=constants.DEFAULT_BASE_DELAY, help=f'Backoff base delay in seconds; attempt n waits n times this (default: {constants.DEFAULT_BASE_DELAY}).')
    parser.add_argument('--request-timeout', type=_non_negative_float, default=constants.DEFAULT_REQUEST_TIMEOUT, help=f'Per-request timeout in seconds (default: {constants.DEFAULT_REQUEST_TIMEOUT}).')
    parser.add_argument('--request-delay', type=_non_negative_float, default=constants.DEFAULT_REQUEST_DELAY, help=f'Minimum seconds between requests (default: {constants.DEFAULT_REQUEST_DELAY}).')

    # --- Pagination ---
    parser.add_argument('--page-size', type=_positive_int, default=constants.DEFAULT_PAGE_SIZE, help=f'Vaults per listing page (default: {constants.DEFAULT_PAGE_SIZE}).')
    parser.add_argument('--max-pages', type=_positive_int, default=constants.DEFAULT_MAX_PAGES, help=f'Page cap used when the listing has no pagination metadata (default: {constants.DEFAULT_MAX_PAGES}).')
    parser.add_argument('--settle-delay', type=_non_negative_float, default=0.0, help='Seconds to wait before reading the first listing page (default: 0).')

    # --- Output ---
    parser.add_argument('--output-dir', default=constants.DEFAULT_OUTPUT_DIR, help=f'Directory for the JSON artifacts (default: {constants.DEFAULT_OUTPUT_DIR}).')
    parser.add_argument('--no-summary', action='store_true', help='Only write the full dataset, not the summary artifact.')

    args = parser.parse_args(argv)

    if args.history_start < 0:
        parser.error('--history-start must not be negative.')

    # Load from environment
    listing_url = os.environ.get(constants.VAULT_LISTING_URL_ENV_VAR) or constants.VAULT_LISTING_URL
    info_url = os.environ.get(constants.HYPERLIQUID_INFO_URL_ENV_VAR) or constants.HYPERLIQUID_INFO_URL

    blacklist = constants.DEFAULT_BLACKLIST if args.blacklist is None else args.blacklist

    return AppConfig(
        min_tvl=args.min_tvl,
        min_apr=args.min_apr,
        blacklist=[address.lower() for address in blacklist],
        max_vaults=args.max_vaults,
        fetch_trades=not args.skip_trades,
        fetch_funding=not args.skip_funding,
        fetch_ledger=not args.skip_ledger,
        fetch_depositors=not args.skip_depositors,
        fetch_positions=not args.skip_positions,
        max_retries=args.max_retries,
        base_delay=args.base_delay,
        request_timeout=args.request_timeout,
        request_delay=args.request_delay,
        page_size=args.page_size,
        max_pages=args.max_pages,
        settle_delay=args.settle_delay,
        portfolio_period=args.portfolio_period,
        history_start=args.history_start,
        output_dir=args.output_dir,
        write_summary=not args.no_summary,
        listing_url=listing_url,
        info_url=info_url,
    )
