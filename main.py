#!/usr/bin/env python3
import asyncio
import sys

import aiohttp

import constants
from analysis.models import ExtractionRun
from config import AppConfig, load_config
from extractor import build_assembler
from performance_metrics import format_metric
from reports.dataset_writer import write_run


async def run_extraction(config: AppConfig) -> ExtractionRun:
    """Runs one extraction with a single shared aiohttp session."""
    async with aiohttp.ClientSession(headers={'User-Agent': constants.USER_AGENT}) as session:
        assembler = build_assembler(config, session)
        return await assembler.run()


def main() -> None:
    """The main synchronous entry point for the application."""
    config = load_config()
    print('Starting vault data extraction...')

    run = asyncio.run(run_extraction(config))

    _print_run_report(run)

    artifacts = write_run(run, config.output_dir, include_summary=config.write_summary)
    if artifacts.paths:
        for path in artifacts.paths:
            print(f"{constants.C_GREEN}Wrote {path}{constants.C_RESET}")
    else:
        print('No vault data collected. JSON file not generated.')

    if run.aborted:
        sys.exit(1)


def _print_run_report(run: ExtractionRun) -> None:
    counters = run.counters
    heading = (
        f"Found {counters.found}, eligible {counters.eligible}, "
        f"processed {counters.processed}, failed {counters.failed}"
    )
    if counters.degraded:
        heading += " (traversal degraded)"
    print(heading)
    print("=" * len(heading))

    if not run.records:
        print("No vaults processed.")
        return

    headers = ["Vault", "Address", "TVL $", "APR", "Max DD", "PnL $", "Missing"]

    def _format_row(record) -> list[str]:
        performance = record.performance
        return [
            record.summary.name or "-",
            record.summary.address,
            f"{float(record.summary.tvl):,.0f}",
            format_metric(float(record.summary.apr), percent=True),
            format_metric(performance.max_drawdown, percent=True),
            format_metric(performance.cumulative_pnl),
            ", ".join(sorted(record.errors)) or "-",
        ]

    rows = [_format_row(rec) for rec in run.records]
    widths = [len(h) for h in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))

    def _format_line(row: list[str]) -> str:
        return "  ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(row))

    print(_format_line(headers))
    print("  ".join('-' * w for w in widths))
    for row in rows:
        print(_format_line(row))


if __name__ == "__main__":
    main()
