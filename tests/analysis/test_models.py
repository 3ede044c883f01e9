from datetime import datetime, timezone
from decimal import Decimal

import pytest

from analysis.models import ExtractionRunBuilder, PerformanceMetrics, VaultRecord, VaultSummary
from errors import ParseError


def test_summary_from_listing_row():
    row = {
        "apr": 0.123,
        "summary": {
            "name": "Alpha",
            "vaultAddress": "0xAAA",
            "leader": "0xLEAD",
            "tvl": "25000.50",
            "isClosed": False,
            "createTimeMillis": 1700000000000,
        },
    }
    summary = VaultSummary.from_listing_row(row)
    assert summary.address == "0xAAA"
    assert summary.tvl == Decimal("25000.50")
    assert summary.apr == Decimal("0.123")
    assert summary.created_at == 1700000000000


def test_summary_accepts_flat_rows():
    summary = VaultSummary.from_listing_row({"address": "0x1", "name": "Flat", "tvl": "$1,000", "apr": "0.5"})
    assert summary.tvl == Decimal("1000")


@pytest.mark.parametrize("row", [
    {"apr": 0.1, "summary": {"name": "x", "tvl": "1"}},
    {"apr": "abc", "summary": {"vaultAddress": "0x1", "tvl": "1"}},
    {"apr": 0.1, "summary": {"vaultAddress": "0x1", "tvl": None}},
    ["not", "a", "dict"],
])
def test_malformed_rows_raise_parse_error(row):
    with pytest.raises(ParseError):
        VaultSummary.from_listing_row(row)


def _record(errors=None):
    summary = VaultSummary(address="0x1", name="V", leader="0x2", tvl=Decimal("100"), apr=Decimal("0.1"))
    return VaultRecord(
        summary=summary,
        performance=PerformanceMetrics(max_drawdown=0.25, cumulative_pnl=12.0),
        nested={"trades": ({"coin": "BTC"},), "funding": ()},
        errors=errors or {},
        data_fetched_at="2026-01-01T00:00:00+00:00",
    )


def test_record_dict_layout():
    data = _record(errors={"ledger": "boom"}).to_dict()
    assert data["vaultName"] == "V"
    assert data["vaultPerformance"]["maxDrawdown"] == 0.25
    assert data["tradeHistoryData"] == [{"coin": "BTC"}]
    assert data["fundingHistoryData"] == []
    assert data["depositsWithdrawalsDataError"] == "boom"
    assert "depositorsData" not in data
    assert list(data)[-1] == "dataFetchedAt"


def test_builder_counts_processed_records():
    builder = ExtractionRunBuilder(config={"min_tvl": 1}, started_at=datetime(2026, 1, 1, tzinfo=timezone.utc))
    builder.add(_record())
    run = builder.build(finished_at=datetime(2026, 1, 1, 0, 5, tzinfo=timezone.utc))
    assert run.counters.processed == 1
    assert len(run.records) == 1
    assert not run.aborted
    assert run.summary_dict()["processed"] == 1


@pytest.mark.parametrize("created", [float("inf"), "1e400", "soon", True])
def test_unusable_creation_time_is_dropped(created):
    row = {"apr": 0.1, "summary": {"vaultAddress": "0x1", "tvl": "20000", "createTimeMillis": created}}
    assert VaultSummary.from_listing_row(row).created_at is None


@pytest.mark.parametrize("tvl", ["1e400", "Infinity", "NaN"])
def test_tvl_outside_float_range_is_rejected(tvl):
    with pytest.raises(ParseError):
        VaultSummary.from_listing_row({"apr": 0.1, "summary": {"vaultAddress": "0x1", "tvl": tvl}})


def test_record_reports_closed_state():
    summary = VaultSummary(address="0x1", name="V", leader="0x2", tvl=Decimal("100"), apr=Decimal("0.1"), is_closed=True)
    record = VaultRecord(
        summary=summary,
        performance=PerformanceMetrics(),
        nested={},
        errors={},
        data_fetched_at="2026-01-01T00:00:00+00:00",
    )
    assert record.to_dict()["isClosed"] is True
