#!/usr/bin/env python3
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple, Union

from constants import NESTED_RESOURCE_KEYS, NOT_AVAILABLE
from errors import ParseError

Metric = Union[float, str]  # float, or NOT_AVAILABLE


def _to_decimal(value: Any, field_name: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ParseError(f"{field_name} is missing")
    try:
        result = Decimal(str(value).replace('$', '').replace(',', '').strip())
    except (InvalidOperation, ValueError) as exc:
        raise ParseError(f"{field_name} is not numeric: {value!r}") from exc
    if not result.is_finite() or not math.isfinite(float(result)):
        raise ParseError(f"{field_name} is not finite: {value!r}")
    return result


@dataclass(frozen=True)
class VaultSummary:
    """Represents one vault as listed by the discovery endpoint."""
    address: str
    name: str
    leader: str
    tvl: Decimal
    apr: Decimal
    created_at: Optional[int] = None  # epoch milliseconds
    is_closed: bool = False

    @classmethod
    def from_listing_row(cls, row: Dict[str, Any]) -> "VaultSummary":
        """Validates a raw listing row ({"apr": ..., "summary": {...}})."""
        if not isinstance(row, dict):
            raise ParseError(f"listing row is not an object: {type(row).__name__}")
        summary = row.get('summary')
        if not isinstance(summary, dict):
            summary = row
        address = summary.get('vaultAddress') or summary.get('address')
        if not address or not isinstance(address, str):
            raise ParseError("listing row has no vault address")

        created_raw = summary.get('createTimeMillis', summary.get('createdAt'))
        created_at = None
        if created_raw is not None and not isinstance(created_raw, bool):
            try:
                created_value = float(created_raw)
            except (TypeError, ValueError):
                created_value = math.nan
            if math.isfinite(created_value):
                created_at = int(created_value)

        return cls(
            address=address,
            name=str(summary.get('name') or ''),
            leader=str(summary.get('leader') or ''),
            tvl=_to_decimal(summary.get('tvl'), 'tvl'),
            apr=_to_decimal(row.get('apr', summary.get('apr')), 'apr'),
            created_at=created_at,
            is_closed=bool(summary.get('isClosed', False)),
        )


@dataclass(frozen=True)
class EligibilityDecision:
    eligible: bool
    reason: str
    failed_clauses: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TimeSeriesSample:
    timestamp: int
    value: float


@dataclass(frozen=True)
class PerformanceMetrics:
    max_drawdown: Metric = NOT_AVAILABLE
    cumulative_pnl: Metric = NOT_AVAILABLE
    volume: Metric = NOT_AVAILABLE
    profit_share: Metric = NOT_AVAILABLE
    past_month_return: Metric = NOT_AVAILABLE

    def to_dict(self) -> Dict[str, Metric]:
        return {
            'maxDrawdown': self.max_drawdown,
            'cumulativePnl': self.cumulative_pnl,
            'volume': self.volume,
            'profitShare': self.profit_share,
            'pastMonthReturn': self.past_month_return,
        }


@dataclass(frozen=True)
class VaultRecord:
    """The assembled output record for one eligible, processed vault.

    `nested` maps a resource name (see NESTED_RESOURCE_KEYS) to its rows;
    `errors` maps a resource name to the reason it could not be fetched.
    A resource that was disabled by configuration appears in neither.
    """
    summary: VaultSummary
    performance: PerformanceMetrics
    nested: Dict[str, Tuple[Dict[str, Any], ...]]
    errors: Dict[str, str]
    data_fetched_at: str

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'address': self.summary.address,
            'vaultName': self.summary.name,
            'leader': self.summary.leader,
            'tvl': float(self.summary.tvl),
            'apr': float(self.summary.apr),
            'createdAt': self.summary.created_at,
            'isClosed': self.summary.is_closed,
            'vaultPerformance': self.performance.to_dict(),
        }
        for resource, key in NESTED_RESOURCE_KEYS.items():
            if resource in self.errors:
                data[f"{key}Error"] = self.errors[resource]
            elif resource in self.nested:
                data[key] = [dict(row) for row in self.nested[resource]]
        data['dataFetchedAt'] = self.data_fetched_at
        return data

    def to_summary_dict(self) -> Dict[str, Any]:
        """Identity plus key metrics, for the smaller summary artifact."""
        return {
            'address': self.summary.address,
            'vaultName': self.summary.name,
            'tvl': float(self.summary.tvl),
            'apr': float(self.summary.apr),
            'maxDrawdown': self.performance.max_drawdown,
            'cumulativePnl': self.performance.cumulative_pnl,
            'failedResources': sorted(self.errors),
        }


@dataclass
class RunCounters:
    found: int = 0
    eligible: int = 0
    processed: int = 0
    failed: int = 0
    rejected: int = 0
    parse_failures: int = 0
    pages_visited: int = 0
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'found': self.found,
            'eligible': self.eligible,
            'processed': self.processed,
            'failed': self.failed,
            'rejected': self.rejected,
            'parseFailures': self.parse_failures,
            'pagesVisited': self.pages_visited,
            'degraded': self.degraded,
        }


@dataclass(frozen=True)
class ExtractionRun:
    records: Tuple[VaultRecord, ...]
    counters: RunCounters
    config: Dict[str, Any]
    started_at: datetime
    finished_at: datetime
    aborted_reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self.aborted_reason is not None

    def summary_dict(self) -> Dict[str, Any]:
        return {
            **self.counters.to_dict(),
            'startedAt': self.started_at.isoformat(),
            'finishedAt': self.finished_at.isoformat(),
            'abortedReason': self.aborted_reason,
        }


@dataclass
class ExtractionRunBuilder:
    """Accumulates records and counters for a single run."""
    config: Dict[str, Any]
    started_at: datetime
    counters: RunCounters = field(default_factory=RunCounters)
    _records: List[VaultRecord] = field(default_factory=list)

    def add(self, record: VaultRecord) -> None:
        self._records.append(record)
        self.counters.processed += 1

    def build(self, finished_at: datetime, aborted_reason: Optional[str] = None) -> ExtractionRun:
        return ExtractionRun(
            records=tuple(self._records),
            counters=self.counters,
            config=dict(self.config),
            started_at=self.started_at,
            finished_at=finished_at,
            aborted_reason=aborted_reason,
        )
