#!/usr/bin/env python3
"""Eligibility thresholds applied to listed vaults."""
from __future__ import annotations

from decimal import Decimal
from typing import FrozenSet, Iterable, NamedTuple

from analysis.models import EligibilityDecision, VaultSummary


class Thresholds(NamedTuple):
    min_tvl: Decimal
    min_apr: Decimal
    blacklist: FrozenSet[str]

    @classmethod
    def create(cls, min_tvl: float | Decimal | str, min_apr: float | Decimal | str, blacklist: Iterable[str] = ()) -> "Thresholds":
        return cls(
            min_tvl=Decimal(str(min_tvl)),
            min_apr=Decimal(str(min_apr)),
            blacklist=frozenset(address.lower() for address in blacklist),
        )


def evaluate_eligibility(summary: VaultSummary, thresholds: Thresholds) -> EligibilityDecision:
    """Checks a summary against every threshold; equality with a threshold passes."""
    failed = []
    if summary.tvl < thresholds.min_tvl:
        failed.append(f"tvl {summary.tvl} < min_tvl {thresholds.min_tvl}")
    if summary.apr < thresholds.min_apr:
        failed.append(f"apr {summary.apr} < min_apr {thresholds.min_apr}")
    if summary.address.lower() in thresholds.blacklist:
        failed.append("address is blacklisted")

    if failed:
        return EligibilityDecision(eligible=False, reason="; ".join(failed), failed_clauses=tuple(failed))
    return EligibilityDecision(eligible=True, reason="eligible")
