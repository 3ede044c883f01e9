#!/usr/bin/env python3
"""Fetches and assembles the nested detail for one eligible vault."""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional, Tuple

from analysis.models import VaultRecord, VaultSummary
from constants import C_RED, C_RESET, C_YELLOW, DEFAULT_PORTFOLIO_PERIOD
from errors import ExtractionError, ParseError, VaultProcessingError
from performance_metrics import calculate_performance_metrics
from services.hyperliquid_client import HyperliquidClient

Row = Dict[str, Any]


class DetailOptions(NamedTuple):
    fetch_trades: bool = True
    fetch_funding: bool = True
    fetch_ledger: bool = True
    fetch_depositors: bool = True
    fetch_positions: bool = True
    history_start: int = 0
    portfolio_period: str = DEFAULT_PORTFOLIO_PERIOD


def _num(value: Any, name: str) -> float:
    if value is None or isinstance(value, bool):
        raise ParseError(f"{name} is missing")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"{name} is not numeric: {value!r}") from exc
    if not math.isfinite(number):
        raise ParseError(f"{name} is not finite: {value!r}")
    return number


def _opt_num(value: Any) -> Optional[float]:
    try:
        return _num(value, "value")
    except ParseError:
        return None


def _require_dict(raw: Any, what: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ParseError(f"{what} is not an object: {raw!r}")
    return raw


# --- Row parsers (one per nested resource) ---

def parse_trade(raw: Any) -> Row:
    fill = _require_dict(raw, "fill")
    price = _num(fill.get("px"), "px")
    size = _num(fill.get("sz"), "sz")
    return {
        "time": int(_num(fill.get("time"), "time")),
        "coin": fill.get("coin"),
        "direction": fill.get("dir") or fill.get("side"),
        "price": price,
        "size": size,
        "tradeValue": price * size,
        "fee": _opt_num(fill.get("fee")),
        "closedPnl": _opt_num(fill.get("closedPnl")),
    }


def parse_funding(raw: Any) -> Row:
    entry = _require_dict(raw, "funding entry")
    delta = _require_dict(entry.get("delta"), "funding delta")
    size = _num(delta.get("szi"), "szi")
    return {
        "time": int(_num(entry.get("time"), "time")),
        "coin": delta.get("coin"),
        "size": size,
        "positionSide": "Long" if size > 0 else "Short" if size < 0 else "Flat",
        "payment": _num(delta.get("usdc"), "usdc"),
        "rate": _opt_num(delta.get("fundingRate")),
    }


def parse_ledger_update(raw: Any) -> Row:
    entry = _require_dict(raw, "ledger entry")
    delta = _require_dict(entry.get("delta"), "ledger delta")
    change = delta.get("usdc", delta.get("amount"))
    return {
        "time": int(_num(entry.get("time"), "time")),
        "hash": entry.get("hash"),
        "action": delta.get("type"),
        "accountValueChange": _opt_num(change),
        "fee": _opt_num(delta.get("fee")),
        "user": delta.get("user"),
    }


def parse_depositor(raw: Any) -> Row:
    follower = _require_dict(raw, "follower")
    user = follower.get("user")
    if not user:
        raise ParseError("follower has no user address")
    days = _opt_num(follower.get("daysFollowing"))
    return {
        "depositor": user,
        "vaultAmount": _num(follower.get("vaultEquity"), "vaultEquity"),
        "unrealizedPnl": _opt_num(follower.get("pnl")),
        "allTimePnl": _opt_num(follower.get("allTimePnl")),
        "daysFollowing": int(days) if days is not None else None,
    }


def parse_position(raw: Any) -> Row:
    asset_position = _require_dict(raw, "asset position")
    position = _require_dict(asset_position.get("position"), "position")
    leverage = position.get("leverage")
    leverage_value = _opt_num(leverage.get("value")) if isinstance(leverage, dict) else _opt_num(leverage)
    cum_funding = position.get("cumFunding")
    return {
        "coin": position.get("coin"),
        "size": _num(position.get("szi"), "szi"),
        "leverage": f"{leverage_value:g}x" if leverage_value is not None else None,
        "entryPrice": _opt_num(position.get("entryPx")),
        "positionValue": _opt_num(position.get("positionValue")),
        "unrealizedPnl": _opt_num(position.get("unrealizedPnl")),
        "returnOnEquity": _opt_num(position.get("returnOnEquity")),
        "liqPrice": _opt_num(position.get("liquidationPx")),
        "margin": _opt_num(position.get("marginUsed")),
        "funding": _opt_num(cum_funding.get("allTime")) if isinstance(cum_funding, dict) else None,
    }


def parse_balances(state: Dict[str, Any]) -> Row:
    summary = _require_dict(state.get("marginSummary"), "marginSummary")
    return {
        "accountValue": _num(summary.get("accountValue"), "accountValue"),
        "totalMarginUsed": _opt_num(summary.get("totalMarginUsed")),
        "totalNotionalPosition": _opt_num(summary.get("totalNtlPos")),
        "withdrawable": _opt_num(state.get("withdrawable")),
    }


def parse_rows(raw_rows: Any, parser: Callable[[Any], Row], label: str) -> Tuple[Row, ...]:
    """Applies a row parser to every row, skipping the rows it rejects."""
    if not isinstance(raw_rows, list):
        raise ParseError(f"{label} is not a list")
    rows: List[Row] = []
    skipped = 0
    for raw in raw_rows:
        try:
            rows.append(parser(raw))
        except ParseError:
            skipped += 1
    if skipped:
        print(f"{C_YELLOW}Skipped {skipped} malformed {label} row(s).{C_RESET}")
    return tuple(rows)


class DetailAggregator:
    """Builds a VaultRecord from the primary detail plus each optional nested resource.

    Only a failure of the primary vaultDetails fetch is fatal (for that vault);
    every optional resource that fails gets an error marker instead.
    """

    def __init__(
        self,
        client: HyperliquidClient,
        options: Optional[DetailOptions] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.client = client
        self.options = options or DetailOptions()
        self._clock = clock

    async def aggregate(self, summary: VaultSummary) -> VaultRecord:
        address = summary.address
        try:
            details = await self.client.get_vault_details(address)
        except ExtractionError as exc:
            raise VaultProcessingError(address, exc) from exc

        performance = calculate_performance_metrics(details, self.options.portfolio_period)
        nested: Dict[str, Tuple[Row, ...]] = {}
        errors: Dict[str, str] = {}

        opts = self.options
        if opts.fetch_trades:
            await self._collect(nested, errors, "trades", lambda: self.client.get_user_fills(address), parse_trade)
        if opts.fetch_funding:
            await self._collect(nested, errors, "funding",
                                lambda: self.client.get_user_funding(address, opts.history_start), parse_funding)
        if opts.fetch_ledger:
            await self._collect(nested, errors, "ledger",
                                lambda: self.client.get_ledger_updates(address, opts.history_start), parse_ledger_update)
        if opts.fetch_depositors:
            await self._collect(nested, errors, "depositors", lambda: _followers(details), parse_depositor)
        if opts.fetch_positions:
            await self._collect_positions(address, nested, errors)

        return VaultRecord(
            summary=summary,
            performance=performance,
            nested=nested,
            errors=errors,
            data_fetched_at=self._clock().isoformat(),
        )

    async def _collect(
        self,
        nested: Dict[str, Tuple[Row, ...]],
        errors: Dict[str, str],
        resource: str,
        fetch: Callable[[], Awaitable[Any]],
        parser: Callable[[Any], Row],
    ) -> None:
        try:
            nested[resource] = parse_rows(await fetch(), parser, resource)
        except ExtractionError as exc:
            print(f"{C_RED}Could not fetch {resource}: {exc}{C_RESET}")
            errors[resource] = str(exc)

    async def _collect_positions(self, address: str, nested: Dict[str, Tuple[Row, ...]], errors: Dict[str, str]) -> None:
        try:
            state = await self.client.get_clearinghouse_state(address)
        except ExtractionError as exc:
            print(f"{C_RED}Could not fetch positions/balances: {exc}{C_RESET}")
            errors["positions"] = errors["balances"] = str(exc)
            return
        try:
            nested["positions"] = parse_rows(state.get("assetPositions", []), parse_position, "positions")
        except ParseError as exc:
            errors["positions"] = str(exc)
        try:
            nested["balances"] = (parse_balances(state),)
        except ParseError as exc:
            errors["balances"] = str(exc)


async def _followers(details: Dict[str, Any]) -> Any:
    followers = details.get("followers")
    if followers is None:
        raise ParseError("vaultDetails carries no depositor list")
    return followers
