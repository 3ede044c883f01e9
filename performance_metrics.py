# performance_metrics.py
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from analysis.models import Metric, PerformanceMetrics, TimeSeriesSample
from constants import DEFAULT_PORTFOLIO_PERIOD, NOT_AVAILABLE
from errors import ParseError


def parse_sample(raw: Any) -> TimeSeriesSample:
    """Validates one raw history point.

    Accepts `[timestamp, value]` pairs (values are usually decimal strings)
    and `{"time": ..., "value": ...}` objects. Raises ParseError otherwise.
    """
    if isinstance(raw, dict):
        ts_raw = raw.get("time", raw.get("timestamp"))
        val_raw = raw.get("value", raw.get("accountValue"))
    elif isinstance(raw, (list, tuple)) and len(raw) >= 2:
        ts_raw, val_raw = raw[0], raw[1]
    else:
        raise ParseError(f"unexpected sample shape: {raw!r}")

    if isinstance(val_raw, bool) or isinstance(ts_raw, bool):
        raise ParseError(f"boolean in sample: {raw!r}")
    try:
        ts_value = float(ts_raw)
        value = float(val_raw)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"non-numeric sample: {raw!r}") from exc
    if not (math.isfinite(ts_value) and math.isfinite(value)):
        raise ParseError(f"non-finite sample: {raw!r}")
    return TimeSeriesSample(timestamp=int(ts_value), value=value)


def parse_samples(raw_points: Optional[Iterable[Any]]) -> List[TimeSeriesSample]:
    """Validates a raw history, skipping malformed points, ordered by timestamp.

    Anything other than a list of points is treated as an empty history.
    """
    if not isinstance(raw_points, (list, tuple)):
        return []
    samples = []
    for raw in raw_points:
        try:
            samples.append(parse_sample(raw))
        except ParseError:
            continue
    # Stable sort keeps the source order for equal timestamps.
    return sorted(samples, key=lambda s: s.timestamp)


def max_drawdown(samples: Sequence[TimeSeriesSample]) -> Metric:
    """Largest peak-to-trough relative decline, as a fraction in [0, 1).

    Returns "N/A" when fewer than two samples are available.
    """
    if len(samples) < 2:
        return NOT_AVAILABLE

    peak = -math.inf
    worst = 0.0
    for sample in samples:
        peak = max(peak, sample.value)
        if peak > 0:
            drawdown = (peak - sample.value) / peak
            worst = max(worst, drawdown)
    return worst


def cumulative_pnl(samples: Sequence[TimeSeriesSample]) -> Metric:
    """The running PnL total at the latest sample.

    The source series is already cumulative, so this is the last value, not a sum.
    """
    if not samples:
        return NOT_AVAILABLE
    return samples[-1].value


def period_return(samples: Sequence[TimeSeriesSample]) -> Metric:
    """Relative change from the first to the last sample of a window."""
    if len(samples) < 2 or samples[0].value <= 0:
        return NOT_AVAILABLE
    return samples[-1].value / samples[0].value - 1


def _to_metric(value: Any) -> Metric:
    if value is None or isinstance(value, bool):
        return NOT_AVAILABLE
    try:
        result = float(value)
    except (TypeError, ValueError):
        return NOT_AVAILABLE
    return result if math.isfinite(result) else NOT_AVAILABLE


def portfolio_periods(vault_details: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Maps each portfolio period name to its data object.

    The payload shape is `[[period, {accountValueHistory, pnlHistory, vlm}], ...]`;
    entries of any other shape are ignored.
    """
    periods: Dict[str, Dict[str, Any]] = {}
    entries = vault_details.get("portfolio")
    if not isinstance(entries, (list, tuple)):
        return periods
    for entry in entries:
        if isinstance(entry, (list, tuple)) and len(entry) >= 2 and isinstance(entry[1], dict):
            periods[str(entry[0])] = entry[1]
    return periods


def calculate_performance_metrics(
    vault_details: Dict[str, Any],
    period: str = DEFAULT_PORTFOLIO_PERIOD,
) -> PerformanceMetrics:
    """Derives the performance metrics for one vault from its vaultDetails payload."""
    periods = portfolio_periods(vault_details)
    window = periods.get(period, {})
    account_values = parse_samples(window.get("accountValueHistory"))
    pnl_values = parse_samples(window.get("pnlHistory"))
    month_values = parse_samples(periods.get("month", {}).get("accountValueHistory"))

    return PerformanceMetrics(
        max_drawdown=max_drawdown(account_values),
        cumulative_pnl=cumulative_pnl(pnl_values),
        volume=_to_metric(window.get("vlm")),
        profit_share=_to_metric(vault_details.get("leaderCommission")),
        past_month_return=period_return(month_values),
    )


def format_metric(value: Union[Metric, None], percent: bool = False) -> str:
    """Console-friendly rendering of a metric."""
    if value is None or value == NOT_AVAILABLE:
        return "N/A"
    if percent:
        return f"{value * 100:.2f}%"
    return f"{value:,.2f}"
