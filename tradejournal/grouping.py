"""
grouping.py
-----------

Slicing of the journal for charts: by strategy, by emotion, by calendar
month or day, and by date window. Everything here is a pure function of
the trade list it is given.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .analytics import chronological, total_pnl, win_rate
from .models import Trade, parse_date
from .pnl import resolve_trade_pnl

NO_STRATEGY = "No Strategy"
UNKNOWN_EMOTION = "Unknown"

# window code -> days back from "now"
RELATIVE_WINDOWS = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
}


@dataclass
class MonthlyBucket:
    pnl: float = 0.0
    trade_count: int = 0
    win_count: int = 0
    loss_count: int = 0

    @property
    def win_rate(self) -> float:
        return self.win_count / self.trade_count * 100 if self.trade_count else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pnl": self.pnl,
            "trades": self.trade_count,
            "wins": self.win_count,
            "losses": self.loss_count,
            "win_rate": self.win_rate,
        }


@dataclass
class DailyBucket:
    pnl: float = 0.0
    trade_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"pnl": self.pnl, "trades": self.trade_count}


# ---------- grouping ----------
def group_by_strategy(trades: Sequence[Trade]) -> Dict[str, List[Trade]]:
    """Trades keyed by setup name, in order of first appearance."""
    groups: Dict[str, List[Trade]] = {}
    for trade in trades:
        groups.setdefault(trade.which_setup or NO_STRATEGY, []).append(trade)
    return groups


def group_by_emotion(trades: Sequence[Trade]) -> Dict[str, List[Trade]]:
    groups: Dict[str, List[Trade]] = {}
    for trade in trades:
        groups.setdefault(trade.emotion or UNKNOWN_EMOTION, []).append(trade)
    return groups


def group_by_calendar_month(trades: Sequence[Trade]) -> Dict[str, MonthlyBucket]:
    """P&L and win/loss counts per "YYYY-MM", months ascending.

    Flat trades count as trades but neither as wins nor losses. Trades
    without a date are skipped.
    """
    buckets: Dict[str, MonthlyBucket] = {}
    for trade in trades:
        if trade.trade_date is None:
            continue
        key = trade.trade_date.strftime("%Y-%m")
        bucket = buckets.setdefault(key, MonthlyBucket())
        pnl = resolve_trade_pnl(trade)
        bucket.pnl += pnl
        bucket.trade_count += 1
        if pnl > 0:
            bucket.win_count += 1
        elif pnl < 0:
            bucket.loss_count += 1
    return dict(sorted(buckets.items()))


def group_by_day(trades: Sequence[Trade]) -> Dict[str, DailyBucket]:
    """P&L and trade count per "YYYY-MM-DD", for the trading calendar."""
    buckets: Dict[str, DailyBucket] = {}
    for trade in trades:
        if trade.trade_date is None:
            continue
        bucket = buckets.setdefault(trade.trade_date.isoformat(), DailyBucket())
        bucket.pnl += resolve_trade_pnl(trade)
        bucket.trade_count += 1
    return dict(sorted(buckets.items()))


# ---------- breakdowns ----------
def _summary_row(name: str, group: Sequence[Trade]) -> Dict[str, Any]:
    pnl = total_pnl(group)
    return {
        "name": name,
        "trades": len(group),
        "pnl": pnl,
        "win_rate": win_rate(group),
        "average_pnl": pnl / len(group) if group else 0.0,
    }


def strategy_breakdown(trades: Sequence[Trade]) -> List[Dict[str, Any]]:
    return [_summary_row(name, group) for name, group in group_by_strategy(trades).items()]


def emotion_breakdown(trades: Sequence[Trade]) -> List[Dict[str, Any]]:
    """Per-emotion summary rows, most profitable emotion first."""
    rows = [_summary_row(name, group) for name, group in group_by_emotion(trades).items()]
    return sorted(rows, key=lambda r: r["pnl"], reverse=True)


def equity_curve(trades: Sequence[Trade]) -> pd.DataFrame:
    """
    Returns a DataFrame with columns: ['date', 'equity', 'trade_number'] where
    'equity' is cumulative P&L after each trade, trades in date order.
    """
    ordered = [t for t in chronological(trades) if t.trade_date is not None]
    if not ordered:
        return pd.DataFrame({"date": [], "equity": [], "trade_number": []})
    df = pd.DataFrame({
        "date": [t.trade_date for t in ordered],
        "pnl": [resolve_trade_pnl(t) for t in ordered],
    })
    df["equity"] = df["pnl"].cumsum().astype(float)
    df["trade_number"] = range(1, len(df) + 1)
    return df[["date", "equity", "trade_number"]]


# ---------- date filters ----------
def filter_by_date_range(trades: Sequence[Trade], start_date: Any, end_date: Any) -> List[Trade]:
    """Trades with start_date <= trade_date <= end_date.

    Bounds may be dates or date strings. Trades (or bounds) whose dates do
    not parse are excluded rather than raising.
    """
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start is None or end is None:
        return []
    return [t for t in trades if t.trade_date is not None and start <= t.trade_date <= end]


def filter_by_relative_window(
    trades: Sequence[Trade],
    window: str,
    now: Optional[datetime] = None,
    start_date: Any = None,
    end_date: Any = None,
) -> List[Trade]:
    """Trades inside a dashboard time window.

    ``window`` is one of ``all``, ``7d``, ``30d``, ``90d``, ``1y`` or
    ``custom``. The relative windows keep trades on or after ``now - N
    days``. ``custom`` uses start_date/end_date and shows everything while
    either bound is still unset. Unknown codes behave like ``all``.
    """
    if window == "custom":
        if not start_date or not end_date:
            return list(trades)
        return filter_by_date_range(trades, start_date, end_date)
    days = RELATIVE_WINDOWS.get(window)
    if days is None:
        return list(trades)
    now = now or datetime.now()
    today = now.date() if isinstance(now, datetime) else now
    cutoff = today - timedelta(days=days)
    return [t for t in trades if t.trade_date is not None and t.trade_date >= cutoff]
