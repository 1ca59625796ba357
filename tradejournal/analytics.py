"""
analytics.py
-------------

This module contains functions to compute performance metrics from a list
of Trade objects. Splitting analytics into its own module makes it easy
to reuse these functions in different contexts (Flask API, sheet sync,
tests) without coupling them to UI or storage concerns.

Every function reads trade results through ``resolve_trade_pnl`` and
falls back to a neutral value (0, empty) instead of raising: a journal
with half-filled trades must still render its dashboard.
"""

import math
from datetime import date
from typing import List, Dict, Any, Optional, Sequence

from .models import Strategy, Trade
from .pnl import resolve_trade_pnl
from .strategies import select_eligible_trades


def chronological(trades: Sequence[Trade]) -> List[Trade]:
    """Trades sorted by trade_date ascending.

    The sort is stable, so same-day trades keep their logged order, and
    trades without a usable date go last in their original order.
    """
    return sorted(trades, key=lambda t: (t.trade_date is None, t.trade_date or date.min))


def total_pnl(trades: Sequence[Trade]) -> float:
    return sum((resolve_trade_pnl(t) for t in trades), 0.0)


def win_rate(trades: Sequence[Trade]) -> float:
    """Percentage of trades with positive P&L. Flat trades count in the denominator."""
    if not trades:
        return 0.0
    wins = sum(1 for t in trades if resolve_trade_pnl(t) > 0)
    return wins / len(trades) * 100


def average_win(trades: Sequence[Trade]) -> float:
    wins = [p for p in map(resolve_trade_pnl, trades) if p > 0]
    return sum(wins) / len(wins) if wins else 0.0


def average_loss(trades: Sequence[Trade]) -> float:
    """Mean of losing P&L values. Negative, not an absolute value."""
    losses = [p for p in map(resolve_trade_pnl, trades) if p < 0]
    return sum(losses) / len(losses) if losses else 0.0


def max_drawdown(trades: Sequence[Trade]) -> float:
    """Largest peak-to-trough fall of cumulative P&L.

    The peak starts at 0, so an opening loss is already a drawdown.
    Trades are walked in date order.
    """
    peak = 0.0
    running = 0.0
    worst = 0.0
    for trade in chronological(trades):
        running += resolve_trade_pnl(trade)
        if running > peak:
            peak = running
        worst = max(worst, peak - running)
    return worst


def profit_factor(trades: Sequence[Trade]) -> float:
    """Gross profit / gross loss.

    With no losses the gross profit itself is returned (0 when there is
    none either), never inf.
    """
    pnls = [resolve_trade_pnl(t) for t in trades]
    gross_profit = sum(abs(p) for p in pnls if p > 0)
    gross_loss = sum(abs(p) for p in pnls if p < 0)
    if gross_loss == 0:
        return gross_profit if gross_profit > 0 else 0.0
    return gross_profit / gross_loss


def _longest_run(trades: Sequence[Trade], sign: int) -> int:
    longest = 0
    current = 0
    for trade in chronological(trades):
        pnl = resolve_trade_pnl(trade)
        if pnl * sign > 0:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


def max_consecutive_wins(trades: Sequence[Trade]) -> int:
    return _longest_run(trades, 1)


def max_consecutive_losses(trades: Sequence[Trade]) -> int:
    return _longest_run(trades, -1)


def simple_return_ratio(trades: Sequence[Trade]) -> float:
    """Mean P&L over its population standard deviation.

    A rough Sharpe-style figure: per trade, not annualised, no risk-free rate.
    """
    if not trades:
        return 0.0
    pnls = [resolve_trade_pnl(t) for t in trades]
    mean = sum(pnls) / len(pnls)
    variance = sum((p - mean) ** 2 for p in pnls) / len(pnls)
    std = math.sqrt(variance)
    if std == 0:
        return 0.0
    return mean / std


def best_trade(trades: Sequence[Trade]) -> Optional[Trade]:
    if not trades:
        return None
    return max(trades, key=resolve_trade_pnl)


def worst_trade(trades: Sequence[Trade]) -> Optional[Trade]:
    if not trades:
        return None
    return min(trades, key=resolve_trade_pnl)


def compute_metrics(
    trades: Sequence[Trade], strategies: Optional[Sequence[Strategy]] = None
) -> Dict[str, Any]:
    """Compute performance statistics for the given trades.

    Parameters
    ----------
    trades: Sequence[Trade]
        Trades to summarise.
    strategies: Optional[Sequence[Strategy]]
        When given, only trades without a setup or with an active setup
        are counted (see ``select_eligible_trades``).

    Returns
    -------
    Dict[str, Any]
        Dictionary of computed metrics. Keys include:
        - total_trades, winning_trades, losing_trades: int
        - total_pnl, average_pnl: float
        - win_rate: float (percentage)
        - average_win, average_loss, largest_win, largest_loss: float
        - profit_factor, expectancy, max_drawdown: float
        - max_consecutive_wins, max_consecutive_losses: int
        - sharpe_ratio: float (mean / stdev of trade P&L)
        - average_trade_size: float (entry price x quantity)
        - best_trade_id, worst_trade_id: Optional[int]
    """
    metrics = {
        "total_trades": 0,
        "winning_trades": 0,
        "losing_trades": 0,
        "total_pnl": 0.0,
        "average_pnl": 0.0,
        "win_rate": 0.0,
        "average_win": 0.0,
        "average_loss": 0.0,
        "largest_win": 0.0,
        "largest_loss": 0.0,
        "profit_factor": 0.0,
        "expectancy": 0.0,
        "max_drawdown": 0.0,
        "max_consecutive_wins": 0,
        "max_consecutive_losses": 0,
        "sharpe_ratio": 0.0,
        "average_trade_size": 0.0,
        "best_trade_id": None,
        "worst_trade_id": None,
    }
    trades = select_eligible_trades(trades, strategies)
    if not trades:
        return metrics

    pnls = [resolve_trade_pnl(t) for t in trades]
    wins = [pnl for pnl in pnls if pnl > 0]
    losses = [pnl for pnl in pnls if pnl < 0]
    total_trades = len(trades)
    rate = win_rate(trades)
    avg_win = average_win(trades)
    avg_loss = average_loss(trades)
    loss_rate = len(losses) / total_trades * 100
    # expected P&L per trade from the win/loss distribution
    expectancy = (rate / 100 * avg_win) - (loss_rate / 100 * (-avg_loss))
    sizes = [
        t.entry_price * t.quantity
        for t in trades
        if t.entry_price is not None and t.quantity is not None
    ]

    metrics.update(
        {
            "total_trades": total_trades,
            "winning_trades": len(wins),
            "losing_trades": len(losses),
            "total_pnl": total_pnl(trades),
            "average_pnl": sum(pnls) / total_trades,
            "win_rate": rate,
            "average_win": avg_win,
            "average_loss": avg_loss,
            "largest_win": max(wins) if wins else 0.0,
            "largest_loss": min(losses) if losses else 0.0,
            "profit_factor": profit_factor(trades),
            "expectancy": expectancy,
            "max_drawdown": max_drawdown(trades),
            "max_consecutive_wins": max_consecutive_wins(trades),
            "max_consecutive_losses": max_consecutive_losses(trades),
            "sharpe_ratio": simple_return_ratio(trades),
            "average_trade_size": sum(sizes) / total_trades,
            "best_trade_id": best_trade(trades).id,
            "worst_trade_id": worst_trade(trades).id,
        }
    )
    return metrics
