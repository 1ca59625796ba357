"""
pnl.py
------

Per-trade profit and loss. Every aggregate in ``analytics`` reads a
trade's result through :func:`resolve_trade_pnl`, so the rule for open
trades and hand-entered P&L lives in exactly one place.

Bad input never raises here: a price that will not parse, a zero entry
price or a non-positive quantity simply contributes 0.
"""

from typing import Any

from .models import Trade, to_float


def compute_trade_pnl(entry_price: Any, exit_price: Any, quantity: Any) -> float:
    """(exit - entry) * quantity, or 0.0 when the inputs cannot describe a trade.

    Inputs may be numbers or numeric strings. No rounding is applied.
    """
    entry = to_float(entry_price)
    exit_ = to_float(exit_price)
    qty = to_float(quantity)
    if entry is None or exit_ is None or qty is None:
        return 0.0
    if entry <= 0 or qty <= 0:
        return 0.0
    return (exit_ - entry) * qty


def resolve_trade_pnl(trade: Trade) -> float:
    """The authoritative P&L of a trade.

    An explicit ``profit_loss`` wins. Otherwise the value is derived from
    prices when entry, exit and quantity are all known; an open trade
    without explicit P&L resolves to 0.
    """
    if trade.profit_loss is not None:
        return trade.profit_loss
    if trade.entry_price is not None and trade.exit_price is not None and trade.quantity is not None:
        return compute_trade_pnl(trade.entry_price, trade.exit_price, trade.quantity)
    return 0.0


def compute_percentage_return(entry_price: Any, exit_price: Any) -> float:
    """Percentage move from entry to exit.

    Returns 0.0 for a zero entry price or unparseable prices rather than
    inf/nan. Only meaningful for closed trades.
    """
    entry = to_float(entry_price)
    exit_ = to_float(exit_price)
    if entry is None or exit_ is None or entry == 0:
        return 0.0
    return (exit_ - entry) / entry * 100
