"""
strategies.py
-------------

Gate between the journal and its statistics: decides which trades count
when the dashboard asks for "my active playbook only".

Trades point at strategies by name. Renaming a strategy therefore
detaches its old trades; they then read as tied to an unknown strategy
and drop out of the filtered view.
"""

from typing import Iterable, List, Optional, Sequence

from .models import Strategy, Trade


def is_strategy_active(strategies: Iterable[Strategy], strategy_name: Optional[str]) -> bool:
    """True only if a strategy with exactly this name exists and is active."""
    if strategy_name is None:
        return False
    for strategy in strategies:
        if strategy.name == strategy_name:
            return strategy.status == "active"
    return False


def select_eligible_trades(
    trades: Sequence[Trade], strategies: Optional[Sequence[Strategy]] = None
) -> List[Trade]:
    """Trades that count towards statistics.

    Without a strategy list every trade is returned. With one, trades with
    no setup are kept, as are trades whose setup is currently active;
    trades tied to a testing, deprecated or unknown strategy are dropped.
    """
    if strategies is None:
        return list(trades)
    active = {s.name for s in strategies if s.status == "active"}
    return [t for t in trades if not t.which_setup or t.which_setup in active]
