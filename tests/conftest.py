"""
Pytest Configuration
====================

Shared fixtures and trade builders.
"""

import pytest

from tradejournal.models import Strategy, Trade


def make_trade(pnl=None, entry=None, exit=None, qty=None, day="2024-01-15",
               setup=None, emotion=None, trade_id=None, name="INFY"):
    """Build a Trade straight from journal-style (camelCase, string) fields."""
    return Trade.from_record({
        "id": trade_id,
        "tradeDate": day,
        "stockName": name,
        "quantity": qty,
        "entryPrice": entry,
        "exitPrice": exit,
        "profitLoss": pnl,
        "whichSetup": setup,
        "emotion": emotion,
    })


@pytest.fixture
def mixed_trades():
    """Mix of winning, losing and flat trades on consecutive days."""
    return [
        make_trade(pnl=100, day="2024-01-01", setup="Breakout", emotion="Confident", trade_id=1),
        make_trade(pnl=-50, day="2024-01-02", setup="Breakout", emotion="Anxious", trade_id=2),
        make_trade(pnl=200, day="2024-01-03", setup="Pullback", emotion="Confident", trade_id=3),
        make_trade(pnl=-30, day="2024-02-01", setup=None, emotion=None, trade_id=4),
        make_trade(pnl=0, day="2024-02-02", setup="Pullback", emotion="Neutral", trade_id=5),
    ]


@pytest.fixture
def strategies():
    return [
        Strategy(id=1, name="A", status="active"),
        Strategy(id=2, name="B", status="testing"),
        Strategy(id=3, name="C", status="deprecated"),
    ]
