"""
Tests for the active-strategy gate.
"""

from tradejournal.analytics import total_pnl
from tradejournal.strategies import is_strategy_active, select_eligible_trades

from conftest import make_trade


class TestIsStrategyActive:

    def test_active(self, strategies):
        assert is_strategy_active(strategies, "A") is True

    def test_testing_and_deprecated(self, strategies):
        assert is_strategy_active(strategies, "B") is False
        assert is_strategy_active(strategies, "C") is False

    def test_unknown_or_none(self, strategies):
        assert is_strategy_active(strategies, "Z") is False
        assert is_strategy_active(strategies, None) is False

    def test_match_is_exact(self, strategies):
        assert is_strategy_active(strategies, "a") is False
        assert is_strategy_active(strategies, "A ") is False


class TestSelectEligibleTrades:

    def test_scenario_d(self, strategies):
        trades = [
            make_trade(pnl=100, setup="A", trade_id=1),
            make_trade(pnl=999, setup="B", trade_id=2),
            make_trade(pnl=50, setup=None, trade_id=3),
        ]
        eligible = select_eligible_trades(trades, strategies)
        assert [t.id for t in eligible] == [1, 3]
        assert total_pnl(eligible) == 150.0

    def test_unknown_and_deprecated_are_excluded(self, strategies):
        trades = [make_trade(pnl=1, setup="C"), make_trade(pnl=1, setup="Renamed")]
        assert select_eligible_trades(trades, strategies) == []

    def test_without_strategies_everything_passes(self):
        trades = [make_trade(pnl=1, setup="B"), make_trade(pnl=2)]
        result = select_eligible_trades(trades)
        assert result == trades
        assert result is not trades

    def test_empty_strategy_list_keeps_only_unlinked(self):
        trades = [make_trade(pnl=1, setup="A"), make_trade(pnl=2)]
        assert [t.profit_loss for t in select_eligible_trades(trades, [])] == [2.0]
