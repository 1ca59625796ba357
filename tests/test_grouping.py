"""
Tests for grouping, breakdowns and date-window filters.
"""

from datetime import date, datetime

import pytest

from tradejournal.grouping import (
    NO_STRATEGY,
    UNKNOWN_EMOTION,
    emotion_breakdown,
    equity_curve,
    filter_by_date_range,
    filter_by_relative_window,
    group_by_calendar_month,
    group_by_day,
    group_by_emotion,
    group_by_strategy,
    strategy_breakdown,
)

from conftest import make_trade


class TestGroupByStrategy:

    def test_scenario_e(self):
        trades = [make_trade(pnl=1, setup="X"), make_trade(pnl=2), make_trade(pnl=3, setup="X")]
        groups = group_by_strategy(trades)
        assert list(groups) == ["X", NO_STRATEGY]
        assert len(groups["X"]) == 2
        assert len(groups[NO_STRATEGY]) == 1

    def test_empty(self):
        assert group_by_strategy([]) == {}


class TestGroupByEmotion:

    def test_missing_emotion_is_unknown(self, mixed_trades):
        groups = group_by_emotion(mixed_trades)
        assert list(groups) == ["Confident", "Anxious", UNKNOWN_EMOTION, "Neutral"]
        assert len(groups["Confident"]) == 2


class TestCalendarGroups:

    def test_monthly_buckets(self, mixed_trades):
        months = group_by_calendar_month(mixed_trades)
        assert list(months) == ["2024-01", "2024-02"]
        jan, feb = months["2024-01"], months["2024-02"]
        assert (jan.pnl, jan.trade_count, jan.win_count, jan.loss_count) == (250.0, 3, 2, 1)
        # the flat trade counts as a trade but neither a win nor a loss
        assert (feb.pnl, feb.trade_count, feb.win_count, feb.loss_count) == (-30.0, 2, 0, 1)

    def test_months_sorted_and_undated_skipped(self):
        trades = [
            make_trade(pnl=5, day="2024-03-10"),
            make_trade(pnl=5, day="2023-12-31"),
            make_trade(pnl=5, day="not a date"),
        ]
        assert list(group_by_calendar_month(trades)) == ["2023-12", "2024-03"]

    def test_daily_buckets(self, mixed_trades):
        days = group_by_day(mixed_trades + [make_trade(pnl=10, day="2024-01-01")])
        assert days["2024-01-01"].pnl == 110.0
        assert days["2024-01-01"].trade_count == 2
        assert len(days) == 5


class TestBreakdowns:

    def test_strategy_rows(self, mixed_trades):
        rows = {r["name"]: r for r in strategy_breakdown(mixed_trades)}
        assert rows["Breakout"]["trades"] == 2
        assert rows["Breakout"]["pnl"] == 50.0
        assert rows["Breakout"]["win_rate"] == 50.0
        assert rows[NO_STRATEGY]["average_pnl"] == -30.0

    def test_emotion_rows_sorted_by_pnl(self, mixed_trades):
        names = [r["name"] for r in emotion_breakdown(mixed_trades)]
        assert names[0] == "Confident"
        assert names[-1] == "Anxious"

    def test_equity_curve(self):
        trades = [
            make_trade(pnl=-20, day="2024-01-02"),
            make_trade(pnl=50, day="2024-01-01"),
            make_trade(pnl=5, day=None),
        ]
        df = equity_curve(trades)
        assert list(df.columns) == ["date", "equity", "trade_number"]
        assert df["equity"].tolist() == [50.0, 30.0]
        assert df["trade_number"].tolist() == [1, 2]
        assert df["date"].tolist() == [date(2024, 1, 1), date(2024, 1, 2)]

    def test_equity_curve_empty(self):
        assert equity_curve([]).empty


class TestDateFilters:

    @pytest.fixture
    def dated(self):
        return [
            make_trade(pnl=1, day="2024-01-01", trade_id=1),
            make_trade(pnl=1, day="2024-01-15", trade_id=2),
            make_trade(pnl=1, day="2024-01-31", trade_id=3),
            make_trade(pnl=1, day="garbage", trade_id=4),
        ]

    def test_range_is_inclusive(self, dated):
        result = filter_by_date_range(dated, "2024-01-01", "2024-01-15")
        assert [t.id for t in result] == [1, 2]

    def test_range_accepts_date_objects(self, dated):
        result = filter_by_date_range(dated, date(2024, 1, 15), date(2024, 12, 31))
        assert [t.id for t in result] == [2, 3]

    def test_unparseable_bounds_exclude_everything(self, dated):
        assert filter_by_date_range(dated, "soon", "2024-12-31") == []

    def test_all_is_identity(self, dated):
        assert filter_by_relative_window(dated, "all") == dated

    @pytest.mark.parametrize("window,expected", [
        ("7d", [3]),
        ("30d", [2, 3]),
        ("90d", [1, 2, 3]),
        ("1y", [1, 2, 3]),
    ])
    def test_relative_windows(self, dated, window, expected):
        now = datetime(2024, 2, 1, 12, 0)
        assert [t.id for t in filter_by_relative_window(dated, window, now)] == expected

    def test_cutoff_is_inclusive(self, dated):
        now = datetime(2024, 1, 22)
        assert [t.id for t in filter_by_relative_window(dated, "7d", now)] == [2, 3]

    def test_custom_window(self, dated):
        result = filter_by_relative_window(dated, "custom", start_date="2024-01-10", end_date="2024-01-31")
        assert [t.id for t in result] == [2, 3]

    def test_custom_without_bounds_shows_everything(self, dated):
        assert filter_by_relative_window(dated, "custom", start_date="2024-01-10") == dated
