"""
Tests for the SQLite journal store.
"""

from datetime import date

import pytest

from tradejournal.database import TradeJournalDB
from tradejournal.models import PsychologyEntry, Strategy, Trade


@pytest.fixture
def db(tmp_path):
    store = TradeJournalDB(str(tmp_path / "journal.db"))
    yield store
    store.close()


def new_trade(**overrides):
    record = {"tradeDate": "2024-01-15", "stockName": "INFY", "quantity": 10, "entryPrice": 1500}
    record.update(overrides)
    return Trade.from_record(record)


class TestTrades:

    def test_insert_assigns_id_and_created_at(self, db):
        trade = db.add_trade(new_trade())
        assert trade.id == 1
        assert trade.created_at is not None
        assert trade.trade_date == date(2024, 1, 15)
        assert trade.exit_price is None

    def test_ids_are_never_reused(self, db):
        first = db.add_trade(new_trade())
        assert db.delete_trade(first.id) is True
        second = db.add_trade(new_trade())
        assert second.id == first.id + 1

    def test_list_ordered_by_date(self, db):
        db.add_trade(new_trade(tradeDate="2024-03-01", stockName="LATE"))
        db.add_trade(new_trade(tradeDate="2024-01-01", stockName="EARLY"))
        assert [t.stock_name for t in db.list_trades()] == ["EARLY", "LATE"]

    def test_partial_update(self, db):
        trade = db.add_trade(new_trade(emotion="Calm"))
        updated = db.update_trade(trade.id, {"exitPrice": "1550", "profitLoss": 500})
        assert updated.exit_price == 1550.0
        assert updated.profit_loss == 500.0
        assert updated.emotion == "Calm"
        assert updated.created_at == trade.created_at

    def test_update_and_delete_missing(self, db):
        assert db.update_trade(99, {"notes": "x"}) is None
        assert db.delete_trade(99) is False

    def test_trades_on_day(self, db):
        db.add_trade(new_trade(tradeDate="2024-01-15"))
        db.add_trade(new_trade(tradeDate="2024-01-16"))
        assert len(db.trades_on("2024-01-15")) == 1


class TestStrategies:

    def test_crud(self, db):
        s = db.add_strategy(Strategy(id=None, name="ORB", tags=["intraday"]))
        assert s.id == 1
        assert s.tags == ["intraday"]
        assert db.update_strategy(s.id, {"status": "testing"}).status == "testing"
        assert [x.name for x in db.list_strategies()] == ["ORB"]
        assert db.delete_strategy(s.id) is True
        assert db.list_strategies() == []

    def test_rename_does_not_touch_trades(self, db):
        s = db.add_strategy(Strategy(id=None, name="ORB"))
        db.add_trade(new_trade(whichSetup="ORB"))
        db.update_strategy(s.id, {"name": "Opening Range"})
        assert db.list_trades()[0].which_setup == "ORB"


class TestPsychologyAndSettings:

    def test_psychology_crud(self, db):
        e = db.add_psychology_entry(PsychologyEntry(id=None, month="January", year=2024))
        assert e.id == 1
        updated = db.update_psychology_entry(e.id, {"mentalReflections": "Overtraded"})
        assert updated.mental_reflections == "Overtraded"
        assert db.delete_psychology_entry(e.id) is True
        assert db.get_psychology_entry(e.id) is None

    def test_settings_upsert(self, db):
        assert db.get_settings() is None
        db.update_settings("sheet-1", "https://script.example/exec")
        stored = db.update_settings("sheet-2", "https://script.example/exec")
        assert stored["googleSheetId"] == "sheet-2"
        assert stored["id"] == 1
