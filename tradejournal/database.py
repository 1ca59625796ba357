"""
database.py
-----------

This module encapsulates all interactions with the SQLite database used
to persist the journal: trades, strategies, monthly psychology entries
and the integration settings. Keeping storage here means the rest of
the package only ever deals in model objects.

Each record type gets the same lifecycle: insert (assigns ``id`` and
``created_at``), partial update (only supplied fields change) and delete.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .models import PsychologyEntry, Strategy, Trade

logger = logging.getLogger(__name__)


class TradeJournalDB:
    """SQLite-backed repository for trades, strategies and psychology entries."""

    def __init__(self, db_path: str = "tradejournal.db") -> None:
        self.db_path = db_path
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._create_tables()

    # ---------- schema ----------
    def _create_tables(self) -> None:
        """Create required tables and indexes."""
        with self.conn:
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS trades (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    trade_date TEXT,          -- YYYY-MM-DD
                    stock_name TEXT NOT NULL,
                    quantity REAL,
                    entry_price REAL,
                    exit_price REAL,
                    stop_loss REAL,
                    target_price REAL,
                    profit_loss REAL,
                    setup_followed INTEGER NOT NULL DEFAULT 0,
                    which_setup TEXT,
                    emotion TEXT,
                    notes TEXT,
                    psychology_reflections TEXT,
                    screenshot_link TEXT,
                    created_at TEXT NOT NULL  -- ISO8601
                )
                """
            )
            self.conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_trades_date ON trades(trade_date)"
            )
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS strategies (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT,
                    status TEXT NOT NULL CHECK (status IN ('active','testing','deprecated')),
                    tags TEXT,                -- JSON list
                    screenshot_url TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS psychology_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    month TEXT NOT NULL,
                    year INTEGER NOT NULL,
                    monthly_pnl REAL,
                    best_trade_id INTEGER,
                    worst_trade_id INTEGER,
                    mental_reflections TEXT,
                    improvement_areas TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    google_sheet_id TEXT,
                    google_script_url TEXT,
                    updated_at TEXT NOT NULL
                )
                """
            )

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    # ---------- trades ----------
    @staticmethod
    def _trade_params(trade: Trade) -> tuple:
        return (
            trade.trade_date.isoformat() if trade.trade_date else None,
            trade.stock_name,
            trade.quantity,
            trade.entry_price,
            trade.exit_price,
            trade.stop_loss,
            trade.target_price,
            trade.profit_loss,
            int(trade.setup_followed),
            trade.which_setup,
            trade.emotion,
            trade.notes,
            trade.psychology_reflections,
            trade.screenshot_link,
        )

    def add_trade(self, trade: Trade) -> Trade:
        """Insert a new trade and return it with id and created_at set."""
        created = self._now()
        with self.conn:
            cur = self.conn.execute(
                """
                INSERT INTO trades
                    (trade_date, stock_name, quantity, entry_price, exit_price,
                     stop_loss, target_price, profit_loss, setup_followed,
                     which_setup, emotion, notes, psychology_reflections,
                     screenshot_link, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                self._trade_params(trade) + (created.isoformat(),),
            )
        logger.debug("Inserted trade id=%s %s", cur.lastrowid, trade.stock_name)
        return self.get_trade(cur.lastrowid)

    def get_trade(self, trade_id: int) -> Optional[Trade]:
        row = self.conn.execute("SELECT * FROM trades WHERE id = ?", (trade_id,)).fetchone()
        return self._row_to_trade(row) if row else None

    def list_trades(self) -> List[Trade]:
        """Return all trades ordered by trade_date, then insertion order."""
        cur = self.conn.execute("SELECT * FROM trades ORDER BY trade_date, id")
        return [self._row_to_trade(r) for r in cur.fetchall()]

    def trades_on(self, day: str) -> List[Trade]:
        cur = self.conn.execute(
            "SELECT * FROM trades WHERE trade_date = ? ORDER BY id", (day,)
        )
        return [self._row_to_trade(r) for r in cur.fetchall()]

    def update_trade(self, trade_id: int, changes: Dict[str, Any]) -> Optional[Trade]:
        """Apply a partial update. Returns None when the trade does not exist."""
        current = self.get_trade(trade_id)
        if current is None:
            return None
        trade = current.updated(changes)
        with self.conn:
            self.conn.execute(
                """
                UPDATE trades SET
                    trade_date = ?, stock_name = ?, quantity = ?, entry_price = ?,
                    exit_price = ?, stop_loss = ?, target_price = ?, profit_loss = ?,
                    setup_followed = ?, which_setup = ?, emotion = ?, notes = ?,
                    psychology_reflections = ?, screenshot_link = ?
                WHERE id = ?
                """,
                self._trade_params(trade) + (trade_id,),
            )
        return self.get_trade(trade_id)

    def delete_trade(self, trade_id: int) -> bool:
        return self._delete("trades", trade_id)

    def _row_to_trade(self, row: sqlite3.Row) -> Trade:
        """Convert DB row -> Trade."""
        return Trade.from_record(dict(row))

    # ---------- strategies ----------
    def add_strategy(self, strategy: Strategy) -> Strategy:
        created = self._now()
        with self.conn:
            cur = self.conn.execute(
                """
                INSERT INTO strategies (name, description, status, tags, screenshot_url, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    strategy.name,
                    strategy.description,
                    strategy.status,
                    json.dumps(strategy.tags),
                    strategy.screenshot_url,
                    created.isoformat(),
                ),
            )
        logger.debug("Inserted strategy id=%s %s", cur.lastrowid, strategy.name)
        return self.get_strategy(cur.lastrowid)

    def get_strategy(self, strategy_id: int) -> Optional[Strategy]:
        row = self.conn.execute("SELECT * FROM strategies WHERE id = ?", (strategy_id,)).fetchone()
        return self._row_to_strategy(row) if row else None

    def list_strategies(self) -> List[Strategy]:
        cur = self.conn.execute("SELECT * FROM strategies ORDER BY id")
        return [self._row_to_strategy(r) for r in cur.fetchall()]

    def update_strategy(self, strategy_id: int, changes: Dict[str, Any]) -> Optional[Strategy]:
        # Trades keep pointing at the old name after a rename.
        current = self.get_strategy(strategy_id)
        if current is None:
            return None
        strategy = current.updated(changes)
        with self.conn:
            self.conn.execute(
                """
                UPDATE strategies SET name = ?, description = ?, status = ?, tags = ?, screenshot_url = ?
                WHERE id = ?
                """,
                (
                    strategy.name,
                    strategy.description,
                    strategy.status,
                    json.dumps(strategy.tags),
                    strategy.screenshot_url,
                    strategy_id,
                ),
            )
        return self.get_strategy(strategy_id)

    def delete_strategy(self, strategy_id: int) -> bool:
        return self._delete("strategies", strategy_id)

    def _row_to_strategy(self, row: sqlite3.Row) -> Strategy:
        d = dict(row)
        d["tags"] = json.loads(d["tags"]) if d.get("tags") else []
        return Strategy.from_record(d)

    # ---------- psychology ----------
    def add_psychology_entry(self, entry: PsychologyEntry) -> PsychologyEntry:
        created = self._now()
        with self.conn:
            cur = self.conn.execute(
                """
                INSERT INTO psychology_entries
                    (month, year, monthly_pnl, best_trade_id, worst_trade_id,
                     mental_reflections, improvement_areas, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                self._psychology_params(entry) + (created.isoformat(),),
            )
        return self.get_psychology_entry(cur.lastrowid)

    @staticmethod
    def _psychology_params(entry: PsychologyEntry) -> tuple:
        return (
            entry.month,
            entry.year,
            entry.monthly_pnl,
            entry.best_trade_id,
            entry.worst_trade_id,
            entry.mental_reflections,
            entry.improvement_areas,
        )

    def get_psychology_entry(self, entry_id: int) -> Optional[PsychologyEntry]:
        row = self.conn.execute(
            "SELECT * FROM psychology_entries WHERE id = ?", (entry_id,)
        ).fetchone()
        return PsychologyEntry.from_record(dict(row)) if row else None

    def list_psychology_entries(self) -> List[PsychologyEntry]:
        cur = self.conn.execute("SELECT * FROM psychology_entries ORDER BY year, id")
        return [PsychologyEntry.from_record(dict(r)) for r in cur.fetchall()]

    def update_psychology_entry(self, entry_id: int, changes: Dict[str, Any]) -> Optional[PsychologyEntry]:
        current = self.get_psychology_entry(entry_id)
        if current is None:
            return None
        entry = current.updated(changes)
        with self.conn:
            self.conn.execute(
                """
                UPDATE psychology_entries SET
                    month = ?, year = ?, monthly_pnl = ?, best_trade_id = ?,
                    worst_trade_id = ?, mental_reflections = ?, improvement_areas = ?
                WHERE id = ?
                """,
                self._psychology_params(entry) + (entry_id,),
            )
        return self.get_psychology_entry(entry_id)

    def delete_psychology_entry(self, entry_id: int) -> bool:
        return self._delete("psychology_entries", entry_id)

    # ---------- settings ----------
    def get_settings(self) -> Optional[Dict[str, Any]]:
        row = self.conn.execute("SELECT * FROM settings WHERE id = 1").fetchone()
        if row is None:
            return None
        return {
            "id": row["id"],
            "googleSheetId": row["google_sheet_id"],
            "googleScriptUrl": row["google_script_url"],
            "updatedAt": row["updated_at"],
        }

    def update_settings(self, sheet_id: Optional[str], script_url: Optional[str]) -> Dict[str, Any]:
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO settings (id, google_sheet_id, google_script_url, updated_at)
                VALUES (1, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    google_sheet_id=excluded.google_sheet_id,
                    google_script_url=excluded.google_script_url,
                    updated_at=excluded.updated_at
                """,
                (sheet_id, script_url, self._now().isoformat()),
            )
        return self.get_settings()

    # ---------- housekeeping ----------
    def _delete(self, table: str, record_id: int) -> bool:
        with self.conn:
            cur = self.conn.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
        logger.debug("Delete %s id=%s affected=%s", table, record_id, cur.rowcount)
        return cur.rowcount > 0

    def close(self) -> None:
        self.conn.close()
