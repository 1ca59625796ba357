"""
app.py
------

Flask application serving the trading journal as a JSON API: CRUD for
trades, strategies and psychology entries, analytics summaries for the
dashboard, CSV export and the Google Sheets sync and backup.

To run the application:
    1. Install the package (``pip install -e .``).
    2. Execute ``python -m tradejournal.app`` from the repository root.
    3. Point the dashboard at http://localhost:5004/api.

Configuration is read from the environment once (see ``config.Settings``)
and passed down explicitly.
"""
import io
import csv
import logging
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, request, jsonify, Response

from .analytics import compute_metrics
from .config import Settings
from .database import TradeJournalDB
from .formatting import format_currency, format_percentage
from .grouping import (
    equity_curve,
    emotion_breakdown,
    filter_by_relative_window,
    group_by_calendar_month,
    group_by_day,
    strategy_breakdown,
)
from .models import PsychologyEntry, Strategy, Trade
from .pnl import compute_trade_pnl, resolve_trade_pnl
from .sheets import GoogleSheetsClient, SheetsAPIError

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "id", "tradeDate", "stockName", "quantity", "entryPrice", "exitPrice",
    "stopLoss", "targetPrice", "profitLoss", "setupFollowed", "whichSetup",
    "emotion", "notes",
]


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def create_app(settings: Optional[Settings] = None, sheets_session=None):
    settings = settings or Settings.from_env()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret_key
    db = TradeJournalDB(settings.db_path)
    app.extensions["journal_db"] = db

    def sheets_client() -> GoogleSheetsClient:
        effective = settings.with_stored(db.get_settings())
        return GoogleSheetsClient(
            effective.google_script_url,
            timeout=effective.sheets_timeout,
            session=sheets_session,
        )

    def push_to_sheet(trade: Trade) -> None:
        """Mirror a new trade to the sheet; the insert stands even if this fails."""
        client = sheets_client()
        if not client.configured:
            return
        row = trade.to_record()
        row["profitLoss"] = resolve_trade_pnl(trade)
        try:
            client.add_record("addTrade", row)
        except SheetsAPIError as e:
            logger.warning("Could not push trade %s to Google Sheets: %s", trade.id, e)

    def selected_trades():
        """Trades narrowed by the ?window=&start=&end= query parameters."""
        trades = db.list_trades()
        window = request.args.get("window", "all").strip()
        return filter_by_relative_window(
            trades,
            window,
            now=datetime.now(),
            start_date=request.args.get("start"),
            end_date=request.args.get("end"),
        )

    def active_strategies():
        if request.args.get("active_only", "").lower() in ("1", "true", "yes"):
            return db.list_strategies()
        return None

    # ---------- health ----------
    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})

    # ---------- trades ----------
    @app.route("/api/trades", methods=["GET"])
    def list_trades():
        return jsonify([t.to_record() for t in db.list_trades()])

    @app.route("/api/trades", methods=["POST"])
    def add_trade():
        try:
            trade = Trade.from_record(_json_body(), strict=True)
        except ValueError as e:
            return jsonify({"error": "Invalid trade data", "details": str(e)}), 400
        # Derived only here; a later PUT to exitPrice keeps the stored profitLoss.
        if trade.exit_price is not None:
            trade.profit_loss = compute_trade_pnl(trade.entry_price, trade.exit_price, trade.quantity)
        trade = db.add_trade(trade)
        logger.info("Trade %s added (%s)", trade.id, trade.stock_name)
        push_to_sheet(trade)
        return jsonify(trade.to_record()), 201

    @app.route("/api/trades/<int:trade_id>", methods=["GET"])
    def get_trade(trade_id: int):
        trade = db.get_trade(trade_id)
        if trade is None:
            return jsonify({"error": "Trade not found"}), 404
        return jsonify(trade.to_record())

    @app.route("/api/trades/<int:trade_id>", methods=["PUT"])
    def update_trade(trade_id: int):
        try:
            trade = db.update_trade(trade_id, _json_body())
        except ValueError as e:
            return jsonify({"error": "Invalid trade data", "details": str(e)}), 400
        if trade is None:
            return jsonify({"error": "Trade not found"}), 404
        return jsonify(trade.to_record())

    @app.route("/api/trades/<int:trade_id>", methods=["DELETE"])
    def delete_trade(trade_id: int):
        if not db.delete_trade(trade_id):
            return jsonify({"error": "Trade not found"}), 404
        return "", 204

    @app.route("/api/trades/date/<day>")
    def trades_by_date(day: str):
        return jsonify([t.to_record() for t in db.trades_on(day)])

    # ---------- strategies ----------
    @app.route("/api/strategies", methods=["GET"])
    def list_strategies():
        return jsonify([s.to_record() for s in db.list_strategies()])

    @app.route("/api/strategies", methods=["POST"])
    def add_strategy():
        try:
            strategy = Strategy.from_record(_json_body(), strict=True)
        except ValueError as e:
            return jsonify({"error": "Invalid strategy data", "details": str(e)}), 400
        return jsonify(db.add_strategy(strategy).to_record()), 201

    @app.route("/api/strategies/<int:strategy_id>", methods=["PUT"])
    def update_strategy(strategy_id: int):
        try:
            strategy = db.update_strategy(strategy_id, _json_body())
        except ValueError as e:
            return jsonify({"error": "Invalid strategy data", "details": str(e)}), 400
        if strategy is None:
            return jsonify({"error": "Strategy not found"}), 404
        return jsonify(strategy.to_record())

    @app.route("/api/strategies/<int:strategy_id>", methods=["DELETE"])
    def delete_strategy(strategy_id: int):
        if not db.delete_strategy(strategy_id):
            return jsonify({"error": "Strategy not found"}), 404
        return "", 204

    # ---------- psychology ----------
    @app.route("/api/psychology", methods=["GET"])
    def list_psychology():
        return jsonify([e.to_record() for e in db.list_psychology_entries()])

    @app.route("/api/psychology", methods=["POST"])
    def add_psychology():
        try:
            entry = PsychologyEntry.from_record(_json_body(), strict=True)
        except ValueError as e:
            return jsonify({"error": "Invalid psychology entry data", "details": str(e)}), 400
        return jsonify(db.add_psychology_entry(entry).to_record()), 201

    @app.route("/api/psychology/<int:entry_id>", methods=["PUT"])
    def update_psychology(entry_id: int):
        try:
            entry = db.update_psychology_entry(entry_id, _json_body())
        except ValueError as e:
            return jsonify({"error": "Invalid psychology entry data", "details": str(e)}), 400
        if entry is None:
            return jsonify({"error": "Psychology entry not found"}), 404
        return jsonify(entry.to_record())

    @app.route("/api/psychology/<int:entry_id>", methods=["DELETE"])
    def delete_psychology(entry_id: int):
        if not db.delete_psychology_entry(entry_id):
            return jsonify({"error": "Psychology entry not found"}), 404
        return "", 204

    # ---------- settings ----------
    @app.route("/api/settings", methods=["GET"])
    def get_settings():
        effective = settings.with_stored(db.get_settings())
        return jsonify({
            "googleSheetId": effective.google_sheet_id,
            "googleScriptUrl": effective.google_script_url,
        })

    @app.route("/api/settings", methods=["PUT"])
    def update_settings():
        body = _json_body()
        stored = db.update_settings(body.get("googleSheetId"), body.get("googleScriptUrl"))
        return jsonify(stored)

    # ---------- analytics ----------
    @app.route("/api/analytics/summary")
    def analytics_summary():
        trades = selected_trades()
        m = compute_metrics(trades, active_strategies())
        m["formatted"] = {
            "total_pnl": format_currency(m["total_pnl"]),
            "win_rate": format_percentage(m["win_rate"]),
            "average_win": format_currency(m["average_win"]),
            "average_loss": format_currency(m["average_loss"]),
            "max_drawdown": format_currency(m["max_drawdown"]),
        }
        return jsonify(m)

    @app.route("/api/analytics/breakdown")
    def analytics_breakdown():
        trades = selected_trades()
        curve = equity_curve(trades)
        curve = curve.assign(date=curve["date"].astype(str))
        return jsonify({
            "strategies": strategy_breakdown(trades),
            "emotions": emotion_breakdown(trades),
            "monthly": {k: v.to_dict() for k, v in group_by_calendar_month(trades).items()},
            "daily": {k: v.to_dict() for k, v in group_by_day(trades).items()},
            "equity_curve": curve.to_dict(orient="records"),
        })

    # ---------- export ----------
    @app.route("/export", methods=["GET"], endpoint="export")
    def export_trades():
        out = io.StringIO()
        w = csv.writer(out)
        w.writerow(EXPORT_COLUMNS)
        for t in db.list_trades():
            row = t.to_record()
            row["notes"] = (row["notes"] or "").replace("\n", " ").strip()
            w.writerow(["" if row[c] is None else row[c] for c in EXPORT_COLUMNS])
        out.seek(0)
        return Response(
            out.getvalue(),
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=trades.csv"},
        )

    # ---------- google sheets ----------
    @app.route("/api/sheets/test", methods=["POST"])
    def sheets_test():
        client = sheets_client()
        if not client.configured:
            return jsonify({"success": False, "error": "Google Script URL not configured"}), 400
        try:
            return jsonify(client.test_connection())
        except SheetsAPIError as e:
            status = 408 if e.code == "timeout" else 502
            return jsonify({"success": False, "error": str(e)}), status

    @app.route("/api/sheets/sync", methods=["POST"])
    def sheets_sync():
        client = sheets_client()
        if not client.configured:
            return jsonify({"success": False, "error": "Google Script URL not configured"}), 400
        try:
            result = client.sync_data(
                trades=db.list_trades(),
                strategies=db.list_strategies(),
                psychology_entries=db.list_psychology_entries(),
            )
        except SheetsAPIError as e:
            logger.warning("Sheets sync failed: %s", e)
            return jsonify({"success": False, "error": str(e)}), 502
        return jsonify(result)

    @app.route("/api/sheets/backup", methods=["POST"])
    def sheets_backup():
        client = sheets_client()
        if not client.configured:
            return jsonify({"success": False, "error": "Google Script URL not configured"}), 400
        try:
            result = client.create_backup()
        except SheetsAPIError as e:
            logger.warning("Sheets backup failed: %s", e)
            return jsonify({"success": False, "error": str(e)}), 502
        return jsonify(result)

    return app


# Run directly
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = create_app()
    app.run(host="0.0.0.0", port=5004, debug=True, use_reloader=False)
