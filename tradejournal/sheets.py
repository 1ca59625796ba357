"""
sheets.py
---------

Client for the Google Apps Script web app that mirrors the journal into
a Google Sheet. The script exposes a single endpoint; every call is a
JSON POST of the form ``{"action": ..., ...}``.

The script URL is passed in explicitly (see ``config.Settings``); this
module never reads settings on its own.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

import requests

from .models import PsychologyEntry, Strategy, Trade
from .pnl import resolve_trade_pnl

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5


@dataclass
class SheetsAPIError(Exception):
    status_code: int
    code: Optional[str]
    message: str
    payload: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        code_str = f" [{self.code}]" if self.code else ""
        return f"SheetsAPIError{code_str}: {self.message} (HTTP {self.status_code})"


class GoogleSheetsClient:
    """Thin wrapper around the Apps Script endpoint."""

    def __init__(
        self,
        script_url: Optional[str],
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.script_url = script_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})

    @property
    def configured(self) -> bool:
        return bool(self.script_url)

    def _request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        action = payload.get("action")
        if not self.script_url:
            raise SheetsAPIError(0, "not_configured", "Google Script URL not configured")

        logger.debug("POST %s action=%s", self.script_url, action)
        try:
            r = self.session.post(self.script_url, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            logger.warning("Timeout calling Google Script (action=%s)", action)
            raise SheetsAPIError(408, "timeout", "Google Sheets took too long to respond") from e
        except requests.ConnectionError as e:
            logger.warning("Network error calling Google Script (action=%s): %s", action, e)
            raise SheetsAPIError(0, "connection_error", f"Network error calling Google Script: {e}") from e

        logger.debug("RESPONSE %s for action=%s", r.status_code, action)
        if r.status_code >= 400:
            logger.warning("HTTP %s from Google Script (action=%s)", r.status_code, action)
            raise SheetsAPIError(r.status_code, "http_error", r.reason or "HTTP error", {"text": r.text[:500]})

        try:
            data = r.json()
        except ValueError:
            logger.warning("Non-JSON response from Google Script: %s", r.text[:200])
            raise SheetsAPIError(r.status_code, "bad_json", "Response not JSON", {"text": r.text[:500]})

        if isinstance(data, dict) and data.get("success") is False:
            raise SheetsAPIError(r.status_code, "script_error", str(data.get("error") or "Script reported failure"), data)
        return data

    # ---------- actions ----------
    def test_connection(self) -> Dict[str, Any]:
        return self._request({"action": "test"})

    def add_record(self, action: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Push a single record, e.g. ``add_record("addTrade", trade.to_record())``."""
        return self._request({"action": action, "data": data})

    def create_backup(self) -> Dict[str, Any]:
        return self._request({"action": "backup"})

    def sync_data(
        self,
        trades: Sequence[Trade] = (),
        strategies: Sequence[Strategy] = (),
        psychology_entries: Sequence[PsychologyEntry] = (),
    ) -> Dict[str, Any]:
        """Send the whole journal. Each trade row carries its resolved P&L."""
        payload: Dict[str, Any] = {"action": "sync"}
        if trades:
            rows = []
            for trade in trades:
                row = trade.to_record()
                row["profitLoss"] = resolve_trade_pnl(trade)
                rows.append(row)
            payload["trades"] = rows
        if strategies:
            payload["strategies"] = [s.to_record() for s in strategies]
        if psychology_entries:
            payload["psychologyEntries"] = [e.to_record() for e in psychology_entries]

        result = self._request(payload)
        logger.info(
            "Synced %d trades, %d strategies, %d psychology entries",
            len(trades), len(strategies), len(psychology_entries),
        )
        if isinstance(result, dict):
            result.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        return result
