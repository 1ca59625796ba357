"""
Tests for the Google Apps Script client (HTTP session mocked).
"""

from unittest.mock import MagicMock

import pytest
import requests

from tradejournal.models import Strategy
from tradejournal.sheets import GoogleSheetsClient, SheetsAPIError

from conftest import make_trade

SCRIPT_URL = "https://script.google.com/macros/s/abc/exec"


def fake_response(status=200, payload=None, text=""):
    r = MagicMock()
    r.status_code = status
    r.reason = "Server Error" if status >= 400 else "OK"
    r.text = text
    if payload is None:
        r.json.side_effect = ValueError("no json")
    else:
        r.json.return_value = payload
    return r


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


class TestRequests:

    def test_not_configured(self, session):
        client = GoogleSheetsClient(None, session=session)
        assert client.configured is False
        with pytest.raises(SheetsAPIError) as exc:
            client.test_connection()
        assert exc.value.code == "not_configured"
        session.post.assert_not_called()

    def test_test_connection_posts_action(self, session):
        session.post.return_value = fake_response(payload={"success": True, "message": "ok"})
        client = GoogleSheetsClient(SCRIPT_URL, timeout=3, session=session)
        assert client.test_connection()["message"] == "ok"
        session.post.assert_called_once_with(SCRIPT_URL, json={"action": "test"}, timeout=3)

    def test_timeout_is_wrapped(self, session):
        session.post.side_effect = requests.Timeout()
        with pytest.raises(SheetsAPIError) as exc:
            GoogleSheetsClient(SCRIPT_URL, session=session).test_connection()
        assert exc.value.code == "timeout"

    def test_connection_error_is_wrapped(self, session):
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(SheetsAPIError) as exc:
            GoogleSheetsClient(SCRIPT_URL, session=session).create_backup()
        assert exc.value.code == "connection_error"

    def test_http_error(self, session):
        session.post.return_value = fake_response(status=500, payload={}, text="boom")
        with pytest.raises(SheetsAPIError) as exc:
            GoogleSheetsClient(SCRIPT_URL, session=session).test_connection()
        assert exc.value.status_code == 500
        assert "HTTP 500" in str(exc.value)

    def test_non_json(self, session):
        session.post.return_value = fake_response(text="<html>")
        with pytest.raises(SheetsAPIError) as exc:
            GoogleSheetsClient(SCRIPT_URL, session=session).test_connection()
        assert exc.value.code == "bad_json"

    def test_script_reported_failure(self, session):
        session.post.return_value = fake_response(payload={"success": False, "error": "Sheet missing"})
        with pytest.raises(SheetsAPIError, match="Sheet missing"):
            GoogleSheetsClient(SCRIPT_URL, session=session).test_connection()


class TestSync:

    def test_trades_carry_resolved_pnl(self, session):
        session.post.return_value = fake_response(payload={"success": True})
        client = GoogleSheetsClient(SCRIPT_URL, session=session)
        trades = [make_trade(entry=100, exit=110, qty=10, trade_id=1), make_trade(pnl="-25", trade_id=2)]
        result = client.sync_data(trades=trades, strategies=[Strategy(id=1, name="ORB")])

        payload = session.post.call_args.kwargs["json"]
        assert payload["action"] == "sync"
        assert [row["profitLoss"] for row in payload["trades"]] == [100.0, -25.0]
        assert payload["strategies"][0]["name"] == "ORB"
        assert "psychologyEntries" not in payload
        assert "timestamp" in result

    def test_add_record(self, session):
        session.post.return_value = fake_response(payload={"success": True})
        client = GoogleSheetsClient(SCRIPT_URL, session=session)
        client.add_record("addTrade", {"id": 1})
        assert session.post.call_args.kwargs["json"] == {"action": "addTrade", "data": {"id": 1}}
