"""
models.py
---------

Defines the core records of the trading journal: trades, strategies and
monthly psychology entries. Records arrive from forms, the SQLite store
or a Google Sheet with prices as either numbers or numeric strings, so
every record is normalised here, once, on the way in. The analytics
modules downstream only ever see floats, dates and ``None``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

STRATEGY_STATUSES = ("active", "testing", "deprecated")

# -------------------------
# small parse helpers
# -------------------------
def to_float(x: Any) -> Optional[float]:
    """Coerce a number or numeric string to float; None when it is not one."""
    if x is None or isinstance(x, bool):
        return None
    if isinstance(x, (int, float)):
        value = float(x)
    else:
        s = str(x).strip().replace(",", "")
        if not s:
            return None
        try:
            value = float(s)
        except ValueError:
            return None
    if not math.isfinite(value):
        return None
    return value


def parse_date(value: Any) -> Optional[date]:
    """Parse a trade date. Accepts date/datetime objects, 'YYYY-MM-DD' and ISO datetimes."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        pass
    try:
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        return datetime.fromisoformat(s).date()
    except ValueError:
        return None


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        s = str(value).strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            pass
    return datetime.now(timezone.utc)


def _text(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def _flag(x: Any) -> bool:
    if isinstance(x, str):
        return x.strip().lower() in ("true", "1", "yes", "y", "on")
    return bool(x)


def _pick(d: Dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in d:
        return d[camel]
    return d.get(snake, default)


def _merge(record: Dict[str, Any], changes: Dict[str, Any], pairs) -> Dict[str, Any]:
    """Overlay supplied changes (either key style) onto a camelCase record."""
    merged = dict(record)
    for camel, snake in pairs:
        if camel in changes:
            merged[camel] = changes[camel]
        elif snake in changes:
            merged[camel] = changes[snake]
    return merged


def _require(d: Dict[str, Any], pairs) -> None:
    missing = [camel for camel, snake in pairs if _pick(d, camel, snake) in (None, "")]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}")


def _supplied(d: Dict[str, Any], camel: str, snake: str) -> bool:
    return camel in d or snake in d


def _check_numbers(d: Dict[str, Any], positive=(), optional=()) -> List[str]:
    """Messages for supplied numeric fields that do not parse.

    ``positive`` fields must be numbers > 0 whenever they are supplied;
    ``optional`` fields may be blank but must otherwise parse.
    """
    errors = []
    for camel, snake in positive:
        if _supplied(d, camel, snake):
            value = to_float(_pick(d, camel, snake))
            if value is None or value <= 0:
                errors.append(f"{camel} must be a positive number")
    for camel, snake in optional:
        raw = _pick(d, camel, snake)
        if raw is not None and raw != "" and to_float(raw) is None:
            errors.append(f"{camel} must be a number")
    return errors


# ============================================================
# Trade
# ============================================================
_TRADE_FIELDS = (
    ("tradeDate", "trade_date"),
    ("stockName", "stock_name"),
    ("quantity", "quantity"),
    ("entryPrice", "entry_price"),
    ("exitPrice", "exit_price"),
    ("stopLoss", "stop_loss"),
    ("targetPrice", "target_price"),
    ("profitLoss", "profit_loss"),
    ("setupFollowed", "setup_followed"),
    ("whichSetup", "which_setup"),
    ("emotion", "emotion"),
    ("notes", "notes"),
    ("psychologyReflections", "psychology_reflections"),
    ("screenshotLink", "screenshot_link"),
)

_TRADE_REQUIRED = (
    ("tradeDate", "trade_date"),
    ("stockName", "stock_name"),
    ("quantity", "quantity"),
    ("entryPrice", "entry_price"),
)

_TRADE_POSITIVE = (("quantity", "quantity"), ("entryPrice", "entry_price"))
_TRADE_OPTIONAL_NUMBERS = (
    ("exitPrice", "exit_price"),
    ("stopLoss", "stop_loss"),
    ("targetPrice", "target_price"),
    ("profitLoss", "profit_loss"),
)


def _check_trade(d: Dict[str, Any]) -> None:
    """Raise ValueError when any supplied trade field is malformed."""
    errors = []
    if _supplied(d, "tradeDate", "trade_date") and parse_date(_pick(d, "tradeDate", "trade_date")) is None:
        errors.append("tradeDate must be a date (YYYY-MM-DD)")
    if _supplied(d, "stockName", "stock_name") and not _text(_pick(d, "stockName", "stock_name")):
        errors.append("stockName must not be empty")
    errors += _check_numbers(d, positive=_TRADE_POSITIVE, optional=_TRADE_OPTIONAL_NUMBERS)
    if errors:
        raise ValueError("; ".join(errors))


@dataclass
class Trade:
    """Represents a single journal trade.

    Attributes
    ----------
    id: Optional[int]
        Store primary key (None for trades not yet inserted).
    trade_date: Optional[date]
        Day the trade was taken. None when the source value could not be parsed.
    stock_name: str
        Instrument symbol shown in the journal.
    quantity, entry_price: Optional[float]
        Share count and entry price.
    exit_price: Optional[float]
        Exit price; None means the position is still open.
    profit_loss: Optional[float]
        Realised result. When set it wins over the value derived from prices.
    which_setup: Optional[str]
        Name of the strategy this trade was taken under (matched by name, not id).
    emotion: Optional[str]
        Free-text mood label recorded by the trader (e.g. "Confident").
    """

    id: Optional[int]
    trade_date: Optional[date]
    stock_name: str
    quantity: Optional[float]
    entry_price: Optional[float]
    exit_price: Optional[float] = None
    stop_loss: Optional[float] = None
    target_price: Optional[float] = None
    profit_loss: Optional[float] = None
    setup_followed: bool = False
    which_setup: Optional[str] = None
    emotion: Optional[str] = None
    notes: Optional[str] = None
    psychology_reflections: Optional[str] = None
    screenshot_link: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.exit_price is None

    @classmethod
    def from_record(cls, d: Dict[str, Any], strict: bool = False) -> "Trade":
        """Build a Trade from a camelCase or snake_case dict.

        With ``strict`` the required journal fields must be present and every
        supplied field must parse (quantity and entry price above zero);
        otherwise missing or malformed values simply become None.
        """
        if strict:
            _require(d, _TRADE_REQUIRED)
            _check_trade(d)
        created = _pick(d, "createdAt", "created_at")
        raw_id = d.get("id")
        return cls(
            id=int(raw_id) if raw_id not in (None, "") else None,
            trade_date=parse_date(_pick(d, "tradeDate", "trade_date")),
            stock_name=_text(_pick(d, "stockName", "stock_name")) or "",
            quantity=to_float(d.get("quantity")),
            entry_price=to_float(_pick(d, "entryPrice", "entry_price")),
            exit_price=to_float(_pick(d, "exitPrice", "exit_price")),
            stop_loss=to_float(_pick(d, "stopLoss", "stop_loss")),
            target_price=to_float(_pick(d, "targetPrice", "target_price")),
            profit_loss=to_float(_pick(d, "profitLoss", "profit_loss")),
            setup_followed=_flag(_pick(d, "setupFollowed", "setup_followed", False)),
            which_setup=_text(_pick(d, "whichSetup", "which_setup")),
            emotion=_text(d.get("emotion")),
            notes=_text(d.get("notes")),
            psychology_reflections=_text(_pick(d, "psychologyReflections", "psychology_reflections")),
            screenshot_link=_text(_pick(d, "screenshotLink", "screenshot_link")),
            created_at=parse_timestamp(created) if created else None,
        )

    def updated(self, changes: Dict[str, Any]) -> "Trade":
        """Return a copy with only the supplied fields replaced.

        Raises ValueError when a supplied field is malformed; the stored
        values of the other fields are not re-checked.
        """
        _check_trade(changes)
        return Trade.from_record(_merge(self.to_record(), changes, _TRADE_FIELDS))

    def to_record(self) -> Dict[str, Any]:
        """Flat camelCase dict for JSON responses and the sheet sync."""
        return {
            "id": self.id,
            "tradeDate": self.trade_date.isoformat() if self.trade_date else None,
            "stockName": self.stock_name,
            "quantity": self.quantity,
            "entryPrice": self.entry_price,
            "exitPrice": self.exit_price,
            "stopLoss": self.stop_loss,
            "targetPrice": self.target_price,
            "profitLoss": self.profit_loss,
            "setupFollowed": self.setup_followed,
            "whichSetup": self.which_setup,
            "emotion": self.emotion,
            "notes": self.notes,
            "psychologyReflections": self.psychology_reflections,
            "screenshotLink": self.screenshot_link,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


# ============================================================
# Strategy
# ============================================================
_STRATEGY_FIELDS = (
    ("name", "name"),
    ("description", "description"),
    ("status", "status"),
    ("tags", "tags"),
    ("screenshotUrl", "screenshot_url"),
)


@dataclass
class Strategy:
    """A named trading plan. Trades link to it through ``name``."""

    id: Optional[int]
    name: str
    description: Optional[str] = None
    status: str = "active"
    tags: List[str] = field(default_factory=list)
    screenshot_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, d: Dict[str, Any], strict: bool = False) -> "Strategy":
        name = _text(d.get("name"))
        if strict and not name:
            raise ValueError("Missing required fields: name")
        status = (_text(d.get("status")) or "active").lower()
        if status not in STRATEGY_STATUSES:
            if strict:
                raise ValueError(f"Invalid status: {status}")
            status = "active"
        tags = d.get("tags") or []
        if isinstance(tags, str):
            tags = [t.strip() for t in tags.split(",") if t.strip()]
        created = _pick(d, "createdAt", "created_at")
        raw_id = d.get("id")
        return cls(
            id=int(raw_id) if raw_id not in (None, "") else None,
            name=name or "",
            description=_text(d.get("description")),
            status=status,
            tags=list(tags),
            screenshot_url=_text(_pick(d, "screenshotUrl", "screenshot_url")),
            created_at=parse_timestamp(created) if created else None,
        )

    def updated(self, changes: Dict[str, Any]) -> "Strategy":
        return Strategy.from_record(_merge(self.to_record(), changes, _STRATEGY_FIELDS), strict=True)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "tags": list(self.tags),
            "screenshotUrl": self.screenshot_url,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


# ============================================================
# Psychology entry
# ============================================================
_PSYCHOLOGY_FIELDS = (
    ("month", "month"),
    ("year", "year"),
    ("monthlyPnL", "monthly_pnl"),
    ("bestTradeId", "best_trade_id"),
    ("worstTradeId", "worst_trade_id"),
    ("mentalReflections", "mental_reflections"),
    ("improvementAreas", "improvement_areas"),
)


def _check_psychology(d: Dict[str, Any]) -> None:
    errors = []
    if "month" in d and not _text(d.get("month")):
        errors.append("month must not be empty")
    errors += _check_numbers(
        d,
        positive=(("year", "year"),),
        optional=(
            ("monthlyPnL", "monthly_pnl"),
            ("bestTradeId", "best_trade_id"),
            ("worstTradeId", "worst_trade_id"),
        ),
    )
    if errors:
        raise ValueError("; ".join(errors))


@dataclass
class PsychologyEntry:
    """Monthly reflection. Journal-only; analytics never read it."""

    id: Optional[int]
    month: str
    year: int
    monthly_pnl: Optional[float] = None
    best_trade_id: Optional[int] = None
    worst_trade_id: Optional[int] = None
    mental_reflections: Optional[str] = None
    improvement_areas: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, d: Dict[str, Any], strict: bool = False) -> "PsychologyEntry":
        if strict:
            _require(d, (("month", "month"), ("year", "year")))
            _check_psychology(d)
        year = to_float(d.get("year"))
        best = to_float(_pick(d, "bestTradeId", "best_trade_id"))
        worst = to_float(_pick(d, "worstTradeId", "worst_trade_id"))
        created = _pick(d, "createdAt", "created_at")
        raw_id = d.get("id")
        return cls(
            id=int(raw_id) if raw_id not in (None, "") else None,
            month=_text(d.get("month")) or "",
            year=int(year) if year is not None else 0,
            monthly_pnl=to_float(_pick(d, "monthlyPnL", "monthly_pnl")),
            best_trade_id=int(best) if best is not None else None,
            worst_trade_id=int(worst) if worst is not None else None,
            mental_reflections=_text(_pick(d, "mentalReflections", "mental_reflections")),
            improvement_areas=_text(_pick(d, "improvementAreas", "improvement_areas")),
            created_at=parse_timestamp(created) if created else None,
        )

    def updated(self, changes: Dict[str, Any]) -> "PsychologyEntry":
        _check_psychology(changes)
        return PsychologyEntry.from_record(_merge(self.to_record(), changes, _PSYCHOLOGY_FIELDS))

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "month": self.month,
            "year": self.year,
            "monthlyPnL": self.monthly_pnl,
            "bestTradeId": self.best_trade_id,
            "worstTradeId": self.worst_trade_id,
            "mentalReflections": self.mental_reflections,
            "improvementAreas": self.improvement_areas,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
