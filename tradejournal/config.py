"""
config.py
---------

Runtime settings for the journal service. Values come from environment
variables and are handed explicitly to whatever needs them (the app
factory, the Google Sheets client). The analytics modules take no
settings at all.
"""

import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Settings:
    secret_key: str = "dev-secret"
    db_path: str = "tradejournal.db"
    google_script_url: Optional[str] = None
    google_sheet_id: Optional[str] = None
    sheets_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            secret_key=os.getenv("SECRET_KEY", "dev-secret"),
            db_path=os.getenv("TJ_DB", "tradejournal.db"),
            google_script_url=os.getenv("GOOGLE_SCRIPT_URL") or None,
            google_sheet_id=os.getenv("GOOGLE_SHEET_ID") or None,
            sheets_timeout=float(os.getenv("SHEETS_TIMEOUT", "5")),
        )

    def with_stored(self, stored: Optional[Dict[str, Any]]) -> "Settings":
        """Overlay integration settings saved through the API on top of these."""
        if not stored:
            return self
        return replace(
            self,
            google_script_url=stored.get("googleScriptUrl") or self.google_script_url,
            google_sheet_id=stored.get("googleSheetId") or self.google_sheet_id,
        )
