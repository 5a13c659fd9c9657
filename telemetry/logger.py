# telemetry/logger.py
from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from settings import TELEMETRY_DB_PATH

logger = logging.getLogger(__name__)


def _conn(db_path: str) -> sqlite3.Connection:
    c = sqlite3.connect(db_path)
    c.execute(
        """
        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            ts TEXT NOT NULL,
            conversation_phase TEXT,
            event TEXT NOT NULL,
            payload TEXT NOT NULL
        )
        """
    )
    c.commit()
    return c


def log_event(
    event: str,
    payload: Dict[str, Any],
    phase: Optional[str] = None,
    db_path: Optional[str] = None,
) -> None:
    """
    Meta-only telemetry (phases, counts, latencies; no raw user text).
    Must never break a chat turn, so write failures are only logged.
    """
    try:
        ts = datetime.now(timezone.utc).isoformat()
        c = _conn(db_path or TELEMETRY_DB_PATH)
        try:
            with c:
                c.execute(
                    "INSERT INTO events (ts, conversation_phase, event, payload) VALUES (?, ?, ?, ?)",
                    (ts, phase, event, json.dumps(payload, ensure_ascii=False, default=str)),
                )
        finally:
            c.close()
    except Exception as e:
        logger.debug("telemetry write failed for %s: %s", event, e)
