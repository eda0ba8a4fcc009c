"""SQLiteStore — local file-based ledger, the default backend.

Schema:
  ledger — one row per proposal; ``value`` is the JSON-encoded LedgerEntry.
           ``updated_at`` is when the row was last written, for inspection only.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone

from fcpbot_store.base import BaseStore, StoreError
from fcpbot_store.models import LedgerEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS ledger (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT
);
"""


class SQLiteStore(BaseStore):
    """Stores ledger entries in a local SQLite database file.

    The path defaults to `.fcpbot.db` in the current working directory.
    Configure via .fcpbot.yml: `store_path: /path/to/fcpbot.db`.
    """

    def __init__(self, db_path: str = ".fcpbot.db"):
        try:
            self._conn = sqlite3.connect(db_path)
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open ledger database {db_path}: {e}") from e

    def get(self, key: str) -> LedgerEntry | None:
        try:
            row = self._conn.execute("SELECT value FROM ledger WHERE key=?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot read ledger entry {key}: {e}") from e
        if row is None:
            return None
        try:
            return LedgerEntry.from_dict(json.loads(row[0]))
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Corrupt ledger entry {key}: {e}") from e

    def put(self, key: str, entry: LedgerEntry) -> None:
        try:
            self._conn.execute(
                """
                INSERT INTO ledger (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """,
                (key, json.dumps(entry.to_dict()), datetime.now(timezone.utc).isoformat()),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot write ledger entry {key}: {e}") from e
        logger.debug("Stored ledger entry %s", key)

    def keys(self) -> list[str]:
        try:
            rows = self._conn.execute("SELECT key FROM ledger ORDER BY CAST(key AS INTEGER), key").fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot list ledger entries: {e}") from e
        return [r[0] for r in rows]

    def close(self) -> None:
        self._conn.close()
