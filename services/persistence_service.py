from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RepliedEmail:
    message_id: str
    recipient: str
    replied_at: datetime


class RepliedStore:
    """SQLite-backed set of Gmail message ids that have been auto-replied to."""

    def __init__(self, db_path: Path):
        self._db_path = db_path
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS replied_emails (
                    message_id TEXT PRIMARY KEY,
                    recipient TEXT NOT NULL,
                    replied_at TEXT NOT NULL
                )
                """
            )

    def has_replied(self, message_id: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM replied_emails WHERE message_id=?",
                (message_id,),
            ).fetchone()
        return row is not None

    def mark_replied(self, message_id: str, recipient: str) -> None:
        timestamp = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO replied_emails(message_id, recipient, replied_at)
                VALUES (?, ?, ?)
                """,
                (message_id, recipient, timestamp),
            )
        LOGGER.debug("Recorded reply to %s for message %s", recipient, message_id)

    def recent_entries(self, limit: int = 10) -> list[RepliedEmail]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT message_id, recipient, replied_at FROM replied_emails ORDER BY replied_at DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [RepliedEmail(row[0], row[1], datetime.fromisoformat(row[2])) for row in rows]
