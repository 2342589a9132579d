"""Trade journal: SQLite audit trail of every order action."""

import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class JournalEntry:
    """One recorded order action."""
    id: int
    action: str
    status: str
    symbol: Optional[str]
    direction: Optional[str]
    side: Optional[str]
    price: Optional[float]
    reason: Optional[str]
    order_id: Optional[str]
    order_tag: Optional[str]
    error: Optional[str]
    created_at: str


class TradeJournal:
    """SQLite-based order action journal."""

    def __init__(self, db_path: str = "trades.db"):
        self.db_path = Path(db_path)
        self.logger = logger.bind(journal=str(self.db_path))
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS trade_actions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    action TEXT NOT NULL,
                    status TEXT NOT NULL,
                    symbol TEXT,
                    direction TEXT,
                    side TEXT,
                    price REAL,
                    reason TEXT,
                    order_id TEXT,
                    order_tag TEXT,
                    error TEXT,
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_trade_actions_created_at ON trade_actions(created_at)
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", error=str(e))
            raise
        finally:
            if conn:
                conn.close()

    def record(
        self,
        action: str,
        status: str,
        symbol: Optional[str] = None,
        direction: Optional[str] = None,
        side: Optional[str] = None,
        price: Optional[float] = None,
        reason: Optional[str] = None,
        order_id: Optional[str] = None,
        order_tag: Optional[str] = None,
        error: Optional[str] = None,
    ) -> Optional[int]:
        """
        Record an order action.

        Journal failures are logged and swallowed: the position has already
        changed at the broker and must not be rolled back because the audit
        write failed.

        Returns:
            Row id if stored, None otherwise
        """
        with self._lock:
            try:
                with self._get_connection() as conn:
                    cursor = conn.execute("""
                        INSERT INTO trade_actions (
                            action, status, symbol, direction, side, price,
                            reason, order_id, order_tag, error, created_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """, (
                        action, status, symbol, direction, side, price,
                        reason, order_id, order_tag, error,
                        datetime.now(timezone.utc).isoformat(),
                    ))
                    conn.commit()
                    return cursor.lastrowid

            except sqlite3.Error as e:
                self.logger.error(
                    "Failed to record trade action",
                    action=action,
                    status=status,
                    symbol=symbol,
                    error=str(e),
                )
                return None

    def recent_actions(self, limit: int = 50) -> list[JournalEntry]:
        """Return the most recent actions, newest first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM trade_actions ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()

        return [self._row_to_entry(row) for row in rows]

    def _row_to_entry(self, row: sqlite3.Row) -> JournalEntry:
        values: dict[str, Any] = dict(row)
        return JournalEntry(**values)
