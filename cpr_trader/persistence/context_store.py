"""Read-only trading-day context store backed by SQLite."""

import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator, Optional

import structlog

from ..data.models import DailyLevels, ExecutionCredentials, SessionAsset
from ..errors import ContextUnavailable

logger = structlog.get_logger(__name__)

CONTEXT_SCHEMA = """
CREATE TABLE IF NOT EXISTS daily_levels (
    for_day TEXT PRIMARY KEY,
    bc REAL NOT NULL,
    tc REAL NOT NULL,
    r1 REAL NOT NULL,
    r2 REAL NOT NULL,
    r3 REAL NOT NULL,
    r4 REAL NOT NULL,
    s1 REAL NOT NULL,
    s2 REAL NOT NULL,
    s3 REAL NOT NULL,
    s4 REAL NOT NULL,
    buffer REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS assets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    zerodha_token TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS daily_assets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    day TEXT NOT NULL,
    asset_id INTEGER NOT NULL REFERENCES assets(id)
);

CREATE TABLE IF NOT EXISTS brokers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    role TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS broker_keys (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    broker_id INTEGER NOT NULL REFERENCES brokers(id),
    user_id INTEGER REFERENCES users(id),
    api_key TEXT NOT NULL,
    token TEXT NOT NULL,
    status INTEGER NOT NULL DEFAULT 1
);

CREATE INDEX IF NOT EXISTS idx_daily_assets_day ON daily_assets(day);
"""


def create_context_schema(db_path: str) -> None:
    """Create an empty context store at ``db_path`` (provisioning and tests)."""
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(CONTEXT_SCHEMA)
        conn.commit()
    finally:
        conn.close()


class ContextStore:
    """Lookups for daily levels, the day's asset and broker credentials.

    The store is opened read-only; provisioning happens elsewhere.
    """

    def __init__(self, db_path: str = "context.db", timeout_seconds: float = 8.0):
        self.db_path = Path(db_path)
        self.timeout_seconds = timeout_seconds
        self.logger = logger.bind(store=str(self.db_path))

    @contextmanager
    def _get_connection(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Open a read-only connection, mapping driver errors to ContextUnavailable."""
        conn = None
        try:
            conn = sqlite3.connect(
                f"file:{self.db_path}?mode=ro",
                uri=True,
                timeout=self.timeout_seconds,
            )
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            self.logger.error("Context store error", operation=operation, error=str(e))
            raise ContextUnavailable(
                f"Context store unavailable: {e}",
                operation=operation,
                target=str(self.db_path),
            ) from e
        finally:
            if conn:
                conn.close()

    def ping(self) -> None:
        """Raise ContextUnavailable unless the store answers a trivial query."""
        with self._get_connection("ping") as conn:
            conn.execute("SELECT 1 FROM daily_levels LIMIT 1").fetchall()

    def load_daily_levels(self, trading_date: date) -> Optional[DailyLevels]:
        """Return the levels row for ``trading_date`` or None."""
        with self._get_connection("load_daily_levels") as conn:
            row = conn.execute(
                "SELECT * FROM daily_levels WHERE for_day = ?",
                (trading_date.isoformat(),),
            ).fetchone()

        if row is None:
            return None

        return DailyLevels(
            for_day=trading_date,
            bc=row["bc"],
            tc=row["tc"],
            r1=row["r1"],
            r2=row["r2"],
            r3=row["r3"],
            r4=row["r4"],
            s1=row["s1"],
            s2=row["s2"],
            s3=row["s3"],
            s4=row["s4"],
            buffer=row["buffer"],
        )

    def load_daily_asset(self, weekday: str) -> Optional[SessionAsset]:
        """Return the asset assigned to ``weekday`` (e.g. ``"Monday"``) or None."""
        with self._get_connection("load_daily_asset") as conn:
            row = conn.execute(
                """
                SELECT assets.name, assets.zerodha_token
                FROM daily_assets
                INNER JOIN assets ON daily_assets.asset_id = assets.id
                WHERE daily_assets.day = ?
                ORDER BY daily_assets.id
                LIMIT 1
                """,
                (weekday,),
            ).fetchone()

        if row is None:
            return None

        return SessionAsset(name=row["name"], instrument_token=str(row["zerodha_token"]))

    def load_credentials(self, broker: str, role: Optional[str] = None) -> list[ExecutionCredentials]:
        """Return active credentials for ``broker``, optionally restricted to a user role."""
        query = """
            SELECT brokers.name AS broker, broker_keys.api_key, broker_keys.token
            FROM broker_keys
            INNER JOIN brokers ON broker_keys.broker_id = brokers.id
            LEFT JOIN users ON broker_keys.user_id = users.id
            WHERE brokers.name = ? AND broker_keys.status = 1
        """
        params: tuple = (broker,)
        if role is not None:
            query += " AND users.role = ?"
            params = (broker, role)
        query += " ORDER BY broker_keys.id"

        with self._get_connection("load_credentials") as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            ExecutionCredentials(
                broker=row["broker"],
                api_key=row["api_key"],
                access_token=row["token"],
            )
            for row in rows
        ]
