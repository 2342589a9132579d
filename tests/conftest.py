"""Pytest configuration and shared fixtures."""

import sqlite3
from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from cpr_trader.data.models import DailyLevels, Instrument, PriceBar
from cpr_trader.persistence.context_store import ContextStore, create_context_schema

IST = ZoneInfo("Asia/Kolkata")

# 2024-03-04 is a Monday
TRADING_DAY = date(2024, 3, 4)


def ist(hour: int, minute: int, second: int = 0, day: date = TRADING_DAY) -> datetime:
    """Exchange-local datetime on the test trading day."""
    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=IST)


def make_levels(**overrides) -> DailyLevels:
    """Levels with pivots far away from the CPR unless overridden."""
    values = {
        "for_day": TRADING_DAY,
        "bc": 100.0,
        "tc": 120.0,
        "r1": 300.0,
        "r2": 400.0,
        "r3": 500.0,
        "r4": 600.0,
        "s1": 50.0,
        "s2": 40.0,
        "s3": 30.0,
        "s4": 20.0,
        "buffer": 5.0,
    }
    values.update(overrides)
    return DailyLevels(**values)


def make_bar(open_: float, close: float) -> PriceBar:
    return PriceBar(timestamp="2024-03-04T09:33:00+0530", open=open_,
                    high=max(open_, close), low=min(open_, close), close=close, volume=1000)


@pytest.fixture
def levels() -> DailyLevels:
    return make_levels()


@pytest.fixture
def instrument_factory():
    """Build catalog instruments keyed by strike and type."""
    def factory(strike: int, option_type: str) -> Instrument:
        return Instrument(
            instrument_key=f"NSE_FO|{option_type}{strike}",
            trading_symbol=f"NIFTY {strike} {option_type}",
            asset_symbol="NIFTY",
            strike_price=float(strike),
            instrument_type=option_type,
            expiry=1709836199000,
            lot_size=75,
        )
    return factory


@pytest.fixture
def context_db(tmp_path) -> str:
    """Context store seeded with one trading day of data."""
    db_path = str(tmp_path / "context.db")
    create_context_schema(db_path)

    conn = sqlite3.connect(db_path)
    try:
        conn.execute(
            "INSERT INTO daily_levels (for_day, bc, tc, r1, r2, r3, r4, s1, s2, s3, s4, buffer) "
            "VALUES (?, 100, 120, 300, 400, 500, 600, 50, 40, 30, 20, 5)",
            (TRADING_DAY.isoformat(),),
        )
        conn.execute("INSERT INTO assets (id, name, zerodha_token) VALUES (1, 'NIFTY', '256265')")
        conn.execute("INSERT INTO assets (id, name, zerodha_token) VALUES (2, 'BANKNIFTY', '260105')")
        conn.execute("INSERT INTO daily_assets (day, asset_id) VALUES ('Monday', 1)")
        conn.execute("INSERT INTO daily_assets (day, asset_id) VALUES ('Wednesday', 2)")
        conn.execute("INSERT INTO brokers (id, name) VALUES (1, 'Zerodha')")
        conn.execute("INSERT INTO brokers (id, name) VALUES (2, 'Upstox')")
        conn.execute("INSERT INTO users (id, role) VALUES (1, 'admin')")
        conn.execute("INSERT INTO users (id, role) VALUES (2, 'user')")
        conn.execute(
            "INSERT INTO broker_keys (broker_id, user_id, api_key, token, status) "
            "VALUES (1, 1, 'kite-key', 'kite-token', 1)"
        )
        conn.execute(
            "INSERT INTO broker_keys (broker_id, user_id, api_key, token, status) "
            "VALUES (1, 2, 'other-key', 'other-token', 1)"
        )
        conn.execute(
            "INSERT INTO broker_keys (broker_id, user_id, api_key, token, status) "
            "VALUES (2, 2, 'upstox-key', 'upstox-token', 1)"
        )
        conn.execute(
            "INSERT INTO broker_keys (broker_id, user_id, api_key, token, status) "
            "VALUES (2, 2, 'stale-key', 'stale-token', 0)"
        )
        conn.commit()
    finally:
        conn.close()

    return db_path


@pytest.fixture
def context_store(context_db) -> ContextStore:
    return ContextStore(context_db)
