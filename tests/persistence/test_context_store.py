"""Tests for the read-only context store."""

import sqlite3
from datetime import date

import pytest

from cpr_trader.errors import ContextUnavailable
from cpr_trader.persistence.context_store import ContextStore
from conftest import TRADING_DAY


class TestContextStore:
    """Test ContextStore lookups."""

    def test_ping_succeeds_on_provisioned_store(self, context_store):
        context_store.ping()

    def test_ping_fails_when_file_missing(self, tmp_path):
        store = ContextStore(str(tmp_path / "missing.db"))

        with pytest.raises(ContextUnavailable) as exc_info:
            store.ping()

        assert exc_info.value.operation == "ping"
        assert not (tmp_path / "missing.db").exists()

    def test_ping_fails_on_unprovisioned_database(self, tmp_path):
        db_path = tmp_path / "empty.db"
        sqlite3.connect(db_path).close()

        with pytest.raises(ContextUnavailable):
            ContextStore(str(db_path)).ping()

    def test_load_daily_levels(self, context_store):
        levels = context_store.load_daily_levels(TRADING_DAY)

        assert levels is not None
        assert levels.for_day == TRADING_DAY
        assert (levels.bc, levels.tc, levels.buffer) == (100, 120, 5)
        assert [name for name, _ in levels.pivot_levels()] == [
            "r1", "r2", "r3", "r4", "s1", "s2", "s3", "s4"
        ]
        assert [name for name, _ in levels.crossing_levels()][-2:] == ["tc", "bc"]

    def test_load_daily_levels_missing_date(self, context_store):
        assert context_store.load_daily_levels(date(2024, 3, 5)) is None

    def test_load_daily_asset(self, context_store):
        asset = context_store.load_daily_asset("Monday")

        assert asset.name == "NIFTY"
        assert asset.instrument_token == "256265"

    def test_load_daily_asset_unassigned_day(self, context_store):
        assert context_store.load_daily_asset("Tuesday") is None

    def test_load_credentials_by_broker_and_role(self, context_store):
        credentials = context_store.load_credentials("Zerodha", role="admin")

        assert len(credentials) == 1
        assert credentials[0].api_key == "kite-key"
        assert credentials[0].access_token == "kite-token"

    def test_load_credentials_skips_inactive(self, context_store):
        credentials = context_store.load_credentials("Upstox")

        assert [c.api_key for c in credentials] == ["upstox-key"]

    def test_load_credentials_unknown_broker(self, context_store):
        assert context_store.load_credentials("Nobody") == []

    def test_store_is_read_only(self, context_store, context_db):
        with pytest.raises(ContextUnavailable):
            with context_store._get_connection("write") as conn:
                conn.execute("DELETE FROM assets")

    def test_credentials_repr_hides_token(self, context_store):
        credentials = context_store.load_credentials("Zerodha", role="admin")[0]

        assert "kite-token" not in repr(credentials)
