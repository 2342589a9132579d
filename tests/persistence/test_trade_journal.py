"""Tests for the trade journal."""

import sqlite3

from unittest.mock import patch

from cpr_trader.persistence.trade_journal import JournalEntry, TradeJournal


class TestTradeJournal:
    """Test TradeJournal."""

    def test_init_creates_table(self, tmp_path):
        db_path = tmp_path / "trades.db"
        TradeJournal(str(db_path))

        conn = sqlite3.connect(db_path)
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        conn.close()

        assert "trade_actions" in tables

    def test_record_and_read_back(self, tmp_path):
        journal = TradeJournal(str(tmp_path / "trades.db"))

        row_id = journal.record(
            action="enter",
            status="success",
            symbol="NSE_FO|CE22000",
            direction="CE",
            side="BUY",
            price=22012.5,
            reason="Price is above TC within buffer.",
            order_id="ORD-1",
            order_tag="cpr0001",
        )

        entries = journal.recent_actions()

        assert row_id == 1
        assert len(entries) == 1
        entry = entries[0]
        assert isinstance(entry, JournalEntry)
        assert entry.action == "enter"
        assert entry.symbol == "NSE_FO|CE22000"
        assert entry.price == 22012.5
        assert entry.error is None

    def test_recent_actions_newest_first(self, tmp_path):
        journal = TradeJournal(str(tmp_path / "trades.db"))
        journal.record(action="enter", status="success")
        journal.record(action="exit", status="success")
        journal.record(action="enter", status="failed", error="rejected")

        entries = journal.recent_actions(limit=2)

        assert [e.action for e in entries] == ["enter", "exit"]
        assert entries[0].status == "failed"
        assert entries[0].error == "rejected"

    def test_record_failure_is_logged_not_raised(self, tmp_path):
        journal = TradeJournal(str(tmp_path / "trades.db"))

        with patch("cpr_trader.persistence.trade_journal.sqlite3.connect",
                   side_effect=sqlite3.OperationalError("disk I/O error")):
            assert journal.record(action="exit", status="success") is None
