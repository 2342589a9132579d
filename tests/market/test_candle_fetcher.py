"""Tests for latest bar retrieval."""

import io
import json
import socket
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError
from urllib.parse import parse_qs, urlparse

import pytest

from cpr_trader.config.defaults import CandleParams
from cpr_trader.data.models import ExecutionCredentials
from cpr_trader.errors import FetchError, InvalidPrice, NoCandleData
from cpr_trader.market.candles import CandleFetcher
from conftest import ist

CREDENTIALS = ExecutionCredentials("Zerodha", "kite-key", "kite-token")


def fake_response(payload):
    response = MagicMock()
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    response.read.return_value = body
    response.getcode.return_value = 200
    response.__enter__.return_value = response
    return response


def candles_payload(*rows):
    return {"status": "success", "data": {"candles": list(rows)}}


class TestBuildUrl:
    """Test request construction."""

    def test_range_covers_previous_interval(self):
        fetcher = CandleFetcher()

        url = fetcher.build_url("256265", ist(9, 33, 0))
        parsed = urlparse(url)
        query = parse_qs(parsed.query)

        assert parsed.path == "/instruments/historical/256265/3minute"
        assert query["from"] == ["2024-03-04 09:30:00"]
        assert query["to"] == ["2024-03-04 09:33:00"]
        assert query["continuous"] == ["false"]

    def test_range_formatted_in_exchange_time(self):
        fetcher = CandleFetcher()

        # 04:03:00 UTC is 09:33 IST
        url = fetcher.build_url("256265", datetime(2024, 3, 4, 4, 3, 0, tzinfo=timezone.utc))
        query = parse_qs(urlparse(url).query)

        assert query["to"] == ["2024-03-04 09:33:00"]

    def test_seconds_are_zeroed(self):
        url = CandleFetcher().build_url("256265", ist(9, 33, 42))

        assert parse_qs(urlparse(url).query)["to"] == ["2024-03-04 09:33:00"]


class TestFetchLatest:
    """Test response handling."""

    @patch("cpr_trader.market.candles.urlopen")
    def test_returns_last_bar(self, mock_urlopen):
        mock_urlopen.return_value = fake_response(candles_payload(
            ["2024-03-04T09:27:00+0530", 22010, 22030, 22000, 22020, 900],
            ["2024-03-04T09:30:00+0530", 22020, 22050, 22015, 22045.5, 1200],
        ))

        bar = CandleFetcher().fetch_latest("256265", ist(9, 33), CREDENTIALS)

        assert bar.open == 22020
        assert bar.close == 22045.5
        assert bar.volume == 1200

    @patch("cpr_trader.market.candles.urlopen")
    def test_sends_auth_headers_and_timeout(self, mock_urlopen):
        mock_urlopen.return_value = fake_response(candles_payload([None, 1, 2, 0.5, 1.5, 10]))

        CandleFetcher(CandleParams(timeout_seconds=9)).fetch_latest("256265", ist(9, 33), CREDENTIALS)

        request = mock_urlopen.call_args[0][0]
        assert request.get_header("Authorization") == "token kite-key:kite-token"
        assert request.get_header("X-kite-version") == "3"
        assert mock_urlopen.call_args[1]["timeout"] == 9

    @patch("cpr_trader.market.candles.urlopen")
    def test_empty_candles_raises_no_candle_data(self, mock_urlopen):
        mock_urlopen.return_value = fake_response(candles_payload())

        with pytest.raises(NoCandleData) as exc_info:
            CandleFetcher().fetch_latest("256265", ist(9, 33), CREDENTIALS)

        assert exc_info.value.instrument_token == "256265"

    @patch("cpr_trader.market.candles.urlopen")
    def test_missing_data_raises_no_candle_data(self, mock_urlopen):
        mock_urlopen.return_value = fake_response({"status": "success"})

        with pytest.raises(NoCandleData):
            CandleFetcher().fetch_latest("256265", ist(9, 33), CREDENTIALS)

    @patch("cpr_trader.market.candles.urlopen")
    def test_null_close_raises_invalid_price(self, mock_urlopen):
        mock_urlopen.return_value = fake_response(candles_payload(
            ["2024-03-04T09:30:00+0530", 22020, 22050, 22015, None, 1200],
        ))

        with pytest.raises(InvalidPrice):
            CandleFetcher().fetch_latest("256265", ist(9, 33), CREDENTIALS)

    @patch("cpr_trader.market.candles.urlopen")
    def test_short_row_raises_invalid_price(self, mock_urlopen):
        mock_urlopen.return_value = fake_response(candles_payload(["2024-03-04T09:30:00+0530", 1]))

        with pytest.raises(InvalidPrice):
            CandleFetcher().fetch_latest("256265", ist(9, 33), CREDENTIALS)

    @patch("cpr_trader.market.candles.urlopen")
    def test_http_error_raises_fetch_error(self, mock_urlopen):
        mock_urlopen.side_effect = HTTPError(
            "https://api.kite.trade", 403, "Forbidden", {},
            io.BytesIO(b'{"status": "error", "message": "Invalid token"}'),
        )

        with pytest.raises(FetchError) as exc_info:
            CandleFetcher().fetch_latest("256265", ist(9, 33), CREDENTIALS)

        assert exc_info.value.status_code == 403
        assert "Invalid token" in exc_info.value.response_body

    @pytest.mark.parametrize("error", [URLError("unreachable"), socket.timeout("timed out")])
    def test_network_error_raises_fetch_error(self, error):
        with patch("cpr_trader.market.candles.urlopen", side_effect=error):
            with pytest.raises(FetchError) as exc_info:
                CandleFetcher().fetch_latest("256265", ist(9, 33), CREDENTIALS)

        assert exc_info.value.status_code is None

    @patch("cpr_trader.market.candles.urlopen")
    def test_malformed_json_raises_fetch_error(self, mock_urlopen):
        mock_urlopen.return_value = fake_response(b"<html>bad gateway</html>")

        with pytest.raises(FetchError):
            CandleFetcher().fetch_latest("256265", ist(9, 33), CREDENTIALS)
