"""Latest completed bar retrieval from the Kite historical candles endpoint."""

import json
import socket
from datetime import datetime
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

import structlog

from ..config.defaults import CandleParams
from ..data.models import ExecutionCredentials, PriceBar
from ..errors import FetchError, InvalidPrice, NoCandleData
from ..utils.time import DEFAULT_EXCHANGE_TZ, bar_range

logger = structlog.get_logger(__name__)


class CandleFetcher:
    """Fetches the most recently completed short-interval bar."""

    def __init__(self, params: CandleParams = CandleParams(),
                 tz_name: str = DEFAULT_EXCHANGE_TZ) -> None:
        self.params = params
        self.tz_name = tz_name
        self.logger = logger

    def build_url(self, instrument_token: str, now: datetime) -> str:
        """Historical endpoint URL for the bar ending at ``now``."""
        from_time, to_time = bar_range(now, self.params.interval_minutes, self.tz_name)
        query = urlencode({
            "from": from_time,
            "to": to_time,
            "continuous": "false",
        })
        base = self.params.base_url.rstrip("/")
        return f"{base}/instruments/historical/{instrument_token}/{self.params.interval}?{query}"

    def fetch_latest(self, instrument_token: str, now: datetime,
                     credentials: ExecutionCredentials) -> PriceBar:
        """
        Fetch the bar covering ``[now - interval, now]``.

        Args:
            instrument_token: Market data token of the day's asset
            now: Tick time (any timezone; converted to exchange-local)
            credentials: Market data API key and access token

        Returns:
            The last bar of the response with a non-null close

        Raises:
            FetchError: network, HTTP or decoding failure
            NoCandleData: response contained no bars
            InvalidPrice: the latest bar has no close
        """
        url = self.build_url(instrument_token, now)
        payload = self._get_json(url, credentials)

        data = payload.get("data") if isinstance(payload, dict) else None
        candles = data.get("candles") if isinstance(data, dict) else None

        if not isinstance(candles, list) or not candles:
            self.logger.warning("No candle data available", instrument_token=instrument_token)
            raise NoCandleData(
                "No candle data available",
                instrument_token=instrument_token,
                context={"url": url},
            )

        latest = candles[-1]
        bar = PriceBar.from_row(latest)
        if bar.close is None:
            self.logger.warning("Invalid price", instrument_token=instrument_token, candle=latest)
            raise InvalidPrice("Latest candle has no close price", raw_candle=latest)

        self.logger.debug(
            "Fetched latest candle",
            instrument_token=instrument_token,
            bar_open=bar.open,
            bar_close=bar.close,
            bar_timestamp=bar.timestamp,
        )
        return bar

    def _get_json(self, url: str, credentials: ExecutionCredentials) -> Any:
        headers = {
            "X-Kite-Version": "3",
            "Authorization": f"token {credentials.api_key}:{credentials.access_token}",
        }
        req = Request(url, headers=headers, method="GET")

        try:
            with urlopen(req, timeout=self.params.timeout_seconds) as response:
                body = response.read().decode("utf-8")

        except HTTPError as e:
            response_body = ""
            try:
                response_body = e.read().decode("utf-8", errors="replace")[:500]
            except OSError:
                pass
            self.logger.error(
                "Market data HTTP error",
                status_code=e.code,
                reason=str(e.reason),
                response_data=response_body,
            )
            raise FetchError(
                f"HTTP {e.code}: {e.reason}",
                status_code=e.code,
                response_body=response_body,
            ) from e

        except (OSError, URLError, socket.timeout) as e:
            self.logger.error("Market data network error", error=str(e))
            raise FetchError(f"Network error: {e}") from e

        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            self.logger.error("Market data response is not JSON", response_data=body[:200])
            raise FetchError(f"Malformed response: {e}", response_body=body[:500]) from e
