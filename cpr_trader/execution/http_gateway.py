"""HTTP order gateway for the Upstox order placement API."""

import json
import socket
from typing import Callable, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from ..config.defaults import GatewayParams
from ..data.models import ExecutionCredentials
from ..errors import ConfigError, OrderGatewayError
from .base import BaseOrderGateway, OrderResult, OrderSide

CredentialsProvider = Callable[[], Optional[ExecutionCredentials]]


class HttpOrderGateway(BaseOrderGateway):
    """Places intraday market orders over HTTP."""

    def __init__(self, params: GatewayParams, credentials_provider: CredentialsProvider,
                 name: str = "upstox"):
        super().__init__(name, params.retry_attempts, params.retry_delay_seconds)
        self.params = params
        self.credentials_provider = credentials_provider

        parsed = urlparse(params.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ConfigError(f"Invalid gateway URL: {params.base_url}")

        self.order_url = f"{params.base_url.rstrip('/')}/v2/order/place"

    def build_order(self, symbol: str, side: OrderSide, order_tag: str) -> dict:
        """Order request body."""
        return {
            "quantity": self.params.quantity,
            "product": self.params.product,
            "validity": "DAY",
            "price": 0,
            "tag": order_tag,
            "instrument_token": symbol,
            "order_type": "MARKET",
            "transaction_type": side.value,
            "disclosed_quantity": 0,
            "trigger_price": 0,
            "is_amo": False,
        }

    def submit(self, symbol: str, side: OrderSide, order_tag: str) -> OrderResult:
        credentials = self.credentials_provider()
        if credentials is None:
            raise OrderGatewayError(
                "No execution credentials loaded",
                symbol=symbol,
                side=side.value,
                retryable=False,
            )

        data = json.dumps(self.build_order(symbol, side, order_tag)).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {credentials.access_token}",
        }
        req = Request(self.order_url, data=data, headers=headers, method="POST")

        try:
            with urlopen(req, timeout=self.params.timeout_seconds) as response:
                response_code = response.getcode()
                response_data = response.read().decode("utf-8")

        except HTTPError as e:
            body = ""
            try:
                body = e.read().decode("utf-8", errors="replace")[:200]
            except OSError:
                pass
            self.logger.warning(
                "Order HTTP error",
                gateway=self.name,
                symbol=symbol,
                side=side.value,
                error_code=e.code,
                error_reason=str(e.reason),
                response_data=body,
            )
            # Server errors are retryable, rejections are not
            raise OrderGatewayError(
                f"HTTP {e.code}: {e.reason}",
                symbol=symbol,
                side=side.value,
                retryable=e.code >= 500,
                status_code=e.code,
            ) from e

        except (OSError, URLError, socket.timeout) as e:
            self.logger.warning(
                "Order network error",
                gateway=self.name,
                symbol=symbol,
                side=side.value,
                error=str(e),
            )
            raise OrderGatewayError(
                f"Network error: {e}",
                symbol=symbol,
                side=side.value,
                retryable=True,
            ) from e

        order_id = None
        try:
            payload = json.loads(response_data)
            order_id = (payload.get("data") or {}).get("order_id")
        except (json.JSONDecodeError, AttributeError):
            self.logger.warning(
                "Order response is not JSON",
                gateway=self.name,
                symbol=symbol,
                response_data=response_data[:200],
            )

        return OrderResult(
            symbol=symbol,
            side=side,
            order_tag=order_tag,
            order_id=order_id,
            message=f"HTTP {response_code}",
        )
