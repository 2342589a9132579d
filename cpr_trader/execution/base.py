"""Base classes for order execution gateways."""

import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

import structlog

from ..errors import OrderGatewayError


class OrderSide(Enum):
    """Order transaction side."""
    BUY = "BUY"
    SELL = "SELL"


@dataclass
class OrderResult:
    """Result of an accepted order."""
    symbol: str
    side: OrderSide
    order_tag: str
    order_id: Optional[str] = None
    message: Optional[str] = None
    attempt_count: int = 1
    submitted_at: Optional[str] = None


def new_order_tag() -> str:
    """Client-side tag identifying one logical order across its retries."""
    return f"cpr{uuid.uuid4().hex[:16]}"


class BaseOrderGateway(ABC):
    """Base class for order gateways.

    ``enter`` buys the option contract, ``exit`` sells it back. Each call is a
    single logical order: it is tagged once and retried (up to
    ``retry_attempts`` times, retryable failures only) under the same tag so
    the broker can recognise duplicates. Callers must still treat a failed
    call as "possibly submitted".
    """

    def __init__(self, name: str, retry_attempts: int = 0,
                 retry_delay_seconds: float = 1.0) -> None:
        self.name = name
        self.retry_attempts = retry_attempts
        self.retry_delay_seconds = retry_delay_seconds
        self.logger = structlog.get_logger(f"execution.{name}")
        self._order_count = 0
        self._error_count = 0

    def enter(self, symbol: str) -> OrderResult:
        """Open a position in ``symbol``."""
        return self.place_order(symbol, OrderSide.BUY)

    def exit(self, symbol: str) -> OrderResult:
        """Close the position in ``symbol``."""
        return self.place_order(symbol, OrderSide.SELL)

    @abstractmethod
    def submit(self, symbol: str, side: OrderSide, order_tag: str) -> OrderResult:
        """
        Submit one order attempt.

        Raises:
            OrderGatewayError: the attempt failed; ``retryable`` says whether
                resubmitting under the same tag is allowed
        """

    def place_order(self, symbol: str, side: OrderSide) -> OrderResult:
        """Submit an order, retrying retryable failures under one tag."""
        order_tag = new_order_tag()
        attempt = 0

        while True:
            try:
                result = self.submit(symbol, side, order_tag)
                result.attempt_count = attempt + 1
                result.submitted_at = datetime.now(timezone.utc).isoformat()
                self._order_count += 1
                self.logger.info(
                    "Order accepted",
                    gateway=self.name,
                    symbol=symbol,
                    side=side.value,
                    order_tag=order_tag,
                    order_id=result.order_id,
                    attempts=result.attempt_count,
                )
                return result

            except OrderGatewayError as e:
                attempt += 1
                if not e.retryable or attempt > self.retry_attempts:
                    self._error_count += 1
                    e.retry_count = attempt - 1
                    self.logger.error(
                        "Order failed",
                        gateway=self.name,
                        symbol=symbol,
                        side=side.value,
                        order_tag=order_tag,
                        attempts=attempt,
                        retryable=e.retryable,
                        error=str(e),
                    )
                    raise

                self.logger.warning(
                    f"Order attempt {attempt} failed, retrying in {self.retry_delay_seconds}s",
                    gateway=self.name,
                    symbol=symbol,
                    side=side.value,
                    order_tag=order_tag,
                    error=str(e),
                )
                time.sleep(self.retry_delay_seconds)

    def get_stats(self) -> dict[str, Any]:
        """Get order statistics."""
        return {
            "name": self.name,
            "order_count": self._order_count,
            "error_count": self._error_count,
        }
