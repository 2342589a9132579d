"""Paper trading gateway: logs orders instead of sending them."""

import itertools

from .base import BaseOrderGateway, OrderResult, OrderSide


class PaperOrderGateway(BaseOrderGateway):
    """Accepts every order and keeps an in-memory record of them."""

    def __init__(self, name: str = "paper"):
        super().__init__(name)
        self.orders: list[OrderResult] = []
        self._ids = itertools.count(1)

    def submit(self, symbol: str, side: OrderSide, order_tag: str) -> OrderResult:
        order_id = f"PAPER-{next(self._ids)}"
        result = OrderResult(
            symbol=symbol,
            side=side,
            order_tag=order_tag,
            order_id=order_id,
            message="Paper order recorded",
        )
        self.orders.append(result)
        self.logger.info(
            "Paper order",
            gateway=self.name,
            symbol=symbol,
            side=side.value,
            order_id=order_id,
        )
        return result
