from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal, Mapping, Optional

from dealer.types import ExecutionIntent, ExecutionState, OrderResult


logger = logging.getLogger(__name__)


@dataclass
class PaperOrder:
    """Represents a dry-run order."""

    order_id: str
    intent: ExecutionIntent
    status: Literal["RESTING", "FILLED", "CANCELLED"] = "RESTING"
    fill_price: Optional[Decimal] = None
    created_at: Optional[datetime] = None


class PaperExecutionAdapter:
    """Dry-run execution adapter: no credential, no network.

    Market orders fill immediately at the coin's mark price (when one is
    known), limit orders rest until cancelled. It is always ready, so the
    orchestrator can run the full policy path without a signing capability.
    """

    ADDRESS = "paper"

    def __init__(self, *, mark_prices: Optional[Mapping[str, Decimal]] = None) -> None:
        self._mark_prices: dict[str, Decimal] = dict(mark_prices or {})
        self._orders: dict[str, PaperOrder] = {}
        self._next_order_id = 1

    @property
    def orders(self) -> dict[str, PaperOrder]:
        return dict(self._orders)

    def set_mark_price(self, coin: str, price: Decimal) -> None:
        self._mark_prices[coin] = price

    def is_ready(self) -> bool:
        return True

    def get_address(self) -> Optional[str]:
        return self.ADDRESS

    async def execute(self, intent: ExecutionIntent, *, timeout: Optional[float] = None) -> OrderResult:
        order_id = f"paper-{self._next_order_id}"
        self._next_order_id += 1
        order = PaperOrder(order_id=order_id, intent=intent, created_at=datetime.now(timezone.utc))

        if intent.order_type == "market":
            order.status = "FILLED"
            order.fill_price = self._mark_prices.get(intent.coin)
        self._orders[order_id] = order

        logger.info("Paper %s %s %s %s -> %s", intent.order_type, intent.side, intent.size, intent.coin, order.status)
        return OrderResult(
            success=True,
            state=ExecutionState.CONFIRMED,
            order_id=order_id,
            client_order_id=intent.client_order_id,
            filled_size=intent.size if order.status == "FILLED" else None,
            filled_price=order.fill_price,
            fees=Decimal("0"),
        )

    async def cancel_order(self, coin: str, order_id: str, *, timeout: Optional[float] = None) -> OrderResult:
        order = self._orders.get(order_id)
        if order is None or order.intent.coin != coin:
            return OrderResult(
                success=False, state=ExecutionState.REJECTED, order_id=order_id, error=f"Order {order_id} not found"
            )
        if order.status != "RESTING":
            return OrderResult(
                success=False,
                state=ExecutionState.REJECTED,
                order_id=order_id,
                error=f"Order {order_id} is {order.status.lower()}",
            )

        order.status = "CANCELLED"
        logger.info("Paper cancel %s %s", coin, order_id)
        return OrderResult(success=True, state=ExecutionState.CONFIRMED, order_id=order_id)
