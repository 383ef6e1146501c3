"""Tests for the paper execution adapter."""

from __future__ import annotations

from decimal import Decimal

import pytest

from dealer.execution import PaperExecutionAdapter
from dealer.types import ExecutionIntent, ExecutionState


@pytest.mark.asyncio
async def test_market_order_fills_at_mark(market_intent: ExecutionIntent) -> None:
    adapter = PaperExecutionAdapter(mark_prices={"ETH": Decimal("2000")})

    result = await adapter.execute(market_intent)

    assert adapter.is_ready() is True
    assert adapter.get_address() == "paper"
    assert result.success is True
    assert result.state == ExecutionState.CONFIRMED
    assert result.order_id == "paper-1"
    assert result.filled_size == Decimal("0.5")
    assert result.filled_price == Decimal("2000")
    assert adapter.orders["paper-1"].status == "FILLED"


@pytest.mark.asyncio
async def test_limit_order_rests_until_cancelled(limit_intent: ExecutionIntent) -> None:
    adapter = PaperExecutionAdapter()

    placed = await adapter.execute(limit_intent)
    assert placed.filled_size is None
    assert placed.client_order_id == "0x1234"

    cancelled = await adapter.cancel_order("BTC", placed.order_id)
    assert cancelled.success is True
    assert adapter.orders[placed.order_id].status == "CANCELLED"

    again = await adapter.cancel_order("BTC", placed.order_id)
    assert again.state == ExecutionState.REJECTED
    assert again.error == f"Order {placed.order_id} is cancelled"


@pytest.mark.asyncio
async def test_cancel_unknown_order() -> None:
    adapter = PaperExecutionAdapter()

    result = await adapter.cancel_order("ETH", "paper-99")

    assert result.success is False
    assert result.error == "Order paper-99 not found"


@pytest.mark.asyncio
async def test_order_ids_increase(market_intent: ExecutionIntent) -> None:
    adapter = PaperExecutionAdapter()

    first = await adapter.execute(market_intent)
    second = await adapter.execute(market_intent)

    assert (first.order_id, second.order_id) == ("paper-1", "paper-2")
