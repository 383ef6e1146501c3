"""Shared test fixtures for pytest.

Provides price histories, policy rules, signing capabilities and a mocked
exchange transport used across multiple test files.
"""

from __future__ import annotations

import json
import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable

import httpx
import pytest

from dealer.analytics.volatility import PriceSnapshot
from dealer.execution.credentials import Ed25519Capability
from dealer.policy.rules import PolicyRules
from dealer.types import ExecutionIntent


TEST_SEED = bytes(range(32))


@pytest.fixture
def seed() -> bytes:
    return TEST_SEED


@pytest.fixture
def capability() -> Ed25519Capability:
    return Ed25519Capability(TEST_SEED)


@pytest.fixture
def market_intent() -> ExecutionIntent:
    return ExecutionIntent(coin="ETH", side="BUY", size=Decimal("0.5"), asset_index=1)


@pytest.fixture
def limit_intent() -> ExecutionIntent:
    return ExecutionIntent(
        coin="BTC",
        side="SELL",
        size=Decimal("0.010"),
        asset_index=0,
        order_type="limit",
        price=Decimal("65000.50"),
        reduce_only=True,
        client_order_id="0x1234",
    )


@pytest.fixture
def enabled_rules() -> PolicyRules:
    """Enabled rules with no restrictions beyond the defaults."""
    return PolicyRules(enabled=True)


@pytest.fixture
def daily_snapshots() -> list[PriceSnapshot]:
    """Eight daily closes ending 2024-01-08, alternating +/-1%."""
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    price = 100.0
    snapshots = [PriceSnapshot(timestamp=base, price=price)]
    for day in range(1, 8):
        price *= math.exp(0.01 if day % 2 else -0.01)
        snapshots.append(PriceSnapshot(timestamp=base + timedelta(days=day), price=price))
    return snapshots


class RecordingTransport:
    """httpx mock handler that records requests and replies with a canned payload."""

    def __init__(self, payload: Any = None, *, status_code: int = 200, handler: Callable | None = None) -> None:
        self.payload = payload if payload is not None else {"status": "ok", "response": {"type": "order"}}
        self.status_code = status_code
        self.handler = handler
        self.requests: list[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is not None:
            return self.handler(request)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def transport_factory() -> Callable[..., tuple[RecordingTransport, httpx.AsyncClient]]:
    def factory(*args: Any, **kwargs: Any) -> tuple[RecordingTransport, httpx.AsyncClient]:
        recorder = RecordingTransport(*args, **kwargs)
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        return recorder, client

    return factory
