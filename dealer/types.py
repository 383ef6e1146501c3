from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional

OrderSide = Literal["BUY", "SELL"]
OrderType = Literal["market", "limit"]


class ExecutionState(str, Enum):
    """Lifecycle of a single execution attempt."""

    IDLE = "idle"
    BUILDING = "building"
    SIGNING = "signing"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    NETWORK_FAILED = "network_failed"
    # Hard failures surfaced as data by the orchestrator
    NOT_READY = "not_ready"
    SIGNING_FAILED = "signing_failed"



class CredentialRetention(str, Enum):
    """How long a loaded signing capability may stay in memory."""

    SINGLE_USE = "single_use"  # wiped after one signing operation
    SESSION = "session"  # kept until cleared or the session expires


@dataclass(frozen=True)
class ExecutionIntent:
    """A request to place one order on an exchange.

    ``price`` is None for market orders.
    """

    coin: str
    side: OrderSide
    size: Decimal
    asset_index: int
    order_type: OrderType = "market"
    price: Optional[Decimal] = None
    reduce_only: bool = False
    client_order_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.side not in ("BUY", "SELL"):
            raise ValueError(f"side must be BUY or SELL, got {self.side!r}")
        if self.size <= 0:
            raise ValueError(f"size must be > 0, got {self.size}")
        if self.asset_index < 0:
            raise ValueError(f"asset_index must be >= 0, got {self.asset_index}")
        if self.order_type == "limit" and self.price is None:
            raise ValueError("limit orders require price")

    @property
    def is_buy(self) -> bool:
        return self.side == "BUY"


@dataclass(frozen=True)
class OrderResult:
    success: bool
    state: ExecutionState
    order_id: Optional[str] = None
    client_order_id: Optional[str] = None
    error: Optional[str] = None
    filled_size: Optional[Decimal] = None
    filled_price: Optional[Decimal] = None
    fees: Optional[Decimal] = None
    nonce: Optional[int] = None

    @classmethod
    def failure(cls, state: ExecutionState, error: str, *, nonce: Optional[int] = None) -> OrderResult:
        return cls(success=False, state=state, error=error, nonce=nonce)
