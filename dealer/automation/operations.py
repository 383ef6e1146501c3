"""Typed dealer operations.

The set of operations is closed: every variant is a frozen dataclass exposing
its ``scope`` (the policy scope it is validated under), ``params()`` (the
values the policy validator checks) and ``rationale()``. LP operations may
carry an ``ExecutionIntent`` when they need an order signed on the exchange.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from dealer.analytics.volatility import RangeStrategy, VolatilityResult
from dealer.policy.rationale import (
    close_position_rationale,
    open_position_rationale,
    order_rationale,
    rebalance_rationale,
)
from dealer.policy.scopes import OperationScope
from dealer.policy.validator import OperationParams
from dealer.types import ExecutionIntent


def _width_percent(range_min: float, range_max: float, current_price: Optional[float]) -> Optional[float]:
    if current_price is None or current_price <= 0:
        return None
    # Rounded so a width at the limit is not pushed over it by float error.
    return round((range_max - range_min) / current_price * 100, 10)


@dataclass(frozen=True)
class PlaceOrder:
    intent: ExecutionIntent
    reason: Optional[str] = None

    scope: ClassVar[OperationScope] = OperationScope.PLACE_ORDER

    def params(self) -> OperationParams:
        return OperationParams(tokens=(self.intent.coin,))

    def rationale(self) -> str:
        return order_rationale(self.intent, self.reason)


@dataclass(frozen=True)
class CancelOrder:
    """Cancel a resting order. Never blocked by token filters."""

    coin: str
    order_id: str
    reason: Optional[str] = None

    scope: ClassVar[OperationScope] = OperationScope.CANCEL_ORDER

    def params(self) -> OperationParams:
        return OperationParams()

    def rationale(self) -> str:
        rationale = f"Cancel {self.coin} order {self.order_id}."
        if self.reason:
            rationale += f" {self.reason}"
        return rationale


@dataclass(frozen=True)
class OpenPosition:
    pool_name: str
    range_min: float
    range_max: float
    capital_usd: float
    current_price: Optional[float] = None
    strategy: RangeStrategy = "moderate"
    pool_address: Optional[str] = None
    protocol: Optional[str] = None
    tokens: tuple[str, ...] = ()
    capital_percent: Optional[float] = None
    total_lp_exposure_percent: Optional[float] = None
    tvl: Optional[float] = None
    volume_24h: Optional[float] = None
    apy: Optional[float] = None
    volatility: Optional[VolatilityResult] = None
    intent: Optional[ExecutionIntent] = None

    scope: ClassVar[OperationScope] = OperationScope.OPEN_POSITION

    def __post_init__(self) -> None:
        if self.range_min >= self.range_max:
            raise ValueError(f"range_min must be below range_max, got {self.range_min} >= {self.range_max}")

    def _price(self) -> Optional[float]:
        if self.current_price is not None:
            return self.current_price
        if self.volatility is not None and self.volatility.current_price > 0:
            return self.volatility.current_price
        return None

    def params(self) -> OperationParams:
        return OperationParams(
            pool_address=self.pool_address,
            pool_name=self.pool_name,
            range_width_percent=_width_percent(self.range_min, self.range_max, self._price()),
            capital_percent=self.capital_percent,
            capital_usd=self.capital_usd,
            total_lp_exposure_percent=self.total_lp_exposure_percent,
            tokens=self.tokens or None,
            protocol=self.protocol,
            tvl=self.tvl,
            volume_24h=self.volume_24h,
            apy=self.apy,
        )

    def rationale(self) -> str:
        if self.volatility is not None:
            return open_position_rationale(
                self.pool_name, self.strategy, self.range_min, self.range_max, self.volatility, self.capital_usd
            )
        return (
            f"Opening position in {self.pool_name} with {self.strategy} strategy. "
            f"Range ${self.range_min:.4f} to ${self.range_max:.4f}. Capital: ${self.capital_usd:,.2f}."
        )


@dataclass(frozen=True)
class ClosePosition:
    pool_name: str
    pool_address: Optional[str] = None
    in_range: bool = True
    unclaimed_fees: float = 0.0
    reason: Optional[str] = None
    intent: Optional[ExecutionIntent] = None

    scope: ClassVar[OperationScope] = OperationScope.CLOSE_POSITION

    def params(self) -> OperationParams:
        return OperationParams(pool_address=self.pool_address, pool_name=self.pool_name)

    def rationale(self) -> str:
        return close_position_rationale(self.pool_name, self.in_range, self.unclaimed_fees, self.reason)


@dataclass(frozen=True)
class RebalanceRange:
    pool_name: str
    old_range: tuple[float, float]
    new_range: tuple[float, float]
    current_price: float
    volatility: VolatilityResult
    pool_address: Optional[str] = None
    protocol: Optional[str] = None
    tokens: tuple[str, ...] = ()
    intent: Optional[ExecutionIntent] = None

    scope: ClassVar[OperationScope] = OperationScope.REBALANCE_RANGE

    def __post_init__(self) -> None:
        if self.new_range[0] >= self.new_range[1]:
            raise ValueError(f"new_range must be (min, max) with min < max, got {self.new_range}")

    def params(self) -> OperationParams:
        return OperationParams(
            pool_address=self.pool_address,
            pool_name=self.pool_name,
            range_width_percent=_width_percent(self.new_range[0], self.new_range[1], self.current_price),
            tokens=self.tokens or None,
            protocol=self.protocol,
        )

    def rationale(self) -> str:
        return rebalance_rationale(self.pool_name, self.old_range, self.new_range, self.current_price, self.volatility)


@dataclass(frozen=True)
class ClaimFees:
    pool_name: str
    pool_address: Optional[str] = None
    amount_usd: Optional[float] = None

    scope: ClassVar[OperationScope] = OperationScope.CLAIM_FEES

    def params(self) -> OperationParams:
        return OperationParams(pool_address=self.pool_address, pool_name=self.pool_name)

    def rationale(self) -> str:
        if self.amount_usd is not None:
            return f"Claiming ${self.amount_usd:,.2f} of fees from {self.pool_name}."
        return f"Claiming accrued fees from {self.pool_name}."


@dataclass(frozen=True)
class ClaimRewards:
    pool_name: str
    pool_address: Optional[str] = None
    reward_token: Optional[str] = None

    scope: ClassVar[OperationScope] = OperationScope.CLAIM_REWARDS

    def params(self) -> OperationParams:
        return OperationParams(pool_address=self.pool_address, pool_name=self.pool_name)

    def rationale(self) -> str:
        token = f" {self.reward_token}" if self.reward_token else ""
        return f"Claiming{token} rewards from {self.pool_name}."


Operation = Union[PlaceOrder, CancelOrder, OpenPosition, ClosePosition, RebalanceRange, ClaimFees, ClaimRewards]
