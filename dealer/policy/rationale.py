"""Human-readable rationale for dealer decisions.

Rationales are audit artifacts only: they are built from the same inputs the
validator and range engine consumed and never influence a policy outcome.
Clause order is fixed so that identical inputs always give identical text.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from dealer.analytics.volatility import RangeStrategy, VolatilityResult
from dealer.types import ExecutionIntent


_STRATEGY_LABELS: dict[str, str] = {
    "conservative": "Wide range (±2σ)",
    "moderate": "Moderate range (±1.5σ)",
    "aggressive": "Narrow range (±1σ)",
}


@dataclass(frozen=True)
class PoolContext:
    volume_24h: Optional[float] = None
    tvl: Optional[float] = None
    apy: Optional[float] = None


def _compact_usd(value: float) -> str:
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.1f}K"
    return f"${value:.0f}"


def _join_clauses(parts: list[str]) -> str:
    if len(parts) <= 2:
        return " ".join(parts)
    return ", ".join(parts[:-1]) + " and " + parts[-1]


def range_rationale(
    strategy: RangeStrategy,
    volatility: VolatilityResult,
    pool: Optional[PoolContext] = None,
) -> str:
    """Explain a range selection: strategy, volatility, volume, TVL, APY, confidence."""
    parts = [f"{_STRATEGY_LABELS[strategy]} selected"]

    if volatility.volatility_daily > 0:
        parts.append(f"due to daily volatility of {volatility.volatility_daily:.2f}%")

    if pool is not None:
        if pool.volume_24h and pool.volume_24h > 0:
            # Volume never uses the millions bucket
            volume = pool.volume_24h
            volume_str = f"${volume / 1_000:.1f}K" if volume >= 1_000 else f"${volume:.0f}"
            parts.append(f"24h volume of {volume_str}")
        if pool.tvl and pool.tvl > 0:
            parts.append(f"TVL of {_compact_usd(pool.tvl)}")
        if pool.apy and pool.apy > 0:
            parts.append(f"estimated APY of {pool.apy:.2f}%")

    if volatility.confidence == "low":
        parts.append("(limited historical data)")
    elif volatility.confidence == "high":
        parts.append("(high confidence in data)")

    return _join_clauses(parts)


def open_position_rationale(
    pool_name: str,
    strategy: RangeStrategy,
    range_min: float,
    range_max: float,
    volatility: VolatilityResult,
    capital_usd: float,
) -> str:
    width = (range_max - range_min) / volatility.current_price * 100 if volatility.current_price > 0 else 0.0

    rationale = f"Opening position in {pool_name} with {strategy} strategy. "
    rationale += f"Range ${range_min:.4f} to ${range_max:.4f} ({width:.1f}% wide). "
    rationale += f"Capital: ${capital_usd:,.2f}. "

    if volatility.volatility_daily > 5:
        rationale += (
            f"High volatility ({volatility.volatility_daily:.2f}%/day) - higher risk of leaving the range. "
        )
    elif volatility.volatility_daily < 2:
        rationale += f"Low volatility ({volatility.volatility_daily:.2f}%/day) - range should stay active. "

    if volatility.price_change_24h > 10:
        rationale += (
            f"Price rose {volatility.price_change_24h:.2f}% in 24h - consider a range skewed upwards."
        )
    elif volatility.price_change_24h < -10:
        rationale += (
            f"Price fell {abs(volatility.price_change_24h):.2f}% in 24h - consider a range skewed downwards."
        )

    return rationale.strip()


def close_position_rationale(
    pool_name: str,
    in_range: bool,
    unclaimed_fees: float,
    reason: Optional[str] = None,
) -> str:
    rationale = f"Closing position in {pool_name}. "
    if not in_range:
        rationale += "Position is out of range and not earning fees. "
    if unclaimed_fees > 0:
        rationale += f"Unclaimed fees of ${unclaimed_fees:.2f} will be collected automatically. "
    if reason:
        rationale += reason
    return rationale.strip()


def rebalance_rationale(
    pool_name: str,
    old_range: tuple[float, float],
    new_range: tuple[float, float],
    current_price: float,
    volatility: VolatilityResult,
) -> str:
    old_min, old_max = old_range
    new_min, new_max = new_range

    rationale = f"Rebalancing {pool_name}. "
    rationale += f"Previous range: ${old_min:.4f} - ${old_max:.4f}. "
    rationale += f"New range: ${new_min:.4f} - ${new_max:.4f}. "
    rationale += f"Current price: ${current_price:.4f}. "

    if current_price < old_min and old_min > 0:
        rationale += f"Price {(old_min - current_price) / old_min * 100:.1f}% below the previous range. "
    elif current_price > old_max and old_max > 0:
        rationale += f"Price {(current_price - old_max) / old_max * 100:.1f}% above the previous range. "

    rationale += f"Volatility: {volatility.volatility_daily:.2f}%/day."
    return rationale


def _fmt_decimal(value: Decimal) -> str:
    return format(value.normalize(), "f")


def order_rationale(intent: ExecutionIntent, reason: Optional[str] = None) -> str:
    """Describe an order about to be signed."""
    price = "market" if intent.price is None else f"limit {_fmt_decimal(intent.price)}"
    rationale = f"{intent.side} {_fmt_decimal(intent.size)} {intent.coin} at {price}"
    if intent.reduce_only:
        rationale += " (reduce-only)"
    rationale += "."
    if reason:
        rationale += f" {reason}"
    return rationale
