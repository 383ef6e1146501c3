"""
Volatility and range engine.

Pure computations over a price history: realized volatility, suggested
liquidity ranges, and impermanent-loss estimates for constant-product pools.
No I/O and no caching; every call recomputes from its inputs.

Usage:
    from dealer.analytics.volatility import calculate_volatility, suggest_optimal_ranges

    vol = calculate_volatility(snapshots, window_days=7)
    if vol.error is None:
        ranges = suggest_optimal_ranges(vol.current_price, vol)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal, Optional, Sequence

Confidence = Literal["low", "medium", "high"]
RangeStrategy = Literal["conservative", "moderate", "aggressive"]

DAYS_PER_YEAR = 365
# Typical crypto daily volatility, used when no volatility data is available
DEFAULT_DAILY_VOLATILITY_PERCENT = 4.0


@dataclass(frozen=True)
class PriceSnapshot:
    timestamp: datetime
    price: float


@dataclass(frozen=True)
class VolatilityResult:
    """Realized volatility figures (percent).

    Callers must check ``error`` before trusting the numeric fields, which are
    all 0 when it is set.
    """

    current_price: float
    volatility_daily: float
    volatility_annualized: float
    price_change_24h: float
    price_change_7d: float
    confidence: Confidence
    data_points: int
    error: Optional[str] = None


@dataclass(frozen=True)
class RangeSuggestion:
    strategy: RangeStrategy
    sigma_multiple: float
    price_min: float
    price_max: float
    width_percent: float
    estimated_time_in_range: str
    description: str = ""


@dataclass(frozen=True)
class _StrategyProfile:
    strategy: RangeStrategy
    sigma_multiple: float
    time_in_range: str
    description: str


# Ordered widest to narrowest
_STRATEGY_PROFILES: tuple[_StrategyProfile, ...] = (
    _StrategyProfile(
        "conservative", 2.0, "~95% of the time", "Wide range, lower yield, lower risk of leaving the range"
    ),
    _StrategyProfile("moderate", 1.5, "~87% of the time", "Balance between yield and risk"),
    _StrategyProfile(
        "aggressive", 1.0, "~68% of the time", "Narrow range, higher yield, higher risk of leaving the range"
    ),
)


def _failed(error: str, data_points: int) -> VolatilityResult:
    return VolatilityResult(
        current_price=0.0,
        volatility_daily=0.0,
        volatility_annualized=0.0,
        price_change_24h=0.0,
        price_change_7d=0.0,
        confidence="low",
        data_points=data_points,
        error=error,
    )


def _price_near(
    history: Sequence[PriceSnapshot],
    target: datetime,
    tolerance: timedelta,
) -> float:
    """Return the price of the snapshot closest to ``target`` (0 if none is within tolerance)."""
    closest = min(history, key=lambda s: abs(s.timestamp - target))
    if abs(closest.timestamp - target) <= tolerance:
        return closest.price
    return 0.0


def _percent_change(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


def _confidence(data_points: int, expected_points: float) -> Confidence:
    if data_points >= expected_points:
        return "high"
    if data_points >= expected_points / 2:
        return "medium"
    return "low"


def calculate_volatility(
    prices: Sequence[PriceSnapshot],
    window_days: int = 7,
    *,
    periods_per_day: int = 1,
) -> VolatilityResult:
    """
    Calculate realized volatility from a price history.

    Formula:
        r_i = ln(p_i / p_(i-1))
        Daily Volatility = stddev(r) * sqrt(periods_per_day) * 100
        Annualized Volatility = Daily Volatility * sqrt(365)

    Only snapshots within ``window_days`` of the newest snapshot are used.
    Non-positive prices are ignored.

    Args:
        prices: Price snapshots, any order
        window_days: Lookback window in days (default: 7)
        periods_per_day: Sampling frequency of the snapshots (1 = daily, 288 = 5 minute)

    Returns:
        VolatilityResult; ``error`` is set when fewer than two usable points exist
    """
    if window_days < 1 or periods_per_day < 1:
        return _failed(
            f"window_days and periods_per_day must be >= 1, got {window_days} and {periods_per_day}",
            len(prices),
        )

    usable = sorted((s for s in prices if s.price > 0), key=lambda s: s.timestamp)
    if usable:
        cutoff = usable[-1].timestamp - timedelta(days=window_days)
        usable = [s for s in usable if s.timestamp >= cutoff]

    if len(usable) < 2:
        return _failed("Insufficient data for volatility calculation", len(usable))

    log_returns = [math.log(curr.price / prev.price) for prev, curr in zip(usable, usable[1:])]

    mean = sum(log_returns) / len(log_returns)
    variance = sum((r - mean) ** 2 for r in log_returns) / len(log_returns)
    std_dev = variance**0.5

    daily = std_dev * math.sqrt(periods_per_day) * 100
    annualized = daily * math.sqrt(DAYS_PER_YEAR)

    latest = usable[-1]
    sampling_period = timedelta(days=1) / periods_per_day
    tolerance = max(timedelta(minutes=30), sampling_period / 2)
    price_24h_ago = _price_near(usable, latest.timestamp - timedelta(days=1), tolerance)
    price_7d_ago = _price_near(usable, latest.timestamp - timedelta(days=7), tolerance)

    return VolatilityResult(
        current_price=latest.price,
        volatility_daily=round(daily, 2),
        volatility_annualized=round(annualized, 2),
        price_change_24h=round(_percent_change(latest.price, price_24h_ago), 2),
        price_change_7d=round(_percent_change(latest.price, price_7d_ago), 2),
        confidence=_confidence(len(usable), window_days * periods_per_day),
        data_points=len(usable),
    )


def _calculate_range(
    current_price: float,
    daily_volatility: float,
    sigma_multiple: float,
    horizon_days: float,
) -> tuple[float, float, float]:
    # sigma over the holding horizon = sigma_daily * sqrt(days)
    spread = sigma_multiple * daily_volatility * math.sqrt(horizon_days)
    price_min = current_price * (1 - spread)
    price_max = current_price * (1 + spread)
    width = (price_max - price_min) / current_price * 100 if current_price > 0 else 0.0
    return round(price_min, 4), round(price_max, 4), round(width, 2)


def suggest_optimal_ranges(
    current_price: float,
    volatility: VolatilityResult,
    *,
    horizon_days: float = 1.0,
) -> list[RangeSuggestion]:
    """
    Suggest liquidity ranges sized by sigma multiples of daily volatility.

    Returns exactly three suggestions ordered conservative (2σ), moderate
    (1.5σ), aggressive (1σ); widths are non-increasing in that order.

    When ``volatility_daily`` is 0 a typical 4% daily volatility is assumed
    and the suggestions are labelled as estimated.
    """
    estimated = volatility.volatility_daily <= 0
    daily_percent = DEFAULT_DAILY_VOLATILITY_PERCENT if estimated else volatility.volatility_daily
    daily = daily_percent / 100

    suggestions: list[RangeSuggestion] = []
    for profile in _STRATEGY_PROFILES:
        price_min, price_max, width = _calculate_range(current_price, daily, profile.sigma_multiple, horizon_days)
        suggestions.append(
            RangeSuggestion(
                strategy=profile.strategy,
                sigma_multiple=profile.sigma_multiple,
                price_min=price_min,
                price_max=price_max,
                width_percent=width,
                estimated_time_in_range=f"{profile.time_in_range} (estimated)" if estimated else profile.time_in_range,
                description=(
                    "Range based on typical volatility (insufficient data)" if estimated else profile.description
                ),
            )
        )
    return suggestions


def estimate_impermanent_loss(price_change_percent: float) -> float:
    """
    Estimate impermanent loss for a constant-product pool.

    Formula:
        k = |price_change_percent / 100|
        IL = 2 * sqrt(1 + k) / (2 + k) - 1

    Returns:
        Impermanent loss as a positive percentage (0 when the price is unchanged)
    """
    k = abs(price_change_percent / 100)
    il_percent = (2 * math.sqrt(1 + k) / (2 + k) - 1) * 100
    return abs(il_percent)
