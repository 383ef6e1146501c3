"""Volatility, range suggestion and impermanent-loss computations."""

from .volatility import (
    DEFAULT_DAILY_VOLATILITY_PERCENT,
    PriceSnapshot,
    RangeSuggestion,
    VolatilityResult,
    calculate_volatility,
    estimate_impermanent_loss,
    suggest_optimal_ranges,
)

__all__ = [
    "DEFAULT_DAILY_VOLATILITY_PERCENT",
    "PriceSnapshot",
    "RangeSuggestion",
    "VolatilityResult",
    "calculate_volatility",
    "estimate_impermanent_loss",
    "suggest_optimal_ranges",
]
