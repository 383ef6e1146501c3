"""Tests for rationale generation."""

from __future__ import annotations

from decimal import Decimal

from dealer.analytics import VolatilityResult
from dealer.policy import (
    PoolContext,
    close_position_rationale,
    open_position_rationale,
    order_rationale,
    range_rationale,
    rebalance_rationale,
)
from dealer.types import ExecutionIntent


def _vol(daily: float = 3.25, confidence: str = "medium", change_24h: float = 0.0) -> VolatilityResult:
    return VolatilityResult(
        current_price=100.0,
        volatility_daily=daily,
        volatility_annualized=daily * 19.1,
        price_change_24h=change_24h,
        price_change_7d=0.0,
        confidence=confidence,  # type: ignore[arg-type]
        data_points=7,
    )


class TestRangeRationale:
    def test_full_clause_order(self) -> None:
        pool = PoolContext(volume_24h=12_345.0, tvl=2_500_000.0, apy=18.456)

        text = range_rationale("conservative", _vol(confidence="high"), pool)

        assert text == (
            "Wide range (±2σ) selected, due to daily volatility of 3.25%, 24h volume of $12.3K, "
            "TVL of $2.50M, estimated APY of 18.46% and (high confidence in data)"
        )

    def test_two_clauses_joined_with_space(self) -> None:
        text = range_rationale("aggressive", _vol(daily=1.5))
        assert text == "Narrow range (±1σ) selected due to daily volatility of 1.50%"

    def test_low_confidence_note(self) -> None:
        text = range_rationale("moderate", _vol(confidence="low"))
        assert text.endswith("and (limited historical data)")

    def test_zero_fields_are_omitted(self) -> None:
        text = range_rationale("moderate", _vol(daily=0.0), PoolContext(volume_24h=0.0, tvl=950.0))
        assert text == "Moderate range (±1.5σ) selected TVL of $950"

    def test_deterministic(self) -> None:
        pool = PoolContext(volume_24h=800.0, tvl=45_000.0)
        assert range_rationale("moderate", _vol(), pool) == range_rationale("moderate", _vol(), pool)


def test_open_position_rationale_mentions_high_volatility() -> None:
    text = open_position_rationale("ETH/USDC", "moderate", 97.0, 103.0, _vol(daily=6.0, change_24h=12.0), 1500)

    assert text.startswith("Opening position in ETH/USDC with moderate strategy.")
    assert "(6.0% wide)" in text
    assert "Capital: $1,500.00." in text
    assert "High volatility (6.00%/day)" in text
    assert "Price rose 12.00% in 24h" in text


def test_close_position_rationale() -> None:
    text = close_position_rationale("ETH/USDC", in_range=False, unclaimed_fees=12.5, reason="Rotating capital.")
    assert text == (
        "Closing position in ETH/USDC. Position is out of range and not earning fees. "
        "Unclaimed fees of $12.50 will be collected automatically. Rotating capital."
    )


def test_rebalance_rationale_reports_drift() -> None:
    text = rebalance_rationale("ETH/USDC", (100.0, 110.0), (85.0, 95.0), 90.0, _vol(daily=2.0))

    assert "Price 10.0% below the previous range." in text
    assert text.endswith("Volatility: 2.00%/day.")


def test_order_rationale() -> None:
    intent = ExecutionIntent(
        coin="ETH",
        side="BUY",
        size=Decimal("0.50"),
        asset_index=1,
        order_type="limit",
        price=Decimal("2000.0"),
        reduce_only=True,
    )

    assert order_rationale(intent, "Hedge LP delta.") == "BUY 0.5 ETH at limit 2000 (reduce-only). Hedge LP delta."
