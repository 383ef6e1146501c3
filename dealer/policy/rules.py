"""Policy rule configuration.

Pure data model. Rules are owned by the caller and passed explicitly to every
validation; nothing in this package keeps a process-wide copy.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dealer.policy.scopes import OperationScope


@dataclass(frozen=True)
class PolicyRules:
    """Configurable constraints for dealer operations.

    The default instance has ``enabled=False``: no enforcement at all.
    Empty allowlists mean "no restriction".
    """

    enabled: bool = False

    # Range constraints (percent of current price)
    max_range_width_percent: float = 100.0
    min_range_width_percent: float = 1.0

    # Capital constraints (percent of portfolio)
    max_capital_per_pool_percent: float = 50.0
    max_total_lp_exposure_percent: float = 100.0

    # Pool requirements
    min_tvl_required: float = 0.0
    min_volume_required: float = 0.0
    min_apy_required: float = 0.0  # advisory only

    # Token / protocol filtering
    token_allowlist: frozenset[str] = frozenset()
    token_blocklist: frozenset[str] = frozenset()
    protocol_allowlist: frozenset[str] = frozenset()

    require_confirmation_for: frozenset[OperationScope] = field(default_factory=frozenset)


DEFAULT_POLICY_RULES = PolicyRules(
    enabled=True,
    max_range_width_percent=100.0,
    min_range_width_percent=1.0,
    max_capital_per_pool_percent=50.0,
    max_total_lp_exposure_percent=100.0,
    require_confirmation_for=frozenset(
        {
            OperationScope.OPEN_POSITION,
            OperationScope.CLOSE_POSITION,
            OperationScope.REBALANCE_RANGE,
        }
    ),
)
