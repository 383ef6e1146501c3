"""Operation scopes governed by the policy engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

RiskLevel = Literal["low", "medium", "high"]


class OperationScope(str, Enum):
    """Closed set of operations the dealer may perform."""

    EXECUTE_LP_OPS = "EXECUTE_LP_OPS"  # General LP management
    OPEN_POSITION = "OPEN_POSITION"
    CLOSE_POSITION = "CLOSE_POSITION"
    REBALANCE_RANGE = "REBALANCE_RANGE"
    CLAIM_FEES = "CLAIM_FEES"
    CLAIM_REWARDS = "CLAIM_REWARDS"
    PLACE_ORDER = "PLACE_ORDER"
    CANCEL_ORDER = "CANCEL_ORDER"


@dataclass(frozen=True)
class ScopeInfo:
    label: str
    description: str
    risk_level: RiskLevel


SCOPE_METADATA: dict[OperationScope, ScopeInfo] = {
    OperationScope.EXECUTE_LP_OPS: ScopeInfo("Execute LP Operations", "General LP management", "medium"),
    OperationScope.OPEN_POSITION: ScopeInfo("Open Position", "Create new liquidity position", "high"),
    OperationScope.CLOSE_POSITION: ScopeInfo("Close Position", "Remove liquidity from position", "high"),
    OperationScope.REBALANCE_RANGE: ScopeInfo("Rebalance Range", "Adjust position price range", "high"),
    OperationScope.CLAIM_FEES: ScopeInfo("Claim Fees", "Collect earned trading fees", "low"),
    OperationScope.CLAIM_REWARDS: ScopeInfo("Claim Rewards", "Collect farming rewards", "low"),
    OperationScope.PLACE_ORDER: ScopeInfo("Place Order", "Sign and submit an exchange order", "high"),
    OperationScope.CANCEL_ORDER: ScopeInfo("Cancel Order", "Sign and submit an order cancellation", "low"),
}
