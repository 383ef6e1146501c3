"""Policy engine: rules, validation and decision rationale."""

from .rationale import (
    PoolContext,
    close_position_rationale,
    open_position_rationale,
    order_rationale,
    range_rationale,
    rebalance_rationale,
)
from .rules import DEFAULT_POLICY_RULES, PolicyRules
from .scopes import SCOPE_METADATA, OperationScope, RiskLevel, ScopeInfo
from .validator import (
    OperationParams,
    PolicyValidationResult,
    requires_confirmation,
    risk_level,
    validate,
)

__all__ = [
    # Scopes
    "OperationScope",
    "RiskLevel",
    "ScopeInfo",
    "SCOPE_METADATA",
    # Rules
    "PolicyRules",
    "DEFAULT_POLICY_RULES",
    # Validation
    "OperationParams",
    "PolicyValidationResult",
    "validate",
    "requires_confirmation",
    "risk_level",
    # Rationale
    "PoolContext",
    "range_rationale",
    "open_position_rationale",
    "close_position_rationale",
    "rebalance_rationale",
    "order_rationale",
]
