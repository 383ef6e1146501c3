"""Operation orchestration: typed operations, policy gate and audit trail."""

from .audit import AuditEvent, AuditLogger
from .operations import (
    CancelOrder,
    ClaimFees,
    ClaimRewards,
    ClosePosition,
    OpenPosition,
    Operation,
    PlaceOrder,
    RebalanceRange,
)
from .orchestrator import ExecutionDecision, ExecutionOrchestrator

__all__ = [
    "AuditEvent",
    "AuditLogger",
    "CancelOrder",
    "ClaimFees",
    "ClaimRewards",
    "ClosePosition",
    "OpenPosition",
    "Operation",
    "PlaceOrder",
    "RebalanceRange",
    "ExecutionDecision",
    "ExecutionOrchestrator",
]
