"""Execution Orchestrator - the single path from an operation to the exchange.

For each submitted operation:
1. Validates it against the caller-owned policy rules
2. Holds high-risk operations until they are explicitly confirmed
3. Attaches a human-readable rationale
4. Dispatches to the execution adapter (paper by default)
5. Records every step in the audit log

A rejected operation never reaches the adapter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

from dealer.automation.audit import AuditLogger
from dealer.automation.operations import (
    CancelOrder,
    ClaimFees,
    ClaimRewards,
    ClosePosition,
    OpenPosition,
    Operation,
    PlaceOrder,
    RebalanceRange,
)
from dealer.execution.errors import InvalidOrderError, NotReadyError, SigningError
from dealer.execution.interfaces import ExecutionAdapter
from dealer.execution.paper import PaperExecutionAdapter
from dealer.policy.rules import PolicyRules
from dealer.policy.scopes import RiskLevel
from dealer.policy.validator import PolicyValidationResult, requires_confirmation, risk_level, validate
from dealer.types import ExecutionIntent, ExecutionState, OrderResult


logger = logging.getLogger(__name__)

DecisionStatus = Literal["rejected", "pending_confirmation", "approved", "executed", "failed"]


@dataclass(frozen=True)
class ExecutionDecision:
    """Outcome of submitting one operation."""

    operation: Operation
    status: DecisionStatus
    validation: PolicyValidationResult
    risk_level: RiskLevel
    rationale: str = ""
    result: Optional[OrderResult] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def violations(self) -> tuple[str, ...]:
        return self.validation.violations

    @property
    def warnings(self) -> tuple[str, ...]:
        return self.validation.warnings


class ExecutionOrchestrator:
    """Coordinates policy validation, confirmation and execution.

    Policy rules are owned by the orchestrator instance; swap them with
    ``replace_rules``. Nothing here is process-global.
    """

    def __init__(
        self,
        *,
        rules: PolicyRules,
        adapter: Optional[ExecutionAdapter] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        self._rules = rules
        self.adapter: ExecutionAdapter = adapter or PaperExecutionAdapter()
        self.audit_logger = audit_logger or AuditLogger()

    @property
    def rules(self) -> PolicyRules:
        return self._rules

    def replace_rules(self, rules: PolicyRules) -> None:
        logger.info("Policy rules replaced (enabled=%s)", rules.enabled)
        self._rules = rules

    async def submit(
        self,
        operation: Operation,
        *,
        confirmed: bool = False,
        timeout: Optional[float] = None,
    ) -> ExecutionDecision:
        """Validate and, if allowed and confirmed, execute one operation.

        Args:
            operation: One of the operation variants
            confirmed: The caller has confirmed a high-risk operation
            timeout: Bound for the exchange call, in seconds

        Returns:
            ExecutionDecision. Hard execution failures (no capability loaded,
            signing failed) come back as a ``failed`` decision.
        """
        # Snapshot so a concurrent replace_rules cannot split one decision
        rules = self._rules
        scope = operation.scope
        validation = validate(scope, operation.params(), rules)
        level = risk_level(scope)

        if not validation.allowed:
            for violation in validation.violations:
                self.audit_logger.log_policy_violation(scope.value, violation)
            self.audit_logger.log_policy_decision(scope.value, False, "; ".join(validation.violations))
            return ExecutionDecision(operation, "rejected", validation, level)

        rationale = operation.rationale()
        self.audit_logger.log_policy_decision(scope.value, True, rationale, {"warnings": list(validation.warnings)})

        if requires_confirmation(scope, rules) and not confirmed:
            self.audit_logger.log_confirmation_required(scope.value, level)
            return ExecutionDecision(operation, "pending_confirmation", validation, level, rationale)

        aborted = False
        try:
            result = await self._dispatch(operation, timeout)
        except NotReadyError as exc:
            self.audit_logger.log_execution_error(scope.value, str(exc))
            result = OrderResult.failure(ExecutionState.NOT_READY, str(exc))
            aborted = True
        except SigningError as exc:
            self.audit_logger.log_execution_error(scope.value, str(exc))
            result = OrderResult.failure(ExecutionState.SIGNING_FAILED, str(exc))
            aborted = True
        except InvalidOrderError as exc:
            self.audit_logger.log_execution_error(scope.value, str(exc))
            result = OrderResult.failure(ExecutionState.REJECTED, str(exc))
            aborted = True

        if result is None:
            return ExecutionDecision(operation, "approved", validation, level, rationale)

        if result.success:
            self.audit_logger.log_order_submitted(
                scope.value, result.state.value, result.order_id, {"nonce": result.nonce}
            )
            status: DecisionStatus = "executed"
        else:
            if not aborted:
                self.audit_logger.log_order_rejected(
                    scope.value, result.state.value, result.error or "unknown error", {"nonce": result.nonce}
                )
            status = "failed"
        return ExecutionDecision(operation, status, validation, level, rationale, result)

    async def _dispatch(self, operation: Operation, timeout: Optional[float]) -> Optional[OrderResult]:
        """Route an approved operation to the adapter; None when nothing needs signing."""
        if isinstance(operation, PlaceOrder):
            return await self._execute(operation.intent, timeout)
        if isinstance(operation, CancelOrder):
            return await self.adapter.cancel_order(operation.coin, operation.order_id, timeout=timeout)
        if isinstance(operation, (OpenPosition, ClosePosition, RebalanceRange)):
            if operation.intent is None:
                return None
            return await self._execute(operation.intent, timeout)
        if isinstance(operation, (ClaimFees, ClaimRewards)):
            return None
        raise TypeError(f"Unsupported operation: {type(operation).__name__}")

    async def _execute(self, intent: ExecutionIntent, timeout: Optional[float]) -> OrderResult:
        return await self.adapter.execute(intent, timeout=timeout)
