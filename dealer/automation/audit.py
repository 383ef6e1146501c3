"""Audit trail for dealer operations.

Every orchestrator step (policy decision, violation, confirmation gate,
submission outcome, hard execution failure) is recorded as a structured event
with enough context to replay why an operation was or was not executed.
Events never contain key material; only addresses, nonces and order ids.

All timestamps use timezone-aware UTC datetimes.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional


logger = logging.getLogger(__name__)

EventType = Literal[
    "policy_decision",
    "policy_violation",
    "confirmation_required",
    "order_submitted",
    "order_rejected",
    "execution_error",
]

Severity = Literal["debug", "info", "warning", "error"]

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass
class AuditEvent:
    """Structured audit event for one orchestrator step."""

    event_type: EventType
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    severity: Severity = "info"
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        result = asdict(self)
        result["timestamp"] = self.timestamp.isoformat()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditEvent:
        data = dict(data)
        timestamp_value = data.get("timestamp")
        if isinstance(timestamp_value, str):
            ts = timestamp_value
            if ts.endswith("Z"):
                ts = ts[:-1] + "+00:00"
            try:
                data["timestamp"] = datetime.fromisoformat(ts)
            except ValueError:
                data.pop("timestamp", None)
        return cls(**data)


class AuditLogger:
    """In-memory audit log, mirrored to the module logger."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    def log(self, event: AuditEvent) -> None:
        self.events.append(event)
        logger.log(_LOG_LEVELS[event.severity], "[%s] %s", event.event_type, event.message)

    def log_policy_decision(
        self,
        scope: str,
        allowed: bool,
        rationale: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        event = AuditEvent(
            event_type="policy_decision",
            message=f"Policy {'allowed' if allowed else 'rejected'} {scope}: {rationale}",
            severity="info" if allowed else "warning",
            context={"scope": scope, "allowed": allowed, "rationale": rationale, **(context or {})},
        )
        self.log(event)

    def log_policy_violation(
        self,
        scope: str,
        violation: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        event = AuditEvent(
            event_type="policy_violation",
            message=f"Policy violation for {scope}: {violation}",
            severity="warning",
            context={"scope": scope, "violation": violation, **(context or {})},
        )
        self.log(event)

    def log_confirmation_required(
        self,
        scope: str,
        risk_level: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        event = AuditEvent(
            event_type="confirmation_required",
            message=f"Confirmation required for {scope} (risk: {risk_level})",
            severity="info",
            context={"scope": scope, "risk_level": risk_level, **(context or {})},
        )
        self.log(event)

    def log_order_submitted(
        self,
        scope: str,
        state: str,
        order_id: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        """Log an accepted submission (dry-run or live)."""
        event = AuditEvent(
            event_type="order_submitted",
            message=f"{scope} submitted: {state}" + (f" (order {order_id})" if order_id else ""),
            severity="info",
            context={"scope": scope, "state": state, "order_id": order_id, **(context or {})},
        )
        self.log(event)

    def log_order_rejected(
        self,
        scope: str,
        state: str,
        reason: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        """Log an exchange rejection or network failure."""
        event = AuditEvent(
            event_type="order_rejected",
            message=f"{scope} failed ({state}): {reason}",
            severity="warning",
            context={"scope": scope, "state": state, "reason": reason, **(context or {})},
        )
        self.log(event)

    def log_execution_error(
        self,
        scope: str,
        error_message: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        """Log a hard failure of the execution boundary (not ready, signing failed)."""
        event = AuditEvent(
            event_type="execution_error",
            message=f"{scope} aborted: {error_message}",
            severity="error",
            context={"scope": scope, "error": error_message, **(context or {})},
        )
        self.log(event)

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        severity: Optional[Severity] = None,
        scope: Optional[str] = None,
    ) -> list[AuditEvent]:
        return [
            e
            for e in self.events
            if (event_type is None or e.event_type == event_type)
            and (severity is None or e.severity == severity)
            and (scope is None or e.context.get("scope") == scope)
        ]

    def clear(self) -> None:
        self.events.clear()

    def to_json_list(self) -> list[dict[str, Any]]:
        """Export all events as JSON-serializable list."""
        return [event.to_dict() for event in self.events]
