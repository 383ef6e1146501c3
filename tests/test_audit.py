"""Tests for the audit trail."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from dealer.automation import AuditEvent, AuditLogger


def test_event_round_trip() -> None:
    event = AuditEvent(
        event_type="order_submitted",
        message="PLACE_ORDER submitted",
        timestamp=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        context={"nonce": 5},
    )

    data = event.to_dict()

    assert data["timestamp"] == "2024-01-01T12:00:00+00:00"
    assert AuditEvent.from_dict(data) == event


def test_from_dict_accepts_trailing_z() -> None:
    event = AuditEvent.from_dict(
        {"event_type": "policy_decision", "message": "m", "timestamp": "2024-01-01T00:00:00Z"}
    )
    assert event.timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_from_dict_drops_bad_timestamp() -> None:
    event = AuditEvent.from_dict({"event_type": "policy_decision", "message": "m", "timestamp": "yesterday"})
    assert event.timestamp.tzinfo is not None


class TestAuditLogger:
    def test_filters(self) -> None:
        audit = AuditLogger()
        audit.log_policy_violation("OPEN_POSITION", "Capital allocation 15.0% exceeds maximum 10% per pool")
        audit.log_policy_decision("OPEN_POSITION", False, "rejected")
        audit.log_order_submitted("PLACE_ORDER", "confirmed", "77")

        assert len(audit.get_events(scope="OPEN_POSITION")) == 2
        assert len(audit.get_events(event_type="order_submitted")) == 1
        assert len(audit.get_events(severity="warning")) == 2

    def test_messages(self) -> None:
        audit = AuditLogger()
        audit.log_confirmation_required("REBALANCE_RANGE", "high")
        audit.log_order_rejected("PLACE_ORDER", "network_failed", "Network error: timed out")
        audit.log_execution_error("PLACE_ORDER", "No signing capability loaded.")

        messages = [event.message for event in audit.events]
        assert messages == [
            "Confirmation required for REBALANCE_RANGE (risk: high)",
            "PLACE_ORDER failed (network_failed): Network error: timed out",
            "PLACE_ORDER aborted: No signing capability loaded.",
        ]
        assert audit.events[-1].severity == "error"

    def test_mirrors_to_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        audit = AuditLogger()

        with caplog.at_level(logging.INFO, logger="dealer.automation.audit"):
            audit.log_order_submitted("CANCEL_ORDER", "confirmed", "9")

        assert "[order_submitted] CANCEL_ORDER submitted: confirmed (order 9)" in caplog.text

    def test_json_export_and_clear(self) -> None:
        audit = AuditLogger()
        audit.log_policy_decision("CLAIM_FEES", True, "Claiming accrued fees from ETH/USDC.")

        exported = audit.to_json_list()
        assert exported[0]["context"]["allowed"] is True
        assert isinstance(exported[0]["timestamp"], str)

        audit.clear()
        assert audit.events == []
