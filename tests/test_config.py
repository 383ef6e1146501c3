"""Tests for settings and policy-rules loading."""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from dealer.config import ExecutionSettings, load_policy_rules, load_policy_rules_file
from dealer.execution import CredentialRetention
from dealer.policy import OperationScope


class TestExecutionSettings:
    def test_defaults(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = ExecutionSettings.from_env()

        assert settings.testnet is False
        assert settings.timeout_seconds == 10.0
        assert settings.credential_retention is CredentialRetention.SINGLE_USE
        assert settings.session_ttl is None

    def test_from_env(self) -> None:
        env = {
            "HYPERLIQUID_TESTNET": "true",
            "DEALER_HTTP_TIMEOUT_SECONDS": "2.5",
            "DEALER_CREDENTIAL_RETENTION": "SESSION",
            "DEALER_SESSION_TTL_HOURS": "8",
        }
        with patch.dict("os.environ", env, clear=True):
            settings = ExecutionSettings.from_env()

        assert settings.testnet is True
        assert settings.timeout_seconds == 2.5
        assert settings.credential_retention is CredentialRetention.SESSION
        assert settings.session_ttl == timedelta(hours=8)

    def test_ttl_ignored_for_single_use(self) -> None:
        settings = ExecutionSettings(session_ttl_hours=8)
        assert settings.session_ttl is None

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("DEALER_HTTP_TIMEOUT_SECONDS", "soon"),
            ("DEALER_HTTP_TIMEOUT_SECONDS", "-1"),
            ("DEALER_CREDENTIAL_RETENTION", "forever"),
        ],
    )
    def test_invalid_env(self, name: str, value: str) -> None:
        with patch.dict("os.environ", {name: value}, clear=True):
            with pytest.raises(ValueError, match=name):
                ExecutionSettings.from_env()


class TestLoadPolicyRules:
    def test_camel_case_keys(self) -> None:
        rules = load_policy_rules(
            {
                "enabled": True,
                "maxRangeWidthPercent": 50,
                "minRangeWidthPercent": 2,
                "maxCapitalPerPoolPercent": 10,
                "maxTotalLpExposurePercent": 60,
                "minTvlRequired": 100000,
                "tokenAllowlist": ["ETH", "USDC"],
                "tokenBlocklist": ["SCAM"],
                "protocolAllowlist": ["uniswap"],
                "requireConfirmationFor": ["OPEN_POSITION", "CLOSE_POSITION"],
            }
        )

        assert rules.enabled is True
        assert rules.max_range_width_percent == 50.0
        assert rules.max_total_lp_exposure_percent == 60.0
        assert rules.token_allowlist == frozenset({"ETH", "USDC"})
        assert rules.require_confirmation_for == frozenset(
            {OperationScope.OPEN_POSITION, OperationScope.CLOSE_POSITION}
        )

    def test_snake_case_keys(self) -> None:
        rules = load_policy_rules({"enabled": True, "max_capital_per_pool_percent": 12.5})
        assert rules.max_capital_per_pool_percent == 12.5

    def test_missing_keys_use_defaults(self) -> None:
        rules = load_policy_rules({})

        assert rules.enabled is False
        assert rules.max_capital_per_pool_percent == 50.0
        assert rules.token_blocklist == frozenset()

    @pytest.mark.parametrize(
        "data",
        [
            {"minRangeWidthPercent": 60, "maxRangeWidthPercent": 50},
            {"maxCapitalPerPoolPercent": -1},
            {"requireConfirmationFor": ["launch_rocket"]},
            {"maxSlippage": 1},
        ],
    )
    def test_invalid_rules(self, data: dict) -> None:
        with pytest.raises(ValueError, match="Invalid policy rules"):
            load_policy_rules(data)

    def test_load_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"enabled": True, "tokenBlocklist": ["SCAM"]}), encoding="utf-8")

        rules = load_policy_rules_file(path)

        assert rules.token_blocklist == frozenset({"SCAM"})

    def test_file_must_hold_object(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(ValueError, match="JSON object"):
            load_policy_rules_file(path)
