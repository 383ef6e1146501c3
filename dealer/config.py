"""Configuration loading.

Execution settings come from environment variables; policy rules come from a
mapping (or a JSON file) supplied by the host and are validated with pydantic
before being frozen into ``PolicyRules``. Keys may be snake_case or camelCase.

Environment:
    HYPERLIQUID_TESTNET            "true"/"1" to post to the testnet endpoint
    DEALER_HTTP_TIMEOUT_SECONDS    default bound for each network call (10)
    DEALER_CREDENTIAL_RETENTION    "single_use" (default) or "session"
    DEALER_SESSION_TTL_HOURS       lifetime of a session capability
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from dealer.policy.rules import PolicyRules
from dealer.policy.scopes import OperationScope
from dealer.types import CredentialRetention


logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {raw!r}")
    return value


@dataclass(frozen=True)
class ExecutionSettings:
    testnet: bool = False
    timeout_seconds: float = 10.0
    credential_retention: CredentialRetention = CredentialRetention.SINGLE_USE
    session_ttl_hours: Optional[float] = None

    @property
    def session_ttl(self) -> Optional[timedelta]:
        if self.session_ttl_hours is None or self.credential_retention is not CredentialRetention.SESSION:
            return None
        return timedelta(hours=self.session_ttl_hours)

    @classmethod
    def from_env(cls) -> ExecutionSettings:
        raw_retention = os.getenv("DEALER_CREDENTIAL_RETENTION", CredentialRetention.SINGLE_USE.value)
        try:
            retention = CredentialRetention(raw_retention.strip().lower())
        except ValueError as exc:
            raise ValueError(
                f"DEALER_CREDENTIAL_RETENTION must be one of "
                f"{', '.join(r.value for r in CredentialRetention)}, got {raw_retention!r}"
            ) from exc

        return cls(
            testnet=_env_bool("HYPERLIQUID_TESTNET"),
            timeout_seconds=_env_float("DEALER_HTTP_TIMEOUT_SECONDS", 10.0),
            credential_retention=retention,
            session_ttl_hours=_env_float("DEALER_SESSION_TTL_HOURS", None),
        )


class PolicyRulesModel(BaseModel):
    """Wire/config representation of PolicyRules."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    enabled: bool = False
    max_range_width_percent: float = Field(100.0, ge=0)
    min_range_width_percent: float = Field(1.0, ge=0)
    max_capital_per_pool_percent: float = Field(50.0, ge=0)
    max_total_lp_exposure_percent: float = Field(100.0, ge=0)
    min_tvl_required: float = Field(0.0, ge=0)
    min_volume_required: float = Field(0.0, ge=0)
    min_apy_required: float = Field(0.0, ge=0)
    token_allowlist: list[str] = Field(default_factory=list)
    token_blocklist: list[str] = Field(default_factory=list)
    protocol_allowlist: list[str] = Field(default_factory=list)
    require_confirmation_for: list[OperationScope] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_range_bounds(self) -> PolicyRulesModel:
        if self.min_range_width_percent > self.max_range_width_percent:
            raise ValueError(
                f"min_range_width_percent ({self.min_range_width_percent}) exceeds "
                f"max_range_width_percent ({self.max_range_width_percent})"
            )
        return self

    def to_rules(self) -> PolicyRules:
        return PolicyRules(
            enabled=self.enabled,
            max_range_width_percent=self.max_range_width_percent,
            min_range_width_percent=self.min_range_width_percent,
            max_capital_per_pool_percent=self.max_capital_per_pool_percent,
            max_total_lp_exposure_percent=self.max_total_lp_exposure_percent,
            min_tvl_required=self.min_tvl_required,
            min_volume_required=self.min_volume_required,
            min_apy_required=self.min_apy_required,
            token_allowlist=frozenset(self.token_allowlist),
            token_blocklist=frozenset(self.token_blocklist),
            protocol_allowlist=frozenset(self.protocol_allowlist),
            require_confirmation_for=frozenset(self.require_confirmation_for),
        )


def load_policy_rules(data: Mapping[str, Any]) -> PolicyRules:
    """Validate a mapping and build PolicyRules.

    Raises:
        ValueError: If the mapping is malformed (unknown keys, negative limits,
            min range width above max, unknown operation scopes)
    """
    try:
        model = PolicyRulesModel.model_validate(dict(data))
    except ValidationError as exc:
        raise ValueError(f"Invalid policy rules: {exc}") from exc
    rules = model.to_rules()
    logger.debug("Loaded policy rules (enabled=%s)", rules.enabled)
    return rules


def load_policy_rules_file(path: str | Path) -> PolicyRules:
    """Load PolicyRules from a JSON file."""
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Policy rules file {path} must contain a JSON object")
    return load_policy_rules(data)
