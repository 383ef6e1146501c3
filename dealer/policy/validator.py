"""Policy validation for dealer operations.

Every applicable check runs on every call so the caller sees all reasons at
once. Hard limits append to ``violations``; advisory limits append to
``warnings`` and never affect ``allowed``.

Usage:
    from dealer.policy.validator import OperationParams, validate

    result = validate(OperationScope.OPEN_POSITION, OperationParams(capital_percent=15), rules)
    if not result.allowed:
        print(result.violations)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from dealer.policy.rules import PolicyRules
from dealer.policy.scopes import SCOPE_METADATA, OperationScope, RiskLevel


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationParams:
    """Derived parameters of an operation. ``None`` means "not applicable"."""

    pool_address: Optional[str] = None
    pool_name: Optional[str] = None
    range_width_percent: Optional[float] = None
    capital_percent: Optional[float] = None
    capital_usd: Optional[float] = None
    total_lp_exposure_percent: Optional[float] = None
    tokens: Optional[Sequence[str]] = None
    protocol: Optional[str] = None
    tvl: Optional[float] = None
    volume_24h: Optional[float] = None
    apy: Optional[float] = None


@dataclass(frozen=True)
class PolicyValidationResult:
    allowed: bool
    violations: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @classmethod
    def from_findings(cls, violations: Sequence[str], warnings: Sequence[str]) -> PolicyValidationResult:
        return cls(allowed=not violations, violations=tuple(violations), warnings=tuple(warnings))


def _fmt_limit(value: float) -> str:
    """Render a configured limit the way it was written (10 -> "10", 2.5 -> "2.5")."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return str(number)


def _fmt_usd(value: float) -> str:
    """Grouped thousands, at most three decimals, no trailing zeros (12345.5 -> "12,345.5")."""
    return f"{float(value):,.3f}".rstrip("0").rstrip(".")


def _check_range_width(width: float, rules: PolicyRules, violations: list[str]) -> None:
    if width > rules.max_range_width_percent:
        violations.append(
            f"Range width {width:.1f}% exceeds maximum allowed {_fmt_limit(rules.max_range_width_percent)}%"
        )
    if width < rules.min_range_width_percent:
        violations.append(
            f"Range width {width:.1f}% is below minimum required {_fmt_limit(rules.min_range_width_percent)}%"
        )


def _check_tokens(tokens: Sequence[str], rules: PolicyRules, violations: list[str]) -> None:
    if rules.token_allowlist:
        allowed = {symbol.upper() for symbol in rules.token_allowlist}
        disallowed = [token for token in tokens if token.upper() not in allowed]
        if disallowed:
            violations.append(f"Token(s) not in allowlist: {', '.join(disallowed)}")

    # Evaluated regardless of the allowlist outcome
    if rules.token_blocklist:
        blocked_symbols = {symbol.upper() for symbol in rules.token_blocklist}
        blocked = [token for token in tokens if token.upper() in blocked_symbols]
        if blocked:
            violations.append(f"Blocked token(s) detected: {', '.join(blocked)}")


def _check_protocol(protocol: str, rules: PolicyRules, violations: list[str]) -> None:
    if not rules.protocol_allowlist:
        return
    lowered = protocol.lower()
    if not any(entry.lower() in lowered for entry in rules.protocol_allowlist):
        violations.append(f'Protocol "{protocol}" is not in the allowed list')


def validate(
    operation: OperationScope,
    params: OperationParams,
    rules: PolicyRules,
) -> PolicyValidationResult:
    """Validate an operation against policy rules.

    Args:
        operation: Scope of the operation being validated
        params: Derived operation parameters; absent fields are skipped
        rules: Policy rules to enforce

    Returns:
        PolicyValidationResult where ``allowed`` is True iff there are no violations
    """
    if not rules.enabled:
        return PolicyValidationResult(allowed=True)

    violations: list[str] = []
    warnings: list[str] = []

    if params.range_width_percent is not None:
        _check_range_width(params.range_width_percent, rules, violations)

    if params.capital_percent is not None and params.capital_percent > rules.max_capital_per_pool_percent:
        violations.append(
            f"Capital allocation {params.capital_percent:.1f}% exceeds maximum "
            f"{_fmt_limit(rules.max_capital_per_pool_percent)}% per pool"
        )

    if (
        params.total_lp_exposure_percent is not None
        and params.total_lp_exposure_percent > rules.max_total_lp_exposure_percent
    ):
        violations.append(
            f"Total LP exposure {params.total_lp_exposure_percent:.1f}% exceeds maximum "
            f"{_fmt_limit(rules.max_total_lp_exposure_percent)}% of portfolio"
        )

    if params.tvl is not None and params.tvl < rules.min_tvl_required:
        violations.append(
            f"Pool TVL ${_fmt_usd(params.tvl)} is below minimum required ${_fmt_usd(rules.min_tvl_required)}"
        )

    if params.volume_24h is not None and params.volume_24h < rules.min_volume_required:
        violations.append(
            f"24h volume ${_fmt_usd(params.volume_24h)} is below minimum required "
            f"${_fmt_usd(rules.min_volume_required)}"
        )

    if params.apy is not None and params.apy < rules.min_apy_required:
        warnings.append(
            f"Pool APY {params.apy:.2f}% is below preferred minimum {_fmt_limit(rules.min_apy_required)}%"
        )

    if params.tokens:
        _check_tokens(params.tokens, rules, violations)

    if params.protocol:
        _check_protocol(params.protocol, rules, violations)

    result = PolicyValidationResult.from_findings(violations, warnings)
    logger.debug(
        "Policy validation for %s: allowed=%s violations=%d warnings=%d",
        operation.value,
        result.allowed,
        len(result.violations),
        len(result.warnings),
    )
    return result


def requires_confirmation(operation: OperationScope, rules: PolicyRules) -> bool:
    """Check if an operation requires explicit user confirmation."""
    return rules.enabled and operation in rules.require_confirmation_for


def risk_level(operation: OperationScope) -> RiskLevel:
    """Get risk level for an operation scope (``"medium"`` when unknown)."""
    info = SCOPE_METADATA.get(operation)
    return info.risk_level if info is not None else "medium"
