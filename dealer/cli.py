"""Command line entry point.

Usage:
    dealer validate --rules rules.json --operation OPEN_POSITION --range-width 30 --capital-percent 15
    dealer ranges --price 100 --volatility 2.0
    dealer ranges --prices-file prices.json --window-days 7
    dealer il --change 100

All commands print JSON to stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from dealer.analytics.volatility import (
    PriceSnapshot,
    VolatilityResult,
    calculate_volatility,
    estimate_impermanent_loss,
    suggest_optimal_ranges,
)
from dealer.config import load_policy_rules_file
from dealer.policy.rationale import range_rationale
from dealer.policy.rules import DEFAULT_POLICY_RULES
from dealer.policy.scopes import OperationScope
from dealer.policy.validator import OperationParams, requires_confirmation, risk_level, validate


logger = logging.getLogger(__name__)


def _load_snapshots(path: str) -> list[PriceSnapshot]:
    """Read ``[{"timestamp": iso8601, "price": number}, ...]``.

    Timestamps without an offset are taken as UTC. Malformed rows raise ValueError.
    """
    with open(path, encoding="utf-8") as fh:
        rows = json.load(fh)
    if not isinstance(rows, list):
        raise ValueError(f"{path}: expected a JSON list of snapshots")
    snapshots = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict) or "timestamp" not in row or "price" not in row:
            raise ValueError(f"{path}: row {i} must be an object with timestamp and price")
        ts = str(row["timestamp"])
        if ts.endswith("Z"):
            ts = ts[:-1] + "+00:00"
        try:
            timestamp = datetime.fromisoformat(ts)
            price = float(row["price"])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{path}: row {i} is invalid: {exc}") from exc
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        snapshots.append(PriceSnapshot(timestamp=timestamp, price=price))
    return snapshots


def _cmd_validate(args: argparse.Namespace) -> dict[str, Any]:
    rules = load_policy_rules_file(args.rules) if args.rules else DEFAULT_POLICY_RULES
    scope = OperationScope(args.operation)
    params = OperationParams(
        pool_address=args.pool_address,
        range_width_percent=args.range_width,
        capital_percent=args.capital_percent,
        total_lp_exposure_percent=args.total_exposure,
        tokens=args.tokens,
        protocol=args.protocol,
        tvl=args.tvl,
        volume_24h=args.volume,
        apy=args.apy,
    )
    result = validate(scope, params, rules)
    return {
        "operation": scope.value,
        "allowed": result.allowed,
        "violations": list(result.violations),
        "warnings": list(result.warnings),
        "requires_confirmation": requires_confirmation(scope, rules),
        "risk_level": risk_level(scope),
    }


def _cmd_ranges(args: argparse.Namespace) -> dict[str, Any]:
    if args.prices_file:
        volatility = calculate_volatility(
            _load_snapshots(args.prices_file), args.window_days, periods_per_day=args.periods_per_day
        )
        if volatility.error:
            return {"error": volatility.error, "data_points": volatility.data_points}
    else:
        if args.price is None:
            raise ValueError("--price is required without --prices-file")
        daily = args.volatility or 0.0
        volatility = VolatilityResult(
            current_price=args.price,
            volatility_daily=daily,
            volatility_annualized=round(daily * 365**0.5, 2),
            price_change_24h=0.0,
            price_change_7d=0.0,
            confidence="medium",
            data_points=0,
        )

    suggestions = suggest_optimal_ranges(volatility.current_price, volatility, horizon_days=args.horizon_days)
    return {
        "volatility": asdict(volatility),
        "suggestions": [
            {**asdict(s), "rationale": range_rationale(s.strategy, volatility)} for s in suggestions
        ],
    }


def _cmd_il(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "price_change_percent": args.change,
        "impermanent_loss_percent": round(estimate_impermanent_loss(args.change), 4),
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dealer", description="LP dealer policy and analytics tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_validate = sub.add_parser("validate", help="Validate an operation against policy rules")
    p_validate.add_argument("--rules", help="Policy rules JSON file (default: built-in safe defaults)")
    p_validate.add_argument(
        "--operation",
        required=True,
        type=str.upper,
        choices=[s.value for s in OperationScope],
        help="Operation scope",
    )
    p_validate.add_argument("--pool-address")
    p_validate.add_argument("--range-width", type=float, help="Range width (percent of price)")
    p_validate.add_argument("--capital-percent", type=float, help="Capital allocation (percent of portfolio)")
    p_validate.add_argument("--total-exposure", type=float, help="Total LP exposure after the operation (percent)")
    p_validate.add_argument("--tokens", nargs="+", help="Pool token symbols")
    p_validate.add_argument("--protocol")
    p_validate.add_argument("--tvl", type=float)
    p_validate.add_argument("--volume", type=float, help="24h volume (USD)")
    p_validate.add_argument("--apy", type=float)
    p_validate.set_defaults(func=_cmd_validate)

    p_ranges = sub.add_parser("ranges", help="Suggest LP ranges from volatility")
    p_ranges.add_argument("--price", type=float, help="Current price")
    p_ranges.add_argument("--volatility", type=float, help="Daily volatility (percent)")
    p_ranges.add_argument("--prices-file", help="JSON list of {timestamp, price} snapshots")
    p_ranges.add_argument("--window-days", type=int, default=7)
    p_ranges.add_argument("--periods-per-day", type=int, default=1)
    p_ranges.add_argument("--horizon-days", type=float, default=1.0)
    p_ranges.set_defaults(func=_cmd_ranges)

    p_il = sub.add_parser("il", help="Estimate impermanent loss for a price change")
    p_il.add_argument("--change", type=float, required=True, help="Price change (percent)")
    p_il.set_defaults(func=_cmd_il)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        output = args.func(args)
    except (OSError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
