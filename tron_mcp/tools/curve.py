"""Local bonding-curve quoting and split-order planning tools."""

from __future__ import annotations

from typing import Any, Dict

from tron_mcp.envelope import ErrorCode
from tron_mcp.pricing import CurveState, PricingInputError, normalize_curve, quote, split_plan
from tron_mcp.pricing.curve import FEE_BPS_MAX, SIDES, SPLIT_PARTS_MAX, SPLIT_PARTS_MIN
from tron_mcp.tools.base import ToolContext, ToolInputError, ToolResult
from tron_mcp.tools.validators import parse_bounded_int, parse_positive_number

SOURCE = "local-robinpump"

CURVE_PRESETS: Dict[str, CurveState] = {
    "A": CurveState(virtual_base=100000, virtual_token=500000, fee_bps=30),
    "B": CurveState(virtual_base=250000, virtual_token=350000, fee_bps=50),
}


def resolve_curve(args: Dict[str, Any]) -> CurveState:
    """An explicit ``curve`` object wins over a ``preset`` name."""
    curve = args.get("curve")
    if isinstance(curve, dict):
        try:
            return normalize_curve(curve)
        except PricingInputError as exc:
            raise ToolInputError(exc.code, str(exc)) from None
    preset = args.get("preset")
    if isinstance(preset, str) and preset in CURVE_PRESETS:
        return CURVE_PRESETS[preset]
    raise ToolInputError(ErrorCode.INVALID_CURVE, "Provide curve or preset(A/B)")


def _side(args: Dict[str, Any]) -> str:
    side = args.get("side")
    if side not in SIDES:
        raise ToolInputError(ErrorCode.INVALID_INPUT, "side must be 'buy' or 'sell'")
    return side


def _amount(args: Dict[str, Any], key: str) -> float:
    amount = parse_positive_number(args.get(key))
    if amount is None:
        raise ToolInputError(ErrorCode.INVALID_AMOUNT, f"{key} must be a number > 0")
    return amount


def validate_quote_args(args: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "curve": resolve_curve(args),
        "side": _side(args),
        "amountIn": _amount(args, "amountIn"),
    }


def validate_split_plan_args(args: Dict[str, Any]) -> Dict[str, Any]:
    curve = resolve_curve(args)
    side = _side(args)
    total = _amount(args, "totalAmountIn")
    parts = parse_bounded_int(args.get("parts"), minimum=SPLIT_PARTS_MIN, maximum=SPLIT_PARTS_MAX)
    if parts is None:
        raise ToolInputError(
            ErrorCode.INVALID_INPUT,
            f"parts must be an integer in [{SPLIT_PARTS_MIN}, {SPLIT_PARTS_MAX}]",
        )
    max_slippage_bps = parse_bounded_int(args.get("maxSlippageBps"), minimum=0, maximum=FEE_BPS_MAX)
    if max_slippage_bps is None:
        raise ToolInputError(
            ErrorCode.INVALID_INPUT,
            f"maxSlippageBps must be an integer in [0, {FEE_BPS_MAX}]",
        )
    return {
        "curve": curve,
        "side": side,
        "totalAmountIn": total,
        "parts": parts,
        "maxSlippageBps": max_slippage_bps,
    }


async def rp_quote(ctx: ToolContext, args: Dict[str, Any]) -> ToolResult:
    result = quote(args["curve"], args["side"], args["amountIn"])
    summary = (
        f"Quote {result.side}: in {result.amount_in:.6f}, out {result.amount_out:.6f}, "
        f"impact {result.price_impact_pct:.4f}%"
    )
    data = {
        "summary": summary,
        "key_facts": {
            "amountIn": result.amount_in,
            "amountOut": result.amount_out,
            "avgPrice": result.avg_price,
            "spotPriceBefore": result.spot_price_before,
            "spotPriceAfter": result.spot_price_after,
            "priceImpactPct": result.price_impact_pct,
        },
        "next_steps": ["Call rp_split_plan to compare single vs split."],
        "raw": result.to_dict(),
    }
    return ToolResult(data=data, summary=summary, source=SOURCE)


async def rp_split_plan(ctx: ToolContext, args: Dict[str, Any]) -> ToolResult:
    parts = args["parts"]
    plan = split_plan(args["curve"], args["side"], args["totalAmountIn"], parts)
    max_impact_pct = args["maxSlippageBps"] / 100
    worst_tranche_impact = max(abs(step.expected_impact_pct) for step in plan.steps)
    if worst_tranche_impact > max_impact_pct:
        next_steps = ["Current split exceeds maxSlippageBps; increase parts or reduce totalAmountIn."]
    else:
        next_steps = ["Plan is within maxSlippageBps threshold."]

    summary = (
        f"Split {parts}: singleImpact={plan.single.price_impact_pct:.4f}%, "
        f"splitAvgImpact={plan.split_avg_impact_pct:.4f}%"
    )
    data = {
        "summary": summary,
        "plan": [step.to_dict() for step in plan.steps],
        "comparison": {
            "singleTradeImpactPct": plan.single.price_impact_pct,
            "splitAvgImpactPct": plan.split_avg_impact_pct,
            "splitTotalOut": plan.split_total_out,
            "singleTotalOut": plan.single.amount_out,
        },
        "next_steps": next_steps,
    }
    return ToolResult(data=data, summary=summary, source=SOURCE)
