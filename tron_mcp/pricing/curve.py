"""
Constant-product bonding-curve pricing.

All functions are pure and synchronous. A trade never mutates the curve it is
quoted against; it returns the post-trade state as ``Quote.next_curve`` so
callers can chain simulated fills.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

FEE_BPS_MAX = 5000
BPS_DENOMINATOR = 10000
SPLIT_PARTS_MIN = 2
SPLIT_PARTS_MAX = 50
SIDES = ("buy", "sell")


class PricingInputError(ValueError):
    """Raised when curve, side, amount or tranche inputs are invalid."""

    def __init__(self, message: str, *, code: str = "INVALID_INPUT") -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True, slots=True)
class CurveState:
    virtual_base: float
    virtual_token: float
    fee_bps: float = 0

    @property
    def k(self) -> float:
        return self.virtual_base * self.virtual_token

    def to_dict(self) -> Dict[str, float]:
        return {
            "virtualBase": self.virtual_base,
            "virtualToken": self.virtual_token,
            "feeBps": self.fee_bps,
        }


@dataclass(frozen=True, slots=True)
class Quote:
    side: str
    amount_in: float
    amount_out: float
    avg_price: float
    spot_price_before: float
    spot_price_after: float
    price_impact_pct: float
    next_curve: CurveState

    def to_dict(self) -> Dict[str, Any]:
        return {
            "side": self.side,
            "amountIn": self.amount_in,
            "amountOut": self.amount_out,
            "avgPrice": self.avg_price,
            "spotPriceBefore": self.spot_price_before,
            "spotPriceAfter": self.spot_price_after,
            "priceImpactPct": self.price_impact_pct,
            "nextCurve": self.next_curve.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class SplitPlanStep:
    index: int
    amount_in: float
    expected_out: float
    expected_impact_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "amountIn": self.amount_in,
            "expectedOut": self.expected_out,
            "expectedImpactPct": self.expected_impact_pct,
        }


@dataclass(frozen=True, slots=True)
class SplitPlan:
    single: Quote
    steps: List[SplitPlanStep] = field(default_factory=list)
    split_total_out: float = 0.0
    split_avg_impact_pct: float = 0.0


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("boolean is not a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        return float(value)
    raise TypeError("not a number")


def _positive_number(value: Any, name: str, *, code: str) -> float:
    try:
        number = _to_number(value)
    except (TypeError, ValueError, OverflowError):
        raise PricingInputError(f"{name} must be a number > 0", code=code) from None
    if not math.isfinite(number) or number <= 0:
        raise PricingInputError(f"{name} must be a number > 0", code=code)
    return number


def _fee_bps(value: Any) -> float:
    if value is None:
        return 0
    try:
        number = _to_number(value)
    except (TypeError, ValueError, OverflowError):
        raise PricingInputError("feeBps must be in [0, 5000]", code="INVALID_CURVE") from None
    if not math.isfinite(number) or number < 0 or number > FEE_BPS_MAX:
        raise PricingInputError("feeBps must be in [0, 5000]", code="INVALID_CURVE")
    return number


def normalize_curve(curve: CurveState | Mapping[str, Any] | None) -> CurveState:
    """Validate a curve mapping (camelCase keys) or pass a ``CurveState`` through."""
    if isinstance(curve, CurveState):
        return curve
    if not isinstance(curve, Mapping):
        raise PricingInputError("curve is required", code="INVALID_CURVE")
    state = CurveState(
        virtual_base=_positive_number(curve.get("virtualBase"), "curve.virtualBase", code="INVALID_CURVE"),
        virtual_token=_positive_number(curve.get("virtualToken"), "curve.virtualToken", code="INVALID_CURVE"),
        fee_bps=_fee_bps(curve.get("feeBps")),
    )
    # k and the spot price must both be representable as positive finite floats.
    spot = state.virtual_base / state.virtual_token
    if not math.isfinite(state.k) or state.k <= 0 or not math.isfinite(spot) or spot <= 0:
        raise PricingInputError("curve is out of numeric range", code="INVALID_CURVE")
    return state


def spot_price(curve: CurveState | Mapping[str, Any]) -> float:
    state = normalize_curve(curve)
    return state.virtual_base / state.virtual_token


def _fee_adjusted(amount_in: float, fee_bps: float) -> float:
    return amount_in * (1 - fee_bps / BPS_DENOMINATOR)


def _impact_pct(before: float, after: float) -> float:
    return (after - before) / before * 100


def _build_quote(
    side: str,
    state: CurveState,
    amount: float,
    next_base: float,
    next_token: float,
    amount_out: float,
) -> Quote:
    if amount_out <= 0 or not math.isfinite(amount_out):
        raise PricingInputError("amountIn too small for curve", code="INVALID_AMOUNT")
    before = state.virtual_base / state.virtual_token
    after = next_base / next_token
    avg_price = amount / amount_out if side == "buy" else amount_out / amount
    result = Quote(
        side=side,
        amount_in=amount,
        amount_out=amount_out,
        avg_price=avg_price,
        spot_price_before=before,
        spot_price_after=after,
        price_impact_pct=_impact_pct(before, after),
        next_curve=CurveState(next_base, next_token, state.fee_bps),
    )
    # Every reported figure must serialize as a plain JSON number.
    positives = (next_base, next_token, avg_price, after)
    if not all(math.isfinite(value) and value > 0 for value in positives) or not math.isfinite(
        result.price_impact_pct
    ):
        raise PricingInputError("amountIn is out of numeric range for curve", code="INVALID_AMOUNT")
    return result


def quote_buy(curve: CurveState | Mapping[str, Any], amount_in: Any) -> Quote:
    """Spend base to receive tokens."""
    state = normalize_curve(curve)
    amount = _positive_number(amount_in, "amountIn", code="INVALID_AMOUNT")
    next_base = state.virtual_base + _fee_adjusted(amount, state.fee_bps)
    next_token = state.k / next_base
    return _build_quote("buy", state, amount, next_base, next_token, state.virtual_token - next_token)


def quote_sell(curve: CurveState | Mapping[str, Any], amount_in: Any) -> Quote:
    """Spend tokens to receive base."""
    state = normalize_curve(curve)
    amount = _positive_number(amount_in, "amountIn", code="INVALID_AMOUNT")
    next_token = state.virtual_token + _fee_adjusted(amount, state.fee_bps)
    next_base = state.k / next_token
    return _build_quote("sell", state, amount, next_base, next_token, state.virtual_base - next_base)


def quote(curve: CurveState | Mapping[str, Any], side: Any, amount_in: Any) -> Quote:
    if side == "buy":
        return quote_buy(curve, amount_in)
    if side == "sell":
        return quote_sell(curve, amount_in)
    raise PricingInputError("side must be 'buy' or 'sell'")


def _parts(value: Any) -> int:
    try:
        number = _to_number(value)
    except (TypeError, ValueError, OverflowError):
        number = math.nan
    if not number.is_integer() or not SPLIT_PARTS_MIN <= number <= SPLIT_PARTS_MAX:
        raise PricingInputError(
            f"parts must be an integer in [{SPLIT_PARTS_MIN}, {SPLIT_PARTS_MAX}]"
        )
    return int(number)


def split_plan(
    curve: CurveState | Mapping[str, Any],
    side: Any,
    total_amount_in: Any,
    parts: Any,
) -> SplitPlan:
    """
    Simulate ``parts`` equal sequential fills against one pool.

    Each tranche is quoted against the curve left behind by the previous one,
    so slippage compounds. The single-shot quote over the full amount is
    returned alongside for comparison.
    """
    state = normalize_curve(curve)
    total = _positive_number(total_amount_in, "totalAmountIn", code="INVALID_AMOUNT")
    tranche_count = _parts(parts)

    single = quote(state, side, total)
    step_amount = total / tranche_count
    steps: List[SplitPlanStep] = []
    running = state
    total_out = 0.0
    impact_abs_sum = 0.0

    for index in range(1, tranche_count + 1):
        fill = quote(running, side, step_amount)
        total_out += fill.amount_out
        impact_abs_sum += abs(fill.price_impact_pct)
        steps.append(
            SplitPlanStep(
                index=index,
                amount_in=step_amount,
                expected_out=fill.amount_out,
                expected_impact_pct=fill.price_impact_pct,
            )
        )
        running = fill.next_curve

    return SplitPlan(
        single=single,
        steps=steps,
        split_total_out=total_out,
        split_avg_impact_pct=impact_abs_sum / tranche_count,
    )
