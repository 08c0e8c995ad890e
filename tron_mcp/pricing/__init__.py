"""Local bonding-curve pricing engine."""

from .curve import (
    CurveState,
    PricingInputError,
    Quote,
    SplitPlan,
    SplitPlanStep,
    normalize_curve,
    quote,
    quote_buy,
    quote_sell,
    split_plan,
    spot_price,
)

__all__ = [
    "CurveState",
    "PricingInputError",
    "Quote",
    "SplitPlan",
    "SplitPlanStep",
    "normalize_curve",
    "quote",
    "quote_buy",
    "quote_sell",
    "split_plan",
    "spot_price",
]
