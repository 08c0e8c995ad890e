"""Rendering helpers for on-chain integer amounts and timestamps."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

TRX_DECIMALS = 6
USDT_DECIMALS = 6


def _trim_fraction(text: str) -> str:
    if "." not in text:
        return text
    trimmed = text.rstrip("0").rstrip(".")
    return trimmed or "0"


def format_token_amount(raw: Any, decimals: int) -> str:
    """
    Render an integer amount of base units as an exact decimal string.

    ``format_token_amount(1234500, 6) == "1.2345"``. Strings that already
    contain a decimal point are returned unchanged; unparseable input yields
    ``"0"``.
    """
    if raw is None:
        return "0"
    if isinstance(raw, float):
        if not raw.is_integer():
            scaled = Decimal(repr(raw)).scaleb(-decimals)
            return _trim_fraction(format(scaled, "f"))
        raw = int(raw)
    if isinstance(raw, str) and "." in raw:
        return raw
    try:
        units = int(str(raw).strip())
    except ValueError:
        return "0"

    sign = "-" if units < 0 else ""
    whole, fraction = divmod(abs(units), 10**decimals)
    if decimals == 0 or fraction == 0:
        return f"{sign}{whole}"
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{fraction_text}"


def to_fixed2(value: Any) -> str:
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        return "0.00"
    if not number.is_finite():
        return "0.00"
    return f"{number:.2f}"


def hex_to_int_string(value: Optional[str]) -> str:
    """Decode a hex word (e.g. a TRC20 ``constant_result``) to a decimal string."""
    if not value:
        return "0"
    try:
        return str(int(value, 16))
    except ValueError:
        return "0"


def iso_from_ms(timestamp_ms: Any) -> Optional[str]:
    """Render epoch milliseconds as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if isinstance(timestamp_ms, bool) or not isinstance(timestamp_ms, (int, float)):
        return None
    try:
        moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
