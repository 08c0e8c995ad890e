"""Shared validation helpers for TRON tools."""

from __future__ import annotations

import math
import re
from typing import Any, Optional

# TRON addresses are Base58, "T"-prefixed, 30-40 characters.
ADDRESS_REGEX = re.compile(r"^T[1-9A-HJ-NP-Za-km-z]{29,39}$")
TXID_REGEX = re.compile(r"^[0-9a-fA-F]{64}$")
HEX_REGEX = re.compile(r"^[0-9a-fA-F]+$")


def is_valid_tron_address(address: Any) -> bool:
    """Format check only; checksum verification lives in ``parse_address_meta``."""
    if not isinstance(address, str):
        return False
    return bool(ADDRESS_REGEX.fullmatch(address))


def is_valid_txid(txid: Any) -> bool:
    if not isinstance(txid, str):
        return False
    return bool(TXID_REGEX.fullmatch(txid))


def normalize_hex(value: Any) -> Optional[str]:
    """Strip an optional ``0x`` prefix; return lowercase even-length hex or ``None``."""
    if not isinstance(value, str):
        return None
    raw = value[2:] if value.startswith("0x") else value
    if not raw or len(raw) % 2 != 0:
        return None
    if not HEX_REGEX.fullmatch(raw):
        return None
    return raw.lower()


def parse_positive_number(value: Any) -> Optional[float]:
    """Coerce a JSON number (or numeric string) that must be finite and > 0."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def parse_bounded_int(value: Any, *, minimum: int, maximum: int) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        return None
    if value < minimum or value > maximum:
        return None
    return value
