"""Base58Check helpers for TRON addresses."""

from __future__ import annotations

import hashlib
import re
from typing import Dict, Optional

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
TRON_ADDRESS_PREFIX = "41"
HEX_ADDRESS_REGEX = re.compile(r"^[0-9a-fA-F]{42}$")


class AddressDecodeError(ValueError):
    """Raised when a Base58Check string cannot be decoded."""


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def base58check_decode(value: str) -> bytes:
    """Decode a Base58Check string and return its payload without the checksum."""
    leading_zeros = len(value) - len(value.lstrip("1"))
    number = 0
    for char in value:
        index = BASE58_ALPHABET.find(char)
        if index < 0:
            raise AddressDecodeError("Invalid base58 character")
        number = number * 58 + index

    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    decoded = b"\x00" * leading_zeros + body
    if len(decoded) < 4:
        raise AddressDecodeError("Invalid base58 length")

    payload, checksum = decoded[:-4], decoded[-4:]
    if _sha256(_sha256(payload))[:4] != checksum:
        raise AddressDecodeError("Invalid base58 checksum")
    return payload


def to_hex_address(address: str) -> str:
    """Return the lowercase hex form (``41`` + 20 bytes) of a Base58 address."""
    return base58check_decode(address).hex()


def normalize_address_like(value: object) -> Optional[Dict[str, Optional[str]]]:
    """
    Normalize an address in Base58 (``T...``) or 21-byte hex form.

    Returns ``{"base58": ..., "hex": ...}`` or ``None`` when the value is not a
    decodable address. Hex input yields ``base58=None``.
    """
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not candidate:
        return None

    if candidate.startswith("T"):
        try:
            return {"base58": candidate, "hex": to_hex_address(candidate)}
        except AddressDecodeError:
            return None

    hex_value = candidate[2:] if candidate.startswith("0x") else candidate
    if HEX_ADDRESS_REGEX.fullmatch(hex_value):
        return {"base58": None, "hex": hex_value.lower()}
    return None


def parse_address_meta(address: object) -> Dict[str, object]:
    """Checksum-verify an address and describe the network its prefix implies."""
    if not isinstance(address, str):
        return {
            "base58Valid": False,
            "addressHex": None,
            "network": "unknown",
            "riskHint": "Address format is malformed.",
        }
    try:
        address_hex = to_hex_address(address)
    except AddressDecodeError:
        return {
            "base58Valid": False,
            "addressHex": None,
            "network": "unknown",
            "riskHint": "Base58 checksum verification failed.",
        }

    network = "TRON" if address_hex.startswith(TRON_ADDRESS_PREFIX) else "unknown"
    return {
        "base58Valid": True,
        "addressHex": address_hex,
        "network": network,
        "riskHint": "No obvious risk found." if network == "TRON" else "Unexpected network prefix.",
    }
