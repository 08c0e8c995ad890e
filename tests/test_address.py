import pytest

from tron_mcp.tron_api.address import (
    AddressDecodeError,
    base58check_decode,
    normalize_address_like,
    parse_address_meta,
    to_hex_address,
)

USDT = "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t"
USDT_HEX = "41a614f803b6fd780986a42c78ec9c7f77e6ded13c"
BAD_CHECKSUM = "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6u"


def test_to_hex_address_known_contract():
    assert to_hex_address(USDT) == USDT_HEX


def test_decode_rejects_bad_checksum():
    with pytest.raises(AddressDecodeError):
        base58check_decode(BAD_CHECKSUM)


def test_decode_rejects_non_base58_characters():
    with pytest.raises(AddressDecodeError):
        base58check_decode("T0OIl")


def test_decode_rejects_short_input():
    with pytest.raises(AddressDecodeError):
        base58check_decode("1")


def test_normalize_address_like_accepts_base58_and_hex():
    assert normalize_address_like(USDT) == {"base58": USDT, "hex": USDT_HEX}
    assert normalize_address_like("0x" + USDT_HEX.upper()) == {"base58": None, "hex": USDT_HEX}
    assert normalize_address_like(BAD_CHECKSUM) is None
    assert normalize_address_like("   ") is None
    assert normalize_address_like(42) is None


def test_parse_address_meta_valid():
    meta = parse_address_meta(USDT)
    assert meta["base58Valid"] is True
    assert meta["addressHex"] == USDT_HEX
    assert meta["network"] == "TRON"


def test_parse_address_meta_invalid():
    meta = parse_address_meta(BAD_CHECKSUM)
    assert meta["base58Valid"] is False
    assert meta["addressHex"] is None
    assert meta["network"] == "unknown"
    assert parse_address_meta(None)["base58Valid"] is False
