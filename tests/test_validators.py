import pytest

from tron_mcp.tools import formatting, validators


def test_address_validation():
    assert validators.is_valid_tron_address("TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t")
    assert not validators.is_valid_tron_address("invalid")
    assert not validators.is_valid_tron_address("TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj0t")  # '0' not base58
    assert not validators.is_valid_tron_address(None)


def test_txid_validation():
    assert validators.is_valid_txid("AbCd" * 16)
    assert not validators.is_valid_txid("ab" * 31)
    assert not validators.is_valid_txid("a" * 63)
    assert not validators.is_valid_txid("a" * 65)
    assert not validators.is_valid_txid("g" * 64)
    assert not validators.is_valid_txid("zz" * 32)


def test_normalize_hex():
    assert validators.normalize_hex("0xABCD") == "abcd"
    assert validators.normalize_hex("abc") is None
    assert validators.normalize_hex("0x") is None
    assert validators.normalize_hex("xyz1") is None


def test_parse_positive_number():
    assert validators.parse_positive_number("2.5") == 2.5
    assert validators.parse_positive_number(0) is None
    assert validators.parse_positive_number(True) is None
    assert validators.parse_positive_number(float("nan")) is None
    assert validators.parse_positive_number(10**400) is None
    assert validators.parse_positive_number("1e400") is None


def test_parse_bounded_int():
    assert validators.parse_bounded_int(4.0, minimum=2, maximum=50) == 4
    assert validators.parse_bounded_int(1, minimum=2, maximum=50) is None
    assert validators.parse_bounded_int("4", minimum=2, maximum=50) is None
    assert validators.parse_bounded_int(False, minimum=0, maximum=5) is None


@pytest.mark.parametrize(
    "raw,expected",
    [
        (1234500, "1.2345"),
        ("1000000", "1"),
        (0, "0"),
        (-1500000, "-1.5"),
        (1, "0.000001"),
        ("12.5", "12.5"),
        ("junk", "0"),
        (None, "0"),
        (123456789012345678901234567890, "123456789012345678901234.56789"),
    ],
)
def test_format_token_amount(raw, expected):
    assert formatting.format_token_amount(raw, 6) == expected


def test_to_fixed2():
    assert formatting.to_fixed2("1.2345") == "1.23"
    assert formatting.to_fixed2("7") == "7.00"
    assert formatting.to_fixed2("nope") == "0.00"


def test_hex_to_int_string():
    assert formatting.hex_to_int_string("0f4240") == "1000000"
    assert formatting.hex_to_int_string("") == "0"
    assert formatting.hex_to_int_string("xyz") == "0"


def test_iso_from_ms():
    assert formatting.iso_from_ms(1_700_000_000_000) == "2023-11-14T22:13:20.000Z"
    assert formatting.iso_from_ms(None) is None
    assert formatting.iso_from_ms(True) is None
