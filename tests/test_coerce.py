"""Unit tests for numeric, byte-field and address coercion."""

from __future__ import annotations

import base64

import pytest

from tronwire.errors import (
    DecodeError,
    ParseError,
    RangeOverflowError,
    SizeMismatchError,
    UnsupportedTypeError,
)
from tronwire.pneuma.coerce import (
    coerce_address,
    coerce_bytes,
    coerce_int,
    parse_big_int,
    truncate_int,
)
from tronwire.pneuma.types import parse_type


class TestCoerceInt:
    """Tests for integer coercion."""

    def test_native_int_in_range(self) -> None:
        assert coerce_int(parse_type("uint8"), 10) == 10

    def test_native_int_truncated(self) -> None:
        assert coerce_int(parse_type("uint8"), 256) == 0
        assert coerce_int(parse_type("uint8"), 257) == 1
        assert coerce_int(parse_type("uint16"), 0x12345) == 0x2345

    def test_signed_truncation_is_twos_complement(self) -> None:
        assert coerce_int(parse_type("int8"), 128) == -128
        assert coerce_int(parse_type("int8"), 255) == -1
        assert coerce_int(parse_type("int8"), -1) == -1

    def test_negative_into_unsigned_wraps(self) -> None:
        assert coerce_int(parse_type("uint8"), -1) == 255

    def test_wide_native_int_passes_through(self) -> None:
        value = 500000000000000000000
        assert coerce_int(parse_type("uint256"), value) == value

    def test_narrow_decimal_string(self) -> None:
        assert coerce_int(parse_type("uint8"), "10") == 10
        assert coerce_int(parse_type("uint8"), "256") == 0
        assert coerce_int(parse_type("int32"), "-42") == -42

    def test_narrow_string_rejects_hex(self) -> None:
        with pytest.raises(ParseError):
            coerce_int(parse_type("uint64"), "0x10")

    def test_narrow_uint_rejects_sign(self) -> None:
        with pytest.raises(ParseError):
            coerce_int(parse_type("uint64"), "-1")
        with pytest.raises(ParseError):
            coerce_int(parse_type("uint64"), "+1")

    def test_narrow_string_range(self) -> None:
        with pytest.raises(ParseError):
            coerce_int(parse_type("uint64"), "18446744073709551616")
        with pytest.raises(ParseError):
            coerce_int(parse_type("int64"), "9223372036854775808")
        assert coerce_int(parse_type("uint64"), "18446744073709551615") == (1 << 64) - 1

    def test_wide_string_decimal_and_hex(self) -> None:
        desc = parse_type("uint256")
        assert coerce_int(desc, "123456") == 123456
        assert coerce_int(desc, "0x1E240") == 123456

    def test_wide_string_malformed(self) -> None:
        for text in ("12a", "0xzz", "", "1.5", "0x"):
            with pytest.raises(ParseError):
                coerce_int(parse_type("uint256"), text)

    @pytest.mark.parametrize("text", ["123\n", "12 ", "\u0661\u0662"])
    def test_narrow_string_must_be_plain_digits(self, text: str) -> None:
        with pytest.raises(ParseError):
            coerce_int(parse_type("uint64"), text)

    @pytest.mark.parametrize("text", ["0x1f\n", "31\n"])
    def test_wide_string_rejects_trailing_newline(self, text: str) -> None:
        with pytest.raises(ParseError):
            coerce_int(parse_type("uint256"), text)

    def test_rejects_unsupported_types(self) -> None:
        for value in (True, 1.5, None, [1], b"\x01"):
            with pytest.raises(UnsupportedTypeError):
                coerce_int(parse_type("uint256"), value)

    def test_strict_rejects_overflow(self) -> None:
        with pytest.raises(RangeOverflowError):
            coerce_int(parse_type("uint8"), 256, strict=True)
        with pytest.raises(RangeOverflowError):
            coerce_int(parse_type("int8"), "-129", strict=True)
        with pytest.raises(RangeOverflowError):
            coerce_int(parse_type("uint256"), -1, strict=True)
        assert coerce_int(parse_type("uint8"), 255, strict=True) == 255


class TestHelpers:
    """Tests for the integer helpers."""

    def test_truncate_int(self) -> None:
        assert truncate_int(0x1FF, 8, signed=False) == 0xFF
        assert truncate_int(0x1FF, 8, signed=True) == -1

    def test_parse_big_int(self) -> None:
        assert parse_big_int("100000000000000000000") == 10**20
        assert parse_big_int("-5") == -5
        assert parse_big_int("0xff") == 255


class TestCoerceBytes:
    """Tests for hex / base64 byte-field coercion."""

    def test_hex_fixed(self) -> None:
        assert coerce_bytes(parse_type("bytes4"), "deadbeef") == bytes.fromhex("deadbeef")

    def test_hex_with_prefix(self) -> None:
        assert coerce_bytes(parse_type("bytes2"), "0xbeef") == bytes.fromhex("beef")

    def test_base64_fallback(self) -> None:
        encoded = base64.b64encode(bytes.fromhex("deadbeef")).decode()
        assert coerce_bytes(parse_type("bytes4"), encoded) == bytes.fromhex("deadbeef")

    def test_variable_bytes_any_length(self) -> None:
        assert coerce_bytes(parse_type("bytes"), "010203") == b"\x01\x02\x03"
        assert coerce_bytes(parse_type("bytes"), "") == b""

    @pytest.mark.parametrize("size", [3, 4, 20, 31])
    def test_every_fixed_size_supported(self, size: int) -> None:
        data = bytes(range(size))
        assert coerce_bytes(parse_type(f"bytes{size}"), data.hex()) == data

    def test_size_mismatch(self) -> None:
        with pytest.raises(SizeMismatchError, match="invalid size: 4/2"):
            coerce_bytes(parse_type("bytes4"), "dead")

    def test_odd_hex_is_not_truncated(self) -> None:
        with pytest.raises(DecodeError):
            coerce_bytes(parse_type("bytes32"), "0" * 65)

    def test_neither_hex_nor_base64(self) -> None:
        with pytest.raises(DecodeError):
            coerce_bytes(parse_type("bytes"), "not bytes!")

    def test_raw_bytes_pass_through(self) -> None:
        assert coerce_bytes(parse_type("bytes"), bytearray(b"\x01")) == b"\x01"
        assert coerce_bytes(parse_type("bytes4"), b"\x01\x02\x03\x04") == b"\x01\x02\x03\x04"

    def test_raw_bytes_fixed_size_enforced(self) -> None:
        with pytest.raises(SizeMismatchError, match="invalid size: 32/2"):
            coerce_bytes(parse_type("bytes32"), b"\x01\x02")
        with pytest.raises(SizeMismatchError):
            coerce_bytes(parse_type("bytes4"), bytearray(5))


class TestCoerceAddress:
    """Tests for address coercion."""

    def test_base58(self) -> None:
        raw = coerce_address("TRGhNNfnmgLegT4zHNjEqDSADjgmnHvubJ")
        assert raw.hex() == "a7d8a35b260395c14aa456297662092ba3b76fc0"

    def test_raw_bytes(self) -> None:
        raw = bytes(range(20))
        assert coerce_address(raw) == raw
        assert coerce_address(b"\x41" + raw) == raw

    def test_bad_base58(self) -> None:
        with pytest.raises(DecodeError, match="invalid base58 address"):
            coerce_address("TRGhNNfnmgLegT4zHNjEqDSADjgmnHvubK")

    def test_unsupported_type(self) -> None:
        with pytest.raises(UnsupportedTypeError, match="invalid address type"):
            coerce_address(12345)
