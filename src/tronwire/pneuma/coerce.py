"""
Value coercion for ABI parameters.

Turns loosely-typed, JSON-originated values into the exact Python values
``eth_abi`` expects for a resolved ``TypeDescriptor``:

- integers: native ints, decimal strings, ``0x`` hex strings (wide types)
- byte fields: hex or base64 text
- addresses: Base58Check text or raw bytes
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any

from ..errors import (
    DecodeError,
    ParseError,
    RangeOverflowError,
    SizeMismatchError,
    UnsupportedTypeError,
)
from ..sigil.address import TronAddress
from ..utils import strip_hex_prefix
from .types import Kind, TypeDescriptor

# Widths up to this many bits follow fixed-width machine-integer rules:
# base-10 strings only, silent truncation.
NATIVE_INT_BITS = 64

_DEC_SIGNED_RE = re.compile(r"^[+-]?[0-9]+\Z")
_DEC_UNSIGNED_RE = re.compile(r"^[0-9]+\Z")
_HEX_RE = re.compile(r"^[+-]?[0-9a-fA-F]+\Z")

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_UINT64_MAX = (1 << 64) - 1


# ---------------------------------------------------------------------------
# Integers
# ---------------------------------------------------------------------------

def int_bounds(desc: TypeDescriptor) -> tuple[int, int]:
    """Inclusive (min, max) for an INT/UINT descriptor."""
    if desc.signed:
        return -(1 << (desc.size - 1)), (1 << (desc.size - 1)) - 1
    return 0, (1 << desc.size) - 1


def truncate_int(value: int, bits: int, signed: bool) -> int:
    """Keep the low ``bits`` bits, reading them back as two's complement if signed."""
    value &= (1 << bits) - 1
    if signed and value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def parse_big_int(text: str) -> int:
    """
    Parse an arbitrary-precision integer.

    ``0x``-prefixed text is base 16, anything else base 10. A leading sign
    is allowed.

    Raises:
        ParseError: If the text is not a valid integer in that base.
    """
    if text.startswith("0x"):
        digits, base = text[2:], 16
        if not _HEX_RE.match(digits):
            raise ParseError(f"invalid hexadecimal number: {text}")
    else:
        digits, base = text, 10
        if not _DEC_SIGNED_RE.match(digits):
            raise ParseError(f"invalid decimal number: {text}")

    try:
        return int(digits, base)
    except ValueError as exc:  # digit-count limit on huge decimals
        raise ParseError(f"failed to parse big integer from: {text}") from exc


def _parse_native_int(desc: TypeDescriptor, text: str) -> int:
    # int64/uint64 fit in 20 digits
    if len(text.lstrip("+-").lstrip("0")) > 20:
        raise ParseError(f"failed to parse {desc.kind.value}: value out of range {text!r}")

    if desc.signed:
        if not _DEC_SIGNED_RE.match(text):
            raise ParseError(f"failed to parse int: invalid syntax {text!r}")
        value = int(text, 10)
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ParseError(f"failed to parse int: value out of range {text!r}")
        return value

    if not _DEC_UNSIGNED_RE.match(text):
        raise ParseError(f"failed to parse uint: invalid syntax {text!r}")
    value = int(text, 10)
    if value > _UINT64_MAX:
        raise ParseError(f"failed to parse uint: value out of range {text!r}")
    return value


def coerce_int(desc: TypeDescriptor, value: Any, strict: bool = False) -> int:
    """
    Coerce ``value`` to an integer for an INT/UINT descriptor.

    Widths up to 64 bits are truncated to the descriptor width (two's
    complement for signed types). Wider types keep the full value and leave
    range validation to the packer.

    Args:
        desc: Resolved INT or UINT descriptor
        value: Native int or numeric string
        strict: Raise instead of silently truncating out-of-range values

    Raises:
        ParseError: Malformed numeric string
        UnsupportedTypeError: ``value`` is not an int or a string
        RangeOverflowError: ``strict`` and the value does not fit
    """
    # bool is an int subclass; True is not a number here.
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise UnsupportedTypeError(
            f"unsupported type for integer conversion: {type(value).__name__}"
        )

    if isinstance(value, str):
        if desc.size <= NATIVE_INT_BITS:
            value = _parse_native_int(desc, value)
        else:
            value = parse_big_int(value)

    if strict:
        low, high = int_bounds(desc)
        if not low <= value <= high:
            raise RangeOverflowError(f"value {value} out of range for {desc}")

    if desc.size <= NATIVE_INT_BITS:
        return truncate_int(value, desc.size, desc.signed)
    return value


# ---------------------------------------------------------------------------
# Byte fields
# ---------------------------------------------------------------------------

def decode_text_bytes(text: str) -> bytes:
    """
    Decode hex (optionally ``0x``-prefixed), falling back to padded base64.

    Raises:
        DecodeError: If the text is neither.
    """
    try:
        return binascii.unhexlify(strip_hex_prefix(text))
    except (binascii.Error, ValueError):
        pass

    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"value is neither hex nor base64: {text!r}") from exc


def coerce_bytes(desc: TypeDescriptor, value: Any) -> Any:
    """
    Coerce text to a byte field for a BYTES/FIXED_BYTES descriptor.

    Raw bytes skip decoding but still get the fixed-size check; other
    non-text values are returned unchanged for the packer to reject.

    Raises:
        DecodeError: Text is neither hex nor base64
        SizeMismatchError: Decoded or raw length differs from a fixed size
    """
    if isinstance(value, str):
        data = decode_text_bytes(value)
    elif isinstance(value, (bytes, bytearray)):
        data = bytes(value)
    else:
        return value

    if desc.kind is Kind.BYTES or desc.size == 0:
        return data

    if len(data) != desc.size:
        raise SizeMismatchError(f"invalid size: {desc.size}/{len(data)}")
    return data


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

def coerce_address(value: Any) -> bytes:
    """
    Coerce an address to the 20 raw bytes used inside contract calls.

    Raises:
        DecodeError: Invalid Base58Check text or bad raw length/prefix
        UnsupportedTypeError: ``value`` is not text, bytes or a TronAddress
    """
    if isinstance(value, TronAddress):
        return value.raw
    if isinstance(value, (bytes, bytearray)):
        return TronAddress.from_bytes(bytes(value)).raw
    if not isinstance(value, str):
        raise UnsupportedTypeError(f"invalid address type: {type(value).__name__}")

    try:
        return TronAddress.from_base58(value).raw
    except DecodeError as exc:
        raise DecodeError(f"invalid base58 address {value}: {exc}") from exc
