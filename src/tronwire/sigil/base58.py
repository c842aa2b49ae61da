"""
Base58 / Base58Check codec for TRON addresses.

Textual address form:

    Base58Check(prefix || raw20 || checksum4)

where ``checksum4`` is the first 4 bytes of SHA256(SHA256(prefix || raw20)).
The alphabet is the Bitcoin one (no 0, O, I, l).
"""

from __future__ import annotations

from ..errors import DecodeError
from ..utils import double_sha256

ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

ADDRESS_LENGTH = 20
CHECKSUM_LENGTH = 4
PREFIX_MAINNET = 0x41

# prefix + address + checksum
ENCODED_ADDRESS_LENGTH = 1 + ADDRESS_LENGTH + CHECKSUM_LENGTH

_INDEX = {char: i for i, char in enumerate(ALPHABET)}


def encode(raw: bytes) -> str:
    """Base58-encode ``raw`` without a checksum."""
    zeros = len(raw) - len(raw.lstrip(b"\x00"))
    num = int.from_bytes(raw, "big")

    digits = []
    while num > 0:
        num, rem = divmod(num, 58)
        digits.append(ALPHABET[rem])

    return ALPHABET[0] * zeros + "".join(reversed(digits))


def encode_check(raw: bytes) -> str:
    """Append a 4-byte double-SHA256 checksum to ``raw`` and base58-encode it."""
    return encode(raw + double_sha256(raw)[:CHECKSUM_LENGTH])


def decode(text: str) -> bytes:
    """
    Decode a base58 string.

    Raises:
        DecodeError: If the input is empty or contains a character outside
            the alphabet.
    """
    num = 0
    for char in text:
        index = _INDEX.get(char)
        if index is None:
            raise DecodeError(f"decode error: invalid base58 character {char!r}")
        num = num * 58 + index

    zeros = len(text) - len(text.lstrip(ALPHABET[0]))
    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    decoded = b"\x00" * zeros + body

    if not decoded:
        raise DecodeError("decode error: empty result")
    return decoded


def decode_check(text: str) -> bytes:
    """
    Decode a Base58Check TRON address and verify it.

    Args:
        text: Address text, e.g. ``"TRGhNNfnmgLegT4zHNjEqDSADjgmnHvubJ"``

    Returns:
        The 21-byte ``prefix || address`` payload, checksum removed.

    Raises:
        DecodeError: On bad characters, wrong length, wrong prefix or a
            checksum mismatch.
    """
    decoded = decode(text)

    if len(decoded) < CHECKSUM_LENGTH:
        raise DecodeError("b58 check error: insufficient length")

    if len(decoded) != ENCODED_ADDRESS_LENGTH:
        raise DecodeError(f"invalid address length: {len(decoded)}")

    if decoded[0] != PREFIX_MAINNET:
        raise DecodeError("invalid prefix")

    data, checksum = decoded[:-CHECKSUM_LENGTH], decoded[-CHECKSUM_LENGTH:]
    if double_sha256(data)[:CHECKSUM_LENGTH] != checksum:
        raise DecodeError("b58 check error: checksum mismatch")

    return data
