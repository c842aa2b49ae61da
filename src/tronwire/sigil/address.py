"""
TRON address value type.

The node's HTTP API takes addresses either as Base58Check text
(``visible=true``) or as 21-byte hex with the ``41`` prefix
(``visible=false``). Contract calls embed the bare 20 bytes.
"""

from __future__ import annotations

import binascii
from dataclasses import dataclass

from ..errors import DecodeError
from ..utils import strip_hex_prefix
from .base58 import ADDRESS_LENGTH, PREFIX_MAINNET, decode_check, encode_check


@dataclass(frozen=True)
class TronAddress:
    """A 20-byte TRON account or contract address."""

    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != ADDRESS_LENGTH:
            raise DecodeError(
                f"invalid address length: expected {ADDRESS_LENGTH}, got {len(self.raw)}"
            )

    @classmethod
    def from_base58(cls, text: str) -> "TronAddress":
        return cls(decode_check(text)[1:])

    @classmethod
    def from_hex(cls, value: str) -> "TronAddress":
        """Parse 20-byte hex or 21-byte ``41``-prefixed hex."""
        try:
            raw = binascii.unhexlify(strip_hex_prefix(value))
        except (binascii.Error, ValueError) as exc:
            raise DecodeError(f"invalid hex address {value}: {exc}") from exc
        return cls.from_bytes(raw)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "TronAddress":
        if len(raw) == ADDRESS_LENGTH + 1:
            if raw[0] != PREFIX_MAINNET:
                raise DecodeError("invalid prefix")
            raw = raw[1:]
        return cls(bytes(raw))

    @classmethod
    def parse(cls, value: "str | bytes | TronAddress") -> "TronAddress":
        """Accept Base58Check text, hex text, raw bytes, or an address."""
        if isinstance(value, TronAddress):
            return value
        if isinstance(value, (bytes, bytearray)):
            return cls.from_bytes(bytes(value))
        if not isinstance(value, str):
            raise DecodeError(f"invalid address type: {type(value).__name__}")
        if value.startswith("T"):
            return cls.from_base58(value)
        return cls.from_hex(value)

    def to_bytes21(self) -> bytes:
        return bytes([PREFIX_MAINNET]) + self.raw

    def to_base58(self) -> str:
        return encode_check(self.to_bytes21())

    def to_hex(self) -> str:
        return self.to_bytes21().hex()

    def __str__(self) -> str:
        return self.to_base58()
