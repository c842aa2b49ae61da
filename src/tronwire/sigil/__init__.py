"""
Sigil - Address primitives for TRON.

Base58Check codec and the ``TronAddress`` value type.
"""

from .address import TronAddress
from .base58 import (
    ADDRESS_LENGTH,
    PREFIX_MAINNET,
    decode,
    decode_check,
    encode,
    encode_check,
)

__all__ = [
    "ADDRESS_LENGTH",
    "PREFIX_MAINNET",
    "TronAddress",
    "decode",
    "decode_check",
    "encode",
    "encode_check",
]
