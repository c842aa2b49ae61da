"""
Error taxonomy for tronwire.

Encoding-side errors derive from ``TronwireError`` (a ``ValueError``): they
always mean the caller handed us something we cannot turn into a valid
payload. Transport-side errors derive from ``RpcError`` (a ``RuntimeError``).
"""

from __future__ import annotations


class TronwireError(ValueError):
    pass


class DecodeError(TronwireError):
    """Malformed base-58 / hex / base64 input, or a bad Base58Check address."""


class ParseError(TronwireError):
    """Numeric string not parsable under the requested base or width."""


class InvalidTypeError(TronwireError):
    """Unrecognized or malformed ABI type name."""


class SizeMismatchError(TronwireError):
    """Fixed-size array or byte field received data of the wrong length."""


class UnsupportedTypeError(TronwireError):
    """A value's Python type has no coercion for the requested ABI type."""


class EncodingError(TronwireError):
    """Structural mismatch between a value and its resolved ABI type."""


class RangeOverflowError(EncodingError):
    """Integer outside the range of its ABI type (strict mode only)."""


class FormatError(TronwireError):
    """Parameter list is not a JSON array of single-key objects."""


class RpcError(RuntimeError):
    """HTTP or node-level failure talking to the full node."""


class TransactionError(RpcError):
    """The node refused to build or broadcast a transaction."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code
