"""
ABI Encoder - Packs JSON-described parameters into contract-call payloads.

Parameters arrive as an ordered list of single-key objects mapping an ABI
type name to a loosely-typed value::

    [{"uint256": "100"}, {"address": "TRGhNNfnmgLegT4zHNjEqDSADjgmnHvubJ"}]

Each value is coerced to what its type needs (Base58Check addresses to raw
20 bytes, numeric strings to ints, hex/base64 text to bytes) and the whole
list is packed with eth-abi using the standard head/tail layout.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Sequence, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError as EthAbiDecodingError
from eth_abi.exceptions import EncodingError as EthAbiEncodingError

from ..errors import (
    DecodeError,
    EncodingError,
    FormatError,
    SizeMismatchError,
    TronwireError,
)
from ..sigil.address import TronAddress
from ..utils import keccak256, strip_hex_prefix
from .coerce import coerce_address, coerce_bytes, coerce_int
from .types import Kind, TypeDescriptor, parse_type

Param = Mapping[str, Any]
ParamLike = Union[Param, Sequence[Any]]

SELECTOR_LENGTH = 4


# ---------------------------------------------------------------------------
# Parameter loading
# ---------------------------------------------------------------------------

def load_params(text: str) -> list[dict[str, Any]]:
    """
    Parse a JSON array of single-key ``{type: value}`` objects.

    Args:
        text: JSON text; empty text means "no parameters"

    Returns:
        The parameter list, order preserved

    Raises:
        FormatError: Malformed JSON, a non-array document, or an entry that
            is not an object with exactly one key
    """
    if not text or not text.strip():
        return []

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError(f"failed to unmarshal JSON: {exc}") from exc

    if not isinstance(data, list):
        raise FormatError(f"expected a JSON array of params, got {type(data).__name__}")

    for entry in data:
        if not isinstance(entry, dict) or len(entry) != 1:
            raise FormatError(f"invalid param format: {entry!r}")

    return data


def _split_param(entry: ParamLike) -> tuple[str, Any]:
    if isinstance(entry, Mapping):
        if len(entry) != 1:
            raise FormatError(f"invalid param format: {dict(entry)!r}")
        return next(iter(entry.items()))

    if isinstance(entry, (tuple, list)) and len(entry) == 2 and isinstance(entry[0], str):
        return entry[0], entry[1]

    raise FormatError(f"invalid param format: {entry!r}")


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _coerce_array(desc: TypeDescriptor, value: Any, strict: bool) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        raise EncodingError(f"expected {desc} array but got {type(value).__name__}")

    if desc.kind is Kind.FIXED_ARRAY and len(value) != desc.length:
        raise SizeMismatchError(
            f"invalid array size, expected {desc.length} but got {len(value)}"
        )

    return [coerce_value(desc.elem, item, strict=strict) for item in value]


def coerce_value(desc: TypeDescriptor, value: Any, strict: bool = False) -> Any:
    """Coerce one value, recursing into arrays, to what eth-abi expects for ``desc``."""
    if desc.is_array:
        return _coerce_array(desc, value, strict)
    if desc.kind is Kind.ADDRESS:
        return coerce_address(value)
    if desc.is_integer:
        return coerce_int(desc, value, strict=strict)
    if desc.kind in (Kind.BYTES, Kind.FIXED_BYTES):
        return coerce_bytes(desc, value)
    # bool / string go to the packer as-is
    return value


def encode_params(params: Iterable[ParamLike], strict: bool = False) -> bytes:
    """
    ABI-encode an ordered parameter list.

    Args:
        params: Single-key ``{type: value}`` mappings (or ``(type, value)``
            pairs), in positional order
        strict: Reject out-of-range integers instead of truncating them

    Returns:
        Packed parameters (no selector)

    Raises:
        FormatError, InvalidTypeError, DecodeError, ParseError,
        SizeMismatchError, UnsupportedTypeError, EncodingError: The first
            failure aborts the whole encode; no partial output is returned.
    """
    types: list[str] = []
    values: list[Any] = []

    for index, entry in enumerate(params):
        type_name, value = _split_param(entry)
        try:
            desc = parse_type(type_name)
            values.append(coerce_value(desc, value, strict=strict))
        except TronwireError as exc:
            raise type(exc)(f"param {index} ({type_name}): {exc}") from exc
        types.append(desc.canonical)

    if not types:
        return b""

    try:
        return encode(types, values)
    except (EthAbiEncodingError, TypeError, ValueError) as exc:
        raise EncodingError(f"failed to pack params {types}: {exc}") from exc


def method_selector(signature: str) -> bytes:
    """First 4 bytes of the legacy Keccak-256 hash of a method signature."""
    return keccak256(signature.encode("utf-8"))[:SELECTOR_LENGTH]


def pack(signature: str, params: Iterable[ParamLike], strict: bool = False) -> bytes:
    """
    Build a full contract-call payload.

    Args:
        signature: Canonical method signature, e.g. ``"transfer(address,uint256)"``
        params: Parameter list as accepted by ``encode_params``

    Returns:
        ``selector || encoded params``
    """
    return method_selector(signature) + encode_params(params, strict=strict)


def signature_from_abi(abi: Any, function_name: str) -> str:
    """
    Build a method signature from a contract ABI.

    Accepts both the node's ``{"entrys": [...]}`` form (as returned by
    ``getcontract``) and a plain list of entries.

    Raises:
        ValueError: If the function is not in the ABI
        InvalidTypeError: If an input type cannot be resolved
    """
    entries = abi.get("entrys", []) if isinstance(abi, Mapping) else abi

    for entry in entries:
        if str(entry.get("type", "")).lower() == "function" and entry.get("name") == function_name:
            input_types = [parse_type(inp["type"]).canonical for inp in entry.get("inputs", [])]
            return f"{function_name}({','.join(input_types)})"

    raise ValueError(f"Function {function_name} not found in ABI")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _present(desc: TypeDescriptor, value: Any) -> Any:
    if desc.is_array:
        return tuple(_present(desc.elem, item) for item in value)
    if desc.kind is Kind.ADDRESS:
        return TronAddress.from_hex(value).to_base58()
    return value


def decode_result(types: Sequence[str], data: Union[bytes, str]) -> tuple[Any, ...]:
    """
    Decode a constant-call return blob.

    Addresses come back as Base58Check text rather than 0x-hex.

    Args:
        types: Output ABI types, in order
        data: Raw bytes or hex text (``0x`` optional)

    Raises:
        InvalidTypeError: Unknown output type
        DecodeError: Data is not valid hex or does not match the types
    """
    descs = [parse_type(name) for name in types]

    if isinstance(data, str):
        try:
            data = bytes.fromhex(strip_hex_prefix(data))
        except ValueError as exc:
            raise DecodeError(f"invalid hex result: {exc}") from exc

    try:
        decoded = decode([d.canonical for d in descs], data)
    except (EthAbiDecodingError, ValueError) as exc:
        raise DecodeError(f"failed to decode result as {list(types)}: {exc}") from exc

    return tuple(_present(desc, value) for desc, value in zip(descs, decoded))
