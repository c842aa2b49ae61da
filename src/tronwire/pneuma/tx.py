"""
Transaction Builder - Assemble contract requests and maintain transaction IDs.

The node builds unsigned transactions for us; this module prepares the
request bodies (addresses as 41-prefixed hex, payload from the ABI encoder)
and keeps ``txID`` consistent when a returned transaction is edited
locally, e.g. to raise its fee limit.

Signing is not handled here.
"""

from __future__ import annotations

import binascii
import json
import logging
import re
from typing import Any, Iterable, Optional, Union

from ..errors import DecodeError, ParseError, TransactionError
from ..sigil.address import TronAddress
from ..utils import sha256_hex, strip_hex_prefix
from .abi import ParamLike, load_params, pack

logger = logging.getLogger(__name__)

AddressLike = Union[str, bytes, TronAddress]

# Transaction.raw field number for fee_limit (int64, varint).
FEE_LIMIT_FIELD = 18

_TOKEN_ID_RE = re.compile(r"^[+-]?[0-9]+\Z")


def _parse_address(value: AddressLike, role: str) -> TronAddress:
    try:
        return TronAddress.parse(value)
    except DecodeError as exc:
        raise DecodeError(f"invalid {role} address: {exc}") from exc


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

def build_trigger_request(
    owner: AddressLike,
    contract: AddressLike,
    signature: str,
    params: Union[str, Iterable[ParamLike], None] = None,
    call_value: int = 0,
    token_id: Optional[str] = None,
    token_value: int = 0,
    strict: bool = False,
) -> dict[str, Any]:
    """
    Build a ``triggersmartcontract`` request body.

    Args:
        owner: Caller address
        contract: Contract address
        signature: Method signature, e.g. ``"transfer(address,uint256)"``
        params: JSON text or an already-parsed parameter list
        call_value: TRX (sun) sent with the call
        token_id: TRC-10 token ID (decimal string) sent with the call
        token_value: TRC-10 amount; ignored unless ``token_id`` is set
        strict: Reject out-of-range integers instead of truncating them

    Returns:
        JSON-ready request body with ``visible=false`` hex addresses

    Raises:
        DecodeError: Bad sender/contract address or parameter data
        ParseError: Non-numeric token ID
        TronwireError: Any other encoding failure from the ABI layer
    """
    owner_addr = _parse_address(owner, "sender")
    contract_addr = _parse_address(contract, "contract")

    if isinstance(params, str):
        params = load_params(params)

    data = pack(signature, params or [], strict=strict)
    logger.debug("Packed %s selector=%s (%d bytes)", signature, data[:4].hex(), len(data))

    body: dict[str, Any] = {
        "owner_address": owner_addr.to_hex(),
        "contract_address": contract_addr.to_hex(),
        "data": data.hex(),
        "call_value": call_value,
        "visible": False,
    }

    if token_id and token_value > 0:
        if not _TOKEN_ID_RE.match(token_id):
            raise ParseError(f"invalid token ID: {token_id}")
        body["call_token_value"] = token_value
        body["token_id"] = int(token_id)

    return body


def build_deploy_request(
    owner: AddressLike,
    name: str,
    abi: Any,
    bytecode: str,
    consume_user_resource_percent: int = 100,
    origin_energy_limit: int = 10_000_000,
    call_value: int = 0,
) -> dict[str, Any]:
    """
    Build a ``deploycontract`` request body.

    Args:
        owner: Deployer address (also the contract's origin address)
        name: Contract name
        abi: ABI as JSON text, a list of entries, or ``{"entrys": [...]}``
        bytecode: Creation bytecode as hex (``0x`` optional)
        consume_user_resource_percent: Share of energy paid by callers, 0..100
        origin_energy_limit: Energy cap the deployer covers per call, > 0

    Raises:
        ValueError: Percent or energy limit out of range
        DecodeError: Bad owner address or bytecode hex
    """
    owner_addr = _parse_address(owner, "sender")

    if not 0 <= consume_user_resource_percent <= 100:
        raise ValueError("consume_user_resource_percent should be between 0 and 100")
    if origin_energy_limit <= 0:
        raise ValueError("origin_energy_limit must be greater than 0")

    try:
        code = binascii.unhexlify(strip_hex_prefix(bytecode))
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"invalid bytecode: {exc}") from exc

    if isinstance(abi, dict):
        abi = abi.get("entrys", [])
    if not isinstance(abi, str):
        abi = json.dumps(abi, separators=(",", ":"))

    return {
        "owner_address": owner_addr.to_hex(),
        "name": name,
        "abi": abi,
        "bytecode": code.hex(),
        "call_value": call_value,
        "consume_user_resource_percent": consume_user_resource_percent,
        "origin_energy_limit": origin_energy_limit,
        "visible": False,
    }


# ---------------------------------------------------------------------------
# Transaction IDs
# ---------------------------------------------------------------------------

def transaction_id(raw_data_hex: str) -> str:
    """txID = SHA-256 of the serialized ``Transaction.raw`` message."""
    try:
        raw = bytes.fromhex(raw_data_hex)
    except ValueError as exc:
        raise DecodeError(f"invalid raw_data_hex: {exc}") from exc
    return sha256_hex(raw)


def update_hash(tx: dict[str, Any]) -> dict[str, Any]:
    """
    Recompute ``txID`` after ``raw_data_hex`` was modified locally.

    Accepts either a bare transaction or a response wrapping one under
    ``"transaction"``; the dict is updated in place and returned.
    """
    target = tx.get("transaction", tx)
    if "raw_data_hex" not in target:
        raise DecodeError("transaction has no raw_data_hex")
    target["txID"] = transaction_id(target["raw_data_hex"])
    return tx


def _read_varint(buf: bytes, pos: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(buf):
            raise DecodeError("truncated varint in raw_data")
        byte = buf[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7


def _write_varint(value: int) -> bytes:
    # int64 fields encode negatives as 10-byte two's complement
    value &= (1 << 64) - 1
    out = bytearray()
    while True:
        bits = value & 0x7F
        value >>= 7
        if value:
            out.append(bits | 0x80)
        else:
            out.append(bits)
            return bytes(out)


def _split_fields(buf: bytes) -> list[tuple[int, bytes]]:
    """Split a protobuf message into (field_number, encoded_field) chunks."""
    fields = []
    pos = 0
    while pos < len(buf):
        start = pos
        key, pos = _read_varint(buf, pos)
        number, wire_type = key >> 3, key & 0x7

        if wire_type == 0:
            _, pos = _read_varint(buf, pos)
        elif wire_type == 1:
            pos += 8
        elif wire_type == 2:
            length, pos = _read_varint(buf, pos)
            pos += length
        elif wire_type == 5:
            pos += 4
        else:
            raise DecodeError(f"unsupported wire type {wire_type} in raw_data")

        if pos > len(buf):
            raise DecodeError("truncated field in raw_data")
        fields.append((number, buf[start:pos]))
    return fields


def _with_varint_field(raw: bytes, number: int, value: int) -> bytes:
    fields = [f for f in _split_fields(raw) if f[0] != number]
    if value:
        encoded = _write_varint(number << 3) + _write_varint(value)
        # keep fields ordered by number, as the node serializes them
        at = next((i for i, (n, _) in enumerate(fields) if n > number), len(fields))
        fields.insert(at, (number, encoded))
    return b"".join(chunk for _, chunk in fields)


def set_fee_limit(tx: dict[str, Any], fee_limit: int) -> dict[str, Any]:
    """
    Set the fee limit on a node-built transaction and refresh its ``txID``.

    Rewrites field 18 of ``raw_data_hex``, mirrors the value into
    ``raw_data`` and recomputes the hash. Updates ``tx`` in place.
    """
    if fee_limit < 0:
        raise ValueError("fee_limit must not be negative")

    target = tx.get("transaction", tx)
    if "raw_data_hex" not in target:
        raise DecodeError("transaction has no raw_data_hex")

    try:
        raw = bytes.fromhex(target["raw_data_hex"])
    except ValueError as exc:
        raise DecodeError(f"invalid raw_data_hex: {exc}") from exc
    target["raw_data_hex"] = _with_varint_field(raw, FEE_LIMIT_FIELD, fee_limit).hex()

    raw_data = target.get("raw_data")
    if isinstance(raw_data, dict):
        if fee_limit:
            raw_data["fee_limit"] = fee_limit
        else:
            raw_data.pop("fee_limit", None)

    update_hash(tx)
    logger.debug("Set fee_limit=%d, txID=%s", fee_limit, target["txID"])
    return tx


# ---------------------------------------------------------------------------
# Node results
# ---------------------------------------------------------------------------

def _decode_message(message: Any) -> str:
    if not isinstance(message, str):
        return str(message)
    try:
        return bytes.fromhex(message).decode("utf-8")
    except ValueError:
        return message


def check_result(response: Any) -> Any:
    """
    Raise ``TransactionError`` if a node response reports failure.

    Handles the three shapes the node uses: ``{"Error": ...}``,
    ``{"result": {"code": ..., "message": hex}}`` and a top-level
    ``{"code": ..., "message": hex}`` (broadcast).
    """
    if not isinstance(response, dict) or not response:
        raise TransactionError("bad transaction: empty response")

    if "Error" in response:
        raise TransactionError(str(response["Error"]))

    result = response.get("result")
    status = result if isinstance(result, dict) else response

    code = status.get("code")
    if code is not None and code != "SUCCESS":
        raise TransactionError(
            f"{code}: {_decode_message(status.get('message', ''))}", code=str(code)
        )

    return response
