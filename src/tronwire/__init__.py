__all__ = [
    # Config
    "ClientConfig",
    "load_config",
    # Errors
    "TronwireError",
    "DecodeError",
    "ParseError",
    "InvalidTypeError",
    "SizeMismatchError",
    "UnsupportedTypeError",
    "EncodingError",
    "RangeOverflowError",
    "FormatError",
    "RpcError",
    "TransactionError",
    # Addresses
    "TronAddress",
    "decode_check",
    "encode_check",
    # ABI
    "Kind",
    "TypeDescriptor",
    "parse_type",
    "load_params",
    "encode_params",
    "method_selector",
    "pack",
    "decode_result",
    "signature_from_abi",
    # Transactions
    "build_trigger_request",
    "build_deploy_request",
    "update_hash",
    "set_fee_limit",
    # Client
    "TronClient",
]

from .config import ClientConfig, load_config
from .errors import (
    DecodeError,
    EncodingError,
    FormatError,
    InvalidTypeError,
    ParseError,
    RangeOverflowError,
    RpcError,
    SizeMismatchError,
    TransactionError,
    TronwireError,
    UnsupportedTypeError,
)
from .sigil.address import TronAddress
from .sigil.base58 import decode_check, encode_check
from .pneuma.types import Kind, TypeDescriptor, parse_type
from .pneuma.abi import (
    decode_result,
    encode_params,
    load_params,
    method_selector,
    pack,
    signature_from_abi,
)
from .pneuma.tx import build_deploy_request, build_trigger_request, set_fee_limit, update_hash
from .pneuma.rpc import TronClient
