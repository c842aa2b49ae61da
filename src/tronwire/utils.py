from __future__ import annotations

import hashlib

from eth_hash.auto import keccak


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def double_sha256(data: bytes) -> bytes:
    return sha256(sha256(data))


def keccak256(data: bytes) -> bytes:
    """Compute legacy Keccak-256.

    NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    """
    return keccak(data)


def strip_hex_prefix(value: str) -> str:
    if value.startswith(("0x", "0X")):
        return value[2:]
    return value
