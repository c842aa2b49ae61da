"""
ABI type descriptors.

Parses type names such as ``"uint256"``, ``"address[2]"``, ``"bytes32"``
or ``"uint8[2][]"`` into an immutable ``TypeDescriptor`` tree.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Optional

from ..errors import InvalidTypeError


class Kind(str, Enum):
    INT = "int"
    UINT = "uint"
    ADDRESS = "address"
    BOOL = "bool"
    STRING = "string"
    BYTES = "bytes"
    FIXED_BYTES = "fixed_bytes"
    ARRAY = "array"
    FIXED_ARRAY = "fixed_array"


_BASE_RE = re.compile(r"^(int|uint|bytes|address|bool|string)([0-9]*)\Z")
_SUFFIX_RE = re.compile(r"\[([0-9]*)\]\Z")


@dataclass(frozen=True)
class TypeDescriptor:
    """
    One resolved ABI type.

    Attributes:
        kind: Base kind or array kind
        size: Bit width for INT/UINT, byte size for FIXED_BYTES, else 0
        canonical: Normalized type string (``uint`` becomes ``uint256``)
        elem: Element descriptor for ARRAY/FIXED_ARRAY
        length: Element count for FIXED_ARRAY
    """
    kind: Kind
    canonical: str
    size: int = 0
    elem: Optional["TypeDescriptor"] = None
    length: Optional[int] = None

    @property
    def is_array(self) -> bool:
        return self.kind in (Kind.ARRAY, Kind.FIXED_ARRAY)

    @property
    def is_integer(self) -> bool:
        return self.kind in (Kind.INT, Kind.UINT)

    @property
    def signed(self) -> bool:
        return self.kind is Kind.INT

    def __str__(self) -> str:
        return self.canonical


def _parse_base(name: str) -> TypeDescriptor:
    match = _BASE_RE.match(name)
    if match is None:
        raise InvalidTypeError(f"unrecognized ABI type: {name!r}")

    base, digits = match.groups()

    if base in ("int", "uint"):
        bits = int(digits) if digits else 256
        if bits < 8 or bits > 256 or bits % 8:
            raise InvalidTypeError(f"invalid integer width in {name!r}")
        kind = Kind.INT if base == "int" else Kind.UINT
        return TypeDescriptor(kind, f"{base}{bits}", size=bits)

    if base == "bytes":
        if not digits:
            return TypeDescriptor(Kind.BYTES, "bytes")
        size = int(digits)
        if size < 1 or size > 32:
            raise InvalidTypeError(f"invalid fixed bytes size in {name!r}")
        return TypeDescriptor(Kind.FIXED_BYTES, f"bytes{size}", size=size)

    if digits:
        raise InvalidTypeError(f"unrecognized ABI type: {name!r}")

    if base == "address":
        return TypeDescriptor(Kind.ADDRESS, "address", size=20)
    if base == "bool":
        return TypeDescriptor(Kind.BOOL, "bool")
    return TypeDescriptor(Kind.STRING, "string")


@lru_cache(maxsize=256)
def parse_type(name: str) -> TypeDescriptor:
    """
    Resolve an ABI type name.

    Grammar: ``base ('[' [N] ']')*``. Empty brackets make a dynamic array,
    ``[N]`` a fixed array of N elements.

    Raises:
        InvalidTypeError: If the base type is unknown, a width/size is out
            of range, or an array suffix is malformed.
    """
    if not isinstance(name, str):
        raise InvalidTypeError(f"ABI type name must be a string, got {type(name).__name__}")

    text = name.strip()
    suffixes: list[str] = []
    while text.endswith("]"):
        match = _SUFFIX_RE.search(text)
        if match is None:
            raise InvalidTypeError(f"malformed array suffix in {name!r}")
        suffixes.append(match.group(1))
        text = text[: match.start()]

    desc = _parse_base(text)

    # Innermost suffix is the leftmost one.
    for digits in reversed(suffixes):
        if digits == "":
            desc = TypeDescriptor(Kind.ARRAY, f"{desc.canonical}[]", elem=desc)
            continue
        length = int(digits)
        if length <= 0:
            raise InvalidTypeError(f"fixed array length must be > 0 in {name!r}")
        desc = TypeDescriptor(
            Kind.FIXED_ARRAY, f"{desc.canonical}[{length}]", elem=desc, length=length
        )

    return desc
