"""
Hex and integer helpers shared by the signing core.
"""
import re
from typing import Union

_HEX_RE = re.compile(r"(0x|0X)?[0-9a-fA-F]*")

IntLike = Union[int, str]


def strip_0x(value: str) -> str:
    """Remove a leading 0x / 0X if present."""
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def is_hex_string(value: str, require_prefix: bool = False) -> bool:
    """
    Check whether a string is hex, optionally requiring the 0x prefix.
    """
    if not isinstance(value, str) or not _HEX_RE.fullmatch(value):
        return False
    if require_prefix:
        return value[:2] in ("0x", "0X")
    return True


def to_int(value: IntLike) -> int:
    """
    Parse an unsigned integer from an int, a decimal string or a 0x-hex string.

    Raises:
        TypeError: If value is not an int or str (bools are rejected)
        ValueError: If value is negative or not a valid number
    """
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise TypeError(f"Expected int or str, got {type(value).__name__}")

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty numeric string")
        if text[:2] in ("0x", "0X"):
            digits = text[2:]
            # "0x" alone is the zero quantity
            result = int(digits, 16) if digits else 0
        else:
            result = int(text, 10)
    else:
        result = value

    if result < 0:
        raise ValueError(f"Expected a non-negative integer, got {value!r}")
    return result


def to_min_hex(value: IntLike) -> str:
    """
    Encode an unsigned integer as minimal big-endian hex: no leading zeros,
    with zero rendered as ``0x0``.

    >>> to_min_hex(0)
    '0x0'
    >>> to_min_hex("0x000f")
    '0xf'
    """
    return hex(to_int(value))


def hex_to_bytes(value: Union[str, bytes, bytearray]) -> bytes:
    """
    Decode a hex string (0x optional) into bytes; bytes pass through.
    Odd-length hex is left-padded with a zero nibble.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not is_hex_string(value):
        raise ValueError(f"Invalid hex string: {value[:12]!r}")
    digits = strip_0x(value)
    if len(digits) % 2:
        digits = "0" + digits
    return bytes.fromhex(digits)


def bytes_to_hex(value: bytes) -> str:
    """Encode bytes as a 0x-prefixed lowercase hex string."""
    return "0x" + bytes(value).hex()


def zero_pad(value: bytes, length: int = 32) -> bytes:
    """
    Left-pad bytes with zeros to ``length``.

    Raises:
        ValueError: If value is already longer than ``length``
    """
    if len(value) > length:
        raise ValueError(f"Value of {len(value)} bytes exceeds {length} bytes")
    return bytes(length - len(value)) + bytes(value)
