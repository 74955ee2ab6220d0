"""
Hash primitive used throughout the core.
"""
from eth_utils import keccak


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 (Ethereum's hash, not FIPS SHA3-256).

    Args:
        data: Input bytes

    Returns:
        32-byte digest
    """
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"keccak256 expects bytes, got {type(data).__name__}")
    return keccak(bytes(data))


def keccak256_hex(data: bytes) -> str:
    """Keccak-256 as a 0x-prefixed lowercase hex string."""
    return "0x" + keccak256(data).hex()
