"""
secp256k1 signing primitive.

Opens a sealed private key, signs a 32-byte digest and returns the raw
``(r, s, recoveryId)`` triple. Key material never leaves this module.
"""
import logging
from typing import Protocol

from eth_keys import keys
from eth_keys.exceptions import ValidationError as EthKeysValidationError

from .credentials import unlocked_secret
from .exceptions import InvalidKeyError, SigningPrimitiveError
from .models import RawSignature

logger = logging.getLogger(__name__)

SECP256K1 = "secp256k1"


class SignerPrimitive(Protocol):
    """Protocol for custom signing primitives (HSMs, remote signers, ...)"""

    def __call__(self, private_key_handle: str, password: str, digest: bytes,
                 curve: str = SECP256K1) -> RawSignature:
        ...


def load_private_key(raw: bytes) -> keys.PrivateKey:
    """
    Wrap raw key bytes in an ``eth_keys`` private key.

    Raises:
        InvalidKeyError: If the key is not 32 bytes or out of the curve range
    """
    if len(raw) != 32:
        raise InvalidKeyError(f"Invalid private key length: {len(raw)} bytes (expected 32)")
    try:
        return keys.PrivateKey(bytes(raw))
    except EthKeysValidationError as e:
        raise InvalidKeyError("Invalid secp256k1 private key") from e


def sign_digest(private_key: keys.PrivateKey, digest: bytes) -> RawSignature:
    """
    Sign a 32-byte digest with an already loaded key (low-s, RFC 6979).

    Raises:
        SigningPrimitiveError: If the digest is malformed or the curve operation fails
    """
    if len(digest) != 32:
        raise SigningPrimitiveError(f"Digest must be 32 bytes, got {len(digest)}")
    try:
        signature = private_key.sign_msg_hash(bytes(digest))
    except EthKeysValidationError as e:
        raise SigningPrimitiveError(f"secp256k1 signing failed: {e}") from e
    return RawSignature(r=signature.r, s=signature.s, recovery_id=signature.v)


def sign(private_key_handle: str, password: str, digest: bytes,
         curve: str = SECP256K1) -> RawSignature:
    """
    Default signer primitive.

    Args:
        private_key_handle: Handle from ``credentials.seal_secret``
        password: Password that opens the handle
        digest: 32-byte message or transaction hash
        curve: Must be ``secp256k1``

    Returns:
        RawSignature with 32-byte r/s and recovery id 0 or 1

    Raises:
        DecryptionError: Wrong or missing password
        InvalidKeyError: Malformed handle or key material
        SigningPrimitiveError: Unsupported curve or curve failure
    """
    if curve != SECP256K1:
        raise SigningPrimitiveError(f"Unsupported curve: {curve}")

    with unlocked_secret(private_key_handle, password) as secret:
        private_key = load_private_key(secret)
        result = sign_digest(private_key, digest)
        del private_key
    logger.debug("Signed digest %s...", digest.hex()[:8])
    return result
