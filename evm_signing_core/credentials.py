"""
Password-sealed secrets and scoped credential handles.

Private keys and HD seeds travel through the core as opaque hex handles. A
handle is only opened inside ``unlocked_secret``, which hands out a mutable
buffer and wipes it on every exit path.
"""
import logging
import struct
from contextlib import contextmanager
from typing import Iterator, Optional

import nacl.exceptions
import nacl.pwhash
import nacl.secret
import nacl.utils

from .exceptions import DecryptionError, InvalidKeyError
from .utils import hex_to_bytes

logger = logging.getLogger(__name__)

HANDLE_VERSION = 1
_HEADER = struct.Struct(">BIQ")  # version, opslimit, memlimit
_SALT_BYTES = nacl.pwhash.argon2id.SALTBYTES


def _derive_key(password: str, salt: bytes, opslimit: int, memlimit: int) -> bytes:
    return nacl.pwhash.argon2id.kdf(
        nacl.secret.SecretBox.KEY_SIZE,
        password.encode("utf-8"),
        salt,
        opslimit=opslimit,
        memlimit=memlimit,
    )


def seal_secret(
    secret: bytes,
    password: str,
    opslimit: int = nacl.pwhash.argon2id.OPSLIMIT_INTERACTIVE,
    memlimit: int = nacl.pwhash.argon2id.MEMLIMIT_INTERACTIVE,
) -> str:
    """
    Encrypt a secret under a password using argon2id + libsodium secretbox.

    Args:
        secret: Raw secret bytes (private key or seed)
        password: Passphrase that will be required to open the handle
        opslimit: Argon2id operations limit
        memlimit: Argon2id memory limit in bytes

    Returns:
        Opaque hex handle (KDF parameters, salt, nonce and ciphertext)
    """
    if password is None:
        raise ValueError("A password is required to seal a secret")

    salt = nacl.utils.random(_SALT_BYTES)
    box = nacl.secret.SecretBox(_derive_key(password, salt, opslimit, memlimit))
    # encrypt() already prepends the random nonce
    encrypted = box.encrypt(bytes(secret))

    header = _HEADER.pack(HANDLE_VERSION, opslimit, memlimit)
    return (header + salt + bytes(encrypted)).hex()


def unseal_secret(handle: str, password: str) -> bytearray:
    """
    Decrypt a handle produced by ``seal_secret``.

    Callers should prefer ``unlocked_secret`` so the plaintext is wiped.

    Raises:
        InvalidKeyError: If the handle is malformed
        DecryptionError: If the password is wrong or the handle was tampered with
    """
    try:
        blob = hex_to_bytes(handle)
    except (TypeError, ValueError) as e:
        raise InvalidKeyError("Sealed key handle is not valid hex") from e

    if len(blob) < _HEADER.size + _SALT_BYTES + nacl.secret.SecretBox.NONCE_SIZE:
        raise InvalidKeyError("Sealed key handle is truncated")

    version, opslimit, memlimit = _HEADER.unpack_from(blob)
    if version != HANDLE_VERSION:
        raise InvalidKeyError(f"Unsupported sealed key version: {version}")

    salt = blob[_HEADER.size:_HEADER.size + _SALT_BYTES]
    encrypted = blob[_HEADER.size + _SALT_BYTES:]

    try:
        box = nacl.secret.SecretBox(_derive_key(password, salt, opslimit, memlimit))
        return bytearray(box.decrypt(encrypted))
    except nacl.exceptions.CryptoError as e:
        logger.debug("Sealed handle failed authentication")
        # Never include the password or handle in the message
        raise DecryptionError("Failed to decrypt key material: wrong password?") from e


def wipe(buffer: Optional[bytearray]) -> None:
    """Overwrite a mutable buffer with zeros."""
    if buffer is None:
        return
    for i in range(len(buffer)):
        buffer[i] = 0


@contextmanager
def unlocked_secret(handle: str, password: str) -> Iterator[bytearray]:
    """
    Open a sealed handle for the duration of a ``with`` block.

    The yielded buffer is zeroed when the block exits, whether it returns,
    raises or is interrupted.

    Raises:
        DecryptionError: If the password is missing or wrong
        InvalidKeyError: If the handle is malformed
    """
    if password is None:
        raise DecryptionError("Software signing requires a password.")

    secret = unseal_secret(handle, password)
    try:
        yield secret
    finally:
        wipe(secret)
