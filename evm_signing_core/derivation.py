"""
HD address derivation.

Expands a sealed seed, a path template and a list of indices into public
keys and addresses, one ``AddressRecord`` per index in the caller's order.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Protocol, Sequence, Tuple, Union

from eth_account.hdaccount import key_from_seed
from eth_keys import keys
from eth_keys.exceptions import ValidationError as EthKeysValidationError
from eth_utils import ValidationError as EthUtilsValidationError

from .credentials import unlocked_secret
from .exceptions import (
    DerivationCountMismatchError,
    DerivationError,
    InvalidPathTemplateError,
)
from .hashing import keccak256
from .models import AddressRecord, PublicKeyInfo
from .signer import SECP256K1, load_private_key
from .utils import hex_to_bytes

logger = logging.getLogger(__name__)

INDEX_PLACEHOLDER = "{index}"
COMPRESSED_KEY_SIZE = 33
UNCOMPRESSED_KEY_SIZE = 65


class BatchDerive(Protocol):
    """Protocol for HD batch-derive primitives"""

    def __call__(self, curve: str, seed: str, password: str, path_prefix: str,
                 path_suffixes: Sequence[str]) -> List[PublicKeyInfo]:
        ...


def slice_path_template(template: str) -> Tuple[str, str]:
    """
    Split a path template into a fixed prefix and a per-index suffix.

    >>> slice_path_template("m/44'/60'/0'/0/{index}")
    ("m/44'/60'/0'/0", '{index}')
    >>> slice_path_template("m/44'/60'/{index}'/0/0")
    ("m/44'/60'", "{index}'/0/0")

    Raises:
        InvalidPathTemplateError: If the template does not contain exactly one
            placeholder inside a path segment
    """
    if not isinstance(template, str) or template.count(INDEX_PLACEHOLDER) != 1:
        raise InvalidPathTemplateError(
            f"Path template must contain exactly one {INDEX_PLACEHOLDER} placeholder"
        )
    head, tail = template.split(INDEX_PLACEHOLDER)
    slash = head.rfind("/")
    if slash <= 0:
        raise InvalidPathTemplateError(f"Placeholder cannot be in the root of {template!r}")
    return head[:slash], head[slash + 1:] + INDEX_PLACEHOLDER + tail


def resolve_suffix(path_suffix: str, index: int) -> str:
    """Substitute an index into a path suffix."""
    return path_suffix.replace(INDEX_PLACEHOLDER, str(index))


def derive_batch(curve: str, seed: str, password: str, path_prefix: str,
                 path_suffixes: Sequence[str]) -> List[PublicKeyInfo]:
    """
    Default HD batch-derive primitive (BIP-32 over secp256k1).

    Args:
        curve: Must be ``secp256k1``
        seed: Sealed seed handle from ``credentials.seal_secret``
        password: Password that opens the seed
        path_prefix: Fixed part of the path, e.g. ``m/44'/60'/0'/0``
        path_suffixes: Resolved per-index suffixes, e.g. ``["0", "1"]``

    Returns:
        One PublicKeyInfo (full path, 33-byte compressed key) per suffix

    Raises:
        DerivationError: Unsupported curve or an invalid path
        DecryptionError: Wrong password for the seed
    """
    if curve != SECP256K1:
        raise DerivationError(f"Unsupported curve: {curve}")

    results: List[PublicKeyInfo] = []
    with unlocked_secret(seed, password) as seed_bytes:
        for suffix in path_suffixes:
            path = f"{path_prefix}/{suffix}"
            try:
                child = key_from_seed(bytes(seed_bytes), path)
            except (EthUtilsValidationError, ValueError) as e:
                raise DerivationError(f"Cannot derive path {path}: {e}") from e
            public_key = load_private_key(child).public_key
            results.append(PublicKeyInfo(path=path, public_key=public_key.to_compressed_bytes()))
    return results


def decompress_public_key(curve: str, compressed: bytes) -> bytes:
    """
    Decompress a 33-byte secp256k1 public key to its 65-byte ``0x04`` form.

    Raises:
        ValueError: If the curve is unsupported or the key is not on the curve
    """
    if curve != SECP256K1:
        raise ValueError(f"Unsupported curve: {curve}")
    if len(compressed) != COMPRESSED_KEY_SIZE:
        raise ValueError(f"Compressed public key must be 33 bytes, got {len(compressed)}")
    try:
        public_key = keys.PublicKey.from_compressed_bytes(bytes(compressed))
    except EthKeysValidationError as e:
        raise ValueError(f"Invalid compressed public key: {e}") from e
    return b"\x04" + public_key.to_bytes()


def public_key_to_address(
    public_key: Union[bytes, str],
    decompress: Callable[[str, bytes], bytes] = decompress_public_key,
) -> str:
    """
    Compute the account address of a secp256k1 public key.

    The key is decompressed to 65 bytes, the 0x04 prefix dropped, the
    remaining 64 bytes hashed with keccak-256 and the last 20 bytes kept.

    Args:
        public_key: 33-byte compressed or 65-byte uncompressed key (bytes or hex)
        decompress: Decompression primitive

    Returns:
        Lowercase 0x-prefixed address
    """
    key = hex_to_bytes(public_key)
    if len(key) == COMPRESSED_KEY_SIZE:
        key = decompress(SECP256K1, key)
    if len(key) != UNCOMPRESSED_KEY_SIZE or key[0] != 0x04:
        raise ValueError(f"Invalid public key length: {len(key)}")
    return "0x" + keccak256(key[1:])[-20:].hex()


def _validate_indices(indices: Sequence[int]) -> List[int]:
    checked = []
    for index in indices:
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise ValueError(f"Derivation indices must be non-negative integers, got {index!r}")
        checked.append(index)
    return checked


def derive_addresses(
    seed: str,
    password: str,
    template: str,
    indices: Sequence[int],
    derive: BatchDerive = derive_batch,
    decompress: Callable[[str, bytes], bytes] = decompress_public_key,
    workers: int = 1,
    curve: str = SECP256K1,
    logger_instance: Optional[logging.Logger] = None,
) -> List[AddressRecord]:
    """
    Derive public keys and addresses for a batch of indices.

    Args:
        seed: Sealed seed handle
        password: Password for the seed
        template: Path template with an ``{index}`` placeholder
        indices: Ordered, non-negative indices
        derive: HD batch-derive primitive
        decompress: Public-key decompression primitive
        workers: Threads used for the key-to-address step (1 = sequential)
        curve: Curve name passed to the primitives
        logger_instance: Logger for diagnostics

    Returns:
        AddressRecords in the same order as ``indices``

    Raises:
        InvalidPathTemplateError: Bad template
        DerivationCountMismatchError: The primitive returned a different
            number of keys than requested (not retried)
    """
    log = logger_instance or logger
    indices = _validate_indices(indices)
    path_prefix, path_suffix = slice_path_template(template)
    suffixes = [resolve_suffix(path_suffix, index) for index in indices]

    infos = derive(curve, seed, password, path_prefix, suffixes)
    if len(infos) != len(indices):
        log.error("Derivation returned %d keys for %d indices", len(infos), len(indices))
        raise DerivationCountMismatchError(len(indices), len(infos))

    def _to_record(info: PublicKeyInfo) -> AddressRecord:
        return AddressRecord(
            path=info.path,
            public_key=info.public_key.hex(),
            address=public_key_to_address(info.public_key, decompress),
        )

    if workers > 1 and len(infos) > 1:
        # map() yields results in submission order
        with ThreadPoolExecutor(max_workers=workers) as pool:
            records = list(pool.map(_to_record, infos))
    else:
        records = [_to_record(info) for info in infos]

    log.debug("Derived %d addresses under %s", len(records), path_prefix)
    return records
