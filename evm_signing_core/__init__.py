"""
EVM signing core.

Turns chain-agnostic transaction and message descriptions into signed,
wire-ready artifacts for EVM-style secp256k1 account chains, and derives
HD addresses in batches.
"""
from .version import __version__
from .config import CoreConfig
from .exceptions import (
    EvmCoreError,
    MissingFieldError,
    InvalidMessageError,
    UnsupportedChainError,
    DerivationError,
    InvalidPathTemplateError,
    DerivationCountMismatchError,
    SigningError,
    DecryptionError,
    SigningPrimitiveError,
    InvalidKeyError,
)
from .models import (
    EncodedTransaction,
    LegacyTransaction,
    FeeMarketTransaction,
    RawSignature,
    SignatureTriple,
    SignedTransaction,
    AddressRecord,
    MessageType,
    MessagePayload,
    PublicKeyInfo,
    SigningMaterial,
)
from .transaction import canonicalize
from .derivation import derive_addresses, public_key_to_address, slice_path_template
from .message import apply_compat_rewrite, build_preimage, hash_message
from .signature import assemble_message_signature, assemble_transaction_signature
from .credentials import seal_secret, unlocked_secret
from .chains import ChainFamily, EvmChainCore, get_chain_core

__all__ = [
    "__version__",
    "CoreConfig",
    "EvmCoreError",
    "MissingFieldError",
    "InvalidMessageError",
    "UnsupportedChainError",
    "DerivationError",
    "InvalidPathTemplateError",
    "DerivationCountMismatchError",
    "SigningError",
    "DecryptionError",
    "SigningPrimitiveError",
    "InvalidKeyError",
    "EncodedTransaction",
    "LegacyTransaction",
    "FeeMarketTransaction",
    "RawSignature",
    "SignatureTriple",
    "SignedTransaction",
    "AddressRecord",
    "MessageType",
    "MessagePayload",
    "PublicKeyInfo",
    "SigningMaterial",
    "canonicalize",
    "derive_addresses",
    "public_key_to_address",
    "slice_path_template",
    "apply_compat_rewrite",
    "build_preimage",
    "hash_message",
    "assemble_message_signature",
    "assemble_transaction_signature",
    "seal_secret",
    "unlocked_secret",
    "ChainFamily",
    "EvmChainCore",
    "get_chain_core",
]
