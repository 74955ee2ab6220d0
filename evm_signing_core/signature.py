"""
Signature assembly.

Formats a raw curve signature into the two on-wire encodings:

* transactions: chain-aware ``(v, r, s)`` attached by the codec
* personal messages: 65-byte ``r || s || (recoveryId + 27)``
"""
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as EthKeysValidationError

from .codec import Transaction, TransactionCodec, TransactionCodecProtocol
from .hashing import keccak256, keccak256_hex
from .models import RawSignature, SignedTransaction
from .utils import bytes_to_hex, zero_pad

# Offset separating message signatures from raw recovery ids
MESSAGE_V_OFFSET = 27
MESSAGE_SIGNATURE_SIZE = 65

_default_codec = TransactionCodec()


def assemble_transaction_signature(
    raw: RawSignature,
    tx: Transaction,
    codec: TransactionCodecProtocol = _default_codec,
) -> SignedTransaction:
    """
    Attach a raw signature to a canonical transaction.

    Args:
        raw: Output of the signer primitive
        tx: The canonical transaction that was signed
        codec: Transaction codec

    Returns:
        SignedTransaction with ``txid == keccak256(raw_tx)``
    """
    triple = codec.split_signature(
        tx,
        raw.recovery_id,
        zero_pad(raw.r, 32),
        zero_pad(raw.s, 32),
    )
    raw_tx = codec.serialize_signed(tx, triple)
    return SignedTransaction(txid=keccak256_hex(raw_tx), raw_tx=bytes_to_hex(raw_tx))


def assemble_message_signature(raw: RawSignature) -> str:
    """
    Encode a personal-message signature as 0x-prefixed hex (132 characters).
    """
    signature = zero_pad(raw.r, 32) + zero_pad(raw.s, 32) + bytes([raw.recovery_id + MESSAGE_V_OFFSET])
    return bytes_to_hex(signature)


def recover_address(digest: bytes, raw: RawSignature) -> str:
    """
    Recover the signer's address from a digest and a raw signature.

    Raises:
        ValueError: If the signature does not recover to a public key
    """
    try:
        signature = keys.Signature(vrs=(
            raw.recovery_id,
            int.from_bytes(raw.r, "big"),
            int.from_bytes(raw.s, "big"),
        ))
        public_key = signature.recover_public_key_from_msg_hash(digest)
    except (BadSignature, EthKeysValidationError) as e:
        raise ValueError(f"Cannot recover signer: {e}") from e
    return "0x" + keccak256(public_key.to_bytes())[-20:].hex()
