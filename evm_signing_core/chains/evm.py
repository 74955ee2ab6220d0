"""
EvmChainCore - software signing for EVM-style account chains.
"""
import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from ..codec import Transaction, TransactionCodec, TransactionCodecProtocol
from ..config import DEFAULT_CONFIG, CoreConfig
from ..credentials import seal_secret
from ..derivation import (
    BatchDerive,
    decompress_public_key,
    derive_addresses,
    derive_batch as default_derive_batch,
    public_key_to_address,
)
from ..exceptions import InvalidKeyError, SigningError, SigningPrimitiveError
from ..hashing import keccak256
from ..message import MessageHasher, build_preimage, hash_message
from ..models import (
    AddressRecord,
    EncodedTransaction,
    MessagePayload,
    RawSignature,
    SignedTransaction,
)
from ..signature import assemble_message_signature, assemble_transaction_signature
from ..signer import SECP256K1, SignerPrimitive, load_private_key, sign
from ..transaction import canonicalize
from ..utils import is_hex_string, strip_0x


class EvmChainCore:
    """
    Signing core for EVM chains.

    This core handles:
    1. Canonicalizing legacy and priority-fee transactions
    2. Signing transactions and messages with sealed secp256k1 keys
    3. Deriving HD addresses in batches

    Every cryptographic collaborator can be replaced; the defaults use the
    eth-account stack and PyNaCl-sealed secrets.
    """

    curve = SECP256K1

    def __init__(
        self,
        config: Optional[CoreConfig] = None,
        signer: Optional[SignerPrimitive] = None,
        derive_batch: Optional[BatchDerive] = None,
        decompress: Optional[Callable[[str, bytes], bytes]] = None,
        codec: Optional[TransactionCodecProtocol] = None,
        message_hasher: Optional[MessageHasher] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the EVM core

        Args:
            config: Core settings (defaults to ``CoreConfig()``)
            signer: Signer primitive (defaults to ``signer.sign``)
            derive_batch: HD batch-derive primitive
            decompress: Public-key decompression primitive
            codec: Transaction codec (defaults to the RLP codec)
            message_hasher: Message hasher keyed by message type
            logger: Optional logger instance for debug/info logging
        """
        self.config = config or DEFAULT_CONFIG
        self.signer = signer or sign
        self.derive_batch = derive_batch or default_derive_batch
        self.decompress = decompress or decompress_public_key
        self.codec = codec or TransactionCodec()
        self.message_hasher = message_hasher or hash_message
        self.logger = logger or logging.getLogger(__name__)

    def canonicalize(self, encoded_tx: Union[EncodedTransaction, Mapping[str, Any]]) -> Transaction:
        """
        Build the canonical transaction for an encoded transaction.

        Raises:
            MissingFieldError: If a required field is absent
        """
        return canonicalize(
            encoded_tx,
            logger_instance=self.logger,
            warning_interval=self.config.deploy_warning_interval,
        )

    def build_preimage(self, payload: Union[MessagePayload, Mapping[str, Any]]) -> bytes:
        """
        Compute the digest to sign for a message payload.
        """
        return build_preimage(
            payload,
            hasher=self.message_hasher,
            compat_rewrite=self.config.message_compat_rewrite,
        )

    def _sign_digest(self, digest: bytes, private_key: str, password: str) -> RawSignature:
        """
        Run the signer primitive, normalizing its failures to SigningError.
        """
        if password is None:
            raise SigningError("Software signing requires a password.")
        try:
            raw = self.signer(private_key, password, digest, curve=self.curve)
        except SigningError:
            raise
        except Exception as e:
            self.logger.error(f"Signer primitive failed: {type(e).__name__}")
            raise SigningPrimitiveError(f"Failed to sign: {e}") from e

        if not isinstance(raw, RawSignature):
            try:
                raw = RawSignature.model_validate(raw)
            except ValueError as e:
                raise SigningPrimitiveError(f"Signer returned a malformed signature: {e}") from e
        return raw

    def sign_transaction(
        self,
        encoded_tx: Union[EncodedTransaction, Mapping[str, Any]],
        private_key: str,
        password: str
    ) -> SignedTransaction:
        """
        Canonicalize, sign and serialize a transaction

        Args:
            encoded_tx: Encoded transaction (model or camelCase mapping)
            private_key: Sealed private key handle
            password: Password for the handle

        Returns:
            SignedTransaction with txid and raw bytes (both 0x-hex)

        Raises:
            MissingFieldError: If the transaction is incomplete
            DecryptionError: If the password is wrong
            SigningError: If signing fails for any other reason
        """
        tx = self.canonicalize(encoded_tx)
        digest = keccak256(self.codec.serialize_unsigned(tx))
        self.logger.debug(f"Signing type {tx.type} transaction on chain {tx.chain_id}")

        raw = self._sign_digest(digest, private_key, password)
        signed = assemble_transaction_signature(raw, tx, self.codec)

        self.logger.info(f"Signed transaction {signed.txid}")
        return signed

    def sign_message(
        self,
        payload: Union[MessagePayload, Mapping[str, Any]],
        private_key: str,
        password: str
    ) -> str:
        """
        Sign a message and return the 65-byte signature as 0x-hex

        Raises:
            InvalidMessageError: If the message does not fit its type
            DecryptionError: If the password is wrong
            SigningError: If signing fails for any other reason
        """
        digest = self.build_preimage(payload)
        raw = self._sign_digest(digest, private_key, password)
        return assemble_message_signature(raw)

    def seal_secret(self, secret: bytes, password: str) -> str:
        """
        Seal a private key or seed under a password with the configured
        argon2id limits. The returned handle is what the signing and
        derivation methods accept.
        """
        return seal_secret(
            secret,
            password,
            opslimit=self.config.kdf_opslimit,
            memlimit=self.config.kdf_memlimit,
        )

    def get_public_from_private(self, private_key_raw: str) -> str:
        """
        Compressed public key (hex) for a raw 32-byte private key in hex.

        Raises:
            InvalidKeyError: If the key is not 64 hex characters or out of range
        """
        digits = strip_0x(private_key_raw) if isinstance(private_key_raw, str) else ""
        if len(digits) != 64 or not is_hex_string(digits):
            raise InvalidKeyError("Invalid EVM private key.")
        key_bytes = bytearray.fromhex(digits)
        try:
            return load_private_key(key_bytes).public_key.to_compressed_bytes().hex()
        finally:
            key_bytes[:] = bytes(len(key_bytes))

    def get_address_from_public(self, public_key: Union[str, bytes]) -> str:
        """
        Address for a compressed or uncompressed public key.
        """
        return public_key_to_address(public_key, self.decompress)

    def get_address_from_private(self, private_key_raw: str) -> AddressRecord:
        """
        Public key and address for a raw private key in hex.

        Raises:
            InvalidKeyError: If the key is malformed
        """
        public_key = self.get_public_from_private(private_key_raw)
        return AddressRecord(
            public_key=public_key,
            address=self.get_address_from_public(public_key),
        )

    def get_addresses_from_hd(
        self,
        seed: str,
        password: str,
        template: str,
        indexes: Sequence[int]
    ) -> List[AddressRecord]:
        """
        Derive addresses for a batch of HD indices

        Args:
            seed: Sealed seed handle
            password: Password for the seed
            template: Path template, e.g. ``m/44'/60'/0'/0/{index}``
            indexes: Indices to derive, in the order results should come back

        Returns:
            One AddressRecord per index, in order

        Raises:
            DerivationCountMismatchError: If the primitive returns the wrong count
        """
        return derive_addresses(
            seed,
            password,
            template,
            indexes,
            derive=self.derive_batch,
            decompress=self.decompress,
            workers=self.config.derivation_workers,
            curve=self.curve,
            logger_instance=self.logger,
        )

    def __repr__(self) -> str:
        return f"EvmChainCore(curve={self.curve!r})"
