"""
RLP transaction codec.

Serializes canonical transactions for hashing and for broadcast:

* legacy (type 0): ``rlp([nonce, gasPrice, gas, to, value, data, ...])`` with
  EIP-155 replay protection when ``chainId`` is non-zero
* priority-fee (type 2): ``0x02 || rlp([chainId, nonce, maxPriorityFeePerGas,
  maxFeePerGas, gas, to, value, data, accessList, ...])``
"""
from typing import List, Protocol, Union

import rlp

from .models import FeeMarketTransaction, LegacyTransaction, SignatureTriple
from .utils import zero_pad

Transaction = Union[LegacyTransaction, FeeMarketTransaction]

FEE_MARKET_TX_TYPE = b"\x02"
# v offset of pre-EIP-155 and message signatures
LEGACY_V_OFFSET = 27
# v = recoveryParam + chainId * 2 + 35
EIP155_V_OFFSET = 35


class TransactionCodecProtocol(Protocol):
    """Serialization capability the signing core relies on"""

    def serialize_unsigned(self, tx: Transaction) -> bytes:
        ...

    def serialize_signed(self, tx: Transaction, signature: SignatureTriple) -> bytes:
        ...

    def split_signature(self, tx: Transaction, recovery_param: int,
                        r: bytes, s: bytes) -> SignatureTriple:
        ...


def _quantity(value: str) -> int:
    return int(value, 16)


def _to_field(tx: Transaction) -> bytes:
    return b"" if tx.to is None else bytes.fromhex(tx.to[2:])


def _data_field(tx: Transaction) -> bytes:
    return bytes.fromhex(tx.data[2:])


class TransactionCodec:
    """
    Default codec built on ``rlp``.

    Stateless; one instance can be shared across threads.
    """

    def _fields(self, tx: Transaction) -> List:
        if isinstance(tx, FeeMarketTransaction):
            return [
                tx.chain_id,
                _quantity(tx.nonce),
                _quantity(tx.max_priority_fee_per_gas),
                _quantity(tx.max_fee_per_gas),
                _quantity(tx.gas_limit),
                _to_field(tx),
                _quantity(tx.value),
                _data_field(tx),
                [],  # access list
            ]
        return [
            _quantity(tx.nonce),
            _quantity(tx.gas_price),
            _quantity(tx.gas_limit),
            _to_field(tx),
            _quantity(tx.value),
            _data_field(tx),
        ]

    def serialize_unsigned(self, tx: Transaction) -> bytes:
        """
        Serialize the payload whose keccak-256 is the signing digest.
        """
        fields = self._fields(tx)
        if isinstance(tx, FeeMarketTransaction):
            return FEE_MARKET_TX_TYPE + rlp.encode(fields)
        if tx.chain_id:
            # EIP-155: chainId, 0, 0 appended to the signing payload
            fields.extend([tx.chain_id, 0, 0])
        return rlp.encode(fields)

    def split_signature(self, tx: Transaction, recovery_param: int,
                        r: bytes, s: bytes) -> SignatureTriple:
        """
        Normalize ``(recoveryParam, r, s)`` into the chain-aware triple for ``tx``.

        Raises:
            ValueError: If recovery_param is not 0/1 or r/s exceed 32 bytes
        """
        if recovery_param not in (0, 1):
            raise ValueError(f"Invalid recovery parameter: {recovery_param}")

        if isinstance(tx, FeeMarketTransaction):
            v = recovery_param
        elif tx.chain_id:
            v = recovery_param + tx.chain_id * 2 + EIP155_V_OFFSET
        else:
            v = recovery_param + LEGACY_V_OFFSET

        return SignatureTriple(
            v=v,
            r=zero_pad(r, 32),
            s=zero_pad(s, 32),
            recovery_param=recovery_param,
        )

    def serialize_signed(self, tx: Transaction, signature: SignatureTriple) -> bytes:
        """
        Serialize ``tx`` with its signature attached (the broadcastable bytes).
        """
        fields = self._fields(tx)
        # RLP integers are minimal: strip the fixed-width padding
        fields.extend([
            signature.v,
            int.from_bytes(signature.r, "big"),
            int.from_bytes(signature.s, "big"),
        ])
        encoded = rlp.encode(fields)
        if isinstance(tx, FeeMarketTransaction):
            return FEE_MARKET_TX_TYPE + encoded
        return encoded
