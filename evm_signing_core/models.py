"""
Data models for the EVM signing core.
"""
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from eth_utils import is_address
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationInfo, field_validator

from .utils import bytes_to_hex, hex_to_bytes, is_hex_string, to_int, zero_pad

# Minimal big-endian hex quantity: 0x0 or no leading zero nibble
MinHex = Annotated[str, StringConstraints(pattern=r"^0x(0|[1-9a-f][0-9a-f]*)$")]
HexData = Annotated[str, StringConstraints(pattern=r"^0x([0-9a-f]{2})*$")]
HexAddress = Annotated[str, StringConstraints(pattern=r"^0x[0-9a-f]{40}$")]

# RLP integers are at most 32 bytes; EIP-2681 caps the nonce at 2**64 - 1
UINT256_MAX = 2**256 - 1
NONCE_MAX = 2**64 - 1

_NUMERIC_FIELDS = (
    "nonce", "gas_limit", "gas", "value", "chain_id",
    "gas_price", "max_fee_per_gas", "max_priority_fee_per_gas",
)


def _normalize_address(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, (bytes, bytearray)):
        value = bytes_to_hex(value)
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return value.lower()


class EncodedTransaction(BaseModel):
    """
    Chain-agnostic transaction description as supplied by the wallet.

    Numeric fields accept ints, decimal strings and 0x-hex strings. ``to``
    absent (or empty) means contract deployment.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    to: Optional[str] = None
    nonce: Optional[int] = None
    gas_limit: Optional[int] = Field(None, alias="gasLimit")
    gas: Optional[int] = None
    data: Optional[str] = None
    value: Optional[int] = None
    chain_id: Optional[int] = Field(None, alias="chainId")
    gas_price: Optional[int] = Field(None, alias="gasPrice")
    max_fee_per_gas: Optional[int] = Field(None, alias="maxFeePerGas")
    max_priority_fee_per_gas: Optional[int] = Field(None, alias="maxPriorityFeePerGas")

    @field_validator(*_NUMERIC_FIELDS, mode="before")
    @classmethod
    def _parse_quantity(cls, value: Any, info: ValidationInfo) -> Optional[int]:
        if value is None:
            return None
        try:
            result = to_int(value)
        except TypeError as e:
            raise ValueError(str(e)) from e
        limit = NONCE_MAX if info.field_name == "nonce" else UINT256_MAX
        if result > limit:
            raise ValueError(f"{info.field_name} exceeds the maximum of {hex(limit)}")
        return result

    @field_validator("to", mode="before")
    @classmethod
    def _parse_to(cls, value: Any) -> Optional[str]:
        return _normalize_address(value)

    @field_validator("data", mode="before")
    @classmethod
    def _parse_data(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        if isinstance(value, (bytes, bytearray)):
            return bytes_to_hex(value)
        if not isinstance(value, str) or not is_hex_string(value):
            raise ValueError("data must be bytes or a hex string")
        digits = value[2:] if value[:2] in ("0x", "0X") else value
        if len(digits) % 2:
            raise ValueError("data hex string must have an even length")
        return "0x" + digits.lower()

    @property
    def effective_gas_limit(self) -> Optional[int]:
        """``gasLimit``, falling back to the ``gas`` alias used by some dapps."""
        return self.gas_limit if self.gas_limit is not None else self.gas

    @property
    def is_fee_market(self) -> bool:
        """True when either priority-fee field is present."""
        return self.max_fee_per_gas is not None or self.max_priority_fee_per_gas is not None


class _CanonicalBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    to: Optional[HexAddress] = None
    nonce: MinHex
    gas_limit: MinHex = Field(alias="gasLimit")
    value: MinHex = "0x0"
    data: HexData = "0x"
    chain_id: int = Field(alias="chainId", ge=0)

    @property
    def is_deploy(self) -> bool:
        return self.to is None

    def as_dict(self) -> Dict[str, Any]:
        """camelCase dict in the shape transaction codecs expect (``to`` omitted on deploy)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class LegacyTransaction(_CanonicalBase):
    """Type 0 transaction with a single gas price."""
    type: Literal[0] = 0
    gas_price: MinHex = Field(alias="gasPrice")


class FeeMarketTransaction(_CanonicalBase):
    """Type 2 transaction with a fee cap and a priority tip."""
    type: Literal[2] = 2
    max_fee_per_gas: MinHex = Field(alias="maxFeePerGas")
    max_priority_fee_per_gas: MinHex = Field(alias="maxPriorityFeePerGas")


CanonicalTransaction = Annotated[
    Union[LegacyTransaction, FeeMarketTransaction],
    Field(discriminator="type"),
]


class RawSignature(BaseModel):
    """
    Output of the curve primitive. ``r`` and ``s`` are always held as
    32-byte big-endian values.
    """
    model_config = ConfigDict(frozen=True)

    r: bytes
    s: bytes
    recovery_id: Literal[0, 1]

    @field_validator("r", "s", mode="before")
    @classmethod
    def _pad_component(cls, value: Any) -> bytes:
        if isinstance(value, bool):
            raise ValueError("signature component must be bytes, int or hex")
        if isinstance(value, int):
            if value < 0 or value >= 1 << 256:
                raise ValueError("signature component out of range")
            return value.to_bytes(32, "big")
        return zero_pad(hex_to_bytes(value), 32)

    def to_bytes(self) -> bytes:
        """``r || s`` (64 bytes)."""
        return self.r + self.s


class SignatureTriple(BaseModel):
    """Chain-aware signature produced by the transaction codec."""
    model_config = ConfigDict(frozen=True)

    v: int = Field(ge=0)
    r: bytes
    s: bytes
    recovery_param: Literal[0, 1]


class SignedTransaction(BaseModel):
    """A wire-ready signed transaction and its id."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    txid: str = Field(alias="transactionId")
    raw_tx: str = Field(alias="rawTx")


class AddressRecord(BaseModel):
    """A derived (or directly computed) public key and its address."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    path: Optional[str] = None
    public_key: str = Field(alias="publicKey")
    address: HexAddress


class MessageType(IntEnum):
    """Message signing schemes understood by the pre-image builder."""
    ETH_SIGN = 0
    PERSONAL_SIGN = 1
    TYPED_DATA_V1 = 2
    TYPED_DATA_V3 = 3
    TYPED_DATA_V4 = 4


class MessagePayload(BaseModel):
    """A message signing request."""
    model_config = ConfigDict(frozen=True)

    type: MessageType
    message: Union[str, Dict[str, Any], List[Any]]


@dataclass(frozen=True)
class PublicKeyInfo:
    """One row returned by the HD batch-derive primitive."""
    path: str
    public_key: bytes


@dataclass(frozen=True)
class SigningMaterial:
    """
    Reference to a password-sealed private key plus the password that opens it.

    Neither field ever appears in ``repr`` output or logs.
    """
    private_key_handle: str = field(repr=False)
    password: str = field(repr=False)

    def __repr__(self) -> str:
        return "SigningMaterial(<redacted>)"
