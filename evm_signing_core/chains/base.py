"""
Capability set every chain family implements.
"""
from typing import Any, List, Mapping, Protocol, Sequence, Union

from ..models import AddressRecord, MessagePayload, SignedTransaction


class ChainCore(Protocol):
    """Protocol for chain-specific signing cores"""

    def canonicalize(self, encoded_tx: Union[Any, Mapping[str, Any]]) -> Any:
        """Normalize an encoded transaction into its signable form"""
        ...

    def build_preimage(self, payload: Union[MessagePayload, Mapping[str, Any]]) -> bytes:
        """Compute the digest to sign for a message"""
        ...

    def sign_transaction(self, encoded_tx: Union[Any, Mapping[str, Any]],
                         private_key: str, password: str) -> SignedTransaction:
        """Canonicalize, sign and serialize a transaction"""
        ...

    def sign_message(self, payload: Union[MessagePayload, Mapping[str, Any]],
                     private_key: str, password: str) -> str:
        """Sign a message and return its encoded signature"""
        ...

    def get_addresses_from_hd(self, seed: str, password: str, template: str,
                              indexes: Sequence[int]) -> List[AddressRecord]:
        """Derive addresses for a batch of HD indices"""
        ...
