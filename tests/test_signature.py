"""
Tests for signature assembly.
"""
from unittest.mock import MagicMock

import pytest
from eth_keys import keys

from evm_signing_core.hashing import keccak256
from evm_signing_core.models import RawSignature, SignatureTriple
from evm_signing_core.signature import (
    MESSAGE_SIGNATURE_SIZE,
    assemble_message_signature,
    assemble_transaction_signature,
    recover_address,
)
from evm_signing_core.signer import sign_digest
from evm_signing_core.transaction import canonicalize

from conftest import TEST_ADDRESSES, TEST_PRIV_KEY


@pytest.fixture
def private_key():
    return keys.PrivateKey(bytes.fromhex(TEST_PRIV_KEY))


def test_message_signature_layout():
    raw = RawSignature(r=b"\x11" * 32, s=b"\x22" * 32, recovery_id=1)
    signature = assemble_message_signature(raw)

    assert signature.startswith("0x")
    assert len(signature) == 2 + 2 * MESSAGE_SIGNATURE_SIZE
    assert signature[2:66] == "11" * 32
    assert signature[66:130] == "22" * 32
    assert signature[-2:] == "1c"


def test_short_components_are_left_padded():
    raw = RawSignature(r=b"\x05", s=7, recovery_id=0)
    assert raw.r == b"\x00" * 31 + b"\x05"
    assert raw.s == b"\x00" * 31 + b"\x07"

    signature = assemble_message_signature(raw)
    assert len(signature) == 132
    assert signature[-2:] == "1b"


@pytest.mark.parametrize("component", [True, -1, 1 << 256, b"\x01" * 33])
def test_raw_signature_rejects_bad_components(component):
    with pytest.raises(ValueError):
        RawSignature(r=component, s=b"\x01", recovery_id=0)


def test_transaction_signature_txid_is_hash_of_raw(legacy_tx, private_key):
    tx = canonicalize(legacy_tx)
    raw = sign_digest(private_key, keccak256(b"anything"))

    signed = assemble_transaction_signature(raw, tx)

    raw_bytes = bytes.fromhex(signed.raw_tx[2:])
    assert signed.txid == "0x" + keccak256(raw_bytes).hex()
    assert len(signed.txid) == 66


def test_transaction_signature_uses_given_codec(legacy_tx):
    tx = canonicalize(legacy_tx)
    raw = RawSignature(r=b"\x01", s=b"\x02", recovery_id=1)
    codec = MagicMock()
    codec.split_signature.return_value = SignatureTriple(
        v=38, r=raw.r, s=raw.s, recovery_param=1
    )
    codec.serialize_signed.return_value = b"\xaa\xbb"

    signed = assemble_transaction_signature(raw, tx, codec)

    codec.split_signature.assert_called_once_with(tx, 1, raw.r, raw.s)
    codec.serialize_signed.assert_called_once_with(tx, codec.split_signature.return_value)
    assert signed.raw_tx == "0xaabb"
    assert signed.txid == "0x" + keccak256(b"\xaa\xbb").hex()


def test_signed_transaction_aliases(legacy_tx, private_key):
    raw = sign_digest(private_key, keccak256(b"x"))
    signed = assemble_transaction_signature(raw, canonicalize(legacy_tx))
    dumped = signed.model_dump(by_alias=True)
    assert set(dumped) == {"transactionId", "rawTx"}


def test_recover_address(private_key):
    digest = keccak256(b"recover me")
    raw = sign_digest(private_key, digest)
    assert recover_address(digest, raw) == TEST_ADDRESSES[0]


def test_signatures_are_low_s(private_key):
    half_order = 0x7FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF5D576E7357A4501DDFE92F46681B20A0
    for i in range(10):
        raw = sign_digest(private_key, keccak256(bytes([i])))
        assert int.from_bytes(raw.s, "big") <= half_order
