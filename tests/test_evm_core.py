"""
End-to-end tests for EvmChainCore.
"""
import logging
from unittest.mock import MagicMock

import pytest
from eth_account import Account
from eth_account.hdaccount import seed_from_mnemonic
from eth_account.messages import encode_defunct, encode_typed_data

from evm_signing_core import (
    ChainFamily,
    CoreConfig,
    DecryptionError,
    EvmChainCore,
    InvalidKeyError,
    InvalidMessageError,
    MessageType,
    MissingFieldError,
    RawSignature,
    SigningError,
    SigningMaterial,
    SigningPrimitiveError,
    UnsupportedChainError,
    get_chain_core,
)
from evm_signing_core.hashing import keccak256
from evm_signing_core.signature import recover_address

from conftest import (
    EIP155_PRIV_KEY,
    EIP155_SIGNED,
    MAIL_TYPED_DATA,
    TEST_ADDRESSES,
    TEST_MNEMONIC,
    TEST_PASSWORD,
    TEST_PRIV_KEY,
    TEST_TEMPLATE,
    seal_for_test,
)


def _recovered_tx_sender(signed):
    return Account.recover_transaction(signed.raw_tx).lower()


class TestSignTransaction:
    """Transaction signing through the default collaborators"""

    def test_eip155_vector(self, core, legacy_tx):
        sealed = seal_for_test(bytes.fromhex(EIP155_PRIV_KEY))
        signed = core.sign_transaction(legacy_tx, sealed, TEST_PASSWORD)

        assert signed.raw_tx == "0x" + EIP155_SIGNED
        assert signed.txid == "0x" + keccak256(bytes.fromhex(EIP155_SIGNED)).hex()

    def test_legacy_recovers_signer(self, core, legacy_tx, sealed_key):
        signed = core.sign_transaction(legacy_tx, sealed_key, TEST_PASSWORD)
        assert _recovered_tx_sender(signed) == TEST_ADDRESSES[0]

    def test_fee_market_recovers_signer(self, core, fee_market_tx, sealed_key):
        signed = core.sign_transaction(fee_market_tx, sealed_key, TEST_PASSWORD)

        assert signed.raw_tx.startswith("0x02")
        assert _recovered_tx_sender(signed) == TEST_ADDRESSES[0]

    def test_deploy_recovers_signer(self, core, fee_market_tx, sealed_key):
        del fee_market_tx["to"]
        signed = core.sign_transaction(fee_market_tx, sealed_key, TEST_PASSWORD)
        assert _recovered_tx_sender(signed) == TEST_ADDRESSES[0]

    def test_signing_is_deterministic(self, core, legacy_tx, sealed_key):
        first = core.sign_transaction(legacy_tx, sealed_key, TEST_PASSWORD)
        second = core.sign_transaction(legacy_tx, sealed_key, TEST_PASSWORD)
        assert first == second

    def test_missing_field_fails_before_signing(self, legacy_tx):
        signer = MagicMock()
        core = EvmChainCore(signer=signer)
        del legacy_tx["nonce"]

        with pytest.raises(MissingFieldError):
            core.sign_transaction(legacy_tx, "handle", TEST_PASSWORD)
        signer.assert_not_called()

    def test_wrong_password(self, core, legacy_tx, sealed_key):
        with pytest.raises(DecryptionError):
            core.sign_transaction(legacy_tx, sealed_key, "not the password")

    def test_password_required(self, core, legacy_tx, sealed_key):
        with pytest.raises(SigningError, match="requires a password"):
            core.sign_transaction(legacy_tx, sealed_key, None)

    def test_signed_transaction_is_logged(self, core, legacy_tx, sealed_key, caplog):
        with caplog.at_level(logging.INFO, logger="evm_signing_core"):
            signed = core.sign_transaction(legacy_tx, sealed_key, TEST_PASSWORD)
        assert signed.txid in caplog.text
        assert TEST_PASSWORD not in caplog.text
        assert sealed_key not in caplog.text


class TestCustomSigner:
    """The signer primitive is a replaceable collaborator"""

    def test_signer_called_with_digest(self, legacy_tx):
        signer = MagicMock(return_value=RawSignature(r=1, s=2, recovery_id=0))
        core = EvmChainCore(signer=signer)

        core.sign_transaction(legacy_tx, "handle", "pw")

        args, kwargs = signer.call_args
        assert args[:2] == ("handle", "pw")
        assert len(args[2]) == 32
        assert kwargs == {"curve": "secp256k1"}

    def test_failing_signer_is_wrapped(self, legacy_tx):
        signer = MagicMock(side_effect=RuntimeError("hsm offline"))
        core = EvmChainCore(signer=signer)

        with pytest.raises(SigningPrimitiveError) as exc_info:
            core.sign_transaction(legacy_tx, "handle", "pw")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_signing_errors_pass_through(self, legacy_tx):
        signer = MagicMock(side_effect=DecryptionError("bad password"))
        core = EvmChainCore(signer=signer)

        with pytest.raises(DecryptionError):
            core.sign_transaction(legacy_tx, "handle", "pw")

    def test_mapping_result_is_accepted(self, legacy_tx):
        signer = MagicMock(return_value={"r": "0x01", "s": "0x02", "recovery_id": 1})
        core = EvmChainCore(signer=signer)
        signed = core.sign_transaction(legacy_tx, "handle", "pw")
        assert signed.raw_tx.startswith("0x")

    def test_malformed_result_is_rejected(self, legacy_tx):
        signer = MagicMock(return_value={"r": "0x01", "s": "0x02", "recovery_id": 5})
        core = EvmChainCore(signer=signer)

        with pytest.raises(SigningPrimitiveError):
            core.sign_transaction(legacy_tx, "handle", "pw")


class TestSignMessage:
    """Message signing"""

    def test_personal_sign(self, core, sealed_key):
        signature = core.sign_message(
            {"type": MessageType.PERSONAL_SIGN, "message": "hello"}, sealed_key, TEST_PASSWORD
        )

        assert len(signature) == 132
        assert signature[-2:] in ("1b", "1c")
        recovered = Account.recover_message(encode_defunct(text="hello"), signature=signature)
        assert recovered.lower() == TEST_ADDRESSES[0]

    def test_typed_data_v4(self, core, sealed_key):
        signature = core.sign_message(
            {"type": MessageType.TYPED_DATA_V4, "message": MAIL_TYPED_DATA},
            sealed_key,
            TEST_PASSWORD,
        )
        recovered = Account.recover_message(
            encode_typed_data(full_message=MAIL_TYPED_DATA), signature=signature
        )
        assert recovered.lower() == TEST_ADDRESSES[0]

    def test_eth_sign(self, core, sealed_key):
        digest = keccak256(b"raw digest")
        signature = core.sign_message(
            {"type": MessageType.ETH_SIGN, "message": "0x" + digest.hex()},
            sealed_key,
            TEST_PASSWORD,
        )

        raw = bytes.fromhex(signature[2:])
        recovered = recover_address(
            digest, RawSignature(r=raw[:32], s=raw[32:64], recovery_id=raw[64] - 27)
        )
        assert recovered == TEST_ADDRESSES[0]

    def test_rewritten_message_signs_repaired_text(self, core, sealed_key):
        broken = '{"message": {"value1": "x"}}'
        repaired = '{"message":{"value1":"x","value":"x"}}'

        signature = core.sign_message(
            {"type": MessageType.PERSONAL_SIGN, "message": broken}, sealed_key, TEST_PASSWORD
        )
        recovered = Account.recover_message(encode_defunct(text=repaired), signature=signature)
        assert recovered.lower() == TEST_ADDRESSES[0]

    def test_rewrite_disabled_by_config(self, sealed_key):
        core = EvmChainCore(config=CoreConfig(message_compat_rewrite=False))
        broken = '{"message": {"value1": "x"}}'

        signature = core.sign_message(
            {"type": MessageType.PERSONAL_SIGN, "message": broken}, sealed_key, TEST_PASSWORD
        )
        recovered = Account.recover_message(encode_defunct(text=broken), signature=signature)
        assert recovered.lower() == TEST_ADDRESSES[0]

    def test_invalid_message(self, core, sealed_key):
        with pytest.raises(InvalidMessageError):
            core.sign_message(
                {"type": MessageType.ETH_SIGN, "message": "hello"}, sealed_key, TEST_PASSWORD
            )

    def test_signing_material_usage(self, core, sealed_key):
        material = SigningMaterial(private_key_handle=sealed_key, password=TEST_PASSWORD)
        signature = core.sign_message(
            {"type": MessageType.PERSONAL_SIGN, "message": "hi"},
            material.private_key_handle,
            material.password,
        )
        assert len(signature) == 132
        assert repr(material) == "SigningMaterial(<redacted>)"
        assert TEST_PASSWORD not in repr(material)


class TestKeys:
    """Address helpers for raw private keys"""

    @pytest.mark.parametrize("private_key", [TEST_PRIV_KEY, "0x" + TEST_PRIV_KEY])
    def test_address_from_private(self, core, private_key):
        record = core.get_address_from_private(private_key)
        assert record.address == TEST_ADDRESSES[0]
        assert record.path is None
        assert len(record.public_key) == 66

    def test_public_key_round_trip(self, core):
        public_key = core.get_public_from_private(TEST_PRIV_KEY)
        assert core.get_address_from_public(public_key) == TEST_ADDRESSES[0]
        assert core.get_address_from_public(bytes.fromhex(public_key)) == TEST_ADDRESSES[0]

    @pytest.mark.parametrize("private_key", [
        "",
        "abc",
        TEST_PRIV_KEY[:-2],
        TEST_PRIV_KEY + "00",
        "zz" * 32,
        None,
    ])
    def test_invalid_private_key(self, core, private_key):
        with pytest.raises(InvalidKeyError, match="Invalid EVM private key"):
            core.get_address_from_private(private_key)


class TestChainDispatch:
    """Selecting a core by chain family"""

    @pytest.mark.parametrize("family", ["evm", ChainFamily.EVM])
    def test_evm_family(self, family):
        core = get_chain_core(family)
        assert isinstance(core, EvmChainCore)
        assert repr(core) == "EvmChainCore(curve='secp256k1')"

    def test_kwargs_reach_the_core(self):
        config = CoreConfig(derivation_workers=4)
        core = get_chain_core(ChainFamily.EVM, config=config)
        assert core.config is config

    @pytest.mark.parametrize("family", ["solana", "", "EVM"])
    def test_unsupported_family(self, family):
        with pytest.raises(UnsupportedChainError):
            get_chain_core(family)


def test_seal_secret_uses_configured_limits(core, legacy_tx):
    handle = core.seal_secret(bytes.fromhex(TEST_PRIV_KEY), TEST_PASSWORD)
    signed = core.sign_transaction(legacy_tx, handle, TEST_PASSWORD)
    assert _recovered_tx_sender(signed) == TEST_ADDRESSES[0]


def test_seal_secret_for_hd_seed(core):
    handle = core.seal_secret(seed_from_mnemonic(TEST_MNEMONIC, ""), TEST_PASSWORD)
    records = core.get_addresses_from_hd(handle, TEST_PASSWORD, TEST_TEMPLATE, [1])
    assert records[0].address == TEST_ADDRESSES[1]
