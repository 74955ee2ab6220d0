"""
Pytest fixtures for the EVM signing core tests.
"""
import pytest
import nacl.pwhash
from eth_account.hdaccount import seed_from_mnemonic

from evm_signing_core import CoreConfig, EvmChainCore
from evm_signing_core.credentials import seal_secret
from evm_signing_core._rate_limited_log import reset_rate_limits

# Well-known development accounts ("test test ... junk", m/44'/60'/0'/0/i)
TEST_MNEMONIC = "test test test test test test test test test test test junk"
TEST_PRIV_KEY = "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESSES = [
    "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266",
    "0x70997970c51812dc3a010c7d01b50e0d17dc79c8",
    "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc",
]
TEST_TEMPLATE = "m/44'/60'/0'/0/{index}"
TEST_PASSWORD = "correct horse battery staple"
TEST_RECIPIENT = "0x3535353535353535353535353535353535353535"

# The "Mail" example from EIP-712
MAIL_TYPED_DATA = {
    "types": {
        "EIP712Domain": [
            {"name": "name", "type": "string"},
            {"name": "version", "type": "string"},
            {"name": "chainId", "type": "uint256"},
            {"name": "verifyingContract", "type": "address"},
        ],
        "Person": [
            {"name": "name", "type": "string"},
            {"name": "wallet", "type": "address"},
        ],
        "Mail": [
            {"name": "from", "type": "Person"},
            {"name": "to", "type": "Person"},
            {"name": "contents", "type": "string"},
        ],
    },
    "primaryType": "Mail",
    "domain": {
        "name": "Ether Mail",
        "version": "1",
        "chainId": 1,
        "verifyingContract": "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC",
    },
    "message": {
        "from": {"name": "Cow", "wallet": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826"},
        "to": {"name": "Bob", "wallet": "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"},
        "contents": "Hello, Bob!",
    },
}
MAIL_DIGEST = "be609aee343fb3c4b28e1df9e632fca64fcfaede20f02e86244efddf30957bd2"

# EIP-155 example transaction signed with key 0x4646...46
EIP155_PRIV_KEY = "46" * 32
EIP155_SIGNED = (
    "f86c098504a817c800825208943535353535353535353535353535353535353535"
    "880de0b6b3a76400008025a028ef61340bd939bc2195fe537567866003e1a15d3c"
    "71ff63e1590620aa636276a067cbe9d8997f761aecb703304b3800ccf555c9f3dc"
    "64214b297fb1966a3b6d83"
)

# Cheapest argon2id parameters so sealing stays fast in tests
FAST_OPSLIMIT = nacl.pwhash.argon2id.OPSLIMIT_MIN
FAST_MEMLIMIT = nacl.pwhash.argon2id.MEMLIMIT_MIN


def seal_for_test(secret: bytes, password: str = TEST_PASSWORD) -> str:
    """Seal a secret with the fast test KDF parameters"""
    return seal_secret(secret, password, opslimit=FAST_OPSLIMIT, memlimit=FAST_MEMLIMIT)


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Each test starts with no suppressed log messages"""
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def core():
    """A core with default collaborators"""
    return EvmChainCore(config=CoreConfig(kdf_opslimit=FAST_OPSLIMIT, kdf_memlimit=FAST_MEMLIMIT))


@pytest.fixture(scope="session")
def sealed_key():
    """The first development account key, sealed under TEST_PASSWORD"""
    return seal_for_test(bytes.fromhex(TEST_PRIV_KEY))


@pytest.fixture(scope="session")
def sealed_seed():
    """The development mnemonic's BIP-39 seed, sealed under TEST_PASSWORD"""
    return seal_for_test(seed_from_mnemonic(TEST_MNEMONIC, ""))


@pytest.fixture
def legacy_tx():
    """A complete legacy transaction description"""
    return {
        "to": TEST_RECIPIENT,
        "nonce": 9,
        "gasLimit": 21000,
        "gasPrice": 20 * 10**9,
        "value": 10**18,
        "chainId": 1,
    }


@pytest.fixture
def fee_market_tx():
    """A complete priority-fee transaction description"""
    return {
        "to": TEST_RECIPIENT,
        "nonce": "0x1",
        "gasLimit": "0x5208",
        "maxFeePerGas": "0x77359400",
        "maxPriorityFeePerGas": "0x3b9aca00",
        "value": "1000",
        "data": "0xdeadbeef",
        "chainId": 137,
    }
