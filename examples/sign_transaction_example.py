#!/usr/bin/env python3
"""
Example of signing transactions and messages with the EVM signing core.
"""
import os
import logging

from evm_signing_core import MessageType, get_chain_core
from evm_signing_core.utils import strip_0x

from env_config import config_from_env

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("sign_transaction_example")


def main():
    """
    Demonstrate transaction and message signing.

    This example shows how to:
    1. Build a core from environment configuration
    2. Seal a raw private key under a password
    3. Sign a legacy and a priority-fee transaction
    4. Sign a personal message
    """
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    PASSWORD = os.environ.get("KEY_PASSWORD", "example password")

    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    core = get_chain_core("evm", config=config_from_env(), logger=logger)

    # Only the sealed handle is kept around
    record = core.get_address_from_private(PRIVATE_KEY)
    handle = core.seal_secret(bytes.fromhex(strip_0x(PRIVATE_KEY)), PASSWORD)
    print(f"Signing as {record.address}")

    legacy = core.sign_transaction({
        "to": "0x3535353535353535353535353535353535353535",
        "nonce": 0,
        "gasLimit": 21000,
        "gasPrice": 20 * 10**9,
        "value": 10**16,
        "chainId": 11155111,
    }, handle, PASSWORD)
    print(f"Legacy transaction {legacy.txid}")
    print(f"  raw: {legacy.raw_tx}")

    fee_market = core.sign_transaction({
        "to": "0x3535353535353535353535353535353535353535",
        "nonce": "0x1",
        "gas": "0x5208",
        "maxFeePerGas": "0x77359400",
        "maxPriorityFeePerGas": "0x3b9aca00",
        "value": "10000000000000000",
        "chainId": 11155111,
    }, handle, PASSWORD)
    print(f"Priority-fee transaction {fee_market.txid}")
    print(f"  raw: {fee_market.raw_tx}")

    signature = core.sign_message(
        {"type": MessageType.PERSONAL_SIGN, "message": "Hello from the signing core"},
        handle,
        PASSWORD,
    )
    print(f"Message signature: {signature}")


if __name__ == "__main__":
    main()
