#!/usr/bin/env python3
"""
Example of deriving HD wallet addresses in a batch.
"""
import os
import sys

from eth_account.hdaccount import seed_from_mnemonic

from evm_signing_core import CoreConfig, DerivationError, EvmChainCore


def main():
    """
    Derive the first addresses of a mnemonic.

    MNEMONIC and DERIVATION_PATH can be set in the environment; the path must
    contain an {index} placeholder.
    """
    mnemonic = os.environ.get(
        "MNEMONIC", "test test test test test test test test test test test junk"
    )
    template = os.environ.get("DERIVATION_PATH", "m/44'/60'/0'/0/{index}")
    count = int(os.environ.get("ADDRESS_COUNT", "5"))
    password = "example password"

    core = EvmChainCore(config=CoreConfig(derivation_workers=4))
    sealed_seed = core.seal_secret(seed_from_mnemonic(mnemonic, ""), password)

    try:
        records = core.get_addresses_from_hd(sealed_seed, password, template, list(range(count)))
    except DerivationError as e:
        print(f"Derivation failed: {e}")
        sys.exit(1)

    for record in records:
        print(f"{record.path:<24} {record.address}  {record.public_key}")


if __name__ == "__main__":
    main()
