"""
Configuration for the EVM signing core.

Settings are passed to the core explicitly; the core has no environment or
file surface of its own.
"""
import nacl.pwhash
from pydantic import BaseModel, ConfigDict, Field


class CoreConfig(BaseModel):
    """
    Tunables for signing and derivation.

    Attributes:
        derivation_workers: Threads used to map derived public keys to addresses
            (1 means sequential)
        message_compat_rewrite: Apply the ``value1`` -> ``value`` JSON rewrite
            before hashing textual messages
        kdf_opslimit: Argon2id operations limit for sealing secrets
        kdf_memlimit: Argon2id memory limit (bytes) for sealing secrets
        deploy_warning_interval: Seconds between repeated contract-deploy
            value override warnings
    """
    model_config = ConfigDict(frozen=True)

    derivation_workers: int = Field(default=1, ge=1, le=64)
    message_compat_rewrite: bool = True
    kdf_opslimit: int = Field(
        default=nacl.pwhash.argon2id.OPSLIMIT_INTERACTIVE,
        ge=nacl.pwhash.argon2id.OPSLIMIT_MIN,
    )
    kdf_memlimit: int = Field(
        default=nacl.pwhash.argon2id.MEMLIMIT_INTERACTIVE,
        ge=nacl.pwhash.argon2id.MEMLIMIT_MIN,
    )
    deploy_warning_interval: int = Field(default=60, ge=1)


DEFAULT_CONFIG = CoreConfig()
