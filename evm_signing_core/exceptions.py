"""
Exceptions for the EVM signing core.
"""
from typing import Iterable, Optional


class EvmCoreError(Exception):
    """Base exception for all signing core errors."""
    pass


class MissingFieldError(EvmCoreError, ValueError):
    """Raised when a required transaction field is absent."""

    def __init__(self, fields: Iterable[str], message: Optional[str] = None):
        self.fields = tuple(fields)
        if message is None:
            message = f"Missing required transaction field(s): {', '.join(self.fields)}"
        super().__init__(message)


class InvalidMessageError(EvmCoreError, ValueError):
    """Raised when a message payload cannot be hashed for its message type."""
    pass


class UnsupportedChainError(EvmCoreError):
    """Raised when no core implementation exists for a chain family."""
    pass


class DerivationError(EvmCoreError):
    """Base exception for HD derivation failures."""
    pass


class InvalidPathTemplateError(DerivationError, ValueError):
    """Raised when a derivation path template has no usable index placeholder."""
    pass


class DerivationCountMismatchError(DerivationError):
    """
    Raised when the derivation primitive returns a different number of keys
    than were requested. Indicates key-store or path corruption; never retried.
    """

    def __init__(self, requested: int, returned: int):
        self.requested = requested
        self.returned = returned
        super().__init__(
            f"Unable to get public keys: requested {requested}, got {returned}"
        )


class SigningError(EvmCoreError):
    """Raised when a signature could not be produced."""
    pass


class DecryptionError(SigningError):
    """Raised when sealed key material cannot be opened (usually a wrong password)."""
    pass


class SigningPrimitiveError(SigningError):
    """Raised when the underlying curve operation fails."""
    pass


class InvalidKeyError(SigningError, ValueError):
    """Raised for malformed or wrong-length private key material."""
    pass
