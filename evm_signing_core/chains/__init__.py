"""
Chain family dispatch.

Each chain family maps to one concrete core; callers select it by tag
instead of subclassing a shared base.
"""
from enum import Enum
from typing import Any, Callable, Dict, Union

from ..exceptions import UnsupportedChainError
from .base import ChainCore
from .evm import EvmChainCore

__all__ = ['ChainFamily', 'ChainCore', 'EvmChainCore', 'get_chain_core']


class ChainFamily(str, Enum):
    """Chain families with a signing core."""
    EVM = "evm"


_registry: Dict[ChainFamily, Callable[..., ChainCore]] = {
    ChainFamily.EVM: EvmChainCore,
}


def get_chain_core(family: Union[ChainFamily, str], **kwargs: Any) -> ChainCore:
    """
    Build the signing core for a chain family.

    Args:
        family: Chain family tag, e.g. ``ChainFamily.EVM`` or ``"evm"``
        **kwargs: Passed to the core constructor (config, signer, logger, ...)

    Raises:
        UnsupportedChainError: If no core is registered for ``family``
    """
    try:
        factory = _registry[ChainFamily(family)]
    except (KeyError, ValueError) as e:
        raise UnsupportedChainError(f"No signing core for chain family: {family!r}") from e
    return factory(**kwargs)
