"""
Transaction canonicalization.

Turns an ``EncodedTransaction`` into the immutable record that the codec
serializes, hashes and finally re-serializes with a signature attached.
"""
import logging
from typing import Any, List, Mapping, Optional, Union

from pydantic import TypeAdapter

from ._rate_limited_log import rate_limited_log
from .exceptions import MissingFieldError
from .models import (
    CanonicalTransaction,
    EncodedTransaction,
    FeeMarketTransaction,
    LegacyTransaction,
)
from .utils import to_min_hex

logger = logging.getLogger(__name__)

_canonical_adapter = TypeAdapter(CanonicalTransaction)

DEPLOY_VALUE_WARNING = "Contract deployment with non-zero value; value forced to 0x0"


def _require(tx: EncodedTransaction) -> None:
    missing: List[str] = []
    if tx.nonce is None:
        missing.append("nonce")
    if tx.effective_gas_limit is None:
        missing.append("gasLimit")
    if tx.chain_id is None:
        missing.append("chainId")
    if tx.is_fee_market:
        if tx.max_fee_per_gas is None:
            missing.append("maxFeePerGas")
        if tx.max_priority_fee_per_gas is None:
            missing.append("maxPriorityFeePerGas")
    elif tx.gas_price is None:
        missing.append("gasPrice")
    if missing:
        raise MissingFieldError(missing)


def canonicalize(
    tx: Union[EncodedTransaction, Mapping[str, Any]],
    logger_instance: Optional[logging.Logger] = None,
    warning_interval: int = 60,
) -> Union[LegacyTransaction, FeeMarketTransaction]:
    """
    Build the canonical, signable form of a transaction.

    Args:
        tx: Encoded transaction (model or camelCase mapping)
        logger_instance: Logger for diagnostics (defaults to module logger)
        warning_interval: Seconds between repeated deploy-value warnings

    Returns:
        ``LegacyTransaction`` (type 0) or ``FeeMarketTransaction`` (type 2)

    Raises:
        MissingFieldError: If nonce, gasLimit, chainId or the selected fee
            model's fields are absent
        pydantic.ValidationError: If a field is present but malformed
    """
    log = logger_instance or logger
    if not isinstance(tx, EncodedTransaction):
        tx = EncodedTransaction.model_validate(tx)

    _require(tx)

    value = to_min_hex(tx.value if tx.value is not None else 0)
    if tx.to is None:
        # No recipient: this is a contract deployment
        if value != "0x0":
            rate_limited_log(
                DEPLOY_VALUE_WARNING,
                level="warning",
                interval=warning_interval,
                logger_instance=log,
            )
        else:
            log.debug("Contract deployment transaction, value is 0x0")
        value = "0x0"

    base = {
        "to": tx.to,
        "nonce": to_min_hex(tx.nonce),
        "gasLimit": to_min_hex(tx.effective_gas_limit),
        "value": value,
        "data": tx.data or "0x",
        "chainId": tx.chain_id,
    }

    if tx.is_fee_market:
        base.update(
            type=2,
            maxFeePerGas=to_min_hex(tx.max_fee_per_gas),
            maxPriorityFeePerGas=to_min_hex(tx.max_priority_fee_per_gas),
        )
    else:
        base.update(type=0, gasPrice=to_min_hex(tx.gas_price))

    return _canonical_adapter.validate_python(base)
