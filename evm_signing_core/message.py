"""
Message pre-image construction.

Maps a message signing request to the 32-byte digest the signer signs,
dispatching on the message type:

* ``ETH_SIGN``        the message already is a 32-byte digest
* ``PERSONAL_SIGN``   EIP-191 ``\\x19Ethereum Signed Message:\\n<len>`` prefix
* ``TYPED_DATA_V1``   legacy typed-data hash (array of ``{type, name, value}``)
* ``TYPED_DATA_V3/V4`` EIP-712 structured data hash
"""
import json
import logging
import math
import re
from decimal import Decimal
from typing import Any, Callable, Dict, List, Union

from eth_abi.exceptions import EncodingError
from eth_abi.packed import encode_packed
from eth_account.messages import SignableMessage, encode_defunct, encode_typed_data
from eth_utils import ValidationError as EthUtilsValidationError

from .exceptions import InvalidMessageError
from .hashing import keccak256
from .models import MessagePayload, MessageType
from .utils import hex_to_bytes, is_hex_string

logger = logging.getLogger(__name__)

Message = Union[str, Dict[str, Any], List[Any]]
MessageHasher = Callable[[MessageType, Message], bytes]


def _reject_constant(name: str) -> Any:
    # NaN / Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


_LONE_SURROGATE = re.compile(r"[\ud800-\udfff]")
_ARRAY_INDEX = re.compile(r"0|[1-9][0-9]*")
_MAX_ARRAY_INDEX = 2**32 - 2


def _js_string(value: str) -> str:
    text = json.dumps(value, ensure_ascii=False)
    return _LONE_SURROGATE.sub(lambda m: "\\u%04x" % ord(m.group()), text)


def _js_number(value: Union[int, float]) -> str:
    """
    Format a number the way ECMAScript ``Number.prototype.toString`` does.

    Integers are doubles in JavaScript, so they lose precision past 2**53.
    Non-finite values serialize as ``null``.
    """
    try:
        value = float(value)
    except OverflowError:
        return "null"
    if not math.isfinite(value):
        return "null"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    # repr() gives the shortest round-tripping digits
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * -n + digits
    e = n - 1
    mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
    return f"{sign}{mantissa}e{'+' if e > 0 else '-'}{abs(e)}"


def _js_keys(obj: Dict[str, Any]) -> List[str]:
    # Array-index keys come first, in ascending numeric order
    indices = [k for k in obj if _ARRAY_INDEX.fullmatch(k) and int(k) <= _MAX_ARRAY_INDEX]
    indices.sort(key=int)
    index_set = set(indices)
    return indices + [k for k in obj if k not in index_set]


def _js_stringify(value: Any) -> str:
    """Compact serialization with ``JSON.stringify`` layout."""
    if value is None or isinstance(value, bool):
        return json.dumps(value)
    if isinstance(value, (int, float)):
        return _js_number(value)
    if isinstance(value, str):
        return _js_string(value)
    if isinstance(value, list):
        return "[" + ",".join(_js_stringify(item) for item in value) + "]"
    return "{" + ",".join(
        _js_string(key) + ":" + _js_stringify(value[key]) for key in _js_keys(value)
    ) + "}"


def apply_compat_rewrite(message: Message) -> Message:
    """
    Repair the known malformed request ``{"message": {"value1": X}}``.

    When ``message`` is a JSON string whose ``message`` object has ``value1``
    but no ``value``, ``value`` is set to ``value1`` and the document is
    re-serialized compactly, laid out as ``JSON.stringify`` would (number
    formatting, key order, ``\\uXXXX`` for lone surrogates). Any other input,
    including text that is not JSON, is returned unchanged. Never raises.
    """
    if not isinstance(message, str):
        return message

    try:
        parsed = json.loads(message, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return message

    if not isinstance(parsed, dict):
        return message
    inner = parsed.get("message")
    if not isinstance(inner, dict) or "value1" not in inner or "value" in inner:
        return message

    inner["value"] = inner["value1"]
    try:
        rewritten = _js_stringify(parsed)
    except RecursionError:
        return message
    logger.debug("Applied value1 -> value compatibility rewrite")
    return rewritten


def hash_signable(signable: SignableMessage) -> bytes:
    """EIP-191 digest of a SignableMessage."""
    return keccak256(b"\x19" + signable.version + signable.header + signable.body)


def _load_json(message: Message) -> Any:
    if isinstance(message, str):
        try:
            return json.loads(message)
        except ValueError as e:
            raise InvalidMessageError(f"Typed data is not valid JSON: {e}") from e
    return message


def _eth_sign_hash(message: Message) -> bytes:
    if not isinstance(message, str) or not is_hex_string(message, require_prefix=True):
        raise InvalidMessageError("eth_sign message must be a 0x-prefixed hex digest")
    digest = hex_to_bytes(message)
    if len(digest) != 32:
        raise InvalidMessageError(f"eth_sign digest must be 32 bytes, got {len(digest)}")
    return digest


def _personal_sign_hash(message: Message) -> bytes:
    if not isinstance(message, str):
        raise InvalidMessageError("personal_sign message must be a string")
    if is_hex_string(message, require_prefix=True):
        data = hex_to_bytes(message)
    else:
        try:
            data = message.encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidMessageError(f"personal_sign message is not valid text: {e.reason}") from e
    return hash_signable(encode_defunct(primitive=data))


def _coerce_v1_value(type_name: str, value: Any) -> Any:
    if type_name.startswith(("uint", "int")) and isinstance(value, str):
        return int(value, 0)
    if type_name.startswith("bytes") and isinstance(value, str):
        return hex_to_bytes(value)
    return value


def _typed_data_v1_hash(message: Message) -> bytes:
    typed_data = _load_json(message)
    if not isinstance(typed_data, list) or not typed_data:
        raise InvalidMessageError("Typed data v1 must be a non-empty array")

    types, values, schema = [], [], []
    for entry in typed_data:
        if not isinstance(entry, dict) or not entry.get("name") or not entry.get("type"):
            raise InvalidMessageError("Typed data v1 entries need a type and a name")
        types.append(entry["type"])
        schema.append(f"{entry['type']} {entry['name']}")
        try:
            values.append(_coerce_v1_value(entry["type"], entry.get("value")))
        except ValueError as e:
            raise InvalidMessageError(f"Bad value for {entry['name']}: {e}") from e

    try:
        schema_hash = keccak256(encode_packed(["string"] * len(schema), schema))
        data_hash = keccak256(encode_packed(types, values))
    except Exception as e:
        # eth_abi raises a family of encoding errors for type/value mismatches
        raise InvalidMessageError(f"Cannot encode typed data v1: {e}") from e
    return keccak256(schema_hash + data_hash)


def _typed_data_hash(message: Message) -> bytes:
    full_message = _load_json(message)
    if not isinstance(full_message, dict):
        raise InvalidMessageError("Typed data must be a JSON object")
    try:
        signable = encode_typed_data(full_message=full_message)
    except (EthUtilsValidationError, EncodingError, ValueError, KeyError, TypeError) as e:
        raise InvalidMessageError(f"Cannot encode typed data: {e}") from e
    return hash_signable(signable)


_HASHERS: Dict[MessageType, Callable[[Message], bytes]] = {
    MessageType.ETH_SIGN: _eth_sign_hash,
    MessageType.PERSONAL_SIGN: _personal_sign_hash,
    MessageType.TYPED_DATA_V1: _typed_data_v1_hash,
    MessageType.TYPED_DATA_V3: _typed_data_hash,
    MessageType.TYPED_DATA_V4: _typed_data_hash,
}


def hash_message(message_type: MessageType, message: Message) -> bytes:
    """
    Default message hasher.

    Args:
        message_type: Signing scheme
        message: Raw message content (text, hex, or JSON document)

    Returns:
        32-byte digest

    Raises:
        InvalidMessageError: If the message does not fit the scheme
    """
    try:
        hasher = _HASHERS[MessageType(message_type)]
    except (KeyError, ValueError) as e:
        raise InvalidMessageError(f"Unsupported message type: {message_type}") from e
    return hasher(message)


def build_preimage(
    payload: Union[MessagePayload, Dict[str, Any]],
    hasher: MessageHasher = hash_message,
    compat_rewrite: bool = True,
) -> bytes:
    """
    Compute the digest to sign for a message payload.

    Args:
        payload: Message payload (model or ``{"type", "message"}`` mapping)
        hasher: Hashing collaborator keyed by message type
        compat_rewrite: Apply ``apply_compat_rewrite`` first

    Returns:
        32-byte digest
    """
    if not isinstance(payload, MessagePayload):
        payload = MessagePayload.model_validate(payload)

    message = payload.message
    if compat_rewrite:
        message = apply_compat_rewrite(message)
    return hasher(payload.type, message)
