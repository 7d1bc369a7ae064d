"""
Field adapters for the quirks of the Mattermost wire format.

- Nested objects that older servers send as a JSON *string* holding JSON text
  (``EmbeddedJson``). Both forms are accepted on input.
- Integer timestamps whose unit is fixed per field and per wire format
  (``Timestamp``, ``MillisTimestamp``).
- Sets that travel as a single space-separated string (``StringSet``).

The wire format is read from the pydantic validation/serialization context:
``model_validate(data, context={"wire": WireFormat.LEGACY})``.
"""

import json
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Any, Optional, TypeVar, Union

from pydantic import (
    BeforeValidator,
    PlainSerializer,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    ValidationInfo,
    WrapSerializer,
)

T = TypeVar("T")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class WireFormat(str, Enum):
    CURRENT = "current"  # millisecond timestamps, nested payloads as plain JSON
    LEGACY = "legacy"    # second timestamps, nested payloads embedded as strings


def wire_format(info: Union[ValidationInfo, SerializationInfo, None]) -> WireFormat:
    context = getattr(info, "context", None) or {}
    return WireFormat(context.get("wire", WireFormat.CURRENT))


# --- embedded JSON ----------------------------------------------------------

def _unwrap_embedded(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"embedded JSON is not valid: {e.msg}") from e
        except RecursionError as e:
            raise ValueError("embedded JSON is nested too deeply") from e
    return value


def _embed(value: Any, handler: SerializerFunctionWrapHandler, info: SerializationInfo) -> Any:
    data = handler(value)
    if wire_format(info) is WireFormat.LEGACY:
        return json.dumps(data, separators=(",", ":"))
    return data


EmbeddedJson = Annotated[T, BeforeValidator(_unwrap_embedded), WrapSerializer(_embed)]


# --- timestamps -------------------------------------------------------------

def _from_epoch(value: Any, unit: timedelta) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("timestamp must be an integer")
    try:
        return EPOCH + value * unit
    except OverflowError as e:
        raise ValueError(f"timestamp {value} is out of range") from e


def _to_epoch(value: datetime, unit: timedelta) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // unit


def _unit(info: Union[ValidationInfo, SerializationInfo]) -> timedelta:
    if wire_format(info) is WireFormat.LEGACY:
        return timedelta(seconds=1)
    return timedelta(milliseconds=1)


def _validate_timestamp(value: Any, info: ValidationInfo) -> datetime:
    return _from_epoch(value, _unit(info))


def _serialize_timestamp(value: datetime, info: SerializationInfo) -> int:
    return _to_epoch(value, _unit(info))


def _validate_millis(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return _from_epoch(value, timedelta(milliseconds=1))


def _serialize_millis(value: Optional[datetime]) -> Optional[int]:
    if value is None:
        return None
    return _to_epoch(value, timedelta(milliseconds=1))


# Entity timestamps: milliseconds on the current wire format, whole seconds on the legacy one.
Timestamp = Annotated[datetime, BeforeValidator(_validate_timestamp), PlainSerializer(_serialize_timestamp, return_type=int)]

# Bookkeeping timestamps that have always been sent in milliseconds.
MillisTimestamp = Annotated[
    Optional[datetime],
    BeforeValidator(_validate_millis),
    PlainSerializer(_serialize_millis, return_type=Optional[int]),
]


# --- string sets ------------------------------------------------------------

def _split_words(value: Any) -> Any:
    if value is None:
        return set()
    if isinstance(value, str):
        return set(value.split())
    return value


def _join_words(value: set[str]) -> str:
    return " ".join(sorted(value))


StringSet = Annotated[set[str], BeforeValidator(_split_words), PlainSerializer(_join_words, return_type=str)]


# --- optional ids -----------------------------------------------------------

# An empty string on the wire means "not set".
BlankAsNone = Annotated[
    Optional[str],
    BeforeValidator(lambda value: value or None),
    PlainSerializer(lambda value: value or "", return_type=str),
]
