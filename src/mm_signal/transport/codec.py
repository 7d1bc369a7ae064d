"""
Decoding and encoding of WebSocket text frames.

A frame is either an event envelope::

    {"event": "posted", "data": {...}, "broadcast": {...}, "seq": 4}

or a reply to a command we sent::

    {"status": "OK", "seq_reply": 1}

The two share no discriminator, so the shape of the object decides.
"""

import json
from typing import Any, Union

from pydantic import ValidationError

from mm_signal.errors import DecodeError
from mm_signal.models.envelope import Broadcast, Envelope, Reply
from mm_signal.models.events import EVENT_TYPES, Ignored
from mm_signal.models.fields import WireFormat

TAG_KEY = "event"

Message = Union[Envelope, Reply]


def decode_frame(text: Union[str, bytes], *, wire: WireFormat = WireFormat.CURRENT) -> Message:
    """Decode one text frame. Raises DecodeError, never anything else."""
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Frame is not valid JSON: {e}") from e
    except RecursionError as e:
        raise DecodeError("Frame is nested too deeply") from e
    return decode_message(raw, wire=wire)


def decode_message(raw: Any, *, wire: WireFormat = WireFormat.CURRENT) -> Message:
    """Decode an already parsed JSON value."""
    if not isinstance(raw, dict):
        raise DecodeError(f"Frame is a JSON {type(raw).__name__}, expected an object")
    try:
        if TAG_KEY in raw:
            return _decode_envelope(raw, wire)
        if "status" in raw and "seq_reply" in raw:
            return Reply.model_validate(raw)
    except ValidationError as e:
        what = raw.get(TAG_KEY, "reply")
        raise DecodeError(
            f"Invalid {what!s} payload ({e.error_count()} error(s)): {e.errors()[0]['msg']}",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e
    except RecursionError as e:
        raise DecodeError("Frame payload is nested too deeply") from e
    raise DecodeError("Frame is neither an event nor a reply", details={"keys": sorted(raw)})


def _decode_envelope(raw: dict[str, Any], wire: WireFormat) -> Envelope:
    tag = raw[TAG_KEY]
    if not isinstance(tag, str):
        raise DecodeError(f"Event tag must be a string, got {type(tag).__name__}")
    data = raw.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DecodeError(f"Event data for {tag!r} must be an object")

    model = EVENT_TYPES.get(tag)
    event = Ignored(event=tag) if model is None else model.model_validate(data, context={"wire": wire})
    return Envelope(
        event=event,
        broadcast=Broadcast.model_validate(raw.get("broadcast") or {}),
        seq=raw.get("seq", 0),
    )


def envelope_to_dict(envelope: Envelope, *, wire: WireFormat = WireFormat.CURRENT) -> dict[str, Any]:
    event = envelope.event
    if isinstance(event, Ignored):
        data: dict[str, Any] = {}
    else:
        data = event.model_dump(mode="json", by_alias=True, context={"wire": wire})
    return {
        TAG_KEY: event.tag,
        "data": data,
        "broadcast": envelope.broadcast.model_dump(mode="json"),
        "seq": envelope.seq,
    }


def encode_envelope(envelope: Envelope, *, wire: WireFormat = WireFormat.CURRENT) -> str:
    """Encode an envelope the way a server of the given wire format would send it."""
    return json.dumps(envelope_to_dict(envelope, wire=wire), separators=(",", ":"))
