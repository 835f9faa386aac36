"""
services/framing.py

Serializes relay events for the client connection.

  legacy   : {"thread_id":"..."}\\n  then raw text fragments, no envelope
  envelope : one JSON object per line  {"kind": "session"|"text"|"error", "value": ...}
"""

import json
from typing import Any

from app.core.config import StreamFormat
from app.core.errors import RelayError
from app.models.response import ClientEvent, SessionAnnounced, TextDelta

MEDIA_TYPES: dict[str, str] = {
    "legacy": "text/plain; charset=utf-8",
    "envelope": "application/x-ndjson",
}


def _line(obj: dict[str, Any]) -> bytes:
    return (json.dumps(obj, ensure_ascii=False, separators=(",", ":")) + "\n").encode("utf-8")


def encode_event(event: ClientEvent, fmt: StreamFormat) -> bytes:
    if fmt == "envelope":
        if isinstance(event, SessionAnnounced):
            return _line({"kind": "session", "value": event.thread_id})
        return _line({"kind": "text", "value": event.value})

    if isinstance(event, SessionAnnounced):
        return _line({"thread_id": event.thread_id})
    if isinstance(event, TextDelta):
        return event.value.encode("utf-8")
    raise TypeError(f"Unknown client event: {event!r}")


def encode_error(exc: RelayError, fmt: StreamFormat) -> bytes:
    """Trailer for failures after streaming began; the HTTP status is already sent."""
    if fmt == "envelope":
        return _line({"kind": "error", "value": exc.to_envelope()})
    return _line({"error": exc.message})


def media_type(fmt: StreamFormat) -> str:
    return MEDIA_TYPES[fmt]
