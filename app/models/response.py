"""
models/response.py
All outgoing response schemas.
Clients read these from the relay stream or from error bodies.
"""

from typing import Optional, Union, Literal
from pydantic import BaseModel, ConfigDict


# ── Client stream events ─────────────────────────────────────────────────────

class SessionAnnounced(BaseModel):
    """Thread id to send back on the next turn. Emitted at most once."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["session"] = "session"
    thread_id: str


class TextDelta(BaseModel):
    """One text fragment of the assistant reply, in arrival order."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    value: str


ClientEvent = Union[SessionAnnounced, TextDelta]


# ── Errors ───────────────────────────────────────────────────────────────────

class UpstreamErrorDetail(BaseModel):
    """Provider error object; every field may be absent."""
    message: str = ""
    type: Optional[str] = None
    param: Optional[str] = None
    code: Optional[Union[str, int]] = None


# ── Health ───────────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    assistant_configured: bool
    stream_format: str
