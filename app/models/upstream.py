"""
models/upstream.py
Shapes exchanged with the Assistants API. Only the fields the relay reads
are modelled; everything else in the provider payloads is ignored.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field

from app.models.response import UpstreamErrorDetail


# ── Event names ──────────────────────────────────────────────────────────────

RUN_CREATED = "thread.run.created"
MESSAGE_DELTA = "thread.message.delta"
RUN_COMPLETED = "thread.run.completed"
DONE = "done"

TERMINAL_EVENTS = frozenset({RUN_COMPLETED, DONE})


# ── Event payloads ───────────────────────────────────────────────────────────

class RunCreated(BaseModel):
    thread_id: str = ""


class TextContent(BaseModel):
    value: str = ""


class ContentFragment(BaseModel):
    index: int = 0
    type: str = ""
    text: Optional[TextContent] = None


class DeltaBody(BaseModel):
    content: list[ContentFragment] = Field(default_factory=list)


class MessageDelta(BaseModel):
    delta: DeltaBody = Field(default_factory=DeltaBody)

    def text_values(self) -> list[str]:
        return [
            fragment.text.value
            for fragment in self.delta.content
            if fragment.type == "text" and fragment.text is not None
        ]


class UpstreamErrorBody(BaseModel):
    error: UpstreamErrorDetail = Field(default_factory=UpstreamErrorDetail)


# ── Request payload ──────────────────────────────────────────────────────────

def run_payload(assistant_id: str, messages: list[dict[str, Any]], thread_id: str = "") -> dict[str, Any]:
    """Body for POST /threads/runs. thread_id is sent only when non-empty."""
    payload: dict[str, Any] = {
        "assistant_id": assistant_id,
        "thread": {"messages": messages},
        "stream": True,
    }
    if thread_id:
        payload["thread_id"] = thread_id
    return payload
