"""
models/request.py
All incoming request schemas.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str = Field(..., description="Conversation role, e.g. 'user' or 'assistant'")
    content: str = Field(..., description="Message text")


class RelayRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    thread_id: Optional[str] = Field(
        None, description="Session token from a previous turn; empty starts a new thread"
    )
    messages: list[Message] = Field(..., min_length=1, description="Conversation, oldest first")

    @property
    def session_token(self) -> str:
        return (self.thread_id or "").strip()
