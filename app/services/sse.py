"""
services/sse.py

Line-level helpers for the upstream Server-Sent Events body.

The upstream body is consumed as a lazy, non-restartable sequence of lines.
Records are an `event: <name>` line immediately followed by a `data: <json>`
line, so the relay pulls the data line itself right after it sees an event
it cares about.
"""

from collections.abc import AsyncIterator
from typing import Optional

import httpx
from pydantic import ValidationError

from app.core.errors import StreamDecodeError, StreamReadError
from app.models.upstream import MessageDelta, RunCreated

EVENT_PREFIX = "event:"
DATA_MARKER = "data: "


async def split_lines(chunks: AsyncIterator[str]) -> AsyncIterator[str]:
    """
    Split decoded body text on "\\n" only, dropping a trailing "\\r".

    `str.splitlines` (and httpx `aiter_lines`) also breaks on U+2028, U+0085
    and friends, which JSON allows unescaped inside strings.
    """
    buffer = ""
    async for text in chunks:
        buffer += text
        *complete, buffer = buffer.split("\n")
        for line in complete:
            yield line.rstrip("\r")
    if buffer:
        yield buffer.rstrip("\r")


class UpstreamLines:
    """Pull-based reader over an async line iterator (see `split_lines`)."""

    def __init__(self, lines: AsyncIterator[str]):
        self._lines = lines.__aiter__()
        self.exhausted = False

    async def next_line(self) -> Optional[str]:
        """Next line without its newline, or None once the body has ended."""
        if self.exhausted:
            return None
        try:
            return await self._lines.__anext__()
        except StopAsyncIteration:
            self.exhausted = True
            return None
        except (httpx.RequestError, httpx.StreamError) as e:
            self.exhausted = True
            raise StreamReadError(f"Upstream read failed: {type(e).__name__}: {e}") from e


def event_name(line: str) -> Optional[str]:
    if not line.startswith(EVENT_PREFIX):
        return None
    return line[len(EVENT_PREFIX):].strip()


def has_data_marker(line: str) -> bool:
    return line.startswith(DATA_MARKER)


def strip_data_marker(line: str) -> str:
    if line.startswith(DATA_MARKER):
        line = line[len(DATA_MARKER):]
    return line.strip()


def parse_run_created(raw: str) -> str:
    """Return the thread id carried by a thread.run.created payload."""
    try:
        event = RunCreated.model_validate_json(raw)
    except ValidationError as e:
        raise StreamDecodeError(f"Invalid thread.run.created payload: {e.errors()[0]['msg']}") from e
    if not event.thread_id:
        raise StreamDecodeError("thread.run.created payload has no thread_id")
    return event.thread_id


def parse_message_delta(raw: str) -> list[str]:
    """Return the text values of a thread.message.delta payload, in order."""
    try:
        event = MessageDelta.model_validate_json(raw)
    except ValidationError as e:
        raise StreamDecodeError(f"Invalid thread.message.delta payload: {e.errors()[0]['msg']}") from e
    return event.text_values()
