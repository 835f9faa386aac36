"""Shared test helpers: upstream SSE builders and a fake Assistants API."""

from __future__ import annotations

import asyncio
import json

import httpx


def sse(event: str, data) -> str:
    """One upstream SSE record: event line, data line, blank separator."""
    payload = data if isinstance(data, str) else json.dumps(data)
    return f"event: {event}\ndata: {payload}\n\n"


def run_created(thread_id: str) -> str:
    return sse("thread.run.created", {"id": "run_1", "object": "thread.run", "thread_id": thread_id})


def text_delta(*values: str) -> str:
    content = [
        {"index": i, "type": "text", "text": {"value": v, "annotations": []}}
        for i, v in enumerate(values)
    ]
    return sse("thread.message.delta", {"id": "msg_1", "object": "thread.message.delta", "delta": {"content": content}})


def run_completed() -> str:
    return sse("thread.run.completed", {"id": "run_1", "status": "completed"})


class FakeUpstream:
    """Records outbound requests and replies with a canned response."""

    def __init__(self, status_code: int = 200, chunks=(), body: bytes | None = None, exc=None, stream=None):
        self.status_code = status_code
        self.chunks = list(chunks)
        self.body = body
        self.exc = exc
        self.stream = stream
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if self.stream is not None:
            return httpx.Response(self.status_code, headers={"content-type": "text/event-stream"}, stream=self.stream)
        if self.body is not None:
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(
            self.status_code,
            headers={"content-type": "text/event-stream"},
            content=self._stream(),
        )

    async def _stream(self):
        for chunk in self.chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk

    @property
    def payload(self) -> dict:
        return json.loads(self.requests[0].content)




class TrackingStream(httpx.AsyncByteStream):
    """Upstream body that records whether the relay closed it.

    With `hang=True` it blocks after the given chunks, like a run that
    stalls mid-reply.
    """

    def __init__(self, *chunks: str, hang: bool = False):
        self.chunks = chunks
        self.hang = hang
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk.encode("utf-8")
        if self.hang:
            await asyncio.Event().wait()

    async def aclose(self) -> None:
        self.closed = True
