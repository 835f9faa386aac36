"""
services/relay.py

Stream relay for the Assistants API.

Flow per call:
  1. Check secrets (no I/O if missing)
  2. POST /threads/runs with stream=true, exactly once, no retries
  3. Non-2xx → UpstreamError with the provider's error object
  4. 2xx    → read the SSE body line by line and yield client events:
       thread.run.created     → SessionAnnounced(thread_id)
       thread.message.delta   → TextDelta per "text" fragment
       thread.run.completed / done → stop without waiting for EOF
"""

import asyncio
import json
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, asdict
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from app.core.config import RelayConfig
from app.core.errors import StreamDecodeError, UpstreamError
from app.core.logger import get_logger, log_fields
from app.models.request import RelayRequest
from app.models.response import ClientEvent, SessionAnnounced, TextDelta, UpstreamErrorDetail
from app.models.upstream import (
    MESSAGE_DELTA,
    RUN_CREATED,
    TERMINAL_EVENTS,
    UpstreamErrorBody,
    run_payload,
)
from app.services.sse import (
    UpstreamLines,
    event_name,
    has_data_marker,
    parse_message_delta,
    parse_run_created,
    split_lines,
    strip_data_marker,
)

logger = get_logger(__name__)


@dataclass
class RelayStats:
    """Per-call counters, logged once the call ends."""
    events: int = 0
    ignored_events: int = 0
    skipped_deltas: int = 0
    text_fragments: int = 0
    text_chars: int = 0
    thread_id: Optional[str] = None
    ended_by: str = "eof"


def decode_upstream_error(raw: bytes, status_code: int) -> UpstreamErrorDetail:
    """Best-effort decode of `{"error": {...}}`; never raises."""
    try:
        detail = UpstreamErrorBody.model_validate_json(raw or b"{}").error
    except ValidationError:
        detail = _partial_error(raw)
    if not detail.message:
        detail = detail.model_copy(update={"message": f"Upstream returned HTTP {status_code}"})
    return detail


def _partial_error(raw: bytes) -> UpstreamErrorDetail:
    try:
        body = json.loads(raw)
    except ValueError:
        return UpstreamErrorDetail()
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return UpstreamErrorDetail()
    fields: dict[str, Any] = {
        k: error[k] for k in ("message", "type", "param") if isinstance(error.get(k), str)
    }
    if isinstance(error.get("code"), (str, int)):
        fields["code"] = error["code"]
    return UpstreamErrorDetail(**fields)


class StreamRelay:
    def __init__(
        self,
        config: RelayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport

    def build_payload(self, request: RelayRequest) -> dict[str, Any]:
        return run_payload(
            assistant_id=self.config.assistant_id,
            messages=[m.model_dump() for m in request.messages],
            thread_id=request.session_token,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "OpenAI-Beta": self.config.beta_header,
        }

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self.config.read_timeout,
            connect=self.config.connect_timeout,
        )

    async def stream(self, request: RelayRequest) -> AsyncIterator[ClientEvent]:
        """
        Relay one conversation turn. Events are yielded as soon as they are
        decoded; the caller writes and flushes each one before pulling the next.
        """
        self.config.require_secrets()

        payload = self.build_payload(request)
        url = self.config.runs_url
        stats = RelayStats()
        t0 = time.perf_counter()
        logger.info(
            f"Relaying {len(request.messages)} message(s) → {url} "
            f"(thread={request.session_token or 'new'})"
        )

        async with httpx.AsyncClient(timeout=self._timeout(), transport=self._transport) as client:
            upstream_request = client.build_request("POST", url, headers=self._headers(), json=payload)
            try:
                response = await client.send(upstream_request, stream=True)
            except httpx.RequestError as e:
                logger.error(f"Upstream unreachable: {type(e).__name__}: {e}")
                raise UpstreamError(
                    500,
                    UpstreamErrorDetail(message=f"{type(e).__name__}: {e}", type="upstream_unreachable"),
                ) from e

            try:
                if not response.is_success:
                    raise await self._upstream_error(response)

                async for event in self._relay_events(UpstreamLines(split_lines(response.aiter_text())), stats):
                    yield event

            except asyncio.CancelledError:
                logger.info("Client went away; closing upstream stream", extra=log_fields(thread_id=stats.thread_id))
                raise
            finally:
                await response.aclose()
                elapsed_ms = int((time.perf_counter() - t0) * 1000)
                logger.info(
                    f"Relay finished [{elapsed_ms}ms]",
                    extra=log_fields(elapsed_ms=elapsed_ms, **asdict(stats)),
                )

    async def _upstream_error(self, response: httpx.Response) -> UpstreamError:
        try:
            raw = await response.aread()
        except (httpx.RequestError, httpx.StreamError) as e:
            logger.warning(f"Could not read upstream error body: {e}")
            raw = b""
        detail = decode_upstream_error(raw, response.status_code)
        logger.warning(f"Upstream HTTP {response.status_code}: {detail.message}")
        return UpstreamError(response.status_code, detail)

    async def _relay_events(
        self,
        lines: UpstreamLines,
        stats: RelayStats,
    ) -> AsyncIterator[ClientEvent]:
        while True:
            line = await lines.next_line()
            if line is None:
                return

            logger.debug(f"Upstream line: {line!r}")
            name = event_name(line)
            if name is None:
                continue
            stats.events += 1

            if name == RUN_CREATED:
                data = await lines.next_line()
                if data is None:
                    raise StreamDecodeError("Upstream ended before thread.run.created data")
                thread_id = parse_run_created(strip_data_marker(data))
                if stats.thread_id is None:
                    stats.thread_id = thread_id
                    logger.info("Run created", extra=log_fields(thread_id=thread_id))
                    yield SessionAnnounced(thread_id=thread_id)

            elif name == MESSAGE_DELTA:
                data = await lines.next_line()
                if data is None:
                    return
                if not has_data_marker(data):
                    stats.skipped_deltas += 1
                    logger.debug(f"Skipping delta without data marker: {data!r}")
                    continue
                for value in parse_message_delta(strip_data_marker(data)):
                    if not value:
                        continue
                    stats.text_fragments += 1
                    stats.text_chars += len(value)
                    yield TextDelta(value=value)

            elif name in TERMINAL_EVENTS:
                stats.ended_by = name
                return

            else:
                stats.ignored_events += 1
