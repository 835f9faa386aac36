"""
routers/relay.py

POST /message: relay one conversation turn to the assistant and stream the
reply back as it is generated.

Flow:
  1. Validate body (RelayRequest); shape errors → 400
  2. Prime the relay: await the first client event before answering, so
     config / upstream errors still become proper HTTP error responses
  3. Stream the rest; each event is its own chunk, sent as soon as decoded
  4. Failures after the first byte are appended as an error record
"""

from collections.abc import AsyncIterator
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.core.config import StreamFormat, settings
from app.core.errors import RelayError
from app.core.logger import get_logger
from app.models.request import RelayRequest
from app.models.response import ClientEvent
from app.services.framing import encode_error, encode_event, media_type
from app.services.relay import StreamRelay

logger = get_logger(__name__)
router = APIRouter(tags=["relay"])

stream_relay = StreamRelay(settings.relay_config)


def get_relay() -> StreamRelay:
    return stream_relay


def get_stream_format() -> StreamFormat:
    return settings.STREAM_FORMAT


async def _client_stream(
    first: Optional[ClientEvent],
    events: AsyncIterator[ClientEvent],
    fmt: StreamFormat,
) -> AsyncIterator[bytes]:
    try:
        if first is not None:
            yield encode_event(first, fmt)
        async for event in events:
            yield encode_event(event, fmt)
    except RelayError as e:
        # Headers are already out; the partial reply stays delivered.
        logger.error(f"Relay failed mid-stream ({type(e).__name__}): {e.message}")
        yield encode_error(e, fmt)
    finally:
        await events.aclose()


@router.post("/message")
async def relay_message(
    req: RelayRequest,
    relay: StreamRelay = Depends(get_relay),
    fmt: StreamFormat = Depends(get_stream_format),
):
    logger.info(
        f"[{req.session_token or 'new'}] Received {len(req.messages)} message(s)"
    )

    events = relay.stream(req)
    first = await anext(events, None)

    return StreamingResponse(
        _client_stream(first, events, fmt),
        media_type=media_type(fmt),
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # disable nginx buffering
        },
    )
