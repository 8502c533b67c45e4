"""SSE event streaming route."""
from __future__ import annotations

import json

from litestar import get
from litestar.response import ServerSentEvent, ServerSentEventMessage

from webui.backend.session import StudioSession


@get("/api/events", media_type="text/event-stream")
async def stream_events(studio_session: StudioSession) -> ServerSentEvent:
    """Asset state changes, failure notices and video progress lines."""

    async def _generate():
        async for msg in studio_session.stream():
            yield ServerSentEventMessage(data=json.dumps(msg), event=msg["type"])

    return ServerSentEvent(_generate())
