"""
Server-Sent Events stream of live updates.

Each connection registers a ``QueueSubscriber`` with the broadcast
registry under a random id and unregisters it when the client goes
away.  Events are forwarded as-is: the SSE event name is the broadcast
event name and the data is the already serialized payload.
"""

import logging
import secrets

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from ssh_key_manager_api.app.api.deps import get_registry
from ssh_key_manager_api.app.core.broadcast import BroadcastRegistry, QueueSubscriber

logger = logging.getLogger(__name__)

router = APIRouter()

# How often the generator checks for a closed connection while idle.
POLL_SECONDS = 1.0


async def stream_events(request: Request, registry: BroadcastRegistry, subscriber: QueueSubscriber):
    subscriber_id = secrets.token_urlsafe(16)
    registry.register(subscriber_id, subscriber.deliver)
    try:
        while not await request.is_disconnected():
            item = await subscriber.get(timeout=POLL_SECONDS)
            if item is None:
                continue
            event_name, payload = item
            yield {"event": event_name, "data": payload}
    finally:
        subscriber.close()
        registry.unregister(subscriber_id)
        if subscriber.dropped:
            logger.info("Subscriber %s dropped %d events while connected", subscriber_id, subscriber.dropped)


@router.api_route("", methods=["GET", "POST"])
async def live_updates(request: Request, registry: BroadcastRegistry = Depends(get_registry)):
    settings = request.app.state.settings
    subscriber = QueueSubscriber(maxsize=settings.subscriber_queue_size)
    return EventSourceResponse(
        stream_events(request, registry, subscriber),
        ping=settings.stream_ping_seconds,
    )
