"""
FastAPI dependencies giving routes access to the shared components.

The record store and the broadcast registry are created once in
``create_app`` and stored on ``app.state``; routes never import a
module-level instance.  ``get_store`` waits for the store to finish
loading so no request observes the empty collections of a store that
is still starting up.
"""

from fastapi import HTTPException, Request, status

from ..core.broadcast import BroadcastRegistry
from ..core.store import RecordStore, StoreState


async def get_store(request: Request) -> RecordStore:
    store: RecordStore = request.app.state.store
    state = await store.wait_ready(request.app.state.settings.ready_timeout_seconds)
    if state is not StoreState.READY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Record store is {state.value}",
        )
    return store


def get_registry(request: Request) -> BroadcastRegistry:
    return request.app.state.registry
