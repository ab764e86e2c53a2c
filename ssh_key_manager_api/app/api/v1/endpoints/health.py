"""
Health endpoint for API v1.

Reports the record store lifecycle state, which backing files are
currently behind memory (``stale``) and the number of failed
write-backs since start.  A stale collection becomes current again on
its next successful write-back.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request

from ssh_key_manager_api.app.core.store import RecordStore

router = APIRouter()


@router.get("", response_model=Dict[str, Any])
async def health(request: Request) -> Dict[str, Any]:
    store: RecordStore = request.app.state.store
    counts = store.counts()
    stale = store.stale_collections()
    return {
        "status": "ok" if store.is_ready and not stale else "degraded",
        "store": store.state.value,
        "users": counts["users"],
        "servers": counts["servers"],
        "stale": stale,
        "writeFailures": store.write_failures,
        "subscribers": len(request.app.state.registry),
    }
