"""
Heartbeat endpoint polled by fleet servers.

``GET /server/keys?hostname=...`` records the heartbeat and returns the
public keys the calling server should install, grouped per user::

    {"data": [{"name": "Alice", "publicKeys": ["ssh-ed25519 AAAA... alice"]}]}

The caller's address is taken from the connection, not from a
parameter.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ssh_key_manager_api.app.api.deps import get_registry, get_store
from ssh_key_manager_api.app.core.broadcast import BroadcastRegistry
from ssh_key_manager_api.app.core.store import RecordStore
from ssh_key_manager_api.app.schemas.server import KeysResponse
from ssh_key_manager_api.app.services.server_service import ServerService


router = APIRouter()


@router.get("/keys", response_model=KeysResponse)
async def get_server_keys(
    request: Request,
    hostname: Optional[str] = Query(None),
    cpu_usage_percent: float = Query(0, alias="cpuUsagePercent"),
    memory_usage_percent: float = Query(0, alias="memoryUsagePercent"),
    disk_usage_percent: float = Query(0, alias="diskUsagePercent"),
    store: RecordStore = Depends(get_store),
    registry: BroadcastRegistry = Depends(get_registry),
) -> KeysResponse:
    if not hostname:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="hostname query parameter is required",
        )
    client_ip = request.client.host if request.client else ""
    entries = await ServerService.heartbeat(
        store,
        registry,
        hostname=hostname,
        ip_address=client_ip,
        cpu_usage_percent=cpu_usage_percent,
        memory_usage_percent=memory_usage_percent,
        disk_usage_percent=disk_usage_percent,
    )
    return KeysResponse(data=entries)
