"""
Server endpoints for API v1.

Servers are created by their own heartbeats (see ``keys``); these
routes let an operator inspect them and manage which users are
authorized on each one.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ssh_key_manager_api.app.api.deps import get_store
from ssh_key_manager_api.app.core.store import RecordStore
from ssh_key_manager_api.app.schemas.server import Server, ServerUsersAdd
from ssh_key_manager_api.app.services import NotFoundError
from ssh_key_manager_api.app.services.server_service import ServerService


router = APIRouter()


@router.get("/", response_model=List[Server])
async def list_servers(store: RecordStore = Depends(get_store)) -> List[Server]:
    return await ServerService.list_servers(store)


@router.get("/{server_id}", response_model=Server)
async def get_server(server_id: int, store: RecordStore = Depends(get_store)) -> Server:
    try:
        return await ServerService.get_server(store, server_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{server_id}/users", response_model=Server)
async def add_users_to_server(
    server_id: int,
    body: ServerUsersAdd,
    store: RecordStore = Depends(get_store),
) -> Server:
    try:
        return await ServerService.add_users(store, server_id, body.user_ids)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{server_id}/users/{user_id}", response_model=Server)
async def remove_user_from_server(
    server_id: int,
    user_id: int,
    store: RecordStore = Depends(get_store),
) -> Server:
    try:
        return await ServerService.remove_user(store, server_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
