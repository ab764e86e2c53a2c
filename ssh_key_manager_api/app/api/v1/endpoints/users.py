"""
User endpoints for API v1.

Listing, creating and renaming users, toggling whether they are
active, and managing their SSH keys.  Keys are identified by their
fingerprint in URLs.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ssh_key_manager_api.app.api.deps import get_store
from ssh_key_manager_api.app.core.store import RecordStore
from ssh_key_manager_api.app.schemas.user import (
    SshKeyCreate,
    User,
    UserActiveUpdate,
    UserCreate,
    UserNameUpdate,
)
from ssh_key_manager_api.app.services import NotFoundError
from ssh_key_manager_api.app.services.user_service import UserService


router = APIRouter()


@router.get("/", response_model=List[User])
async def list_users(store: RecordStore = Depends(get_store)) -> List[User]:
    return await UserService.list_users(store)


@router.post("/", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, store: RecordStore = Depends(get_store)) -> User:
    return await UserService.create_user(store, data)


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: int, store: RecordStore = Depends(get_store)) -> User:
    try:
        return await UserService.get_user(store, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/{user_id}/name", response_model=User)
async def rename_user(
    user_id: int,
    body: UserNameUpdate,
    store: RecordStore = Depends(get_store),
) -> User:
    try:
        return await UserService.rename(store, user_id, body.name)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/{user_id}/active", response_model=User)
async def set_user_active(
    user_id: int,
    body: UserActiveUpdate,
    store: RecordStore = Depends(get_store),
) -> User:
    """Activate or deactivate a user.

    Deactivated users stay assigned to their servers but their keys are
    no longer handed out on heartbeats.
    """
    try:
        return await UserService.set_active(store, user_id, body.is_active)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{user_id}/keys", response_model=User, status_code=status.HTTP_201_CREATED)
async def add_ssh_key(
    user_id: int,
    body: SshKeyCreate,
    store: RecordStore = Depends(get_store),
) -> User:
    """Add an OpenSSH public key to a user.

    The comment and fingerprint are derived from the key.  Invalid keys
    and keys the user already has are rejected with 400.
    """
    try:
        return await UserService.add_ssh_key(store, user_id, body.public_key)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{user_id}/keys/{fingerprint:path}", response_model=User)
async def delete_ssh_key(
    user_id: int,
    fingerprint: str,
    store: RecordStore = Depends(get_store),
) -> User:
    try:
        return await UserService.delete_ssh_key(store, user_id, fingerprint)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
