"""
Business logic for users and their SSH keys.

All reads and writes go through the ``RecordStore`` passed in by the
caller.  Methods raise ``NotFoundError`` for unknown users and keys
and ``ValueError`` for invalid input; the API layer maps these to
HTTP errors.
"""

import logging
from typing import List

from ..core.store import RecordStore
from ..schemas.user import SshKey, User, UserCreate
from . import NotFoundError, ssh_keys

logger = logging.getLogger(__name__)


class UserService:
    """Operations behind the users pages of the admin UI."""

    @classmethod
    async def list_users(cls, store: RecordStore) -> List[User]:
        return store.list_users()

    @classmethod
    async def get_user(cls, store: RecordStore, user_id: int) -> User:
        user = store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    @classmethod
    async def create_user(cls, store: RecordStore, data: UserCreate) -> User:
        user = await store.add_user(
            {
                "name": data.name,
                "is_system_admin": data.is_system_admin,
                "is_active": data.is_active,
                "ssh_keys": [],
            }
        )
        logger.info("Created user %s (%s)", user.id, user.name)
        return user

    @classmethod
    async def rename(cls, store: RecordStore, user_id: int, name: str) -> User:
        if not await store.update_user(user_id, {"name": name}):
            raise NotFoundError(f"User {user_id} not found")
        logger.info("Renamed user %s to %s", user_id, name)
        return await cls.get_user(store, user_id)

    @classmethod
    async def set_active(cls, store: RecordStore, user_id: int, is_active: bool) -> User:
        """Activate or deactivate a user.

        Inactive users keep their keys and server assignments but are left
        out of every heartbeat response until re-activated.
        """
        if not await store.update_user(user_id, {"is_active": is_active}):
            raise NotFoundError(f"User {user_id} not found")
        logger.info("User %s is_active=%s", user_id, is_active)
        return await cls.get_user(store, user_id)

    @classmethod
    async def add_ssh_key(cls, store: RecordStore, user_id: int, public_key: str) -> User:
        """Validate ``public_key`` and append it to the user's keys.

        Raises ``ValueError`` if the key does not parse or if the user
        already has a key with the same fingerprint.
        """
        public_key = public_key.strip()
        if not ssh_keys.is_valid_public_key(public_key):
            raise ValueError("Invalid SSH key")
        new_key = SshKey(
            comment=ssh_keys.get_comment(public_key),
            fingerprint=ssh_keys.get_fingerprint(public_key),
            public_key=public_key,
        )

        def append_key(user: User) -> dict:
            if any(key.fingerprint == new_key.fingerprint for key in user.ssh_keys):
                raise ValueError(f"Key {new_key.fingerprint} already added")
            return {"ssh_keys": [*user.ssh_keys, new_key]}

        if not await store.modify_user(user_id, append_key):
            raise NotFoundError(f"User {user_id} not found")
        logger.info("Added key %s to user %s", new_key.fingerprint, user_id)
        return await cls.get_user(store, user_id)

    @classmethod
    async def delete_ssh_key(cls, store: RecordStore, user_id: int, fingerprint: str) -> User:
        def drop_key(user: User) -> dict:
            remaining = [key for key in user.ssh_keys if key.fingerprint != fingerprint]
            if len(remaining) == len(user.ssh_keys):
                raise NotFoundError(f"Key {fingerprint} not found")
            return {"ssh_keys": remaining}

        if not await store.modify_user(user_id, drop_key):
            raise NotFoundError(f"User {user_id} not found")
        logger.info("Removed key %s from user %s", fingerprint, user_id)
        return await cls.get_user(store, user_id)
