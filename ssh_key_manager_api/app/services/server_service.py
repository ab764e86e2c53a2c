"""
Business logic for fleet servers.

The heartbeat is the one externally meaningful read path: a server
reports its hostname and usage gauges, gets created on first contact
(with every active system administrator authorized), and receives the
public keys of the active users assigned to it.  Each heartbeat is
also pushed to live update subscribers as a ``heartbeat`` event.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List

from ..core.broadcast import BroadcastRegistry
from ..core.store import RecordStore
from ..schemas.server import KeyEntry, Server
from . import NotFoundError

logger = logging.getLogger(__name__)

HEARTBEAT_EVENT = "heartbeat"


class ServerService:
    """Operations on servers and their user assignments."""

    @classmethod
    async def list_servers(cls, store: RecordStore) -> List[Server]:
        return store.list_servers()

    @classmethod
    async def get_server(cls, store: RecordStore, server_id: int) -> Server:
        server = store.get_server(server_id)
        if server is None:
            raise NotFoundError(f"Server {server_id} not found")
        return server

    @classmethod
    async def heartbeat(
        cls,
        store: RecordStore,
        registry: BroadcastRegistry,
        hostname: str,
        ip_address: str,
        cpu_usage_percent: float = 0,
        memory_usage_percent: float = 0,
        disk_usage_percent: float = 0,
    ) -> List[KeyEntry]:
        """Record a heartbeat from ``hostname`` and return the keys it should trust."""
        observed = {
            "ip_address": ip_address,
            "last_heartbeat_on": datetime.now(timezone.utc),
            "cpu_usage_percent": cpu_usage_percent,
            "memory_usage_percent": memory_usage_percent,
            "disk_usage_percent": disk_usage_percent,
        }
        default_user_ids = [
            user.id for user in store.list_users() if user.is_system_admin and user.is_active
        ]
        server, created = await store.find_or_add_server(
            hostname, {**observed, "user_ids": default_user_ids}
        )
        if created:
            logger.info("New server %s (%s) from %s", server.id, hostname, ip_address)
        else:
            await store.update_server(server.id, observed)
            server = store.get_server(server.id) or server

        registry.broadcast(HEARTBEAT_EVENT, server.model_dump_json(by_alias=True))
        return cls.resolve_keys(store, server.user_ids)

    @classmethod
    def resolve_keys(cls, store: RecordStore, user_ids: Iterable[int]) -> List[KeyEntry]:
        """One entry per active user with at least one key.

        Ids with no matching user are skipped.
        """
        entries: List[KeyEntry] = []
        for user_id in user_ids:
            user = store.get_user(user_id)
            if user is None or not user.is_active or not user.ssh_keys:
                continue
            entries.append(
                KeyEntry(name=user.name, public_keys=[key.public_key for key in user.ssh_keys])
            )
        return entries

    @classmethod
    async def add_users(cls, store: RecordStore, server_id: int, user_ids: List[int]) -> Server:
        """Authorize ``user_ids`` on a server.

        Every id must name an existing user.  Ids already assigned are
        left in place, so the list never gains duplicates.
        """
        missing = [user_id for user_id in user_ids if store.get_user(user_id) is None]
        if missing:
            raise NotFoundError(f"Users not found: {missing}")

        def append_users(server: Server) -> dict:
            merged = list(server.user_ids)
            for user_id in user_ids:
                if user_id not in merged:
                    merged.append(user_id)
            return {"user_ids": merged}

        if not await store.modify_server(server_id, append_users):
            raise NotFoundError(f"Server {server_id} not found")
        logger.info("Added users %s to server %s", user_ids, server_id)
        return await cls.get_server(store, server_id)

    @classmethod
    async def remove_user(cls, store: RecordStore, server_id: int, user_id: int) -> Server:
        def drop_user(server: Server) -> dict:
            if user_id not in server.user_ids:
                raise ValueError(f"User {user_id} not a member of server {server_id}")
            return {"user_ids": [uid for uid in server.user_ids if uid != user_id]}

        if not await store.modify_server(server_id, drop_user):
            raise NotFoundError(f"Server {server_id} not found")
        logger.info("Removed user %s from server %s", user_id, server_id)
        return await cls.get_server(store, server_id)
