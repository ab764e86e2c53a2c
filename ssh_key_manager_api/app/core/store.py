"""
In-memory record store backed by JSON files.

To keep deployments simple the service does not use a database.  Users
and servers live in memory and every successful mutation writes the
whole affected collection back to its JSON file.  Memory is the commit
point: a failed write-back is logged and reported to the caller as
``WriteResult.MEMORY_ONLY`` but never undone.

The store is constructed explicitly (see ``main.create_app``) and goes
through ``uninitialized -> loading -> ready | failed``.  Callers that
must not observe empty collections await ``wait_ready`` first.

All mutations of a collection run under that collection's lock, from
the in-memory merge through the end of the write-back, so the order of
writes on disk always matches the order of changes in memory.  Records
handed out are deep copies; the only way to change stored data is
through the store's own methods.
"""

import asyncio
import contextlib
import enum
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, TypeAdapter

from ..schemas.server import Server
from ..schemas.user import User

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
Mutator = Callable[[RecordT], Mapping[str, Any]]


class LoadError(Exception):
    """A backing file could not be read, parsed or validated."""


class StoreState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class WriteResult(str, enum.Enum):
    """Outcome of a mutating store call.

    ``COMMITTED`` and ``MEMORY_ONLY`` are both successes and are truthy;
    ``MEMORY_ONLY`` means the backing file is now behind memory.
    """

    NOT_FOUND = "not_found"
    COMMITTED = "committed"
    MEMORY_ONLY = "memory_only"

    def __bool__(self) -> bool:
        return self is not WriteResult.NOT_FOUND


class _Collection(Generic[RecordT]):
    """One id-indexed collection and its backing file."""

    def __init__(self, name: str, model: Type[RecordT], path: str) -> None:
        self.name = name
        self.model = model
        self.path = Path(path)
        self.records: Dict[int, RecordT] = {}
        self.next_id = 1
        # True while the backing file is behind memory.
        self.stale = False
        # Worker thread of the last write-back, kept while it may still run.
        self.pending: Optional["asyncio.Future[None]"] = None
        self.lock = asyncio.Lock()
        self._adapter = TypeAdapter(List[model])
        self._field_names: Dict[str, str] = {}
        for field_name, info in model.model_fields.items():
            self._field_names[field_name] = field_name
            if info.alias:
                self._field_names[info.alias] = field_name

    def read(self) -> List[RecordT]:
        """Read and validate the backing file.  Runs in a worker thread."""
        if not self.path.exists():
            return []
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return []
        return self._adapter.validate_json(raw)

    def write(self, payload: List[Dict[str, Any]]) -> None:
        """Atomically replace the backing file.  Runs in a worker thread."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
                fh.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise

    def dump(self) -> List[Dict[str, Any]]:
        return [record.model_dump(by_alias=True, mode="json") for record in self.records.values()]

    def reset(self, records: List[RecordT]) -> None:
        index: Dict[int, RecordT] = {}
        for record in records:
            if record.id in index:
                raise ValueError(f"duplicate {self.name} id {record.id} in {self.path}")
            index[record.id] = record
        self.records = index
        # Ids are never handed out twice within a process, even across reloads.
        self.next_id = max(self.next_id, max(index, default=0) + 1)

    def normalize(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Map aliases to attribute names and reject unknown or immutable fields."""
        changes: Dict[str, Any] = {}
        for key, value in fields.items():
            field_name = self._field_names.get(key)
            if field_name is None:
                raise ValueError(f"Unknown {self.name} field: {key}")
            if field_name == "id":
                raise ValueError(f"{self.name} id is immutable")
            changes[field_name] = value
        return changes


class RecordStore:
    """Authoritative collections of users and servers."""

    def __init__(
        self,
        users_path: str,
        servers_path: str,
        write_timeout: Optional[float] = None,
    ) -> None:
        self._users: _Collection[User] = _Collection("users", User, users_path)
        self._servers: _Collection[Server] = _Collection("servers", Server, servers_path)
        self._write_timeout = write_timeout
        self._state = StoreState.UNINITIALIZED
        self._settled = asyncio.Event()
        self.write_failures = 0

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is StoreState.READY

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Load both collections from their backing files.

        Missing files give empty collections.  Any read, parse or
        validation failure empties both collections, moves the store to
        ``failed`` and raises ``LoadError``.
        """
        self._state = StoreState.LOADING
        self._settled.clear()
        try:
            users = await asyncio.to_thread(self._users.read)
            servers = await asyncio.to_thread(self._servers.read)
            self._users.reset(users)
            self._servers.reset(servers)
        except (OSError, ValueError) as exc:
            # pydantic's ValidationError and json errors are ValueErrors.
            self._users.reset([])
            self._servers.reset([])
            self._state = StoreState.FAILED
            self._settled.set()
            logger.error("Failed to load record store: %s", exc)
            raise LoadError(str(exc)) from exc

        self._state = StoreState.READY
        self._settled.set()
        logger.info(
            "Record store ready: %d users from %s, %d servers from %s",
            len(self._users.records),
            self._users.path,
            len(self._servers.records),
            self._servers.path,
        )

    async def wait_ready(self, timeout: Optional[float] = None) -> StoreState:
        """Wait until loading has finished and return the resulting state.

        On timeout the current (unsettled) state is returned instead.
        """
        if self._state in (StoreState.READY, StoreState.FAILED):
            return self._state
        try:
            await asyncio.wait_for(self._settled.wait(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Record store not ready after %ss (state=%s)", timeout, self._state.value)
        return self._state

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        user = self._users.records.get(user_id)
        return user.model_copy(deep=True) if user is not None else None

    def get_server(self, server_id: int) -> Optional[Server]:
        server = self._servers.records.get(server_id)
        return server.model_copy(deep=True) if server is not None else None

    def find_server_by_name(self, name: str) -> Optional[Server]:
        for server in self._servers.records.values():
            if server.name == name:
                return server.model_copy(deep=True)
        return None

    def list_users(self) -> List[User]:
        return [user.model_copy(deep=True) for user in self._users.records.values()]

    def list_servers(self) -> List[Server]:
        return [server.model_copy(deep=True) for server in self._servers.records.values()]

    def counts(self) -> Dict[str, int]:
        return {"users": len(self._users.records), "servers": len(self._servers.records)}

    def stale_collections(self) -> List[str]:
        """Names of collections whose last write-back failed."""
        return [c.name for c in (self._users, self._servers) if c.stale]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def update_user(self, user_id: int, fields: Mapping[str, Any]) -> WriteResult:
        """Merge ``fields`` into user ``user_id`` and write the users file."""
        return await self._update(self._users, user_id, fields)

    async def update_server(self, server_id: int, fields: Mapping[str, Any]) -> WriteResult:
        """Merge ``fields`` into server ``server_id`` and write the servers file."""
        return await self._update(self._servers, server_id, fields)

    async def add_user(self, fields: Mapping[str, Any]) -> User:
        return await self._add(self._users, fields)

    async def add_server(self, fields: Mapping[str, Any]) -> Server:
        """Create a server with the next unused id and return it."""
        return await self._add(self._servers, fields)

    async def modify_user(self, user_id: int, mutator: Mutator[User]) -> WriteResult:
        """Like ``update_user`` but computes the fields from the current record.

        ``mutator`` receives a copy of the user and returns the fields to
        merge.  It runs under the users lock, so read-modify-write
        sequences such as appending a key cannot lose a concurrent change.
        An exception raised by ``mutator`` aborts without any change.
        """
        return await self._update(self._users, user_id, mutator)

    async def modify_server(self, server_id: int, mutator: Mutator[Server]) -> WriteResult:
        return await self._update(self._servers, server_id, mutator)

    async def find_or_add_server(
        self, name: str, defaults: Mapping[str, Any]
    ) -> Tuple[Server, bool]:
        """Return the server called ``name``, creating it from ``defaults`` if absent.

        The lookup and the insert happen under one lock, so two first
        heartbeats from the same host cannot create two records.  The
        second element of the result tells whether a record was created.
        """
        async with self._servers.lock:
            existing = self.find_server_by_name(name)
            if existing is not None:
                return existing, False
            created = await self._insert(self._servers, {**defaults, "name": name})
            return created, True

    async def _update(
        self,
        collection: _Collection[RecordT],
        record_id: int,
        fields: Union[Mapping[str, Any], Mutator[RecordT]],
    ) -> WriteResult:
        async with collection.lock:
            current = collection.records.get(record_id)
            if current is None:
                return WriteResult.NOT_FOUND
            if callable(fields):
                fields = fields(current.model_copy(deep=True))
            changes = collection.normalize(fields)
            # Validate before touching the index so a bad value changes nothing.
            merged = collection.model.model_validate({**current.model_dump(), **changes})
            collection.records[record_id] = merged
            return await self._write_back(collection)

    async def _add(self, collection: _Collection[RecordT], fields: Mapping[str, Any]) -> RecordT:
        async with collection.lock:
            return await self._insert(collection, fields)

    async def _insert(self, collection: _Collection[RecordT], fields: Mapping[str, Any]) -> RecordT:
        # Caller holds collection.lock.
        changes = collection.normalize(fields)
        record = collection.model.model_validate({**changes, "id": collection.next_id})
        collection.next_id += 1
        collection.records[record.id] = record
        await self._write_back(collection)
        return record.model_copy(deep=True)

    async def _write_back(self, collection: _Collection[RecordT]) -> WriteResult:
        # Serialize on the loop thread while holding the lock so the file
        # gets exactly the state this mutation produced.
        payload = collection.dump()
        try:
            previous = collection.pending
            if previous is not None and not previous.done():
                # One write per file at a time: a timed-out write must land
                # before a newer snapshot is written.
                done, _ = await asyncio.wait({previous}, timeout=self._write_timeout)
                if not done:
                    raise asyncio.TimeoutError("previous write-back still running")
            collection.pending = asyncio.ensure_future(asyncio.to_thread(collection.write, payload))
            await asyncio.wait_for(asyncio.shield(collection.pending), self._write_timeout)
        except (OSError, asyncio.TimeoutError) as exc:
            self.write_failures += 1
            collection.stale = True
            logger.warning(
                "Write-back of %s to %s failed, file is behind memory: %r",
                collection.name,
                collection.path,
                exc,
            )
            return WriteResult.MEMORY_ONLY
        logger.debug("Wrote %d %s to %s", len(payload), collection.name, collection.path)
        collection.stale = False
        return WriteResult.COMMITTED
