"""
Pydantic models for fleet servers and the heartbeat response.

``Server`` is the record kept by the record store.  ``name`` is the
hostname the server reports in its heartbeat and acts as a natural
key; uniqueness is enforced by the heartbeat service, not the store.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class Server(BaseModel):
    """A fleet server that polls for authorized keys."""

    id: int
    name: str = Field(..., examples=["host-a"])
    ip_address: str = Field(..., alias="ipAddress", examples=["10.0.0.12"])
    last_heartbeat_on: datetime = Field(..., alias="lastHeartbeatOn")
    cpu_usage_percent: float = Field(..., alias="cpuUsagePercent")
    memory_usage_percent: float = Field(..., alias="memoryUsagePercent")
    disk_usage_percent: float = Field(..., alias="diskUsagePercent")
    # Order preserving for display; treated as a set by callers.
    user_ids: List[int] = Field(..., alias="userIds")

    model_config = {
        "populate_by_name": True,
        "extra": "forbid",
    }


class ServerUsersAdd(BaseModel):
    """Schema for assigning users to a server."""

    user_ids: List[int] = Field(..., alias="userIds", min_length=1)

    model_config = {
        "populate_by_name": True,
    }


class KeyEntry(BaseModel):
    """Keys a server should trust for one user."""

    name: str
    public_keys: List[str] = Field(..., alias="publicKeys")

    model_config = {
        "populate_by_name": True,
    }


class KeysResponse(BaseModel):
    data: List[KeyEntry]
