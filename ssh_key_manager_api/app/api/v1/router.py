"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers under a unified prefix.  The
heartbeat route lives under ``/server`` (singular) because fleet
servers are already configured to poll ``/api/v1/server/keys``; the
operator routes for servers use ``/servers``.
"""

from fastapi import APIRouter

from .endpoints import health, keys, servers, stream, users

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(servers.router, prefix="/servers", tags=["servers"])
router.include_router(keys.router, prefix="/server", tags=["heartbeat"])
router.include_router(stream.router, prefix="/stream", tags=["stream"])
router.include_router(health.router, prefix="/health", tags=["health"])
