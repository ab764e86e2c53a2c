"""
Endpoint subpackage for API v1.

Each module defines an APIRouter for one area (users, servers, the
heartbeat, the live update stream, health).  They are aggregated in
``router.py``.
"""
