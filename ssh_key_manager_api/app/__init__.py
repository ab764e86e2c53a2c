"""
Application package initializer.

The core of the service lives in ``core``: the record store that owns
users and servers and the broadcast registry that fans out live
updates.  ``services`` composes them into the operations the API
exposes and ``api`` holds the versioned FastAPI routers.
"""

from .main import app, create_app  # noqa: F401
