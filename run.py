"""Entry point for the SSH Key Manager API.

Starts the FastAPI application with Uvicorn.  Intended to be executed
from the project root, for example under systemd or Docker where you
only specify a single Python file to run.

Configuration (backing file locations, log level and so on) is read
from environment variables, see ``ssh_key_manager_api/app/core/config.py``.
Host and port come from ``API_HOST`` and ``API_PORT``.

Usage:
    python run.py
"""
import asyncio
import logging
import os

from uvicorn import Config, Server

from ssh_key_manager_api.app.main import app


async def main() -> None:
    """Serve the API until interrupted."""
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level="info")
    server = Server(config)
    try:
        await server.serve()
    except Exception:
        logging.exception("API server stopped with an error")
        raise


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
