"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with no configuration at all; the backing JSON files
default to ``/tmp`` which is fine for a demo but should be pointed at
persistent storage in a real deployment.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _env_float(name: str, default: str) -> Optional[float]:
    raw = os.getenv(name, default)
    if not raw:
        return None
    return float(raw)


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = field(default_factory=lambda: os.getenv("PROJECT_NAME", "SSH Key Manager API"))
    api_version: str = field(default_factory=lambda: os.getenv("API_VERSION", "1.0.0"))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG", "false"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", ""))

    # Backing files for the record store.  A file that does not exist yet
    # is treated as an empty collection and created on the first write.
    users_file: str = field(default_factory=lambda: os.getenv("USERS_FILE", "/tmp/users.json"))
    servers_file: str = field(default_factory=lambda: os.getenv("SERVERS_FILE", "/tmp/servers.json"))

    # Upper bound for a single write-back.  Empty disables the timeout.
    # A timed out write is reported as a persistence failure, the
    # in-memory change stays committed.
    write_timeout_seconds: Optional[float] = field(
        default_factory=lambda: _env_float("WRITE_TIMEOUT_SECONDS", "5")
    )

    # How long a request waits for the store to finish loading before
    # answering 503.
    ready_timeout_seconds: Optional[float] = field(
        default_factory=lambda: _env_float("READY_TIMEOUT_SECONDS", "10")
    )

    # When true a backing file that exists but cannot be parsed or
    # validated aborts application startup.  When false the service keeps
    # running with a failed store and answers 503 for store-backed routes.
    abort_on_load_error: bool = field(default_factory=lambda: _env_bool("ABORT_ON_LOAD_ERROR", "true"))

    # Live update stream tuning.
    subscriber_queue_size: int = field(default_factory=lambda: int(os.getenv("SUBSCRIBER_QUEUE_SIZE", "100")))
    stream_ping_seconds: int = field(default_factory=lambda: int(os.getenv("STREAM_PING_SECONDS", "15")))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Tests build their own
# ``Settings`` instances and pass them to ``create_app``.
settings = Settings()
