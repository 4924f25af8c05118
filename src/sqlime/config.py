"""Environment-variable-based configuration."""

import os

DEFAULT_OPEN_FLAGS = "readwrite,create"


def get_open_flag_names() -> list[str]:
    """Return the default open flag names from SQLIME_OPEN_FLAGS."""
    raw = os.environ.get("SQLIME_OPEN_FLAGS", DEFAULT_OPEN_FLAGS)
    return [name.strip().lower() for name in raw.split(",") if name.strip()]


def get_busy_timeout_ms() -> int:
    """Return the busy handler timeout in milliseconds from SQLIME_BUSY_TIMEOUT_MS.

    Zero disables the busy handler, so a locked database fails immediately.
    """
    return max(0, int(os.environ.get("SQLIME_BUSY_TIMEOUT_MS", "0")))


def get_statement_cache_size() -> int:
    """Return the engine's prepared statement cache size from SQLIME_STATEMENT_CACHE_SIZE."""
    return max(0, int(os.environ.get("SQLIME_STATEMENT_CACHE_SIZE", "100")))
