"""Configuration for the candy machine allowlist engine.

All settings are driven by environment variables with sensible defaults.
"""

from __future__ import annotations

import os


def _get_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    return int(val)


def _get_float(name: str, default: float) -> float:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    return float(val)


class AllowListSettings:
    # --- Allowlist source ---
    # Filesystem path or http(s) URL of the allowlist JSON document.
    source: str = os.getenv("ALLOWLIST_SOURCE", "")
    # How wallet identities are validated at ingestion: base58 | hex | raw
    identity_encoding: str = os.getenv("ALLOWLIST_IDENTITY_ENCODING", "base58")
    # Guard group label used for lists that carry no label.
    default_group: str = os.getenv("ALLOWLIST_DEFAULT_GROUP", "default")
    # Seconds to wait for a remote allowlist document.
    fetch_timeout_seconds: float = _get_float("ALLOWLIST_FETCH_TIMEOUT", 10.0)

    # --- Ingestion limits ---
    max_entries_per_group: int = _get_int("ALLOWLIST_MAX_ENTRIES", 100_000)

    # --- HTTP service ---
    host: str = os.getenv("ALLOWLIST_HOST", "127.0.0.1")
    port: int = _get_int("ALLOWLIST_PORT", 3200)


settings = AllowListSettings()
