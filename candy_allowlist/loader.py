"""Allowlist document loading.

Allowlists are published as JSON, either bundled with the storefront or
served from a CDN. Three shapes are accepted:

- ``["addr1", "addr2", ...]``: a single list for the default group
- ``{"vip": ["addr1", ...], "public": [...]}``: lists keyed by group label
- ``[{"group_label": "vip", "list": ["addr1", ...]}, ...]``
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import httpx
from pydantic import ValidationError

from candy_allowlist.config import settings
from candy_allowlist.schemas import AllowList

logger = logging.getLogger(__name__)


class AllowListSourceError(Exception):
    """Raised when an allowlist document cannot be fetched or parsed."""


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def fetch_document(source: str | Path) -> object:
    """Read and JSON-decode the document at *source* (path or URL)."""
    source = str(source)
    if _is_url(source):
        try:
            with httpx.Client(timeout=settings.fetch_timeout_seconds) as client:
                resp = client.get(source, headers={"accept": "application/json"})
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPError as exc:
            raise AllowListSourceError(f"Failed to fetch allowlist from {source}: {exc}") from exc
        except ValueError as exc:
            raise AllowListSourceError(f"Allowlist at {source} is not valid JSON") from exc

    try:
        return json.loads(Path(source).read_text(encoding="utf-8"))
    except OSError as exc:
        raise AllowListSourceError(f"Failed to read allowlist file {source}: {exc}") from exc
    except ValueError as exc:
        raise AllowListSourceError(f"Allowlist file {source} is not valid JSON") from exc


def parse_allowlists(document: object, default_group: str | None = None) -> list[AllowList]:
    """Turn a decoded allowlist document into ``AllowList`` models."""
    label = default_group or settings.default_group
    try:
        if isinstance(document, dict):
            return [
                AllowList(group_label=group, wallets=wallets)
                for group, wallets in document.items()
            ]
        if isinstance(document, list):
            if all(isinstance(item, str) for item in document):
                return [AllowList(group_label=label, wallets=document)]
            return [AllowList.model_validate(item) for item in document]
    except ValidationError as exc:
        raise AllowListSourceError(f"Malformed allowlist document: {exc}") from exc
    raise AllowListSourceError(
        f"Allowlist document must be a JSON list or object, got {type(document).__name__}"
    )


def load_allowlists(source: str | Path, default_group: str | None = None) -> list[AllowList]:
    """Fetch and parse the allowlists published at *source*."""
    allowlists = parse_allowlists(fetch_document(source), default_group)
    logger.info(
        "Loaded %d allowlist group(s) from %s: %s",
        len(allowlists),
        source,
        ", ".join(f"{a.group_label}={len(a.wallets)}" for a in allowlists),
    )
    return allowlists
