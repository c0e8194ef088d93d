"""Wallet identity ingestion.

Identities are validated and rendered canonically before they reach the
Merkle tree. Nothing is coerced: input that does not match the configured
encoding raises ``MalformedIdentity``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import base58

ENCODINGS = ("base58", "hex", "raw")

PUBKEY_SIZE = 32

_HEX_RE = re.compile(r"^(0x)?([0-9a-fA-F]{2})+$")


class MalformedIdentity(ValueError):
    """Raised when an identity cannot be converted to its canonical form."""


def canonicalize(item: str | bytes | bytearray, encoding: str = "base58") -> str:
    """Return the canonical text form of one allowlist entry.

    Byte entries are rendered as lowercase hex text before validation, the
    same way the storefront stringifies non-string allowlist items.
    """
    if encoding not in ENCODINGS:
        raise ValueError(f"Unknown identity encoding: {encoding!r}")

    if isinstance(item, (bytes, bytearray)):
        text = bytes(item).hex()
    elif isinstance(item, str):
        text = item.strip()
    else:
        raise MalformedIdentity(f"Identity must be text or bytes, got {type(item).__name__}")

    if not text:
        raise MalformedIdentity("Identity is empty")

    if encoding == "base58":
        try:
            raw = base58.b58decode(text)
        except ValueError as exc:
            raise MalformedIdentity(f"Invalid base58 address: {text!r}") from exc
        if len(raw) != PUBKEY_SIZE:
            raise MalformedIdentity(
                f"Address {text!r} decodes to {len(raw)} bytes, expected {PUBKEY_SIZE}"
            )
    elif encoding == "hex":
        if not _HEX_RE.match(text):
            raise MalformedIdentity(f"Invalid hex identity: {text!r}")

    return text


def canonicalize_all(items: Iterable[str | bytes | bytearray], encoding: str = "base58") -> list[str]:
    """Canonicalize a whole allowlist, preserving order and duplicates."""
    out: list[str] = []
    for position, item in enumerate(items):
        try:
            out.append(canonicalize(item, encoding))
        except MalformedIdentity as exc:
            raise MalformedIdentity(f"Allowlist entry {position}: {exc}") from exc
    return out
