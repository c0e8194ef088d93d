"""Candy Allowlist: Merkle allowlist engine for candy machine guard groups."""

__version__ = "0.1.0"

from candy_allowlist.config import AllowListSettings, settings
from candy_allowlist.identity import MalformedIdentity, canonicalize, canonicalize_all
from candy_allowlist.loader import AllowListSourceError, load_allowlists, parse_allowlists
from candy_allowlist.merkle import (
    EmptyAllowlist,
    InvalidIndex,
    MerkleTree,
    to_hash,
    to_hex,
    verify_identity,
    verify_leaf,
)
from candy_allowlist.registry import AllowListRegistry, IngestionLimitExceeded
from candy_allowlist.schemas import (
    AdmissionDecision,
    AllowList,
    GroupRoot,
    MerkleProof,
)

__all__ = [
    # Merkle engine
    "MerkleTree",
    "EmptyAllowlist",
    "InvalidIndex",
    "verify_identity",
    "verify_leaf",
    "to_hash",
    "to_hex",
    # Ingestion
    "MalformedIdentity",
    "canonicalize",
    "canonicalize_all",
    "AllowListSourceError",
    "load_allowlists",
    "parse_allowlists",
    # Registry
    "AllowListRegistry",
    "IngestionLimitExceeded",
    "AdmissionDecision",
    "AllowList",
    "GroupRoot",
    "MerkleProof",
    "settings",
    "AllowListSettings",
]
