"""HTTP service exposing allowlist roots, proofs, and admission checks.

The storefront asks this service for the connected wallet's proof and
whether that proof matches the root committed in the guard group's
on-chain settings before it builds a mint transaction.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.middleware.base import BaseHTTPMiddleware

from candy_allowlist import __version__
from candy_allowlist.config import settings
from candy_allowlist.identity import MalformedIdentity, canonicalize_all
from candy_allowlist.loader import load_allowlists
from candy_allowlist.merkle import EmptyAllowlist, MerkleTree
from candy_allowlist.registry import AllowListRegistry
from candy_allowlist.schemas import DEFAULT_GROUP, AdmissionDecision, GroupRoot, MerkleProof

logger = logging.getLogger(__name__)

MAX_REQUEST_BODY_BYTES = 8 * 1024 * 1024  # allowlists can be large; cap at 8 MiB


class _BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose body exceeds MAX_REQUEST_BODY_BYTES."""

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and int(content_length) > MAX_REQUEST_BODY_BYTES:
            return JSONResponse(
                status_code=413,
                content={"detail": "Request body too large"},
            )
        return await call_next(request)


_registry = AllowListRegistry()


def get_registry() -> AllowListRegistry:
    return _registry


def set_registry(registry: AllowListRegistry) -> None:
    """Replace the active registry (used at startup and in tests)."""
    global _registry
    _registry = registry


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
    if settings.source:
        set_registry(AllowListRegistry(load_allowlists(settings.source)))
    else:
        logger.warning("ALLOWLIST_SOURCE not set; minting is unrestricted until lists are loaded")
    yield


app = FastAPI(
    title="Candy Machine Allowlist",
    description="Merkle allowlist roots, proofs and admission checks for candy machine guard groups",
    version=__version__,
    lifespan=_lifespan,
)

app.add_middleware(_BodySizeLimitMiddleware)


def _tree_or_404(label: str) -> MerkleTree:
    registry = get_registry()
    if label not in registry.labels:
        raise HTTPException(status_code=404, detail=f"Unknown guard group: {label}")
    return registry.tree(label)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health")
def health():
    registry = get_registry()
    return {
        "status": "ok",
        "service": "candy-allowlist",
        "version": __version__,
        "groups": registry.labels,
        "identity_encoding": settings.identity_encoding,
    }


@app.get("/groups")
def list_groups():
    registry = get_registry()
    groups = [registry.group_root(label) for label in registry.labels]
    return {
        "groups": [g.model_dump(mode="json") for g in groups],
        "total": len(groups),
    }


@app.get("/groups/{label}/root")
def group_root(label: str) -> GroupRoot:
    _tree_or_404(label)
    return get_registry().group_root(label)


@app.get("/groups/{label}/proof/{wallet}")
def wallet_proof(label: str, wallet: str) -> MerkleProof:
    """Return the wallet's inclusion proof for a guard group."""
    tree = _tree_or_404(label)
    index = get_registry().index_of(wallet, label)
    if index == -1:
        raise HTTPException(status_code=404, detail="Wallet not on allowlist")
    return MerkleProof(
        group_label=label,
        wallet=wallet,
        leaf_index=index,
        leaf_hash=tree.layers[0][index].hex(),
        proof=tree.get_hex_proof(index),
        root_hash=tree.hex_root,
    )


class VerifyRequest(BaseModel):
    wallet: str | None = None
    merkle_root: str = Field(..., description="Hex root committed in the guard settings")
    group_label: str = DEFAULT_GROUP


@app.post("/verify")
def verify(req: VerifyRequest) -> AdmissionDecision:
    """Check a wallet against the committed root.

    A wallet that is not admitted is a normal 200 response with
    ``allowed: false``.
    """
    try:
        return get_registry().decision(req.wallet, req.merkle_root, req.group_label)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


class RootRequest(BaseModel):
    wallets: list[str] = Field(..., alias="list")
    encoding: str | None = None


@app.post("/root")
def build_root(req: RootRequest):
    """Compute the root for an ad-hoc allowlist (for guard configuration)."""
    encoding = req.encoding or settings.identity_encoding
    if len(req.wallets) > settings.max_entries_per_group:
        raise HTTPException(status_code=413, detail="Allowlist too large")
    try:
        tree = MerkleTree(canonicalize_all(req.wallets, encoding))
    except EmptyAllowlist as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except MalformedIdentity as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "size": tree.size,
        "root_hash": tree.hex_root,
        "root_array": tree.root_array(),
    }
