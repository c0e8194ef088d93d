"""Pydantic models for allowlists, proofs, and admission decisions."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_GROUP = "default"


# ---------------------------------------------------------------------------
# Allowlist input
# ---------------------------------------------------------------------------


class AllowList(BaseModel):
    """Ordered wallet addresses admitted to one guard group."""

    model_config = ConfigDict(populate_by_name=True)

    group_label: str = Field(default=DEFAULT_GROUP, min_length=1)
    wallets: list[str] = Field(
        ..., alias="list", description="Wallet addresses, order defines leaf indices"
    )

    @field_validator("wallets", mode="before")
    @classmethod
    def _bytes_as_hex(cls, value):
        # Byte entries are listed by their hex text, never decoded as UTF-8.
        if isinstance(value, (list, tuple)):
            return [
                bytes(item).hex() if isinstance(item, (bytes, bytearray)) else item
                for item in value
            ]
        return value


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class GroupRoot(BaseModel):
    group_label: str
    size: int
    root_hash: str = Field(..., description="Lowercase hex Keccak-256 root")
    root_array: list[int] = Field(default_factory=list)


class MerkleProof(BaseModel):
    """Inclusion proof for one wallet in one guard group."""

    group_label: str
    wallet: str
    leaf_index: int
    leaf_hash: str
    proof: list[str] = Field(..., description="Hex-encoded sibling hashes from leaf to root")
    root_hash: str


class AdmissionDecision(BaseModel):
    """Whether a wallet may mint in a group, checked against a committed root."""

    group_label: str
    wallet: str | None = None
    allowed: bool
    reason: str
    leaf_index: int = -1
    proof: list[str] = Field(default_factory=list)
    local_root: str | None = None
    committed_root: str | None = None
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
