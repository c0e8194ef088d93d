"""Per-guard-group allowlist registry.

Each candy machine guard group may carry its own allowlist. The registry
validates every list at ingestion, builds each group's Merkle tree at most
once, and answers the admission question for a connected wallet against
the root committed in the group's on-chain guard settings.

Trees are immutable once built, so concurrent queries need no locking;
only the one-time build is serialized.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence

from candy_allowlist.config import settings
from candy_allowlist.identity import MalformedIdentity, canonicalize, canonicalize_all
from candy_allowlist.merkle import EmptyAllowlist, MerkleTree, to_hash, to_hex, verify_leaf
from candy_allowlist.schemas import DEFAULT_GROUP, AdmissionDecision, AllowList, GroupRoot

logger = logging.getLogger(__name__)


class IngestionLimitExceeded(ValueError):
    """Raised when a group's allowlist exceeds the configured entry cap."""


class AllowListRegistry:
    """Holds the allowlists of every guard group and their Merkle trees."""

    def __init__(
        self,
        allowlists: Iterable[AllowList] = (),
        encoding: str | None = None,
        max_entries: int | None = None,
    ) -> None:
        self._encoding = encoding if encoding is not None else settings.identity_encoding
        self._max_entries = (
            max_entries if max_entries is not None else settings.max_entries_per_group
        )
        self._lists: dict[str, list[str]] = {}
        self._trees: dict[str, MerkleTree] = {}
        self._lock = threading.Lock()

        for allowlist in allowlists:
            label = allowlist.group_label
            if label in self._lists:
                raise ValueError(f"Duplicate allowlist for group {label!r}")
            if not allowlist.wallets:
                raise EmptyAllowlist(f"Allowlist for group {label!r} is empty")
            if len(allowlist.wallets) > self._max_entries:
                raise IngestionLimitExceeded(
                    f"Allowlist for group {label!r} has {len(allowlist.wallets)} entries "
                    f"(max {self._max_entries})"
                )
            self._lists[label] = canonicalize_all(allowlist.wallets, self._encoding)

    @classmethod
    def from_mapping(cls, groups: dict[str, Sequence[str]], **kwargs) -> AllowListRegistry:
        return cls(
            [AllowList(group_label=label, wallets=list(wallets)) for label, wallets in groups.items()],
            **kwargs,
        )

    @property
    def labels(self) -> list[str]:
        return list(self._lists)

    @property
    def restricted(self) -> bool:
        """False when no allowlist is configured at all."""
        return bool(self._lists)

    def tree(self, label: str = DEFAULT_GROUP) -> MerkleTree:
        """Return the group's tree, building it on first use."""
        tree = self._trees.get(label)
        if tree is not None:
            return tree
        wallets = self._lists[label]
        with self._lock:
            tree = self._trees.get(label)
            if tree is None:
                tree = MerkleTree(wallets)
                self._trees[label] = tree
                logger.info(
                    "Built allowlist tree for group %s: %d wallet(s), root %s",
                    label,
                    tree.size,
                    tree.hex_root,
                )
        return tree

    def root(self, label: str = DEFAULT_GROUP) -> bytes:
        return self.tree(label).root

    def group_root(self, label: str = DEFAULT_GROUP) -> GroupRoot:
        tree = self.tree(label)
        return GroupRoot(
            group_label=label,
            size=tree.size,
            root_hash=tree.hex_root,
            root_array=tree.root_array(),
        )

    def index_of(self, wallet: str, label: str = DEFAULT_GROUP) -> int:
        try:
            canonical = canonicalize(wallet, self._encoding)
        except MalformedIdentity:
            return -1
        return self.tree(label).index_of(canonical)

    def proof_for(self, wallet: str, label: str = DEFAULT_GROUP) -> list[bytes]:
        """Return the wallet's proof, or an empty list when it is not listed."""
        index = self.index_of(wallet, label)
        if index == -1:
            return []
        return self.tree(label).get_proof(index)

    def is_allowed(
        self,
        wallet: str | None,
        merkle_root: bytes | str,
        label: str = DEFAULT_GROUP,
    ) -> bool:
        return self.decision(wallet, merkle_root, label).allowed

    def decision(
        self,
        wallet: str | None,
        merkle_root: bytes | str,
        label: str = DEFAULT_GROUP,
    ) -> AdmissionDecision:
        """Decide whether *wallet* may mint in *label* given the committed root.

        Negative outcomes are returned, never raised. Only a root that is
        not valid hex text raises ``ValueError``.
        """
        committed = to_hash(merkle_root)
        base = {"group_label": label, "wallet": wallet, "committed_root": to_hex(committed)}

        if not self.restricted:
            return AdmissionDecision(allowed=True, reason="no allowlist configured", **base)
        if not wallet:
            return AdmissionDecision(allowed=False, reason="wallet not connected", **base)
        if label not in self._lists:
            logger.info("Rejected %s: unknown guard group %s", wallet, label)
            return AdmissionDecision(allowed=False, reason="unknown guard group", **base)

        tree = self.tree(label)
        index = self.index_of(wallet, label)
        if index == -1:
            logger.info("Rejected %s: not on allowlist for group %s", wallet, label)
            return AdmissionDecision(
                allowed=False,
                reason="wallet not on allowlist",
                local_root=tree.hex_root,
                **base,
            )

        proof = tree.get_proof(index)
        allowed = verify_leaf(tree.layers[0][index], proof, committed)
        if not allowed:
            logger.warning(
                "Allowlist root mismatch for group %s: local %s, committed %s",
                label,
                tree.hex_root,
                to_hex(committed),
            )

        return AdmissionDecision(
            allowed=allowed,
            reason="proof verified" if allowed else "proof does not match committed root",
            leaf_index=index,
            proof=[to_hex(p) for p in proof],
            local_root=tree.hex_root,
            **base,
        )
