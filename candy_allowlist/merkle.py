"""Keccak-256 Merkle Tree for candy machine allowlists.

Tree format (for third-party verifiers)
=======================================

**Hash algorithm:** Keccak-256 (the pre-standard SHA-3 variant used by
``keccak_256`` / Solidity), 32-byte digests.

**Domain-separated hashing** (prevents second-preimage attacks where
an internal node could be reinterpreted as a leaf):

- Leaf nodes:     H(0x00 || identity)
- Internal nodes: H(0x01 || min(a, b) || max(a, b))

Pairs are ordered byte-wise before hashing, so a proof is a flat list of
sibling hashes with no left/right markers.

**Tree structure:** Unbalanced binary Merkle Tree. When a layer has an
odd number of nodes, the last one is carried to the next layer unchanged
(not duplicated, not hashed with itself). Proofs skip that layer.

**Immutability:** A tree is built once from an ordered allowlist and
never mutated. Leaf order defines proof indices; re-ordering the input
changes the root.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from eth_utils import decode_hex, keccak

Identity = str | bytes


class EmptyAllowlist(ValueError):
    """Raised when a tree is built from zero identities (there is no root)."""


class InvalidIndex(IndexError):
    """Raised when a leaf index is outside ``[0, N)``."""


def _identity_bytes(identity: Identity) -> bytes:
    if isinstance(identity, str):
        return identity.encode("utf-8")
    return bytes(identity)


def to_hash(value: bytes | bytearray | str) -> bytes:
    """Return raw digest bytes from bytes or hex text (``0x`` optional).

    Raises ``ValueError`` for text that is not valid hex and ``TypeError``
    for anything that is neither text nor bytes.
    """
    if isinstance(value, str):
        try:
            return decode_hex(value)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Invalid hex hash: {value!r}") from exc
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError(f"Hash must be bytes or hex text, got {type(value).__name__}")
    return bytes(value)


def to_hex(value: bytes) -> str:
    """Lowercase hex rendering of a digest, without a ``0x`` prefix."""
    return bytes(value).hex()


class MerkleTree:
    """Immutable Keccak-256 Merkle Tree over an ordered allowlist.

    Verification by third parties requires only:
    - The identity (to recompute the leaf hash)
    - The sibling path (from ``get_proof``)
    - The root committed on-chain

    No access to the tree instance is needed; use the module-level
    ``verify_identity`` / ``verify_leaf`` functions.
    """

    _LEAF_PREFIX = b"\x00"
    _NODE_PREFIX = b"\x01"

    def __init__(self, identities: Iterable[Identity]) -> None:
        self.data: list[Identity] = list(identities)
        if not self.data:
            raise EmptyAllowlist("Cannot build a Merkle tree from an empty allowlist")

        self.leaves: list[bytes] = [_identity_bytes(i) for i in self.data]
        self.layers: list[list[bytes]] = []

        hashes = [self.hash_leaf(leaf) for leaf in self.leaves]
        while True:
            self.layers.append(hashes)
            if len(hashes) == 1:
                break
            hashes = self._next_layer(hashes)

    @staticmethod
    def hash_leaf(data: bytes) -> bytes:
        return keccak(MerkleTree._LEAF_PREFIX + data)

    @staticmethod
    def hash_node(first: bytes, second: bytes) -> bytes:
        low, high = sorted((first, second))
        return keccak(MerkleTree._NODE_PREFIX + low + high)

    @property
    def size(self) -> int:
        return len(self.leaves)

    @property
    def root(self) -> bytes:
        return self.layers[-1][0]

    @property
    def hex_root(self) -> str:
        return to_hex(self.root)

    def get_root(self) -> bytes:
        return self.root

    def get_hex_root(self) -> str:
        return self.hex_root

    def root_array(self) -> list[int]:
        """Root as a list of byte values, the form guard configs accept."""
        return list(self.root)

    def index_of(self, identity: Identity) -> int:
        """Return the first index of *identity*, or ``-1`` when absent."""
        try:
            return self.leaves.index(_identity_bytes(identity))
        except ValueError:
            return -1

    def get_proof(self, index: int) -> list[bytes]:
        """Return the sibling hashes needed to rebuild the root from *index*.

        Layers where the node was carried forward contribute nothing.
        """
        self._check_index(index)

        proof: list[bytes] = []
        for layer in self.layers[:-1]:
            sibling = index ^ 1
            if sibling < len(layer):
                proof.append(layer[sibling])
            index //= 2
        return proof

    def get_hex_proof(self, index: int) -> list[str]:
        return [to_hex(p) for p in self.get_proof(index)]

    def proof_array(self, index: int) -> list[list[int]]:
        return [list(p) for p in self.get_proof(index)]

    def verify_proof(self, index: int, proof: Sequence[bytes], root: bytes | str) -> bool:
        """Verify *proof* for the leaf at *index* against an external *root*."""
        self._check_index(index)
        return verify_leaf(self.layers[0][index], proof, root)

    def verify_claim(self, identity: Identity, proof: Sequence[bytes]) -> bool:
        """Verify a raw identity against this tree's own root."""
        return verify_identity(identity, proof, self.root)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        n = len(self.leaves)
        if index < 0 or index >= n:
            raise InvalidIndex(f"leaf index {index} out of range [0, {n})")

    @staticmethod
    def _next_layer(level: list[bytes]) -> list[bytes]:
        next_level: list[bytes] = []
        for i in range(0, len(level), 2):
            if i + 1 < len(level):
                next_level.append(MerkleTree.hash_node(level[i], level[i + 1]))
            else:
                next_level.append(level[i])
        return next_level


def verify_leaf(leaf_hash: bytes, proof: Sequence[bytes | str], root: bytes | str) -> bool:
    """Recompute the root from *leaf_hash* and *proof*; compare with *root*.

    Returns True only on an exact byte match. A mismatch is a normal
    negative result, never an exception. Malformed input is not a
    mismatch: a proof element or root given as text that is not hex
    raises ``ValueError``, one that is neither text nor bytes raises
    ``TypeError``.
    """
    current = bytes(leaf_hash)
    for sibling in proof:
        current = MerkleTree.hash_node(current, to_hash(sibling))
    return current == to_hash(root)


def verify_identity(identity: Identity, proof: Sequence[bytes | str], root: bytes | str) -> bool:
    """Verify a raw identity (not its tree position) against *root*."""
    return verify_leaf(MerkleTree.hash_leaf(_identity_bytes(identity)), proof, root)
