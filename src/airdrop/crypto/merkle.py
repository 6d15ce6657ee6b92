"""
Airdrop Proof Service - Merkle Tree Implementation

Provides deterministic Merkle tree construction with keccak256 hashing,
inclusion proof generation, and verification compatible with
OpenZeppelin's ``MerkleProof`` library.

Conventions:
- Leaves are sorted and de-duplicated before the tree is built, so the
  root only depends on the set of leaves
- Sibling hashes are combined in sorted order (smaller first), so proofs
  carry no left/right direction markers
- For odd numbers of nodes, the last node is promoted (not duplicated)
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from eth_utils import decode_hex, encode_hex, keccak

HASH_LENGTH = 32


class MerkleTreeError(Exception):
    """Base exception for Merkle tree errors."""

    pass


class EmptyTreeError(MerkleTreeError):
    """Raised when building a tree without leaves."""

    pass


class LeafNotFoundError(MerkleTreeError):
    """Raised when a proof is requested for a leaf outside the tree."""

    pass


def to_hex(value: bytes) -> str:
    """Render a hash as a lowercase ``0x``-prefixed hex string."""
    return encode_hex(value)


def from_hex(value: str) -> bytes:
    """
    Parse a ``0x``-prefixed (or bare) hex hash.

    Raises:
        ValueError: If value is not hex or not 32 bytes long
    """
    try:
        raw = decode_hex(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid hex hash: {value!r}") from e
    if len(raw) != HASH_LENGTH:
        raise ValueError(f"Hash must be {HASH_LENGTH} bytes, got {len(raw)}")
    return raw


def hash_pair(a: bytes, b: bytes) -> bytes:
    """
    Compute the hash of an internal node.

    The children are concatenated smaller-first before hashing, so
    ``hash_pair(a, b) == hash_pair(b, a)``.
    """
    if a <= b:
        return keccak(a + b)
    return keccak(b + a)


@dataclass(frozen=True)
class MerkleProof:
    """
    Merkle inclusion proof for a leaf.

    Attributes:
        leaf_hash: Leaf being proven
        proof_path: Sibling hashes from the leaf level up to the root
        root_hash: Expected Merkle root
        tree_size: Number of leaves in the tree
    """

    leaf_hash: bytes
    proof_path: tuple[bytes, ...]
    root_hash: bytes
    tree_size: int

    def verify(self) -> bool:
        """Check that the path folds to the root."""
        return verify_proof(self.leaf_hash, self.proof_path, self.root_hash)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary with hex-encoded hashes."""
        return {
            "leaf": to_hex(self.leaf_hash),
            "proof": [to_hex(h) for h in self.proof_path],
            "root": to_hex(self.root_hash),
            "tree_size": self.tree_size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MerkleProof":
        """Deserialize from a dictionary produced by ``to_dict``."""
        return cls(
            leaf_hash=from_hex(data["leaf"]),
            proof_path=tuple(from_hex(h) for h in data["proof"]),
            root_hash=from_hex(data["root"]),
            tree_size=data["tree_size"],
        )


class MerkleTree:
    """
    Sorted-pair Merkle tree over 32-byte leaves.

    Features:
    - Order-independent construction (leaves are sorted first)
    - Sorted-pair internal node hashing
    - Odd nodes promoted to the next level
    - Immutable after construction

    Example:
        >>> tree = MerkleTree.from_leaves([leaf_a, leaf_b, leaf_c])
        >>> proof = tree.get_proof(leaf_b)
        >>> verify_proof(leaf_b, proof, tree.root)
        True
    """

    def __init__(self, layers: tuple[tuple[bytes, ...], ...]) -> None:
        """
        Initialize Merkle tree (internal use).

        Use from_leaves() or from_hex_leaves() to construct trees.
        """
        self._layers = layers
        self._positions = {leaf: i for i, leaf in enumerate(layers[0])}

    @classmethod
    def from_leaves(cls, leaves: Iterable[bytes]) -> "MerkleTree":
        """
        Construct a Merkle tree from leaf hashes.

        Args:
            leaves: 32-byte leaf hashes in any order, duplicates allowed

        Returns:
            Constructed MerkleTree

        Raises:
            EmptyTreeError: If leaves is empty
            ValueError: If a leaf is not 32 bytes
        """
        unique = set()
        for leaf in leaves:
            if not isinstance(leaf, bytes) or len(leaf) != HASH_LENGTH:
                raise ValueError(f"Leaf must be {HASH_LENGTH} bytes")
            unique.add(leaf)

        if not unique:
            raise EmptyTreeError("Cannot create Merkle tree from empty leaves")

        return cls(cls._build_layers(tuple(sorted(unique))))

    @classmethod
    def from_hex_leaves(cls, leaves: Iterable[str]) -> "MerkleTree":
        """Construct a Merkle tree from hex-encoded leaf hashes."""
        return cls.from_leaves(from_hex(h) for h in leaves)

    @staticmethod
    def _build_layers(leaves: tuple[bytes, ...]) -> tuple[tuple[bytes, ...], ...]:
        """Build all levels bottom-up; the last level holds only the root."""
        layers = [leaves]
        current_level = leaves

        while len(current_level) > 1:
            next_level = []

            for i in range(0, len(current_level), 2):
                if i + 1 < len(current_level):
                    next_level.append(hash_pair(current_level[i], current_level[i + 1]))
                else:
                    # Odd case: promote the last node
                    next_level.append(current_level[i])

            current_level = tuple(next_level)
            layers.append(current_level)

        return tuple(layers)

    @property
    def root(self) -> bytes:
        """Get the root hash (Merkle root)."""
        return self._layers[-1][0]

    @property
    def root_hex(self) -> str:
        """Get the root hash as ``0x``-prefixed hex."""
        return to_hex(self.root)

    @property
    def leaves(self) -> tuple[bytes, ...]:
        """Get all leaves in sorted order."""
        return self._layers[0]

    @property
    def leaf_count(self) -> int:
        """Get the number of distinct leaves."""
        return len(self._layers[0])

    @property
    def depth(self) -> int:
        """Number of hashing levels above the leaves."""
        return len(self._layers) - 1

    def contains(self, leaf: bytes) -> bool:
        """Check if a leaf is part of the tree."""
        return leaf in self._positions

    def __contains__(self, leaf: object) -> bool:
        return leaf in self._positions

    def __len__(self) -> int:
        return self.leaf_count

    def get_proof(self, leaf: bytes) -> list[bytes]:
        """
        Generate inclusion proof for a leaf.

        Args:
            leaf: Leaf hash to prove

        Returns:
            Sibling hashes ordered from the leaf level to the root

        Raises:
            LeafNotFoundError: If the leaf is not in the tree
        """
        index = self._positions.get(leaf)
        if index is None:
            raise LeafNotFoundError(f"Leaf {to_hex(leaf)} not in tree")

        proof_path = []
        for level in self._layers[:-1]:
            sibling = index ^ 1
            if sibling < len(level):
                proof_path.append(level[sibling])
            # A node without a sibling is promoted and adds nothing
            index //= 2

        return proof_path

    def get_merkle_proof(self, leaf: bytes) -> MerkleProof:
        """Generate a self-contained proof bundle for a leaf."""
        return MerkleProof(
            leaf_hash=leaf,
            proof_path=tuple(self.get_proof(leaf)),
            root_hash=self.root,
            tree_size=self.leaf_count,
        )


def compute_root_from_proof(leaf: bytes, proof: Sequence[bytes]) -> bytes:
    """
    Compute the root hash from a leaf and proof path.

    Args:
        leaf: Hash of the leaf
        proof: Sibling hashes in proof order

    Returns:
        Computed root hash
    """
    current_hash = leaf

    for sibling in proof:
        current_hash = hash_pair(current_hash, sibling)

    return current_hash


def verify_proof(leaf: bytes, proof: Sequence[bytes], root: bytes) -> bool:
    """
    Verify a Merkle inclusion proof against a known root.

    Needs no access to the tree that produced the proof.

    Args:
        leaf: Hash of the leaf
        proof: Sibling hashes in proof order
        root: Expected Merkle root

    Returns:
        True if the proof folds to exactly ``root``
    """
    return compute_root_from_proof(leaf, proof) == root
