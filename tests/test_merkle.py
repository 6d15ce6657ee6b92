"""
Unit tests for the sorted-pair Merkle tree implementation.

Includes order-independence, odd-node promotion and tamper coverage.
"""

import itertools
import random

import pytest
from eth_utils import keccak

from airdrop.crypto.merkle import (
    EmptyTreeError,
    LeafNotFoundError,
    MerkleProof,
    MerkleTree,
    compute_root_from_proof,
    from_hex,
    hash_pair,
    to_hex,
    verify_proof,
)


def make_leaves(count: int) -> list[bytes]:
    """Generate distinct 32-byte leaves."""
    return [keccak(text=f"leaf{i}") for i in range(count)]


def flip_bit(value: bytes, bit: int) -> bytes:
    """Flip a single bit of a byte string."""
    data = bytearray(value)
    data[bit // 8] ^= 1 << (bit % 8)
    return bytes(data)


class TestHashFunctions:
    """Tests for hash helpers."""

    def test_hash_pair_sorts_children(self) -> None:
        """Test the smaller child is hashed first."""
        low = b"\x00" * 31 + b"\x01"
        high = b"\xff" * 32

        assert hash_pair(low, high) == keccak(low + high)
        assert hash_pair(high, low) == keccak(low + high)

    def test_hash_pair_commutative(self) -> None:
        """Test argument order does not matter."""
        a, b = make_leaves(2)
        assert hash_pair(a, b) == hash_pair(b, a)

    def test_hash_pair_equal_children(self) -> None:
        """Test a node paired with itself hashes its concatenation."""
        a = make_leaves(1)[0]
        assert hash_pair(a, a) == keccak(a + a)

    def test_to_hex_format(self) -> None:
        """Test hex rendering is lowercase and 0x-prefixed."""
        value = bytes(range(32))
        rendered = to_hex(value)

        assert rendered == "0x" + value.hex()
        assert rendered == rendered.lower()
        assert len(rendered) == 66

    def test_from_hex_accepts_prefix_and_case(self) -> None:
        """Test hex parsing with and without prefix."""
        value = bytes(range(32))

        assert from_hex("0x" + value.hex()) == value
        assert from_hex(value.hex().upper()) == value

    @pytest.mark.parametrize("value", ["0x1234", "0x" + "zz" * 32, "", "0x" + "00" * 33])
    def test_from_hex_invalid(self, value: str) -> None:
        """Test malformed or wrong-length hex raises ValueError."""
        with pytest.raises(ValueError):
            from_hex(value)


class TestMerkleTree:
    """Tests for MerkleTree construction."""

    def test_single_leaf(self) -> None:
        """Test tree with single leaf."""
        leaf = make_leaves(1)[0]
        tree = MerkleTree.from_leaves([leaf])

        assert tree.leaf_count == 1
        assert tree.root == leaf
        assert tree.depth == 0

    def test_two_leaves(self) -> None:
        """Test tree with two leaves."""
        a, b = make_leaves(2)
        tree = MerkleTree.from_leaves([a, b])

        assert tree.leaf_count == 2
        assert tree.root == hash_pair(a, b)

    def test_three_leaves_odd(self) -> None:
        """Test tree with odd number of leaves."""
        s0, s1, s2 = sorted(make_leaves(3))
        tree = MerkleTree.from_leaves([s2, s0, s1])

        # With promotion strategy:
        # Level 0: s0, s1, s2
        # Level 1: h01, s2 (promoted)
        # Level 2: root = hash(h01, s2)
        expected_root = hash_pair(hash_pair(s0, s1), s2)

        assert tree.root == expected_root
        assert tree.depth == 2

    def test_four_leaves(self) -> None:
        """Test tree with four leaves (perfect binary tree)."""
        s0, s1, s2, s3 = sorted(make_leaves(4))
        tree = MerkleTree.from_leaves([s0, s1, s2, s3])

        expected_root = hash_pair(hash_pair(s0, s1), hash_pair(s2, s3))
        assert tree.root == expected_root

    def test_five_leaves_promotes_without_duplicating(self) -> None:
        """Test the unpaired node is carried up unchanged."""
        s = sorted(make_leaves(5))
        tree = MerkleTree.from_leaves(s)

        # Level 1: h01, h23, s4; Level 2: h0123, s4
        h0123 = hash_pair(hash_pair(s[0], s[1]), hash_pair(s[2], s[3]))
        assert tree.root == hash_pair(h0123, s[4])

        duplicated = hash_pair(h0123, hash_pair(hash_pair(s[4], s[4]), hash_pair(s[4], s[4])))
        assert tree.root != duplicated

    def test_empty_leaves_raises(self) -> None:
        """Test that empty leaves raises EmptyTreeError."""
        with pytest.raises(EmptyTreeError, match="empty"):
            MerkleTree.from_leaves([])

    def test_wrong_leaf_length_raises(self) -> None:
        """Test that non-32-byte leaves are rejected."""
        with pytest.raises(ValueError):
            MerkleTree.from_leaves([b"short"])

    def test_leaves_sorted(self) -> None:
        """Test leaves are stored in ascending order."""
        leaves = make_leaves(6)
        tree = MerkleTree.from_leaves(leaves)

        assert list(tree.leaves) == sorted(leaves)

    def test_duplicates_collapse(self) -> None:
        """Test duplicate leaves do not change the root."""
        leaves = make_leaves(3)
        tree1 = MerkleTree.from_leaves(leaves)
        tree2 = MerkleTree.from_leaves(leaves + [leaves[0], leaves[2]])

        assert tree2.leaf_count == 3
        assert tree1.root == tree2.root

    def test_all_permutations_same_root(self) -> None:
        """Test every ordering of the leaves yields the same root."""
        leaves = make_leaves(5)
        expected = MerkleTree.from_leaves(leaves).root

        for permutation in itertools.permutations(leaves):
            assert MerkleTree.from_leaves(permutation).root == expected

    def test_shuffled_large_tree_same_root(self) -> None:
        """Test shuffled input on a larger tree."""
        leaves = make_leaves(50)
        expected = MerkleTree.from_leaves(leaves).root
        rng = random.Random(1234)

        for _ in range(5):
            shuffled = leaves[:]
            rng.shuffle(shuffled)
            assert MerkleTree.from_leaves(shuffled).root == expected

    def test_from_hex_leaves(self) -> None:
        """Test construction from hex-encoded leaves."""
        leaves = make_leaves(4)
        tree1 = MerkleTree.from_leaves(leaves)
        tree2 = MerkleTree.from_hex_leaves([to_hex(leaf) for leaf in leaves])

        assert tree1.root == tree2.root
        assert tree2.root_hex == to_hex(tree1.root)

    def test_contains(self) -> None:
        """Test leaf membership."""
        leaves = make_leaves(3)
        tree = MerkleTree.from_leaves(leaves[:2])

        assert tree.contains(leaves[0])
        assert leaves[1] in tree
        assert not tree.contains(leaves[2])
        assert len(tree) == 2

    def test_different_sets_different_root(self) -> None:
        """Test that different leaf sets produce different roots."""
        leaves = make_leaves(4)
        assert MerkleTree.from_leaves(leaves[:3]).root != MerkleTree.from_leaves(leaves[1:]).root


class TestProofGeneration:
    """Tests for proof generation."""

    def test_proof_single_leaf(self) -> None:
        """Test proof for single leaf tree is empty."""
        leaf = make_leaves(1)[0]
        tree = MerkleTree.from_leaves([leaf])

        assert tree.get_proof(leaf) == []

    def test_proof_two_leaves(self) -> None:
        """Test each leaf's proof is its sibling."""
        a, b = make_leaves(2)
        tree = MerkleTree.from_leaves([a, b])

        assert tree.get_proof(a) == [b]
        assert tree.get_proof(b) == [a]

    def test_proof_three_leaves(self) -> None:
        """Test the promoted leaf has a shorter proof."""
        s0, s1, s2 = sorted(make_leaves(3))
        tree = MerkleTree.from_leaves([s0, s1, s2])

        assert tree.get_proof(s0) == [s1, s2]
        assert tree.get_proof(s1) == [s0, s2]
        assert tree.get_proof(s2) == [hash_pair(s0, s1)]

    def test_proof_four_leaves(self) -> None:
        """Test proof order runs from leaf level to root."""
        s0, s1, s2, s3 = sorted(make_leaves(4))
        tree = MerkleTree.from_leaves([s0, s1, s2, s3])

        assert tree.get_proof(s0) == [s1, hash_pair(s2, s3)]
        assert tree.get_proof(s3) == [s2, hash_pair(s0, s1)]

    def test_proof_missing_leaf(self) -> None:
        """Test that proof for an absent leaf raises."""
        leaves = make_leaves(3)
        tree = MerkleTree.from_leaves(leaves[:2])

        with pytest.raises(LeafNotFoundError):
            tree.get_proof(leaves[2])

    def test_get_merkle_proof(self) -> None:
        """Test proof bundle contents."""
        leaves = make_leaves(4)
        tree = MerkleTree.from_leaves(leaves)
        proof = tree.get_merkle_proof(leaves[1])

        assert proof.leaf_hash == leaves[1]
        assert list(proof.proof_path) == tree.get_proof(leaves[1])
        assert proof.root_hash == tree.root
        assert proof.tree_size == 4
        assert proof.verify()


class TestProofVerification:
    """Tests for proof verification."""

    def test_verify_single_leaf(self) -> None:
        """Test verification for single leaf."""
        leaf = make_leaves(1)[0]
        tree = MerkleTree.from_leaves([leaf])

        assert verify_proof(leaf, [], tree.root)

    def test_verify_all_sizes(self) -> None:
        """Test every leaf verifies for a range of tree sizes."""
        for count in range(1, 18):
            leaves = make_leaves(count)
            tree = MerkleTree.from_leaves(leaves)

            for leaf in leaves:
                proof = tree.get_proof(leaf)
                assert verify_proof(leaf, proof, tree.root), f"Proof failed in {count}-leaf tree"

    def test_verify_large_tree(self) -> None:
        """Test verification for larger tree."""
        leaves = make_leaves(100)
        tree = MerkleTree.from_leaves(leaves)

        for i in [0, 25, 50, 75, 99]:
            assert verify_proof(leaves[i], tree.get_proof(leaves[i]), tree.root)

    def test_verify_wrong_root_fails(self) -> None:
        """Test verification against another root fails."""
        leaves = make_leaves(4)
        tree = MerkleTree.from_leaves(leaves)
        proof = tree.get_proof(leaves[0])

        assert not verify_proof(leaves[0], proof, b"\x00" * 32)

    def test_verify_foreign_leaf_fails(self) -> None:
        """Test a leaf outside the tree cannot reuse a member's proof."""
        leaves = make_leaves(5)
        tree = MerkleTree.from_leaves(leaves[:4])
        proof = tree.get_proof(leaves[0])

        assert not verify_proof(leaves[4], proof, tree.root)

    def test_verify_bit_flips_fail(self) -> None:
        """Test flipping any single bit of any proof element fails."""
        leaves = make_leaves(8)
        tree = MerkleTree.from_leaves(leaves)
        leaf = leaves[3]
        proof = tree.get_proof(leaf)

        for index, element in enumerate(proof):
            for bit in range(256):
                tampered = proof[:index] + [flip_bit(element, bit)] + proof[index + 1:]
                assert not verify_proof(leaf, tampered, tree.root)

    def test_verify_tampered_leaf_fails(self) -> None:
        """Test that a tampered leaf fails verification."""
        leaves = make_leaves(4)
        tree = MerkleTree.from_leaves(leaves)
        proof = tree.get_proof(leaves[0])

        assert not verify_proof(flip_bit(leaves[0], 0), proof, tree.root)

    def test_verify_reordered_proof_fails(self) -> None:
        """Test that sibling order is significant."""
        for count in (4, 7, 16):
            leaves = make_leaves(count)
            tree = MerkleTree.from_leaves(leaves)

            for leaf in leaves:
                proof = tree.get_proof(leaf)
                if len(proof) < 2:
                    continue
                assert not verify_proof(leaf, list(reversed(proof)), tree.root)

    def test_verify_truncated_proof_fails(self) -> None:
        """Test that dropping a proof element fails."""
        leaves = make_leaves(4)
        tree = MerkleTree.from_leaves(leaves)
        proof = tree.get_proof(leaves[2])

        assert not verify_proof(leaves[2], proof[:-1], tree.root)

    def test_compute_root_from_proof(self) -> None:
        """Test computing root from proof."""
        leaves = make_leaves(6)
        tree = MerkleTree.from_leaves(leaves)

        computed = compute_root_from_proof(leaves[2], tree.get_proof(leaves[2]))
        assert computed == tree.root


class TestProofSerialization:
    """Tests for proof serialization/deserialization."""

    def test_proof_to_dict(self) -> None:
        """Test proof serialization to dictionary."""
        leaves = make_leaves(3)
        tree = MerkleTree.from_leaves(leaves)
        proof = tree.get_merkle_proof(leaves[0])

        data = proof.to_dict()

        assert data["leaf"] == to_hex(leaves[0])
        assert data["proof"] == [to_hex(h) for h in proof.proof_path]
        assert data["root"] == tree.root_hex
        assert data["tree_size"] == 3

    def test_proof_from_dict(self) -> None:
        """Test proof deserialization from dictionary."""
        leaves = make_leaves(5)
        tree = MerkleTree.from_leaves(leaves)
        proof = tree.get_merkle_proof(leaves[4])

        restored = MerkleProof.from_dict(proof.to_dict())

        assert restored == proof
        assert restored.verify()
