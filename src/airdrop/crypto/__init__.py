"""
Airdrop Proof Service - Cryptographic Utilities

Provides leaf encoding, sorted-pair Merkle tree construction, proof
generation, and verification.
"""

from airdrop.crypto.leaf import (
    InvalidAddressError,
    InvalidAmountError,
    LeafEncodingError,
    encode_leaf,
    is_valid_address,
    normalize_address,
)
from airdrop.crypto.merkle import (
    EmptyTreeError,
    LeafNotFoundError,
    MerkleProof,
    MerkleTree,
    MerkleTreeError,
    compute_root_from_proof,
    from_hex,
    hash_pair,
    to_hex,
    verify_proof,
)

__all__ = [
    "EmptyTreeError",
    "InvalidAddressError",
    "InvalidAmountError",
    "LeafEncodingError",
    "LeafNotFoundError",
    "MerkleProof",
    "MerkleTree",
    "MerkleTreeError",
    "compute_root_from_proof",
    "encode_leaf",
    "from_hex",
    "hash_pair",
    "is_valid_address",
    "normalize_address",
    "to_hex",
    "verify_proof",
]
