"""Poseidon Merkle trees for group membership proofs"""
from zkgroups.core.merkle.tree import (
    IncrementalMerkleTree,
    MerkleProof,
    verify_proof,
    zero_hashes,
)
from zkgroups.core.merkle.builder import (
    MerkleTreeBuilder,
    PoseidonTreeBuilder,
    TreeCache,
)

__all__ = [
    "IncrementalMerkleTree",
    "MerkleProof",
    "verify_proof",
    "zero_hashes",
    "MerkleTreeBuilder",
    "PoseidonTreeBuilder",
    "TreeCache",
]
