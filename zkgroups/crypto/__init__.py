"""
Cryptographic primitives for zkgroups.

This module provides:
- Hashing functions (SHA-256, Keccak-256, Poseidon)
- Field element conversion helpers
- Group identifier derivation

Poseidon is used for Merkle tree nodes so that membership proofs are cheap
to verify inside a circuit. Keccak-256 derives the numeric group id from
the group name, the same way EVM contracts identify groups.
"""

import hashlib

from Crypto.Hash import keccak

from zkgroups.crypto.poseidon import (
    FIELD_PRIME,
    PoseidonParams,
    get_params,
    permute,
    poseidon_hash,
    poseidon1,
    poseidon2,
    poseidon_bytes,
)


# =============================================================================
# Hashing
# =============================================================================


def sha256(data: bytes) -> bytes:
    """Compute SHA-256 hash."""
    return hashlib.sha256(data).digest()


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: group id derivation.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Field Elements
# =============================================================================


def int_to_bytes32(val: int) -> bytes:
    """Convert field element to 32 bytes."""
    return val.to_bytes(32, byteorder="big")


def bytes32_to_int(data: bytes) -> int:
    """Convert 32 bytes to field element."""
    if len(data) != 32:
        raise ValueError(f"Expected 32 bytes, got {len(data)}")
    val = int.from_bytes(data, byteorder="big")
    if val >= FIELD_PRIME:
        raise ValueError(f"Value {val} exceeds field prime")
    return val


def compute_group_id(name: str) -> int:
    """
    Derive the numeric group id from its name.

    group_id = keccak256(utf8(name)) >> 8

    Dropping the low byte leaves a 248-bit value, always below FIELD_PRIME.
    """
    digest = keccak256(name.encode("utf-8"))
    return int.from_bytes(digest, byteorder="big") >> 8


__all__ = [
    "FIELD_PRIME",
    "PoseidonParams",
    "get_params",
    "permute",
    "poseidon_hash",
    "poseidon1",
    "poseidon2",
    "poseidon_bytes",
    "sha256",
    "keccak256",
    "int_to_bytes32",
    "bytes32_to_int",
    "compute_group_id",
]
