"""
Poseidon Hash Function for zkgroups.

Group Merkle trees hash their nodes with Poseidon, a hash designed for
arithmetic circuits, so that a circuit using the same parameters can check
membership proofs with a low constraint count.

References:
- Poseidon paper: https://eprint.iacr.org/2019/458

Round constants are drawn from SHAKE256 and the MDS matrix is a Cauchy
matrix, so this is not the circomlib parameter set. Roots and proofs are
consistent within zkgroups but will not verify in circomlib or Semaphore
circuits.

Parameters (BN254 / alt_bn128):
- Field: 21888242871839275222246405745257275088548364400416034343698204186575808495617
- t=3 (2 inputs + 1 capacity)
- rounds_f=8 (full rounds)
- rounds_p=57 (partial rounds)
- alpha=5 (S-box exponent)
"""

import hashlib
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Sequence, Tuple

# BN254 scalar field prime
FIELD_PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# Width of the permutation (capacity + rate)
STATE_WIDTH = 3
FULL_ROUNDS = 8
PARTIAL_ROUNDS = 57
SBOX_ALPHA = 5


# =============================================================================
# Parameters
# =============================================================================


@dataclass(frozen=True)
class PoseidonParams:
    """
    Round constants and MDS matrix for one permutation width.

    Attributes:
        t: State width
        rounds_f: Number of full rounds (split evenly before/after partial rounds)
        rounds_p: Number of partial rounds
        round_constants: Flat list, t constants per round
        mds: t x t Cauchy matrix
    """
    t: int
    rounds_f: int
    rounds_p: int
    round_constants: Tuple[int, ...]
    mds: Tuple[Tuple[int, ...], ...]

    @property
    def total_rounds(self) -> int:
        return self.rounds_f + self.rounds_p


def _round_constants(t: int, total_rounds: int, seed: bytes) -> Tuple[int, ...]:
    """Derive round constants from a SHAKE256 stream, 32 bytes per constant."""
    digest = hashlib.shake_256(seed).digest(total_rounds * t * 32)
    return tuple(
        int.from_bytes(digest[i * 32:(i + 1) * 32], byteorder="big") % FIELD_PRIME
        for i in range(total_rounds * t)
    )


def _cauchy_matrix(t: int) -> Tuple[Tuple[int, ...], ...]:
    """
    Build M[i][j] = 1 / (x_i + y_j) with x = 1..t and y = t+1..2t.

    Distinct x and y make every square submatrix invertible, so M is MDS.
    """
    xs = [i + 1 for i in range(t)]
    ys = [t + i + 1 for i in range(t)]
    return tuple(
        tuple(pow((x + y) % FIELD_PRIME, FIELD_PRIME - 2, FIELD_PRIME) for y in ys)
        for x in xs
    )


@lru_cache(maxsize=None)
def get_params(
    t: int = STATE_WIDTH,
    rounds_f: int = FULL_ROUNDS,
    rounds_p: int = PARTIAL_ROUNDS,
    seed: bytes = b"poseidon",
) -> PoseidonParams:
    """Get (and memoize) the parameter set for a permutation width."""
    return PoseidonParams(
        t=t,
        rounds_f=rounds_f,
        rounds_p=rounds_p,
        round_constants=_round_constants(t, rounds_f + rounds_p, seed),
        mds=_cauchy_matrix(t),
    )


# =============================================================================
# Permutation
# =============================================================================


def _mix(state: List[int], mds: Sequence[Sequence[int]]) -> List[int]:
    return [sum(m * s for m, s in zip(row, state)) % FIELD_PRIME for row in mds]


def permute(state: Sequence[int], params: PoseidonParams) -> List[int]:
    """
    Apply the Poseidon permutation to a full state.

    Full rounds apply the S-box to every element, partial rounds only to
    the first one.
    """
    if len(state) != params.t:
        raise ValueError(f"State must have {params.t} elements, got {len(state)}")

    state = list(state)
    half_f = params.rounds_f // 2
    constants = params.round_constants

    for r in range(params.total_rounds):
        offset = r * params.t
        state = [(s + constants[offset + i]) % FIELD_PRIME for i, s in enumerate(state)]

        if r < half_f or r >= half_f + params.rounds_p:
            state = [pow(s, SBOX_ALPHA, FIELD_PRIME) for s in state]
        else:
            state[0] = pow(state[0], SBOX_ALPHA, FIELD_PRIME)

        state = _mix(state, params.mds)

    return state


def poseidon_hash(inputs: Sequence[int], domain_sep: int = 0) -> int:
    """
    Compute Poseidon hash of up to two field elements.

    Args:
        inputs: Field elements (integers < FIELD_PRIME)
        domain_sep: Value placed in the capacity element

    Returns:
        Hash as a field element

    Raises:
        ValueError: If inputs are out of range or too many
    """
    params = get_params()
    rate = params.t - 1

    if len(inputs) > rate:
        raise ValueError(f"This implementation supports max {rate} inputs, got {len(inputs)}")

    for i, val in enumerate(inputs):
        if not (0 <= val < FIELD_PRIME):
            raise ValueError(f"Input {i} out of field range: {val}")

    padded = list(inputs) + [0] * (rate - len(inputs))
    state = permute([domain_sep % FIELD_PRIME] + padded, params)
    return state[1]


def poseidon2(a: int, b: int, domain_sep: int = 0) -> int:
    """Hash two field elements."""
    return poseidon_hash([a, b], domain_sep)


def poseidon1(a: int, domain_sep: int = 0) -> int:
    """Hash one field element."""
    return poseidon_hash([a], domain_sep)


def poseidon_bytes(data: bytes, domain_sep: int = 0) -> int:
    """
    Hash arbitrary bytes by absorbing 31-byte chunks one at a time.

    31 bytes always fit below FIELD_PRIME.
    """
    if not data:
        return poseidon1(0, domain_sep)

    h = domain_sep
    for i in range(0, len(data), 31):
        h = poseidon2(h, int.from_bytes(data[i:i + 31], byteorder="big"))
    return h
