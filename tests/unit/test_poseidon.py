"""
Tests for Poseidon hash and crypto helpers.

These tests verify:
1. Basic functionality of Poseidon hash
2. Determinism and domain separation
3. Field range checks
4. Keccak-based group ids
"""

import pytest
from zkgroups.crypto import (
    FIELD_PRIME,
    bytes32_to_int,
    compute_group_id,
    get_params,
    int_to_bytes32,
    keccak256,
    permute,
    poseidon1,
    poseidon2,
    poseidon_bytes,
    poseidon_hash,
    sha256,
)


class TestPoseidonBasic:
    """Basic Poseidon hash tests."""

    def test_poseidon2_deterministic(self):
        """Same inputs always produce same output."""
        assert poseidon2(1, 2) == poseidon2(1, 2)

    def test_poseidon2_different_inputs(self):
        """Different inputs produce different outputs."""
        h1 = poseidon2(1, 2)
        h2 = poseidon2(2, 1)
        h3 = poseidon2(1, 3)
        assert len({h1, h2, h3}) == 3

    def test_poseidon1_matches_padded_pair(self):
        """A single input is zero-padded to the rate."""
        assert poseidon1(42) == poseidon2(42, 0)

    def test_output_in_field(self):
        """Output is always in the field."""
        for i in range(20):
            h = poseidon2(i, i * 2)
            assert 0 <= h < FIELD_PRIME

    def test_domain_separation(self):
        """Different capacity values give different hashes."""
        assert poseidon2(1, 2, domain_sep=0) != poseidon2(1, 2, domain_sep=1)

    def test_too_many_inputs(self):
        with pytest.raises(ValueError, match="max 2 inputs"):
            poseidon_hash([1, 2, 3])

    def test_input_out_of_field(self):
        with pytest.raises(ValueError, match="out of field range"):
            poseidon2(FIELD_PRIME, 0)
        with pytest.raises(ValueError, match="out of field range"):
            poseidon2(-1, 0)


class TestPoseidonParams:
    """Tests for parameter generation."""

    def test_params_memoized(self):
        assert get_params() is get_params()

    def test_params_shape(self):
        params = get_params()
        assert params.t == 3
        assert len(params.round_constants) == params.total_rounds * params.t
        assert len(params.mds) == 3
        assert all(len(row) == 3 for row in params.mds)

    def test_mds_entries_are_inverses(self):
        """M[i][j] * (x_i + y_j) == 1 mod p."""
        params = get_params()
        for i in range(3):
            for j in range(3):
                assert (params.mds[i][j] * (i + 1 + 3 + j + 1)) % FIELD_PRIME == 1

    def test_permute_wrong_width(self):
        with pytest.raises(ValueError, match="3 elements"):
            permute([1, 2], get_params())


class TestPoseidonBytes:
    """Tests for byte hashing."""

    def test_empty(self):
        assert poseidon_bytes(b"") == poseidon1(0)

    def test_multi_chunk(self):
        """Data longer than 31 bytes is absorbed chunk by chunk."""
        data = b"a" * 70
        assert poseidon_bytes(data) != poseidon_bytes(data[:31])
        assert poseidon_bytes(data) == poseidon_bytes(data)


class TestFieldHelpers:
    """Tests for field element conversion and group ids."""

    def test_bytes32_roundtrip(self):
        assert bytes32_to_int(int_to_bytes32(123123)) == 123123

    def test_bytes32_rejects_wrong_length(self):
        with pytest.raises(ValueError, match="Expected 32 bytes"):
            bytes32_to_int(b"\x01" * 31)

    def test_bytes32_rejects_out_of_field(self):
        with pytest.raises(ValueError, match="exceeds field prime"):
            bytes32_to_int(b"\xff" * 32)

    def test_keccak_known_vector(self):
        """keccak256('') is the well-known Ethereum empty hash."""
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_sha256_known_vector(self):
        assert sha256(b"abc").hex() == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_group_id_fits_field(self):
        gid = compute_group_id("Group1")
        assert 0 <= gid < 2 ** 248 < FIELD_PRIME
        assert gid == int.from_bytes(keccak256(b"Group1"), "big") >> 8

    def test_group_id_depends_on_name(self):
        assert compute_group_id("Group1") != compute_group_id("Group2")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
