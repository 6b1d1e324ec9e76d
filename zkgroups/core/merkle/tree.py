"""
Incremental Poseidon Merkle Tree.

Conceptual Background:
---------------------
Every group is a fixed-depth binary Merkle tree whose leaves are the
members' identity commitments, in insertion order. A member proves it
belongs to the group by revealing the sibling path from its leaf to the
root, without revealing anything else about the other members.

A tree of depth 20 has a million leaves, almost all empty. Instead of
materializing them we precompute one "zero hash" per level (the root of
an empty subtree of that height) and store only the filled prefix of each
level. Any node outside the filled prefix equals the zero hash of its level.

Properties:
----------
- Insert: O(depth)
- Root: O(1)
- Build from n leaves: O(n + depth) hashes
- Prove: O(depth)
- Verify: O(depth)
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Tuple

from zkgroups.core.errors import GroupFullError, InvalidInputError, NotFoundError
from zkgroups.crypto import FIELD_PRIME, poseidon2
from zkgroups.utils.logger import get_logger

logger = get_logger("merkle")


@lru_cache(maxsize=64)
def zero_hashes(zero_value: int, depth: int) -> Tuple[int, ...]:
    """
    Roots of empty subtrees, indexed by height.

    zeros[0] = zero_value, zeros[i + 1] = H(zeros[i], zeros[i])
    """
    zeros = [zero_value]
    for _ in range(depth):
        zeros.append(poseidon2(zeros[-1], zeros[-1]))
    return tuple(zeros)


# =============================================================================
# Proof
# =============================================================================


@dataclass
class MerkleProof:
    """
    Inclusion proof for one leaf.

    Attributes:
        root: Tree root the proof commits to
        leaf: Proven leaf value
        leaf_index: Position of the leaf
        siblings: Sibling hash at every level, leaf level first
        path_indices: 1 where the current node is the right child, else 0
        group_id: Id of the group the tree belongs to, if known
    """
    root: int
    leaf: int
    leaf_index: int
    siblings: List[int]
    path_indices: List[int]
    group_id: Optional[int] = None

    @property
    def tree_depth(self) -> int:
        return len(self.siblings)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly form; field elements become decimal strings."""
        return {
            "root": str(self.root),
            "leaf": str(self.leaf),
            "leafIndex": self.leaf_index,
            "siblings": [str(s) for s in self.siblings],
            "pathIndices": list(self.path_indices),
            "groupId": None if self.group_id is None else str(self.group_id),
            "treeDepth": self.tree_depth,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MerkleProof":
        if not isinstance(data, dict):
            raise InvalidInputError(
                f"Malformed Merkle proof: expected an object, got {type(data).__name__}"
            )
        try:
            group_id = data.get("groupId")
            proof = cls(
                root=int(data["root"]),
                leaf=int(data["leaf"]),
                leaf_index=int(data["leafIndex"]),
                siblings=[int(s) for s in data["siblings"]],
                path_indices=[int(p) for p in data["pathIndices"]],
                group_id=None if group_id is None else int(group_id),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidInputError(f"Malformed Merkle proof: {e}") from e

        depth = data.get("treeDepth")
        if depth is not None and depth != proof.tree_depth:
            raise InvalidInputError(
                f"Malformed Merkle proof: treeDepth {depth} but {proof.tree_depth} siblings"
            )
        return proof


def verify_proof(proof: MerkleProof) -> bool:
    """
    Recompute the root from leaf and path and compare.

    Args:
        proof: Proof to check

    Returns:
        True if the path leads to proof.root
    """
    if len(proof.siblings) != len(proof.path_indices):
        return False
    if not 0 <= proof.leaf_index < (1 << len(proof.siblings)):
        return False

    current = proof.leaf
    if not 0 <= current < FIELD_PRIME:
        return False

    for level, (sibling, is_right) in enumerate(zip(proof.siblings, proof.path_indices)):
        if is_right not in (0, 1) or not 0 <= sibling < FIELD_PRIME:
            return False
        if is_right != (proof.leaf_index >> level) & 1:
            return False
        if is_right:
            current = poseidon2(sibling, current)
        else:
            current = poseidon2(current, sibling)

    return current == proof.root


# =============================================================================
# Incremental Merkle Tree
# =============================================================================


class IncrementalMerkleTree:
    """
    Append-only, fixed-depth binary Merkle tree with Poseidon nodes.

    Attributes:
        depth: Tree depth (2^depth leaves)
        zero_value: Value of an empty leaf
        nodes: Filled prefix of every level, leaves at nodes[0]
    """

    def __init__(self, depth: int, zero_value: int = 0):
        if not 1 <= depth <= 32:
            raise InvalidInputError(f"Tree depth must be in [1, 32], got {depth}")
        if not 0 <= zero_value < FIELD_PRIME:
            raise InvalidInputError(f"Zero value {zero_value} out of field range")

        self.depth = depth
        self.zero_value = zero_value
        self.capacity = 1 << depth
        self.zeros = zero_hashes(zero_value, depth)
        self.nodes: List[List[int]] = [[] for _ in range(depth + 1)]
        self._index: Dict[int, int] = {}

    @classmethod
    def from_leaves(
        cls,
        depth: int,
        leaves: Iterable[int],
        zero_value: int = 0,
    ) -> "IncrementalMerkleTree":
        """
        Build a tree from leaves in one pass, level by level.

        Raises:
            GroupFullError: If there are more leaves than 2^depth
        """
        tree = cls(depth, zero_value)
        layer = [tree._check_leaf(leaf) for leaf in leaves]

        if len(layer) > tree.capacity:
            raise GroupFullError(
                f"{len(layer)} leaves do not fit in a tree of depth {depth}"
            )

        tree.nodes[0] = layer
        for level in range(depth):
            zero = tree.zeros[level]
            layer = [
                poseidon2(layer[i], layer[i + 1] if i + 1 < len(layer) else zero)
                for i in range(0, len(layer), 2)
            ]
            tree.nodes[level + 1] = layer

        for i, leaf in enumerate(tree.nodes[0]):
            tree._index.setdefault(leaf, i)

        logger.debug(f"Built tree: depth={depth}, leaves={len(tree)}, root={tree.root}")
        return tree

    @staticmethod
    def _check_leaf(leaf: int) -> int:
        if isinstance(leaf, bool) or not isinstance(leaf, int):
            raise InvalidInputError(f"Leaf must be int, got {type(leaf).__name__}")
        if not 0 <= leaf < FIELD_PRIME:
            raise InvalidInputError(f"Leaf {leaf} out of field range")
        return leaf

    @property
    def root(self) -> int:
        """Get the Merkle root."""
        top = self.nodes[self.depth]
        return top[0] if top else self.zeros[self.depth]

    @property
    def leaves(self) -> List[int]:
        return list(self.nodes[0])

    def insert(self, leaf: int) -> int:
        """
        Append a leaf at the next free position.

        Args:
            leaf: Field element to insert

        Returns:
            Index where the leaf was inserted

        Raises:
            GroupFullError: If all 2^depth leaves are taken
        """
        self._check_leaf(leaf)
        index = len(self.nodes[0])
        if index >= self.capacity:
            raise GroupFullError(f"Tree is full ({self.capacity} leaves)")

        self.nodes[0].append(leaf)
        self._index.setdefault(leaf, index)

        node = leaf
        idx = index
        for level in range(self.depth):
            if idx & 1:
                node = poseidon2(self.nodes[level][idx - 1], node)
            else:
                # Right sibling of a freshly appended node is always empty
                node = poseidon2(node, self.zeros[level])
            idx >>= 1
            parents = self.nodes[level + 1]
            if idx < len(parents):
                parents[idx] = node
            else:
                parents.append(node)

        return index

    def index_of(self, leaf: int) -> int:
        """Index of the first occurrence of `leaf`, or -1."""
        return self._index.get(leaf, -1)

    def create_proof(self, index: int, group_id: Optional[int] = None) -> MerkleProof:
        """
        Get the Merkle proof for the leaf at `index`.

        Raises:
            NotFoundError: If no leaf has been inserted at `index`
        """
        if not 0 <= index < len(self.nodes[0]):
            raise NotFoundError(f"Leaf index {index} does not exist")

        siblings = []
        path_indices = []
        idx = index
        for level in range(self.depth):
            sibling_idx = idx ^ 1
            layer = self.nodes[level]
            siblings.append(layer[sibling_idx] if sibling_idx < len(layer) else self.zeros[level])
            path_indices.append(idx & 1)
            idx >>= 1

        return MerkleProof(
            root=self.root,
            leaf=self.nodes[0][index],
            leaf_index=index,
            siblings=siblings,
            path_indices=path_indices,
            group_id=group_id,
        )

    def __len__(self) -> int:
        return len(self.nodes[0])

    def __contains__(self, leaf: int) -> bool:
        return leaf in self._index
