"""
Tree builder capability and tree cache.

The membership store never touches tree internals: it hands an ordered
member list to a MerkleTreeBuilder and asks it for proofs. Built trees are
cached per group version; membership is append-only, so the member count is
a complete version number.
"""

import threading
from collections import OrderedDict
from typing import Hashable, Optional, Protocol, Sequence, Tuple, runtime_checkable

from zkgroups.core.errors import NotFoundError
from zkgroups.core.merkle.tree import IncrementalMerkleTree, MerkleProof
from zkgroups.utils.logger import get_logger

logger = get_logger("merkle.builder")


# =============================================================================
# Protocols for Type Checking
# =============================================================================


@runtime_checkable
class MerkleTreeBuilder(Protocol):
    """Protocol for anything that can build group trees and prove leaves."""

    def build(self, members: Sequence[int], depth: int) -> IncrementalMerkleTree:
        ...

    def prove(self, tree: IncrementalMerkleTree, leaf: int) -> MerkleProof:
        ...


class PoseidonTreeBuilder:
    """Builds IncrementalMerkleTree instances with a fixed zero value."""

    def __init__(self, zero_value: int = 0):
        self.zero_value = zero_value

    def build(self, members: Sequence[int], depth: int) -> IncrementalMerkleTree:
        return IncrementalMerkleTree.from_leaves(depth, members, self.zero_value)

    def prove(self, tree: IncrementalMerkleTree, leaf: int) -> MerkleProof:
        index = tree.index_of(leaf)
        if index < 0:
            raise NotFoundError(f"Leaf {leaf} does not exist in the tree")
        return tree.create_proof(index)


# =============================================================================
# Tree Cache
# =============================================================================


class TreeCache:
    """
    Bounded LRU cache of built trees.

    Keys are (group name, version). Storing a newer version of a group
    evicts the older ones, since they can never be requested again.
    """

    def __init__(self, max_size: int = 128):
        self.max_size = max_size
        self._trees: "OrderedDict[Tuple[Hashable, int], IncrementalMerkleTree]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, group: Hashable, version: int) -> Optional[IncrementalMerkleTree]:
        key = (group, version)
        with self._lock:
            tree = self._trees.get(key)
            if tree is None:
                self.misses += 1
                return None
            self._trees.move_to_end(key)
            self.hits += 1
            return tree

    def put(self, group: Hashable, version: int, tree: IncrementalMerkleTree) -> None:
        if self.max_size == 0:
            return
        with self._lock:
            for key in [k for k in self._trees if k[0] == group and k[1] != version]:
                del self._trees[key]
            self._trees[(group, version)] = tree
            self._trees.move_to_end((group, version))
            while len(self._trees) > self.max_size:
                evicted, _ = self._trees.popitem(last=False)
                logger.debug(f"Evicted tree {evicted}")

    def invalidate(self, group: Hashable) -> None:
        with self._lock:
            for key in [k for k in self._trees if k[0] == group]:
                del self._trees[key]

    def __len__(self) -> int:
        return len(self._trees)
