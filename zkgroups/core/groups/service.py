"""
Group Membership Store - groups, members and Merkle proofs.

This module provides:
- Group creation and metadata updates (admin only)
- Member registration through single-use invites
- Membership checks
- Merkle inclusion proofs over a group's ordered members

Members are append-only. A group's tree is rebuilt from its ordered member
list whenever the member count changes and reused (via TreeCache) until it
changes again, so proofs always match current membership.
"""

import sqlite3
import threading
import time
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from zkgroups.core.auth import require_admin
from zkgroups.core.config import GroupsConfig
from zkgroups.core.errors import (
    ConflictError,
    GroupsError,
    InvalidInputError,
    NotFoundError,
)
from zkgroups.core.merkle import (
    IncrementalMerkleTree,
    MerkleProof,
    MerkleTreeBuilder,
    PoseidonTreeBuilder,
    TreeCache,
    verify_proof,
)
from zkgroups.core.models import (
    AddMemberParams,
    CreateGroupParams,
    Group,
    UpdateGroupParams,
)
from zkgroups.core.storage import StorageManager
from zkgroups.crypto import compute_group_id
from zkgroups.utils.logger import get_logger
from zkgroups.utils.validation import (
    normalize_commitment,
    validate_admin,
    validate_commitment,
    validate_tree_depth,
)

logger = get_logger("groups")

P = TypeVar("P", bound=BaseModel)


def parse_params(model: Type[P], params: Union[P, Dict[str, Any]]) -> P:
    """Accept either a params model or a plain dict."""
    if isinstance(params, model):
        return params
    try:
        return model.model_validate(params)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {model.__name__}: {e}") from e


class GroupsService:
    """
    Group membership store.

    Owns group records and their member commitments and produces Merkle
    inclusion proofs. Storage, tree construction and tree caching are
    injected collaborators.
    """

    def __init__(
        self,
        storage: StorageManager,
        config: Optional[GroupsConfig] = None,
        tree_builder: Optional[MerkleTreeBuilder] = None,
        tree_cache: Optional[TreeCache] = None,
    ):
        """
        Initialize the service.

        Args:
            storage: Persistence layer
            config: Tree depth bounds, zero value, cache size
            tree_builder: Builds trees and proofs (Poseidon by default)
            tree_cache: Cache of built trees
        """
        self.storage = storage
        self.config = config or GroupsConfig()
        self.tree_builder = tree_builder or PoseidonTreeBuilder(self.config.zero_value)
        self.tree_cache = tree_cache or TreeCache(self.config.tree_cache_size)

        # Group name -> lock serializing member insertion
        self._group_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

        logger.info(
            f"GroupsService initialized with tree depth bounds "
            f"[{self.config.min_tree_depth}, {self.config.max_tree_depth}]"
        )

    @classmethod
    def from_config(cls, config: GroupsConfig) -> "GroupsService":
        """Create a service backed by the SQLite database named in `config`."""
        storage = StorageManager(config.data_dir, config.db_name)
        return cls(storage, config)

    def _group_lock(self, name: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._group_locks.get(name)
            if lock is None:
                lock = self._group_locks[name] = threading.Lock()
            return lock

    # =========================================================================
    # Groups
    # =========================================================================

    def create_group(
        self,
        params: Union[CreateGroupParams, Dict[str, Any]],
        admin: str,
    ) -> Group:
        """
        Create a group with an empty member list.

        Args:
            params: name, description, tree_depth
            admin: Identifier of the new group's owner

        Returns:
            The created group

        Raises:
            ConflictError: If a group with the same name exists
            InvalidInputError: If params are malformed or depth is out of bounds
        """
        p = parse_params(CreateGroupParams, params)

        valid, err = validate_admin(admin)
        if not valid:
            raise InvalidInputError(err)

        tree_depth = p.tree_depth if p.tree_depth is not None else self.config.default_tree_depth
        valid, err = validate_tree_depth(
            tree_depth, self.config.min_tree_depth, self.config.max_tree_depth
        )
        if not valid:
            raise InvalidInputError(err)

        group = Group(
            name=p.name,
            group_id=compute_group_id(p.name),
            description=p.description,
            tree_depth=tree_depth,
            admin=admin,
        )

        try:
            self.storage.save_group(group)
        except sqlite3.IntegrityError as e:
            logger.warning(f"Group '{p.name}' not created: {e}")
            raise ConflictError(f"Group '{p.name}' already exists ({e})") from e

        logger.info(f"Group '{group.name}' created by {admin} (depth={tree_depth})")
        return group

    def update_group(
        self,
        params: Union[UpdateGroupParams, Dict[str, Any]],
        name: str,
        admin: str,
    ) -> Group:
        """
        Update group metadata.

        Raises:
            NotFoundError: If the group does not exist
            NotAuthorizedError: If `admin` is not the group's admin
        """
        group = self.get_group(name)
        require_admin(group, admin)
        p = parse_params(UpdateGroupParams, params)

        if p.description is not None:
            self.storage.update_description(name, p.description)
            logger.info(f"Group '{name}' description updated")

        return self.get_group(name)

    def get_all_groups(self) -> List[Group]:
        return self.storage.load_all_groups()

    def get_groups_by_admin(self, admin: str) -> List[Group]:
        return self.storage.load_groups_by_admin(admin)

    def get_group(self, name: str) -> Group:
        """
        Get a group by name.

        Raises:
            NotFoundError: If the group does not exist
        """
        group = self.storage.load_group(name)
        if group is None:
            raise NotFoundError(f"Group '{name}' not found")
        return group

    # =========================================================================
    # Members
    # =========================================================================

    def add_member(self, group_name: str, commitment: Union[str, int], invite_code: str) -> Group:
        """
        Add a commitment to a group, consuming an invite.

        Invite redemption and member insertion happen in one transaction.

        Args:
            group_name: Target group
            commitment: Identity commitment (decimal string or int)
            invite_code: Unredeemed invite bound to `group_name`

        Returns:
            The updated group

        Raises:
            NotFoundError: Unknown group or invite
            ConflictError: Member already exists or invite already redeemed
            NotAuthorizedError: Invite belongs to another group
            GroupFullError: Group has 2^tree_depth members
        """
        p = parse_params(AddMemberParams, {"commitment": commitment, "invite_code": invite_code})
        group = self.get_group(group_name)

        try:
            with self._group_lock(group_name):
                leaf_index = self.storage.persist_member(
                    group_name,
                    p.commitment,
                    p.invite_code,
                    group.capacity,
                    int(time.time()),
                )
        except sqlite3.IntegrityError as e:
            logger.warning(f"Member {p.commitment} not added to '{group_name}': {e}")
            raise ConflictError(
                f"Member '{p.commitment}' already exists in group '{group_name}'"
            ) from e
        except GroupsError as e:
            logger.warning(f"Member {p.commitment} not added to '{group_name}': {e}")
            raise

        logger.info(f"Member {p.commitment} added to '{group_name}' at leaf {leaf_index}")
        return self.get_group(group_name)

    def is_group_member(self, group_name: str, commitment: Union[str, int]) -> bool:
        """
        Check whether `commitment` is a member of `group_name`.

        A malformed commitment cannot be a member, so it yields False.
        """
        valid, _ = validate_commitment(commitment)
        if not valid:
            return False
        return self.storage.is_member(group_name, normalize_commitment(commitment))

    # =========================================================================
    # Merkle Proofs
    # =========================================================================

    def _get_tree(self, group: Group) -> IncrementalMerkleTree:
        tree = self.tree_cache.get(group.name, group.version)
        if tree is None:
            tree = self.tree_builder.build([int(m) for m in group.members], group.tree_depth)
            self.tree_cache.put(group.name, group.version, tree)
        return tree

    def generate_merkle_proof(self, group_name: str, commitment: Union[str, int]) -> MerkleProof:
        """
        Generate the inclusion proof of a member.

        The member list is read once; hashing happens without holding any lock.

        Raises:
            NotFoundError: If the group or the member does not exist
        """
        commitment = normalize_commitment(commitment)
        group = self.get_group(group_name)

        if commitment not in group.members:
            raise NotFoundError(f"Member '{commitment}' does not exist in group '{group_name}'")

        tree = self._get_tree(group)
        proof = self.tree_builder.prove(tree, int(commitment))
        proof.group_id = group.group_id

        logger.debug(f"Proof for {commitment} in '{group_name}': root={proof.root}")
        return proof

    def get_group_root(self, group_name: str) -> int:
        """Current Merkle root of a group."""
        return self._get_tree(self.get_group(group_name)).root

    def verify_merkle_proof(
        self,
        proof: Union[MerkleProof, Dict[str, Any]],
        group_name: Optional[str] = None,
    ) -> bool:
        """
        Verify a Merkle proof.

        Args:
            proof: Proof object or its dict form
            group_name: If given, the proof must also match the group's
                id, current root and depth

        Returns:
            True if the proof is valid
        """
        if not isinstance(proof, MerkleProof):
            proof = MerkleProof.from_dict(proof)

        if group_name is not None:
            group = self.get_group(group_name)
            if proof.group_id is not None and proof.group_id != group.group_id:
                return False
            if proof.tree_depth != group.tree_depth:
                return False
            if proof.root != self._get_tree(group).root:
                return False

        return verify_proof(proof)
