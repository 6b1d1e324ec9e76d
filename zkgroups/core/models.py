"""
Group and invite records, plus request parameters.

Group and Invite are plain dataclasses handed back to callers; the *Params
models are pydantic models that validate what callers send in.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import time

from pydantic import BaseModel, ConfigDict, Field, field_validator

from zkgroups.utils.validation import (
    MAX_DESCRIPTION_LENGTH,
    MAX_GROUP_NAME_LENGTH,
    MAX_TREE_DEPTH,
    MIN_TREE_DEPTH,
    normalize_commitment,
    validate_group_name,
    validate_invite_code,
)


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class Group:
    """
    A group of identity commitments.

    Attributes:
        name: Unique group name
        group_id: Field element derived from the name (keccak256 >> 8)
        description: Free text
        tree_depth: Depth of the group's Merkle tree, fixed at creation
        admin: Identifier of the owner
        members: Commitments in leaf order
        created_at: Creation timestamp
    """
    name: str
    group_id: int
    description: str
    tree_depth: int
    admin: str
    members: List[str] = field(default_factory=list)
    created_at: int = field(default_factory=lambda: int(time.time()))

    @property
    def capacity(self) -> int:
        """Maximum number of members."""
        return 1 << self.tree_depth

    @property
    def version(self) -> int:
        """Members are append-only, so their count identifies the tree state."""
        return len(self.members)

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.capacity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "id": str(self.group_id),
            "description": self.description,
            "treeDepth": self.tree_depth,
            "admin": self.admin,
            "members": list(self.members),
            "createdAt": self.created_at,
        }


# =============================================================================
# Request Parameters
# =============================================================================


class CreateGroupParams(BaseModel):
    """Parameters for creating a group."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., max_length=MAX_GROUP_NAME_LENGTH)
    description: str = Field("", max_length=MAX_DESCRIPTION_LENGTH)
    tree_depth: Optional[int] = Field(
        None, alias="treeDepth", ge=MIN_TREE_DEPTH, le=MAX_TREE_DEPTH
    )

    @field_validator("name")
    @classmethod
    def _check_name(cls, value):
        valid, err = validate_group_name(value)
        if not valid:
            raise ValueError(err)
        return value


class UpdateGroupParams(BaseModel):
    """Patch for group metadata. Only the description is mutable."""

    model_config = ConfigDict(extra="forbid")

    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)


class AddMemberParams(BaseModel):
    """Parameters for joining a group with an invite."""

    model_config = ConfigDict(populate_by_name=True)

    commitment: str = Field(..., alias="identityCommitment")
    invite_code: str = Field(..., alias="inviteCode", min_length=1)

    @field_validator("commitment", mode="before")
    @classmethod
    def _canonical_commitment(cls, value):
        if isinstance(value, (int, str)) and not isinstance(value, bool):
            return normalize_commitment(value)
        raise ValueError("commitment must be a decimal string or int")

    @field_validator("invite_code")
    @classmethod
    def _check_invite_code(cls, value):
        valid, err = validate_invite_code(value)
        if not valid:
            raise ValueError(err)
        return value


# =============================================================================
# Invites
# =============================================================================


@dataclass
class Invite:
    """
    A single-use code that lets one commitment join one group.

    Attributes:
        code: Random hex code
        group_name: Group the invite is bound to
        redeemed: Whether the code has been used
        created_at: Creation timestamp
    """
    code: str
    group_name: str
    redeemed: bool = False
    created_at: int = field(default_factory=lambda: int(time.time()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "groupName": self.group_name,
            "redeemed": self.redeemed,
            "createdAt": self.created_at,
        }


class CreateInviteParams(BaseModel):
    """Parameters for issuing an invite."""

    model_config = ConfigDict(populate_by_name=True)

    group_name: str = Field(..., alias="groupName", min_length=1)
