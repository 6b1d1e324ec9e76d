"""
Error taxonomy for the group membership store.

Every failure a caller can trigger is a GroupsError subclass, so front-ends
(CLI, HTTP adapters) can map them to exit codes or status codes in one place.
"""


class GroupsError(Exception):
    """Base class for all zkgroups errors."""


class ConflictError(GroupsError):
    """Duplicate group name, duplicate member or already redeemed invite."""


class NotAuthorizedError(GroupsError):
    """Caller is not allowed to perform the operation."""


class NotFoundError(GroupsError):
    """Group, invite or member does not exist."""


class GroupFullError(GroupsError):
    """The group's Merkle tree has no free leaves left."""


class InvalidInputError(GroupsError, ValueError):
    """Malformed parameters (commitment, tree depth, names)."""
