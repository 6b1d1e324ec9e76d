"""
Group Membership Store.

Owns groups, their ordered member commitments and Merkle inclusion proofs.
"""

from zkgroups.core.groups.service import GroupsService, parse_params

__all__ = ["GroupsService", "parse_params"]
