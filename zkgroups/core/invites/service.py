"""
Invites - single-use codes that admit one commitment to one group.

Redemption normally happens inside GroupsService.add_member, in the same
transaction as the member insert. redeem_invite() is for integrations that
consume an invite without adding a member.
"""

import secrets
import sqlite3
from typing import Any, Dict, List, Optional, Union

from zkgroups.core.auth import require_admin
from zkgroups.core.config import GroupsConfig
from zkgroups.core.errors import ConflictError, GroupsError, NotFoundError
from zkgroups.core.groups.service import parse_params
from zkgroups.core.models import CreateInviteParams, Group, Invite
from zkgroups.core.storage import StorageManager
from zkgroups.utils.logger import get_logger

logger = get_logger("invites")

# Attempts at drawing an unused code before giving up
MAX_CODE_ATTEMPTS = 5


class InvitesService:
    """Issues and looks up invites."""

    def __init__(self, storage: StorageManager, config: Optional[GroupsConfig] = None):
        self.storage = storage
        self.config = config or GroupsConfig()

    def _get_group(self, name: str) -> Group:
        group = self.storage.load_group(name)
        if group is None:
            raise NotFoundError(f"Group '{name}' not found")
        return group

    def create_invite(
        self,
        params: Union[CreateInviteParams, Dict[str, Any]],
        admin: str,
    ) -> Invite:
        """
        Issue a new invite for a group.

        Raises:
            NotFoundError: If the group does not exist
            NotAuthorizedError: If `admin` is not the group's admin
        """
        p = parse_params(CreateInviteParams, params)
        group = self._get_group(p.group_name)
        require_admin(group, admin)

        for _ in range(MAX_CODE_ATTEMPTS):
            invite = Invite(
                code=secrets.token_hex(self.config.invite_code_bytes),
                group_name=group.name,
            )
            try:
                self.storage.save_invite(invite)
            except sqlite3.IntegrityError:
                logger.debug("Invite code collision, drawing a new one")
                continue
            logger.info(f"Invite issued for group '{group.name}'")
            return invite

        raise ConflictError(f"Could not allocate an unused invite code for '{group.name}'")

    def get_invite(self, code: str) -> Invite:
        """
        Get an invite by code.

        Raises:
            NotFoundError: If no invite has this code
        """
        invite = self.storage.load_invite(code)
        if invite is None:
            raise NotFoundError(f"Invite '{code}' not found")
        return invite

    def get_invites_by_group(self, group_name: str, admin: str) -> List[Invite]:
        group = self._get_group(group_name)
        require_admin(group, admin)
        return self.storage.load_invites_by_group(group_name)

    def redeem_invite(self, code: str, group_name: str) -> Invite:
        """
        Consume an invite.

        Raises:
            NotFoundError: Unknown invite
            NotAuthorizedError: Invite belongs to another group
            ConflictError: Invite already redeemed
        """
        try:
            self.storage.redeem_invite(code, group_name)
        except GroupsError as e:
            logger.warning(f"Invite not redeemed: {e}")
            raise

        logger.info(f"Invite redeemed for group '{group_name}'")
        return self.get_invite(code)
