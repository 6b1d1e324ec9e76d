"""Single-use invites bound to a group."""

from zkgroups.core.invites.service import InvitesService, MAX_CODE_ATTEMPTS

__all__ = ["InvitesService", "MAX_CODE_ATTEMPTS"]
