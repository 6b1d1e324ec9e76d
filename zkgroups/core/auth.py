"""
Admin capability check.

The admin identifier has already been authenticated upstream; here we only
decide whether that identity may mutate a given group.
"""

import hmac

from zkgroups.core.errors import NotAuthorizedError


def is_admin(group, admin: str) -> bool:
    """Check whether `admin` owns `group`."""
    if not isinstance(admin, str) or not admin:
        return False
    return hmac.compare_digest(group.admin.encode("utf-8"), admin.encode("utf-8"))


def require_admin(group, admin: str) -> None:
    """
    Reject the call unless `admin` owns `group`.

    Raises:
        NotAuthorizedError: On mismatch
    """
    if not is_admin(group, admin):
        raise NotAuthorizedError(f"No permissions: you are not the admin of group '{group.name}'")
