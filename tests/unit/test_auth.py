"""
Tests for the admin capability check.
"""

import pytest

from zkgroups.core.auth import is_admin, require_admin
from zkgroups.core.errors import GroupsError, NotAuthorizedError
from zkgroups.core.models import Group


@pytest.fixture
def group():
    return Group(name="Group1", group_id=1, description="", tree_depth=16, admin="admin")


class TestAdminCheck:
    """Tests for is_admin / require_admin."""

    def test_owner(self, group):
        assert is_admin(group, "admin")
        require_admin(group, "admin")

    def test_other_identity(self, group):
        assert not is_admin(group, "wrong-admin")
        with pytest.raises(NotAuthorizedError, match="No permissions"):
            require_admin(group, "wrong-admin")

    def test_case_sensitive(self, group):
        assert not is_admin(group, "Admin")

    @pytest.mark.parametrize("admin", ["", None, 42])
    def test_missing_identity(self, group, admin):
        assert not is_admin(group, admin)

    def test_error_is_groups_error(self, group):
        with pytest.raises(GroupsError):
            require_admin(group, "")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
