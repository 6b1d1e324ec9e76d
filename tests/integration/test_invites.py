"""
Integration tests for invites.

Tests cover:
1. Issuing invites (admin only)
2. Looking invites up
3. Redeeming invites outside of add_member
"""

import pytest

from zkgroups.core.config import GroupsConfig
from zkgroups.core.errors import (
    ConflictError,
    InvalidInputError,
    NotAuthorizedError,
    NotFoundError,
)
from zkgroups.core.groups import GroupsService
from zkgroups.core.invites import InvitesService
from zkgroups.utils.validation import validate_invite_code


@pytest.fixture
def services(tmp_path):
    config = GroupsConfig(data_dir=tmp_path, invite_code_bytes=4)
    groups = GroupsService.from_config(config)
    invites = InvitesService(groups.storage, config)
    groups.create_group({"name": "Group1", "treeDepth": 16}, "admin")
    groups.create_group({"name": "Group2", "treeDepth": 16}, "admin2")
    yield groups, invites
    groups.storage.close()


class TestCreateInvite:
    """Tests for issuing invites."""

    def test_create_invite(self, services):
        _, invites = services
        invite = invites.create_invite({"groupName": "Group1"}, "admin")
        assert invite.group_name == "Group1"
        assert not invite.redeemed
        assert len(invite.code) == 8
        assert validate_invite_code(invite.code)[0]

    def test_codes_are_unique(self, services):
        _, invites = services
        codes = {invites.create_invite({"group_name": "Group1"}, "admin").code for _ in range(20)}
        assert len(codes) == 20

    def test_not_admin(self, services):
        _, invites = services
        with pytest.raises(NotAuthorizedError, match="No permissions"):
            invites.create_invite({"group_name": "Group1"}, "admin2")

    def test_unknown_group(self, services):
        _, invites = services
        with pytest.raises(NotFoundError):
            invites.create_invite({"group_name": "Group3"}, "admin")

    def test_missing_group_name(self, services):
        _, invites = services
        with pytest.raises(InvalidInputError):
            invites.create_invite({}, "admin")


class TestGetInvites:
    """Tests for invite lookups."""

    def test_get_invite(self, services):
        _, invites = services
        invite = invites.create_invite({"group_name": "Group1"}, "admin")
        assert invites.get_invite(invite.code) == invite

    def test_get_unknown_invite(self, services):
        _, invites = services
        with pytest.raises(NotFoundError, match="not found"):
            invites.get_invite("deadbeef")

    def test_get_invites_by_group(self, services):
        _, invites = services
        a = invites.create_invite({"group_name": "Group1"}, "admin")
        b = invites.create_invite({"group_name": "Group1"}, "admin")
        invites.create_invite({"group_name": "Group2"}, "admin2")

        codes = {i.code for i in invites.get_invites_by_group("Group1", "admin")}
        assert codes == {a.code, b.code}

    def test_get_invites_by_group_requires_admin(self, services):
        _, invites = services
        with pytest.raises(NotAuthorizedError):
            invites.get_invites_by_group("Group1", "admin2")


class TestRedeemInvite:
    """Tests for direct redemption."""

    def test_redeem(self, services):
        _, invites = services
        invite = invites.create_invite({"group_name": "Group1"}, "admin")
        assert invites.redeem_invite(invite.code, "Group1").redeemed

    def test_redeem_twice(self, services):
        _, invites = services
        invite = invites.create_invite({"group_name": "Group1"}, "admin")
        invites.redeem_invite(invite.code, "Group1")
        with pytest.raises(ConflictError, match="already been redeemed"):
            invites.redeem_invite(invite.code, "Group1")

    def test_redeem_for_other_group(self, services):
        _, invites = services
        invite = invites.create_invite({"group_name": "Group1"}, "admin")
        with pytest.raises(NotAuthorizedError, match="does not belong"):
            invites.redeem_invite(invite.code, "Group2")
        assert not invites.get_invite(invite.code).redeemed

    def test_redeemed_invite_cannot_add_member(self, services):
        groups, invites = services
        invite = invites.create_invite({"group_name": "Group1"}, "admin")
        invites.redeem_invite(invite.code, "Group1")
        with pytest.raises(ConflictError):
            groups.add_member("Group1", "1", invite.code)
        assert groups.get_group("Group1").members == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
