from pathlib import Path
from typing import List, Optional

from zkgroups.core.models import Group, Invite
from zkgroups.core.storage.sqlite_adapter import SQLiteAdapter
from zkgroups.utils.logger import get_logger

logger = get_logger("storage.manager")


class StorageManager:
    """
    Manages persistent storage for the membership store.

    Coordinates data persistence using SQLite adapter and turns rows into
    Group / Invite records.
    Handles:
    - Groups and their ordered members
    - Invites
    """

    def __init__(self, data_dir: Path, db_name: str = "groups.db"):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)

        logger.info(f"StorageManager initialized at {self.db_path}")

    def close(self):
        self.adapter.close()

    # =========================================================================
    # Groups
    # =========================================================================

    def _to_group(self, row) -> Group:
        return Group(
            name=row["name"],
            group_id=int(row["group_id"]),
            description=row["description"],
            tree_depth=row["tree_depth"],
            admin=row["admin"],
            members=self.adapter.get_members(row["name"]),
            created_at=row["created_at"],
        )

    def save_group(self, group: Group):
        """Insert a new group. Raises sqlite3.IntegrityError on duplicate name."""
        self.adapter.insert_group(
            group.name,
            str(group.group_id),
            group.description,
            group.tree_depth,
            group.admin,
            group.created_at,
        )

    def update_description(self, name: str, description: str) -> bool:
        return self.adapter.update_group_description(name, description)

    def load_group(self, name: str) -> Optional[Group]:
        row = self.adapter.get_group(name)
        return self._to_group(row) if row else None

    def load_all_groups(self) -> List[Group]:
        return [self._to_group(row) for row in self.adapter.get_all_groups()]

    def load_groups_by_admin(self, admin: str) -> List[Group]:
        return [self._to_group(row) for row in self.adapter.get_groups_by_admin(admin)]

    # =========================================================================
    # Members
    # =========================================================================

    def is_member(self, group_name: str, commitment: str) -> bool:
        return self.adapter.is_member(group_name, commitment)

    def get_members(self, group_name: str) -> List[str]:
        return self.adapter.get_members(group_name)

    def persist_member(
        self,
        group_name: str,
        commitment: str,
        invite_code: str,
        capacity: int,
        created_at: int,
    ) -> int:
        """Atomically redeem the invite and append the member. Returns its leaf index."""
        return self.adapter.add_member_with_invite(
            group_name, commitment, invite_code, capacity, created_at
        )

    # =========================================================================
    # Invites
    # =========================================================================

    @staticmethod
    def _to_invite(row) -> Invite:
        return Invite(
            code=row["code"],
            group_name=row["group_name"],
            redeemed=bool(row["redeemed"]),
            created_at=row["created_at"],
        )

    def save_invite(self, invite: Invite):
        self.adapter.insert_invite(invite.code, invite.group_name, invite.created_at)

    def load_invite(self, code: str) -> Optional[Invite]:
        row = self.adapter.get_invite(code)
        return self._to_invite(row) if row else None

    def load_invites_by_group(self, group_name: str) -> List[Invite]:
        return [self._to_invite(row) for row in self.adapter.get_invites_by_group(group_name)]

    def redeem_invite(self, code: str, group_name: str):
        self.adapter.redeem_invite(code, group_name)
