import sqlite3
import threading
from pathlib import Path
from typing import List, Optional

from zkgroups.core.errors import (
    ConflictError,
    GroupFullError,
    NotAuthorizedError,
    NotFoundError,
)
from zkgroups.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for persistent storage.

    Provides:
    1. Groups (name, id, metadata, admin)
    2. Members (ordered commitments, one Merkle leaf each)
    3. Invites (single-use codes bound to a group)

    Uniqueness invariants live in the schema: group names, (group, commitment)
    and (group, leaf_index) pairs, and invite codes.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()

        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA foreign_keys=ON;")
            self._conn_local.conn = conn
        return self._conn_local.conn

    def close(self):
        """Close the connection of the current thread."""
        conn = getattr(self._conn_local, "conn", None)
        if conn is not None:
            conn.close()
            del self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS groups (
                    name TEXT PRIMARY KEY,
                    group_id TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    tree_depth INTEGER NOT NULL,
                    admin TEXT NOT NULL,
                    created_at INTEGER NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_groups_admin ON groups(admin);")

            # Leaf order of the group's Merkle tree
            conn.execute("""
                CREATE TABLE IF NOT EXISTS members (
                    group_name TEXT NOT NULL REFERENCES groups(name),
                    leaf_index INTEGER NOT NULL,
                    commitment TEXT NOT NULL,
                    created_at INTEGER NOT NULL,
                    PRIMARY KEY (group_name, leaf_index),
                    UNIQUE (group_name, commitment)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS invites (
                    code TEXT PRIMARY KEY,
                    group_name TEXT NOT NULL REFERENCES groups(name),
                    redeemed INTEGER NOT NULL DEFAULT 0,
                    created_at INTEGER NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_invites_group ON invites(group_name);")

    # =========================================================================
    # Group Operations
    # =========================================================================

    def insert_group(
        self,
        name: str,
        group_id: str,
        description: str,
        tree_depth: int,
        admin: str,
        created_at: int,
    ):
        """Insert a group. Raises sqlite3.IntegrityError if the name is taken."""
        conn = self._get_conn()
        with conn:
            conn.execute(
                "INSERT INTO groups (name, group_id, description, tree_depth, admin, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (name, group_id, description, tree_depth, admin, created_at),
            )

    def update_group_description(self, name: str, description: str) -> bool:
        conn = self._get_conn()
        with conn:
            cursor = conn.execute(
                "UPDATE groups SET description = ? WHERE name = ?",
                (description, name),
            )
        return cursor.rowcount == 1

    def get_group(self, name: str) -> Optional[sqlite3.Row]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT * FROM groups WHERE name = ?", (name,))
        return cursor.fetchone()

    def get_all_groups(self) -> List[sqlite3.Row]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT * FROM groups ORDER BY created_at ASC, name ASC")
        return cursor.fetchall()

    def get_groups_by_admin(self, admin: str) -> List[sqlite3.Row]:
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT * FROM groups WHERE admin = ? ORDER BY created_at ASC, name ASC",
            (admin,),
        )
        return cursor.fetchall()

    # =========================================================================
    # Member Operations
    # =========================================================================

    def get_members(self, group_name: str) -> List[str]:
        """Get member commitments ordered by leaf index."""
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT commitment FROM members WHERE group_name = ? ORDER BY leaf_index ASC",
            (group_name,),
        )
        return [row["commitment"] for row in cursor]

    def is_member(self, group_name: str, commitment: str) -> bool:
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT 1 FROM members WHERE group_name = ? AND commitment = ?",
            (group_name, commitment),
        )
        return cursor.fetchone() is not None

    # =========================================================================
    # Invite Operations
    # =========================================================================

    def insert_invite(self, code: str, group_name: str, created_at: int):
        conn = self._get_conn()
        with conn:
            conn.execute(
                "INSERT INTO invites (code, group_name, redeemed, created_at) VALUES (?, ?, 0, ?)",
                (code, group_name, created_at),
            )

    def get_invite(self, code: str) -> Optional[sqlite3.Row]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT * FROM invites WHERE code = ?", (code,))
        return cursor.fetchone()

    def get_invites_by_group(self, group_name: str) -> List[sqlite3.Row]:
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT * FROM invites WHERE group_name = ? ORDER BY created_at ASC, code ASC",
            (group_name,),
        )
        return cursor.fetchall()

    @staticmethod
    def _check_invite(conn: sqlite3.Connection, code: str, group_name: str):
        row = conn.execute("SELECT * FROM invites WHERE code = ?", (code,)).fetchone()
        if row is None:
            raise NotFoundError(f"Invite '{code}' not found")
        if row["group_name"] != group_name:
            raise NotAuthorizedError(f"Invite '{code}' does not belong to group '{group_name}'")
        if row["redeemed"]:
            raise ConflictError(f"Invite '{code}' has already been redeemed")

    @staticmethod
    def _mark_redeemed(conn: sqlite3.Connection, code: str):
        cursor = conn.execute(
            "UPDATE invites SET redeemed = 1 WHERE code = ? AND redeemed = 0", (code,)
        )
        if cursor.rowcount != 1:
            raise ConflictError(f"Invite '{code}' has already been redeemed")

    def redeem_invite(self, code: str, group_name: str):
        """Atomically check and consume an invite."""
        conn = self._get_conn()
        with conn:
            conn.execute("BEGIN IMMEDIATE")
            self._check_invite(conn, code, group_name)
            self._mark_redeemed(conn, code)

    # =========================================================================
    # Membership Update
    # =========================================================================

    def add_member_with_invite(
        self,
        group_name: str,
        commitment: str,
        invite_code: str,
        capacity: int,
        created_at: int,
    ) -> int:
        """
        Atomically redeem an invite and append a member.

        Runs under BEGIN IMMEDIATE so concurrent writers queue on the
        database lock; either both the invite redemption and the member row
        are written, or neither.

        Args:
            group_name: Target group
            commitment: Canonical decimal commitment
            invite_code: Invite to consume
            capacity: Maximum number of members (2^tree_depth)
            created_at: Unix timestamp

        Returns:
            Leaf index assigned to the member
        """
        conn = self._get_conn()
        with conn:
            conn.execute("BEGIN IMMEDIATE")

            if conn.execute("SELECT 1 FROM groups WHERE name = ?", (group_name,)).fetchone() is None:
                raise NotFoundError(f"Group '{group_name}' not found")

            exists = conn.execute(
                "SELECT 1 FROM members WHERE group_name = ? AND commitment = ?",
                (group_name, commitment),
            ).fetchone()
            if exists is not None:
                raise ConflictError(
                    f"Member '{commitment}' already exists in group '{group_name}'"
                )

            self._check_invite(conn, invite_code, group_name)

            count = conn.execute(
                "SELECT COUNT(*) AS cnt FROM members WHERE group_name = ?", (group_name,)
            ).fetchone()["cnt"]
            if count >= capacity:
                raise GroupFullError(f"Group '{group_name}' is full ({capacity} members)")

            conn.execute(
                "INSERT INTO members (group_name, leaf_index, commitment, created_at) "
                "VALUES (?, ?, ?, ?)",
                (group_name, count, commitment, created_at),
            )
            self._mark_redeemed(conn, invite_code)

        logger.debug(f"Stored member {commitment} of {group_name} at leaf {count}")
        return count
