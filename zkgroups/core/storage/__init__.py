"""
Persistent Storage Module.

Provides SQLite-backed persistence for:
- Groups and their metadata
- Members (Merkle tree leaves, in leaf order)
- Invites
"""

from zkgroups.core.storage.sqlite_adapter import SQLiteAdapter
from zkgroups.core.storage.storage_manager import StorageManager

__all__ = ["SQLiteAdapter", "StorageManager"]
