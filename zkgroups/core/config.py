"""
Configuration parameters for zkgroups.

Defines tree limits, storage location and operational settings. Values can
be overridden from a dotenv file and from ZKGROUPS_* environment variables.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import dotenv_values

ENV_PREFIX = "ZKGROUPS_"


@dataclass
class GroupsConfig:
    """Store-wide configuration parameters"""

    # Merkle tree parameters
    min_tree_depth: int = 16  # Smallest depth a group may be created with
    max_tree_depth: int = 32  # Largest depth a group may be created with
    default_tree_depth: int = 20  # Depth used when none is given
    zero_value: int = 0  # Value of an empty leaf
    tree_cache_size: int = 128  # Trees kept in memory, keyed by group version

    # Invites
    invite_code_bytes: int = 8  # Random bytes per invite code (hex encoded)

    # Storage
    data_dir: Path = Path("data")
    db_name: str = "groups.db"

    # Logging
    log_dir: Path = Path("logs")
    log_to_file: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        """Coerce types and check tree depth bounds"""
        self.data_dir = Path(self.data_dir)
        self.log_dir = Path(self.log_dir)

        if not 1 <= self.min_tree_depth <= self.max_tree_depth <= 32:
            raise ValueError(
                f"Invalid tree depth bounds: [{self.min_tree_depth}, {self.max_tree_depth}]"
            )
        if not self.min_tree_depth <= self.default_tree_depth <= self.max_tree_depth:
            raise ValueError(f"default_tree_depth {self.default_tree_depth} out of bounds")
        if self.tree_cache_size < 0:
            raise ValueError("tree_cache_size must be >= 0")

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


def _coerce(value: str, target: Any) -> Any:
    """Convert a raw string setting to the type of the dataclass default."""
    if isinstance(target, bool):
        return value.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(target, int):
        return int(value)
    if isinstance(target, Path):
        return Path(value).expanduser()
    return value


def load_config(config_path: Optional[str] = None, **overrides) -> GroupsConfig:
    """
    Load configuration from a dotenv file, the environment and overrides.

    Precedence: overrides > environment > file > defaults. Keys are the
    upper-cased field names with the ZKGROUPS_ prefix, e.g.
    ZKGROUPS_DATA_DIR or ZKGROUPS_MIN_TREE_DEPTH.

    Args:
        config_path: Optional path to a dotenv file
        **overrides: Field values that win over everything else

    Returns:
        GroupsConfig instance
    """
    raw: Dict[str, str] = {}
    if config_path:
        if not Path(config_path).exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        raw.update({k: v for k, v in dotenv_values(config_path).items() if v is not None})
    raw.update({k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)})

    defaults = GroupsConfig.__dataclass_fields__
    values: Dict[str, Any] = {}
    for f in fields(GroupsConfig):
        key = ENV_PREFIX + f.name.upper()
        if key in raw:
            values[f.name] = _coerce(raw[key], defaults[f.name].default)

    values.update(overrides)
    return GroupsConfig(**values)
