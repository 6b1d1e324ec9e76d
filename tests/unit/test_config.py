"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest

from zkgroups.core.config import GroupsConfig, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep ZKGROUPS_* variables of the host out of these tests."""
    import os

    for key in list(os.environ):
        if key.startswith("ZKGROUPS_"):
            monkeypatch.delenv(key)


class TestGroupsConfig:
    """Tests for the config dataclass."""

    def test_defaults(self):
        config = GroupsConfig()
        assert config.min_tree_depth == 16
        assert config.max_tree_depth == 32
        assert config.zero_value == 0
        assert config.db_path == Path("data") / "groups.db"

    def test_invalid_bounds(self):
        with pytest.raises(ValueError, match="bounds"):
            GroupsConfig(min_tree_depth=20, max_tree_depth=16, default_tree_depth=18)

    def test_default_depth_outside_bounds(self):
        with pytest.raises(ValueError, match="default_tree_depth"):
            GroupsConfig(min_tree_depth=16, default_tree_depth=8)

    def test_paths_coerced(self):
        config = GroupsConfig(data_dir="somewhere")
        assert isinstance(config.data_dir, Path)


class TestLoadConfig:
    """Tests for dotenv / environment loading."""

    def test_no_sources(self):
        assert load_config() == GroupsConfig()

    def test_dotenv_file(self, tmp_path):
        env_file = tmp_path / "zkgroups.env"
        env_file.write_text(
            "ZKGROUPS_MIN_TREE_DEPTH=4\n"
            "ZKGROUPS_DEFAULT_TREE_DEPTH=8\n"
            f"ZKGROUPS_DATA_DIR={tmp_path / 'db'}\n"
            "ZKGROUPS_LOG_TO_FILE=true\n"
        )
        config = load_config(str(env_file))
        assert config.min_tree_depth == 4
        assert config.default_tree_depth == 8
        assert config.data_dir == tmp_path / "db"
        assert config.log_to_file is True

    def test_environment_wins_over_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / "zkgroups.env"
        env_file.write_text("ZKGROUPS_TREE_CACHE_SIZE=5\n")
        monkeypatch.setenv("ZKGROUPS_TREE_CACHE_SIZE", "7")
        assert load_config(str(env_file)).tree_cache_size == 7

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("ZKGROUPS_DB_NAME", "env.db")
        assert load_config(db_name="arg.db").db_name == "arg.db"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.env"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
