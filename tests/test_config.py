"""Tests for configuration loading."""

from pathlib import Path

from bookshelf.config import Config, get_config, reset_config


class TestConfigFromEnv:
    """Tests for Config.from_env."""

    def test_defaults(self, monkeypatch):
        """Test values when no variables are set."""
        for name in (
            "BOOKSHELF_DB_PATH",
            "BOOKSHELF_AUTOSAVE",
            "BOOKSHELF_MIN_SESSION_MINUTES",
            "BOOKSHELF_GOAL_YEARLY",
            "BOOKSHELF_GOAL_MONTHLY",
        ):
            monkeypatch.delenv(name, raising=False)

        config = Config.from_env()

        assert config.db_path == Path.home() / ".bookshelf" / "bookshelf.db"
        assert config.autosave is True
        assert config.min_session_minutes == 0.1
        assert config.goal_yearly == 15
        assert config.goal_monthly == 2

    def test_overrides(self, monkeypatch, tmp_path):
        """Test environment variables are honoured."""
        monkeypatch.setenv("BOOKSHELF_DB_PATH", str(tmp_path / "lib.db"))
        monkeypatch.setenv("BOOKSHELF_AUTOSAVE", "off")
        monkeypatch.setenv("BOOKSHELF_MIN_SESSION_MINUTES", "1.5")
        monkeypatch.setenv("BOOKSHELF_GOAL_YEARLY", "52")
        monkeypatch.setenv("BOOKSHELF_GOAL_MONTHLY", "4")

        config = Config.from_env()

        assert config.db_path == tmp_path / "lib.db"
        assert config.autosave is False
        assert config.min_session_minutes == 1.5
        assert config.goal_yearly == 52
        assert config.goal_monthly == 4

    def test_global_config_cached(self, monkeypatch):
        """Test get_config returns one instance until reset."""
        monkeypatch.setenv("BOOKSHELF_GOAL_YEARLY", "30")
        first = get_config()
        assert get_config() is first
        assert first.goal_yearly == 30

        reset_config()
        assert get_config() is not first


class TestConfigValidate:
    """Tests for Config.validate."""

    def test_valid(self, config):
        """Test a sane configuration has no errors."""
        assert config.validate() == []

    def test_invalid_values(self, config):
        """Test bad session length and goals are reported."""
        config.min_session_minutes = 0
        config.goal_monthly = -1
        errors = config.validate()
        assert len(errors) == 2

    def test_creates_db_directory(self, tmp_path):
        """Test the database directory is created."""
        config = Config(
            db_path=tmp_path / "nested" / "dir" / "bookshelf.db",
            autosave=True,
            min_session_minutes=0.1,
            goal_yearly=15,
            goal_monthly=2,
        )
        assert config.validate() == []
        assert (tmp_path / "nested" / "dir").exists()
