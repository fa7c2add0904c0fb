"""Configuration management for bookshelf.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Application configuration."""

    # Storage
    db_path: Path
    autosave: bool

    # Reading sessions
    min_session_minutes: float

    # Default reading goal
    goal_yearly: int
    goal_monthly: int

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "BOOKSHELF_DB_PATH",
            str(Path.home() / ".bookshelf" / "bookshelf.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            autosave=os.environ.get("BOOKSHELF_AUTOSAVE", "true").lower() in _TRUTHY,
            min_session_minutes=float(
                os.environ.get("BOOKSHELF_MIN_SESSION_MINUTES", "0.1")
            ),
            goal_yearly=int(os.environ.get("BOOKSHELF_GOAL_YEARLY", "15")),
            goal_monthly=int(os.environ.get("BOOKSHELF_GOAL_MONTHLY", "2")),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.min_session_minutes <= 0:
            errors.append(
                f"Minimum session length must be positive: {self.min_session_minutes}"
            )

        if self.goal_yearly < 0 or self.goal_monthly < 0:
            errors.append("Reading goals cannot be negative")

        # Check database directory is writable
        if not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
