"""Configuration management for schoollib.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


DEFAULT_DB_PATH = Path.home() / ".schoollib" / "library.db"


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Loans
    due_soon_days: int  # reminder window, in days
    default_loan_days: int

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get("SCHOOLLIB_DB_PATH", str(DEFAULT_DB_PATH))
        db_path = Path(db_path_str) if db_path_str == ":memory:" else Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            due_soon_days=int(os.environ.get("SCHOOLLIB_DUE_SOON_DAYS", "3")),
            default_loan_days=int(os.environ.get("SCHOOLLIB_LOAN_DAYS", "7")),
            log_level=os.environ.get("SCHOOLLIB_LOG_LEVEL", "WARNING").upper(),
        )

    @property
    def is_memory_db(self) -> bool:
        """Check if the database lives in memory only."""
        return str(self.db_path) == ":memory:"

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        # Check database directory is writable
        if not self.is_memory_db and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if self.due_soon_days < 0:
            errors.append("SCHOOLLIB_DUE_SOON_DAYS must not be negative")
        if self.default_loan_days < 0:
            errors.append("SCHOOLLIB_LOAN_DAYS must not be negative")

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
