"""Bulk registration of users from pasted text.

Each line reads `Name; Email; Phone`, with the phone optional. Every
imported user is a student assigned to the chosen class or sector.
"""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import ValidationError

from .models import User
from .schemas import UserCreate, UserType

DEFAULT_CLASS = "General"


@dataclass
class UserImportResult:
    """Result of a bulk user import."""

    imported: int = 0
    skipped: int = 0
    errors: int = 0
    error_messages: list[str] = field(default_factory=list)
    imported_users: list[User] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """Get summary string."""
        return (
            f"Imported: {self.imported}, "
            f"Skipped: {self.skipped}, "
            f"Errors: {self.errors}"
        )


def parse_user_line(line: str, sector_or_class: Optional[str] = None) -> Optional[UserCreate]:
    """Parse one `Name; Email; Phone` line.

    Returns:
        UserCreate, or None for a blank line

    Raises:
        ValueError: Missing name or email, or an invalid email
    """
    if not line.strip():
        return None

    parts = [p.strip() for p in line.split(";")]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ValueError("expected 'Name; Email; Phone'")

    try:
        return UserCreate(
            name=parts[0],
            email=parts[1],
            phone=parts[2] if len(parts) > 2 and parts[2] else None,
            user_type=UserType.STUDENT,
            sector_or_class=sector_or_class or DEFAULT_CLASS,
        )
    except ValidationError as e:
        raise ValueError(e.errors()[0]["msg"]) from e
