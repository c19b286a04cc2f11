"""Loan notifications.

Provides functionality for:
- Deriving due-soon reminders and overdue notices from open loans
- Per-recipient notification lists
- Read/unread tracking
"""

from .manager import NotificationManager
from .models import Notification
from .schemas import DUE_SOON_DAYS, NotificationKind, NotificationSeverity

__all__ = [
    "NotificationManager",
    "Notification",
    "DUE_SOON_DAYS",
    "NotificationKind",
    "NotificationSeverity",
]
