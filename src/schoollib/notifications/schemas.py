"""Pydantic schemas and enums for notifications."""

from enum import Enum

# Days before the due date when reminders start
DUE_SOON_DAYS = 3


class NotificationSeverity(str, Enum):
    """How urgent a notification is."""

    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


class NotificationKind(str, Enum):
    """What a derived notification is about."""

    DUE_SOON = "due_soon"
    OVERDUE = "overdue"


TITLES = {
    NotificationKind.DUE_SOON: "Return Due Soon",
    NotificationKind.OVERDUE: "Loan Overdue",
}

SEVERITIES = {
    NotificationKind.DUE_SOON: NotificationSeverity.WARNING,
    NotificationKind.OVERDUE: NotificationSeverity.DANGER,
}
