"""Notification manager: due-date reminders and overdue notices."""

import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy import select, update

from ..db.models import User
from ..db.sqlite import Database, get_db
from ..errors import NotFoundError
from ..lending.models import Loan
from .models import Notification
from .schemas import DUE_SOON_DAYS, SEVERITIES, TITLES, NotificationKind

logger = logging.getLogger(__name__)


def _message(kind: NotificationKind, title: str, days: int) -> str:
    if kind == NotificationKind.OVERDUE:
        return f'The book "{title}" is overdue. Please return it as soon as possible.'
    if days == 0:
        return f'The book "{title}" must be returned today.'
    return f'The book "{title}" must be returned in {days} day{"s" if days != 1 else ""}.'


class NotificationManager:
    """Derives and serves loan notifications.

    The deriver only reads loans and only appends notifications. Running
    it again on the same day adds nothing new.
    """

    def __init__(
        self,
        db: Optional[Database] = None,
        today: Optional[Callable[[], date]] = None,
        due_soon_days: int = DUE_SOON_DAYS,
    ):
        """Initialize notification manager.

        Args:
            db: Database instance
            today: Date source (defaults to date.today)
            due_soon_days: Reminder window before the due date
        """
        self.db = db or get_db()
        self._today = today or date.today
        self.due_soon_days = due_soon_days

    def _classify(self, days: int) -> Optional[NotificationKind]:
        if days < 0:
            return NotificationKind.OVERDUE
        if days <= self.due_soon_days:
            return NotificationKind.DUE_SOON
        return None

    # -------------------------------------------------------------------------
    # Derivation
    # -------------------------------------------------------------------------

    def check_loans(self) -> list[Notification]:
        """Create today's reminders and overdue notices.

        Every loan that still holds a copy is checked. Loans past their
        due date get a danger notice, loans due within the reminder window
        a warning. A loan that already has a notice today, of either kind,
        is skipped.

        Returns:
            Only the notifications created by this call
        """
        today = self._today()
        today_iso = today.isoformat()
        created: list[Notification] = []

        with self.db.get_session() as session:
            seen = {
                n.dedup_key
                for n in session.execute(
                    select(Notification).where(Notification.date == today_iso)
                ).scalars()
            }

            loans = session.execute(
                select(Loan).where(Loan.open_clause()).order_by(Loan.due_date)
            ).scalars().all()

            for loan in loans:
                days = loan.days_until_due(today)
                kind = self._classify(days)
                if kind is None:
                    continue

                key = (loan.user_id, loan.book_id, today_iso)
                if key in seen:
                    logger.debug("Notification for loan %s already sent today", loan.id)
                    continue

                notification = Notification(
                    user_id=loan.user_id,
                    book_id=loan.book_id,
                    loan_id=loan.id,
                    kind=kind.value,
                    title=TITLES[kind],
                    message=_message(kind, loan.book.title, days),
                    severity=SEVERITIES[kind].value,
                    is_read=False,
                    date=today_iso,
                )
                session.add(notification)
                seen.add(key)
                created.append(notification)

            session.commit()
            for n in created:
                session.refresh(n)
                session.expunge(n)

        if created:
            logger.info("Created %d loan notifications for %s", len(created), today_iso)
        return created

    def derive_notifications(self) -> list[Notification]:
        """Run `check_loans` and return the whole notification set.

        Returns:
            All notifications (existing and new), oldest first
        """
        self.check_loans()

        with self.db.get_session() as session:
            notifications = session.execute(
                select(Notification).order_by(Notification.date, Notification.created_at)
            ).scalars().all()
            for n in notifications:
                session.expunge(n)
            return list(notifications)

    # -------------------------------------------------------------------------
    # Recipients
    # -------------------------------------------------------------------------

    def list_notifications(
        self,
        user: Optional[User] = None,
        unread_only: bool = False,
    ) -> list[Notification]:
        """List the notifications a user can see.

        Args:
            user: Recipient; admins and None see everything, other users
                  only notifications addressed to them
            unread_only: Skip notifications already read

        Returns:
            List of notifications, newest first
        """
        with self.db.get_session() as session:
            stmt = select(Notification)
            if user is not None and not user.is_admin:
                stmt = stmt.where(Notification.user_id == user.id)
            if unread_only:
                stmt = stmt.where(Notification.is_read.is_(False))
            stmt = stmt.order_by(Notification.date.desc(), Notification.created_at.desc())

            notifications = session.execute(stmt).scalars().all()
            for n in notifications:
                session.expunge(n)
            return list(notifications)

    def count_unread(self, user: Optional[User] = None) -> int:
        """Count unread notifications visible to a user."""
        return len(self.list_notifications(user, unread_only=True))

    def mark_read(self, notification_id: str) -> Notification:
        """Mark one notification as read.

        Raises:
            NotFoundError: Unknown notification
        """
        with self.db.get_session() as session:
            notification = session.get(Notification, notification_id)
            if not notification:
                raise NotFoundError("Notification", notification_id)

            notification.is_read = True
            session.commit()
            session.refresh(notification)
            session.expunge(notification)
            return notification

    def mark_all_read(self, user: Optional[User] = None) -> int:
        """Mark every notification visible to a user as read.

        Returns:
            Number of notifications changed
        """
        with self.db.get_session() as session:
            stmt = update(Notification).where(Notification.is_read.is_(False))
            if user is not None and not user.is_admin:
                stmt = stmt.where(Notification.user_id == user.id)
            result = session.execute(
                stmt.values(is_read=True).execution_options(synchronize_session=False)
            )
            return result.rowcount
