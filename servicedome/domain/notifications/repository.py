"""Notification repository - The bounded per-user notification log"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Notification


class NotificationRepository:
    """Repository for notification log operations. Newest entries have the highest id."""

    @staticmethod
    def add(db: Session, **notification_data) -> Notification:
        notification = Notification(**notification_data)
        db.add(notification)
        db.flush()
        return notification

    @staticmethod
    def trim(db: Session, user_id: int, keep: int) -> int:
        """Delete everything older than the user's `keep` newest entries"""
        cutoff = (
            db.query(Notification.id)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.id.desc())
            .offset(keep)
            .first()
        )
        if cutoff is None:
            return 0
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.id <= cutoff[0])
            .delete(synchronize_session=False)
        )

    @staticmethod
    def list_for_user(db: Session, user_id: int) -> list[Notification]:
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.id.desc())
            .all()
        )

    @staticmethod
    def get_by_index(db: Session, user_id: int, index: int) -> Optional[Notification]:
        if index < 0:
            return None
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.id.desc())
            .offset(index)
            .first()
        )

    @staticmethod
    def unread_count(db: Session, user_id: int) -> int:
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .count()
        )
