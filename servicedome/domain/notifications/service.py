"""Notification service - In-app notification log and best-effort push relay"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from ...config import NOTIFICATION_LOG_LIMIT
from ...errors import NotFound
from ...models import Account, Notification
from ...security_utils import sanitize_text
from ...services.push_service import is_expo_push_token
from .dispatch import PushDispatcher
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Service layer for the notification relay"""

    def __init__(
        self,
        db: Session,
        dispatcher: Optional[PushDispatcher] = None,
        background_tasks: Optional[BackgroundTasks] = None,
        log_limit: int = NOTIFICATION_LOG_LIMIT,
    ):
        self.db = db
        self.dispatcher = dispatcher or PushDispatcher()
        self.background_tasks = background_tasks
        self.log_limit = log_limit
        self.repo = NotificationRepository()

    def _get_account(self, user_id: int) -> Account:
        account = self.db.query(Account).filter(Account.id == user_id).first()
        if not account:
            raise NotFound("User not found")
        return account

    def notify(self, user_id: int, type: str, title: str, message: str) -> Notification:
        """Prepend an entry to the user's log and trim it to the newest log_limit entries"""
        self._get_account(user_id)
        notification = self.repo.add(
            self.db,
            user_id=user_id,
            type=type,
            title=sanitize_text(title, 255),
            message=sanitize_text(message),
            time=datetime.utcnow(),
            read=False,
        )
        trimmed = self.repo.trim(self.db, user_id, self.log_limit)
        self.db.commit()
        self.db.refresh(notification)
        if trimmed:
            logger.debug(f"Trimmed {trimmed} old notifications for user {user_id}")
        return notification

    def list_notifications(self, user_id: int) -> list[Notification]:
        return self.repo.list_for_user(self.db, user_id)

    def mark_read(self, user_id: int, index: int) -> Notification:
        """Mark the index-th newest entry read; repeating the call is a no-op"""
        notification = self.repo.get_by_index(self.db, user_id, index)
        if not notification:
            raise NotFound("Notification not found")
        if not notification.read:
            notification.read = True
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def unread_count(self, user_id: int) -> int:
        return self.repo.unread_count(self.db, user_id)

    async def dispatch_push(self, user_id: int, payload: dict) -> bool:
        """Hand a push to the dispatcher. Failures are logged and reported as False."""
        try:
            account = self.db.query(Account).filter(Account.id == user_id).first()
            token = account.expo_push_token if account else None
            if not token:
                logger.info(f"📱 No push token for user {user_id}, skipping push")
                return False
            if not is_expo_push_token(token):
                logger.warning(f"⚠️ Invalid push token stored for user {user_id}")
                return False
            return await self.dispatcher.dispatch(token, payload, self.background_tasks)
        except Exception as e:
            logger.error(f"❌ Push dispatch failed for user {user_id}: {e}")
            return False

    async def deliver(
        self, user_id: int, type: str, title: str, message: str, data: Optional[dict] = None
    ) -> Optional[Notification]:
        """
        Log the notification and dispatch a push for it.

        Called after the triggering operation has committed; nothing here can
        fail that operation.
        """
        notification = None
        try:
            notification = self.notify(user_id, type, title, message)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to store {type} notification for user {user_id}: {e}")

        await self.dispatch_push(user_id, {"title": title, "body": message, "data": data or {}})
        return notification

    @staticmethod
    def to_response(notification: Notification, index: int) -> dict:
        return {
            "index": index,
            "type": notification.type,
            "title": notification.title,
            "message": notification.message,
            "time": notification.time.isoformat() if notification.time else None,
            "read": notification.read,
        }
