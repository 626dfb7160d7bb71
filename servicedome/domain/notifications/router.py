"""Notification router - The current account's notification log"""

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_account
from ...database import get_db
from ...models import Account
from .dispatch import PushDispatcher, get_push_dispatcher
from .service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_notification_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    dispatcher: PushDispatcher = Depends(get_push_dispatcher),
) -> NotificationService:
    """Dependency injection for NotificationService; pushes run after the response"""
    return NotificationService(db, dispatcher=dispatcher, background_tasks=background_tasks)


@router.get("")
async def list_notifications(
    current_account: Account = Depends(get_current_account),
    service: NotificationService = Depends(get_notification_service),
):
    notifications = service.list_notifications(current_account.id)
    return {
        "success": True,
        "notifications": [service.to_response(n, i) for i, n in enumerate(notifications)],
        "unreadCount": sum(1 for n in notifications if not n.read),
    }


@router.put("/{index}/read")
async def mark_read(
    index: int,
    current_account: Account = Depends(get_current_account),
    service: NotificationService = Depends(get_notification_service),
):
    notification = service.mark_read(current_account.id, index)
    return {
        "success": True,
        "notification": service.to_response(notification, index),
        "unreadCount": service.unread_count(current_account.id),
    }
