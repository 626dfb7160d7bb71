"""Booking router - FastAPI endpoints for the booking lifecycle"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_account, require_customer
from ...database import get_db
from ...models import Account
from ..notifications.router import get_notification_service
from ..notifications.service import NotificationService
from .schemas import BookingCreate, BookingStatusUpdate
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, notifications=notifications)


@router.post("", status_code=201)
async def create_booking(
    data: BookingCreate,
    current_account: Account = Depends(require_customer),
    service: BookingService = Depends(get_booking_service),
):
    """Book a slot on a business page; the vendor is notified after the response"""
    booking = await service.create_booking(current_account.id, data)
    return {"success": True, "booking": service.to_response(booking)}


@router.get("")
async def list_bookings(
    role: Optional[str] = Query(None, description="Customer or Vendor"),
    status: Optional[str] = Query(None),
    current_account: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    bookings = service.list_bookings(current_account, role=role, status=status)
    return {"success": True, "bookings": [service.to_response(b) for b in bookings]}


@router.get("/{booking_id}")
async def get_booking(
    booking_id: int,
    current_account: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    return {"success": True, "booking": service.get_booking(booking_id, current_account.id)}


@router.put("/{booking_id}/status")
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    current_account: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    """Vendor moves a booking through Pending → Confirmed → Completed, or cancels it"""
    booking = await service.update_booking_status(booking_id, current_account.id, data.status)
    return {"success": True, "booking": service.to_response(booking)}
