"""Booking service - Booking creation, slot claims and status lifecycle"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ...config import ALLOW_DIRECT_COMPLETION
from ...errors import Forbidden, InvalidTransition, NotFound, SlotUnavailable, ValidationError
from ...models import (
    BOOKING_CANCELLED,
    BOOKING_PENDING,
    PAYMENT_PAID,
    ROLE_CUSTOMER,
    ROLE_VENDOR,
    WEEKDAYS,
    Account,
    Booking,
    BusinessPage,
)
from ...shared.validators import parse_clock_time
from ..notifications.service import NotificationService
from ..pages.repository import PageRepository
from ..timeslots.service import TimeSlotService
from .repository import BookingRepository
from .schemas import BookingCreate, RequestedSlot
from .status_rules import BOOKING_STATUSES, get_allowed_predecessors, validate_status_transition

logger = logging.getLogger(__name__)


@dataclass
class ResolvedSlot:
    day: str
    time: str
    scheduled_date: date
    start_time: Optional[datetime]
    end_time: Optional[datetime]


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _clock_or_none(label: Optional[str]) -> Optional[time]:
    if not label:
        return None
    try:
        return parse_clock_time(label)
    except ValueError:
        return None


def next_weekday_occurrence(day: str, today: date) -> date:
    """Next date falling on `day`, today included"""
    diff = (WEEKDAYS.index(day) - today.weekday()) % 7
    return today + timedelta(days=diff)


def resolve_requested_slot(slot: RequestedSlot, today: Optional[date] = None) -> ResolvedSlot:
    """
    Turn a requested slot into the (day, time) key to claim plus concrete datetimes.

    Explicit start times give their weekday and an HH:MM label from the wall
    clock the client sent; stored datetimes are UTC. Weekly requests land on the
    next occurrence of the weekday and keep fromTime as the label. Labels that
    are not HH:MM still book the slot but leave the datetimes empty.
    """
    if slot.startTime is not None:
        local_start = slot.startTime
        local_end = slot.endTime
        if slot.scheduledDate is not None and slot.scheduledDate != local_start.date():
            shift = slot.scheduledDate - local_start.date()
            local_start = local_start + shift
            local_end = local_end + shift if local_end is not None else None
        if local_end is not None and local_end <= local_start:
            raise ValidationError("endTime must be after startTime")

        wall_clock = local_start.replace(tzinfo=None)
        return ResolvedSlot(
            day=WEEKDAYS[wall_clock.weekday()],
            time=wall_clock.strftime("%H:%M"),
            scheduled_date=wall_clock.date(),
            start_time=_to_naive_utc(local_start),
            end_time=_to_naive_utc(local_end) if local_end is not None else None,
        )

    scheduled = next_weekday_occurrence(slot.day, today or date.today())
    from_clock = _clock_or_none(slot.fromTime)
    to_clock = _clock_or_none(slot.toTime)
    start = datetime.combine(scheduled, from_clock) if from_clock else None
    end = datetime.combine(scheduled, to_clock) if start and to_clock else None
    if end is not None and end <= start:
        raise ValidationError("toTime must be after fromTime")
    return ResolvedSlot(
        day=slot.day, time=slot.fromTime, scheduled_date=scheduled, start_time=start, end_time=end
    )


class BookingService:
    """Service layer for the booking lifecycle"""

    def __init__(
        self,
        db: Session,
        notifications: Optional[NotificationService] = None,
        allow_direct_completion: bool = ALLOW_DIRECT_COMPLETION,
    ):
        self.db = db
        self.notifications = notifications or NotificationService(db)
        self.allow_direct_completion = allow_direct_completion
        self.repo = BookingRepository()
        self.slots = TimeSlotService(db)

    @staticmethod
    def _validate_draft(data: BookingCreate) -> None:
        if not data.items:
            raise ValidationError("At least one item is required")
        if data.totalPrice < 0:
            raise ValidationError("Total price must be zero or more")
        if not data.deliveryAddress or not data.deliveryAddress.strip():
            raise ValidationError("Delivery address is required")

    async def create_booking(
        self, customer_id: int, data: BookingCreate, today: Optional[date] = None
    ) -> Booking:
        """
        Claim the requested slot and insert the booking in one transaction,
        then notify the page owner.
        """
        self._validate_draft(data)
        resolved = resolve_requested_slot(data.slot, today)

        page = PageRepository.get_by_id(self.db, data.pageId)
        if not page:
            raise NotFound("Business page not found")
        owner_id = page.vendor_id

        if not self.slots.claim_slot(page.id, resolved.day, resolved.time):
            self.db.rollback()
            current = self.slots.get_slot_status(page.id, resolved.day, resolved.time)
            logger.warning(
                f"⚠️ Slot {resolved.day} {resolved.time} on page {data.pageId} is not available ({current or 'missing'})"
            )
            raise SlotUnavailable(f"The {resolved.day} {resolved.time} slot is not available")

        booking = self.repo.create(
            self.db,
            customer_id=customer_id,
            page_id=page.id,
            items=[item.model_dump() for item in data.items],
            total_price=data.totalPrice,
            delivery_address=data.deliveryAddress,
            scheduled_date=resolved.scheduled_date,
            start_time=resolved.start_time,
            end_time=resolved.end_time,
            slot_day=resolved.day,
            slot_time=resolved.time,
            status=BOOKING_PENDING,
            payment_status=PAYMENT_PAID,
        )
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking.id} created for page {page.id} ({resolved.day} {resolved.time})")

        await self.notifications.deliver(
            owner_id,
            "job",
            "New booking",
            f"New booking for {resolved.day} {resolved.time} on {resolved.scheduled_date.isoformat()}",
            data={"bookingId": booking.id, "pageId": booking.page_id},
        )
        return booking

    async def update_booking_status(self, booking_id: int, actor_id: int, new_status: str) -> Booking:
        """Vendor-driven status change, checked against the owner of the booking's page"""
        if new_status not in BOOKING_STATUSES:
            raise ValidationError(f"Invalid booking status: {new_status}")

        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise NotFound("Booking not found")

        page = PageRepository.get_by_id(self.db, booking.page_id)
        if not page or page.vendor_id != actor_id:
            logger.warning(f"⚠️ Account {actor_id} tried to change booking {booking_id} status")
            raise Forbidden("Only the owner of the business page can update this booking")

        if not validate_status_transition(booking.status, new_status, self.allow_direct_completion):
            raise InvalidTransition(f"Cannot change booking from {booking.status} to {new_status}")

        predecessors = get_allowed_predecessors(new_status, self.allow_direct_completion)
        if not self.repo.transition_status(self.db, booking.id, new_status, predecessors):
            # Another request moved the booking since it was read
            self.db.rollback()
            self.db.refresh(booking)
            raise InvalidTransition(f"Cannot change booking from {booking.status} to {new_status}")

        if new_status == BOOKING_CANCELLED and not self.repo.slot_held_by_other(self.db, booking):
            self.slots.release_slot(booking.page_id, booking.slot_day, booking.slot_time)

        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking.id} is now {booking.status}")

        await self.notifications.deliver(
            booking.customer_id,
            "booking",
            f"Booking {booking.status.lower()}",
            f"Your booking with {page.business_name} is now {booking.status}",
            data={"bookingId": booking.id, "status": booking.status},
        )
        return booking

    def list_bookings(
        self, actor: Account, role: Optional[str] = None, status: Optional[str] = None
    ) -> list[Booking]:
        """Customers see their own bookings; vendors see bookings for the pages they own"""
        if role is None:
            role = ROLE_CUSTOMER if actor.has_role(ROLE_CUSTOMER) else ROLE_VENDOR
        else:
            role = role.strip().capitalize()
        if role not in (ROLE_CUSTOMER, ROLE_VENDOR):
            raise ValidationError(f"Invalid role: {role}")
        if not actor.has_role(role):
            raise Forbidden(f"Access denied. {role} only.")

        if status is not None:
            status = status.strip().capitalize()
            if status not in BOOKING_STATUSES:
                raise ValidationError(f"Invalid booking status: {status}")

        if role == ROLE_CUSTOMER:
            return self.repo.list_bookings(self.db, customer_id=actor.id, status=status)

        page_ids = PageRepository.page_ids_for_vendor(self.db, actor.id)
        if not page_ids:
            return []
        return self.repo.list_bookings(self.db, page_ids=page_ids, status=status)

    def get_booking(self, booking_id: int, actor_id: int) -> dict:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise NotFound("Booking not found")

        page = PageRepository.get_by_id(self.db, booking.page_id)
        is_owner = page is not None and page.vendor_id == actor_id
        if booking.customer_id != actor_id and not is_owner:
            raise Forbidden("You do not have access to this booking")
        return self.to_response(booking, page, include_page=True)

    @staticmethod
    def page_snapshot(page_id: int, page: Optional[BusinessPage]) -> dict:
        if page is None:
            return {"id": page_id, "unavailable": True}
        return {
            "id": page.id,
            "businessName": page.business_name,
            "logo": page.logo_url,
            "address": page.address,
        }

    @classmethod
    def to_response(
        cls, booking: Booking, page: Optional[BusinessPage] = None, include_page: bool = False
    ) -> dict:
        response = {
            "id": booking.id,
            "customerId": booking.customer_id,
            "pageId": booking.page_id,
            "items": booking.items or [],
            "totalPrice": booking.total_price,
            "deliveryAddress": booking.delivery_address,
            "date": booking.scheduled_date.isoformat() if booking.scheduled_date else None,
            "startTime": booking.start_time.isoformat() if booking.start_time else None,
            "endTime": booking.end_time.isoformat() if booking.end_time else None,
            "slot": {"day": booking.slot_day, "time": booking.slot_time},
            "status": booking.status,
            "paymentStatus": booking.payment_status,
            "createdAt": booking.created_at.isoformat() if booking.created_at else None,
        }
        if include_page:
            response["page"] = cls.page_snapshot(booking.page_id, page)
        return response
