"""Time slot service - The per-page weekly availability grid"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...cache import invalidate_page_cache
from ...errors import Conflict, Forbidden, NotFound, ValidationError
from ...models import SLOT_AVAILABLE, SLOT_BOOKED, WEEKDAYS, BusinessPage, TimeSlot
from ...shared.validators import validate_time_label, validate_weekday
from ..pages.repository import PageRepository
from .repository import TimeSlotRepository
from .schemas import SlotCreate, SlotUpdate

logger = logging.getLogger(__name__)


class TimeSlotService:
    """
    Vendor-declared bookable slots. Opening hours are descriptive only;
    this grid is what bookings claim against.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = TimeSlotRepository()

    def _get_owned_page(self, page_id: int, actor_id: int) -> BusinessPage:
        page = PageRepository.get_by_id(self.db, page_id)
        if not page:
            raise NotFound("Business page not found")
        if page.vendor_id != actor_id:
            logger.warning(f"⚠️ Account {actor_id} tried to edit slots of page {page_id}")
            raise Forbidden("You do not own this business page")
        return page

    @staticmethod
    def _normalize_key(day: str, time: str) -> tuple[str, str]:
        try:
            return validate_weekday(day), validate_time_label(time)
        except ValueError as e:
            raise ValidationError(str(e)) from e

    def _find_slot(self, page_id: int, day: str, time: str) -> TimeSlot:
        if not self.repo.day_has_slots(self.db, page_id, day):
            raise NotFound(f"No slots defined for {day}")
        slot = self.repo.get_slot(self.db, page_id, day, time)
        if not slot:
            raise NotFound(f"No {time} slot on {day}")
        return slot

    def create_slot(self, page_id: int, actor_id: int, data: SlotCreate) -> TimeSlot:
        page = self._get_owned_page(page_id, actor_id)
        if data.status == SLOT_BOOKED:
            raise ValidationError("Slots become Booked only through a booking")
        if self.repo.get_slot(self.db, page.id, data.day, data.time):
            raise Conflict(f"A {data.time} slot already exists on {data.day}")

        slot = TimeSlot(
            page_id=page.id,
            day=data.day,
            time=data.time,
            status=data.status,
            block_reason=data.blockReason if data.status != SLOT_AVAILABLE else None,
        )
        self.db.add(slot)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise Conflict(f"A {data.time} slot already exists on {data.day}") from e

        self.db.refresh(slot)
        invalidate_page_cache(page.id)
        logger.info(f"✅ Slot {slot.day} {slot.time} created on page {page.id}")
        return slot

    def update_slot(
        self, page_id: int, actor_id: int, day: str, time: str, data: SlotUpdate
    ) -> TimeSlot:
        page = self._get_owned_page(page_id, actor_id)
        day, time = self._normalize_key(day, time)
        slot = self._find_slot(page.id, day, time)

        if data.status == SLOT_BOOKED and slot.status != SLOT_BOOKED:
            raise ValidationError("Slots become Booked only through a booking")

        if data.status is not None:
            if slot.status == SLOT_BOOKED and data.status != SLOT_BOOKED:
                logger.info(f"🔓 Slot {day} {time} on page {page.id} reset from Booked to {data.status}")
            slot.status = data.status
        if slot.status == SLOT_AVAILABLE:
            slot.block_reason = None
        elif "blockReason" in data.model_fields_set:
            slot.block_reason = data.blockReason

        self.db.commit()
        self.db.refresh(slot)
        invalidate_page_cache(page.id)
        return slot

    def delete_slot(self, page_id: int, actor_id: int, day: str, time: str) -> None:
        page = self._get_owned_page(page_id, actor_id)
        day, time = self._normalize_key(day, time)
        slot = self._find_slot(page.id, day, time)
        self.db.delete(slot)
        self.db.commit()
        invalidate_page_cache(page.id)
        logger.info(f"🗑️ Slot {day} {time} removed from page {page.id}")

    def list_slots(self, page_id: int) -> dict[str, list[dict]]:
        """Public grid keyed by weekday, Monday first, days without slots omitted"""
        if not PageRepository.get_by_id(self.db, page_id):
            raise NotFound("Business page not found")

        grid: dict[str, list[dict]] = {}
        for slot in self.repo.list_for_page(self.db, page_id):
            grid.setdefault(slot.day, []).append(self.to_response(slot))
        return {day: grid[day] for day in WEEKDAYS if day in grid}

    # Used by bookings inside their own transaction

    def claim_slot(self, page_id: int, day: str, time: str) -> bool:
        return self.repo.claim(self.db, page_id, day, time)

    def release_slot(self, page_id: int, day: str, time: str) -> bool:
        return self.repo.release(self.db, page_id, day, time)

    @staticmethod
    def to_response(slot: TimeSlot, include_day: bool = False) -> dict:
        response = {"time": slot.time, "status": slot.status, "blockReason": slot.block_reason}
        if include_day:
            response = {"day": slot.day, **response}
        return response

    def get_slot_status(self, page_id: int, day: str, time: str) -> Optional[str]:
        slot = self.repo.get_slot(self.db, page_id, day, time)
        return slot.status if slot else None
