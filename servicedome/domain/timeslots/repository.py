"""Time slot repository - Slot grid queries and atomic slot claims"""

from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ...models import SLOT_AVAILABLE, SLOT_BOOKED, TimeSlot


class TimeSlotRepository:
    """Repository for time slot database operations"""

    @staticmethod
    def get_slot(db: Session, page_id: int, day: str, time: str) -> Optional[TimeSlot]:
        return (
            db.query(TimeSlot)
            .filter(TimeSlot.page_id == page_id, TimeSlot.day == day, TimeSlot.time == time)
            .first()
        )

    @staticmethod
    def day_has_slots(db: Session, page_id: int, day: str) -> bool:
        return (
            db.query(TimeSlot.id).filter(TimeSlot.page_id == page_id, TimeSlot.day == day).first()
            is not None
        )

    @staticmethod
    def list_for_page(db: Session, page_id: int) -> list[TimeSlot]:
        return db.query(TimeSlot).filter(TimeSlot.page_id == page_id).order_by(TimeSlot.id).all()

    @staticmethod
    def claim(db: Session, page_id: int, day: str, time: str) -> bool:
        """
        Mark a slot Booked only if it is currently Available.

        Single conditional UPDATE: of two concurrent claims exactly one sees
        rowcount 1. Does not commit; the booking insert shares the transaction.
        """
        result = db.execute(
            update(TimeSlot)
            .where(
                TimeSlot.page_id == page_id,
                TimeSlot.day == day,
                TimeSlot.time == time,
                TimeSlot.status == SLOT_AVAILABLE,
            )
            .values(status=SLOT_BOOKED, block_reason=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def release(db: Session, page_id: int, day: str, time: str) -> bool:
        """Return a Booked slot to Available. Does not commit."""
        result = db.execute(
            update(TimeSlot)
            .where(
                TimeSlot.page_id == page_id,
                TimeSlot.day == day,
                TimeSlot.time == time,
                TimeSlot.status == SLOT_BOOKED,
            )
            .values(status=SLOT_AVAILABLE)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
