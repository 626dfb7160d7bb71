"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ...models import BOOKING_CONFIRMED, BOOKING_PENDING, Booking


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_by_id(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def create(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        return booking

    @staticmethod
    def list_bookings(
        db: Session,
        customer_id: Optional[int] = None,
        page_ids: Optional[list[int]] = None,
        status: Optional[str] = None,
    ) -> list[Booking]:
        query = db.query(Booking)
        if customer_id is not None:
            query = query.filter(Booking.customer_id == customer_id)
        if page_ids is not None:
            query = query.filter(Booking.page_id.in_(page_ids))
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    @staticmethod
    def transition_status(
        db: Session, booking_id: int, new_status: str, predecessors: list[str]
    ) -> bool:
        """
        Move a booking to new_status only if it is still in one of predecessors.
        Does not commit.
        """
        result = db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status.in_(predecessors))
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def slot_held_by_other(db: Session, booking: Booking) -> bool:
        """Whether another open booking holds the same weekly slot"""
        return (
            db.query(Booking.id)
            .filter(
                Booking.page_id == booking.page_id,
                Booking.slot_day == booking.slot_day,
                Booking.slot_time == booking.slot_time,
                Booking.status.in_([BOOKING_PENDING, BOOKING_CONFIRMED]),
                Booking.id != booking.id,
            )
            .first()
            is not None
        )
