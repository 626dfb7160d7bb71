"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_time_label, validate_weekday
from .status_rules import BOOKING_STATUSES


class BookingItem(BaseModel):
    """A booked line item; free-form, not checked against the page catalog"""

    name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(1, ge=1)
    price: float = Field(..., ge=0)


class RequestedSlot(BaseModel):
    """
    Either an explicit {date, startTime, endTime} or a weekly
    {day, fromTime, toTime} resolved to the next occurrence of that weekday.
    """

    scheduledDate: Optional[date] = Field(None, validation_alias=AliasChoices("date", "scheduledDate"))
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    day: Optional[str] = None
    fromTime: Optional[str] = Field(None, validation_alias=AliasChoices("fromTime", "from"))
    toTime: Optional[str] = Field(None, validation_alias=AliasChoices("toTime", "to"))

    @field_validator("day")
    @classmethod
    def check_day(cls, v):
        return validate_weekday(v) if v is not None else v

    @field_validator("fromTime", "toTime")
    @classmethod
    def check_time(cls, v):
        return validate_time_label(v) if v is not None else v

    @model_validator(mode="after")
    def check_form(self):
        if self.startTime is None and (self.day is None or self.fromTime is None):
            raise ValueError("Slot needs either startTime or day and fromTime")
        if self.startTime is not None and self.day is not None:
            raise ValueError("Slot must be either an explicit date/time or a weekday, not both")
        if self.startTime and self.endTime and (self.startTime.tzinfo is None) != (self.endTime.tzinfo is None):
            raise ValueError("startTime and endTime must both carry a UTC offset or neither")
        if self.startTime and self.endTime and self.endTime <= self.startTime:
            raise ValueError("endTime must be after startTime")
        return self


class BookingCreate(BaseModel):
    """Schema for creating a booking"""

    pageId: int
    items: list[BookingItem] = Field(..., min_length=1)
    totalPrice: float = Field(..., ge=0)
    deliveryAddress: str = Field(..., min_length=1, max_length=500)
    slot: RequestedSlot = Field(..., validation_alias=AliasChoices("slot", "requestedSlot"))

    @field_validator("deliveryAddress")
    @classmethod
    def check_address(cls, v):
        if not v.strip():
            raise ValueError("Delivery address is required")
        return v.strip()


class BookingStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        canonical = v.strip().capitalize()
        if canonical not in BOOKING_STATUSES:
            raise ValueError(f"Invalid booking status: {v}")
        return canonical
