from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

ROLE_CUSTOMER = "Customer"
ROLE_VENDOR = "Vendor"
ROLES = (ROLE_CUSTOMER, ROLE_VENDOR)

TIER_FREE = "Free"
TIER_PREMIUM = "Premium"

SUBSCRIPTION_ACTIVE = "Active"
SUBSCRIPTION_EXPIRED = "Expired"

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

SLOT_AVAILABLE = "Available"
SLOT_BLOCKED = "Blocked"
SLOT_BOOKED = "Booked"

BOOKING_PENDING = "Pending"
BOOKING_CONFIRMED = "Confirmed"
BOOKING_COMPLETED = "Completed"
BOOKING_CANCELLED = "Cancelled"

PAYMENT_PENDING = "Pending"
PAYMENT_PAID = "Paid"


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    roles = Column(JSON, default=list, nullable=False)  # subset of ROLES
    expo_push_token = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer_profile = relationship(
        "CustomerProfile", back_populates="account", uselist=False, cascade="all, delete-orphan"
    )
    vendor_profile = relationship(
        "VendorProfile", back_populates="account", uselist=False, cascade="all, delete-orphan"
    )
    pages = relationship("BusinessPage", back_populates="vendor")

    def has_role(self, role: str) -> bool:
        return role in (self.roles or [])


class CustomerProfile(Base):
    __tablename__ = "customer_profiles"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), unique=True, nullable=False)
    address = Column(String(500), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    location_address = Column(String(500), nullable=True)

    account = relationship("Account", back_populates="customer_profile")


class VendorProfile(Base):
    __tablename__ = "vendor_profiles"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), unique=True, nullable=False)
    membership_tier = Column(String(20), default=TIER_FREE, nullable=False)
    subscription_status = Column(String(20), default=SUBSCRIPTION_EXPIRED, nullable=False)
    payment_account_ref = Column(String(255), nullable=True)  # Stripe customer/account id
    # Number of pages owned; claimed with a conditional UPDATE before a page insert
    page_count = Column(Integer, default=0, nullable=False)

    account = relationship("Account", back_populates="vendor_profile")


class BusinessPage(Base):
    __tablename__ = "business_pages"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("accounts.id"), index=True, nullable=False)
    category_name = Column(String(100), nullable=False)
    category_slug = Column(String(100), index=True, nullable=False)
    category_image = Column(String(500), nullable=True)
    business_name = Column(String(255), nullable=False)
    about = Column(Text, nullable=True)
    store_policies = Column(Text, nullable=True)
    logo_url = Column(String(500), nullable=True)
    banner_url = Column(String(500), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    address = Column(String(500), nullable=True)
    opening_hours = Column(JSON, default=list, nullable=False)  # ordered, one entry per weekday
    delivery_settings = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    vendor = relationship("Account", back_populates="pages")
    services = relationship(
        "ServiceOffering",
        back_populates="page",
        cascade="all, delete-orphan",
        order_by="ServiceOffering.id",
    )
    categories = relationship(
        "PageCategory", back_populates="page", cascade="all, delete-orphan"
    )
    time_slots = relationship(
        "TimeSlot", back_populates="page", cascade="all, delete-orphan", order_by="TimeSlot.id"
    )
    reviews = relationship("Review", back_populates="page", cascade="all, delete-orphan")


class PageCategory(Base):
    """Service category scoped to one page (e.g. "Haircuts", "Colouring")"""

    __tablename__ = "page_categories"

    id = Column(Integer, primary_key=True, index=True)
    page_id = Column(Integer, ForeignKey("business_pages.id"), index=True, nullable=False)
    name = Column(String(100), nullable=False)

    page = relationship("BusinessPage", back_populates="categories")


class ServiceOffering(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    page_id = Column(Integer, ForeignKey("business_pages.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    category_id = Column(Integer, ForeignKey("page_categories.id"), nullable=True)
    category_label = Column(String(100), nullable=True)  # inline label when no page category
    description = Column(Text, nullable=True)
    price = Column(Float, default=0, nullable=False)
    duration = Column(Integer, default=0, nullable=False)  # minutes
    images = Column(JSON, default=list, nullable=False)  # asset URLs
    created_at = Column(DateTime, server_default=func.now())

    page = relationship("BusinessPage", back_populates="services")
    category = relationship("PageCategory")


class TimeSlot(Base):
    __tablename__ = "time_slots"
    __table_args__ = (UniqueConstraint("page_id", "day", "time", name="uq_time_slot_page_day_time"),)

    id = Column(Integer, primary_key=True, index=True)
    page_id = Column(Integer, ForeignKey("business_pages.id"), index=True, nullable=False)
    day = Column(String(10), nullable=False)
    time = Column(String(20), nullable=False)  # opaque label, e.g. "09:00"
    status = Column(String(20), default=SLOT_AVAILABLE, nullable=False)
    block_reason = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    page = relationship("BusinessPage", back_populates="time_slots")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    page_id = Column(Integer, ForeignKey("business_pages.id"), index=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    page = relationship("BusinessPage", back_populates="reviews")
    customer = relationship("Account")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("accounts.id"), index=True, nullable=False)
    # Held by value: deleting the page must not delete or block its bookings
    page_id = Column(Integer, index=True, nullable=False)
    items = Column(JSON, default=list, nullable=False)  # [{name, quantity, price}]
    total_price = Column(Float, nullable=False)
    delivery_address = Column(String(500), nullable=False)
    scheduled_date = Column(Date, nullable=False)
    # Empty when the slot label is not an HH:MM clock time
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    slot_day = Column(String(10), nullable=False)
    slot_time = Column(String(20), nullable=False)
    status = Column(String(20), default=BOOKING_PENDING, nullable=False)
    payment_status = Column(String(20), default=PAYMENT_PAID, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Account")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("accounts.id"), index=True, nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    time = Column(DateTime, nullable=False)
    read = Column(Boolean, default=False, nullable=False)
