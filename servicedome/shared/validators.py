"""Shared validation utilities"""

import json
import re
from datetime import datetime, time
from typing import Any, Optional

from ..models import WEEKDAYS

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize an international phone number to E.164-like form (+XXXXXXXX).

    Raises:
        ValueError: If the number does not have 7-15 digits
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)
    if not 7 <= len(digits) <= 15:
        raise ValueError("Phone number must have between 7 and 15 digits")
    return f"+{digits}"


def validate_weekday(day: str) -> str:
    """Accept a weekday name in any case and return its canonical form"""
    if not isinstance(day, str):
        raise ValueError("Day must be a weekday name")
    canonical = day.strip().capitalize()
    if canonical not in WEEKDAYS:
        raise ValueError(f"Invalid day: {day}")
    return canonical


def validate_time_label(value: str) -> str:
    """Slot time labels are opaque, only surrounding whitespace is removed"""
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Time is required")
    return value.strip()


def parse_clock_time(value: str) -> time:
    """Parse an "HH:MM" clock time"""
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Invalid time '{value}', expected HH:MM") from e


def parse_json_field(value: Any, field_name: str) -> Any:
    """Multipart clients send nested objects as JSON strings; decode them here"""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid {field_name} format") from e
    return value
