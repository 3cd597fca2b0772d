# medicare/utils/validators.py

import re
from datetime import date, datetime, time, timezone
from typing import Optional, Tuple, Union
from medicare.utils.exceptions import InvalidArgumentError

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$')

DateInput = Union[str, date, datetime]


def validate_date_format(date_str: str) -> bool:
    """Validate date string format (YYYY-MM-DD)"""
    return bool(DATE_PATTERN.match(date_str))


def parse_time_label(value: str) -> str:
    """Normalise a slot label such as '9:00' to its canonical 'HH:MM' form."""
    if not isinstance(value, str):
        raise InvalidArgumentError("Time is required in HH:MM format")

    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise InvalidArgumentError(f"Invalid time format '{value}'. Use HH:MM format (e.g., 09:30)")

    return f"{int(match.group(1)):02d}:{match.group(2)}"


def parse_iso_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD string"""
    if not isinstance(value, str) or not validate_date_format(value.strip()):
        raise InvalidArgumentError(f"Invalid date '{value}'. Use YYYY-MM-DD format")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise InvalidArgumentError(f"Invalid date '{value}'. Use YYYY-MM-DD format")


def parse_booking_date(value: DateInput) -> Tuple[date, Optional[time]]:
    """
    Resolve a booking date to its UTC calendar day.

    Accepts a date, a datetime or an ISO string of either. Naive datetimes are
    taken to be UTC. Returns (calendar_day, time_of_day) where time_of_day is
    None for plain dates and for datetimes at exactly midnight.
    """
    if value is None or value == "":
        raise InvalidArgumentError("Appointment date is required")

    if isinstance(value, str):
        raw = value.strip()
        if validate_date_format(raw):
            return parse_iso_date(raw), None
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw)
        except ValueError:
            raise InvalidArgumentError(f"Invalid appointment date '{value}'")

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        time_of_day = value.time().replace(tzinfo=None)
        if time_of_day == time(0, 0):
            time_of_day = None
        return value.date(), time_of_day

    if isinstance(value, date):
        return value, None

    raise InvalidArgumentError(f"Invalid appointment date '{value}'")


def calendar_day(value: DateInput) -> date:
    return parse_booking_date(value)[0]


def weekday_index(day: date) -> int:
    """Weekday numbered 0=Sunday .. 6=Saturday"""
    return day.isoweekday() % 7


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()
