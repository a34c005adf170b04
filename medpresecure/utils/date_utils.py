# medpresecure/utils/date_utils.py

import os
import re
from datetime import datetime, date, time, timedelta
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from medpresecure.core.exceptions import BookingValidationError

load_dotenv()

TIME_SLOTS = [
    '09:00 AM', '09:30 AM', '10:00 AM', '10:30 AM', '11:00 AM', '11:30 AM',
    '01:00 PM', '01:30 PM', '02:00 PM', '02:30 PM', '03:00 PM', '03:30 PM', '04:00 PM'
]

SLOT_LABEL_PATTERN = re.compile(r'^(0?[1-9]|1[0-2]):([0-5][0-9])\s?(AM|PM)$', re.IGNORECASE)


def clinic_timezone() -> ZoneInfo:
    name = os.getenv("CLINIC_TIMEZONE", "UTC")
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError as e:
        raise BookingValidationError(f"Unknown clinic timezone: {name}") from e


def parse_time_slot(label: str) -> time:
    """Parse a 12-hour slot label such as '10:30 AM' into a time of day"""
    match = SLOT_LABEL_PATTERN.match(label.strip()) if label else None
    if not match:
        raise BookingValidationError(f"Time slot must be in format HH:MM AM/PM, got {label!r}")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    modifier = match.group(3).upper()
    if modifier == 'PM' and hours < 12:
        hours += 12
    if modifier == 'AM' and hours == 12:
        hours = 0
    return time(hours, minutes)


def combine_slot(day: date, label: str, tz: Optional[ZoneInfo] = None) -> datetime:
    """Resolve a calendar date plus slot label into an absolute, timezone-aware timestamp"""
    tz = tz or clinic_timezone()
    return datetime.combine(day, parse_time_slot(label), tzinfo=tz)


def format_time_slot(moment: datetime, tz: Optional[ZoneInfo] = None) -> str:
    """Render a stored timestamp back into the slot label shown to patients"""
    tz = tz or clinic_timezone()
    if moment.tzinfo is None:
        raise BookingValidationError("Stored appointment timestamp has no timezone")
    return moment.astimezone(tz).strftime('%I:%M %p')


def day_bounds(day: date, tz: Optional[ZoneInfo] = None) -> Tuple[datetime, datetime]:
    """Start of ``day`` and start of the following day, in the clinic timezone"""
    tz = tz or clinic_timezone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    return start, datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)


def is_offered_slot(label: str) -> bool:
    try:
        slot = parse_time_slot(label)
    except BookingValidationError:
        return False
    return any(parse_time_slot(offered) == slot for offered in TIME_SLOTS)


def available_slots(booked: List[str]) -> List[str]:
    taken = {parse_time_slot(label) for label in booked}
    return [label for label in TIME_SLOTS if parse_time_slot(label) not in taken]

