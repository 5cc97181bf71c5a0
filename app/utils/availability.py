"""
Visit scheduling rules.
Business hours are 9:00-17:00 with a lunch break from 12:00 to 13:00, Monday to
Friday, in hourly slots, booked at least one day ahead. Rules are evaluated in
the configured business timezone; timestamps are stored in UTC.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from app.config import settings
from app.models.appointment import AppointmentStatus

BUSINESS_START_HOUR = 9
BUSINESS_END_HOUR = 17
LUNCH_START_HOUR = 12
LUNCH_END_HOUR = 13
APPOINTMENT_DURATION_MINUTES = 60
WORKDAYS = (0, 1, 2, 3, 4)  # Monday..Friday

AVAILABLE_HOURS: List[int] = [
    hour
    for hour in range(BUSINESS_START_HOUR, BUSINESS_END_HOUR)
    if not LUNCH_START_HOUR <= hour < LUNCH_END_HOUR
]

ERROR_PAST_DATE = "La fecha no puede ser en el pasado"
ERROR_MIN_NOTICE = "Las citas deben agendarse con al menos un día de anticipación"
ERROR_WEEKEND = "Solo se pueden agendar citas de lunes a viernes"
ERROR_UNAVAILABLE_HOUR = "El horario seleccionado no está disponible"


def get_business_timezone() -> ZoneInfo:
    return ZoneInfo(settings.business_timezone)


def localize_input(value: datetime) -> datetime:
    """Interpret a naive client datetime as business-local time."""
    if value.tzinfo is None:
        return value.replace(tzinfo=get_business_timezone())
    return value.astimezone(get_business_timezone())


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a stored timestamp to aware UTC. Naive values are UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now_local(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(get_business_timezone())
    return localize_input(now)


def is_workday(day: date) -> bool:
    return day.weekday() in WORKDAYS


def validate_appointment_datetime(
    scheduled_at: datetime,
    now: Optional[datetime] = None
) -> Tuple[bool, Optional[str]]:
    """
    Check a requested visit time against the scheduling rules.

    Args:
        scheduled_at: Requested start (naive values are business-local)
        now: Reference time, defaults to the current time

    Returns:
        Tuple of (valid, error message or None)
    """
    local = localize_input(scheduled_at)
    current = _now_local(now)

    if local < current:
        return False, ERROR_PAST_DATE

    if local.date() < current.date() + timedelta(days=1):
        return False, ERROR_MIN_NOTICE

    if not is_workday(local.date()):
        return False, ERROR_WEEKEND

    if local.hour not in AVAILABLE_HOURS or local.minute != 0 or local.second != 0:
        return False, ERROR_UNAVAILABLE_HOUR

    return True, None


def get_valid_date_range(days_ahead: int = 30, now: Optional[datetime] = None) -> Tuple[date, date]:
    """First and last bookable dates: tomorrow through tomorrow + days_ahead."""
    tomorrow = _now_local(now).date() + timedelta(days=1)
    return tomorrow, tomorrow + timedelta(days=days_ahead)


def get_available_slots_for_day(booked_hours: Iterable[int]) -> List[int]:
    booked = set(booked_hours)
    return [hour for hour in AVAILABLE_HOURS if hour not in booked]


def slot_start_utc(day: date, hour: int) -> datetime:
    """UTC instant of a business-local slot."""
    local = datetime.combine(day, time(hour=hour), tzinfo=get_business_timezone())
    return local.astimezone(timezone.utc)


def day_bounds_utc(day: date) -> Tuple[datetime, datetime]:
    """UTC range [start, end) covering a business-local calendar day."""
    tz = get_business_timezone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def local_hour(value: datetime) -> int:
    """Business-local hour of a stored (UTC) timestamp."""
    return ensure_utc(value).astimezone(get_business_timezone()).hour


def can_cancel(status: AppointmentStatus) -> bool:
    return status in (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


def can_confirm(status: AppointmentStatus) -> bool:
    return status == AppointmentStatus.PENDING
