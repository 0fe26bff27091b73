"""Service-day arithmetic shared by the queue, stats and meal-plan views."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def start_of_day(now: datetime, tz: ZoneInfo) -> datetime:
    """Midnight of the service day containing ``now``, in UTC."""
    local = ensure_aware(now).astimezone(tz)
    midnight = datetime(local.year, local.month, local.day, tzinfo=tz)
    return midnight.astimezone(timezone.utc)


def day_window(now: datetime, tz: ZoneInfo, days: int = 1) -> tuple[datetime, datetime]:
    """Half-open window ``[startOfToday, startOfToday + days)``."""
    start = start_of_day(now, tz)
    return start, start + timedelta(days=days)


def minutes_between(earlier: datetime, later: datetime) -> int:
    """Whole minutes elapsed, never negative."""
    delta = ensure_aware(later) - ensure_aware(earlier)
    return max(0, int(delta.total_seconds() // 60))
