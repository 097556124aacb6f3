from datetime import datetime, time, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def day_bounds(day: datetime) -> tuple[datetime, datetime]:
    """[midnight, next midnight) of *day* in UTC."""
    start = datetime.combine(as_utc(day).date(), time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)
