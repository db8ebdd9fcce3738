"""Calendar day keys in the platform's home timezone."""

from datetime import datetime, timedelta, timezone

from taskpay.settings import settings


def home_timezone() -> timezone:
    """Fixed-offset home timezone (Nairobi observes no DST)."""
    return timezone(timedelta(hours=settings.home_utc_offset_hours))


def day_key(now: datetime | None = None) -> str:
    """Return the ``YYYY-MM-DD`` day key for a moment in time.

    Daily task sets reset at local midnight in the home region, not at
    UTC midnight and not in the client's timezone.

    Args:
        now: Aware datetime (naive values are taken as UTC); defaults to now

    Returns:
        Day key string
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(home_timezone()).date().isoformat()
