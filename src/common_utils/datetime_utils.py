import datetime
from zoneinfo import ZoneInfo
import os
from core.observation.logger import get_logger

logger = get_logger(__name__)


def get_timezone() -> ZoneInfo:
    """
    Timezone used for display timestamps, taken from the TZ env var.
    """
    tz = os.getenv("TZ", "UTC")
    try:
        return ZoneInfo(tz)
    except (KeyError, ValueError) as e:
        logger.warning("[DateTimeUtils] unknown TZ %r, falling back to UTC: %s", tz, e)
        return ZoneInfo("UTC")


timezone = get_timezone()


def to_iso_format(dt: datetime.datetime) -> str:
    """
    Convert a datetime to an ISO string with offset.
    return 2025-09-16T12:20:06.517301+00:00
    """
    if dt.tzinfo is None:
        # Naive datetimes are assumed to be in the configured timezone
        dt = dt.replace(tzinfo=timezone)
    return dt.astimezone(timezone).isoformat()


def from_timestamp(timestamp: int | float) -> datetime.datetime:
    """
    Convert an epoch timestamp to a datetime, detecting seconds vs milliseconds.

    Args:
        timestamp: epoch seconds (10 digits) or milliseconds (13 digits)

    Returns:
        Timezone-aware datetime
    """
    # Millisecond timestamps are >= 1e12 for any date after 2001
    if timestamp >= 1e12:
        timestamp_seconds = timestamp / 1000.0
    else:
        timestamp_seconds = timestamp

    return datetime.datetime.fromtimestamp(timestamp_seconds, tz=timezone)


def to_timestamp_ms(value: datetime.datetime | int | float) -> int:
    """
    Convert a datetime or epoch seconds to epoch milliseconds.
    return 1758025061123
    """
    if isinstance(value, datetime.datetime):
        return int(value.timestamp() * 1000)
    if value >= 1e12:
        return int(value)
    return int(value * 1000)
