from datetime import datetime
from zoneinfo import ZoneInfo

from ..config.config import settings


def local_now() -> datetime:
    """
    Current wall-clock time in the configured TIMEZONE, as a naive datetime.
    Session and check-in timestamps are stored as local wall-clock values.
    """
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None, microsecond=0)


def local_today() -> str:
    """Today's calendar date in YYYY-MM-DD form."""
    return local_now().date().isoformat()
