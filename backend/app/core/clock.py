"""Store-local calendar helpers.

Register sessions, sale dates and payment dates are calendar days in the
store's timezone, not UTC.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from backend.app.core.config import settings


def local_now() -> datetime:
    return datetime.now(ZoneInfo(settings.TIMEZONE))


def local_today() -> date:
    return local_now().date()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
