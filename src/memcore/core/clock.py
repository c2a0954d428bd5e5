"""Time helpers: current time, session-id bucketing, human formatting."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]

DEFAULT_SESSION_TTL = timedelta(hours=24)

_SESSION_ID_RE = re.compile(r"^\d{4}-\d{2}-\d{2}-(morning|afternoon|evening)$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def day_period(moment: datetime) -> str:
    """Return the time-of-day bucket used in session ids."""
    if moment.hour < 12:
        return "morning"
    if moment.hour < 17:
        return "afternoon"
    return "evening"


def session_id_for(moment: datetime) -> str:
    """Build a session id like ``2024-01-01-morning``."""
    return f"{moment.strftime('%Y-%m-%d')}-{day_period(moment)}"


def is_valid_session_id(session_id: str) -> bool:
    return bool(_SESSION_ID_RE.match(session_id or ""))


def format_duration(delta: timedelta) -> str:
    """Format a duration as ``3h 12m`` or ``12m``."""
    total_minutes = max(int(delta.total_seconds() // 60), 0)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_relative_time(moment: datetime, now: datetime | None = None) -> str:
    """Format a past moment relative to now ("just now", "2 hours ago")."""
    now = now or utcnow()
    seconds = (now - moment).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    return f"{days} day{'s' if days > 1 else ''} ago"


def format_expiry(expires_at: datetime, now: datetime | None = None) -> str:
    now = now or utcnow()
    hours_left = int((expires_at - now).total_seconds() // 3600)
    if hours_left > 0:
        return f"{hours_left}h remaining"
    return "Expiring soon!"
