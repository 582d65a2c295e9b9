"""
Record identifiers and timestamps.
"""

import time
from datetime import datetime, timezone
from threading import Lock

_last_id = 0
_id_lock = Lock()


def generate_id() -> str:
    """
    Time-based record id: milliseconds since the epoch.

    Two ids issued within the same millisecond are bumped so ids stay unique
    and strictly increasing within the process.
    """
    global _last_id
    with _id_lock:
        candidate = int(time.time() * 1000)
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
        return str(candidate)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
