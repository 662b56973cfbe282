"""
TIME INFORMATION UTILITY
========================

Timestamps attached to chat replies. Always UTC, ISO-8601, millisecond
precision with a trailing "Z" (e.g. 2026-10-19T08:15:30.123Z), so browsers
can pass them straight to `new Date(...)`.
"""

import datetime
from typing import Optional


def get_timestamp(now: Optional[datetime.datetime] = None) -> str:
    """Return now (or the given aware/naive-UTC datetime) as an ISO-8601 UTC string."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return now.isoformat(timespec="milliseconds") + "Z"
