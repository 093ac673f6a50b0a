"""
utils/time_utils.py

Purpose: Time and expiry helpers

- Single clock for the application (patchable in tests)
- Verification code expiry calculations
- Timestamp utilities
"""

import time
from datetime import datetime, timedelta
from typing import Optional


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime (the form MongoDB hands back).
    """
    return datetime.utcnow()


def calculate_expiry(issued_at: datetime, validity_minutes: int = 30) -> datetime:
    """
    Calculates expiry timestamp for a one-time code.
    """
    return issued_at + timedelta(minutes=validity_minutes)


def timestamp_ms() -> int:
    """
    Milliseconds since epoch, used to qualify stored file names.
    """
    return int(time.time() * 1000)


def format_timestamp(dt: Optional[datetime], format_str: str = "%Y-%m-%d") -> str:
    """
    Formats a datetime object to string.
    """
    if not dt:
        return "N/A"
    return dt.strftime(format_str)
