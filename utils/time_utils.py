"""
utils/time_utils.py

Purpose: Time and expiry helpers

- Token/session expiry calculations
- Timestamp utilities
"""

from datetime import datetime, timedelta
from typing import Optional

def utcnow() -> datetime:
    """
    Naive UTC timestamp, matching what the Mongo driver returns by default.
    """
    return datetime.utcnow()

def expires_in(days: int = 0, hours: int = 0, minutes: int = 0) -> datetime:
    """
    Returns the timestamp ``days``/``hours``/``minutes`` from now.
    """
    return utcnow() + timedelta(days=days, hours=hours, minutes=minutes)

def days_since(dt: Optional[datetime]) -> int:
    """
    Whole days elapsed since ``dt``.
    """
    if not dt:
        return 0
    return max((utcnow() - dt).days, 0)
