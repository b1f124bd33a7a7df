"""
utils/validation_utils.py

Purpose: Input validation

- ObjectId parsing
- Region and free-text normalization
- Case-insensitive match patterns for queries
- Required-field checks
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId

from utils.constants import GHANA_REGIONS


_REGION_SUFFIX = re.compile(r"\s+region\s*$", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def to_object_id(value: Any) -> Optional[ObjectId]:
    """
    Converts a value to an ObjectId.

    Returns:
        ObjectId, or None if the value is not a valid id
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def normalize_region(region: Optional[str]) -> str:
    """
    Collapses whitespace and strips a trailing "region" suffix.

    Examples:
        "ashanti region" -> "ashanti"
        "  Greater   Accra Region " -> "Greater Accra"
    """
    if not region:
        return ""
    cleaned = _WHITESPACE.sub(" ", region.strip())
    return _REGION_SUFFIX.sub("", cleaned).strip()


def region_pattern(region: str) -> Dict[str, str]:
    """
    Builds a Mongo regex condition matching a region case-insensitively,
    whether or not the stored value carries the "Region" suffix.
    """
    base = normalize_region(region).lower()
    return {"$regex": f"^{re.escape(base)}(\\s+region)?$", "$options": "i"}


def exact_pattern(value: str) -> Dict[str, str]:
    """Case-insensitive exact match condition."""
    return {"$regex": f"^{re.escape(value.strip())}$", "$options": "i"}


def contains_pattern(value: str) -> Dict[str, str]:
    """Case-insensitive substring match condition (user input escaped)."""
    return {"$regex": re.escape(value.strip()), "$options": "i"}


def canonical_region(region: Optional[str]) -> Optional[str]:
    """
    Maps a free-text region onto the canonical region list.

    Returns:
        Canonical region name, or None when it is not a known region
    """
    base = normalize_region(region).lower()
    if not base:
        return None
    for name in GHANA_REGIONS:
        if name.lower() == base:
            return name
    return None


def find_missing_fields(fields: Dict[str, Any]) -> List[str]:
    """
    Returns the names whose value is missing or blank, in input order.
    Lists count as missing when they hold no non-blank entry.
    """
    missing = []
    for name, value in fields.items():
        if isinstance(value, (list, tuple)):
            if not [v for v in value if v is not None and str(v).strip()]:
                missing.append(name)
        elif value is None or str(value).strip() == "":
            missing.append(name)
    return missing


def clean_list(values: Optional[Iterable[str]]) -> List[str]:
    """
    Strips entries and drops blanks and duplicates, keeping first occurrence.
    """
    if not values:
        return []
    seen = []
    for value in values:
        if value is None:
            continue
        item = str(value).strip()
        if item and item not in seen:
            seen.append(item)
    return seen


def parse_float(value: Any, default: float = 0.0) -> float:
    """Lenient number parsing for form fields like budgets."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parses an ISO date or datetime from a form field into naive UTC.

    Returns:
        datetime, or None when the value is blank or not a date
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value or "").strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
