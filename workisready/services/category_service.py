"""
workisready/services/category_service.py

Purpose: Main-category taxonomy

- Loads the main-category -> sub-category mapping once
- Expands a main category into every label it covers
- Builds case-insensitive match conditions for category arrays
"""

import json
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Pattern

from workisready.core.config import settings
from workisready.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=4)
def load_categories(path: Optional[str] = None) -> Dict[str, dict]:
    """
    Reads the category mapping file.

    Returns:
        {category_id: {"name": str, "subcategories": [str, ...]}}
    """
    source = Path(path or settings.CATEGORIES_FILE)
    with source.open(encoding="utf-8") as handle:
        mapping = json.load(handle)
    logger.info(f"Loaded {len(mapping)} main categories from {source.name}")
    return mapping


def find_main_category(value: str, mapping: Optional[Dict[str, dict]] = None) -> Optional[dict]:
    """
    Looks a main category up by id or display name, case-insensitively.
    """
    mapping = mapping if mapping is not None else load_categories()
    key = value.strip().lower()
    if key in mapping:
        return mapping[key]
    for entry in mapping.values():
        if entry["name"].lower() == key:
            return entry
    return None


def expand_main_category(value: str, mapping: Optional[Dict[str, dict]] = None) -> List[str]:
    """
    Returns the main category's display name followed by its registered
    sub-categories. Unknown values expand to themselves.
    """
    cleaned = value.strip()
    if not cleaned:
        return []
    entry = find_main_category(cleaned, mapping)
    if entry is None:
        return [cleaned]

    labels = [entry["name"]]
    if cleaned.lower() != entry["name"].lower():
        labels.append(cleaned)
    for sub in entry.get("subcategories", []):
        if sub.lower() not in {label.lower() for label in labels}:
            labels.append(sub)
    return labels


def category_patterns(labels: List[str]) -> List[Pattern]:
    """Anchored case-insensitive patterns usable inside a Mongo ``$in``."""
    return [re.compile(f"^{re.escape(label)}$", re.IGNORECASE) for label in labels]


def category_filter(value: str, mapping: Optional[Dict[str, dict]] = None) -> dict:
    """
    Match condition for a category array field: any element equal to one
    of the expanded labels, ignoring case.
    """
    return {"$in": category_patterns(expand_main_category(value, mapping))}
