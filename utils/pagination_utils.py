"""
utils/pagination_utils.py

Purpose: Pagination for list endpoints

- Clamps page/limit input to sane bounds
- Computes skip offsets and total page counts
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def normalize_pagination(
    page: Optional[int],
    limit: Optional[int],
    default_limit: int,
    max_limit: int,
) -> Pagination:
    """
    Normalizes page/limit. Missing or non-positive values fall back to
    page 1 and ``default_limit``; limits above ``max_limit`` are clamped.
    """
    resolved_page = page if page and page > 0 else 1
    resolved_limit = limit if limit and limit > 0 else default_limit
    return Pagination(page=resolved_page, limit=min(resolved_limit, max_limit))


def compute_total_pages(total: int, limit: int) -> int:
    """Ceil division; zero results means zero pages."""
    if total <= 0:
        return 0
    return ((total - 1) // limit) + 1
