from __future__ import annotations

from typing import Optional

from nearme.models.schemas import SearchFilters


def keyword_for(filters: SearchFilters) -> Optional[str]:
    keyword = filters.query.strip()
    return keyword or None


def resolve_filters(
    filters: SearchFilters,
    category_override: Optional[str] = None,
    keyword_override: Optional[str] = None,
) -> SearchFilters:
    """
    Effective filters for one search: an explicit override wins, otherwise the
    current filter value. Empty strings and None both mean "no constraint".
    """
    category = category_override if category_override else filters.category
    query = keyword_override if keyword_override else filters.query
    return SearchFilters(query=(query or "").strip(), category=category or None)
