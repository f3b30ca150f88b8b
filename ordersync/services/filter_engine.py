"""
Local filtering and ordering of order lines.

All functions here are pure: they never touch the cache or the backend.
"""

from datetime import date
from typing import List, Optional, Sequence, Tuple, TypeVar

from ..models import FilterSpec, OrderLineItem, canonical_status
from ..utils.dates import parse_date

ItemT = TypeVar("ItemT", bound=OrderLineItem)


def _order_date(item: OrderLineItem) -> Optional[date]:
    try:
        return parse_date(item.order_date)
    except ValueError:
        return None


def matches_search(item: OrderLineItem, search: str) -> bool:
    """Case-insensitive substring match on order number, customer, SKU or description."""
    if not search:
        return True
    needle = search.lower()
    haystack = (item.order_number, item.customer_name, item.sku, item.description)
    return any(needle in (field or "").lower() for field in haystack)


def matches_date_range(item: OrderLineItem, date_from: Optional[str], date_to: Optional[str]) -> bool:
    """Inclusive match on the order date; undated items fail any bounded range."""
    if not date_from and not date_to:
        return True

    order_date = _order_date(item)
    if order_date is None:
        return False
    if date_from and order_date < parse_date(date_from):
        return False
    if date_to and order_date > parse_date(date_to):
        return False
    return True


def matches_status(item: OrderLineItem, canonical_statuses: Sequence[str]) -> bool:
    """Membership against already-canonicalized statuses; empty means any."""
    if not canonical_statuses:
        return True
    return canonical_status(item.status) in canonical_statuses


def _sort_key(item: OrderLineItem) -> Tuple[bool, str, float]:
    order_date = _order_date(item)
    return (order_date is not None, order_date.isoformat() if order_date else "", item.sort_value)


def sort_items(items: Sequence[ItemT]) -> List[ItemT]:
    """
    Order by order date descending, then order total descending.

    Undated items go last. Equal keys keep their input order.
    """
    return sorted(items, key=_sort_key, reverse=True)


def apply_filters(items: Sequence[ItemT], filters: FilterSpec) -> List[ItemT]:
    """
    Filter and order items.

    Args:
        items: Items to filter (not modified)
        filters: Search, date range and status filters

    Returns:
        New list of matching items in display order
    """
    statuses = [canonical_status(s) for s in filters.statuses if s]
    matched = [
        item for item in items
        if matches_search(item, filters.search)
        and matches_date_range(item, filters.date_from, filters.date_to)
        and matches_status(item, statuses)
    ]
    return sort_items(matched)
