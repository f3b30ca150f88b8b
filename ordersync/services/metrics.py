"""
Metrics aggregation over the published order lines.
"""

from typing import FrozenSet, Sequence, Set

from ..models import MetricsSnapshot, OrderLineItem, OrderStatus, canonical_status
from ..models.status import (
    APPROVED_STATUSES,
    DELIVERED_STATUSES,
    PENDING_STATUSES,
    SHIPPED_STATUSES,
)


def _orders_in(items: Sequence[OrderLineItem], bucket: FrozenSet[OrderStatus]) -> int:
    values = {status.value for status in bucket}
    orders: Set[str] = {
        item.order_number for item in items
        if canonical_status(item.status) in values
    }
    return len(orders)


def compute_metrics(items: Sequence[OrderLineItem]) -> MetricsSnapshot:
    """
    Summarize filtered order lines.

    Order counts are distinct order numbers. Total value is the sum of line
    totals, so order-level freight and discount are not included.
    """
    return MetricsSnapshot(
        total_items=len(items),
        total_orders=len({item.order_number for item in items}),
        pending_orders=_orders_in(items, PENDING_STATUSES),
        approved_orders=_orders_in(items, APPROVED_STATUSES),
        shipped_orders=_orders_in(items, SHIPPED_STATUSES),
        delivered_orders=_orders_in(items, DELIVERED_STATUSES),
        total_value=round(sum(item.line_total for item in items), 2),
    )
