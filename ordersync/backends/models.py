"""
Wire models for the order backend.

Defines the reconciliation request/response shapes and the stock debit payload.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.filters import FilterSpec
from ..models.order import EnrichedItem, OrderLineItem
from ..models.status import canonical_status
from ..utils.dates import to_backend_date


class ReconciliationRequest(BaseModel):
    """Request body of the remote reconciliation procedure."""

    date_from: str = Field(default="", serialization_alias="dateFrom")  # DD/MM/YYYY
    date_to: str = Field(default="", serialization_alias="dateTo")  # DD/MM/YYYY
    statuses: Optional[List[str]] = None

    @classmethod
    def from_filters(cls, filters: FilterSpec) -> "ReconciliationRequest":
        """Build the request for the date range and statuses of ``filters``."""
        statuses = [canonical_status(s) for s in filters.statuses if s]
        return cls(
            date_from=to_backend_date(filters.date_from),
            date_to=to_backend_date(filters.date_to),
            statuses=statuses or None,
        )

    def to_payload(self) -> Dict:
        """Serialize with the wire field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class RawItem(BaseModel):
    """Line item as returned by the reconciliation procedure."""

    id: Optional[str] = None
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    sku: str = ""
    description: str = ""
    quantity: float = 0.0
    unit_price: float = 0.0
    line_total: Optional[float] = None


class RawOrder(BaseModel):
    """Order header as returned by the reconciliation procedure."""

    id: Optional[str] = None
    number: str
    ecommerce_number: Optional[str] = None
    customer_name: str = ""
    customer_document: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    order_date: Optional[str] = None
    expected_date: Optional[str] = None
    status: str = ""
    tracking_code: Optional[str] = None
    tracking_url: Optional[str] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    freight_value: float = 0.0
    discount_value: float = 0.0
    total: float = 0.0
    account_id: Optional[str] = None


class ReconciliationResponse(BaseModel):
    """
    Response of the reconciliation procedure.

    Either ``items`` and ``orders`` are both present (immediate result),
    ``started`` is true (background job accepted), or ``error`` is set.
    """

    items: Optional[List[RawItem]] = None
    orders: Optional[List[RawOrder]] = None
    started: bool = False
    error: Optional[str] = None
    message: Optional[str] = None


def join_line_items(items: List[RawItem], orders: List[RawOrder]) -> List[OrderLineItem]:
    """
    Join raw items with their parent orders.

    Items whose order is not in ``orders`` are dropped.
    """
    by_id = {order.id: order for order in orders if order.id}
    by_number = {order.number: order for order in orders}

    joined = []
    for item in items:
        order = by_id.get(item.order_id) if item.order_id else None
        if order is None and item.order_number:
            order = by_number.get(item.order_number)
        if order is None:
            continue

        line_total = item.line_total
        if line_total is None:
            line_total = item.unit_price * item.quantity

        joined.append(OrderLineItem(
            id=item.id or f"{order.number}-{item.sku}",
            order_id=order.id or order.number,
            order_number=order.number,
            sku=item.sku,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total=line_total,
            ecommerce_number=order.ecommerce_number,
            customer_name=order.customer_name,
            customer_document=order.customer_document,
            city=order.city,
            state=order.state,
            order_date=order.order_date,
            expected_date=order.expected_date,
            status=order.status,
            tracking_code=order.tracking_code,
            tracking_url=order.tracking_url,
            notes=order.notes,
            internal_notes=order.internal_notes,
            freight_value=order.freight_value,
            discount_value=order.discount_value,
            order_total=order.total,
            account_id=order.account_id,
        ))
    return joined


class DebitRequest(BaseModel):
    """Stock debit payload for one order line."""

    id: str
    order_number: str
    ecommerce_number: Optional[str] = None
    order_sku: str
    kit_sku: str
    multiplier: float
    order_quantity: float
    kit_quantity: float  # multiplier x order quantity
    description: str = ""
    customer_name: str = ""
    order_date: Optional[str] = None
    unit_price: float = 0.0
    line_total: float = 0.0
    account_id: Optional[str] = None

    @classmethod
    def from_item(cls, item: EnrichedItem) -> "DebitRequest":
        return cls(
            id=item.id,
            order_number=item.order_number,
            ecommerce_number=item.ecommerce_number,
            order_sku=item.sku,
            kit_sku=item.kit_sku or item.sku,
            multiplier=item.kit_multiplier,
            order_quantity=item.quantity,
            kit_quantity=item.required_quantity(),
            description=item.description,
            customer_name=item.customer_name,
            order_date=item.order_date,
            unit_price=item.unit_price,
            line_total=item.line_total,
            account_id=item.account_id,
        )
