"""
Order line item data models.

Raw line items come from the order backend; enriched items add the mapping,
inventory and processing-history fields used for display and stock debit.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.dates import to_iso_date


class OrderLineItem(BaseModel):
    """One SKU/quantity/price row within a customer order, joined with its order."""

    id: str
    order_id: Optional[str] = None
    order_number: str
    sku: str = ""
    description: str = ""
    quantity: float = 0.0
    unit_price: float = 0.0  # Negative on refund and discount lines
    line_total: float = 0.0

    # Order-level fields
    ecommerce_number: Optional[str] = None
    customer_name: str = ""
    customer_document: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    order_date: Optional[str] = None  # YYYY-MM-DD
    expected_date: Optional[str] = None
    status: str = ""
    tracking_code: Optional[str] = None
    tracking_url: Optional[str] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    freight_value: float = 0.0
    discount_value: float = 0.0
    order_total: float = 0.0
    account_id: Optional[str] = None  # Integration account the order came from

    @field_validator('order_date', 'expected_date', mode='before')
    @classmethod
    def normalize_dates(cls, v: Any) -> Optional[str]:
        """Store dates as YYYY-MM-DD; unparseable values are kept verbatim."""
        if v is None or v == "":
            return None
        try:
            return to_iso_date(v)
        except ValueError:
            return str(v)

    @property
    def sort_value(self) -> float:
        """Order total used for ordering; falls back to the line total."""
        return self.order_total or self.line_total

    class Config:
        """Pydantic configuration."""
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "id": "PED-1042-CAM-P-AZ",
                "order_number": "PED-1042",
                "sku": "CAM-P-AZ",
                "description": "Camiseta azul P",
                "quantity": 2,
                "unit_price": 49.9,
                "line_total": 99.8,
                "customer_name": "Maria Souza",
                "order_date": "2025-03-14",
                "status": "aprovado"
            }
        }


class EnrichedItem(OrderLineItem):
    """Order line item with mapping, inventory and processing-history data applied."""

    kit_sku: Optional[str] = None
    kit_multiplier: float = Field(default=1.0, gt=0.0)
    mapped_sku: Optional[str] = None  # Set only when the kit SKU differs from the line SKU
    has_mapping: bool = False
    product_name: Optional[str] = None
    product_category: Optional[str] = None
    stock_on_hand: Optional[float] = None
    already_processed: bool = False
    enriched: bool = True

    def required_quantity(self) -> float:
        """Inventory units consumed when this line is debited."""
        return self.kit_multiplier * self.quantity


class AvailabilityStatus(str, Enum):
    """Stock availability of an enriched line item."""
    PROCESSED = "processed"
    NO_MAPPING = "no-mapping"
    INSUFFICIENT_STOCK = "insufficient-stock"
    AVAILABLE = "available"


def classify_availability(item: EnrichedItem) -> AvailabilityStatus:
    """
    Classify an enriched item for stock debit.

    Args:
        item: Enriched order line item

    Returns:
        PROCESSED if already debited, NO_MAPPING without a kit SKU, otherwise
        AVAILABLE when on-hand stock covers multiplier x quantity
    """
    if item.already_processed:
        return AvailabilityStatus.PROCESSED
    if not item.kit_sku:
        return AvailabilityStatus.NO_MAPPING
    on_hand = item.stock_on_hand or 0.0
    if on_hand < item.required_quantity():
        return AvailabilityStatus.INSUFFICIENT_STOCK
    return AvailabilityStatus.AVAILABLE
