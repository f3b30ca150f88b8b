"""
Inventory-side data models.

SKU mappings, inventory products and processing history are read-only from
the sync engine's point of view; they are joined onto order lines during
enrichment.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# Status written to the processing history once stock has been debited
DEBITED_STATUS = "estoque_baixado"


class SkuMapping(BaseModel):
    """Maps an order-line SKU to the inventory (kit) SKU it consumes."""

    order_sku: str = Field(..., min_length=1)
    kit_sku: Optional[str] = None
    multiplier: float = Field(default=1.0, gt=0.0)
    active: bool = True
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None


class Product(BaseModel):
    """Inventory record."""

    sku: str = Field(..., min_length=1)
    name: str = ""
    category: Optional[str] = None
    quantity_on_hand: float = 0.0


class ProcessingRecord(BaseModel):
    """Processing history for one (order number, order-line SKU)."""

    order_number: str
    sku: str
    status: str
    kit_sku: Optional[str] = None
    multiplier: Optional[float] = Field(default=None, gt=0.0)

    @property
    def is_debited(self) -> bool:
        """True when stock has already been debited for this line."""
        return self.status == DEBITED_STATUS
