"""
Metrics snapshot model.
"""

from pydantic import BaseModel, Field


class MetricsSnapshot(BaseModel):
    """Summary of the filtered, enriched order lines."""

    total_items: int = Field(default=0, ge=0)
    total_orders: int = Field(default=0, ge=0)
    pending_orders: int = Field(default=0, ge=0)
    approved_orders: int = Field(default=0, ge=0)
    shipped_orders: int = Field(default=0, ge=0)
    delivered_orders: int = Field(default=0, ge=0)
    total_value: float = 0.0
