"""
Order backend integrations.

Provides the abstract backend interface and its HTTP implementation.
"""

from .base import LOCAL_READ_LIMIT, OrderBackend
from .http_backend import HttpOrderBackend
from .models import (
    DebitRequest,
    RawItem,
    RawOrder,
    ReconciliationRequest,
    ReconciliationResponse,
    join_line_items,
)

__all__ = [
    "OrderBackend",
    "HttpOrderBackend",
    "LOCAL_READ_LIMIT",
    "DebitRequest",
    "RawItem",
    "RawOrder",
    "ReconciliationRequest",
    "ReconciliationResponse",
    "join_line_items",
]
