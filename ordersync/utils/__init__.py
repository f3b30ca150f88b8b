"""
Utility functions for the order sync engine.
"""

from .dates import (
    current_month_range,
    parse_date,
    to_backend_date,
    to_iso_date,
)
from .logger import (
    AuditLogger,
    OrderSyncLogger,
    get_audit_logger,
    get_logger,
    reset_loggers,
)

__all__ = [
    # Dates
    "parse_date",
    "to_iso_date",
    "to_backend_date",
    "current_month_range",
    # Logging
    "OrderSyncLogger",
    "AuditLogger",
    "get_logger",
    "get_audit_logger",
    "reset_loggers",
]
