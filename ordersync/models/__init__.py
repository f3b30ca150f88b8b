"""
Data models for the order sync engine.

This module exports all data models for easy import.
"""

from .audit_log import (
    ActionType,
    Actor,
    AuditLog,
    Outcome,
    create_audit_log,
)
from .status import (
    OrderStatus,
    STATUS_LABELS,
    canonical_status,
    status_in,
    status_label,
)
from .order import (
    AvailabilityStatus,
    EnrichedItem,
    OrderLineItem,
    classify_availability,
)
from .inventory import (
    DEBITED_STATUS,
    ProcessingRecord,
    Product,
    SkuMapping,
)
from .filters import FilterSpec
from .metrics import MetricsSnapshot
from .sync import (
    BulkResult,
    MappingStatistics,
    PollResult,
    SyncOutcome,
    SyncOutcomeKind,
    SyncStatus,
    TierResult,
    TierStatus,
)

__all__ = [
    # Audit log models
    "AuditLog",
    "ActionType",
    "Actor",
    "Outcome",
    "create_audit_log",
    # Status vocabulary
    "OrderStatus",
    "STATUS_LABELS",
    "canonical_status",
    "status_in",
    "status_label",
    # Order models
    "OrderLineItem",
    "EnrichedItem",
    "AvailabilityStatus",
    "classify_availability",
    # Inventory models
    "SkuMapping",
    "Product",
    "ProcessingRecord",
    "DEBITED_STATUS",
    # Filters and metrics
    "FilterSpec",
    "MetricsSnapshot",
    # Sync results
    "SyncOutcome",
    "SyncOutcomeKind",
    "PollResult",
    "TierResult",
    "TierStatus",
    "SyncStatus",
    "BulkResult",
    "MappingStatistics",
]
