"""
Audit log data models.

Defines data structures for recording edits, stock debits and sync outcomes.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ActionType(str, Enum):
    """Types of actions that can be logged."""
    # Order line actions
    ITEM_EDITED = "item_edited"
    ITEM_PROCESSED = "item_processed"
    BULK_PROCESSED = "bulk_processed"

    # Sync actions
    SYNC_COMPLETED = "sync_completed"
    SYNC_FAILED = "sync_failed"
    SYNC_DISCARDED = "sync_discarded"

    # Scheduler actions
    SCHEDULER_STARTED = "scheduler_started"
    SCHEDULER_STOPPED = "scheduler_stopped"


class Actor(str, Enum):
    """Who performed the action."""
    USER = "user"
    SYSTEM = "system"
    SCHEDULER = "scheduler"


class Outcome(str, Enum):
    """Result of the action."""
    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"


class AuditLog(BaseModel):
    """Represents a single audit log entry."""

    log_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.now)
    action_type: ActionType
    actor: Actor
    details: Dict[str, Any] = Field(default_factory=dict)
    outcome: Outcome = Field(default=Outcome.SUCCESS)
    order_number: Optional[str] = None
    item_id: Optional[str] = None  # Order line item reference
    error_message: Optional[str] = None

    def set_failure(self, error_message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Mark action as failed."""
        self.outcome = Outcome.FAILURE
        self.error_message = error_message
        if details:
            self.details.update(details)

    def to_readable_string(self) -> str:
        """Convert log entry to human-readable string."""
        timestamp_str = self.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        actor_str = self.actor.value.upper()
        action_str = self.action_type.value.replace("_", " ").title()
        outcome_str = self.outcome.value.upper()

        base = f"[{timestamp_str}] {actor_str}: {action_str} - {outcome_str}"

        if self.order_number:
            base += f" (order {self.order_number})"
        if self.error_message:
            base += f" - Error: {self.error_message}"

        return base

    class Config:
        """Pydantic configuration."""
        json_schema_extra = {
            "example": {
                "action_type": "item_processed",
                "actor": "user",
                "details": {
                    "kit_sku": "KIT-CAMISETA-P",
                    "multiplier": 2,
                    "quantity": 3
                },
                "outcome": "success",
                "order_number": "PED-1042"
            }
        }


def create_audit_log(
    action_type: ActionType,
    actor: Actor,
    details: Optional[Dict[str, Any]] = None,
    order_number: Optional[str] = None,
    item_id: Optional[str] = None
) -> AuditLog:
    """
    Factory function to create audit log entries.

    Args:
        action_type: Type of action
        actor: Who performed the action
        details: Additional details
        order_number: Related order number
        item_id: Related order line item ID

    Returns:
        AuditLog instance
    """
    return AuditLog(
        action_type=action_type,
        actor=actor,
        details=details or {},
        order_number=order_number,
        item_id=item_id
    )
