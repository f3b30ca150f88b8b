"""
Result types passed between the sync client, the poller and the orchestrator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .order import OrderLineItem


class SyncOutcomeKind(str, Enum):
    """How the remote reconciliation procedure answered."""
    IMMEDIATE = "immediate"
    STARTED = "started"
    FAILED = "failed"


@dataclass
class SyncOutcome:
    """Classified response of one reconciliation call."""

    kind: SyncOutcomeKind
    items: List[OrderLineItem] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def immediate(cls, items: List[OrderLineItem]) -> "SyncOutcome":
        return cls(SyncOutcomeKind.IMMEDIATE, items=items)

    @classmethod
    def started(cls) -> "SyncOutcome":
        return cls(SyncOutcomeKind.STARTED)

    @classmethod
    def failed(cls, error: str) -> "SyncOutcome":
        return cls(SyncOutcomeKind.FAILED, error=error)


@dataclass
class PollResult:
    """Outcome of a bounded polling run."""

    items: List[OrderLineItem] = field(default_factory=list)
    polls: int = 0
    elapsed: float = 0.0
    timed_out: bool = False


class TierStatus(str, Enum):
    """Tagged result of one fetch tier."""
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"


@dataclass
class TierResult:
    """Result of one tier of the fetch fallback chain."""

    tier: str
    status: TierStatus
    items: List[OrderLineItem] = field(default_factory=list)
    error: Optional[str] = None
    # Stop the chain even though no data was produced
    final: bool = False

    @classmethod
    def ok(cls, tier: str, items: List[OrderLineItem]) -> "TierResult":
        return cls(tier, TierStatus.OK, items=items)

    @classmethod
    def empty(cls, tier: str, final: bool = False) -> "TierResult":
        return cls(tier, TierStatus.EMPTY, final=final)

    @classmethod
    def failed(cls, tier: str, error: str) -> "TierResult":
        return cls(tier, TierStatus.ERROR, error=error)


class SyncStatus(str, Enum):
    """Informational state shown next to the order view."""
    IDLE = "idle"
    SHOWING_CACHE = "showing_cache"
    SYNCED = "synced"
    JOB_TIMED_OUT = "job_timed_out"
    STALE_RESULT_DISCARDED = "stale_result_discarded"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    NO_DATA = "no_data"


@dataclass
class BulkResult:
    """Outcome of a bulk stock debit."""

    success: bool
    processed: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class MappingStatistics:
    """How many of the visible lines have a SKU mapping."""

    total: int
    mapped: int
    unmapped: int
    percent_mapped: float
