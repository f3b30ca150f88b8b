"""
Sync, enrichment and caching services for the order sync engine.
"""

from .cache_store import LocalCacheStore
from .enrichment import AuxiliaryTables, EnrichmentPipeline, enrich_item, pass_through
from .filter_engine import apply_filters, sort_items
from .metrics import compute_metrics
from .orchestrator import FetchOrchestrator, create_orchestrator
from .polling import PollingReconciler
from .remote_sync import RemoteSyncClient
from .sync_scheduler import SyncScheduler

__all__ = [
    "LocalCacheStore",
    "AuxiliaryTables",
    "EnrichmentPipeline",
    "enrich_item",
    "pass_through",
    "apply_filters",
    "sort_items",
    "compute_metrics",
    "FetchOrchestrator",
    "create_orchestrator",
    "PollingReconciler",
    "RemoteSyncClient",
    "SyncScheduler",
]
