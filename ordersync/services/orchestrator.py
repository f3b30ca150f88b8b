"""
Fetch orchestrator.

Coordinates the local cache, the reconciliation procedure, bounded polling,
enrichment, filtering and metrics, and owns the state shown to the user.

Warm cache: the cached view is published at once and reconciliation runs as
a background task. Cold cache: the fetch runs in the foreground through the
tiers edge call, local read, empty result.

Every refresh takes a new generation number. Results of superseded
refreshes may still update the cache (subject to the rule that a result
never shrinks it), but only the latest generation updates the error,
status and loading fields.
"""

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from ..backends.base import LOCAL_READ_LIMIT, OrderBackend
from ..backends.models import DebitRequest
from ..database.db_manager import DatabaseManager
from ..errors import BackendError, ValidationError
from ..models import (
    ActionType,
    Actor,
    AvailabilityStatus,
    BulkResult,
    EnrichedItem,
    FilterSpec,
    MappingStatistics,
    MetricsSnapshot,
    OrderLineItem,
    Outcome,
    SyncOutcomeKind,
    SyncStatus,
    TierResult,
    TierStatus,
    classify_availability,
    status_in,
)
from ..models.status import DEBITABLE_STATUSES
from ..utils import get_audit_logger, get_logger
from .cache_store import LocalCacheStore
from .enrichment import EnrichmentPipeline
from .filter_engine import apply_filters
from .metrics import compute_metrics
from .polling import PollingReconciler
from .remote_sync import RemoteSyncClient

Listener = Callable[["FetchOrchestrator"], None]
Tier = Callable[[int], Awaitable[TierResult]]


class FetchOrchestrator:
    """Owns the published order view and the operations that change it."""

    def __init__(
        self,
        backend: OrderBackend,
        cache: LocalCacheStore,
        enrichment: Optional[EnrichmentPipeline] = None,
        remote_sync: Optional[RemoteSyncClient] = None,
        poll_interval_seconds: float = 1.2,
        poll_timeout_seconds: float = 45.0,
        local_read_limit: int = LOCAL_READ_LIMIT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Optional[Callable[[], float]] = None,
        audit_logger=None
    ) -> None:
        """
        Initialize fetch orchestrator.

        Args:
            backend: Order backend
            cache: Local cache store
            enrichment: Enrichment pipeline (defaults to one over ``backend``)
            remote_sync: Reconciliation client (defaults to one over ``backend``)
            poll_interval_seconds: Delay between authoritative reads while polling
            poll_timeout_seconds: Polling time budget
            local_read_limit: Maximum rows of the authoritative read
            sleep: Awaitable delay used by polling
            clock: Monotonic clock used by polling
            audit_logger: Audit logger (defaults to the global one)
        """
        self.backend = backend
        self.cache = cache
        self.enrichment = enrichment or EnrichmentPipeline(backend)
        self.remote_sync = remote_sync or RemoteSyncClient(backend)
        self.poll_interval_seconds = poll_interval_seconds
        self.poll_timeout_seconds = poll_timeout_seconds
        self.local_read_limit = local_read_limit
        self._sleep = sleep
        self._clock = clock

        self.logger = get_logger("orchestrator")
        self.audit_logger = audit_logger or get_audit_logger(cache.db_manager)

        # Published state
        self.items: List[EnrichedItem] = []
        self.metrics: MetricsSnapshot = cache.load_metrics() or MetricsSnapshot()
        self.filters: FilterSpec = cache.load_filters() or FilterSpec.default()
        self.loading = False
        self.error: Optional[str] = None
        self.status = SyncStatus.IDLE
        self.last_synced_at: Optional[datetime] = None

        self._generation = 0
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[Listener] = []

    @property
    def generation(self) -> int:
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    # Publication

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """
        Register a callback run after every publication.

        Returns:
            Function that removes the callback
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception as e:
                self.logger.error(f"Listener {callback!r} failed: {e}")

    def _publish(self, items: List[EnrichedItem], reenrich: bool = True) -> List[EnrichedItem]:
        """Derive the view from ``items``: filter, enrich, aggregate, notify."""
        view = apply_filters(items, self.filters)
        if reenrich:
            view = self.enrichment.apply(view)
        self.items = view
        self.metrics = compute_metrics(view)
        self._notify()
        return view

    # Refresh

    async def refresh(self, actor: Actor = Actor.SYSTEM) -> List[EnrichedItem]:
        """
        Publish the best available view and reconcile with the backend.

        Returns:
            The items published when this call returns
        """
        self._generation += 1
        generation = self._generation

        cached = self.cache.load_items()
        if cached:
            self.loading = False
            self.status = SyncStatus.SHOWING_CACHE
            self.logger.info(f"Refresh #{generation}: showing {len(cached)} cached items")
            self._publish(cached)

            task = asyncio.create_task(self._reconcile(generation, actor))
            self._tasks.add(task)
            task.add_done_callback(self._task_done)
            return self.items

        self.logger.info(f"Refresh #{generation}: cache empty, fetching in foreground")
        self.loading = True
        self._notify()
        try:
            await self._reconcile(generation, actor)
        finally:
            if self._is_current(generation) and self.loading:
                self.loading = False
                self._notify()
        return self.items

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.error(f"Background reconciliation failed: {task.exception()}")

    async def wait_for_background(self) -> None:
        """Wait until every background reconciliation has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _reconcile(self, generation: int, actor: Actor) -> TierResult:
        """Run the tiers in order; the first tier with data wins."""
        tiers: List[Tier] = [self._edge_tier, self._local_tier]
        error: Optional[str] = None
        status: Optional[SyncStatus] = None

        for tier in tiers:
            result = await self._run_tier(tier, generation)

            if result.status is TierStatus.OK:
                await self._apply_result(generation, result, error, actor)
                return result

            if result.status is TierStatus.ERROR:
                self.logger.warning(f"Tier '{result.tier}' failed: {result.error}")
                error = result.error
                status = SyncStatus.REMOTE_UNAVAILABLE

            if result.final:
                status = status or SyncStatus.JOB_TIMED_OUT
                break

        return self._finish_without_data(generation, error, status, actor)

    async def _run_tier(self, tier: Tier, generation: int) -> TierResult:
        try:
            return await tier(generation)
        except Exception as e:
            return TierResult.failed(getattr(tier, "__name__", "tier"), str(e))

    async def _edge_tier(self, generation: int) -> TierResult:
        outcome = await self.remote_sync.invoke(self.filters)

        if outcome.kind is SyncOutcomeKind.IMMEDIATE:
            return TierResult.ok("edge", outcome.items)
        if outcome.kind is SyncOutcomeKind.FAILED:
            return TierResult.failed("edge", outcome.error or "reconciliation failed")

        poller = PollingReconciler(
            self._read_local,
            interval_seconds=self.poll_interval_seconds,
            timeout_seconds=self.poll_timeout_seconds,
            sleep=self._sleep,
            clock=self._clock,
        )
        result = await poller.poll()
        if result.timed_out:
            self.logger.info(f"Refresh #{generation}: background job produced no new data")
            return TierResult.empty("edge-poll", final=True)
        return TierResult.ok("edge-poll", result.items)

    async def _local_tier(self, generation: int) -> TierResult:
        items = await self._read_local()
        if not items:
            return TierResult.empty("local")
        return TierResult.ok("local", items)

    async def _read_local(self) -> List[OrderLineItem]:
        return await self.backend.read_local_items(limit=self.local_read_limit)

    async def _apply_result(
        self,
        generation: int,
        result: TierResult,
        error: Optional[str],
        actor: Actor
    ) -> None:
        """Enrich a tier result and write it to the cache unless it would shrink it."""
        enriched = await self.enrichment.enrich(result.items)
        view = apply_filters(enriched, self.filters)
        metrics = compute_metrics(view)

        written = self.cache.apply_sync_result(enriched, metrics)
        current = self._is_current(generation)
        details: Dict[str, Any] = {
            "generation": generation,
            "tier": result.tier,
            "items": len(enriched),
            "degraded": self.enrichment.degraded,
        }

        if written:
            self.last_synced_at = datetime.now()
            self.audit_logger.log_action(ActionType.SYNC_COMPLETED, actor, details)
            if current:
                self.error = error
                self.status = SyncStatus.SYNCED if error is None else SyncStatus.REMOTE_UNAVAILABLE
                self.loading = False
            self._publish(enriched, reenrich=False)
            return

        self.audit_logger.log_action(ActionType.SYNC_DISCARDED, actor, details)
        if current:
            self.error = error
            self.status = SyncStatus.STALE_RESULT_DISCARDED
            self.loading = False
            self._notify()

    def _finish_without_data(
        self,
        generation: int,
        error: Optional[str],
        status: Optional[SyncStatus],
        actor: Actor
    ) -> TierResult:
        if error:
            self.audit_logger.log_action(
                ActionType.SYNC_FAILED,
                actor,
                {"generation": generation},
                outcome=Outcome.FAILURE,
                error_message=error,
            )

        if not self._is_current(generation):
            return TierResult.empty("empty")

        self.error = error
        self.loading = False
        if self.cache.item_count() > 0:
            self.status = status or SyncStatus.SHOWING_CACHE
            self._notify()
        else:
            self.status = status or SyncStatus.NO_DATA
            self._publish([], reenrich=False)
        return TierResult.empty("empty")

    # Filters

    def _rederive(self) -> List[EnrichedItem]:
        cached = self.cache.load_items()
        view = self._publish(cached)
        self.cache.write_snapshot(cached, self.metrics, self.filters)
        return view

    def update_filters(self, partial: Dict[str, Any]) -> List[EnrichedItem]:
        """
        Merge ``partial`` into the filters and re-derive the view from the cache.

        No backend request is made.

        Raises:
            ValueError: if a date in ``partial`` cannot be parsed
        """
        self.filters = self.filters.merged(partial)
        self.logger.debug(f"Filters updated: {self.filters.model_dump()}")
        return self._rederive()

    def clear_filters(self) -> List[EnrichedItem]:
        """Reset to the current month, any status, no search."""
        self.filters = FilterSpec.default()
        return self._rederive()

    # Collaborator operations

    async def edit_item(self, patch: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send an edit to the backend, then refresh.

        Raises:
            ValidationError: if the patch has no id or the backend rejects it
        """
        item_id = patch.get("id")
        if not item_id:
            raise ValidationError("Edit patch must include the item id")

        try:
            response = await self.backend.edit_item(patch)
        except (ValidationError, BackendError) as e:
            self.audit_logger.log_action(
                ActionType.ITEM_EDITED,
                Actor.USER,
                {"fields": sorted(k for k in patch if k != "id")},
                outcome=Outcome.FAILURE,
                item_id=item_id,
                error_message=str(e),
            )
            raise

        self.audit_logger.log_action(
            ActionType.ITEM_EDITED,
            Actor.USER,
            {"fields": sorted(k for k in patch if k != "id")},
            item_id=item_id,
        )
        await self.refresh(Actor.USER)
        return response

    def availability(self, item: EnrichedItem) -> AvailabilityStatus:
        return classify_availability(item)

    async def process_item(self, item: EnrichedItem) -> Dict[str, Any]:
        """
        Debit stock for one available line, then refresh.

        Raises:
            ValidationError: if the line is not available or the backend rejects it
        """
        availability = classify_availability(item)
        if availability is not AvailabilityStatus.AVAILABLE:
            raise ValidationError(f"Item {item.id} cannot be processed: {availability.value}")

        request = DebitRequest.from_item(item)
        details = {
            "kit_sku": request.kit_sku,
            "multiplier": request.multiplier,
            "kit_quantity": request.kit_quantity,
        }
        try:
            response = await self.backend.process_item(request)
        except (ValidationError, BackendError) as e:
            self.audit_logger.log_action(
                ActionType.ITEM_PROCESSED,
                Actor.USER,
                details,
                outcome=Outcome.FAILURE,
                order_number=item.order_number,
                item_id=item.id,
                error_message=str(e),
            )
            raise

        self.audit_logger.log_action(
            ActionType.ITEM_PROCESSED,
            Actor.USER,
            details,
            order_number=item.order_number,
            item_id=item.id,
        )
        await self.refresh(Actor.USER)
        return response

    def eligible_items(self, items: Optional[List[EnrichedItem]] = None) -> List[EnrichedItem]:
        """Lines in a debitable status with enough stock that were not processed yet."""
        candidates = self.items if items is None else items
        statuses = [status.value for status in DEBITABLE_STATUSES]
        return [
            item for item in candidates
            if status_in(item.status, statuses)
            and classify_availability(item) is AvailabilityStatus.AVAILABLE
        ]

    async def process_eligible(
        self,
        items: Optional[List[EnrichedItem]] = None,
        dry_run: bool = False
    ) -> BulkResult:
        """
        Debit stock for every eligible line.

        Args:
            items: Lines to consider (defaults to the published view)
            dry_run: Only count the eligible lines

        Returns:
            BulkResult with processed count and per-line errors
        """
        eligible = self.eligible_items(items)
        if dry_run or not eligible:
            self.logger.info(f"{len(eligible)} lines eligible for stock debit (dry_run={dry_run})")
            return BulkResult(success=True, processed=len(eligible))

        result = await self.backend.process_items([DebitRequest.from_item(item) for item in eligible])
        self.audit_logger.log_action(
            ActionType.BULK_PROCESSED,
            Actor.USER,
            {"requested": len(eligible), "processed": result.processed, "errors": result.errors},
            outcome=Outcome.SUCCESS if result.success else Outcome.FAILURE,
            error_message=None if result.success else f"{len(result.errors)} lines failed",
        )
        if result.processed:
            await self.refresh(Actor.USER)
        return result

    def mapping_statistics(self) -> MappingStatistics:
        total = len(self.items)
        mapped = sum(1 for item in self.items if item.has_mapping)
        percent = round(mapped / total * 100, 1) if total else 0.0
        return MappingStatistics(total=total, mapped=mapped, unmapped=total - mapped, percent_mapped=percent)

    async def order_details(self, order_number: str) -> Dict[str, Any]:
        """
        Fetch the full details of one order.

        Raises:
            ValidationError: if ``order_number`` is empty
        """
        order_number = (order_number or "").strip()
        if not order_number:
            raise ValidationError("Order number is required")
        return await self.backend.get_order_details(order_number)

    async def close(self) -> None:
        """Cancel background reconciliations."""
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()


def create_orchestrator(
    backend: OrderBackend,
    db_manager: DatabaseManager,
    config=None
) -> FetchOrchestrator:
    """
    Factory function to create a FetchOrchestrator from configuration.

    Args:
        backend: Order backend
        db_manager: Database manager holding the cache
        config: ConfigManager (defaults to the global one)

    Returns:
        Configured FetchOrchestrator
    """
    if config is None:
        from ..config import get_config_manager
        config = get_config_manager()

    cache = LocalCacheStore(db_manager)
    remote_sync = RemoteSyncClient(backend, timeout_seconds=config.get("sync.edge_timeout_seconds", 6.0))
    return FetchOrchestrator(
        backend,
        cache,
        remote_sync=remote_sync,
        poll_interval_seconds=config.get("sync.poll_interval_seconds", 1.2),
        poll_timeout_seconds=config.get("sync.poll_timeout_seconds", 45.0),
        local_read_limit=config.get("sync.local_read_limit", LOCAL_READ_LIMIT),
    )
