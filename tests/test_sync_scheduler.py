"""
Tests for the automatic refresh scheduler.
"""

import asyncio

import pytest
from conftest import make_items

from ordersync.models import ActionType, FilterSpec
from ordersync.services.cache_store import LocalCacheStore
from ordersync.services.metrics import compute_metrics
from ordersync.services.orchestrator import FetchOrchestrator
from ordersync.services.sync_scheduler import SyncScheduler


class TestSyncScheduler:
    """Scheduler lifecycle and the scheduled job."""

    @pytest.fixture(autouse=True)
    def setup(self, db_manager, backend, timer):
        self.backend = backend
        cache = LocalCacheStore(db_manager)
        cache.save_filters(FilterSpec())
        items = make_items(4)
        cache.write_snapshot(items, compute_metrics(items))
        self.orchestrator = FetchOrchestrator(backend, cache, sleep=timer.sleep, clock=timer.clock)
        self.scheduler = SyncScheduler(self.orchestrator, interval_minutes=5)

    def test_start_and_stop(self):
        async def run():
            self.scheduler.start()
            next_run = self.scheduler.get_next_run_time()
            running = self.scheduler.running
            self.scheduler.stop()
            return next_run, running

        next_run, running = asyncio.run(run())

        assert running is True
        assert next_run is not None
        assert self.scheduler.running is False
        assert self.scheduler.get_next_run_time() is None

    def test_start_twice_is_harmless(self):
        async def run():
            self.scheduler.start()
            self.scheduler.start()
            self.scheduler.stop()

        asyncio.run(run())
        started = self.scheduler.audit_logger.get_logs_by_action_type(ActionType.SCHEDULER_STARTED)
        assert len(started) == 1

    def test_scheduled_run_refreshes(self):
        async def run():
            await self.scheduler._run_scheduled_refresh()
            await self.orchestrator.wait_for_background()

        asyncio.run(run())

        assert len(self.orchestrator.items) == 4
        assert self.backend.calls["reconcile"] == 1

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            SyncScheduler(self.orchestrator, interval_minutes=0)
