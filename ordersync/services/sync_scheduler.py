"""
Sync Scheduler Service

Refreshes the order view at a fixed interval using APScheduler's asyncio
scheduler, so scheduled refreshes share the orchestrator's event loop.
"""

from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..models import ActionType, Actor
from ..utils import get_audit_logger, get_logger
from .orchestrator import FetchOrchestrator

JOB_ID = "order_auto_refresh"


class SyncScheduler:
    """
    Runs ``FetchOrchestrator.refresh`` periodically.

    Overlapping runs are coalesced into one; at most one runs at a time.
    """

    def __init__(self, orchestrator: FetchOrchestrator, interval_minutes: float = 15):
        """
        Initialize the sync scheduler.

        Args:
            orchestrator: Orchestrator to refresh
            interval_minutes: Minutes between refreshes
        """
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")

        self.orchestrator = orchestrator
        self.interval_minutes = interval_minutes

        self.logger = get_logger("sync_scheduler")
        self.audit_logger = get_audit_logger(orchestrator.cache.db_manager)

        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.running = False

    def start(self) -> None:
        """Start the scheduler. Must be called from within the running event loop."""
        if self.running:
            self.logger.warning("Scheduler already running")
            return

        try:
            self.scheduler.add_job(
                func=self._run_scheduled_refresh,
                trigger=IntervalTrigger(minutes=self.interval_minutes),
                id=JOB_ID,
                name="Order Auto Refresh",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            self.scheduler.start()
            self.running = True

            self.logger.info(f"Sync scheduler started, refreshing every {self.interval_minutes} minutes")
            self.audit_logger.log_action(
                ActionType.SCHEDULER_STARTED,
                Actor.SYSTEM,
                details={"interval_minutes": self.interval_minutes},
            )

        except Exception as e:
            self.logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self) -> None:
        """Stop the scheduler."""
        if not self.running:
            return

        self.scheduler.shutdown(wait=False)
        self.running = False

        self.logger.info("Sync scheduler stopped")
        self.audit_logger.log_action(ActionType.SCHEDULER_STOPPED, Actor.SYSTEM)

    async def _run_scheduled_refresh(self) -> None:
        """Called by the scheduler on every interval."""
        self.logger.info("Starting scheduled refresh...")
        try:
            items = await self.orchestrator.refresh(Actor.SCHEDULER)
            self.logger.info(
                f"Scheduled refresh published {len(items)} items "
                f"(status: {self.orchestrator.status.value})"
            )
        except Exception as e:
            self.logger.error(f"Scheduled refresh failed: {e}")

    def get_next_run_time(self) -> Optional[datetime]:
        """
        Get the next scheduled run time.

        Returns:
            Next run time or None if scheduler not running
        """
        if not self.running:
            return None

        job = self.scheduler.get_job(JOB_ID)
        if job:
            return job.next_run_time

        return None
