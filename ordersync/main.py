#!/usr/bin/env python3
"""
Command-line entry point for the order sync engine.

Usage:
    ordersync refresh                      # Show cached view, reconcile, print summary
    ordersync filter --search PED-1        # Re-filter the cached view locally
    ordersync filter --status Entregue --from 01/03/2025 --to 31/03/2025
    ordersync clear-filters                # Back to the current month
    ordersync metrics                      # Print metrics of the cached view
    ordersync process-eligible --dry-run   # Count lines ready for stock debit
    ordersync watch                        # Refresh on a schedule until interrupted
    ordersync audit --limit 20             # Show recent audit entries
    ordersync set-api-key KEY              # Store the backend API key encrypted
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .backends import HttpOrderBackend
from .config import get_config_manager
from .database import create_database_manager
from .errors import OrderSyncError
from .models import EnrichedItem, status_label
from .services import FetchOrchestrator, SyncScheduler, create_orchestrator
from .utils import get_audit_logger, get_logger


class OrderSyncApplication:
    """Application controller wiring configuration, storage, backend and orchestrator."""

    def __init__(self) -> None:
        """Initialize the application."""
        self.logger = get_logger("app")
        self.config = get_config_manager()
        self.db_manager = None
        self.audit_logger = None
        self.backend = None
        self.orchestrator: Optional[FetchOrchestrator] = None
        self.scheduler: Optional[SyncScheduler] = None

    def initialize(self) -> bool:
        """
        Initialize application components.

        Returns:
            True if initialization successful
        """
        try:
            db_path = self.config.get("database.path", "data/ordersync.db")
            self.logger.info(f"Opening database: {db_path}")
            self.db_manager = create_database_manager(db_path)
            self.audit_logger = get_audit_logger(self.db_manager)

            self.backend = HttpOrderBackend(
                base_url=self.config.get("backend.base_url"),
                api_key=self.config.get_backend_api_key(),
                timeout_seconds=self.config.get("backend.request_timeout_seconds", 15.0),
            )
            self.orchestrator = create_orchestrator(self.backend, self.db_manager, self.config)
            self.logger.info("Application initialized successfully")
            return True

        except Exception as e:
            self.logger.error(f"Initialization failed: {e}")
            return False

    def start_scheduler(self) -> None:
        """Start automatic refresh. Must run inside the event loop."""
        interval = self.config.get("sync.auto_refresh_interval_minutes", 15)
        self.scheduler = SyncScheduler(self.orchestrator, interval_minutes=interval)
        self.scheduler.start()

    async def shutdown(self) -> None:
        """Clean shutdown of the application."""
        self.logger.info("Shutting down application...")
        if self.scheduler:
            self.scheduler.stop()
        if self.orchestrator:
            await self.orchestrator.close()
        self.logger.info("Application shutdown complete")


def _print_items(items: List[EnrichedItem], limit: int) -> None:
    for item in items[:limit]:
        print(
            f"{item.order_date or '----------'}  {item.order_number:<14} {item.sku:<18} "
            f"x{item.quantity:g}  {item.line_total:>10.2f}  {status_label(item.status)}"
        )
    if len(items) > limit:
        print(f"... {len(items) - limit} more")


def _print_summary(orchestrator: FetchOrchestrator, limit: int = 20) -> None:
    metrics = orchestrator.metrics
    _print_items(orchestrator.items, limit)
    print("-" * 60)
    print(
        f"Items: {metrics.total_items}  Orders: {metrics.total_orders}  "
        f"Pending: {metrics.pending_orders}  Approved: {metrics.approved_orders}  "
        f"Shipped: {metrics.shipped_orders}  Delivered: {metrics.delivered_orders}"
    )
    print(f"Total value: {metrics.total_value:.2f}")
    print(f"Status: {orchestrator.status.value}")
    if orchestrator.error:
        print(f"Last error: {orchestrator.error}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ordersync", description="Order synchronization and local cache")
    subparsers = parser.add_subparsers(dest="command", required=True)

    refresh = subparsers.add_parser("refresh", help="Refresh the order view")
    refresh.add_argument("--limit", type=int, default=20, help="Rows to print")

    filter_cmd = subparsers.add_parser("filter", help="Filter the cached view")
    filter_cmd.add_argument("--search", help="Order number, customer, SKU or description")
    filter_cmd.add_argument("--from", dest="date_from", help="Start date (YYYY-MM-DD or DD/MM/YYYY)")
    filter_cmd.add_argument("--to", dest="date_to", help="End date (YYYY-MM-DD or DD/MM/YYYY)")
    filter_cmd.add_argument("--status", action="append", dest="statuses", help="Allowed status (repeatable)")
    filter_cmd.add_argument("--limit", type=int, default=20, help="Rows to print")

    subparsers.add_parser("clear-filters", help="Reset filters to the current month")
    subparsers.add_parser("metrics", help="Show metrics of the cached view")

    process = subparsers.add_parser("process-eligible", help="Debit stock for every eligible line")
    process.add_argument("--dry-run", action="store_true", help="Only count eligible lines")

    subparsers.add_parser("watch", help="Refresh automatically until interrupted")

    audit = subparsers.add_parser("audit", help="Show recent audit entries")
    audit.add_argument("--limit", type=int, default=20)

    api_key = subparsers.add_parser("set-api-key", help="Store the backend API key")
    api_key.add_argument("key")

    return parser


async def _watch(app: OrderSyncApplication) -> None:
    app.start_scheduler()
    await app.orchestrator.refresh()
    await app.orchestrator.wait_for_background()
    _print_summary(app.orchestrator)
    print(f"Next refresh at {app.scheduler.get_next_run_time()}; press Ctrl+C to stop")
    await asyncio.Event().wait()


async def run_command(app: OrderSyncApplication, args: argparse.Namespace) -> int:
    """
    Execute one CLI command.

    Returns:
        Exit code
    """
    orchestrator = app.orchestrator
    try:
        if args.command == "refresh":
            await orchestrator.refresh()
            await orchestrator.wait_for_background()
            _print_summary(orchestrator, args.limit)

        elif args.command == "filter":
            partial = {
                key: value for key, value in {
                    "search": args.search,
                    "date_from": args.date_from,
                    "date_to": args.date_to,
                    "statuses": args.statuses,
                }.items()
                if value is not None
            }
            orchestrator.update_filters(partial)
            _print_summary(orchestrator, args.limit)

        elif args.command == "clear-filters":
            orchestrator.clear_filters()
            print(f"Filters reset to {orchestrator.filters.date_from} .. {orchestrator.filters.date_to}")

        elif args.command == "metrics":
            orchestrator.update_filters({})
            print(orchestrator.metrics.model_dump_json(indent=2))

        elif args.command == "process-eligible":
            orchestrator.update_filters({})
            result = await orchestrator.process_eligible(dry_run=args.dry_run)
            await orchestrator.wait_for_background()
            verb = "eligible" if args.dry_run else "processed"
            print(f"{result.processed} lines {verb}")
            for error in result.errors:
                print(f"  {error['id']}: {error['reason']}")
            return 0 if result.success else 1

        elif args.command == "watch":
            await _watch(app)

        elif args.command == "audit":
            for entry in app.audit_logger.get_recent_logs(args.limit):
                print(f"{entry['timestamp']}  {entry['actor']:<9} {entry['action_type']:<16} {entry['outcome']}")

        return 0

    except (OrderSyncError, ValueError) as e:
        app.logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


async def _run(app: OrderSyncApplication, args: argparse.Namespace) -> int:
    try:
        return await run_command(app, args)
    finally:
        await app.shutdown()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code
    """
    args = build_parser().parse_args(argv)

    if args.command == "set-api-key":
        get_config_manager().set_backend_api_key(args.key)
        print("API key stored")
        return 0

    app = OrderSyncApplication()
    if not app.initialize():
        print("ERROR: Application initialization failed; see logs/ordersync.log", file=sys.stderr)
        return 1

    try:
        return asyncio.run(_run(app, args))
    except KeyboardInterrupt:
        print("\nReceived interrupt signal")
        return 0


if __name__ == "__main__":
    sys.exit(main())
