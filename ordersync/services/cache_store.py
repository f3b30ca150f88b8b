"""
Durable local cache of the order view.

Stores the enriched item set, the metrics snapshot and the active filters as
JSON values in the ``cache_entries`` table. Every mutation goes through
``_set_entries`` so items and metrics are always written in one transaction.
"""

import json
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from ..database.db_manager import DatabaseManager
from ..models import EnrichedItem, FilterSpec, MetricsSnapshot, OrderLineItem
from ..utils import get_logger

ITEMS_KEY = "order_items"
METRICS_KEY = "order_metrics"
FILTERS_KEY = "order_filters"


class LocalCacheStore:
    """Single owner of the cached order view."""

    def __init__(self, db_manager: DatabaseManager) -> None:
        """
        Initialize cache store.

        Args:
            db_manager: Database manager instance
        """
        self.db_manager = db_manager
        self.logger = get_logger("cache_store")

        if not self.db_manager.table_exists("cache_entries"):
            self.db_manager.initialize_database()

    # Readers

    def _load_raw(self, key: str) -> Optional[Any]:
        rows = self.db_manager.execute_query(
            "SELECT value FROM cache_entries WHERE key = ?", (key,)
        )
        if not rows:
            return None
        try:
            return json.loads(rows[0]["value"])
        except (TypeError, ValueError) as e:
            self.logger.warning(f"Ignoring corrupt cache entry '{key}': {e}")
            return None

    def load_items(self) -> List[EnrichedItem]:
        """
        Load the cached enriched items.

        Returns:
            Cached items, or an empty list when nothing usable is cached
        """
        data = self._load_raw(ITEMS_KEY)
        if not isinstance(data, list):
            return []
        try:
            return [EnrichedItem.model_validate(row) for row in data]
        except PydanticValidationError as e:
            self.logger.warning(f"Ignoring invalid cached items: {e}")
            return []

    def load_metrics(self) -> Optional[MetricsSnapshot]:
        data = self._load_raw(METRICS_KEY)
        if not isinstance(data, dict):
            return None
        try:
            return MetricsSnapshot.model_validate(data)
        except PydanticValidationError as e:
            self.logger.warning(f"Ignoring invalid cached metrics: {e}")
            return None

    def load_filters(self) -> Optional[FilterSpec]:
        data = self._load_raw(FILTERS_KEY)
        if not isinstance(data, dict):
            return None
        try:
            return FilterSpec.model_validate(data)
        except (PydanticValidationError, ValueError) as e:
            self.logger.warning(f"Ignoring invalid cached filters: {e}")
            return None

    def item_count(self) -> int:
        """Number of cached items, read without decoding the item array."""
        rows = self.db_manager.execute_query(
            "SELECT item_count FROM cache_entries WHERE key = ?", (ITEMS_KEY,)
        )
        return rows[0]["item_count"] if rows else 0

    # Writers

    def _set_entries(self, conn: sqlite3.Connection, entries: Sequence[Tuple[str, Any, int]]) -> None:
        """Upsert ``(key, value, item_count)`` entries on an open connection."""
        now = datetime.now().isoformat()
        conn.executemany(
            """
            INSERT INTO cache_entries (key, value, item_count, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                item_count = excluded.item_count,
                updated_at = excluded.updated_at
            """,
            [(key, json.dumps(value, default=str), count, now) for key, value, count in entries],
        )

    @staticmethod
    def _dump_items(items: List[OrderLineItem]) -> List[Dict[str, Any]]:
        return [item.model_dump(mode="json") for item in items]

    def write_snapshot(
        self,
        items: List[OrderLineItem],
        metrics: MetricsSnapshot,
        filters: Optional[FilterSpec] = None
    ) -> None:
        """
        Replace the cached items and metrics unconditionally.

        Args:
            items: Full item set
            metrics: Metrics of the published view
            filters: Active filters to persist alongside (optional)
        """
        entries = [
            (ITEMS_KEY, self._dump_items(items), len(items)),
            (METRICS_KEY, metrics.model_dump(mode="json"), 0),
        ]
        if filters is not None:
            entries.append((FILTERS_KEY, filters.model_dump(mode="json"), 0))

        with self.db_manager.get_connection() as conn:
            self._set_entries(conn, entries)

    def apply_sync_result(self, items: List[OrderLineItem], metrics: MetricsSnapshot) -> bool:
        """
        Replace the cache with a sync result unless it would shrink it.

        The count check and the write happen in one transaction.

        Returns:
            True if the result was written, False if it was discarded
        """
        with self.db_manager.get_connection() as conn:
            row = conn.execute(
                "SELECT item_count FROM cache_entries WHERE key = ?", (ITEMS_KEY,)
            ).fetchone()
            cached = row["item_count"] if row else 0

            if len(items) < cached:
                self.logger.info(
                    f"Discarding sync result with {len(items)} items; {cached} already cached"
                )
                return False

            self._set_entries(conn, [
                (ITEMS_KEY, self._dump_items(items), len(items)),
                (METRICS_KEY, metrics.model_dump(mode="json"), 0),
            ])

        self.logger.debug(f"Cached {len(items)} items")
        return True

    def save_filters(self, filters: FilterSpec) -> None:
        with self.db_manager.get_connection() as conn:
            self._set_entries(conn, [(FILTERS_KEY, filters.model_dump(mode="json"), 0)])

    def clear(self) -> None:
        """Remove every cached entry."""
        self.db_manager.execute_update(
            "DELETE FROM cache_entries WHERE key IN (?, ?, ?)",
            (ITEMS_KEY, METRICS_KEY, FILTERS_KEY),
        )
        self.logger.info("Local cache cleared")
