"""
Tests for the SQLite database manager.
"""

import pytest

from ordersync.database import DatabaseManager


class TestDatabaseManager:
    """Schema setup and transactional connections."""

    def test_schema_creates_tables(self, db_manager):
        assert db_manager.table_exists("cache_entries")
        assert db_manager.table_exists("audit_log")
        assert not db_manager.table_exists("inventory")

    def test_failed_transaction_rolls_back(self, db_manager):
        with pytest.raises(RuntimeError):
            with db_manager.get_connection() as conn:
                conn.execute(
                    "INSERT INTO cache_entries (key, value, item_count, updated_at) VALUES (?, ?, ?, ?)",
                    ("order_items", "[]", 0, "2025-03-01T00:00:00"),
                )
                raise RuntimeError("abort")

        assert db_manager.execute_query("SELECT key FROM cache_entries") == []

    def test_update_returns_affected_rows(self, db_manager):
        insert = "INSERT INTO cache_entries (key, value, item_count, updated_at) VALUES (?, ?, ?, ?)"
        assert db_manager.execute_update(insert, ("filters", "{}", 0, "2025-03-01T00:00:00")) == 1
        assert db_manager.execute_update("DELETE FROM cache_entries") == 1

    def test_uninitialized_database_has_no_tables(self, tmp_path):
        manager = DatabaseManager(str(tmp_path / "empty" / "orders.db"))
        assert (tmp_path / "empty").is_dir()
        assert not manager.table_exists("cache_entries")
