"""
SQLite database manager.

Holds the durable local cache and the audit trail.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from ..utils import get_logger


class DatabaseManager:
    """
    Manages the local SQLite database.

    Connections are opened per transaction and committed or rolled back as a unit.
    """

    def __init__(self, db_path: str) -> None:
        """
        Initialize database manager.

        Args:
            db_path: Path to the database file
        """
        self.db_path = Path(db_path)
        self.logger = get_logger("database")

        # Ensure database directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.schema_path = Path(__file__).parent / "schema.sql"

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """
        Context manager for database connections.

        Yields:
            Database connection object
        """
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row

        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize_database(self) -> None:
        """
        Initialize database with schema from schema.sql.

        Creates all tables if they don't exist.
        """
        if not self.schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {self.schema_path}")

        with open(self.schema_path, 'r') as f:
            schema_sql = f.read()

        with self.get_connection() as conn:
            conn.executescript(schema_sql)

        self.logger.info(f"Database initialized at: {self.db_path}")

    def execute_query(
        self,
        query: str,
        params: Optional[Tuple] = None
    ) -> List[sqlite3.Row]:
        """
        Execute a SELECT query and return results.

        Args:
            query: SQL SELECT query
            params: Query parameters (optional)

        Returns:
            List of rows as dict-like objects
        """
        with self.get_connection() as conn:
            cursor = conn.execute(query, params or ())
            return cursor.fetchall()

    def execute_update(
        self,
        query: str,
        params: Optional[Tuple] = None
    ) -> int:
        """
        Execute an INSERT, UPDATE, or DELETE query.

        Returns:
            Number of affected rows
        """
        with self.get_connection() as conn:
            cursor = conn.execute(query, params or ())
            return cursor.rowcount

    def table_exists(self, table_name: str) -> bool:
        """
        Check if a table exists in the database.

        Args:
            table_name: Name of the table

        Returns:
            True if table exists
        """
        query = """
            SELECT name FROM sqlite_master
            WHERE type='table' AND name=?
        """
        rows = self.execute_query(query, (table_name,))
        return len(rows) > 0


def create_database_manager(db_path: str = "data/ordersync.db") -> DatabaseManager:
    """
    Factory function to create an initialized DatabaseManager.

    Args:
        db_path: Path to database file

    Returns:
        Configured DatabaseManager instance
    """
    db_manager = DatabaseManager(db_path)
    db_manager.initialize_database()
    return db_manager
