"""
Logging infrastructure for the order sync engine.

Provides structured logging with file rotation and audit trail integration.
"""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config.config_manager import get_config_manager
from ..models.audit_log import ActionType, Actor, Outcome, create_audit_log


class OrderSyncLogger:
    """
    Application logger.

    Provides both file and console logging with proper formatting.
    """

    def __init__(
        self,
        name: str = "ordersync",
        log_dir: Optional[str] = None,
        log_file: str = "ordersync.log"
    ) -> None:
        """
        Initialize logger.

        Args:
            name: Logger name
            log_dir: Directory for log files (defaults to logging.dir from config)
            log_file: Log file name
        """
        config = get_config_manager()
        self.log_level = config.get("logging.level", "INFO")
        self.max_file_size_mb = config.get("logging.max_file_size_mb", 10)
        self.backup_count = config.get("logging.backup_count", 5)

        self.name = name
        self.log_dir = Path(log_dir or config.get("logging.dir", "logs"))
        self.log_file = self.log_dir / log_file
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        # Remove existing handlers
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        self.file_formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        self.console_formatter = logging.Formatter(
            fmt='%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

        self._setup_file_handler()
        self._setup_console_handler()

    def _setup_file_handler(self) -> None:
        """Set up rotating file handler."""
        max_bytes = self.max_file_size_mb * 1024 * 1024

        file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=max_bytes,
            backupCount=self.backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)  # File gets all logs
        file_handler.setFormatter(self.file_formatter)

        self.logger.addHandler(file_handler)

    def _setup_console_handler(self) -> None:
        """Set up console handler."""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, self.log_level))
        console_handler.setFormatter(self.console_formatter)

        self.logger.addHandler(console_handler)

    def get_logger(self) -> logging.Logger:
        """Get underlying logger instance."""
        return self.logger


class AuditLogger:
    """
    Audit logger that writes to the database audit log.

    Records user edits, stock debits and sync outcomes.
    """

    def __init__(self, db_manager=None) -> None:
        """
        Initialize audit logger.

        Args:
            db_manager: Database manager instance (optional)
        """
        self.db_manager = db_manager
        self.file_logger = get_logger("audit")

    def log_action(
        self,
        action_type: ActionType,
        actor: Actor,
        details: Optional[Dict[str, Any]] = None,
        outcome: Outcome = Outcome.SUCCESS,
        order_number: Optional[str] = None,
        item_id: Optional[str] = None,
        error_message: Optional[str] = None
    ) -> None:
        """
        Log an action to the audit trail.

        Args:
            action_type: Type of action
            actor: Who performed the action
            details: Additional details
            outcome: Action outcome
            order_number: Related order number
            item_id: Related order line item ID
            error_message: Error message if failed
        """
        entry = create_audit_log(
            action_type=action_type,
            actor=actor,
            details=details,
            order_number=order_number,
            item_id=item_id
        )
        if outcome == Outcome.FAILURE:
            entry.set_failure(error_message or "unknown error")
        else:
            entry.outcome = outcome

        self.file_logger.info(f"AUDIT: {entry.to_readable_string()}")

        if self.db_manager:
            try:
                query = """
                    INSERT INTO audit_log
                    (log_id, timestamp, action_type, actor, details, outcome,
                     order_number, item_id, error_message)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """
                self.db_manager.execute_update(
                    query,
                    (
                        entry.log_id,
                        entry.timestamp.isoformat(),
                        entry.action_type.value,
                        entry.actor.value,
                        json.dumps(entry.details, default=str),
                        entry.outcome.value,
                        entry.order_number,
                        entry.item_id,
                        entry.error_message
                    )
                )
            except Exception as e:
                self.file_logger.error(f"Failed to write audit log to database: {e}")

    def get_recent_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Get recent audit logs from database.

        Args:
            limit: Maximum number of logs to retrieve

        Returns:
            List of audit log entries
        """
        if not self.db_manager:
            return []

        query = """
            SELECT * FROM audit_log
            ORDER BY timestamp DESC
            LIMIT ?
        """
        rows = self.db_manager.execute_query(query, (limit,))
        return [dict(row) for row in rows]

    def get_logs_by_action_type(self, action_type: ActionType, limit: int = 100) -> List[Dict[str, Any]]:
        """Get audit logs for a specific action type."""
        if not self.db_manager:
            return []

        query = """
            SELECT * FROM audit_log
            WHERE action_type = ?
            ORDER BY timestamp DESC
            LIMIT ?
        """
        rows = self.db_manager.execute_query(query, (action_type.value, limit))
        return [dict(row) for row in rows]


# Global logger instances
_logger: Optional[OrderSyncLogger] = None
_audit_logger: Optional[AuditLogger] = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get application logger.

    Args:
        name: Optional component name; returns a child of the ordersync logger

    Returns:
        Logger instance
    """
    global _logger
    if _logger is None:
        _logger = OrderSyncLogger()
    base = _logger.get_logger()
    if name and name != base.name:
        return base.getChild(name)
    return base


def get_audit_logger(db_manager=None) -> AuditLogger:
    """
    Get audit logger instance.

    Args:
        db_manager: Database manager instance

    Returns:
        AuditLogger instance
    """
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger(db_manager)
    elif db_manager is not None:
        _audit_logger.db_manager = db_manager
    return _audit_logger


def reset_loggers() -> None:
    """Reset global logger instances (mainly for testing)."""
    global _logger, _audit_logger
    if _logger is not None:
        for handler in list(_logger.logger.handlers):
            handler.close()
        _logger.logger.handlers.clear()
    _logger = None
    _audit_logger = None
