"""
nftledger - Structured Logging Configuration

Configures structured JSON logging for ledger hosts:
- JSON format for easy parsing and aggregation
- Rotating file handler to bound disk usage
- Per-category default levels for ledger modules

Usage:
    from nftledger.core.logging_config import setup_logging

    logger = setup_logging(name="nftledger", level="INFO")
    logger.info("Token minted", extra={"event": "psp34.mint", "token_id": 7})
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from . import config

# Default verbosity per module category
LOG_LEVELS: dict[str, str] = {
    # Ledger state transitions
    "psp34": "INFO",
    "contracts": "INFO",
    "ownership": "INFO",
    "approvals": "INFO",
    "metadata": "INFO",
    "enumeration": "INFO",

    # Event fan-out to sinks; failures are warnings
    "events": "WARNING",

    # Monitoring
    "metrics": "INFO",
    "config": "WARNING",
}

DEFAULT_LOG_LEVEL = "INFO"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter adding timestamp, environment, service and source fields.
    """

    def __init__(
        self,
        fmt: str = "%(timestamp)s %(level)s %(name)s %(message)s",
        timestamp: bool = True,
        environment: Optional[str] = None,
        service_name: str = "nftledger",
    ):
        super().__init__(fmt=fmt)
        self.timestamp = timestamp
        self.environment = environment or "production"
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record."""
        super().add_fields(log_record, record, message_dict)

        if self.timestamp and not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        log_record["environment"] = self.environment
        log_record["service"] = self.service_name

        if not log_record.get("level"):
            log_record["level"] = record.levelname.lower()

        log_record["source"] = {
            "function": record.funcName,
            "module": record.module,
            "line": record.lineno,
        }


def setup_logging(
    name: str = "nftledger",
    log_file: Optional[str] = None,
    level: Optional[str] = None,
    environment: Optional[str] = None,
    enable_console: bool = True,
    max_bytes: int = 100 * 1024 * 1024,  # 100MB
    backup_count: int = 10,
) -> logging.Logger:
    """
    Setup structured JSON logging.

    Args:
        name: Logger name (typically the package name)
        log_file: Path to JSON log file; defaults to NFTLEDGER_LOG_FILE
        level: Logging level; defaults to NFTLEDGER_LOG_LEVEL
        environment: Environment identifier; defaults to NFTLEDGER_ENVIRONMENT
        enable_console: Whether to log to stdout
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured logger instance
    """
    level = (level or config.LOG_LEVEL).upper()
    log_file = log_file or config.LOG_FILE
    environment = environment or config.ENVIRONMENT

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level))

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    formatter = CustomJsonFormatter(
        environment=environment,
        service_name=name.split(".")[0],
    )

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, level))
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=str(log_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setLevel(getattr(logging, level))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_module_category(module_name: str) -> str | None:
    """
    Determine the category for a module name.

    Args:
        module_name: Full module path (e.g., 'nftledger.core.contracts.psp34')

    Returns:
        Category name or None if no match
    """
    for part in reversed(module_name.split(".")):
        if part in LOG_LEVELS:
            return part
    return None


def configure_module_logging(
    module_name: str,
    category: str | None = None,
    override_level: str | None = None,
) -> logging.Logger:
    """
    Return a module logger with its category's default level applied.

    Example:
        logger = configure_module_logging(__name__, 'psp34')
    """
    logger = logging.getLogger(module_name)

    if override_level:
        level_str = override_level.upper()
    else:
        category = category or get_module_category(module_name)
        level_str = LOG_LEVELS.get(category, DEFAULT_LOG_LEVEL) if category else DEFAULT_LOG_LEVEL

    logger.setLevel(getattr(logging, level_str, logging.INFO))
    return logger


def set_category_level(category: str, level: str) -> None:
    """Dynamically update the default log level for a category."""
    if category not in LOG_LEVELS:
        raise ValueError(f"Unknown category: {category}")
    LOG_LEVELS[category] = level.upper()
