"""
Logging configuration for the automation assistant.

This module provides structured logging configuration with separate loggers
for smart healing and test execution.
"""

import logging
import logging.handlers
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import asdict, is_dataclass
from enum import Enum

from .config import settings


CONTEXT_FIELDS = ("run_id", "object_name", "operation", "phase", "duration", "success", "error_code", "metadata")


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data['exception'] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info)
            }

        return json.dumps(log_data, default=self._json_serializer)

    def _json_serializer(self, obj):
        """Custom JSON serializer for complex objects."""
        if is_dataclass(obj):
            return asdict(obj)
        elif isinstance(obj, Enum):
            return obj.value
        elif hasattr(obj, 'isoformat'):  # datetime objects
            return obj.isoformat()
        elif hasattr(obj, '__dict__'):
            return obj.__dict__
        else:
            return str(obj)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps every record with run or object context."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Merge adapter context into the record extras."""
        extra = dict(self.extra)
        extra.update(kwargs.get('extra') or {})
        kwargs['extra'] = extra
        return msg, kwargs

    def log_operation_start(self, operation: str, **metadata):
        """Log the start of an operation."""
        self.info(f"Starting {operation}", extra={
            'operation': operation,
            'phase': 'start',
            'metadata': metadata
        })

    def log_operation_success(self, operation: str, duration: float, **metadata):
        """Log successful completion of an operation."""
        self.info(f"Completed {operation} successfully", extra={
            'operation': operation,
            'phase': 'complete',
            'success': True,
            'duration': duration,
            'metadata': metadata
        })

    def log_operation_failure(self, operation: str, duration: float, error: str, error_code: str = None, **metadata):
        """Log failure of an operation."""
        self.error(f"Failed {operation}: {error}", extra={
            'operation': operation,
            'phase': 'complete',
            'success': False,
            'duration': duration,
            'error_code': error_code,
            'metadata': metadata
        })


def setup_logging(log_level: Optional[str] = None, log_dir: Optional[str] = None) -> Dict[str, logging.Logger]:
    """
    Set up console and structured file logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR); defaults to settings.LOG_LEVEL
        log_dir: Directory to store log files; defaults to settings.LOG_DIR

    Returns:
        Dictionary of configured loggers
    """
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper())
    log_path = Path(log_dir or settings.LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    structured_formatter = StructuredFormatter()
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Console goes to stderr; stdout may carry protocol traffic
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(level)

    all_logs_handler = logging.handlers.RotatingFileHandler(
        log_path / "assistant_all.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    all_logs_handler.setFormatter(structured_formatter)
    all_logs_handler.setLevel(logging.DEBUG)

    error_handler = logging.handlers.RotatingFileHandler(
        log_path / "assistant_errors.log",
        maxBytes=5 * 1024 * 1024,  # 5MB
        backupCount=10
    )
    error_handler.setFormatter(structured_formatter)
    error_handler.setLevel(logging.ERROR)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(all_logs_handler)

    loggers = {}

    healing_handler = logging.handlers.RotatingFileHandler(
        log_path / "healing_operations.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10
    )
    healing_handler.setFormatter(structured_formatter)
    healing_handler.setLevel(logging.INFO)
    healing_logger = logging.getLogger("healing")
    healing_logger.addHandler(healing_handler)
    healing_logger.addHandler(error_handler)
    loggers["healing"] = healing_logger

    execution_handler = logging.handlers.RotatingFileHandler(
        log_path / "execution_operations.log",
        maxBytes=20 * 1024 * 1024,  # 20MB
        backupCount=10
    )
    execution_handler.setFormatter(structured_formatter)
    execution_handler.setLevel(logging.DEBUG)
    execution_logger = logging.getLogger("execution")
    execution_logger.addHandler(execution_handler)
    execution_logger.addHandler(error_handler)
    loggers["execution"] = execution_logger

    return loggers


def get_healing_logger(component: str, object_name: str = None) -> ContextLoggerAdapter:
    """
    Get a healing logger adapter with contextual information.

    Args:
        component: Component name (engine, ledger, object_repository, ...)
        object_name: Optional object repository entry being healed

    Returns:
        ContextLoggerAdapter instance
    """
    extra = {}
    if object_name:
        extra['object_name'] = object_name
    return ContextLoggerAdapter(logging.getLogger(f"healing.{component}"), extra)


def get_execution_logger(component: str, run_id: str = None) -> ContextLoggerAdapter:
    """
    Get an execution logger adapter with contextual information.

    Args:
        component: Component name (supervisor, collector, ...)
        run_id: Optional run identifier

    Returns:
        ContextLoggerAdapter instance
    """
    extra = {}
    if run_id:
        extra['run_id'] = run_id
    return ContextLoggerAdapter(logging.getLogger(f"execution.{component}"), extra)
