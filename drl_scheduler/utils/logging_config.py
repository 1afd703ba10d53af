"""
Structured logging configuration for the DRL scheduler.
Provides consistent logging patterns and structured output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from drl_scheduler.config.scheduler_config import LogLevel


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as simplified JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            log_entry["context"] = context

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        return json.dumps(log_entry, default=str)


class ComponentLogger:
    """Component-specific logger with consistent patterns."""

    def __init__(self, component: str):
        self.component = component
        self.logger = logging.getLogger(f"DRL-Scheduler.{component}")

    def _log_with_context(self, level: int, message: str, exc_info=None, **context) -> None:
        """Log message with additional context."""
        extra = {
            "component": self.component,
            "context": context,
        }
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **context) -> None:
        self._log_with_context(logging.DEBUG, message, **context)

    def info(self, message: str, **context) -> None:
        self._log_with_context(logging.INFO, message, **context)

    def warning(self, message: str, **context) -> None:
        self._log_with_context(logging.WARNING, message, **context)

    def error(self, message: str, exc_info=None, **context) -> None:
        self._log_with_context(logging.ERROR, message, exc_info=exc_info, **context)

    def operation_start(self, operation: str, **context) -> None:
        """Log operation start."""
        self.debug(f"OPERATION_START: {operation}", operation=operation, **context)

    def operation_end(self, operation: str, duration: Optional[float] = None, **context) -> None:
        """Log operation end."""
        context_data = {"operation": operation, **context}
        if duration is not None:
            context_data["duration_seconds"] = duration
        self.debug(f"OPERATION_END: {operation}", **context_data)

    def operation_error(self, operation: str, error: Exception, **context) -> None:
        """Log operation error."""
        self.error(
            f"OPERATION_ERROR: {operation} failed",
            operation=operation,
            error_type=type(error).__name__,
            error_message=str(error),
            **context
        )

    def decision_log(self, decision: str, explored: bool, **context) -> None:
        """Log a placement decision."""
        self.info(
            f"DECISION: {decision}",
            decision=decision,
            explored=explored,
            **context
        )


class DRLSchedulerLogger:
    """Central logging manager for the DRL scheduler."""

    def __init__(self, log_level: LogLevel = LogLevel.INFO, use_structured: bool = True):
        self.log_level = log_level
        self.use_structured = use_structured
        self.component_loggers: Dict[str, ComponentLogger] = {}
        self.setup_logging()

    def setup_logging(self) -> None:
        """Configure logging for the entire application."""
        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)

        if self.use_structured:
            formatter = StructuredFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

        console_handler.setFormatter(formatter)

        root_logger.setLevel(getattr(logging, self.log_level.value))
        root_logger.addHandler(console_handler)

        self._configure_external_loggers()

    def _configure_external_loggers(self) -> None:
        """Suppress verbose external library logs."""
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
        logging.getLogger("asyncio").setLevel(logging.WARNING)
        logging.getLogger("torch").setLevel(logging.WARNING)

    def get_logger(self, component: str) -> ComponentLogger:
        """Get component-specific logger."""
        if component not in self.component_loggers:
            self.component_loggers[component] = ComponentLogger(component)
        return self.component_loggers[component]


# Global logger instance
_logger_manager: Optional[DRLSchedulerLogger] = None


def setup_logging(log_level: LogLevel = LogLevel.INFO, use_structured: bool = True) -> None:
    """Setup global logging configuration."""
    global _logger_manager
    _logger_manager = DRLSchedulerLogger(log_level, use_structured)


def get_logger(component: str) -> ComponentLogger:
    """
    Get component-specific logger.

    Loggers obtained before setup_logging() still work; they propagate to
    whatever handlers the root logger has at emit time.
    """
    if _logger_manager is None:
        return ComponentLogger(component)
    return _logger_manager.get_logger(component)


class OperationLogger:
    """Context manager for logging operations with timing."""

    def __init__(self, logger: ComponentLogger, operation: str, **context: Any):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start_time = None

    def __enter__(self) -> 'OperationLogger':
        self.start_time = datetime.now(timezone.utc)
        self.logger.operation_start(self.operation, **self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time:
            duration = (datetime.now(timezone.utc) - self.start_time).total_seconds()

            if exc_type is None:
                self.logger.operation_end(self.operation, duration, **self.context)
            else:
                self.logger.operation_error(self.operation, exc_val, **self.context)

        # Don't suppress exceptions
        return False
