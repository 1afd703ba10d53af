"""
Custom exception classes for the DRL scheduler.
Each phase of a scheduling cycle raises one of these types so the host can
decide whether to retry the pod's placement.
"""

from typing import Any, Dict, Optional


class DRLSchedulerError(Exception):
    """Base exception class for the DRL scheduler."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ConfigurationError(DRLSchedulerError):
    """Raised when configuration is invalid or missing."""
    pass


class InsufficientDataError(DRLSchedulerError):
    """Raised when replay memory holds fewer transitions than requested."""
    pass


class PredictionError(DRLSchedulerError):
    """Raised when the value function fails to produce node values."""
    pass


class FitError(DRLSchedulerError):
    """Raised when a learning step fails to update the online value function."""
    pass


class MissingCycleStateError(DRLSchedulerError):
    """Raised when a phase runs without the state an earlier phase must cache."""
    pass


class MissingServiceLabelError(DRLSchedulerError):
    """Raised when a pod lacks the service/role labels used for rewards."""
    pass


class PrometheusError(DRLSchedulerError):
    """Raised when Prometheus operations fail."""
    pass


class MetricsQueryError(PrometheusError):
    """Raised when the cluster feature vector cannot be assembled."""
    pass


class CheckpointError(DRLSchedulerError):
    """Raised when saving or loading an agent checkpoint fails."""
    pass


# Context manager for error handling
class ErrorContext:
    """Context manager for consistent error handling."""

    def __init__(self, operation: str, component: str = "DRL-Scheduler"):
        self.operation = operation
        self.component = component
        self.context = {}

    def add_context(self, **kwargs) -> 'ErrorContext':
        """Add context information."""
        self.context.update(kwargs)
        return self

    def __enter__(self) -> 'ErrorContext':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            return

        if isinstance(exc_val, DRLSchedulerError):
            exc_val.context.update({
                'operation': self.operation,
                'component': self.component,
                **self.context
            })

        # Re-raise the exception
        return False
